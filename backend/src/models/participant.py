"""Participant model"""

from sqlalchemy import Column, ForeignKey, Text, TIMESTAMP
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Text, primary_key=True)
    poll_id = Column(
        Text,
        ForeignKey("polls.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    # Relationships
    poll = relationship("Poll", back_populates="participants")
    votes = relationship("Vote", back_populates="participant", passive_deletes=True)

    def __repr__(self):
        return f"<Participant(id='{self.id}', poll_id='{self.poll_id}', name='{self.name}')>"
