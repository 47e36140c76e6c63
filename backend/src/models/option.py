"""Option model - candidate date/time a poll is choosing among"""

from sqlalchemy import Column, ForeignKey, Integer, Text, TIMESTAMP
from sqlalchemy.orm import relationship

from .base import Base


class Option(Base):
    """A candidate start time belonging to exactly one poll.

    An option whose start lies in the future keeps its poll relevant:
    housekeeping never tombstones such a poll, however long it was untouched.
    """
    __tablename__ = "options"

    id = Column(Text, primary_key=True)
    poll_id = Column(
        Text,
        ForeignKey("polls.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    start = Column(TIMESTAMP(timezone=True), nullable=False)
    duration = Column(Integer, nullable=False, default=0, comment="Minutes; 0 means all-day")

    # Relationships
    poll = relationship("Poll", back_populates="options")
    votes = relationship("Vote", back_populates="option", passive_deletes=True)

    def __repr__(self):
        return f"<Option(id='{self.id}', poll_id='{self.poll_id}', start={self.start})>"
