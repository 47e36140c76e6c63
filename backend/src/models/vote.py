"""Vote model - a participant's answer for one option"""

from enum import Enum
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Text, TIMESTAMP
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class VoteType(str, Enum):
    """Answer a participant gives for an option."""
    YES = "yes"
    NO = "no"
    IF_NEED_BE = "ifNeedBe"


class Vote(Base):
    """Vote cast by a participant on an option.

    poll_id duplicates the owning poll (reachable through option and
    participant) so housekeeping can delete a poll's votes in one statement.
    """
    __tablename__ = "votes"
    __table_args__ = (
        Index("ix_votes_poll_id", "poll_id"),
        Index("ix_votes_option_id", "option_id"),
        Index("ix_votes_participant_id", "participant_id"),
        CheckConstraint(
            "type IN ('yes', 'no', 'ifNeedBe')",
            name="ck_votes_type"
        ),
    )

    id = Column(Text, primary_key=True, default=lambda: str(uuid4()))
    poll_id = Column(Text, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False)
    option_id = Column(Text, ForeignKey("options.id", ondelete="CASCADE"), nullable=False)
    participant_id = Column(
        Text,
        ForeignKey("participants.id", ondelete="CASCADE"),
        nullable=False
    )
    type = Column(Text, nullable=False, default=VoteType.YES.value)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)

    # Relationships
    poll = relationship("Poll", back_populates="votes")
    option = relationship("Option", back_populates="votes")
    participant = relationship("Participant", back_populates="votes")

    def __repr__(self):
        return f"<Vote(id='{self.id}', option_id='{self.option_id}', type='{self.type}')>"
