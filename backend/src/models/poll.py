"""Poll model - Root entity owning options, participants and votes"""

from sqlalchemy import Boolean, CheckConstraint, Column, Index, Text, TIMESTAMP, false, func
from sqlalchemy.orm import relationship, validates

from .base import Base, utcnow


class Poll(Base):
    """
    Poll model - a scheduling poll created by a user.

    Lifecycle:
    1. Created active (deleted=False, deleted_at=NULL)
    2. Tombstoned by housekeeping after a period of inactivity
       (deleted=True, deleted_at set)
    3. Permanently removed by housekeeping after the grace period,
       together with every option, participant and vote

    Demo polls skip the tombstone stage and are removed directly once
    they outlive the demo lifetime.
    """
    __tablename__ = "polls"
    __table_args__ = (
        Index("ix_polls_deleted_deleted_at", "deleted", "deleted_at"),
        Index("ix_polls_demo_created_at", "demo", "created_at"),
        Index("ix_polls_touched_at", "touched_at"),
        CheckConstraint(
            "(deleted AND deleted_at IS NOT NULL) OR (NOT deleted AND deleted_at IS NULL)",
            name="ck_polls_tombstone"
        ),
    )

    id = Column(Text, primary_key=True)
    title = Column(Text, nullable=False)
    user_id = Column(Text, nullable=False, index=True)
    participant_url_id = Column(Text, nullable=False, unique=True)
    admin_url_id = Column(Text, nullable=False, unique=True)
    demo = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=func.now()
    )
    # Bumped on any activity that keeps the poll relevant (votes, edits).
    # NULL means never touched; housekeeping falls back to created_at.
    touched_at = Column(TIMESTAMP(timezone=True), nullable=True)
    deleted = Column(Boolean, nullable=False, default=False, server_default=false())
    deleted_at = Column(TIMESTAMP(timezone=True), nullable=True)

    # Relationships
    options = relationship(
        "Option",
        back_populates="poll",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    participants = relationship(
        "Participant",
        back_populates="poll",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    votes = relationship(
        "Vote",
        back_populates="poll",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    @validates('title')
    def validate_title(self, key, value):
        """
        Ensure poll title is not empty.

        Raises:
            ValueError: If title is empty or whitespace
        """
        if not value or len(value.strip()) == 0:
            raise ValueError("Poll title cannot be empty")
        return value.strip()

    def mark_deleted(self, when):
        """Tombstone this poll, keeping deleted/deleted_at consistent."""
        self.deleted = True
        self.deleted_at = when

    def __repr__(self):
        return f"<Poll(id='{self.id}', demo={self.demo}, deleted={self.deleted})>"
