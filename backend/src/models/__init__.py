"""SQLAlchemy Models for poll housekeeping"""

from .base import Base
from .poll import Poll
from .option import Option
from .participant import Participant
from .vote import Vote, VoteType

__all__ = [
    "Base",
    "Poll",
    "Option",
    "Participant",
    "Vote",
    "VoteType",
]
