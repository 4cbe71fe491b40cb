"""
AlumniHub Boards — event and job boards.
"""

from alumnihub.boards.events import EventBoard
from alumnihub.boards.jobs import JobBoard
from alumnihub.boards.models import (
    BoardStatus,
    EventRecord,
    EventRegistration,
    JobApplication,
    JobRecord,
)

__all__ = [
    "BoardStatus",
    "EventBoard",
    "EventRecord",
    "EventRegistration",
    "JobApplication",
    "JobBoard",
    "JobRecord",
]
