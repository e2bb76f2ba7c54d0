"""
Catalog services: the record service and the cascade machinery it drives.
"""

from .cascade import CascadeCoordinator
from .journal import CascadeJournal
from .record_service import RecordService

__all__ = [
    "RecordService",
    "CascadeCoordinator",
    "CascadeJournal",
]
