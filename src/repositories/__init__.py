"""Repository layer for data access."""

from .base import BaseRepository
from .snapshot import SnapshotRepository

__all__ = [
    "BaseRepository",
    "SnapshotRepository",
]
