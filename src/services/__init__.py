"""Service layer: pure store engine + async persistence service."""

from .exceptions import (
    ConcurrentModificationError,
    CycleRejectedError,
    InvalidImportPayloadError,
    StoreError,
)
from .store_service import TodoStoreService
from .todo_store import TodoStore, default_state
from .views import SortBy, SortDirection, TrashContents, TrashListing, ViewCounts, ViewMode

__all__ = [
    "TodoStore",
    "TodoStoreService",
    "default_state",
    "StoreError",
    "CycleRejectedError",
    "InvalidImportPayloadError",
    "ConcurrentModificationError",
    "ViewMode",
    "SortBy",
    "SortDirection",
    "ViewCounts",
    "TrashListing",
    "TrashContents",
]
