"""Domain models (pydantic) and the SQLAlchemy snapshot table."""

from .base import Base, DomainModel, TimestampMixin, now_ms, utc_now
from .category import Category
from .occurrence import VirtualOccurrence, parse_virtual_id, virtual_id
from .repeat import DailyRepeat, MonthlyRepeat, RepeatConfig
from .snapshot import StoreSnapshot
from .state import StoreState
from .tag import Tag
from .task import Task, TaskPriority

__all__ = [
    "Base",
    "DomainModel",
    "TimestampMixin",
    "now_ms",
    "utc_now",
    "Category",
    "Tag",
    "Task",
    "TaskPriority",
    "RepeatConfig",
    "DailyRepeat",
    "MonthlyRepeat",
    "StoreState",
    "StoreSnapshot",
    "VirtualOccurrence",
    "virtual_id",
    "parse_virtual_id",
]
