"""Task model."""

import datetime as dt
import enum

from pydantic import Field, field_validator

from .base import DomainModel
from .repeat import RepeatConfig


class TaskPriority(str, enum.Enum):
    """Task priority enum."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# Старые резервные копии хранят приоритет иероглифами
_LEGACY_PRIORITIES = {"低": "low", "中": "medium", "高": "high"}


class Task(DomainModel):
    """
    Задача (todo).

    Если задано ``repeat`` - это источник повторений: его собственные
    date/completed/deleted_at описывают только первое вхождение,
    остальные вхождения виртуальные (см. services/recurrence.py).
    """

    id: str
    title: str
    description: str | None = None
    completed: bool = False
    date: dt.date
    time: str | None = Field(None, pattern=r"^\d{2}:\d{2}$")  # HH:mm
    created_at: int
    updated_at: int | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    category_id: str | None = None
    tag_ids: tuple[str, ...] = ()
    repeat: RepeatConfig | None = None
    from_id: str | None = None  # id задачи-источника, из которой склонирована
    deleted_at: int | None = None

    @field_validator("priority", mode="before")
    @classmethod
    def _accept_legacy_priority(cls, value):
        if isinstance(value, str):
            return _LEGACY_PRIORITIES.get(value, value)
        return value

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @property
    def is_recurring(self) -> bool:
        return self.repeat is not None

    def __repr__(self) -> str:
        return f"<Task(id={self.id!r}, title={self.title!r}, date={self.date.isoformat()})>"
