"""Virtual occurrence (read-only projection, never persisted)."""

import datetime as dt

from .base import DomainModel
from .repeat import RepeatConfig
from .task import Task, TaskPriority

VIRTUAL_PREFIX = "virtual-"


def virtual_id(source_id: str, occurrence_date: dt.date) -> str:
    """Build the id of a virtual occurrence: ``virtual-{source_id}-{YYYY-MM-DD}``."""
    return f"{VIRTUAL_PREFIX}{source_id}-{occurrence_date.isoformat()}"


def parse_virtual_id(value: str) -> tuple[str, dt.date] | None:
    """
    Разобрать id виртуального вхождения обратно в (source_id, date).

    Дата всегда последние 10 символов, поэтому source_id может быть любой
    длины (не только UUID). Возвращает None, если строка не виртуальный id.
    """
    if not value.startswith(VIRTUAL_PREFIX):
        return None
    body = value[len(VIRTUAL_PREFIX):]
    source_id, sep, date_part = body[:-11], body[-11:-10], body[-10:]
    if sep != "-" or not source_id:
        return None
    try:
        occurrence_date = dt.date.fromisoformat(date_part)
    except ValueError:
        return None
    return source_id, occurrence_date


class VirtualOccurrence(DomainModel):
    """Вхождение повторяющейся задачи на конкретную дату, синтезированное при чтении."""

    id: str
    source_id: str
    date: dt.date
    title: str
    description: str | None = None
    time: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    category_id: str | None = None
    tag_ids: tuple[str, ...] = ()
    repeat: RepeatConfig | None = None
    created_at: int
    updated_at: int | None = None
    completed: bool = False
    is_virtual: bool = True

    @classmethod
    def from_source(cls, source: Task, occurrence_date: dt.date) -> "VirtualOccurrence":
        return cls(
            id=virtual_id(source.id, occurrence_date),
            source_id=source.id,
            date=occurrence_date,
            title=source.title,
            description=source.description,
            time=source.time,
            priority=source.priority,
            category_id=source.category_id,
            tag_ids=source.tag_ids,
            repeat=source.repeat,
            created_at=source.created_at,
            updated_at=source.updated_at,
        )
