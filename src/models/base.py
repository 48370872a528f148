"""Base classes for models."""

import time
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Return current UTC datetime (naive, for SQLite compatibility)."""
    return datetime.now(UTC).replace(tzinfo=None)


def now_ms() -> int:
    """Return current time as epoch milliseconds (format of createdAt/deletedAt)."""
    return int(time.time() * 1000)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimestampMixin:
    """Mixin for adding created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utc_now, onupdate=utc_now, nullable=False
    )


class DomainModel(BaseModel):
    """
    Базовый класс для записей внутри документа стора (задачи, категории, теги).

    - frozen: записи неизменяемы, любое изменение = новая копия (model_copy)
    - camelCase алиасы: формат совпадает с JSON резервной копии
      (categoryId, tagIds, deletedAt, ...)
    - populate_by_name: в Python-коде можно писать snake_case
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )
