"""Tag model."""

from pydantic import Field

from .base import DomainModel


class Tag(DomainModel):
    """Плоский тег (без иерархии), задачи ссылаются на него через tag_ids."""

    id: str
    name: str
    color: str = Field("#6B7280", pattern=r"^#[0-9A-Fa-f]{6}$")

    def __repr__(self) -> str:
        return f"<Tag(id={self.id!r}, name={self.name!r})>"
