"""Category model."""

from .base import DomainModel


class Category(DomainModel):
    """
    Категория задач. Категории образуют лес через ``parent_id``.

    ``deleted_at`` помечает мягкое удаление только этой категории;
    потомки считаются удалёнными "по цепочке" (вычисляется, не хранится).
    """

    id: str
    name: str
    parent_id: str | None = None
    deleted_at: int | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Category(id={self.id!r}, name={self.name!r}, parent_id={self.parent_id!r})>"
