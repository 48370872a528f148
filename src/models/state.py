"""Store state - the whole client-held document."""

from pydantic import Field

from .base import DomainModel
from .category import Category
from .tag import Tag
from .task import Task


class StoreState(DomainModel):
    """
    Снапшот всего состояния: задачи, категории, теги.

    Неизменяемый: каждая мутация в services/ возвращает новый StoreState.
    В JSON задачи лежат под ключом "todos" (формат резервной копии).
    """

    tasks: tuple[Task, ...] = Field(default=(), alias="todos")
    categories: tuple[Category, ...] = ()
    tags: tuple[Tag, ...] = ()

    def get_task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def get_category(self, category_id: str | None) -> Category | None:
        if category_id is None:
            return None
        return next((c for c in self.categories if c.id == category_id), None)

    def get_tag(self, tag_id: str) -> Tag | None:
        return next((t for t in self.tags if t.id == tag_id), None)

    def replace_task(self, task: Task) -> "StoreState":
        """Return a copy with the task of the same id swapped for ``task``."""
        return self.model_copy(
            update={"tasks": tuple(task if t.id == task.id else t for t in self.tasks)}
        )

    def replace_category(self, category: Category) -> "StoreState":
        """Return a copy with the category of the same id swapped for ``category``."""
        return self.model_copy(
            update={
                "categories": tuple(
                    category if c.id == category.id else c for c in self.categories
                )
            }
        )

    def to_document(self) -> dict:
        """Serialize to the JSON-compatible document (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
