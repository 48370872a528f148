"""
TodoStore - aggregate root that owns the current snapshot.

Каждая операция:
1. вычисляет новый StoreState чистыми функциями (task_lifecycle,
   occurrences, category_tree, tag, backup)
2. подменяет снапшот одним присваиванием
3. уведомляет подписчиков, если снапшот действительно изменился

Часы и генератор id внедряются через конструктор, поэтому тесты
детерминированы.
"""

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import date
from typing import Any
from uuid import uuid4

from ..core.config import settings
from ..core.logging import get_logger, operation_var
from ..models import Category, StoreState, Tag, Task, VirtualOccurrence, now_ms
from . import backup, category_tree, occurrences, tag, task_lifecycle, views

logger = get_logger(__name__)

Listener = Callable[[StoreState], None]

# Стартовые категории для пустого хранилища
DEFAULT_CATEGORIES = (
    Category(id="default-1", name="Work"),
    Category(id="default-2", name="Personal"),
)


def default_state(seed_categories: bool = True) -> StoreState:
    """Initial document for a fresh storage key."""
    return StoreState(categories=DEFAULT_CATEGORIES if seed_categories else ())


def _new_id() -> str:
    return str(uuid4())


class TodoStore:
    """
    Владелец снапшота: все мутации идут через этот класс.

    Пример:
        store = TodoStore()
        task = store.add_task({"title": "Gym", "date": date(2025, 1, 1),
                               "repeat": {"type": "daily", "interval": 1}})
        store.project_occurrences(date(2025, 1, 1), date(2025, 1, 7))
    """

    def __init__(
        self,
        state: StoreState | None = None,
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = _new_id,
        today: Callable[[], date] = date.today,
        max_iterations: int = settings.RECURRENCE_MAX_ITERATIONS,
        upcoming_days: int = settings.UPCOMING_DAYS,
        export_version: str = settings.EXPORT_VERSION,
    ):
        self._state = state if state is not None else default_state()
        self._listeners: list[Listener] = []
        self._clock = clock
        self._id_factory = id_factory
        self._today = today
        self.max_iterations = max_iterations
        self.upcoming_days = upcoming_days
        self.export_version = export_version

    @property
    def state(self) -> StoreState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Подписаться на изменения снапшота.

        Returns:
            функция отписки
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, new_state: StoreState) -> bool:
        """Swap in the new snapshot and notify listeners. Returns False when nothing changed."""
        if new_state is self._state or new_state == self._state:
            return False
        self._state = new_state
        # Ошибки подписчика (например, persistence) пробрасываются вызывающему
        for listener in list(self._listeners):
            listener(new_state)
        return True

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        token = operation_var.set(name)
        try:
            yield
        finally:
            operation_var.reset(token)

    # =========================================================================
    # Tasks
    # =========================================================================

    def get_task(self, task_id: str) -> Task | None:
        return self._state.get_task(task_id)

    def add_task(self, fields: Mapping[str, Any]) -> Task:
        """
        Создать задачу.

        Raises:
            ValueError: пустое название или невалидные поля
        """
        with self._operation("add_task"):
            new_state, task = task_lifecycle.add_task(
                self._state, fields, now=self._clock(), new_id=self._id_factory()
            )
            self._commit(new_state)
            logger.info("Task created", extra={"task_id": task.id, "recurring": task.is_recurring})
            return task

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> Task | None:
        with self._operation("update_task"):
            self._commit(
                task_lifecycle.update_task(self._state, task_id, updates, now=self._clock())
            )
            return self._state.get_task(task_id)

    def toggle_task(self, task_id: str) -> Task | None:
        with self._operation("toggle_task"):
            self._commit(task_lifecycle.toggle_task(self._state, task_id, now=self._clock()))
            return self._state.get_task(task_id)

    def move_task_to_trash(self, task_id: str) -> Task | None:
        with self._operation("move_task_to_trash"):
            if self._commit(
                task_lifecycle.move_task_to_trash(self._state, task_id, now=self._clock())
            ):
                logger.info("Task moved to trash", extra={"task_id": task_id})
            return self._state.get_task(task_id)

    def restore_task(self, task_id: str) -> Task | None:
        with self._operation("restore_task"):
            if self._commit(task_lifecycle.restore_task(self._state, task_id)):
                logger.info("Task restored", extra={"task_id": task_id})
            return self._state.get_task(task_id)

    def permanently_delete_task(self, task_id: str) -> bool:
        with self._operation("permanently_delete_task"):
            removed = self._commit(task_lifecycle.permanently_delete_task(self._state, task_id))
            if removed:
                logger.info("Task permanently deleted", extra={"task_id": task_id})
            return removed

    # =========================================================================
    # Virtual occurrences
    # =========================================================================

    def toggle_virtual_occurrence(self, source_id: str, occurrence_date: date) -> Task | None:
        with self._operation("toggle_virtual_occurrence"):
            new_state, task = occurrences.toggle_virtual_occurrence(
                self._state,
                source_id,
                occurrence_date,
                now=self._clock(),
                new_id=self._id_factory(),
                max_iterations=self.max_iterations,
            )
            self._commit(new_state)
            return task

    def delete_virtual_occurrence(self, source_id: str, occurrence_date: date) -> Task | None:
        """
        Удалить вхождение. ВНИМАНИЕ: все последующие вхождения серии тоже исчезают.
        """
        with self._operation("delete_virtual_occurrence"):
            new_state, guard = occurrences.delete_virtual_occurrence(
                self._state,
                source_id,
                occurrence_date,
                now=self._clock(),
                new_id=self._id_factory(),
                max_iterations=self.max_iterations,
            )
            self._commit(new_state)
            return guard

    def materialize_virtual_occurrence(
        self, source_id: str, occurrence_date: date, fields: Mapping[str, Any]
    ) -> Task | None:
        with self._operation("materialize_virtual_occurrence"):
            new_state, task = occurrences.materialize_virtual_occurrence(
                self._state,
                source_id,
                occurrence_date,
                fields,
                now=self._clock(),
                new_id=self._id_factory(),
                max_iterations=self.max_iterations,
            )
            self._commit(new_state)
            return task

    # =========================================================================
    # Categories
    # =========================================================================

    def get_category(self, category_id: str) -> Category | None:
        return self._state.get_category(category_id)

    def add_category(self, name: str, parent_id: str | None = None) -> Category:
        with self._operation("add_category"):
            new_state, category = category_tree.create_category(
                self._state, name, parent_id, new_id=self._id_factory()
            )
            self._commit(new_state)
            logger.info(
                "Category created",
                extra={"category_id": category.id, "parent_id": category.parent_id},
            )
            return category

    def rename_category(self, category_id: str, name: str) -> Category | None:
        with self._operation("rename_category"):
            self._commit(category_tree.rename_category(self._state, category_id, name))
            return self._state.get_category(category_id)

    def move_category(self, category_id: str, new_parent_id: str | None) -> Category | None:
        """
        Raises:
            CycleRejectedError: перенос в собственное поддерево (снапшот не меняется)
        """
        with self._operation("move_category"):
            if self._commit(category_tree.move_category(self._state, category_id, new_parent_id)):
                logger.info(
                    "Category moved",
                    extra={"category_id": category_id, "parent_id": new_parent_id},
                )
            return self._state.get_category(category_id)

    def move_category_to_trash(self, category_id: str) -> Category | None:
        with self._operation("move_category_to_trash"):
            if self._commit(
                category_tree.move_category_to_trash(self._state, category_id, now=self._clock())
            ):
                logger.info("Category moved to trash", extra={"category_id": category_id})
            return self._state.get_category(category_id)

    def restore_category(self, category_id: str) -> Category | None:
        with self._operation("restore_category"):
            if self._commit(category_tree.restore_category(self._state, category_id)):
                logger.info("Category restored", extra={"category_id": category_id})
            return self._state.get_category(category_id)

    def permanently_delete_category(self, category_id: str) -> bool:
        with self._operation("permanently_delete_category"):
            return self._commit(
                category_tree.permanently_delete_category(self._state, category_id)
            )

    def count_active_todos(self, category_id: str) -> int:
        tree = category_tree.CategoryTree(self._state.categories)
        return tree.count_active_todos(category_id, self._state.tasks)

    # =========================================================================
    # Tags
    # =========================================================================

    def get_tag(self, tag_id: str) -> Tag | None:
        return self._state.get_tag(tag_id)

    def add_tag(self, name: str, color: str | None = None) -> Tag:
        with self._operation("add_tag"):
            new_state, result = tag.add_tag(self._state, name, color, new_id=self._id_factory())
            if self._commit(new_state):
                logger.info("Tag created", extra={"tag_id": result.id})
            return result

    def update_tag(
        self, tag_id: str, *, name: str | None = None, color: str | None = None
    ) -> Tag | None:
        with self._operation("update_tag"):
            self._commit(tag.update_tag(self._state, tag_id, name=name, color=color))
            return self._state.get_tag(tag_id)

    def delete_tag(self, tag_id: str) -> bool:
        with self._operation("delete_tag"):
            removed = self._commit(tag.delete_tag(self._state, tag_id))
            if removed:
                logger.info("Tag deleted", extra={"tag_id": tag_id})
            return removed

    # =========================================================================
    # Read model
    # =========================================================================

    def project_occurrences(self, window_start: date, window_end: date) -> list[VirtualOccurrence]:
        return views.project_occurrences(
            self._state, window_start, window_end, max_iterations=self.max_iterations
        )

    def tasks_for_view(
        self,
        mode: views.ViewMode,
        *,
        selected_date: date | None = None,
        category_id: str | None = None,
        sort_by: views.SortBy = views.SortBy.DATE,
        direction: views.SortDirection = views.SortDirection.ASC,
    ) -> list[views.ViewItem]:
        return views.tasks_for_view(
            self._state,
            mode,
            today=self._today(),
            selected_date=selected_date,
            category_id=category_id,
            upcoming_days=self.upcoming_days,
            sort_by=sort_by,
            direction=direction,
            max_iterations=self.max_iterations,
        )

    def counts(self) -> views.ViewCounts:
        return views.view_counts(
            self._state,
            today=self._today(),
            upcoming_days=self.upcoming_days,
            max_iterations=self.max_iterations,
        )

    def trash(self) -> views.TrashListing:
        return views.trash_listing(self._state)

    def trash_contents(self, category_id: str) -> views.TrashContents | None:
        return views.trash_contents(self._state, category_id)

    # =========================================================================
    # Backup
    # =========================================================================

    def export_payload(self) -> dict[str, Any]:
        return backup.export_payload(
            self._state, exported_at=self._clock(), version=self.export_version
        )

    def import_payload(self, payload: Any) -> StoreState:
        """
        Полностью заменить задачи, категории и теги содержимым payload.

        Raises:
            InvalidImportPayloadError: payload невалиден (снапшот не меняется)
        """
        with self._operation("import_payload"):
            imported = backup.parse_import_payload(payload)
            self._commit(imported)
            logger.info("Store replaced from import")
            return self._state
