"""
Task lifecycle: CRUD, soft-delete, smart restore, permanent delete.

Состояния задачи:
    Active(complete|incomplete) -> Trashed -> {Restored -> Active, PermanentlyDeleted}

Все функции чистые: принимают StoreState и возвращают новый.
Неизвестный id - молчаливый no-op (с записью в лог).
"""

from collections.abc import Mapping
from typing import Any

from ..core.logging import get_logger
from ..models import StoreState, Task
from .category_tree import CategoryTree

logger = get_logger(__name__)

# Поля, которые пользователь может задавать при создании/редактировании
EDITABLE_FIELDS = frozenset(
    {
        "title",
        "description",
        "date",
        "time",
        "priority",
        "category_id",
        "tag_ids",
        "repeat",
    }
)


def editable_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """
    Оставить только редактируемые поля.

    Raises:
        ValueError: название задано, но пустое
    """
    clean = {key: value for key, value in fields.items() if key in EDITABLE_FIELDS}
    if "title" in clean:
        title = clean["title"]
        if not title or not str(title).strip():
            raise ValueError("Task title cannot be empty")
        clean["title"] = str(title).strip()
    if clean.get("description") is not None:
        clean["description"] = clean["description"].strip() or None
    return clean


def normalize_references(state: StoreState, fields: dict[str, Any]) -> dict[str, Any]:
    """
    Убрать ссылки на несуществующие категории и теги.

    Движок никогда не создаёт висячих ссылок сам.
    """
    if fields.get("category_id") is not None and state.get_category(fields["category_id"]) is None:
        logger.info("Unknown category dropped", extra={"category_id": fields["category_id"]})
        fields["category_id"] = None
    if "tag_ids" in fields and fields["tag_ids"] is not None:
        known = {tag.id for tag in state.tags}
        fields["tag_ids"] = tuple(tag_id for tag_id in fields["tag_ids"] if tag_id in known)
    return fields


def add_task(
    state: StoreState, fields: Mapping[str, Any], *, now: int, new_id: str
) -> tuple[StoreState, Task]:
    """
    Создать задачу.

    Args:
        state: текущий снапшот
        fields: title (обязательно), date (обязательно), description, time,
            priority, category_id, tag_ids, repeat
        now: текущее время (epoch ms) для created_at
        new_id: id новой задачи

    Returns:
        (новый снапшот, созданная задача)

    Raises:
        ValueError: пустое название или невалидные поля
    """
    data = editable_fields(fields)
    if "title" not in data:
        raise ValueError("Task title cannot be empty")
    data = normalize_references(state, data)

    task = Task.model_validate(
        {**data, "id": new_id, "created_at": now, "completed": False}
    )
    return state.model_copy(update={"tasks": (*state.tasks, task)}), task


def update_task(
    state: StoreState, task_id: str, updates: Mapping[str, Any], *, now: int
) -> StoreState:
    """
    Частично обновить задачу и проставить updated_at.

    Raises:
        ValueError: пустое название или невалидные поля
    """
    task = state.get_task(task_id)
    if task is None:
        logger.info("Task not found", extra={"task_id": task_id})
        return state

    data = normalize_references(state, editable_fields(updates))
    if not data:
        return state

    merged = {**task.model_dump(), **data, "updated_at": now}
    return state.replace_task(Task.model_validate(merged))


def toggle_task(state: StoreState, task_id: str, *, now: int) -> StoreState:
    task = state.get_task(task_id)
    if task is None:
        logger.info("Task not found", extra={"task_id": task_id})
        return state
    return state.replace_task(
        task.model_copy(update={"completed": not task.completed, "updated_at": now})
    )


def move_task_to_trash(state: StoreState, task_id: str, *, now: int) -> StoreState:
    """Мягкое удаление. Повторный вызов ничего не меняет."""
    task = state.get_task(task_id)
    if task is None:
        logger.info("Task not found", extra={"task_id": task_id})
        return state
    if task.is_deleted:
        return state
    return state.replace_task(task.model_copy(update={"deleted_at": now}))


def restore_task(state: StoreState, task_id: str) -> StoreState:
    """
    Умное восстановление задачи из корзины.

    Если категория задачи удалена (сама или по цепочке) или её больше
    нет, category_id сбрасывается: задача попадает в "без категории",
    а не остаётся невидимой в мёртвой ветке.
    """
    task = state.get_task(task_id)
    if task is None:
        logger.info("Task not found", extra={"task_id": task_id})
        return state
    if not task.is_deleted:
        return state

    updates: dict[str, Any] = {"deleted_at": None}
    if task.category_id is not None:
        tree = CategoryTree(state.categories)
        if not tree.is_alive(task.category_id):
            updates["category_id"] = None
    return state.replace_task(task.model_copy(update=updates))


def permanently_delete_task(state: StoreState, task_id: str) -> StoreState:
    """Жёсткое удаление. Необратимо."""
    if state.get_task(task_id) is None:
        logger.info("Task not found", extra={"task_id": task_id})
        return state
    return state.model_copy(update={"tasks": tuple(t for t in state.tasks if t.id != task_id)})
