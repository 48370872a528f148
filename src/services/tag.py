"""Tag operations (flat, no hierarchy)."""

import re

from ..core.logging import get_logger
from ..models import StoreState, Tag

logger = get_logger(__name__)

# Цвета по умолчанию для новых тегов, выдаются по кругу
TAG_PALETTE = (
    "#EF4444",
    "#F59E0B",
    "#10B981",
    "#3B82F6",
    "#8B5CF6",
    "#EC4899",
    "#14B8A6",
    "#6B7280",
)

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


def is_valid_hex_color(color: str) -> bool:
    return bool(_HEX_COLOR.match(color))


def find_tag_by_name(state: StoreState, name: str) -> Tag | None:
    """Case-insensitive lookup by name."""
    wanted = name.strip().casefold()
    return next((t for t in state.tags if t.name.casefold() == wanted), None)


def add_tag(
    state: StoreState, name: str, color: str | None = None, *, new_id: str
) -> tuple[StoreState, Tag]:
    """
    Получить тег по имени или создать новый.

    Raises:
        ValueError: пустое название или неверный цвет

    Бизнес-правила:
    1. Название обязательно
    2. Дубликатов нет: имя сравнивается без учёта регистра
    3. Цвет #RRGGBB, по умолчанию - следующий из палитры
    """
    if not name or not name.strip():
        raise ValueError("Tag name cannot be empty")
    if color is not None and not is_valid_hex_color(color):
        raise ValueError(f"Invalid color format: {color}. Use #RRGGBB")

    existing = find_tag_by_name(state, name)
    if existing is not None:
        return state, existing

    tag = Tag(
        id=new_id,
        name=name.strip(),
        color=color or TAG_PALETTE[len(state.tags) % len(TAG_PALETTE)],
    )
    return state.model_copy(update={"tags": (*state.tags, tag)}), tag


def update_tag(
    state: StoreState, tag_id: str, *, name: str | None = None, color: str | None = None
) -> StoreState:
    tag = state.get_tag(tag_id)
    if tag is None:
        logger.info("Tag not found", extra={"tag_id": tag_id})
        return state

    updates: dict[str, str] = {}
    if name is not None:
        if not name.strip():
            raise ValueError("Tag name cannot be empty")
        duplicate = find_tag_by_name(state, name)
        if duplicate is not None and duplicate.id != tag_id:
            raise ValueError(f"Tag '{name.strip()}' already exists")
        updates["name"] = name.strip()
    if color is not None:
        if not is_valid_hex_color(color):
            raise ValueError(f"Invalid color format: {color}. Use #RRGGBB")
        updates["color"] = color

    if not updates:
        return state
    updated = tag.model_copy(update=updates)
    return state.model_copy(
        update={"tags": tuple(updated if t.id == tag_id else t for t in state.tags)}
    )


def delete_tag(state: StoreState, tag_id: str) -> StoreState:
    """Удалить тег и убрать его id из tag_ids всех задач."""
    if state.get_tag(tag_id) is None:
        logger.info("Tag not found", extra={"tag_id": tag_id})
        return state
    tasks = tuple(
        t.model_copy(update={"tag_ids": tuple(i for i in t.tag_ids if i != tag_id)})
        if tag_id in t.tag_ids
        else t
        for t in state.tasks
    )
    return state.model_copy(
        update={"tags": tuple(t for t in state.tags if t.id != tag_id), "tasks": tasks}
    )
