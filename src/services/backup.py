"""
Export / import of the whole store document.

Формат файла резервной копии:
{
    "meta": {"version": "1.0", "exportedAt": 1767225600000, "app": "TodoStore"},
    "data": {"todos": [...], "categories": [...], "tags": [...]}
}

Импорт - полная замена трёх коллекций, без слияния.
"""

import json
from typing import Any

from pydantic import ValidationError

from ..core.logging import get_logger
from ..models import StoreState
from .exceptions import InvalidImportPayloadError

logger = get_logger(__name__)

APP_MARKER = "TodoStore"


def export_payload(state: StoreState, *, exported_at: int, version: str) -> dict[str, Any]:
    """
    Сериализовать текущее состояние целиком.

    Удалённые в корзину записи тоже экспортируются:
    мягкое удаление - это просто поле deletedAt.
    """
    return {
        "meta": {"version": version, "exportedAt": exported_at, "app": APP_MARKER},
        "data": state.to_document(),
    }


def parse_import_payload(payload: Any) -> StoreState:
    """
    Проверить и разобрать payload импорта.

    Принимается как наш формат ({"meta": ..., "data": {...}}),
    так и "голый" объект с todos/categories/tags на верхнем уровне.

    Raises:
        InvalidImportPayloadError: нет массивов todos/categories
            или записи не проходят валидацию
    """
    if not isinstance(payload, dict):
        raise InvalidImportPayloadError("Import payload must be a JSON object")

    data = payload.get("data") if isinstance(payload.get("data"), dict) else payload

    if not isinstance(data.get("todos"), list) or not isinstance(data.get("categories"), list):
        raise InvalidImportPayloadError(
            "Invalid data format: 'todos' and 'categories' arrays are required"
        )

    tags = data.get("tags")
    if tags is None:
        tags = []
    if not isinstance(tags, list):
        raise InvalidImportPayloadError("Invalid data format: 'tags' must be an array")

    try:
        state = StoreState.model_validate(
            {"todos": data["todos"], "categories": data["categories"], "tags": tags}
        )
    except ValidationError as e:
        raise InvalidImportPayloadError(
            f"Invalid records in import payload: {e.error_count()} error(s)"
        ) from e

    logger.info(
        "Import payload parsed",
        extra={
            "tasks": len(state.tasks),
            "categories": len(state.categories),
            "tags": len(state.tags),
        },
    )
    return state


def loads_import_payload(text: str | bytes) -> StoreState:
    """Parse a raw JSON backup file."""
    try:
        payload = json.loads(text)
    except ValueError as e:  # JSONDecodeError / UnicodeDecodeError
        raise InvalidImportPayloadError(f"Import file is not valid JSON: {e}") from e
    return parse_import_payload(payload)
