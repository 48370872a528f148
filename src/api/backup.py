"""
API endpoints для резервного копирования.

Экспорт отдаёт весь документ (включая корзину), импорт полностью
заменяет задачи, категории и теги. Невалидный файл не меняет ничего.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends

from ..services import TodoStoreService
from .dependencies import get_store_service
from .schemas import ErrorResponse, ImportResult

router = APIRouter(prefix="/backup", tags=["backup"])


@router.get("/export", summary="Экспорт всего документа")
async def export_backup(service: TodoStoreService = Depends(get_store_service)) -> dict[str, Any]:
    """
    Пример ответа:
    ```json
    {
        "meta": {"version": "1.0", "exportedAt": 1767225600000, "app": "TodoStore"},
        "data": {"todos": [...], "categories": [...], "tags": [...]}
    }
    ```
    """
    return await service.read(lambda store: store.export_payload())


@router.post(
    "/import",
    response_model=ImportResult,
    summary="Импорт (полная замена)",
    responses={400: {"model": ErrorResponse, "description": "INVALID_IMPORT_PAYLOAD"}},
)
async def import_backup(
    payload: Any = Body(..., description="Файл экспорта или объект {todos, categories, tags}"),
    service: TodoStoreService = Depends(get_store_service),
) -> ImportResult:
    state = await service.execute(lambda store: store.import_payload(payload))
    return ImportResult(
        tasks=len(state.tasks), categories=len(state.categories), tags=len(state.tags)
    )
