"""
API endpoints для виртуальных вхождений повторяющихся задач.

Вхождение адресуется парой (source_id, date) или своим id из GET /occurrences
(virtual-{sourceId}-{YYYY-MM-DD}). Оно не хранится в документе,
пока пользователь его не тронет: toggle / delete / materialize
записывают реальную строку в этот слот.

Дата, которая не является вхождением серии (раньше источника, не на шаге
повтора, после коллизии), - 404.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from ..models import Task, VirtualOccurrence, parse_virtual_id
from ..services import TodoStore, TodoStoreService
from .dependencies import get_store_service
from .errors import APIError, NotFoundError
from .schemas import ErrorResponse, OccurrenceMaterialize

router = APIRouter(prefix="/occurrences", tags=["occurrences"])

NOT_FOUND_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Повторяющаяся задача или вхождение не найдены"}
}


def require_recurring_source(store: TodoStore, source_id: str) -> Task:
    source = store.get_task(source_id)
    if source is None or source.repeat is None:
        raise NotFoundError("Recurring task", source_id)
    return source


def require_occurrence_result(task: Task | None, source_id: str, occurrence_date: date) -> Task:
    """Ядро вернуло None - на эту дату у серии нет вхождения."""
    if task is None:
        raise NotFoundError("Occurrence", f"{source_id}/{occurrence_date.isoformat()}")
    return task


def resolve_virtual_id(value: str) -> tuple[str, date]:
    parsed = parse_virtual_id(value)
    if parsed is None:
        raise NotFoundError("Occurrence", value)
    return parsed


@router.get(
    "",
    response_model=list[VirtualOccurrence],
    summary="Виртуальные вхождения в окне дат",
)
async def get_occurrences(
    start: date = Query(..., description="Начало окна (включительно)"),
    end: date = Query(..., description="Конец окна (включительно)"),
    service: TodoStoreService = Depends(get_store_service),
) -> list[VirtualOccurrence]:
    """
    Пример запроса:
    ```
    GET /occurrences?start=2025-01-01&end=2025-01-31
    ```

    Пример ответа:
    ```json
    [{"id": "virtual-<sourceId>-2025-01-02", "sourceId": "...", "date": "2025-01-02",
      "title": "Gym", "isVirtual": true, ...}]
    ```
    """
    if end < start:
        raise APIError(
            code="VALIDATION_ERROR",
            message="end must not be before start",
            details=[{"field": "end", "message": "end < start"}],
        )
    return await service.read(lambda store: store.project_occurrences(start, end))


# ============================================================================
# ADDRESSED BY (source_id, date)
# ============================================================================


@router.post(
    "/{source_id}/{occurrence_date}/toggle",
    response_model=Task,
    summary="Отметить вхождение выполненным",
    responses=NOT_FOUND_RESPONSES,
)
async def toggle_occurrence(
    source_id: str,
    occurrence_date: date,
    service: TodoStoreService = Depends(get_store_service),
) -> Task:
    """
    Первый вызов создаёт реальную выполненную задачу на эту дату
    (клон источника), повторные - переключают её completed.
    """

    def operation(store: TodoStore) -> Task:
        require_recurring_source(store, source_id)
        task = store.toggle_virtual_occurrence(source_id, occurrence_date)
        return require_occurrence_result(task, source_id, occurrence_date)

    return await service.execute(operation)


@router.delete(
    "/{source_id}/{occurrence_date}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить вхождение",
    description="ВНИМАНИЕ: вместе с вхождением исчезают все последующие вхождения серии.",
    responses=NOT_FOUND_RESPONSES,
)
async def delete_occurrence(
    source_id: str,
    occurrence_date: date,
    service: TodoStoreService = Depends(get_store_service),
):
    def operation(store: TodoStore) -> Task:
        require_recurring_source(store, source_id)
        guard = store.delete_virtual_occurrence(source_id, occurrence_date)
        return require_occurrence_result(guard, source_id, occurrence_date)

    await service.execute(operation)


@router.post(
    "/{source_id}/{occurrence_date}/materialize",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Превратить вхождение в обычную задачу с правками",
    responses=NOT_FOUND_RESPONSES,
)
async def materialize_occurrence(
    source_id: str,
    occurrence_date: date,
    data: OccurrenceMaterialize,
    service: TodoStoreService = Depends(get_store_service),
) -> Task:
    """
    Пример запроса:
    ```json
    {"title": "Gym (legs)", "time": "18:00"}
    ```
    """
    edits = data.model_dump(exclude_unset=True)

    def operation(store: TodoStore) -> Task:
        require_recurring_source(store, source_id)
        task = store.materialize_virtual_occurrence(source_id, occurrence_date, edits)
        return require_occurrence_result(task, source_id, occurrence_date)

    return await service.execute(operation)


# ============================================================================
# ADDRESSED BY VIRTUAL ID
# ============================================================================


@router.post(
    "/{virtual_id}/toggle",
    response_model=Task,
    summary="Отметить вхождение выполненным (по id вхождения)",
    responses=NOT_FOUND_RESPONSES,
)
async def toggle_occurrence_by_id(
    virtual_id: str, service: TodoStoreService = Depends(get_store_service)
) -> Task:
    """
    Пример запроса:
    ```
    POST /occurrences/virtual-<sourceId>-2025-01-03/toggle
    ```
    """
    source_id, occurrence_date = resolve_virtual_id(virtual_id)
    return await toggle_occurrence(source_id, occurrence_date, service)


@router.delete(
    "/{virtual_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить вхождение (по id вхождения)",
    description="ВНИМАНИЕ: вместе с вхождением исчезают все последующие вхождения серии.",
    responses=NOT_FOUND_RESPONSES,
)
async def delete_occurrence_by_id(
    virtual_id: str, service: TodoStoreService = Depends(get_store_service)
):
    source_id, occurrence_date = resolve_virtual_id(virtual_id)
    await delete_occurrence(source_id, occurrence_date, service)


@router.post(
    "/{virtual_id}/materialize",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Превратить вхождение в обычную задачу (по id вхождения)",
    responses=NOT_FOUND_RESPONSES,
)
async def materialize_occurrence_by_id(
    virtual_id: str,
    data: OccurrenceMaterialize,
    service: TodoStoreService = Depends(get_store_service),
) -> Task:
    source_id, occurrence_date = resolve_virtual_id(virtual_id)
    return await materialize_occurrence(source_id, occurrence_date, data, service)
