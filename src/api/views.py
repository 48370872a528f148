"""
API endpoints для представлений (read model) и корзины.

Списки собираются из реальных задач и виртуальных вхождений.
Виртуальный элемент отличается полем isVirtual=true и id вида
virtual-{sourceId}-{YYYY-MM-DD}.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query

from ..services import (
    SortBy,
    SortDirection,
    TodoStore,
    TodoStoreService,
    TrashContents,
    TrashListing,
    ViewCounts,
    ViewMode,
)
from ..services.views import ViewItem
from .dependencies import get_store_service
from .errors import NotFoundError
from .schemas import ErrorResponse

router = APIRouter(tags=["views"])


@router.get("/views/counts", response_model=ViewCounts, summary="Счётчики для сайдбара")
async def get_counts(service: TodoStoreService = Depends(get_store_service)) -> ViewCounts:
    """
    Пример ответа:
    ```json
    {"all_active": 5, "today": 2, "upcoming": 4, "by_category": {"default-1": 3}}
    ```
    """
    return await service.read(lambda store: store.counts())


@router.get(
    "/views/{mode}",
    response_model=list[ViewItem],
    summary="Список задач для режима",
)
async def get_view(
    mode: ViewMode,
    selected_date: date | None = Query(None, alias="date", description="Для режима date"),
    category_id: str | None = Query(None, alias="categoryId", description="Для режима category"),
    sort_by: SortBy = Query(SortBy.DATE, alias="sortBy"),
    direction: SortDirection = Query(SortDirection.ASC),
    service: TodoStoreService = Depends(get_store_service),
) -> list[ViewItem]:
    """
    Режимы:
    - date: задачи на дату (по умолчанию сегодня) + виртуальные вхождения
    - category: задачи категории и её потомков
    - all: все видимые задачи
    - upcoming: ближайшие дни (UPCOMING_DAYS) с виртуальными вхождениями
    - trash: всегда пусто, корзина - GET /trash

    Пример запроса:
    ```
    GET /views/date?date=2025-01-15&sortBy=title
    ```
    """
    return await service.read(
        lambda store: store.tasks_for_view(
            mode,
            selected_date=selected_date,
            category_id=category_id,
            sort_by=sort_by,
            direction=direction,
        )
    )


@router.get("/trash", response_model=TrashListing, summary="Содержимое корзины")
async def get_trash(service: TodoStoreService = Depends(get_store_service)) -> TrashListing:
    """
    Верхний уровень корзины: удалённые категории и удалённые задачи,
    которые не лежат внутри удалённой категории.
    """
    return await service.read(lambda store: store.trash())


@router.get(
    "/trash/categories/{category_id}",
    response_model=TrashContents,
    summary="Раскрыть категорию в корзине",
    responses={404: {"model": ErrorResponse, "description": "Категория не найдена"}},
)
async def get_trash_category(
    category_id: str, service: TodoStoreService = Depends(get_store_service)
) -> TrashContents:
    def query(store: TodoStore) -> TrashContents:
        contents = store.trash_contents(category_id)
        if contents is None:
            raise NotFoundError("Category", category_id)
        return contents

    return await service.read(query)
