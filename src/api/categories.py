"""
API endpoints для работы с категориями (иерархия).

Удаление в корзину ставит deletedAt только самой категории:
её потомки и их задачи скрываются "по цепочке".
Удаление навсегда (DELETE) каскадно удаляет поддерево и все его задачи.
"""

from fastapi import APIRouter, Depends, status

from ..models import Category
from ..services import TodoStore, TodoStoreService
from ..services.category_tree import CategoryTree
from .dependencies import get_store_service
from .errors import NotFoundError
from .schemas import CategoryCount, CategoryCreate, CategoryMove, CategoryUpdate, ErrorResponse

router = APIRouter(prefix="/categories", tags=["categories"])

NOT_FOUND_RESPONSES = {404: {"model": ErrorResponse, "description": "Категория не найдена"}}


def require_category(store: TodoStore, category_id: str) -> Category:
    category = store.get_category(category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


@router.post(
    "",
    response_model=Category,
    status_code=status.HTTP_201_CREATED,
    summary="Создать категорию",
)
async def create_category(
    data: CategoryCreate, service: TodoStoreService = Depends(get_store_service)
) -> Category:
    """Неизвестный parentId - категория создаётся в корне."""
    return await service.execute(lambda store: store.add_category(data.name, data.parent_id))


@router.get("", response_model=list[Category], summary="Получить категории")
async def get_categories(
    include_deleted: bool = False, service: TodoStoreService = Depends(get_store_service)
) -> list[Category]:
    """
    Плоский список категорий (дерево строится по parentId на клиенте).

    По умолчанию скрыты категории в корзине и их потомки.
    """

    def query(store: TodoStore) -> list[Category]:
        tree = CategoryTree(store.state.categories)
        return [
            c for c in store.state.categories if include_deleted or not tree.is_chain_deleted(c.id)
        ]

    return await service.read(query)


@router.patch("/{category_id}", response_model=Category, responses=NOT_FOUND_RESPONSES)
async def rename_category(
    category_id: str,
    data: CategoryUpdate,
    service: TodoStoreService = Depends(get_store_service),
) -> Category:
    def operation(store: TodoStore) -> Category | None:
        require_category(store, category_id)
        return store.rename_category(category_id, data.name)

    return await service.execute(operation)


@router.post(
    "/{category_id}/move",
    response_model=Category,
    summary="Переместить категорию",
    responses={
        **NOT_FOUND_RESPONSES,
        409: {"model": ErrorResponse, "description": "Перенос в собственное поддерево"},
    },
)
async def move_category(
    category_id: str,
    data: CategoryMove,
    service: TodoStoreService = Depends(get_store_service),
) -> Category:
    """
    Пример запроса:
    ```json
    {"parentId": "default-1"}
    ```
    `{"parentId": null}` - перенос в корень.
    """

    def operation(store: TodoStore) -> Category | None:
        require_category(store, category_id)
        if data.parent_id is not None:
            require_category(store, data.parent_id)
        return store.move_category(category_id, data.parent_id)

    return await service.execute(operation)


@router.post("/{category_id}/trash", response_model=Category, responses=NOT_FOUND_RESPONSES)
async def move_category_to_trash(
    category_id: str, service: TodoStoreService = Depends(get_store_service)
) -> Category:
    def operation(store: TodoStore) -> Category | None:
        require_category(store, category_id)
        return store.move_category_to_trash(category_id)

    return await service.execute(operation)


@router.post("/{category_id}/restore", response_model=Category, responses=NOT_FOUND_RESPONSES)
async def restore_category(
    category_id: str, service: TodoStoreService = Depends(get_store_service)
) -> Category:
    """Если родитель удалён или отсутствует, категория восстанавливается в корень."""

    def operation(store: TodoStore) -> Category | None:
        require_category(store, category_id)
        return store.restore_category(category_id)

    return await service.execute(operation)


@router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить категорию навсегда",
    description="Каскадно удаляет все дочерние категории и все их задачи.",
    responses=NOT_FOUND_RESPONSES,
)
async def delete_category(
    category_id: str, service: TodoStoreService = Depends(get_store_service)
):
    def operation(store: TodoStore) -> bool:
        require_category(store, category_id)
        return store.permanently_delete_category(category_id)

    await service.execute(operation)


@router.get(
    "/{category_id}/count",
    response_model=CategoryCount,
    summary="Количество активных задач",
    responses=NOT_FOUND_RESPONSES,
)
async def count_active_todos(
    category_id: str, service: TodoStoreService = Depends(get_store_service)
) -> CategoryCount:
    """Невыполненные задачи в категории и её неудалённых потомках."""

    def query(store: TodoStore) -> CategoryCount:
        require_category(store, category_id)
        return CategoryCount(category_id=category_id, count=store.count_active_todos(category_id))

    return await service.read(query)
