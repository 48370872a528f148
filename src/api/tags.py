"""
API endpoints для работы с тегами.

Теги плоские. Создание - "get or create" без учёта регистра:
повторный POST с тем же именем вернёт существующий тег.
"""

from fastapi import APIRouter, Depends, status

from ..models import Tag
from ..services import TodoStore, TodoStoreService
from .dependencies import get_store_service
from .errors import NotFoundError
from .schemas import ErrorResponse, TagCreate, TagUpdate

router = APIRouter(prefix="/tags", tags=["tags"])

NOT_FOUND_RESPONSES = {404: {"model": ErrorResponse, "description": "Тег не найден"}}


def require_tag(store: TodoStore, tag_id: str) -> Tag:
    tag = store.get_tag(tag_id)
    if tag is None:
        raise NotFoundError("Tag", tag_id)
    return tag


@router.get("", response_model=list[Tag], summary="Получить все теги")
async def get_tags(service: TodoStoreService = Depends(get_store_service)) -> list[Tag]:
    state = await service.load_state()
    return list(state.tags)


@router.post(
    "",
    response_model=Tag,
    status_code=status.HTTP_201_CREATED,
    summary="Создать тег",
    responses={400: {"model": ErrorResponse, "description": "Неверное имя или цвет"}},
)
async def create_tag(data: TagCreate, service: TodoStoreService = Depends(get_store_service)) -> Tag:
    """
    Пример запроса:
    ```json
    {"name": "urgent", "color": "#EF4444"}
    ```

    Без color тегу назначается цвет из палитры.
    """
    return await service.execute(lambda store: store.add_tag(data.name, data.color))


@router.patch("/{tag_id}", response_model=Tag, responses=NOT_FOUND_RESPONSES)
async def update_tag(
    tag_id: str, data: TagUpdate, service: TodoStoreService = Depends(get_store_service)
) -> Tag:
    def operation(store: TodoStore) -> Tag | None:
        require_tag(store, tag_id)
        return store.update_tag(tag_id, name=data.name, color=data.color)

    return await service.execute(operation)


@router.delete(
    "/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить тег",
    description="Тег удаляется и из tagIds всех задач.",
    responses=NOT_FOUND_RESPONSES,
)
async def delete_tag(tag_id: str, service: TodoStoreService = Depends(get_store_service)):
    def operation(store: TodoStore) -> bool:
        require_tag(store, tag_id)
        return store.delete_tag(tag_id)

    await service.execute(operation)
