"""
API endpoints для работы с задачами.

Жизненный цикл задачи:
    Active -> (POST /trash) -> Trashed -> (POST /restore) -> Active
                                       -> (DELETE) -> удалена навсегда
"""

from fastapi import APIRouter, Depends, status

from ..models import Task
from ..services import TodoStore, TodoStoreService
from .dependencies import get_store_service
from .errors import NotFoundError
from .schemas import ErrorResponse, TaskCreate, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["tasks"])

NOT_FOUND_RESPONSES = {404: {"model": ErrorResponse, "description": "Задача не найдена"}}


def require_task(store: TodoStore, task_id: str) -> Task:
    task = store.get_task(task_id)
    if task is None:
        raise NotFoundError("Task", task_id)
    return task


# ============================================================================
# CREATE / LIST
# ============================================================================


@router.post(
    "",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Создать задачу",
    responses={400: {"model": ErrorResponse, "description": "Ошибка валидации"}},
)
async def create_task(
    data: TaskCreate, service: TodoStoreService = Depends(get_store_service)
) -> Task:
    """
    Создать задачу.

    Если указан repeat, задача становится источником повторений:
    следующие вхождения появятся виртуально в /occurrences и /views.
    Неизвестный categoryId и неизвестные tagIds отбрасываются.
    """
    fields = data.model_dump()
    return await service.execute(lambda store: store.add_task(fields))


@router.get("", response_model=list[Task], summary="Получить все задачи")
async def get_tasks(
    include_deleted: bool = False, service: TodoStoreService = Depends(get_store_service)
) -> list[Task]:
    """
    Все реальные задачи документа (без виртуальных вхождений).

    По умолчанию задачи в корзине не возвращаются.
    """
    state = await service.load_state()
    return [t for t in state.tasks if include_deleted or not t.is_deleted]


# ============================================================================
# GET / UPDATE
# ============================================================================


@router.get("/{task_id}", response_model=Task, responses=NOT_FOUND_RESPONSES)
async def get_task(task_id: str, service: TodoStoreService = Depends(get_store_service)) -> Task:
    return await service.read(lambda store: require_task(store, task_id))


@router.patch(
    "/{task_id}",
    response_model=Task,
    summary="Обновить задачу",
    responses=NOT_FOUND_RESPONSES,
)
async def update_task(
    task_id: str, data: TaskUpdate, service: TodoStoreService = Depends(get_store_service)
) -> Task:
    """
    Частичное обновление: меняются только переданные поля.

    Пример запроса:
    ```json
    {"title": "Новое название", "categoryId": null}
    ```
    """
    updates = data.model_dump(exclude_unset=True)

    def operation(store: TodoStore) -> Task | None:
        require_task(store, task_id)
        return store.update_task(task_id, updates)

    return await service.execute(operation)


# ============================================================================
# LIFECYCLE
# ============================================================================


@router.post("/{task_id}/toggle", response_model=Task, responses=NOT_FOUND_RESPONSES)
async def toggle_task(
    task_id: str, service: TodoStoreService = Depends(get_store_service)
) -> Task:
    """Переключить completed."""

    def operation(store: TodoStore) -> Task | None:
        require_task(store, task_id)
        return store.toggle_task(task_id)

    return await service.execute(operation)


@router.post("/{task_id}/trash", response_model=Task, responses=NOT_FOUND_RESPONSES)
async def move_task_to_trash(
    task_id: str, service: TodoStoreService = Depends(get_store_service)
) -> Task:
    """Мягкое удаление (повторный вызов ничего не меняет)."""

    def operation(store: TodoStore) -> Task | None:
        require_task(store, task_id)
        return store.move_task_to_trash(task_id)

    return await service.execute(operation)


@router.post("/{task_id}/restore", response_model=Task, responses=NOT_FOUND_RESPONSES)
async def restore_task(
    task_id: str, service: TodoStoreService = Depends(get_store_service)
) -> Task:
    """
    Восстановить задачу из корзины.

    Если категория задачи удалена или её больше нет,
    задача восстанавливается без категории.
    """

    def operation(store: TodoStore) -> Task | None:
        require_task(store, task_id)
        return store.restore_task(task_id)

    return await service.execute(operation)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Удалить задачу навсегда",
    responses=NOT_FOUND_RESPONSES,
)
async def delete_task(task_id: str, service: TodoStoreService = Depends(get_store_service)):
    def operation(store: TodoStore) -> bool:
        require_task(store, task_id)
        return store.permanently_delete_task(task_id)

    await service.execute(operation)
