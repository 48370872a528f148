"""
Pydantic схемы для API.

DTOs (Data Transfer Objects) - объекты для передачи данных через HTTP.

Ответы отдаются доменными моделями (Task, Category, Tag, VirtualOccurrence)
напрямую: они уже pydantic и сериализуются в camelCase, как файл
резервной копии. Здесь - только входящие схемы и служебные ответы.

Входящие схемы принимают и camelCase (categoryId), и snake_case (category_id).
"""

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models import RepeatConfig, TaskPriority


class CamelSchema(BaseModel):
    """Базовый класс схем API: camelCase алиасы, имена полей тоже принимаются."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# TASK SCHEMAS
# ============================================================================


class TaskCreate(CamelSchema):
    """
    Схема для создания задачи (POST /tasks).

    Пример запроса:
    {
        "title": "Gym",
        "date": "2025-01-01",
        "time": "07:30",
        "priority": "high",
        "categoryId": "default-2",
        "repeat": {"type": "daily", "interval": 2}
    }
    """

    title: str = Field(..., min_length=1, max_length=300, description="Название задачи")
    description: str | None = Field(None, description="Описание задачи")
    date: dt.date
    time: str | None = Field(None, pattern=r"^\d{2}:\d{2}$", description="Время HH:mm")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="Приоритет")
    category_id: str | None = None
    tag_ids: list[str] = Field(default_factory=list)
    repeat: RepeatConfig | None = Field(None, description="Правило повторения")


class TaskUpdate(CamelSchema):
    """
    Схема для обновления задачи (PATCH /tasks/{id}).

    Все поля опциональные (частичное обновление). Переданный null
    очищает поле (например, "categoryId": null - убрать категорию).
    """

    title: str | None = Field(None, min_length=1, max_length=300)
    description: str | None = None
    date: dt.date | None = None
    time: str | None = Field(None, pattern=r"^\d{2}:\d{2}$")
    priority: TaskPriority | None = None
    category_id: str | None = None
    tag_ids: list[str] | None = None
    repeat: RepeatConfig | None = None


class OccurrenceMaterialize(TaskUpdate):
    """
    Правки для превращения виртуального вхождения в реальную задачу.

    Незаданные поля берутся из задачи-источника, дата - из вхождения.
    """


# ============================================================================
# CATEGORY SCHEMAS
# ============================================================================


class CategoryCreate(CamelSchema):
    """
    Пример запроса:
    {"name": "Backend", "parentId": "default-1"}
    """

    name: str = Field(..., min_length=1, max_length=200, description="Название категории")
    parent_id: str | None = Field(None, description="Родитель (null = корень)")


class CategoryUpdate(CamelSchema):
    name: str = Field(..., min_length=1, max_length=200)


class CategoryMove(CamelSchema):
    """Новый родитель категории; null - перенос в корень."""

    parent_id: str | None = None


class CategoryCount(CamelSchema):
    category_id: str
    count: int


# ============================================================================
# TAG SCHEMAS
# ============================================================================


class TagCreate(CamelSchema):
    """
    Схема для создания тега (POST /tags).

    Если тег с таким именем уже есть (без учёта регистра) - вернётся он.
    """

    name: str = Field(..., min_length=1, max_length=100, description="Название тега")
    color: str | None = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$", description="#RRGGBB")


class TagUpdate(CamelSchema):
    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, pattern=r"^#[0-9A-Fa-f]{6}$")


# ============================================================================
# BACKUP SCHEMAS
# ============================================================================


class ImportResult(CamelSchema):
    """
    Результат импорта.

    Пример ответа:
    {"tasks": 12, "categories": 3, "tags": 2}
    """

    tasks: int
    categories: int
    tags: int


# ============================================================================
# ERROR SCHEMAS (Единый формат ошибок)
# ============================================================================


class ErrorDetail(BaseModel):
    """
    Детали ошибки для конкретного поля.

    Пример:
    {
        "field": "title",
        "message": "String should have at least 1 character"
    }
    """

    field: str = Field(..., description="Название поля с ошибкой")
    message: str = Field(..., description="Описание ошибки")


class ErrorBody(BaseModel):
    """
    Тело ошибки с кодом и деталями.

    Примеры кодов:
    - VALIDATION_ERROR: ошибка валидации полей
    - NOT_FOUND: ресурс не найден
    - CYCLE_REJECTED: перенос категории в собственное поддерево
    - INVALID_IMPORT_PAYLOAD: файл импорта не подходит
    """

    code: str = Field(..., description="Код ошибки (VALIDATION_ERROR, NOT_FOUND, etc.)")
    message: str = Field(..., description="Человекочитаемое сообщение")
    details: list[ErrorDetail] | None = Field(
        default=None, description="Список ошибок по полям (для валидации)"
    )


class ErrorResponse(BaseModel):
    """
    Единый формат ответа для всех ошибок API.

    Пример ошибки "не найдено":
    {
        "error": {
            "code": "NOT_FOUND",
            "message": "Task с id=abc не найден",
            "details": null
        }
    }
    """

    error: ErrorBody
