"""Base repository with common CRUD operations."""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

# TypeVar для Generic класса - позволяет работать с любой таблицей
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Базовый репозиторий с CRUD операциями.

    Первичный ключ может быть строкой (ключ хранилища) - репозиторий
    не делает предположений о его типе.

    Пример использования:
        repo = BaseRepository[StoreSnapshot](StoreSnapshot, db_session)
        snapshot = await repo.get_by_id("todo-storage")
    """

    def __init__(self, model: type[ModelType], db: AsyncSession):
        """
        Args:
            model: Класс модели SQLAlchemy
            db: Асинхронная сессия базы данных
        """
        self.model = model
        self.db = db

    async def create(self, obj: ModelType) -> ModelType:
        """
        Создать новую запись в БД.

        flush() отправляет INSERT, но не делает commit:
        транзакцией управляет dependency get_db.
        """
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)  # подтянуть значения по умолчанию (timestamps)
        return obj

    async def get_by_id(self, id: Any) -> ModelType | None:
        """
        Получить объект по первичному ключу.

        populate_existing: объект из identity map перечитывается из БД,
        иначе после чужого UPDATE сессия вернула бы устаревшие поля.

        SQL эквивалент:
            SELECT * FROM table WHERE id = {id} LIMIT 1;
        """
        result = await self.db.execute(
            select(self.model).where(self.model.id == id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

