"""Snapshot repository - load/save of the store document by storage key."""

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import StoreSnapshot
from ..models.base import utc_now
from .base import BaseRepository


class SnapshotRepository(BaseRepository[StoreSnapshot]):
    """
    Репозиторий для снапшотов стора.

    Таблица работает как key-value хранилище: ключ -> JSON документ.
    Каждое сохранение увеличивает revision; ревизия служит версией
    для оптимистичной блокировки.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(StoreSnapshot, db)

    async def get_by_key(self, key: str) -> StoreSnapshot | None:
        """
        Получить снапшот по ключу хранилища.

        Пример:
            snapshot = await repo.get_by_key("todo-storage")
        """
        return await self.get_by_id(key)

    async def save(
        self, key: str, payload: str, expected_revision: int | None
    ) -> StoreSnapshot | None:
        """
        Сохранить документ под ключом, если его никто не изменил.

        Args:
            key: Ключ хранилища
            payload: JSON документ целиком
            expected_revision: Ревизия, с которой документ был загружен
                (None - документа ещё не было, выполняется INSERT)

        Returns:
            Сохранённый снапшот с новой ревизией, или None если ревизия
            в БД уже другая (документ изменён параллельным запросом)

        SQL эквивалент:
            UPDATE store_snapshots SET payload = ..., revision = revision + 1
            WHERE id = {key} AND revision = {expected_revision};

        Raises:
            IntegrityError: параллельный INSERT того же ключа
        """
        if expected_revision is None:
            return await self.create(StoreSnapshot(id=key, payload=payload, revision=1))

        result = await self.db.execute(
            update(StoreSnapshot)
            .where(StoreSnapshot.id == key, StoreSnapshot.revision == expected_revision)
            .values(payload=payload, revision=expected_revision + 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        return await self.get_by_key(key)
