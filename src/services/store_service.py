"""Async persistence service: load snapshot -> apply store operation -> save."""

import json
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.logging import get_logger
from ..models import StoreSnapshot, StoreState
from ..repositories import SnapshotRepository
from .exceptions import ConcurrentModificationError
from .todo_store import TodoStore, default_state

logger = get_logger(__name__)

T = TypeVar("T")


class TodoStoreService:
    """
    Сервис-граница между ядром и базой данных.

    Ядро (TodoStore) синхронное и ничего не знает о БД. Сервис:
    1. загружает документ по ключу хранилища
    2. выполняет операцию над TodoStore
    3. если снапшот изменился - сохраняет его (flush, commit делает get_db)
       только поверх той ревизии, которую загрузил: параллельная запись
       даёт ConcurrentModificationError, а не тихую потерю изменений

    Всё это происходит в одной сессии, поэтому ошибка на любом шаге
    откатывает транзакцию целиком.
    """

    def __init__(
        self,
        db: AsyncSession,
        *,
        storage_key: str | None = None,
        seed_default_categories: bool | None = None,
        **store_options: Any,
    ):
        """
        Args:
            db: Асинхронная сессия
            storage_key: Ключ документа (по умолчанию settings.STORAGE_KEY)
            seed_default_categories: Создавать стартовые категории для пустого ключа
            **store_options: clock, id_factory, today, ... для TodoStore
        """
        self.db = db
        self.snapshot_repo = SnapshotRepository(db)
        self.storage_key = storage_key or settings.STORAGE_KEY
        self.seed_default_categories = (
            settings.SEED_DEFAULT_CATEGORIES
            if seed_default_categories is None
            else seed_default_categories
        )
        self.store_options = store_options

    async def load_snapshot(self) -> tuple[StoreState, int | None]:
        """
        Загрузить документ вместе с его ревизией.

        Пустой ключ - стартовый документ и ревизия None
        (без записи в БД до первой мутации).
        Повреждённый документ - ошибка валидации пробрасывается вызывающему.
        """
        snapshot = await self.snapshot_repo.get_by_key(self.storage_key)
        if snapshot is None:
            logger.debug("No snapshot yet, using initial state", extra={"key": self.storage_key})
            return default_state(self.seed_default_categories), None
        return StoreState.model_validate_json(snapshot.payload), snapshot.revision

    async def load_state(self) -> StoreState:
        state, _ = await self.load_snapshot()
        return state

    async def load(self) -> TodoStore:
        return TodoStore(await self.load_state(), **self.store_options)

    async def save(self, state: StoreState, expected_revision: int | None) -> StoreSnapshot:
        """
        Сохранить документ поверх ревизии, с которой он был загружен.

        Raises:
            ConcurrentModificationError: документ уже изменён другим запросом
        """
        payload = json.dumps(state.to_document(), ensure_ascii=False)
        try:
            snapshot = await self.snapshot_repo.save(self.storage_key, payload, expected_revision)
        except IntegrityError as e:
            # параллельный запрос успел создать документ первым
            raise ConcurrentModificationError(self.storage_key, expected_revision) from e
        if snapshot is None:
            raise ConcurrentModificationError(self.storage_key, expected_revision)
        logger.info(
            "Snapshot saved",
            extra={"key": self.storage_key, "revision": snapshot.revision},
        )
        return snapshot

    async def execute(self, operation: Callable[[TodoStore], T]) -> T:
        """
        Выполнить операцию над стором и сохранить результат.

        Пример:
            task = await service.execute(lambda store: store.toggle_task(task_id))

        Returns:
            То, что вернула операция

        Raises:
            ConcurrentModificationError: документ изменён между загрузкой и сохранением
        """
        state, revision = await self.load_snapshot()
        store = TodoStore(state, **self.store_options)
        committed: list[StoreState] = []
        unsubscribe = store.subscribe(committed.append)
        try:
            result = operation(store)
        finally:
            unsubscribe()
        if committed:
            await self.save(store.state, revision)
        return result

    async def read(self, query: Callable[[TodoStore], T]) -> T:
        """Read-only запрос: без сохранения."""
        store = await self.load()
        return query(store)
