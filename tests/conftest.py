"""
Pytest fixtures для тестов.

Предоставляет:
- test_db: изолированная SQLite in-memory БД для каждого теста
- test_client: HTTP клиент для тестирования API endpoints
- store: TodoStore с фиксированными часами и предсказуемыми id
- make_task: фабрика задач для тестов чистых функций
- make_service: TodoStoreService поверх test_db
- session_factory: дополнительные сессии к тестовой БД
"""

import itertools
from datetime import date

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.api.dependencies import get_db  # ВАЖНО: переопределяем get_db из dependencies
from src.core.config import settings
from src.main import app
from src.models import Base, Task
from src.services import TodoStore, TodoStoreService, default_state

# Test database URL (SQLite in-memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# 2025-01-01T00:00:00Z в epoch ms
START_MS = 1_735_689_600_000
TODAY = date(2025, 1, 15)


class FakeClock:
    """Часы, которые идут только когда их двигают (плюс 1 мс на каждый вызов)."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        self.now += 1
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def sequential_ids(prefix: str = "id"):
    counter = itertools.count(1)
    return lambda: f"{prefix}-{next(counter)}"


# ============================================================================
# CORE FIXTURES
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> TodoStore:
    """
    Пустой стор (без стартовых категорий) с детерминированными
    часами, id (id-1, id-2, ...) и "сегодня" = 2025-01-15.
    """
    return TodoStore(
        default_state(seed_categories=False),
        clock=clock,
        id_factory=sequential_ids(),
        today=lambda: TODAY,
    )


@pytest.fixture
def make_task():
    """
    Фабрика задач.

    Пример:
        task = make_task("Gym", date(2025, 1, 1), repeat={"type": "daily", "interval": 1})
    """
    counter = itertools.count(1)

    def factory(title: str = "Task", on: date = date(2025, 1, 1), **fields) -> Task:
        data = {
            "id": f"task-{next(counter)}",
            "title": title,
            "date": on,
            "created_at": START_MS,
            **fields,
        }
        return Task.model_validate(data)

    return factory


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def test_engine():
    """
    Создаёт async engine для тестовой БД (SQLite in-memory).

    StaticPool обеспечивает что используется одно и то же соединение,
    что критично для in-memory БД (иначе данные теряются).
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def test_db(test_engine):
    """
    Предоставляет async session для работы с тестовой БД.

    Каждый тест получает чистую БД.
    """
    TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def session_factory(test_engine):
    """Фабрика независимых сессий к той же тестовой БД (для параллельных запросов)."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def make_service(test_db):
    """
    Фабрика TodoStoreService поверх test_db с ключом "test-storage",
    детерминированными часами, id и "сегодня" = 2025-01-15.
    Можно передать свою сессию (db=...) и префикс id (id_prefix=...).
    """

    def factory(
        db: AsyncSession | None = None, id_prefix: str = "id", **kwargs
    ) -> TodoStoreService:
        options = {
            "clock": FakeClock(),
            "id_factory": sequential_ids(id_prefix),
            "today": lambda: TODAY,
        }
        options.update(kwargs)
        return TodoStoreService(
            db if db is not None else test_db, storage_key="test-storage", **options
        )

    return factory


@pytest_asyncio.fixture
async def test_client(test_engine):
    """
    HTTP клиент для тестирования API endpoints.

    Использует тестовую БД вместо production БД и
    отправляет правильный X-API-Key в каждом запросе.
    """

    async def override_get_db():
        TestSessionLocal = async_sessionmaker(
            test_engine, class_=AsyncSession, expire_on_commit=False
        )

        async with TestSessionLocal() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"X-API-Key": settings.API_KEY},
    ) as client:
        yield client

    app.dependency_overrides.clear()
