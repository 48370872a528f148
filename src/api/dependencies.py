"""
Dependencies для FastAPI endpoints.

Цепочка зависимостей:
    get_store_service зависит от get_db
    → FastAPI вызовет get_db() и передаст сессию
    → endpoint получит готовый TodoStoreService

Commit/rollback делает get_db: сервис только flush-ит.
"""

from collections.abc import AsyncGenerator

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import AsyncSessionLocal
from ..services import TodoStoreService

# ============================================================================
# API KEY AUTHENTICATION
# ============================================================================

api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # Отсутствие ключа обрабатываем сами
    description="API ключ для авторизации. Передавайте в заголовке X-API-Key",
)


async def verify_api_key(api_key: str | None = Depends(api_key_header)) -> str:
    """
    Проверка API ключа из заголовка X-API-Key.

    Пример запроса:
        curl -H "X-API-Key: your-secret-key" http://localhost:8000/api/v1/tasks
    """
    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key is missing. Add header: X-API-Key: your-key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    if api_key != settings.API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


# ============================================================================
# DATABASE SESSION DEPENDENCY
# ============================================================================


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency для получения сессии БД.

    Автоматически:
    1. Создаёт сессию
    2. Делает commit() при успехе
    3. Делает rollback() при ошибке
    4. Закрывает сессию
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ============================================================================
# SERVICE DEPENDENCIES
# ============================================================================


async def get_store_service(db: AsyncSession = Depends(get_db)) -> TodoStoreService:
    """
    Dependency для TodoStoreService.

    Использование:
        @router.post("/tasks")
        async def create_task(service: TodoStoreService = Depends(get_store_service)):
            task = await service.execute(lambda store: store.add_task(...))
    """
    return TodoStoreService(db)
