"""
Скрипт для инициализации базы данных.

Создаёт таблицу снапшотов напрямую через SQLAlchemy
(то же делает приложение при старте) и показывает,
есть ли уже сохранённый документ под STORAGE_KEY.
"""

import asyncio

from src.core.config import settings
from src.core.database import AsyncSessionLocal, init_db
from src.repositories import SnapshotRepository


async def main():
    """Создать таблицы и вывести состояние хранилища."""
    print("Создание таблиц...")
    await init_db()
    print("✓ Таблицы созданы успешно!")

    async with AsyncSessionLocal() as session:
        snapshot = await SnapshotRepository(session).get_by_key(settings.STORAGE_KEY)
    if snapshot is None:
        print(f"Документ '{settings.STORAGE_KEY}' ещё не создан")
    else:
        print(f"Документ '{settings.STORAGE_KEY}': ревизия {snapshot.revision}")


if __name__ == "__main__":
    asyncio.run(main())
