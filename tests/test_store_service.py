"""
Тесты для TodoStoreService (load -> operation -> save).
"""

from datetime import date

import pytest

from src.repositories import SnapshotRepository
from src.services import ConcurrentModificationError, TodoStore

D = date(2025, 1, 15)


@pytest.mark.asyncio
async def test_fresh_key_returns_default_state_without_writing(test_db, make_service):
    """Test: пустой ключ - стартовые категории, в БД ничего не пишется."""
    service = make_service()

    state = await service.load_state()

    assert [c.id for c in state.categories] == ["default-1", "default-2"]
    assert await SnapshotRepository(test_db).get_by_key("test-storage") is None


@pytest.mark.asyncio
async def test_fresh_key_without_seed(test_db, make_service):
    service = make_service(seed_default_categories=False)

    assert (await service.load_state()).categories == ()


@pytest.mark.asyncio
async def test_execute_persists_mutation(test_db, make_service):
    """Test: мутация сохраняется и видна при следующей загрузке."""
    service = make_service()

    task = await service.execute(lambda store: store.add_task({"title": "T", "date": D}))

    reloaded = await make_service().load_state()
    assert reloaded.get_task(task.id) == task

    snapshot = await SnapshotRepository(test_db).get_by_key("test-storage")
    assert snapshot.revision == 1
    # Документ хранится в формате резервной копии
    assert '"todos"' in snapshot.payload
    assert '"createdAt"' in snapshot.payload


@pytest.mark.asyncio
async def test_execute_noop_does_not_save(test_db, make_service):
    """Test: операция без изменений не создаёт новую ревизию."""
    service = make_service()
    await service.execute(lambda store: store.add_task({"title": "T", "date": D}))

    result = await service.execute(lambda store: store.toggle_task("ghost"))

    assert result is None
    snapshot = await SnapshotRepository(test_db).get_by_key("test-storage")
    assert snapshot.revision == 1


@pytest.mark.asyncio
async def test_execute_increments_revision(test_db, make_service):
    service = make_service()
    task = await service.execute(lambda store: store.add_task({"title": "T", "date": D}))

    await service.execute(lambda store: store.toggle_task(task.id))
    await service.execute(lambda store: store.toggle_task(task.id))

    snapshot = await SnapshotRepository(test_db).get_by_key("test-storage")
    assert snapshot.revision == 3


@pytest.mark.asyncio
async def test_execute_error_saves_nothing(test_db, make_service):
    """Test: ошибка валидации в операции - снапшот не сохраняется."""
    service = make_service()

    with pytest.raises(ValueError):
        await service.execute(lambda store: store.add_task({"title": "  ", "date": D}))

    assert await SnapshotRepository(test_db).get_by_key("test-storage") is None


@pytest.mark.asyncio
async def test_read_does_not_save(test_db, make_service):
    service = make_service()

    counts = await service.read(lambda store: store.counts())

    assert counts.all_active == 0
    assert await SnapshotRepository(test_db).get_by_key("test-storage") is None


@pytest.mark.asyncio
async def test_unicode_survives_persistence(test_db, make_service):
    """Test: кириллица и иероглифы сохраняются как есть."""
    service = make_service()

    await service.execute(lambda store: store.add_category("工作 / Работа"))

    state = await service.load_state()
    assert "工作 / Работа" in {c.name for c in state.categories}


# ============================================================================
# CONCURRENT WRITES
# ============================================================================


def with_task(service, state, title: str):
    store = TodoStore(state, **service.store_options)
    store.add_task({"title": title, "date": D})
    return store.state


@pytest.mark.asyncio
async def test_load_snapshot_returns_revision(test_db, make_service):
    service = make_service()
    assert (await service.load_snapshot())[1] is None

    await service.execute(lambda store: store.add_task({"title": "T", "date": D}))

    _, revision = await service.load_snapshot()
    assert revision == 1


@pytest.mark.asyncio
async def test_interleaved_writes_do_not_lose_updates(session_factory, make_service):
    """
    Test: два запроса загрузили одну ревизию.

    Первый сохраняет "A", второй сохраняет "B" поверх устаревшей
    ревизии - получает конфликт, а "A" остаётся в документе.
    """
    async with session_factory() as setup:
        await make_service(db=setup).execute(lambda store: store.add_category("Seed"))
        await setup.commit()

    async with session_factory() as session_a, session_factory() as session_b:
        service_a = make_service(db=session_a, id_prefix="a")
        service_b = make_service(db=session_b, id_prefix="b")
        state_a, revision_a = await service_a.load_snapshot()
        state_b, revision_b = await service_b.load_snapshot()
        assert revision_a == revision_b == 1

        await service_a.save(with_task(service_a, state_a, "A"), revision_a)
        await session_a.commit()

        with pytest.raises(ConcurrentModificationError) as exc_info:
            await service_b.save(with_task(service_b, state_b, "B"), revision_b)
        await session_b.rollback()

    assert exc_info.value.expected_revision == 1

    async with session_factory() as check:
        state, revision = await make_service(db=check).load_snapshot()
    assert revision == 2
    assert [t.title for t in state.tasks] == ["A"]


@pytest.mark.asyncio
async def test_interleaved_first_writes_conflict(session_factory, make_service):
    """Test: оба запроса видят пустой ключ, второй INSERT - конфликт, а не перезапись."""
    async with session_factory() as session_a, session_factory() as session_b:
        service_a = make_service(db=session_a, id_prefix="a")
        service_b = make_service(db=session_b, id_prefix="b")
        state_a, revision_a = await service_a.load_snapshot()
        state_b, revision_b = await service_b.load_snapshot()
        assert revision_a is None and revision_b is None

        await service_a.save(with_task(service_a, state_a, "A"), revision_a)
        await session_a.commit()

        with pytest.raises(ConcurrentModificationError):
            await service_b.save(with_task(service_b, state_b, "B"), revision_b)
        await session_b.rollback()

    async with session_factory() as check:
        state = await make_service(db=check).load_state()
    assert [t.title for t in state.tasks] == ["A"]


@pytest.mark.asyncio
async def test_execute_after_foreign_write_sees_it(session_factory, make_service):
    """Test: запрос, загрузивший документ после чужого commit, пишет поверх него."""
    async with session_factory() as session_a:
        await make_service(db=session_a, id_prefix="a").execute(
            lambda store: store.add_task({"title": "A", "date": D})
        )
        await session_a.commit()

    async with session_factory() as session_b:
        await make_service(db=session_b, id_prefix="b").execute(
            lambda store: store.add_task({"title": "B", "date": D})
        )
        await session_b.commit()

    async with session_factory() as check:
        state, revision = await make_service(db=check).load_snapshot()
    assert revision == 2
    assert sorted(t.title for t in state.tasks) == ["A", "B"]
