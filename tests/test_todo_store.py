"""
Тесты агрегата TodoStore: подписчики, no-op коммиты, теги, импорт.
"""

from datetime import date, timedelta

import pytest

from src.services import (
    CycleRejectedError,
    InvalidImportPayloadError,
    SortBy,
    TodoStore,
    ViewMode,
    default_state,
)
from src.services.tag import TAG_PALETTE

D = date(2025, 1, 15)


# ============================================================================
# SNAPSHOT / LISTENERS
# ============================================================================


def test_default_state_seeds_two_categories():
    """Test: пустое хранилище получает Work и Personal."""
    state = default_state()

    assert [(c.id, c.name) for c in state.categories] == [
        ("default-1", "Work"),
        ("default-2", "Personal"),
    ]
    assert state.tasks == ()
    assert default_state(seed_categories=False).categories == ()


def test_listener_notified_once_per_change(store):
    """Test: подписчик получает новый снапшот после каждой мутации."""
    seen = []
    store.subscribe(seen.append)

    task = store.add_task({"title": "T", "date": D})
    store.toggle_task(task.id)

    assert len(seen) == 2
    assert seen[-1] is store.state
    assert seen[-1].get_task(task.id).completed is True


def test_noop_operations_do_not_notify(store):
    """Test: операции над неизвестными id и идемпотентные операции - без уведомлений."""
    task = store.add_task({"title": "T", "date": D})
    store.move_task_to_trash(task.id)

    seen = []
    store.subscribe(seen.append)

    store.move_task_to_trash(task.id)
    store.toggle_task("ghost")
    store.restore_category("ghost")
    assert store.permanently_delete_task("ghost") is False

    assert seen == []


def test_unsubscribe(store):
    seen = []
    unsubscribe = store.subscribe(seen.append)
    unsubscribe()
    unsubscribe()  # повторная отписка безопасна

    store.add_task({"title": "T", "date": D})

    assert seen == []


def test_listener_error_propagates(store):
    """Test: ошибка подписчика (persistence) не проглатывается."""

    def broken(_state):
        raise RuntimeError("disk full")

    store.subscribe(broken)

    with pytest.raises(RuntimeError, match="disk full"):
        store.add_task({"title": "T", "date": D})


def test_clock_and_ids_are_injected(store, clock):
    task = store.add_task({"title": "T", "date": D})

    assert task.id == "id-1"
    assert task.created_at == clock.now


# ============================================================================
# TASK FLOW
# ============================================================================


def test_task_flow_through_store(store):
    """Test: создание -> корзина -> восстановление -> удаление навсегда."""
    task = store.add_task({"title": "T", "date": D})

    assert store.move_task_to_trash(task.id).deleted_at is not None
    assert store.restore_task(task.id).deleted_at is None
    assert store.permanently_delete_task(task.id) is True
    assert store.get_task(task.id) is None


def test_virtual_occurrence_flow(store):
    """Test: toggle и delete вхождений через стор."""
    source = store.add_task(
        {"title": "Gym", "date": D, "repeat": {"type": "daily", "interval": 1}}
    )

    clone = store.toggle_virtual_occurrence(source.id, D + timedelta(days=2))
    assert clone.completed is True

    # Источник теперь проецируется только до клона, D+5 - вхождение клона
    assert store.delete_virtual_occurrence(source.id, D + timedelta(days=5)) is None
    assert store.delete_virtual_occurrence(clone.id, D + timedelta(days=5)) is not None
    dates = {o.date for o in store.project_occurrences(D, D + timedelta(days=10))}

    # Клон на D+2 - новый якорь, D+5 и всё после удалено
    assert dates == {D + timedelta(days=1), D + timedelta(days=3), D + timedelta(days=4)}


def test_materialize_through_store(store):
    source = store.add_task(
        {"title": "Gym", "date": D, "repeat": {"type": "daily", "interval": 1}}
    )

    task = store.materialize_virtual_occurrence(
        source.id, D + timedelta(days=1), {"description": "legs day"}
    )

    assert task.description == "legs day"
    assert store.get_task(task.id) == task


def test_move_category_cycle_leaves_state_untouched(store):
    parent = store.add_category("Parent")
    child = store.add_category("Child", parent.id)
    before = store.state

    with pytest.raises(CycleRejectedError):
        store.move_category(parent.id, child.id)

    assert store.state is before


def test_count_active_todos_and_counts(store):
    work = store.add_category("Work")
    store.add_task({"title": "A", "date": D, "category_id": work.id})
    store.add_task({"title": "B", "date": D + timedelta(days=3)})

    assert store.count_active_todos(work.id) == 1
    counts = store.counts()
    assert counts.all_active == 2
    assert counts.today == 1
    assert counts.upcoming == 2


def test_tasks_for_view_uses_injected_today(store):
    store.add_task({"title": "b", "date": D})
    store.add_task({"title": "a", "date": D})
    store.add_task({"title": "later", "date": D + timedelta(days=1)})

    items = store.tasks_for_view(ViewMode.DATE, sort_by=SortBy.TITLE)

    assert [i.title for i in items] == ["a", "b"]


# ============================================================================
# TAGS
# ============================================================================


def test_add_tag_is_get_or_create(store):
    """Test: имя тега уникально без учёта регистра."""
    first = store.add_tag("Urgent")
    again = store.add_tag("  urgent ")

    assert again == first
    assert len(store.state.tags) == 1


def test_add_tag_palette_and_explicit_color(store):
    first = store.add_tag("one")
    second = store.add_tag("two", "#123ABC")

    assert first.color == TAG_PALETTE[0]
    assert second.color == "#123ABC"


def test_add_tag_validation(store):
    with pytest.raises(ValueError, match="cannot be empty"):
        store.add_tag("  ")
    with pytest.raises(ValueError, match="Invalid color format"):
        store.add_tag("x", "red")


def test_update_tag_rejects_duplicate_name(store):
    store.add_tag("one")
    two = store.add_tag("two")

    with pytest.raises(ValueError, match="already exists"):
        store.update_tag(two.id, name="ONE")

    updated = store.update_tag(two.id, name="Two", color="#000000")
    assert (updated.name, updated.color) == ("Two", "#000000")


def test_delete_tag_scrubs_task_references(store):
    """Test: удаление тега убирает его id из всех задач."""
    keep = store.add_tag("keep")
    drop = store.add_tag("drop")
    task = store.add_task({"title": "T", "date": D, "tag_ids": [keep.id, drop.id]})

    assert store.delete_tag(drop.id) is True

    assert store.get_task(task.id).tag_ids == (keep.id,)
    assert store.delete_tag(drop.id) is False


# ============================================================================
# BACKUP
# ============================================================================


def test_import_replaces_everything(store):
    store.add_task({"title": "old", "date": D})
    exported = TodoStore(default_state()).export_payload()

    state = store.import_payload(exported)

    assert state.tasks == ()
    assert [c.id for c in state.categories] == ["default-1", "default-2"]


def test_failed_import_leaves_state_untouched(store):
    """Test: невалидный payload - снапшот и подписчики не тронуты."""
    store.add_task({"title": "keep", "date": D})
    before = store.state
    seen = []
    store.subscribe(seen.append)

    with pytest.raises(InvalidImportPayloadError):
        store.import_payload({"todos": "nope"})

    assert store.state is before
    assert seen == []
