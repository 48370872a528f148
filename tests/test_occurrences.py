"""
Тесты для виртуальных вхождений: toggle / delete / materialize.

Главные свойства:
- toggle вхождения D+2 делает его реальной выполненной задачей,
  D+1 остаётся виртуальным
- удаление вхождения D+3 убирает ВСЕ вхождения после него
- materialize создаёт независимую задачу с правками
- дата, которая не является вхождением серии, не трогает документ
"""

from datetime import date, timedelta

from src.models import Category, StoreState, parse_virtual_id, virtual_id
from src.services.occurrences import (
    delete_virtual_occurrence,
    is_projected_occurrence,
    materialize_virtual_occurrence,
    toggle_virtual_occurrence,
)
from src.services.views import project_occurrences

D = date(2025, 1, 1)
WINDOW_END = D + timedelta(days=9)


def _recurring_state(make_task):
    source = make_task("Gym", D, repeat={"type": "daily", "interval": 1}, time="07:30")
    return StoreState(tasks=(source,)), source


def _virtual_dates(state):
    return {o.date for o in project_occurrences(state, D, WINDOW_END)}


# ============================================================================
# VIRTUAL ID
# ============================================================================


def test_virtual_id_round_trip_with_dashed_source_id():
    """Test: id источника с дефисами (UUID) разбирается обратно."""
    source_id = "3f2c1a9e-8b7d-4c6e-9f1a-2b3c4d5e6f70"

    value = virtual_id(source_id, date(2025, 3, 9))

    assert value == f"virtual-{source_id}-2025-03-09"
    assert parse_virtual_id(value) == (source_id, date(2025, 3, 9))


def test_parse_virtual_id_rejects_real_ids():
    """Test: обычный id и битая дата -> None."""
    assert parse_virtual_id("3f2c1a9e") is None
    assert parse_virtual_id("virtual-abc-2025-13-40") is None
    assert parse_virtual_id("virtual--2025-01-01") is None


# ============================================================================
# TOGGLE
# ============================================================================


def test_toggle_virtual_creates_completed_clone(make_task):
    """Test: первый toggle клонирует источник на дату с completed=True."""
    state, source = _recurring_state(make_task)
    day = D + timedelta(days=2)

    state, clone = toggle_virtual_occurrence(state, source.id, day, now=5, new_id="clone-1")

    assert clone.id == "clone-1"
    assert clone.date == day
    assert clone.completed is True
    assert clone.from_id == source.id
    assert clone.time == "07:30"
    assert clone.repeat == source.repeat
    assert clone.created_at == 5
    assert len(state.tasks) == 2


def test_toggle_virtual_d2_leaves_d1_virtual(make_task):
    """Test: после toggle D+2 - D+1 виртуальное, D+2 реальное выполненное, серия продолжается."""
    state, source = _recurring_state(make_task)
    day = D + timedelta(days=2)

    state, _ = toggle_virtual_occurrence(state, source.id, day, now=5, new_id="clone-1")

    virtual = _virtual_dates(state)
    assert D + timedelta(days=1) in virtual
    assert day not in virtual
    real = [t for t in state.tasks if t.date == day]
    assert len(real) == 1 and real[0].completed is True
    # Клон стал новым якорем: D+3 .. D+9 по-прежнему виртуальные
    assert {D + timedelta(days=i) for i in range(3, 10)} <= virtual


def test_toggle_virtual_twice_flips_existing_row(make_task):
    """Test: второй toggle не создаёт строку, а снимает отметку."""
    state, source = _recurring_state(make_task)
    day = D + timedelta(days=2)

    state, _ = toggle_virtual_occurrence(state, source.id, day, now=5, new_id="clone-1")
    state, row = toggle_virtual_occurrence(state, source.id, day, now=6, new_id="clone-2")

    assert row.id == "clone-1"
    assert row.completed is False
    assert row.updated_at == 6
    assert len(state.tasks) == 2


def test_toggle_unknown_source_is_noop(make_task):
    """Test: неизвестный источник или задача без repeat - no-op."""
    plain = make_task("Once", D)
    state = StoreState(tasks=(plain,))

    assert toggle_virtual_occurrence(state, "missing", D, now=1, new_id="x") == (state, None)
    assert toggle_virtual_occurrence(state, plain.id, D, now=1, new_id="x") == (state, None)


# ============================================================================
# DELETE
# ============================================================================


def test_delete_virtual_truncates_all_later_occurrences(make_task):
    """Test: удаление D+3 оставляет только {D+1, D+2} на окне [D, D+9]."""
    state, source = _recurring_state(make_task)
    assert len(_virtual_dates(state)) == 9

    state, guard = delete_virtual_occurrence(
        state, source.id, D + timedelta(days=3), now=7, new_id="guard-1"
    )

    assert _virtual_dates(state) == {D + timedelta(days=1), D + timedelta(days=2)}
    assert guard.deleted_at == 7
    assert guard.repeat is None


def test_delete_virtual_on_occupied_slot_is_noop(make_task):
    """Test: слот уже занят реальной строкой - ничего не добавляется."""
    state, source = _recurring_state(make_task)
    day = D + timedelta(days=2)
    state, _ = toggle_virtual_occurrence(state, source.id, day, now=5, new_id="clone-1")

    new_state, guard = delete_virtual_occurrence(state, source.id, day, now=6, new_id="guard-1")

    assert guard is None
    assert new_state is state


# ============================================================================
# MATERIALIZE
# ============================================================================


def test_materialize_creates_independent_task_with_edits(make_task):
    """Test: правки применяются, дата - дата вхождения, задача невыполненная."""
    state, source = _recurring_state(make_task)
    day = D + timedelta(days=4)

    state, task = materialize_virtual_occurrence(
        state, source.id, day, {"title": "Gym (legs)", "time": "18:00"}, now=9, new_id="m-1"
    )

    assert task.id == "m-1"
    assert task.title == "Gym (legs)"
    assert task.time == "18:00"
    assert task.date == day
    assert task.completed is False
    assert task.from_id == source.id
    assert state.get_task("m-1") == task


def test_materialize_respects_date_edit(make_task):
    """Test: если в правках есть дата - используется она."""
    state, source = _recurring_state(make_task)

    state, task = materialize_virtual_occurrence(
        state, source.id, D + timedelta(days=4), {"date": date(2025, 2, 1)}, now=9, new_id="m-1"
    )

    assert task.date == date(2025, 2, 1)


# ============================================================================
# DATES OUTSIDE THE SERIES
# ============================================================================

SOURCE_DAY = date(2025, 1, 10)
JANUARY = (date(2025, 1, 1), date(2025, 1, 20))


def _every_other_day_state(make_task, *extra):
    source = make_task("Gym", SOURCE_DAY, repeat={"type": "daily", "interval": 2})
    return StoreState(tasks=(source, *extra)), source


def _january_dates(state):
    return {o.date for o in project_occurrences(state, *JANUARY)}


def test_every_other_day_projection(make_task):
    state, _ = _every_other_day_state(make_task)

    assert _january_dates(state) == {date(2025, 1, d) for d in (12, 14, 16, 18, 20)}


def test_is_projected_occurrence(make_task):
    """Test: только даты на шаге повтора после источника и до коллизии."""
    blocker = make_task("Gym", date(2025, 1, 16))
    state, source = _every_other_day_state(make_task, blocker)

    assert is_projected_occurrence(state, source, date(2025, 1, 12)) is True
    assert is_projected_occurrence(state, source, date(2025, 1, 14)) is True
    # раньше источника, сам источник, не на шаге, занятый слот, после коллизии
    for day in (5, 10, 11, 16, 18):
        assert is_projected_occurrence(state, source, date(2025, 1, day)) is False


def test_is_projected_occurrence_respects_iteration_ceiling(make_task):
    state, source = _every_other_day_state(make_task)

    assert is_projected_occurrence(state, source, date(2025, 1, 14), max_iterations=2) is True
    assert is_projected_occurrence(state, source, date(2025, 1, 16), max_iterations=2) is False


def test_source_in_deleted_category_has_no_occurrences(make_task):
    """Test: источник в удалённой категории не показывается - и не переключается."""
    source = make_task(
        "Gym", SOURCE_DAY, repeat={"type": "daily", "interval": 2}, category_id="old"
    )
    state = StoreState(
        tasks=(source,), categories=(Category(id="old", name="Old", deleted_at=3),)
    )

    assert is_projected_occurrence(state, source, date(2025, 1, 12)) is False
    assert toggle_virtual_occurrence(
        state, source.id, date(2025, 1, 12), now=5, new_id="c-1"
    ) == (state, None)


def test_toggle_before_source_is_noop(make_task):
    """Test: toggle даты раньше источника не заводит вторую серию."""
    state, source = _every_other_day_state(make_task)

    new_state, task = toggle_virtual_occurrence(
        state, source.id, date(2025, 1, 5), now=5, new_id="c-1"
    )

    assert task is None
    assert new_state is state
    assert _january_dates(new_state) == {date(2025, 1, d) for d in (12, 14, 16, 18, 20)}


def test_toggle_off_interval_date_is_noop(make_task):
    """Test: 11-е не на шаге повтора (каждые 2 дня от 10-го) - no-op."""
    state, source = _every_other_day_state(make_task)

    new_state, task = toggle_virtual_occurrence(
        state, source.id, date(2025, 1, 11), now=5, new_id="c-1"
    )

    assert task is None
    assert new_state is state
    assert len(new_state.tasks) == 1


def test_toggle_source_own_date_is_noop(make_task):
    state, source = _every_other_day_state(make_task)

    assert toggle_virtual_occurrence(
        state, source.id, SOURCE_DAY, now=5, new_id="c-1"
    ) == (state, None)


def test_toggle_past_collision_is_noop(make_task):
    """Test: обычная задача "Gym" на 14-е обрывает серию, 16-е уже не вхождение."""
    blocker = make_task("Gym", date(2025, 1, 14))
    state, source = _every_other_day_state(make_task, blocker)
    assert _january_dates(state) == {date(2025, 1, 12)}

    for day in (14, 16):
        new_state, task = toggle_virtual_occurrence(
            state, source.id, date(2025, 1, day), now=5, new_id="c-1"
        )
        assert task is None
        assert new_state is state


def test_retoggle_after_clone_still_flips_it(make_task):
    """Test: слот клона больше не проецируется, но повторный toggle его находит."""
    state, source = _every_other_day_state(make_task)
    day = date(2025, 1, 14)

    state, clone = toggle_virtual_occurrence(state, source.id, day, now=5, new_id="c-1")
    assert is_projected_occurrence(state, source, day) is False

    state, row = toggle_virtual_occurrence(state, source.id, day, now=6, new_id="c-2")

    assert row.id == clone.id
    assert row.completed is False
    assert len(state.tasks) == 2


def test_delete_off_interval_date_is_noop(make_task):
    """Test: удаление 11-го не обрывает серию."""
    state, source = _every_other_day_state(make_task)

    new_state, guard = delete_virtual_occurrence(
        state, source.id, date(2025, 1, 11), now=5, new_id="g-1"
    )

    assert guard is None
    assert new_state is state
    assert _january_dates(new_state) == {date(2025, 1, d) for d in (12, 14, 16, 18, 20)}


def test_materialize_outside_series_is_noop(make_task):
    """Test: materialize даты до источника или после коллизии - no-op."""
    blocker = make_task("Gym", date(2025, 1, 16))
    state, source = _every_other_day_state(make_task, blocker)

    for day in (5, 11, 18):
        new_state, task = materialize_virtual_occurrence(
            state, source.id, date(2025, 1, day), {"title": "Gym (legs)"}, now=5, new_id="m-1"
        )
        assert task is None
        assert new_state is state
