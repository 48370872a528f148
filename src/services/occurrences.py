"""
Virtual occurrence resolver: toggle, delete and materialize a projected occurrence.

Виртуальное вхождение адресуется парой (source_id, date). Все три действия
превращают его в реальную строку, которая затем блокирует проекцию
источника в этом слоте (см. recurrence.build_blocking_index).
"""

from collections.abc import Mapping
from datetime import date
from typing import Any

from ..core.logging import get_logger
from ..models import StoreState, Task
from .category_tree import CategoryTree
from .recurrence import DEFAULT_MAX_ITERATIONS, project
from .task_lifecycle import editable_fields, normalize_references

logger = get_logger(__name__)


def _recurring_source(state: StoreState, source_id: str) -> Task | None:
    source = state.get_task(source_id)
    if source is None or source.repeat is None:
        logger.info("Recurring source not found", extra={"source_id": source_id})
        return None
    return source


def is_projected_occurrence(
    state: StoreState,
    source: Task,
    occurrence_date: date,
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> bool:
    """
    Показывается ли у ``source`` виртуальное вхождение на ``occurrence_date``.

    Дата раньше источника, дата не на шаге повтора, дата после коллизии
    и источник в удалённой категории - не вхождения.
    """
    if CategoryTree(state.categories).is_chain_deleted(source.category_id):
        return False
    dates = project(
        source, occurrence_date, occurrence_date, state.tasks, max_iterations=max_iterations
    )
    return occurrence_date in dates


def _occurrence_source(
    state: StoreState, source_id: str, occurrence_date: date, max_iterations: int
) -> Task | None:
    source = _recurring_source(state, source_id)
    if source is None:
        return None
    if not is_projected_occurrence(
        state, source, occurrence_date, max_iterations=max_iterations
    ):
        logger.info(
            "Not an occurrence of the series",
            extra={"source_id": source_id, "date": occurrence_date.isoformat()},
        )
        return None
    return source


def find_clone_at(state: StoreState, source: Task, occurrence_date: date) -> Task | None:
    """Active row cloned from ``source`` that occupies the (date, title) slot."""
    return next(
        (
            t
            for t in state.tasks
            if t.date == occurrence_date
            and t.title == source.title
            and t.from_id == source.id
            and not t.is_deleted
        ),
        None,
    )


def _clone(source: Task, occurrence_date: date, *, new_id: str, now: int, **updates: Any) -> Task:
    return source.model_copy(
        update={
            "id": new_id,
            "date": occurrence_date,
            "created_at": now,
            "updated_at": None,
            "from_id": source.id,
            "deleted_at": None,
            **updates,
        }
    )


def toggle_virtual_occurrence(
    state: StoreState,
    source_id: str,
    occurrence_date: date,
    *,
    now: int,
    new_id: str,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> tuple[StoreState, Task | None]:
    """
    Отметить вхождение выполненным (или снять отметку).

    - Реальной строки в слоте ещё нет: клонируем источник на эту дату
      с completed=True. Клон сохраняет repeat и становится новым якорем
      для следующих вхождений.
    - Строка уже есть (предыдущий toggle): переключаем её completed.
      Строка не удаляется при снятии отметки, остаётся невыполненной.
    - Дата не является вхождением серии: no-op, иначе клон стал бы
      якорем второй, параллельной серии.

    Returns:
        (новый снапшот, реальная задача в слоте или None при no-op)
    """
    source = _recurring_source(state, source_id)
    if source is None:
        return state, None

    existing = find_clone_at(state, source, occurrence_date)
    if existing is not None:
        toggled = existing.model_copy(
            update={"completed": not existing.completed, "updated_at": now}
        )
        return state.replace_task(toggled), toggled

    if _occurrence_source(state, source_id, occurrence_date, max_iterations) is None:
        return state, None

    clone = _clone(source, occurrence_date, new_id=new_id, now=now, completed=True)
    logger.info(
        "Virtual occurrence completed",
        extra={"source_id": source_id, "date": occurrence_date.isoformat(), "task_id": new_id},
    )
    return state.model_copy(update={"tasks": (*state.tasks, clone)}), clone


def delete_virtual_occurrence(
    state: StoreState,
    source_id: str,
    occurrence_date: date,
    *,
    now: int,
    new_id: str,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> tuple[StoreState, Task | None]:
    """
    Удалить вхождение: записать "охранную" удалённую строку в слот.

    ВАЖНО: проекция останавливается на любой коллизии, в том числе
    с удалённой строкой. Поэтому удаление одного будущего вхождения
    убирает и ВСЕ вхождения после него.

    Охранная строка без repeat, иначе она сама продолжила бы серию.
    Занятый слот или дата вне серии - no-op.
    """
    source = _occurrence_source(state, source_id, occurrence_date, max_iterations)
    if source is None:
        return state, None

    guard = _clone(
        source, occurrence_date, new_id=new_id, now=now, completed=False, repeat=None, deleted_at=now
    )
    logger.info(
        "Virtual occurrence deleted, series truncated",
        extra={"source_id": source_id, "date": occurrence_date.isoformat()},
    )
    return state.model_copy(update={"tasks": (*state.tasks, guard)}), guard


def materialize_virtual_occurrence(
    state: StoreState,
    source_id: str,
    occurrence_date: date,
    fields: Mapping[str, Any],
    *,
    now: int,
    new_id: str,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> tuple[StoreState, Task | None]:
    """
    Превратить вхождение в независимую реальную задачу с правками.

    Новая задача получает новый id, поля источника с наложенными правками
    и дату вхождения (если правки не меняют дату). Дальше это обычная
    задача, её жизненный цикл - task_lifecycle. Дата вне серии - no-op.

    Raises:
        ValueError: правки невалидны (пустое название и т.п.)
    """
    source = _occurrence_source(state, source_id, occurrence_date, max_iterations)
    if source is None:
        return state, None

    edits = normalize_references(state, editable_fields(fields))
    base = _clone(source, occurrence_date, new_id=new_id, now=now, completed=False)
    task = Task.model_validate({**base.model_dump(), **edits})
    logger.info(
        "Virtual occurrence materialized",
        extra={"source_id": source_id, "date": occurrence_date.isoformat(), "task_id": new_id},
    )
    return state.model_copy(update={"tasks": (*state.tasks, task)}), task
