"""
Recurrence projection: recurring task definition + date window -> virtual dates.

Чистые функции без кэша: проекция пересчитывается на каждое чтение окна,
поэтому цикл ограничен потолком итераций.
"""

from collections.abc import Iterable
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from ..core.logging import get_logger
from ..models import DailyRepeat, MonthlyRepeat, Task

logger = get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 1000

# (date, title) -> удалена ли реальная задача в этом слоте
BlockingIndex = dict[tuple[date, str], bool]


def build_blocking_index(tasks: Iterable[Task]) -> BlockingIndex:
    """
    Построить индекс блокировок по всем реальным задачам (включая удалённые).

    Ключ - (дата, название), а не id: реальная задача с тем же названием
    на эту дату занимает виртуальный слот. Переименование задачи
    ломает это сопоставление; поведение сохранено для совместимости
    с существующими данными.
    """
    return {(task.date, task.title): task.is_deleted for task in tasks}


def next_occurrence(current: date, repeat: DailyRepeat | MonthlyRepeat) -> date:
    """
    Следующая дата повтора.

    Daily: + interval дней.
    Monthly: + 1 календарный месяц через relativedelta. Переполнение дня
    прижимается к концу месяца (31 янв -> 28/29 фев), и курсор дальше
    идёт уже от прижатой даты (28 фев -> 28 мар).

    Raises:
        OverflowError, ValueError: дата вышла за date.max
    """
    if isinstance(repeat, DailyRepeat):
        return current + timedelta(days=repeat.interval)
    return current + relativedelta(months=1)


def project(
    source: Task,
    window_start: date,
    window_end: date,
    all_tasks: Iterable[Task] = (),
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    blocking_index: BlockingIndex | None = None,
) -> set[date]:
    """
    Даты внутри [window_start, window_end], на которых показывается
    виртуальное вхождение ``source``.

    Args:
        source: задача-источник (с repeat)
        window_start: начало окна (включительно)
        window_end: конец окна (включительно)
        all_tasks: все реальные задачи для индекса блокировок
        max_iterations: потолок итераций; при достижении проекция
            молча обрезается
        blocking_index: готовый индекс (когда проецируется много источников)

    Returns:
        Множество дат. Дата самого источника никогда не входит:
        это реальная задача, а не виртуальная.

    Правила остановки:
        1. Слот (дата, название) занят реальной задачей (активной ИЛИ удалённой)
           - дальше не проецируем вообще.
        2. Курсор вышел за window_end.
    """
    if source.repeat is None:
        return set()

    index = blocking_index if blocking_index is not None else build_blocking_index(all_tasks)
    result: set[date] = set()
    cursor = source.date

    for _ in range(max_iterations):
        try:
            cursor = next_occurrence(cursor, source.repeat)
        except (OverflowError, ValueError):
            # вышли за date.max
            break
        if (cursor, source.title) in index:
            break
        if cursor > window_end:
            break
        if cursor >= window_start:
            result.add(cursor)
    else:
        logger.debug(
            "Recurrence projection truncated at iteration ceiling",
            extra={"source_id": source.id, "max_iterations": max_iterations},
        )

    return result


def project_many(
    sources: Iterable[Task],
    window_start: date,
    window_end: date,
    all_tasks: Iterable[Task],
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[tuple[Task, date]]:
    """Project several sources against one shared blocking index, sorted by date."""
    index = build_blocking_index(all_tasks)
    pairs: list[tuple[Task, date]] = []
    for source in sources:
        for occurrence_date in project(
            source,
            window_start,
            window_end,
            max_iterations=max_iterations,
            blocking_index=index,
        ):
            pairs.append((source, occurrence_date))
    pairs.sort(key=lambda pair: (pair[1], pair[0].title))
    return pairs
