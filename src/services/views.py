"""
Read model: views, sorting, badge counts and trash browsing.

Всё, что UI показывает, собирается здесь из снапшота: реальные задачи,
отфильтрованные по мягкому удалению, плюс виртуальные вхождения из проекции.
"""

import enum
from datetime import date, timedelta
from typing import Annotated, Any, Union

from pydantic import BaseModel, Discriminator, Field
from pydantic import Tag as UnionTag

from ..models import Category, StoreState, Task, VirtualOccurrence
from .category_tree import CategoryTree
from .recurrence import DEFAULT_MAX_ITERATIONS, project_many


def _item_kind(value: Any) -> str:
    if isinstance(value, dict):
        return "virtual" if value.get("isVirtual", value.get("is_virtual")) else "real"
    return "virtual" if getattr(value, "is_virtual", False) else "real"


# Элемент списка: реальная задача или виртуальное вхождение (по флагу isVirtual)
ViewItem = Annotated[
    Union[
        Annotated[Task, UnionTag("real")],
        Annotated[VirtualOccurrence, UnionTag("virtual")],
    ],
    Discriminator(_item_kind),
]


class ViewMode(str, enum.Enum):
    """Режим основного списка."""

    DATE = "date"
    CATEGORY = "category"
    ALL = "all"
    UPCOMING = "upcoming"
    TRASH = "trash"


class SortBy(str, enum.Enum):
    DATE = "date"
    TITLE = "title"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class ViewCounts(BaseModel):
    """Счётчики для бейджей в сайдбаре."""

    all_active: int
    today: int
    upcoming: int
    by_category: dict[str, int] = Field(default_factory=dict)


class TrashListing(BaseModel):
    """
    Содержимое корзины верхнего уровня.

    categories - категории с собственным deleted_at;
    tasks - удалённые задачи, которые не лежат внутри удалённой категории
    (те видны при раскрытии категории, см. trash_contents).
    """

    categories: list[Category]
    tasks: list[Task]


class TrashContents(BaseModel):
    """Раскрытая категория в корзине: дочерние категории и все её задачи."""

    category: Category
    categories: list[Category]
    tasks: list[Task]


def visible_tasks(state: StoreState) -> list[Task]:
    """Real tasks that are not trashed and not inside a chain-deleted category."""
    tree = CategoryTree(state.categories)
    return [
        t for t in state.tasks if not t.is_deleted and not tree.is_chain_deleted(t.category_id)
    ]


def project_occurrences(
    state: StoreState,
    window_start: date,
    window_end: date,
    *,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[VirtualOccurrence]:
    """
    Виртуальные вхождения всех повторяющихся задач в окне.

    Источником считается любая задача с repeat, в том числе удалённая
    в корзину: удаление первого вхождения серии не отменяет остальные.
    Источники в удалённых (по цепочке) категориях не проецируются.
    """
    tree = CategoryTree(state.categories)
    sources = [
        t for t in state.tasks if t.repeat is not None and not tree.is_chain_deleted(t.category_id)
    ]
    pairs = project_many(
        sources, window_start, window_end, state.tasks, max_iterations=max_iterations
    )
    return [VirtualOccurrence.from_source(source, day) for source, day in pairs]


def _sort_key(item: ViewItem, sort_by: SortBy):
    if sort_by == SortBy.TITLE:
        return item.title.casefold()
    if sort_by == SortBy.CREATED_AT:
        return item.created_at
    if sort_by == SortBy.UPDATED_AT:
        return item.updated_at or item.created_at
    return (item.date, item.time or "")


def sort_items(
    items: list[ViewItem],
    sort_by: SortBy = SortBy.DATE,
    direction: SortDirection = SortDirection.ASC,
) -> list[ViewItem]:
    """Невыполненные всегда выше выполненных, внутри групп - по sort_by."""
    reverse = direction == SortDirection.DESC
    ordered = sorted(items, key=lambda item: _sort_key(item, sort_by), reverse=reverse)
    # sorted() стабилен: второй проход по completed сохраняет порядок внутри групп
    return sorted(ordered, key=lambda item: item.completed)


def tasks_for_view(
    state: StoreState,
    mode: ViewMode,
    *,
    today: date,
    selected_date: date | None = None,
    category_id: str | None = None,
    upcoming_days: int = 7,
    sort_by: SortBy = SortBy.DATE,
    direction: SortDirection = SortDirection.ASC,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> list[ViewItem]:
    """
    Собрать список для режима ``mode``.

    - date: реальные задачи на дату + виртуальные вхождения на эту дату
    - category: задачи категории и всех её потомков
    - all: все видимые задачи
    - upcoming: сегодня .. сегодня + upcoming_days, с виртуальными вхождениями
    - trash: пусто (корзина просматривается через trash_listing)
    """
    if mode == ViewMode.TRASH:
        return []

    items: list[ViewItem] = []
    visible = visible_tasks(state)

    if mode == ViewMode.DATE:
        day = selected_date or today
        items = [t for t in visible if t.date == day]
        items += project_occurrences(state, day, day, max_iterations=max_iterations)
    elif mode == ViewMode.CATEGORY:
        if category_id is not None:
            tree = CategoryTree(state.categories)
            ids = tree.descendant_ids(category_id) | {category_id}
            items = [t for t in visible if t.category_id in ids]
    elif mode == ViewMode.UPCOMING:
        end = today + timedelta(days=upcoming_days)
        items = [t for t in visible if today <= t.date <= end]
        items += project_occurrences(state, today, end, max_iterations=max_iterations)
    else:
        items = list(visible)

    return sort_items(items, sort_by, direction)


def view_counts(
    state: StoreState,
    *,
    today: date,
    upcoming_days: int = 7,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> ViewCounts:
    """Badge counts; upcoming includes virtual occurrences, like the upcoming list."""
    tree = CategoryTree(state.categories)
    active = [t for t in visible_tasks(state) if not t.completed]
    end = today + timedelta(days=upcoming_days)
    upcoming_virtual = project_occurrences(state, today, end, max_iterations=max_iterations)
    return ViewCounts(
        all_active=len(active),
        today=sum(1 for t in active if t.date == today),
        upcoming=sum(1 for t in active if today <= t.date <= end) + len(upcoming_virtual),
        by_category={
            c.id: tree.count_active_todos(c.id, state.tasks)
            for c in state.categories
            if not tree.is_chain_deleted(c.id)
        },
    )


def trash_listing(state: StoreState) -> TrashListing:
    deleted_ids = {c.id for c in state.categories if c.is_deleted}
    return TrashListing(
        categories=[c for c in state.categories if c.is_deleted],
        tasks=[t for t in state.tasks if t.is_deleted and t.category_id not in deleted_ids],
    )


def trash_contents(state: StoreState, category_id: str) -> TrashContents | None:
    """Contents of a category while browsing the trash (deleted or not)."""
    tree = CategoryTree(state.categories)
    category = tree.get(category_id)
    if category is None:
        return None
    return TrashContents(
        category=category,
        categories=tree.children_of(category_id),
        tasks=[t for t in state.tasks if t.category_id == category_id],
    )
