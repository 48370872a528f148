"""
Category hierarchy: arena + children index, cascading soft-delete and smart restore.

Категории хранятся плоским кортежем, связь только через parent_id.
CategoryTree строит по снапшоту индекс id -> категория и id -> дети,
поэтому проверка цикла и "удалённости по цепочке" - это обход предков по id.
"""

from collections import defaultdict
from collections.abc import Iterable

from ..core.logging import get_logger
from ..models import Category, StoreState, Task
from .exceptions import CycleRejectedError

logger = get_logger(__name__)


class CategoryTree:
    """
    Read-only view over a snapshot of categories.

    Пример:
        tree = CategoryTree(state.categories)
        tree.is_chain_deleted("cat-2")      # True, если удалён он или предок
        tree.descendant_ids("cat-1")        # все потомки (id)
    """

    def __init__(self, categories: Iterable[Category]):
        self._by_id: dict[str, Category] = {}
        self._children: dict[str | None, list[Category]] = defaultdict(list)
        for category in categories:
            self._by_id[category.id] = category
        for category in self._by_id.values():
            # Висячий parent_id (после импорта) - считаем категорию корневой
            parent_id = category.parent_id if category.parent_id in self._by_id else None
            self._children[parent_id].append(category)

    def get(self, category_id: str | None) -> Category | None:
        if category_id is None:
            return None
        return self._by_id.get(category_id)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def children_of(self, category_id: str | None) -> list[Category]:
        """Direct children (``None`` = root level), deleted ones included."""
        return list(self._children.get(category_id, ()))

    def roots(self) -> list[Category]:
        """Root categories that are not in the trash."""
        return [c for c in self.children_of(None) if not c.is_deleted]

    def ancestors(self, category_id: str) -> list[Category]:
        """
        Предки от ближайшего к корню.

        Обход ограничен visited-множеством: импортированный документ
        может содержать цикл, движок такие не создаёт.
        """
        result: list[Category] = []
        visited = {category_id}
        current = self.get(category_id)
        while current is not None and current.parent_id is not None:
            if current.parent_id in visited:
                break
            visited.add(current.parent_id)
            parent = self.get(current.parent_id)
            if parent is None:
                break
            result.append(parent)
            current = parent
        return result

    def descendant_ids(self, category_id: str) -> set[str]:
        """All descendants of the category (not including itself)."""
        result: set[str] = set()
        stack = [category_id]
        while stack:
            for child in self._children.get(stack.pop(), ()):
                if child.id not in result and child.id != category_id:
                    result.add(child.id)
                    stack.append(child.id)
        return result

    def is_descendant(self, candidate_id: str, ancestor_id: str) -> bool:
        return any(a.id == ancestor_id for a in self.ancestors(candidate_id))

    def is_chain_deleted(self, category_id: str | None) -> bool:
        """
        Удалена ли категория (сама или любой её предок).

        Неизвестный id - не удалена: задача с висячей ссылкой остаётся видимой.
        """
        category = self.get(category_id)
        if category is None:
            return False
        if category.is_deleted:
            return True
        return any(a.is_deleted for a in self.ancestors(category.id))

    def is_alive(self, category_id: str | None) -> bool:
        """Category exists and is visible in the normal tree."""
        return category_id in self and not self.is_chain_deleted(category_id)

    def count_active_todos(self, category_id: str, tasks: Iterable[Task]) -> int:
        """
        Количество активных задач для бейджа категории.

        Считает невыполненные и неудалённые задачи в самой категории
        и во всех неудалённых потомках. Поддерево удалённого потомка
        не учитывается.
        """
        active_by_category: dict[str, int] = defaultdict(int)
        for task in tasks:
            if task.category_id and not task.completed and not task.is_deleted:
                active_by_category[task.category_id] += 1

        total = 0
        visited: set[str] = set()
        stack = [category_id]
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            total += active_by_category.get(current, 0)
            stack.extend(c.id for c in self._children.get(current, ()) if not c.is_deleted)
        return total


# ============================================================================
# MUTATIONS (StoreState -> StoreState)
# ============================================================================


def create_category(
    state: StoreState, name: str, parent_id: str | None, *, new_id: str
) -> tuple[StoreState, Category]:
    """
    Создать категорию.

    Raises:
        ValueError: пустое название

    Неизвестный parent_id не сохраняется (категория создаётся в корне),
    чтобы движок никогда не создавал висячих ссылок.
    """
    if not name or not name.strip():
        raise ValueError("Category name cannot be empty")

    tree = CategoryTree(state.categories)
    if parent_id is not None and parent_id not in tree:
        logger.info("Parent category not found, creating at root", extra={"parent_id": parent_id})
        parent_id = None

    category = Category(id=new_id, name=name.strip(), parent_id=parent_id)
    return state.model_copy(update={"categories": (*state.categories, category)}), category


def rename_category(state: StoreState, category_id: str, name: str) -> StoreState:
    if not name or not name.strip():
        raise ValueError("Category name cannot be empty")
    category = state.get_category(category_id)
    if category is None:
        logger.info("Category not found", extra={"category_id": category_id})
        return state
    if category.name == name.strip():
        return state
    return state.replace_category(category.model_copy(update={"name": name.strip()}))


def move_category_to_trash(state: StoreState, category_id: str, *, now: int) -> StoreState:
    """
    Мягко удалить категорию: deleted_at ставится только ей.

    Потомки и их задачи становятся невидимыми через is_chain_deleted,
    без записи в каждого потомка.
    """
    category = state.get_category(category_id)
    if category is None:
        logger.info("Category not found", extra={"category_id": category_id})
        return state
    if category.is_deleted:
        return state
    return state.replace_category(category.model_copy(update={"deleted_at": now}))


def move_category(state: StoreState, category_id: str, new_parent_id: str | None) -> StoreState:
    """
    Переместить категорию под другого родителя (None = в корень).

    Raises:
        CycleRejectedError: новый родитель находится в поддереве категории

    Перенос в саму себя и неизвестные id - no-op.
    """
    if category_id == new_parent_id:
        return state

    tree = CategoryTree(state.categories)
    category = tree.get(category_id)
    if category is None:
        logger.info("Category not found", extra={"category_id": category_id})
        return state

    if new_parent_id is not None:
        if new_parent_id not in tree:
            logger.info("Target category not found", extra={"category_id": new_parent_id})
            return state
        if tree.is_descendant(new_parent_id, category_id):
            raise CycleRejectedError(category_id, new_parent_id)

    if category.parent_id == new_parent_id:
        return state
    return state.replace_category(category.model_copy(update={"parent_id": new_parent_id}))


def permanently_delete_category(state: StoreState, category_id: str) -> StoreState:
    """
    Удалить категорию навсегда вместе со всем поддеревом.

    Каскад: удаляются все категории-потомки и все задачи,
    у которых category_id попадает в удалённое множество.
    """
    tree = CategoryTree(state.categories)
    if category_id not in tree:
        logger.info("Category not found", extra={"category_id": category_id})
        return state

    removed = tree.descendant_ids(category_id) | {category_id}
    tasks = tuple(t for t in state.tasks if t.category_id not in removed)
    logger.info(
        "Category subtree purged",
        extra={
            "category_id": category_id,
            "categories_removed": len(removed),
            "tasks_removed": len(state.tasks) - len(tasks),
        },
    )
    return state.model_copy(
        update={
            "categories": tuple(c for c in state.categories if c.id not in removed),
            "tasks": tasks,
        }
    )


def restore_category(state: StoreState, category_id: str) -> StoreState:
    """
    Умное восстановление категории.

    Снимает deleted_at. Если родитель отсутствует или сам удалён
    (в том числе по цепочке), категория переносится в корень, иначе
    она осталась бы невидимой под удалённым предком.
    """
    tree = CategoryTree(state.categories)
    category = tree.get(category_id)
    if category is None:
        logger.info("Category not found", extra={"category_id": category_id})
        return state
    if not tree.is_chain_deleted(category_id):
        return state

    updates: dict = {"deleted_at": None}
    if category.parent_id is not None and not tree.is_alive(category.parent_id):
        updates["parent_id"] = None
    return state.replace_category(category.model_copy(update=updates))
