"""Business errors raised by the store engine."""


class StoreError(ValueError):
    """
    Базовая ошибка ядра.

    Наследуется от ValueError, как и остальные ошибки валидации сервисов:
    API слой превращает ValueError в 400.
    """


class CycleRejectedError(StoreError):
    """Попытка сделать категорию потомком самой себя (через её поддерево)."""

    def __init__(self, category_id: str, target_parent_id: str):
        self.category_id = category_id
        self.target_parent_id = target_parent_id
        super().__init__(
            f"Cannot move category {category_id} under its own descendant {target_parent_id}"
        )


class InvalidImportPayloadError(StoreError):
    """Файл импорта не содержит обязательных массивов или записи не валидны."""


class ConcurrentModificationError(StoreError):
    """Документ изменён другим запросом между загрузкой и сохранением."""

    def __init__(self, storage_key: str, expected_revision: int | None):
        self.storage_key = storage_key
        self.expected_revision = expected_revision
        super().__init__(
            f"Store '{storage_key}' was modified concurrently "
            f"(expected revision {expected_revision}), retry the request"
        )
