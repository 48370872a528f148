"""API layer - FastAPI endpoints."""

from .backup import router as backup_router
from .categories import router as categories_router
from .occurrences import router as occurrences_router
from .tags import router as tags_router
from .tasks import router as tasks_router
from .views import router as views_router

__all__ = [
    "tasks_router",
    "occurrences_router",
    "categories_router",
    "tags_router",
    "views_router",
    "backup_router",
]
