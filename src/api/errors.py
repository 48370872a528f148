"""
Обработчики ошибок (Exception Handlers) для API.

Все ошибки отдаются в едином формате:
    {"error": {"code": ..., "message": ..., "details": [...]}}

Соответствие ошибок ядра HTTP статусам:
- CycleRejectedError         -> 409 CYCLE_REJECTED
- InvalidImportPayloadError  -> 400 INVALID_IMPORT_PAYLOAD
- ConcurrentModificationError -> 409 CONCURRENT_MODIFICATION
- прочие ValueError          -> 400 VALIDATION_ERROR
- ошибки валидации запроса   -> 422 VALIDATION_ERROR
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.logging import get_logger
from ..services import (
    ConcurrentModificationError,
    CycleRejectedError,
    InvalidImportPayloadError,
)
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = get_logger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class APIError(Exception):
    """
    Базовый класс для всех API ошибок.

    Использование:
        raise APIError(code="NOT_FOUND", message="Задача не найдена", status_code=404)
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: list[dict] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NotFoundError(APIError):
    """
    Ресурс не найден (404).

    Использование:
        raise NotFoundError("Task", task_id)
        # Сообщение: "Task с id=... не найден"
    """

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} с id={resource_id} не найден",
            status_code=status.HTTP_404_NOT_FOUND,
        )


def _error_response(
    status_code: int, code: str, message: str, details: list[ErrorDetail] | None = None
) -> JSONResponse:
    body = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=body.model_dump())


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    logger.warning("API error", extra={"code": exc.code, "error": exc.message})
    details = None
    if exc.details:
        details = [ErrorDetail(field=d["field"], message=d["message"]) for d in exc.details]
    return _error_response(exc.status_code, exc.code, exc.message, details)


async def cycle_rejected_handler(request: Request, exc: CycleRejectedError) -> JSONResponse:
    logger.warning(
        "Category move rejected",
        extra={"category_id": exc.category_id, "parent_id": exc.target_parent_id},
    )
    return _error_response(
        status.HTTP_409_CONFLICT,
        "CYCLE_REJECTED",
        str(exc),
        [ErrorDetail(field="parentId", message="Target is inside the category subtree")],
    )


async def invalid_import_handler(
    request: Request, exc: InvalidImportPayloadError
) -> JSONResponse:
    logger.warning("Import rejected", extra={"error": str(exc)})
    return _error_response(status.HTTP_400_BAD_REQUEST, "INVALID_IMPORT_PAYLOAD", str(exc))


async def concurrent_modification_handler(
    request: Request, exc: ConcurrentModificationError
) -> JSONResponse:
    logger.warning(
        "Concurrent write rejected",
        extra={"key": exc.storage_key, "revision": exc.expected_revision},
    )
    return _error_response(status.HTTP_409_CONFLICT, "CONCURRENT_MODIFICATION", str(exc))


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Ошибки бизнес-валидации ядра (пустое название, неверный цвет, ...)."""
    logger.warning("Validation failed", extra={"error": str(exc)})
    return _error_response(status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR", str(exc))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Обработчик для ошибок валидации Pydantic (422).

    Преобразуем формат Pydantic
        {"detail": [{"loc": ["body", "title"], "msg": "..."}]}
    в наш
        {"error": {"code": "VALIDATION_ERROR", "details": [{"field": "title", ...}]}}
    """
    details = []
    for error in exc.errors():
        # loc - путь к полю, например ["body", "title"] или ["query", "start"]
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"
        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])
        details.append(
            ErrorDetail(field=str(field_name), message=error.get("msg", "Ошибка валидации"))
        )

    logger.warning("Request validation failed", extra={"errors": len(details)})
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Ошибка валидации входных данных",
        details,
    )


def register_error_handlers(app: FastAPI) -> None:
    """
    Регистрирует все error handlers в приложении FastAPI.

    Starlette выбирает обработчик по MRO исключения, поэтому
    CycleRejectedError, InvalidImportPayloadError и
    ConcurrentModificationError не попадают
    в общий обработчик ValueError.
    """
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(CycleRejectedError, cycle_rejected_handler)
    app.add_exception_handler(InvalidImportPayloadError, invalid_import_handler)
    app.add_exception_handler(ConcurrentModificationError, concurrent_modification_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    logger.info("Error handlers registered")
