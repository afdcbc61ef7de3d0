"""
Domain errors raised by the service layer.

Services never raise HTTPException; the API layer maps these to responses
through `register_exception_handlers`.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND

    @classmethod
    def for_entity(cls, entity: str, entity_id: int) -> "NotFoundError":
        return cls(f"{entity} with id {entity_id} not found")


class InvalidArgumentError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class OverDispenseError(InvalidArgumentError):
    pass


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class InsufficientStockError(ServiceError):
    """Requested units exceed what is on hand; the caller may retry with less."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, medicine_name: str, available: int, requested: int) -> None:
        super().__init__(
            f"Insufficient stock for '{medicine_name}'. Available: {available}, Required: {requested}"
        )
        self.available = available
        self.requested = requested


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED


async def _service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Service error on %s %s: %s", request.method, request.url.path, exc.detail)
    else:
        logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Never leak SQL or driver messages to the client
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An internal error occurred. Please try again later."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ServiceError, _service_error_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
