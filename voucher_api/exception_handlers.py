import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from voucher_api.exceptions import (
    AppError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)

logger = structlog.get_logger()


def _error_response(status_code: int, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.code, "message": exc.message},
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.error("request_failed", path=request.url.path, error=exc.message)
    return _error_response(500, exc)


async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error_response(404, exc)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(422, exc)


async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return _error_response(409, exc)


async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    response = _error_response(401, exc)
    response.headers["WWW-Authenticate"] = "Bearer"
    return response


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ConflictError, conflict_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_handler)
    app.add_exception_handler(AppError, app_error_handler)
