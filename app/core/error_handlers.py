"""
Error handlers that keep store and runtime details away from callers

Registered after atams' setup_exception_handlers so they replace its
SQLAlchemyError and catch-all handlers, which echo the raw error text.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from atams.logging import get_logger

logger = get_logger(__name__)


def _internal_error_response() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "Internal server error",
            "details": {"code": "INTERNAL"}
        }
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        f"Database error: {type(exc).__name__}",
        exc_info=exc,
        extra={'extra_data': {
            'error_type': type(exc).__name__,
            'path': request.url.path,
            'method': request.method,
            'path_params': dict(request.path_params)
        }}
    )
    return _internal_error_response()


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled exception: {type(exc).__name__}",
        exc_info=exc,
        extra={'extra_data': {
            'error_type': type(exc).__name__,
            'path': request.url.path,
            'method': request.method,
            'path_params': dict(request.path_params)
        }}
    )
    return _internal_error_response()


def setup_internal_error_handlers(app) -> None:
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
