"""
Global exception handler.
Anything that escapes a route as a non-HTTP exception ends up here.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)

    status_code = 500
    detail = "Internal server error"
    if isinstance(exc, IntegrityError):
        status_code = 409
        detail = "Data conflict, reload the report and try again"
    elif isinstance(exc, SQLAlchemyError):
        detail = "Database operation failed"

    return JSONResponse(
        status_code=status_code,
        content={"success": False, "detail": detail},
    )
