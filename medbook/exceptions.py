import logging
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

from .application.errors import BookingError

logger = logging.getLogger(__name__)


def create_error_response(error_message: str, status_code: int = 400, code: Optional[str] = None, field: Optional[str] = None) -> dict:
    """Create a standardized error response"""
    body = {
        "success": False,
        "data": None,
        "error": error_message,
    }
    if code:
        body["code"] = code
    if field:
        body["field"] = field
    return body


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    # Convert 403 from HTTPBearer to 401 for missing authentication
    if exc.status_code == 403 and "Not authenticated" in str(exc.detail):
        return JSONResponse(
            status_code=401,
            content=create_error_response("Authentication required", 401)
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Map the booking error taxonomy onto HTTP statuses"""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, exc.status_code, code=exc.code, field=exc.field),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: 500 with the original message attached for operators"""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=create_error_response(f"Internal server error: {exc}", 500, code="internal_error"),
    )
