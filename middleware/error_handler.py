"""
Centralized error handling middleware for the rollup API
"""

import logging
import traceback
import uuid
import time
from typing import Union
from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from errors.exceptions import RollupError

logger = logging.getLogger(__name__)

STATUS_CODE_MAP = {
    "VALIDATION_ERROR": 400,
    "AUTH_ERROR": 401,
    "DATABASE_ERROR": 500,
    "ROLLUP_ERROR": 500,
}

async def add_correlation_id_middleware(request: Request, call_next):
    """Add correlation ID to all requests for tracing"""
    correlation_id = str(uuid.uuid4())
    request.state.correlation_id = correlation_id

    try:
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        return response
    except Exception as e:
        logger.error(f"Unhandled exception in request {correlation_id}: {str(e)}", exc_info=True)
        raise

def create_error_response(
    error_code: str,
    message: str,
    status_code: int = 400,
    correlation_id: str = None,
    details: dict = None
) -> JSONResponse:
    """Create standardized error response"""

    error_response = {
        "error": {
            "code": error_code,
            "message": message,
            "correlation_id": correlation_id,
            "timestamp": int(time.time() * 1000)
        }
    }

    if details:
        error_response["error"]["details"] = details

    response = JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_response)
    )
    if correlation_id:
        response.headers["X-Correlation-ID"] = correlation_id
    return response

async def rollup_error_handler(request: Request, exc: RollupError) -> JSONResponse:
    """Handle rollup-specific errors"""
    correlation_id = getattr(request.state, 'correlation_id', None)
    category = getattr(exc, "category", exc.code)

    logger.warning(
        f"Rollup error: {exc.message}",
        extra={
            "error_code": exc.code,
            "correlation_id": correlation_id,
            "endpoint": request.url.path
        }
    )

    return create_error_response(
        error_code=exc.code,
        message=exc.message,
        status_code=STATUS_CODE_MAP.get(category, 500),
        correlation_id=correlation_id,
        details={"category": category}
    )

async def validation_error_handler(request: Request, exc: Union[RequestValidationError, ValidationError]) -> JSONResponse:
    """Handle Pydantic validation errors"""
    correlation_id = getattr(request.state, 'correlation_id', None)

    if isinstance(exc, RequestValidationError):
        errors = exc.errors()
        message = "Request validation failed"
    else:
        errors = exc.errors() if hasattr(exc, 'errors') else [{"msg": str(exc)}]
        message = "Data validation failed"

    logger.warning(
        f"Validation error: {message}",
        extra={
            "errors": errors,
            "correlation_id": correlation_id,
            "endpoint": request.url.path
        }
    )

    return create_error_response(
        error_code="VALIDATION_ERROR",
        message=message,
        status_code=422,
        correlation_id=correlation_id,
        details={"validation_errors": errors}
    )

async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions, including routing 404/405 raised by Starlette"""
    correlation_id = getattr(request.state, 'correlation_id', None)

    logger.warning(
        f"HTTP exception: {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "correlation_id": correlation_id,
            "endpoint": request.url.path
        }
    )

    return create_error_response(
        error_code="HTTP_ERROR",
        message=exc.detail,
        status_code=exc.status_code,
        correlation_id=correlation_id
    )

async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions"""
    correlation_id = getattr(request.state, 'correlation_id', None)

    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "correlation_id": correlation_id,
            "endpoint": request.url.path,
            "traceback": traceback.format_exc()
        }
    )

    # Don't expose internal errors in production
    message = "Internal server error"
    if logger.isEnabledFor(logging.DEBUG):
        message = f"Internal error: {str(exc)}"

    return create_error_response(
        error_code="INTERNAL_ERROR",
        message=message,
        status_code=500,
        correlation_id=correlation_id
    )

def setup_error_handlers(app):
    """Setup all error handlers for FastAPI app"""

    app.middleware("http")(add_correlation_id_middleware)

    app.add_exception_handler(RollupError, rollup_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
