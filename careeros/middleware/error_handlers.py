"""
Global exception handling and request logging for the CareerOS API
"""
import time
import traceback
import uuid
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from careeros.utils.exceptions import CareerOSBaseException, map_to_http_exception
from careeros.utils.logging_config import get_logger

logger = get_logger(__name__)


def request_id_for(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
    return request_id


def error_response(request_id: str, status_code: int, detail: Any) -> JSONResponse:
    """Create standardized error response"""
    if isinstance(detail, str):
        detail = {"message": detail}
    elif not isinstance(detail, dict):
        detail = {"message": str(detail)}

    body = {
        "success": False,
        "timestamp": datetime.utcnow().isoformat(),
        "request_id": request_id,
        "status_code": status_code,
        **detail,
    }
    return JSONResponse(status_code=status_code, content=body, headers={"X-Request-ID": request_id})


async def careeros_exception_handler(request: Request, exc: CareerOSBaseException) -> JSONResponse:
    request_id = request_id_for(request)
    http_exc = map_to_http_exception(exc)
    log = logger.error if http_exc.status_code >= 500 else logger.warning
    log(
        f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc.message}",
        extra={
            "request_id": request_id,
            "error_code": exc.error_code,
            "details": exc.details,
            "status_code": http_exc.status_code,
        },
    )
    return error_response(request_id, http_exc.status_code, http_exc.detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    request_id = request_id_for(request)
    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {exc.errors()}",
        extra={"request_id": request_id},
    )
    return error_response(request_id, 422, {
        "error": "Validation failed",
        "message": "Request data validation failed",
        "validation_errors": jsonable_errors(exc),
    })


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    request_id = request_id_for(request)
    logger.warning(
        f"HTTP exception in {request.method} {request.url.path}: {exc.detail}",
        extra={"request_id": request_id, "status_code": exc.status_code},
    )
    return error_response(request_id, exc.status_code, exc.detail)


def jsonable_errors(exc: RequestValidationError):
    # ctx can carry exception instances that JSONResponse cannot encode
    return [{k: v for k, v in err.items() if k != "ctx"} for err in exc.errors()]


def install_error_handling(app: FastAPI) -> None:
    app.add_exception_handler(CareerOSBaseException, careeros_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Outermost guard: request IDs, start/finish logging, last-resort 500s"""

    async def dispatch(self, request: Request, call_next):
        request_id = request_id_for(request)

        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else "unknown",
            },
        )

        try:
            response = await call_next(request)
        except CareerOSBaseException as exc:
            return await careeros_exception_handler(request, exc)
        except Exception as exc:
            logger.error(
                f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
                extra={
                    "request_id": request_id,
                    "exception_type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                },
                exc_info=True,
            )
            # internal details stay in the logs
            return error_response(request_id, 500, {
                "error": "Internal server error",
                "message": "An unexpected error occurred. Please try again later.",
            })

        logger.info(
            f"Request completed: {request.method} {request.url.path} - {response.status_code}",
            extra={"request_id": request_id, "status_code": response.status_code},
        )
        response.headers["X-Request-ID"] = request_id
        return response


class PerformanceMiddleware(BaseHTTPMiddleware):
    """Middleware for performance monitoring"""

    HEALTH_PATHS = ["/", "/health"]

    def __init__(self, app, slow_request_threshold: float = 30.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        processing_time = time.time() - start_time

        if request.url.path not in self.HEALTH_PATHS:
            request_id = getattr(request.state, "request_id", None)
            if processing_time > self.slow_request_threshold:
                logger.warning(
                    f"Slow request detected: {request.method} {request.url.path} took {processing_time:.3f}s",
                    extra={
                        "request_id": request_id,
                        "processing_time": processing_time,
                        "threshold": self.slow_request_threshold,
                    },
                )
            else:
                logger.debug(
                    f"Request performance: {request.method} {request.url.path} - {processing_time:.3f}s",
                    extra={"request_id": request_id, "processing_time": processing_time},
                )

        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response
