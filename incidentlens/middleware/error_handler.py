import structlog
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from incidentlens.errors import ConfigurationError, ExternalServiceError

logger = structlog.get_logger()


def error_body(message: str, **extra) -> dict:
    return {"success": False, "error": message, **extra}


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except Exception as exc:
            logger.error(
                "unhandled_error",
                path=request.url.path,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return JSONResponse(
                status_code=500,
                content=error_body("Internal server error"),
            )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("http_error", path=request.url.path, status=exc.status_code, error=exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", []) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
    return JSONResponse(status_code=400, content=error_body(message, details=errors))


async def external_service_exception_handler(request: Request, exc: ExternalServiceError) -> JSONResponse:
    logger.error(
        "external_service_error",
        path=request.url.path,
        service=exc.service,
        error=exc.message,
        upstream_status=exc.status_code,
        error_type=type(exc).__name__,
    )
    return JSONResponse(
        status_code=502,
        content=error_body(str(exc), service=exc.service),
    )


async def configuration_exception_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("configuration_error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content=error_body(str(exc)))
