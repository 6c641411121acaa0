import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from authkeeper.domain.errors import DomainError

logger = logging.getLogger(__name__)


def error_response(status_code: int, code: str, message: str, path: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "error",
            "error": {"code": code, "message": message, "path": path},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainError)
    async def handle_domain_error(request: Request, exc: DomainError):
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "request failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "status_code": exc.status_code,
                "error_code": exc.code,
                "error_type": type(exc).__name__,
            },
        )
        return error_response(exc.status_code, exc.code, exc.message, request.url.path)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        first = exc.errors()[0] if exc.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ())[1:])
        message = first.get("msg", "validation error")
        if field:
            message = f"{field}: {message}"
        return error_response(400, "validation_error", message, request.url.path)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(
            "unhandled error",
            extra={"path": request.url.path, "method": request.method},
        )
        return error_response(500, "server_error", "internal error", request.url.path)
