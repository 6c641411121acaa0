import logging
import time

from fastapi import FastAPI, Request
from pydantic import BaseModel

from authkeeper.schemas.masking import masked_dump

logger = logging.getLogger("authkeeper.audit")


def record_arguments(request: Request, *models: BaseModel) -> None:
    """Attach masked request arguments to the audit record of this request."""
    args: dict = {}
    for model in models:
        args.update(masked_dump(model))
    request.state.audit_args = args


def install_audit_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def audit(request: Request, call_next):
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            state = request.scope.get("state", {})
            auth = state.get("auth")
            route = request.scope.get("route")
            logger.info(
                "request.audit",
                extra={
                    "operation": getattr(route, "name", None),
                    "http_method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                    "principal_id": auth.principal.id if auth else None,
                    "principal_roles": (
                        sorted(r.value for r in auth.principal.roles) if auth else None
                    ),
                    "client_ip": request.client.host if request.client else None,
                    "arguments": state.get("audit_args"),
                },
            )
