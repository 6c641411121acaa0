import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from authkeeper.infrastructure.db.pool import ping_database
from authkeeper.infrastructure.redis_cache.pool import ping_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_PROBES = {"database": ping_database, "cache": ping_redis}


@router.get("/healthz")
async def healthz() -> dict:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz():
    """Ready only when both the user store and the credential cache answer."""
    checks: dict[str, str] = {}
    for name, probe in _PROBES.items():
        try:
            await probe()
            checks[name] = "ready"
        except Exception as e:
            logger.warning("readiness probe failed", extra={"probe": name, "error": str(e)})
            checks[name] = "not_ready"

    ready = all(state == "ready" for state in checks.values())
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ready" if ready else "not_ready", "checks": checks},
    )
