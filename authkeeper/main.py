from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from authkeeper.infrastructure.db.pool import close_pool, open_pool
from authkeeper.infrastructure.email.http_smtp_adapter import HttpSmtpEmailAdapter
from authkeeper.infrastructure.redis_cache.pool import close_redis, get_redis
from authkeeper.logging import setup_logging
from authkeeper.presentation.api import api
from authkeeper.presentation.audit import install_audit_middleware
from authkeeper.presentation.dependencies import get_token_codec
from authkeeper.presentation.errors import register_exception_handlers
from authkeeper.presentation.routes.health import router as health_router
from authkeeper.settings import get_settings

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    get_token_codec()  # a misconfigured signer fails here, not on first request

    await open_pool()

    get_redis()

    http_client = httpx.AsyncClient(timeout=10.0)
    email_adapter = HttpSmtpEmailAdapter(
        base_url=settings.smtp_base_url,
        client=http_client,
    )
    app.state.email_adapter = email_adapter  # expose to dependencies

    try:
        yield
    finally:
        # shutdown
        await email_adapter.aclose()  # it won't close the shared client
        await http_client.aclose()
        await close_redis()
        await close_pool()


def create_app() -> FastAPI:
    setup_logging(settings.log_level)
    app = FastAPI(title="Authkeeper", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    register_exception_handlers(app)
    install_audit_middleware(app)
    app.include_router(health_router)
    app.include_router(api)
    return app


app = create_app()
