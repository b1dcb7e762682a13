# legalchat/main.py
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from legalchat import __version__
from legalchat.api.v1.router import api_router
from legalchat.core.config import settings
from legalchat.core.error_handlers import register_error_handlers
from legalchat.core.logging import setup_logging
from legalchat.db.base import Base
from legalchat.db.session import engine
from legalchat.observability.metrics import render_prometheus_metrics
from legalchat.observability.middleware import RequestIdMiddleware
from legalchat.schemas import HealthCheck
from legalchat.services import ChatService, ShareService
from legalchat.services.ai_backend import AIBackendClient
from legalchat.services.cache import ResponseCache, create_cache_backend
from legalchat.services.locks import KeyedLocks

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Server starting...")
    if settings.DATABASE_URL.startswith("sqlite"):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    ai_client = AIBackendClient()
    cache = ResponseCache(await create_cache_backend())
    app.state.ai_client = ai_client
    app.state.cache = cache
    app.state.chat_service = ChatService(
        ai_client,
        cache,
        locks=KeyedLocks(enabled=settings.SERIALIZE_CONVERSATION_WRITES)
    )
    app.state.share_service = ShareService()
    try:
        yield
    finally:
        await ai_client.aclose()
        await cache.close()
        await engine.dispose()
        logger.info("👋 Server stopping...")


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, version=__version__, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "Origin"],
        max_age=86400,
    )
    app.add_middleware(RequestIdMiddleware)
    register_error_handlers(app)

    @app.get("/health", response_model=HealthCheck)
    async def health_check():
        return HealthCheck(timestamp=time.time(), version=__version__)

    @app.get("/metrics", response_class=PlainTextResponse)
    async def metrics():
        return render_prometheus_metrics()

    app.include_router(api_router, prefix="/api/v1")
    return app


app = create_app()

logger.info("✅ Application configured")
