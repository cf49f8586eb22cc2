import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI

from resume_advisor.api.deps import get_upload_store
from resume_advisor.api.v1.router import api_v1_router
from resume_advisor.core.config import get_settings
from resume_advisor.core.llm import OllamaGateway
from resume_advisor.core.logging_config import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Startup
    settings = get_settings()
    gateway = OllamaGateway.from_settings(settings)
    app.state.gateway = gateway
    await gateway.check_availability()
    removed = await get_upload_store().sweep(timedelta(hours=settings.upload_retention_hours))
    logger.info(
        "%s %s started (ollama=%s, connected=%s, stale uploads removed=%d)",
        settings.app_name,
        settings.app_version,
        settings.ollama_host,
        gateway.connected,
        removed,
    )
    yield
    # Shutdown
    await gateway.aclose()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.include_router(api_v1_router, prefix="/api/v1")
    return app
