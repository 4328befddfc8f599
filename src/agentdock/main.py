"""FastAPI entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from agentdock import __version__
from agentdock.config import get_settings, validate_settings_for_env
from agentdock.logging import configure_logging
from agentdock.routes.health import router as health_router
from agentdock.routes.rpc import router as rpc_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    validate_settings_for_env(settings)
    configure_logging(settings.log_level)
    logger.info("AgentDock started (config: %s)", settings.resolved_config_path())
    yield


app = FastAPI(title="AgentDock", version=__version__, lifespan=lifespan)
app.include_router(health_router)
app.include_router(rpc_router)
