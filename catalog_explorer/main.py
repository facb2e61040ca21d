# catalog_explorer/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from catalog_explorer import __version__
from catalog_explorer.core.config import get_settings
from catalog_explorer.core.logging_config import configure_logging
from catalog_explorer.routes import health, search, tables

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)

    missing = settings.db_config().missing_fields()
    if missing:
        logger.warning(f"Database configuration incomplete ({', '.join(missing)}); queries will be refused")
    logger.info(f"Catalog Explorer started, gateway at {settings.GATEWAY_URL}")
    yield  # This is where the app runs
    logger.info("Catalog Explorer stopped")


app = FastAPI(
    title="Catalog Explorer",
    description="Read-only search across heterogeneous product catalog tables",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(search.router)
app.include_router(tables.router)
app.include_router(health.router)
