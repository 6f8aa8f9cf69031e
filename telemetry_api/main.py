from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from telemetry_common.config import get_settings
from telemetry_common.db import get_engine

from .endpoints import (
    cache_router,
    devices_router,
    health_router,
    ingest_router,
    resolve_router,
)
from .infrastructure.persistence import ensure_schema

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if get_settings().db_auto_create_schema:
        ensure_schema(get_engine())
    logger.info("[APP] Telemetry service started")
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="Device Telemetry Service", version="0.1.0", lifespan=lifespan)

    app.include_router(health_router)
    app.include_router(ingest_router)
    # resolve antes que /devices/{serial_number}
    app.include_router(resolve_router)
    app.include_router(devices_router)
    app.include_router(cache_router)

    return app


app = create_app()
