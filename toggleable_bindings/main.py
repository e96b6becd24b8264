import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from toggleable_bindings.api.routes import router
from toggleable_bindings.startup import init_bindings_for_app

# Configure logging
logging.basicConfig(level=os.getenv("TOGGLEABLE_BINDINGS_LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    manager = init_bindings_for_app()
    logger.info("Bindings ready: %s", ", ".join(b.id for b in manager))
    yield


app = FastAPI(title="toggleable-bindings", version="0.1.0", lifespan=_lifespan)
app.include_router(router)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "toggleable-bindings", "version": "0.1.0"}
