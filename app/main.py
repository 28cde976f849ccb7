from __future__ import annotations
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api import router
from logging_config import configure_logging
from services.aggregator import build_default_aggregator


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    try:
        yield
    finally:
        if build_default_aggregator.cache_info().currsize:
            close = getattr(build_default_aggregator().client, "close", None)
            if close is not None:
                close()
        build_default_aggregator.cache_clear()


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Neurio Tools",
        description="Energy, power and cost figures derived from a Neurio sensor.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.include_router(router)
    return app

app = create_app()
