# backend/main.py
from __future__ import annotations

import asyncio
import importlib
import logging
from contextlib import asynccontextmanager
from typing import Optional, Sequence

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spotbot.auto.auto_runner import run_bot
from spotbot.core.config import CFG
from spotbot.logs.logger import setup_logging


def _try_import_router(module_path: str) -> Optional[APIRouter]:
    """
    Import a module and return its `router` (or `api_router`), else None.
    """
    try:
        mod = importlib.import_module(module_path)
    except ImportError as e:
        logging.error("Cannot import module '%s': %s", module_path, e, exc_info=True)
        return None

    router = getattr(mod, "router", None) or getattr(mod, "api_router", None)
    if router is None:
        logging.error("Module '%s' imported but no 'router' or 'api_router' found.", module_path)
    return router


def _mount_routers(app: FastAPI) -> None:
    targets: Sequence[tuple[str, str, str]] = (
        # (module_path, prefix, tag)
        ("spotbot.api.routes_status", "/api", "status"),
    )

    for module_path, prefix, tag in targets:
        router = _try_import_router(module_path)
        if router is None:
            continue
        app.include_router(router, prefix=prefix, tags=[tag])
        logging.info("Mounted router: %s -> %s%s", module_path, prefix, router.prefix)


def _on_bot_done(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    if task.exception() is not None:
        logging.error("Trading engine stopped with an error", exc_info=task.exception())


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = None
    if CFG.AUTO_MODE:
        task = asyncio.create_task(run_bot(), name="trading-engine")
        task.add_done_callback(_on_bot_done)
    yield
    if task is not None and not task.done():
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


def create_app() -> FastAPI:
    setup_logging(CFG.LOG_LEVEL)

    app = FastAPI(
        title="Spot Bot Backend",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _mount_routers(app)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
