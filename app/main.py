"""Application factory for the support chat service."""

from __future__ import annotations

import asyncio
import contextlib
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi_pagination import add_pagination

from app.config import Settings, get_settings
from app.core.app_state import AppState
from app.core.engine import Clock
from app.db import DatabaseManager
from app.infra.logging_config import LoggingConfig, get_logger
from app.routers import chat_socket, system, uploads
from app.routers.chats_router import chats_router
from app.tasks.retention_task import purge_expired, retention_loop

logger = get_logger("main")


def create_app(
    testing: bool = False,
    settings: Optional[Settings] = None,
    db_manager: Optional[DatabaseManager] = None,
    clock: Optional[Clock] = None,
) -> FastAPI:
    """
    Build the FastAPI app and its state container.

    ``testing`` (also implied by ENV=test) creates tables on startup and skips the periodic retention
    sweep; the startup purge still runs.
    """
    settings = settings or get_settings()
    testing = testing or settings.is_test
    LoggingConfig(settings.log_level)
    if testing:
        settings.database_auto_create = True
    state = AppState(settings=settings, db_manager=db_manager, clock=clock)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await asyncio.to_thread(state.restore)
        await purge_expired(state)
        sweeper: Optional[asyncio.Task] = None
        if not testing:
            sweeper = asyncio.create_task(retention_loop(state))
        logger.info("%s started (%s)", settings.app_name, settings.environment)
        try:
            yield
        finally:
            if sweeper is not None:
                sweeper.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await sweeper

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.chat = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(chat_socket.router)
    app.include_router(uploads.router)
    app.include_router(chats_router)
    app.include_router(system.router)
    add_pagination(app)

    app.mount(
        "/audios",
        StaticFiles(directory=state.blob_store.directory_for("audio")),
        name="audios",
    )
    app.mount(
        "/images",
        StaticFiles(directory=state.blob_store.directory_for("image")),
        name="images",
    )
    return app


def run() -> None:
    """Serve the app with uvicorn on the configured port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("app.main:create_app", factory=True, host="0.0.0.0", port=settings.port)
