from __future__ import annotations

from typing import Optional

from app.adapters.blob_store import LocalBlobStore
from app.channels.websocket import ConnectionManager
from app.config import Settings, get_settings
from app.core.directory import Directory
from app.core.engine import Clock, SessionEngine, utcnow
from app.core.queue_manager import QueueManager
from app.core.routing import Router
from app.db import DatabaseManager, get_db_manager
from app.infra.logging_config import get_logger
from app.services.session_store import SessionStore

logger = get_logger("app_state")


class AppState:
    """Everything one running app owns: queue, directory, sockets and store."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        db_manager: Optional[DatabaseManager] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.clock = clock or utcnow
        self.db_manager = db_manager or get_db_manager()
        self.store = SessionStore(self.db_manager)
        self.blob_store = LocalBlobStore(self.settings.media_root)
        self.queue = QueueManager()
        self.directory = Directory()
        self.router = Router(self.queue)
        self.connections = ConnectionManager()
        self.engine = SessionEngine(
            queue=self.queue,
            directory=self.directory,
            router=self.router,
            transport=self.connections,
            store=self.store,
            settings=self.settings,
            clock=self.clock,
        )

    def restore(self) -> int:
        """Create tables if configured, then rebuild the queue from the store."""
        if self.settings.database_auto_create:
            self.db_manager.create_all()
        loaded = self.queue.load(self.store.list_clients())
        logger.info("Restored %d client records from the store", loaded)
        return loaded
