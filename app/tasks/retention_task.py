"""Retention sweep: forget chats older than the configured age."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import Optional

from app.core.app_state import AppState
from app.core.engine import clients_payload
from app.core.errors import StorageFailure
from app.infra.logging_config import get_logger

logger = get_logger("retention")


async def purge_expired(state: AppState, now: Optional[datetime] = None) -> int:
    """
    Delete clients and messages older than RETENTION_HOURS from the store and
    from the in-memory queue. Returns how many client records were forgotten.
    """
    cutoff = (now or state.clock()) - timedelta(hours=state.settings.retention_hours)
    try:
        clients, messages = await asyncio.to_thread(state.store.purge_older_than, cutoff)
    except StorageFailure as e:
        logger.error("Retention purge failed: %s", e)
        return 0
    logger.info("Purged %d clients and %d messages older than %s", clients, messages, cutoff)

    waiting_before = {r.id for r in state.queue.current_queue()}
    expired = state.queue.purge_older_than(cutoff)
    if waiting_before.intersection(expired):
        await state.connections.broadcast(
            "queue_update", clients_payload(state.queue.current_queue())
        )
    return len(expired)


async def retention_loop(state: AppState) -> None:
    """Run purge_expired every RETENTION_SWEEP_INTERVAL_SECONDS until cancelled."""
    interval = state.settings.retention_sweep_interval_seconds
    while True:
        await asyncio.sleep(interval)
        try:
            await purge_expired(state)
        except Exception:
            logger.exception("Retention sweep crashed; retrying next interval")
