from app.tasks.retention_task import purge_expired, retention_loop

__all__ = [
    "purge_expired",
    "retention_loop",
]
