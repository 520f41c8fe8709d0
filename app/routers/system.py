from fastapi import APIRouter, Depends

from app.core.app_state import AppState
from app.routers.utils.dependencies import get_app_state

router = APIRouter(
    prefix="/system",
    tags=["system"],
    responses={404: {"description": "Not found"}},
)


@router.get("/health")
def health(state: AppState = Depends(get_app_state)) -> dict:
    """Liveness plus a few counters for troubleshooting."""
    return {
        "status": "ok",
        "environment": state.settings.environment,
        "connections": len(state.connections),
        "waiting": len(state.queue.current_queue()),
    }
