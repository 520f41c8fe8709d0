from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from app.core.app_state import AppState
from app.core.auth import verify_attendant_token


def get_app_state(request: Request) -> AppState:
    """FastAPI dependency returning the app's chat state container."""
    return request.app.state.chat


def require_attendant(
    x_attendant_token: Optional[str] = Header(None),
    authorization: Optional[str] = Header(None),
    state: AppState = Depends(get_app_state),
) -> bool:
    """FastAPI dependency rejecting callers without a valid attendant token."""
    token = x_attendant_token
    if token is None and authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    if not verify_attendant_token(token, state.settings):
        raise HTTPException(status_code=401, detail="Invalid attendant token")
    return True
