"""Opaque token check run before a connection is trusted as an attendant."""

from __future__ import annotations

import hmac
from typing import Optional

from app.config import Settings


def verify_attendant_token(token: Optional[str], settings: Settings) -> bool:
    """
    True if ``token`` grants attendant rights.

    With auth disabled, or no ATTENDANT_TOKEN configured, every connection is
    trusted.
    """
    if settings.disable_auth or not settings.attendant_token:
        return True
    if not token:
        return False
    return hmac.compare_digest(token.encode(), settings.attendant_token.encode())
