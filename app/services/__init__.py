from app.services.chat_message_service import ChatMessageService
from app.services.client_service import ClientService
from app.services.session_store import SessionStore

__all__ = [
    "ChatMessageService",
    "ClientService",
    "SessionStore",
]
