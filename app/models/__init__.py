from app.models.chat_message import ChatMessage
from app.models.client import Client

__all__ = [
    "ChatMessage",
    "Client",
]
