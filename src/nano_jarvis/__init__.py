"""nano-jarvis: OpenAI-compatible chat client with streamed answers."""

from nano_jarvis.config import ChatSettings, load_settings
from nano_jarvis.conversation import Conversation, Exchange, reply
from nano_jarvis.errors import (
    ChatError,
    ChatTimeoutError,
    ConfigurationError,
    DecodeError,
    TransportError,
)
from nano_jarvis.llm.client import AsyncChatClient
from nano_jarvis.types import ChatRequest, Message, Role

__version__ = "0.1.0"

__all__ = [
    "AsyncChatClient",
    "ChatError",
    "ChatRequest",
    "ChatSettings",
    "ChatTimeoutError",
    "ConfigurationError",
    "Conversation",
    "DecodeError",
    "Exchange",
    "Message",
    "Role",
    "TransportError",
    "load_settings",
    "reply",
]
