"""Shared data types for nano-jarvis."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


# ---------------------------------------------------------------------------
# Chat types
# ---------------------------------------------------------------------------

class Role(str, enum.Enum):
    """Author of a chat message."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A single chat message.  Order within a conversation is chronological."""

    role: Role
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": Role(self.role).value, "content": self.content}


# Fixed request policy, not caller-configurable
MAX_TOKENS = 400
TEMPERATURE = 0

# Model used when the configuration names none
DEFAULT_MODEL = "llama3.1"


@dataclass
class ChatRequest:
    """Outbound chat-completions request.  Built fresh per call."""

    messages: list[Message]
    model: str = DEFAULT_MODEL
    stream: bool = False
    max_tokens: int = MAX_TOKENS
    temperature: float = TEMPERATURE

    def to_payload(self) -> dict[str, Any]:
        """JSON body for ``POST /chat/completions``."""
        return {
            "messages": [m.to_dict() for m in self.messages],
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "stream": self.stream,
        }


# ---------------------------------------------------------------------------
# Stream decoding types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Parsed:
    """A data line whose JSON payload parsed.

    ``fragment`` is the delta content, or *None* for a non-content event.
    """

    fragment: str | None = None


class _IncompleteType:
    """The line could not be parsed yet and must wait for more bytes."""

    _instance: _IncompleteType | None = None

    def __new__(cls) -> _IncompleteType:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Incomplete"

    def __bool__(self) -> bool:
        return False


Incomplete = _IncompleteType()

LineParse = Parsed | _IncompleteType


@dataclass
class DecoderState:
    """Per-call streaming state.  Never shared between calls."""

    pending_line: str = ""
    answer: str = ""
    started: bool = False
    done: bool = False
