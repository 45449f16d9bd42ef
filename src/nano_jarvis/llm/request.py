"""Chat request assembly."""

from __future__ import annotations

from typing import Any, Iterable

from nano_jarvis.types import DEFAULT_MODEL, ChatRequest, Message, Role


def _coerce_message(raw: Message | dict[str, Any]) -> Message:
    if isinstance(raw, Message):
        return raw
    return Message(role=Role(raw["role"]), content=str(raw["content"]))


def build_request(
    messages: Iterable[Message | dict[str, Any]],
    model: str | None = None,
    streaming_enabled: bool = True,
    has_observer: bool = False,
) -> ChatRequest:
    """Build a :class:`ChatRequest`.

    Streaming is used only when it is enabled *and* someone is listening
    for fragments; without an observer the buffered mode is forced.
    """
    msgs = [_coerce_message(m) for m in messages]
    if not msgs:
        raise ValueError("A chat request needs at least one message")
    return ChatRequest(
        messages=msgs,
        model=model or DEFAULT_MODEL,
        stream=streaming_enabled and has_observer,
    )
