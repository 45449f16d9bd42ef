"""Fragment sinks: where streamed answer pieces are delivered."""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Protocol


class FragmentSink(Protocol):
    """Single-method consumer of answer fragments.

    Any callable taking one ``str`` qualifies: plain functions, bound
    methods such as ``list.append``, or ``async def`` coroutines.
    """

    def __call__(self, fragment: str, /) -> None | Awaitable[Any]:
        ...


Observer = FragmentSink


async def deliver(observer: Observer | None, fragment: str) -> None:
    """Hand *fragment* to *observer*, awaiting it if it is a coroutine.

    Observer errors propagate: a sink that cannot accept output aborts
    the call.
    """
    if observer is None:
        return
    result = observer(fragment)
    if inspect.isawaitable(result):
        await result


class FragmentCollector:
    """Sink that records every fragment it receives."""

    def __init__(self) -> None:
        self.fragments: list[str] = []

    def __call__(self, fragment: str) -> None:
        self.fragments.append(fragment)

    @property
    def text(self) -> str:
        return "".join(self.fragments)
