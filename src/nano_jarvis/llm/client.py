"""Async OpenAI-compatible chat client.

Uses ``httpx.AsyncClient`` and exposes ``async def perform_chat()``, which
returns the final answer text.  When an observer is supplied and streaming
is enabled, the response is requested as Server-Sent Events and each
content fragment is delivered to the observer as it arrives.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Iterable

import httpx

from nano_jarvis.config import ChatSettings
from nano_jarvis.errors import ChatTimeoutError, TransportError
from nano_jarvis.types import ChatRequest, Message

from .request import build_request
from .response_parser import StreamDecoder, decode_buffered
from .sink import Observer, deliver

_logger = logging.getLogger(__name__)

_COMPLETIONS_PATH = "/chat/completions"


class AsyncChatClient:
    """Client for one OpenAI-compatible endpoint (Ollama, LM Studio, OpenAI...).

    Holds no per-call state: every call gets its own decoder, so one
    client can serve any number of sequential or concurrent calls.
    """

    def __init__(
        self,
        settings: ChatSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings.validate()

        headers = {"Content-Type": "application/json"}
        if settings.api_key:
            headers["Authorization"] = f"Bearer {settings.api_key}"

        self._client = httpx.AsyncClient(
            base_url=settings.base_url,
            headers=headers,
            timeout=httpx.Timeout(settings.timeout, connect=30),
            transport=transport,
        )

    async def __aenter__(self) -> AsyncChatClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def perform_chat(
        self,
        messages: Iterable[Message | dict[str, Any]],
        observer: Observer | None = None,
        timeout: float | None = None,
    ) -> str:
        """Send *messages* and return the assistant's answer.

        Parameters
        ----------
        messages:
            Ordered, non-empty conversation.
        observer:
            Optional sync or async callable receiving answer fragments in
            delivery order.  Its presence is what enables streaming.
        timeout:
            Deadline in seconds for the whole call, including the stream
            read loop.  Defaults to ``settings.timeout``.
        """
        request = build_request(
            messages,
            model=self.settings.effective_model,
            streaming_enabled=self.settings.streaming,
            has_observer=observer is not None,
        )
        deadline = self.settings.timeout if timeout is None else timeout
        if deadline <= 0:
            raise ValueError(f"Timeout must be positive, got {deadline}")
        _logger.debug(
            "POST %s (model=%s, stream=%s, messages=%d)",
            self.settings.completions_url, request.model,
            request.stream, len(request.messages),
        )

        start = time.monotonic()
        try:
            answer = await asyncio.wait_for(
                self._dispatch(request, observer, deadline), deadline,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise ChatTimeoutError(
                f"Chat request timed out after {deadline:g}s"
            ) from e
        except httpx.TransportError as e:
            raise TransportError(f"Connection to LLM API failed: {e}") from e

        latency = (time.monotonic() - start) * 1000
        _logger.debug("Chat completed in %.0f ms (%d chars)", latency, len(answer))
        return answer

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Buffered / streaming
    # ------------------------------------------------------------------

    async def _dispatch(
        self,
        request: ChatRequest,
        observer: Observer | None,
        timeout: float,
    ) -> str:
        if request.stream:
            return await self._chat_stream(request, observer, timeout)
        return await self._chat_buffered(request, observer, timeout)

    async def _chat_buffered(
        self,
        request: ChatRequest,
        observer: Observer | None,
        timeout: float,
    ) -> str:
        resp = await self._client.post(
            _COMPLETIONS_PATH, json=request.to_payload(), timeout=timeout,
        )
        _raise_for_status(resp)
        answer = decode_buffered(resp.content)
        await deliver(observer, answer)
        return answer

    async def _chat_stream(
        self,
        request: ChatRequest,
        observer: Observer | None,
        timeout: float,
    ) -> str:
        decoder = StreamDecoder()
        async with self._client.stream(
            "POST", _COMPLETIONS_PATH, json=request.to_payload(), timeout=timeout,
        ) as resp:
            _raise_for_status(resp)
            async for chunk in resp.aiter_bytes():
                for fragment in decoder.feed(chunk):
                    await deliver(observer, fragment)
                if decoder.done:
                    break

        for fragment in decoder.finish():
            await deliver(observer, fragment)
        return decoder.answer


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    _logger.warning(
        "LLM API returned %d %s", resp.status_code, resp.reason_phrase,
    )
    raise TransportError.from_status(resp.status_code, resp.reason_phrase)
