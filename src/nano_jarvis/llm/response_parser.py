"""Decoders for chat-completions responses.

Two response modes are supported:

- buffered: one JSON body, decoded by :func:`decode_buffered`;
- streaming: a ``text/event-stream`` body delivered in arbitrary byte
  chunks, decoded incrementally by :class:`StreamDecoder`.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import Any

from nano_jarvis.errors import DecodeError
from nano_jarvis.types import DecoderState, Incomplete, LineParse, Parsed

_logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_MARKER = "data: [DONE]"
COMMENT_PREFIX = ":"


# ---------------------------------------------------------------------------
# Buffered mode
# ---------------------------------------------------------------------------

def decode_buffered(body: str | bytes) -> str:
    """Return the trimmed ``choices[0].message.content`` of a JSON body.

    Raises ``DecodeError`` when the body is not JSON or lacks the field.
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(f"Invalid JSON response: {e}") from e

    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise DecodeError(f"Unexpected response shape: missing {e}") from e
    if not isinstance(content, str):
        raise DecodeError(
            f"Expected string message content, got {type(content).__name__}"
        )
    return content.strip()


# ---------------------------------------------------------------------------
# Streaming mode
# ---------------------------------------------------------------------------

def _delta_content(data: Any) -> str | None:
    """Extract ``choices[0].delta.content`` from a parsed SSE payload."""
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) else None


def parse_data_line(line: str) -> LineParse:
    """Parse one SSE line.

    Returns ``Parsed(fragment)`` when the line is a ``data: `` line with a
    complete JSON payload, otherwise ``Incomplete``.
    """
    if not line.startswith(DATA_PREFIX):
        return Incomplete
    try:
        data = json.loads(line[len(DATA_PREFIX):])
    except json.JSONDecodeError:
        return Incomplete
    return Parsed(_delta_content(data))


class StreamDecoder:
    """Incremental SSE decoder that accumulates the final answer.

    Feed raw byte chunks as they arrive; each call returns the fragments
    that should be delivered to the observer, in order.  Lines split
    across chunks are held in ``pending_line`` until the rest arrives.

    The concatenation of every returned fragment always equals
    :attr:`answer`.  The first non-empty fragment is left-trimmed once,
    identically for both.
    """

    def __init__(self) -> None:
        self.state = DecoderState()
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def answer(self) -> str:
        return self.state.answer

    @property
    def done(self) -> bool:
        """True once the ``[DONE]`` marker has been seen."""
        return self.state.done

    def feed(self, chunk: bytes | str) -> list[str]:
        """Consume one chunk and return the fragments it produced."""
        if self.state.done:
            return []
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        text = self._utf8.decode(chunk)
        if not text:
            return []
        return self._feed_text(text)

    def finish(self) -> list[str]:
        """Flush the UTF-8 decoder at end of stream."""
        tail = self._utf8.decode(b"", final=True)
        if not tail or self.state.done:
            return []
        return self._feed_text(tail)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _feed_text(self, text: str) -> list[str]:
        out: list[str] = []
        segments = text.split("\n")
        last = len(segments) - 1
        for i, raw in enumerate(segments):
            raw = raw.removesuffix("\r")
            terminated = i < last
            if self._is_interleaved_comment(raw, terminated):
                continue
            line = self.state.pending_line + raw
            fragment = self._process_line(line, terminated)
            if fragment:
                out.append(fragment)
            if self.state.done:
                break
        return out

    def _is_interleaved_comment(self, raw: str, terminated: bool) -> bool:
        """True for a complete comment line arriving while a data line is pending.

        The pending half is left untouched so the next segment can still
        complete it.  A segment starting with ``:`` that completes the
        pending JSON (``{"choices"`` + ``:[...]}``) is a continuation, not
        a comment.
        """
        pending = self.state.pending_line
        if not (terminated and pending and raw.startswith(COMMENT_PREFIX)):
            return False
        if pending.startswith(COMMENT_PREFIX):
            return False
        return parse_data_line(pending + raw) is Incomplete

    def _process_line(self, line: str, terminated: bool) -> str | None:
        """Handle one candidate line.

        Only the unterminated tail of a chunk can be completed by later
        bytes, so only it is kept in ``pending_line``.
        """
        state = self.state

        if line.startswith(COMMENT_PREFIX):
            state.pending_line = "" if terminated else line
            return None
        if line == DONE_MARKER:
            _logger.debug("Stream termination marker received")
            state.pending_line = ""
            state.done = True
            return None
        if not line:
            return None

        result = parse_data_line(line)
        if result is Incomplete:
            if terminated:
                _logger.debug("Skipping unparseable SSE line: %.80s", line)
                state.pending_line = ""
            else:
                state.pending_line = line
            return None

        state.pending_line = ""
        return self._accumulate(result.fragment)

    def _accumulate(self, fragment: str | None) -> str | None:
        """Fold *fragment* into the answer; return what to deliver."""
        if not fragment:
            return None
        state = self.state
        if not state.started:
            leading = fragment.lstrip()
            if not leading:
                return None
            state.answer = leading
            state.started = True
            return leading
        state.answer += fragment
        return fragment
