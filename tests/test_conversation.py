"""Tests for conversation history and reply()."""

from __future__ import annotations

import json

import httpx
import pytest

from nano_jarvis.config import ChatSettings
from nano_jarvis.conversation import (
    HISTORY_WINDOW,
    REPLY_PROMPT,
    Conversation,
    reply,
)
from nano_jarvis.errors import TransportError
from nano_jarvis.llm.client import AsyncChatClient
from nano_jarvis.llm.sink import FragmentCollector
from nano_jarvis.types import Message, Role


@pytest.fixture
def conversation() -> Conversation:
    conv = Conversation()
    for i in range(6):
        conv.record(f"question {i}", f"answer {i}", duration_ms=10)
    return conv


class TestBuildMessages:
    def test_empty_history(self):
        messages = Conversation().build_messages("What is 2+2?")
        assert messages == [
            Message(Role.SYSTEM, REPLY_PROMPT),
            Message(Role.USER, "What is 2+2?"),
        ]

    def test_only_recent_exchanges_replayed(self, conversation: Conversation):
        messages = conversation.build_messages("next")
        assert len(messages) == 1 + 2 * HISTORY_WINDOW + 1
        assert messages[0].role == Role.SYSTEM
        assert messages[1] == Message(Role.USER, "\nQ: question 2\nA: ")
        assert messages[2] == Message(Role.ASSISTANT, "answer 2")
        assert messages[-2] == Message(Role.ASSISTANT, "answer 5")
        assert messages[-1] == Message(Role.USER, "next")

    def test_custom_window(self, conversation: Conversation):
        conversation.window = 1
        messages = conversation.build_messages("next")
        assert [m.content for m in messages[1:]] == ["\nQ: question 5\nA: ", "answer 5", "next"]

    def test_zero_window(self, conversation: Conversation):
        conversation.window = 0
        assert len(conversation.build_messages("next")) == 2

    def test_clear(self, conversation: Conversation):
        conversation.clear()
        assert len(conversation) == 0


def _client(handler) -> AsyncChatClient:
    return AsyncChatClient(ChatSettings(), transport=httpx.MockTransport(handler))


class TestReply:
    async def test_records_after_success(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            body = "data: " + json.dumps({"choices": [{"delta": {"content": " Paris"}}]}) + "\n\ndata: [DONE]\n\n"
            return httpx.Response(200, content=body.encode())

        conv = Conversation()
        collector = FragmentCollector()
        async with _client(handler) as client:
            exchange = await reply(client, conv, "Capital of France?", collector)

        assert exchange.answer == "Paris"
        assert exchange.inquiry == "Capital of France?"
        assert exchange.duration_ms >= 0
        assert conv.exchanges == [exchange]
        assert collector.fragments == ["Paris"]
        assert seen[0]["stream"] is True
        assert seen[0]["messages"][-1] == {"role": "user", "content": "Capital of France?"}

    async def test_history_carried_into_next_call(self):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"choices": [{"message": {"content": "ok"}}]})

        conv = Conversation()
        async with _client(handler) as client:
            await reply(client, conv, "first")
            await reply(client, conv, "second")

        assert seen[1]["messages"][1:] == [
            {"role": "user", "content": "\nQ: first\nA: "},
            {"role": "assistant", "content": "ok"},
            {"role": "user", "content": "second"},
        ]
        assert len(conv) == 2

    async def test_failed_call_not_recorded(self):
        conv = Conversation()
        async with _client(lambda request: httpx.Response(500)) as client:
            with pytest.raises(TransportError):
                await reply(client, conv, "boom")
        assert len(conv) == 0
