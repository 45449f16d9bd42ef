"""Conversation history and reply prompt assembly.

The conversation is a plain value owned by the caller.  The chat client
never reads or writes it; :func:`reply` records an exchange only after
the call has completed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from nano_jarvis.llm.client import AsyncChatClient
from nano_jarvis.llm.sink import Observer
from nano_jarvis.types import Message, Role

_logger = logging.getLogger(__name__)

# Number of past exchanges replayed into each prompt
HISTORY_WINDOW = 4

REPLY_PROMPT = """You run in a loop of Thought, Action, PAUSE, Observation.
At the end of the loop you output an Answer.
Use Thought to describe your thoughts about the question you have been asked.
Use Action to run one of the actions available to you - then return PAUSE.
Observation will be the result of running those actions.

Your available actions are:

calculate:
e.g. calculate: 4 * 7 / 2
Run calculation and return the number.

get_planet_mass:
e.g. get_planet_mass: Earth
Return the weight of the planet in kilograms.

Example session:

Question: What is the mass of the Earth times 2?
Thought: I need to find the mass of the Earth
Action: get_planet_mass: Earth
PAUSE

You will called again with this:

Observation: 5.972e+24

Thought: I need to multiply this by 2
Action: calculate: 5.972e+24 * 2
PAUSE

You will be called again with this:

Observation: 1.1944e+25

If you have the answer, output it as the Answer.

Answer: The mass of the Earth times 2 is 1.1944e+25

Now it's your turn:"""


@dataclass
class Exchange:
    """One completed question/answer pair."""

    inquiry: str
    answer: str
    duration_ms: float = 0


@dataclass
class Conversation:
    """Chronological record of completed exchanges."""

    exchanges: list[Exchange] = field(default_factory=list)
    system_prompt: str = REPLY_PROMPT
    window: int = HISTORY_WINDOW

    def build_messages(self, inquiry: str) -> list[Message]:
        """System prompt, the last few exchanges, then *inquiry*."""
        messages = [Message(Role.SYSTEM, self.system_prompt)]
        recent = self.exchanges[-self.window:] if self.window > 0 else []
        for ex in recent:
            messages.append(Message(Role.USER, f"\nQ: {ex.inquiry}\nA: "))
            messages.append(Message(Role.ASSISTANT, ex.answer))
        messages.append(Message(Role.USER, inquiry))
        return messages

    def record(self, inquiry: str, answer: str, duration_ms: float = 0) -> Exchange:
        exchange = Exchange(inquiry=inquiry, answer=answer, duration_ms=duration_ms)
        self.exchanges.append(exchange)
        return exchange

    def clear(self) -> None:
        self.exchanges.clear()

    def __len__(self) -> int:
        return len(self.exchanges)


async def reply(
    client: AsyncChatClient,
    conversation: Conversation,
    inquiry: str,
    observer: Observer | None = None,
) -> Exchange:
    """Answer *inquiry* in the context of *conversation*.

    The exchange is appended to the conversation only if the call succeeds.
    """
    messages = conversation.build_messages(inquiry)
    start = time.monotonic()
    answer = await client.perform_chat(messages, observer)
    duration = (time.monotonic() - start) * 1000
    _logger.info("Answered in %.0f ms", duration)
    return conversation.record(inquiry, answer, duration)
