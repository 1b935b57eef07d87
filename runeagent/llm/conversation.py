"""
Conversation store.

Ordered, append-only log of Messages for one session. Owned by the session's
worker; the only mutation available to the outside world is clear().
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

from runeagent.llm.models import (
    ContentBlock,
    Message,
    Role,
    TextBlock,
    ToolResultBlock,
)

logger = logging.getLogger(__name__)


class Conversation:
    """
    Chronological message log.

    Invariants enforced on append:
    - the first message is a user message, and not a tool-result message
    - a tool-result message directly follows an assistant message and answers
      exactly the tool calls of that message (same ids, nothing extra)

    Consecutive user messages are allowed: a run that fails after sending
    tool results leaves the log as-is, and the next user message goes after it.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the log."""
        return tuple(self._messages)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def append(self, message: Message) -> Message:
        if not self._messages:
            if message.role is not Role.USER:
                raise ValueError("Conversation must start with a user message")
            if message.is_tool_result:
                raise ValueError("Conversation cannot start with tool results")

        if message.tool_results:
            self._check_pairing(message)

        self._messages.append(message)
        return message

    def add_user_text(self, text: str) -> Message:
        return self.append(Message(role=Role.USER, content=[TextBlock(text=text)]))

    def add_assistant_turn(self, blocks: Sequence[ContentBlock]) -> Message:
        return self.append(Message(role=Role.ASSISTANT, content=list(blocks)))

    def add_tool_results(self, results: Sequence[ToolResultBlock]) -> Message:
        return self.append(Message(role=Role.USER, content=list(results)))

    def clear(self) -> None:
        logger.debug(f"Clearing conversation ({len(self._messages)} messages)")
        self._messages.clear()

    def _check_pairing(self, message: Message) -> None:
        previous = self.last
        if previous is None or previous.role is not Role.ASSISTANT:
            raise ValueError("Tool results must follow an assistant message")

        expected = [b.id for b in previous.tool_uses]
        received = [b.tool_use_id for b in message.tool_results]
        if sorted(expected) != sorted(received):
            raise ValueError(
                f"Tool results {received} do not answer tool calls {expected}"
            )
