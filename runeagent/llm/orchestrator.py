"""
Agent loop - the core tool-use state machine.

One run of the loop answers one user message that is already in the
conversation:

    Requesting      ask the CompletionClient for the next turn
        |
    Interpreting    append the turn as an assistant message, emit its text
        |           blocks as chunks, collect its tool calls
        |
    ExecutingTools  run each tool call in order via the ToolDispatcher and
        |           append all results as one user message
        |
        +-- tool calls this turn and rounds left --> Requesting
        +-- no tool calls this turn ---------------> Done
        +-- iteration cap reached -----------------> Done (truncated)
    (any CompletionClient failure) ----------------> Failed (LLMError raised)

Design decisions:
- Tool calls in one turn run sequentially, never in parallel: a later call
  may rely on state changed by an earlier one (enable a plugin, then read
  its config).
- Tool failures never end the run. The dispatcher turns them into text and
  the model decides how to recover.
- The iteration cap bounds cost when a model keeps calling tools. Hitting it
  is not an error; the caller gets whatever text the run produced.
- Transport failures are not retried and nothing is rolled back: messages
  appended before the failure stay in the conversation, and chunks already
  emitted stay emitted.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import Enum

from runeagent.llm.client import CompletionClient
from runeagent.llm.conversation import Conversation
from runeagent.llm.models import (
    AgentResponse,
    TextBlock,
    TokenUsage,
    ToolCall,
    ToolResultBlock,
    ToolUseBlock,
)
from runeagent.tools.base import ToolDefinition
from runeagent.tools.catalog import TOOL_CATALOG
from runeagent.tools.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str], None]

DEFAULT_MAX_ITERATIONS = 10
TOOL_NOTICE = "\n🔧 Using tool: {name}...\n"


class LoopState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    INTERPRETING = "interpreting"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    FAILED = "failed"


def _discard_chunk(_chunk: str) -> None:
    pass


class AgentLoop:
    """
    Drives model round trips and tool execution for one conversation.

    Not safe for concurrent runs: a SessionRunner serializes calls to run().

    Args:
        client: Completion client used for every round trip
        dispatcher: Executes the tool calls the model makes
        catalog: Tool definitions sent with every request (default: TOOL_CATALOG)
        max_iterations: Cap on model round trips per run (default: 10)
    """

    def __init__(
        self,
        client: CompletionClient,
        dispatcher: ToolDispatcher,
        catalog: Sequence[ToolDefinition] = TOOL_CATALOG,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self._client = client
        self._dispatcher = dispatcher
        self._catalog = tuple(catalog)
        self._max_iterations = max_iterations
        self._state = LoopState.IDLE

    @property
    def state(self) -> LoopState:
        """State of the current (or most recent) run."""
        return self._state

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    async def run(
        self,
        conversation: Conversation,
        on_chunk: ChunkCallback | None = None,
    ) -> AgentResponse:
        """
        Run the loop until the model stops calling tools or the cap is hit.

        The conversation must already end with the user's message.

        Args:
            conversation: Log to read from and append to
            on_chunk: Receives each text block, and a short notice before each
                      tool call, in the order the model produced them

        Returns:
            AgentResponse with the accumulated text and tool call records

        Raises:
            LLMError: If the completion client fails (state becomes FAILED)
        """
        emit = on_chunk or _discard_chunk
        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        usage = TokenUsage()
        model = ""
        iteration = 0

        while iteration < self._max_iterations:
            self._state = LoopState.REQUESTING
            try:
                turn = await self._client.complete(conversation.messages, self._catalog)
            except BaseException:
                self._state = LoopState.FAILED
                raise

            usage = usage + turn.usage
            model = turn.model or model

            self._state = LoopState.INTERPRETING
            conversation.add_assistant_turn(turn.content)

            results: list[ToolResultBlock] = []
            for block in turn.content:
                if isinstance(block, TextBlock):
                    text_parts.append(block.text)
                    emit(block.text)
                elif isinstance(block, ToolUseBlock):
                    self._state = LoopState.EXECUTING_TOOLS
                    emit(TOOL_NOTICE.format(name=block.name))
                    result = await self._dispatcher.execute(block.name, block.input)
                    logger.info(f"Tool '{block.name}' returned {len(result)} chars")
                    tool_calls.append(
                        ToolCall(id=block.id, name=block.name, arguments=block.input, result=result)
                    )
                    results.append(ToolResultBlock(tool_use_id=block.id, content=result))
                else:
                    logger.debug(f"Ignoring {block.type!r} block in assistant turn")

            if not results:
                self._state = LoopState.DONE
                return AgentResponse(
                    text="".join(text_parts),
                    tool_calls=tool_calls,
                    rounds=iteration + 1,
                    model=model,
                    usage=usage,
                )

            conversation.add_tool_results(results)
            iteration += 1

        logger.warning(
            f"Tool iteration cap ({self._max_iterations}) reached; returning partial response"
        )
        self._state = LoopState.DONE
        return AgentResponse(
            text="".join(text_parts),
            tool_calls=tool_calls,
            rounds=iteration,
            truncated=True,
            model=model,
            usage=usage,
        )
