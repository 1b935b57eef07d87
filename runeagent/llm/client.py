"""
Completion client.

Sends the full conversation plus the tool catalog to the model via LiteLLM
and parses the reply into a Turn.

The conversation is stored as content blocks (text / tool_use / tool_result).
LiteLLM speaks the OpenAI chat format, so conversion happens here and only
here, in both directions:

    user text            -> {"role": "user", "content": "..."}
    assistant turn       -> {"role": "assistant", "content": "...", "tool_calls": [...]}
    user tool results    -> one {"role": "tool", "tool_call_id": ..., "content": ...} each
    tool definition      -> {"type": "function", "function": {name, description, parameters}}

Design decisions:
- Uses LiteLLM for provider abstraction, so Anthropic, OpenAI, local models,
  etc. are all a config string away.
- No retries: a failed request fails the current run only (LLMError).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from litellm import acompletion
from pydantic import ValidationError

from runeagent.config.settings import LLMSettings
from runeagent.llm.models import (
    ContentBlock,
    LLMError,
    Message,
    Role,
    TextBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
    Turn,
)
from runeagent.tools.base import ToolDefinition

logger = logging.getLogger(__name__)

SYSTEM_PROMPT_PATH = Path(__file__).parent.parent / "prompts" / "system.txt"


def load_system_prompt(path: Path = SYSTEM_PROMPT_PATH) -> str:
    return path.read_text(encoding="utf-8").strip()


def tools_to_wire(tools: Iterable[ToolDefinition]) -> list[dict[str, Any]]:
    """Wrap catalog entries in the OpenAI function-tool envelope."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema.model_dump(mode="json"),
            },
        }
        for tool in tools
    ]


def messages_to_wire(
    conversation: Iterable[Message], system_prompt: str | None = None
) -> list[dict[str, Any]]:
    """Serialize the content-block conversation to chat-completion messages."""
    wire: list[dict[str, Any]] = []
    if system_prompt:
        wire.append({"role": "system", "content": system_prompt})

    for message in conversation:
        if message.role is Role.ASSISTANT:
            tool_uses = message.tool_uses
            if not message.text and not tool_uses:
                # Empty replies (content filter, length stop) are kept in the
                # log but providers reject an assistant entry with no content
                continue
            entry: dict[str, Any] = {"role": "assistant", "content": message.text or None}
            if tool_uses:
                entry["tool_calls"] = [
                    {
                        "id": block.id,
                        "type": "function",
                        "function": {
                            "name": block.name,
                            "arguments": json.dumps(block.input),
                        },
                    }
                    for block in tool_uses
                ]
            wire.append(entry)
            continue

        # User message: text goes out as one user entry, results as tool entries
        text = message.text
        if text:
            wire.append({"role": "user", "content": text})
        for block in message.tool_results:
            wire.append(
                {"role": "tool", "tool_call_id": block.tool_use_id, "content": block.content}
            )

    return wire


def _decode_arguments(raw: Any, tool_name: str) -> dict[str, Any]:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        decoded = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise LLMError(f"Unparsable arguments for tool '{tool_name}': {raw!r}", cause=e) from e
    if not isinstance(decoded, dict):
        raise LLMError(f"Arguments for tool '{tool_name}' are not an object: {raw!r}")
    return decoded


def _attr(obj: Any, name: str, kind: type, default: Any) -> Any:
    """Read an optional response attribute, ignoring values of the wrong type."""
    value = getattr(obj, name, None)
    return value if isinstance(value, kind) else default


def turn_from_response(response: Any) -> Turn:
    """
    Parse a LiteLLM ModelResponse into a Turn.

    Text comes first, then tool calls in the order the model listed them.

    Raises:
        LLMError: If the response has no choices or malformed tool calls
    """
    choices = getattr(response, "choices", None)
    if not choices:
        raise LLMError("LLM response contained no choices")

    choice = choices[0]
    blocks: list[ContentBlock] = []
    try:
        message = choice.message
        text = message.content
        if isinstance(text, str) and text:
            blocks.append(TextBlock(text=text))

        for call in message.tool_calls or []:
            name = call.function.name
            blocks.append(
                ToolUseBlock(
                    id=call.id,
                    name=name,
                    input=_decode_arguments(call.function.arguments, name),
                )
            )
    except (ValidationError, AttributeError, TypeError) as e:
        raise LLMError(f"Malformed tool call in LLM response: {e}", cause=e) from e

    usage = getattr(response, "usage", None)
    return Turn(
        stop_reason=_attr(choice, "finish_reason", str, ""),
        content=blocks,
        model=_attr(response, "model", str, ""),
        usage=TokenUsage(
            prompt_tokens=_attr(usage, "prompt_tokens", int, 0),
            completion_tokens=_attr(usage, "completion_tokens", int, 0),
        ),
    )


class CompletionClient:
    """
    Requests one completed turn from the model.

    Args:
        settings: LLM configuration (model, temperature, max_tokens, api_key)
        system_prompt: Instructions sent ahead of the conversation
    """

    def __init__(self, settings: LLMSettings, system_prompt: str | None = None):
        self._settings = settings
        self._system_prompt = system_prompt

    @property
    def model(self) -> str:
        return self._settings.model

    async def complete(
        self,
        conversation: Sequence[Message],
        tools: Sequence[ToolDefinition],
    ) -> Turn:
        """
        Send the conversation and tool catalog; return the model's turn.

        Raises:
            LLMError: If the API key is missing, the call fails, or the
                      response cannot be parsed
        """
        # Validate API key early - better error message than a cryptic 401
        if not self._settings.api_key:
            raise LLMError("API key not configured. Set LLM__API_KEY in your environment.")

        call_kwargs: dict[str, Any] = {
            "model": self._settings.model,
            "messages": messages_to_wire(conversation, self._system_prompt),
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
            "api_key": self._settings.api_key,
        }
        if tools:
            call_kwargs["tools"] = tools_to_wire(tools)

        logger.debug(
            f"Requesting completion: {len(call_kwargs['messages'])} messages, "
            f"{len(tools)} tools, model={self._settings.model}"
        )
        try:
            response = await acompletion(**call_kwargs)
        except Exception as e:
            raise LLMError(f"LLM API call failed: {e}", cause=e) from e

        turn = turn_from_response(response)
        logger.debug(
            f"Completion received: stop_reason={turn.stop_reason!r}, "
            f"{len(turn.content)} blocks, {turn.usage.total_tokens} tokens"
        )
        return turn
