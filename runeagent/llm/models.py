"""
Data models for the conversation exchanged with the model.

The conversation is a list of Messages; each Message holds an ordered list of
content blocks tagged by ``type``:

    text         plain text, from either side
    tool_use     a tool call requested by the assistant
    tool_result  the textual outcome of a tool call, sent back as a user turn

These models are the in-process representation. Conversion to the provider's
wire format happens only in CompletionClient.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class TextBlock(BaseModel):
    """A run of text."""

    type: Literal["text"] = "text"
    text: str

    model_config = ConfigDict(frozen=True)


class ToolUseBlock(BaseModel):
    """A tool call issued by the assistant."""

    type: Literal["tool_use"] = "tool_use"
    id: str = Field(min_length=1, description="Call id, echoed back by the matching result")
    name: str = Field(min_length=1, description="Catalog name of the tool to invoke")
    input: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")

    model_config = ConfigDict(frozen=True)


class ToolResultBlock(BaseModel):
    """The outcome of one tool call."""

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str = Field(min_length=1)
    content: str

    model_config = ConfigDict(frozen=True)


ContentBlock = Annotated[
    Union[TextBlock, ToolUseBlock, ToolResultBlock],
    Field(discriminator="type"),
]

_ALLOWED_BLOCKS: dict[Role, tuple[type[BaseModel], ...]] = {
    Role.USER: (TextBlock, ToolResultBlock),
    Role.ASSISTANT: (TextBlock, ToolUseBlock),
}


class Message(BaseModel):
    """
    One entry in the conversation.

    User messages carry text or tool results; assistant messages carry text
    and/or tool calls, exactly as returned by the model.
    """

    role: Role
    content: list[ContentBlock] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_blocks_match_role(self) -> Message:
        allowed = _ALLOWED_BLOCKS[self.role]
        for block in self.content:
            if not isinstance(block, allowed):
                raise ValueError(
                    f"{self.role.value} message cannot contain a {block.type!r} block"
                )
        return self

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [b for b in self.content if isinstance(b, ToolUseBlock)]

    @property
    def tool_results(self) -> list[ToolResultBlock]:
        return [b for b in self.content if isinstance(b, ToolResultBlock)]

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "".join(b.text for b in self.content if isinstance(b, TextBlock))

    @property
    def is_tool_result(self) -> bool:
        """True for a user message made up only of tool results."""
        return bool(self.content) and all(
            isinstance(b, ToolResultBlock) for b in self.content
        )


class TokenUsage(BaseModel):
    """Token counts accumulated across API calls."""

    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
        )


class Turn(BaseModel):
    """One completed model response."""

    stop_reason: str = ""
    content: list[ContentBlock] = Field(default_factory=list)
    model: str = ""
    usage: TokenUsage = Field(default_factory=TokenUsage)


class ToolCall(BaseModel):
    """Record of a tool executed during a run."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    result: str


class AgentResponse(BaseModel):
    """Everything a single run of the agent loop produced."""

    text: str = Field(description="All text blocks of the run, in order")
    tool_calls: list[ToolCall] = Field(default_factory=list)
    rounds: int = Field(default=0, ge=0, description="Model round trips made")
    truncated: bool = Field(
        default=False,
        description="True when the iteration cap ended a run that was still calling tools",
    )
    model: str = ""
    usage: TokenUsage = Field(default_factory=TokenUsage)


class LLMError(Exception):
    """
    Transport or protocol failure talking to the model.

    Fatal for the current run only; the session reports it to the caller
    and keeps the conversation as it was when the failure happened.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause
