"""
LLM Orchestration Layer.

Manages the conversation with the model and the tool-use loop:

    SessionRunner.send(text, on_chunk, on_complete, on_error)
            |
    AgentLoop.run(conversation)  <-->  ToolDispatcher.execute(name, input)
            |
    CompletionClient.complete(conversation, tools)  ->  LiteLLM acompletion()

Key responsibilities:
- Keep an append-only, content-block conversation per session
- Call LLM APIs via LiteLLM (provider-agnostic)
- Run the bounded tool-use loop (default cap: 10 round trips per message)
- Serialize requests for a session onto one worker and report via callbacks
"""

from runeagent.llm.client import CompletionClient, load_system_prompt
from runeagent.llm.conversation import Conversation
from runeagent.llm.models import (
    AgentResponse,
    LLMError,
    Message,
    Role,
    TextBlock,
    TokenUsage,
    ToolCall,
    ToolResultBlock,
    ToolUseBlock,
    Turn,
)
from runeagent.llm.orchestrator import AgentLoop, LoopState
from runeagent.llm.session import SessionRunner

__all__ = [
    "AgentLoop",
    "AgentResponse",
    "CompletionClient",
    "Conversation",
    "LLMError",
    "LoopState",
    "Message",
    "Role",
    "SessionRunner",
    "TextBlock",
    "TokenUsage",
    "ToolCall",
    "ToolResultBlock",
    "ToolUseBlock",
    "Turn",
    "load_system_prompt",
]
