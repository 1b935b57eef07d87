"""
Tool layer.

The fixed tool catalog advertised to the LLM, the dispatcher that routes tool
calls to collaborators, and the collaborators themselves (local RuneLite host
state, OSRS Wiki client).
"""

from runeagent.tools.base import (
    HostController,
    InputSchema,
    ToolDefinition,
    ToolProperty,
    WikiLookup,
)
from runeagent.tools.catalog import TOOL_CATALOG, TOOL_NAMES, get_tool
from runeagent.tools.dispatcher import ToolDispatcher, ToolInputError, build_handlers

__all__ = [
    "HostController",
    "InputSchema",
    "TOOL_CATALOG",
    "TOOL_NAMES",
    "ToolDefinition",
    "ToolDispatcher",
    "ToolInputError",
    "ToolProperty",
    "WikiLookup",
    "build_handlers",
    "get_tool",
]
