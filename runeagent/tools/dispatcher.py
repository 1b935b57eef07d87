"""
Tool dispatcher.

Routes a tool call from the model (name + input mapping) to exactly one
collaborator operation and returns its textual result.

Nothing raised by a tool escapes execute(): unknown names, missing inputs and
collaborator exceptions all come back as text the model can react to on its
next turn. Crashing the run on a tool failure would be a worse outcome than
letting the model explain or try something else.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

from runeagent.tools.base import HostController, ToolDefinition, WikiLookup
from runeagent.tools.catalog import TOOL_CATALOG

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Mapping[str, Any]], Awaitable[str]]

UNKNOWN_TOOL_MESSAGE = "Unknown tool: {name}"
TOOL_ERROR_PREFIX = "Tool error: "
DEFAULT_SEARCH_LIMIT = 5


class ToolInputError(ValueError):
    """The model called a tool with missing or malformed input."""


def build_handlers(host: HostController, wiki: WikiLookup) -> dict[str, ToolHandler]:
    """
    Map every catalog tool name to a handler bound to the collaborators.

    Handlers receive input that already passed required-field validation.
    """

    async def search_wiki(args: Mapping[str, Any]) -> str:
        limit = args.get("limit")
        return await wiki.search(
            str(args["query"]),
            int(limit) if limit is not None else DEFAULT_SEARCH_LIMIT,
        )

    return {
        "list_plugins": lambda args: host.list_plugins(),
        "enable_plugin": lambda args: host.enable_plugin(str(args["plugin_name"])),
        "disable_plugin": lambda args: host.disable_plugin(str(args["plugin_name"])),
        "list_config_groups": lambda args: host.list_config_groups(),
        "list_config_keys": lambda args: host.list_config_keys(str(args["group"])),
        "get_config": lambda args: host.get_config(str(args["group"]), str(args["key"])),
        "set_config": lambda args: host.set_config(
            str(args["group"]), str(args["key"]), str(args["value"])
        ),
        "get_player_stats": lambda args: host.get_player_stats(),
        "search_wiki": search_wiki,
        "get_wiki_page": lambda args: wiki.get_page(str(args["title"])),
        "get_item_price": lambda args: wiki.get_item_price(str(args["item_name"])),
    }


class ToolDispatcher:
    """
    Executes tool calls by name.

    Holds no state between calls; the same call made twice reaches the
    collaborator twice. Nothing is retried.

    Args:
        catalog: Tool definitions; their required fields drive input validation
        handlers: One async handler per catalog name

    Raises:
        ValueError: If catalog and handlers do not cover the same tool names
    """

    def __init__(
        self,
        catalog: Sequence[ToolDefinition],
        handlers: Mapping[str, ToolHandler],
    ):
        self._definitions = {tool.name: tool for tool in catalog}
        unhandled = set(self._definitions) - set(handlers)
        unlisted = set(handlers) - set(self._definitions)
        if unhandled or unlisted:
            raise ValueError(
                f"Catalog and handlers disagree: no handler for {sorted(unhandled)}, "
                f"not in catalog: {sorted(unlisted)}"
            )
        self._handlers = dict(handlers)

    @classmethod
    def for_collaborators(
        cls,
        host: HostController,
        wiki: WikiLookup,
        catalog: Sequence[ToolDefinition] = TOOL_CATALOG,
    ) -> ToolDispatcher:
        """Dispatcher for the standard catalog routed to ``host`` and ``wiki``."""
        return cls(catalog, build_handlers(host, wiki))

    @property
    def tool_names(self) -> list[str]:
        return list(self._definitions)

    async def execute(self, name: str, tool_input: Mapping[str, Any] | None) -> str:
        """
        Run one tool call and return its textual result.

        Never raises for tool-level problems:
        - unknown name -> "Unknown tool: <name>"
        - anything the validation or handler raises -> "Tool error: <message>"
        """
        definition = self._definitions.get(name)
        if definition is None:
            logger.warning(f"Model requested unknown tool '{name}'")
            return UNKNOWN_TOOL_MESSAGE.format(name=name)

        try:
            args = self._validate(definition, tool_input)
            result = await self._handlers[name](args)
        except Exception as e:
            logger.warning(f"Tool '{name}' failed: {e}", exc_info=True)
            return f"{TOOL_ERROR_PREFIX}{str(e) or type(e).__name__}"

        return result if isinstance(result, str) else str(result)

    @staticmethod
    def _validate(
        definition: ToolDefinition, tool_input: Mapping[str, Any] | None
    ) -> Mapping[str, Any]:
        if tool_input is None:
            tool_input = {}
        if not isinstance(tool_input, Mapping):
            raise ToolInputError(
                f"Input for tool '{definition.name}' must be an object, "
                f"got {type(tool_input).__name__}"
            )
        missing = [
            field
            for field in definition.input_schema.required
            if tool_input.get(field) is None
        ]
        if missing:
            raise ToolInputError(
                f"Missing required input for tool '{definition.name}': {', '.join(missing)}"
            )
        return tool_input
