"""
Tool catalog.

The fixed list of tools the model may call, built once at import time and
sent with every completion request. Order is stable: it is the order the
model sees the tools in.
"""

from __future__ import annotations

from runeagent.tools.base import InputSchema, ToolDefinition, ToolProperty


def _tool(
    name: str,
    description: str,
    properties: dict[str, tuple[str, str]] | None = None,
    required: tuple[str, ...] = (),
) -> ToolDefinition:
    """Build a definition from ``{field: (type, description)}`` pairs."""
    props = {
        field: ToolProperty(type=kind, description=text)
        for field, (kind, text) in (properties or {}).items()
    }
    return ToolDefinition(
        name=name,
        description=description,
        input_schema=InputSchema(properties=props, required=required),
    )


TOOL_CATALOG: tuple[ToolDefinition, ...] = (
    # --- RuneLite control ---
    _tool(
        "list_plugins",
        "List all installed RuneLite plugins and whether they are enabled or disabled.",
    ),
    _tool(
        "enable_plugin",
        "Enable a RuneLite plugin by name. The plugin will be started immediately.",
        {"plugin_name": ("string", "Name of the plugin to enable (case-insensitive, partial match supported)")},
        required=("plugin_name",),
    ),
    _tool(
        "disable_plugin",
        "Disable a RuneLite plugin by name. The plugin will be stopped immediately.",
        {"plugin_name": ("string", "Name of the plugin to disable (case-insensitive, partial match supported)")},
        required=("plugin_name",),
    ),
    _tool(
        "list_config_groups",
        "List all available RuneLite configuration groups. "
        "Each group corresponds to a plugin or system setting.",
    ),
    _tool(
        "list_config_keys",
        "List all configuration keys and their current values for a specific config group.",
        {"group": ("string", "Configuration group name to list keys for")},
        required=("group",),
    ),
    _tool(
        "get_config",
        "Get the current value of a specific RuneLite plugin configuration setting.",
        {
            "group": ("string", "Configuration group name (e.g., 'grounditems', 'agility')"),
            "key": ("string", "Configuration key name"),
        },
        required=("group", "key"),
    ),
    _tool(
        "set_config",
        "Set a RuneLite plugin configuration value. Use list_config_keys first to see available keys.",
        {
            "group": ("string", "Configuration group name"),
            "key": ("string", "Configuration key name"),
            "value": ("string", "New value to set (as a string)"),
        },
        required=("group", "key", "value"),
    ),
    # --- Player info ---
    _tool(
        "get_player_stats",
        "Get the current player's skill levels, XP, and combat level. "
        "Only works when logged into the game.",
    ),
    # --- OSRS Wiki ---
    _tool(
        "search_wiki",
        "Search the Old School RuneScape Wiki for articles matching a query. "
        "Returns titles and snippets.",
        {
            "query": ("string", "Search query for the OSRS Wiki"),
            "limit": ("integer", "Maximum number of results (default 5, max 10)"),
        },
        required=("query",),
    ),
    _tool(
        "get_wiki_page",
        "Get the full text content of a specific OSRS Wiki page by its exact title.",
        {"title": ("string", "Exact title of the wiki page to retrieve")},
        required=("title",),
    ),
    _tool(
        "get_item_price",
        "Look up Grand Exchange price information for an OSRS item.",
        {"item_name": ("string", "Name of the item to look up")},
        required=("item_name",),
    ),
)

TOOL_NAMES: frozenset[str] = frozenset(t.name for t in TOOL_CATALOG)

if len(TOOL_NAMES) != len(TOOL_CATALOG):
    raise RuntimeError("Tool names in TOOL_CATALOG must be unique")


def get_tool(name: str) -> ToolDefinition | None:
    """Look up a catalog entry by name."""
    for tool in TOOL_CATALOG:
        if tool.name == name:
            return tool
    return None
