"""
Base classes for tools.

Defines the schema models sent to the LLM for every tool, and the abstract
collaborators the tools are routed to:

- HostController: the RuneLite client (plugins, config, player)
- WikiLookup: the OSRS Wiki and its Grand Exchange prices API

Every collaborator operation returns a human-readable string. The strings
are fed back to the model verbatim, so their wording is part of the
contract with the model, not just a display format.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ToolProperty(BaseModel):
    """One input field of a tool."""

    type: Literal["string", "integer", "number", "boolean"] = "string"
    description: str

    model_config = ConfigDict(frozen=True)


class InputSchema(BaseModel):
    """JSON-Schema-like description of a tool's input object."""

    type: Literal["object"] = "object"
    properties: dict[str, ToolProperty] = Field(default_factory=dict)
    required: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _check_required_fields_exist(self) -> InputSchema:
        missing = [name for name in self.required if name not in self.properties]
        if missing:
            raise ValueError(f"Required fields not declared in properties: {missing}")
        if len(set(self.required)) != len(self.required):
            raise ValueError(f"Duplicate required fields: {list(self.required)}")
        return self


class ToolDefinition(BaseModel):
    """
    A tool as advertised to the model.

    Example:
        >>> ToolDefinition(
        ...     name="get_wiki_page",
        ...     description="Get the full text of an OSRS Wiki page.",
        ...     input_schema=InputSchema(
        ...         properties={"title": ToolProperty(description="Exact page title")},
        ...         required=("title",),
        ...     ),
        ... )
    """

    name: str = Field(pattern=r"^[a-z][a-z0-9_]*$")
    description: str = Field(min_length=1)
    input_schema: InputSchema = Field(default_factory=InputSchema)

    model_config = ConfigDict(frozen=True)

    def to_schema(self) -> dict[str, Any]:
        """Plain dict form: name, description, input_schema."""
        return self.model_dump(mode="json")


class HostController(ABC):
    """Operations on the game client the assistant runs inside."""

    @abstractmethod
    async def list_plugins(self) -> str:
        """List installed plugins with their enabled/disabled status."""

    @abstractmethod
    async def enable_plugin(self, plugin_name: str) -> str:
        """Enable a plugin (case-insensitive, partial names accepted)."""

    @abstractmethod
    async def disable_plugin(self, plugin_name: str) -> str:
        """Disable a plugin (case-insensitive, partial names accepted)."""

    @abstractmethod
    async def list_config_groups(self) -> str:
        """List configuration groups."""

    @abstractmethod
    async def list_config_keys(self, group: str) -> str:
        """List keys and current values in one configuration group."""

    @abstractmethod
    async def get_config(self, group: str, key: str) -> str:
        """Read one configuration value."""

    @abstractmethod
    async def set_config(self, group: str, key: str, value: str) -> str:
        """Write one configuration value."""

    @abstractmethod
    async def get_player_stats(self) -> str:
        """Describe the logged-in player's skills, XP and combat level."""


class WikiLookup(ABC):
    """Read-only lookups against the OSRS Wiki."""

    @abstractmethod
    async def search(self, query: str, limit: int = 5) -> str:
        """Search articles; returns titles, snippets and links."""

    @abstractmethod
    async def get_page(self, title: str) -> str:
        """Return the plain-text content of one article."""

    @abstractmethod
    async def get_item_price(self, item_name: str) -> str:
        """Return latest Grand Exchange prices for an item."""

    async def aclose(self) -> None:
        """Release any held resources."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
