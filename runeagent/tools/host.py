"""
Local host controller.

Implements HostController over an in-memory snapshot of the client: installed
plugins, configuration groups and the logged-in player. The snapshot can be
loaded from a JSON file, and plugin/config changes are written back to it.

State file format:

    {
      "plugins": {"Agility": true, "Ground Items": false},
      "config": {"grounditems": {"highlightedItems": "coins"}},
      "player": {
        "name": "Zezima",
        "combat_level": 126,
        "skills": {"Attack": {"level": 99, "boosted": 112, "xp": 13034431}}
      }
    }
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, Field

from runeagent.tools.base import HostController

logger = logging.getLogger(__name__)


def _config_value(value: Any) -> Any:
    """Store JSON scalars the way the client does: as strings, booleans lowercase."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


ConfigValue = Annotated[str, BeforeValidator(_config_value)]


class SkillLevel(BaseModel):
    level: int = Field(ge=1, description="Real (unboosted) level")
    boosted: int | None = Field(default=None, ge=0, description="Current level incl. boosts")
    xp: int = Field(default=0, ge=0)


class PlayerState(BaseModel):
    name: str
    combat_level: int = Field(ge=3)
    skills: dict[str, SkillLevel] = Field(default_factory=dict)


class HostState(BaseModel):
    """Serializable snapshot of the client."""

    plugins: dict[str, bool] = Field(default_factory=dict)
    config: dict[str, dict[str, ConfigValue]] = Field(default_factory=dict)
    player: PlayerState | None = None


class LocalHostController(HostController):
    """
    HostController backed by a HostState.

    Args:
        state: Initial client state (empty if omitted)
        state_file: If set, the state is written here after every change
    """

    def __init__(self, state: HostState | None = None, state_file: Path | None = None):
        self._state = state or HostState()
        self._state_file = state_file

    @classmethod
    def from_file(cls, state_file: Path) -> LocalHostController:
        """
        Load state from ``state_file``; a missing file starts empty.

        Raises:
            pydantic.ValidationError: If the file content is not valid state JSON
        """
        state_file = Path(state_file)
        if state_file.exists():
            state = HostState.model_validate_json(state_file.read_text(encoding="utf-8"))
            logger.info(
                f"Loaded host state from {state_file}: {len(state.plugins)} plugins, "
                f"{len(state.config)} config groups"
            )
        else:
            logger.info(f"Host state file {state_file} not found - starting empty")
            state = HostState()
        return cls(state=state, state_file=state_file)

    @property
    def state(self) -> HostState:
        return self._state

    # ------------------------------------------------------------------
    # Plugins
    # ------------------------------------------------------------------

    async def list_plugins(self) -> str:
        lines = [
            f"- {name} [{'ENABLED' if enabled else 'DISABLED'}]"
            for name, enabled in sorted(self._state.plugins.items(), key=lambda kv: kv[0].lower())
        ]
        return "Installed Plugins:\n" + "\n".join(lines)

    async def enable_plugin(self, plugin_name: str) -> str:
        return self._toggle_plugin(plugin_name, enabled=True)

    async def disable_plugin(self, plugin_name: str) -> str:
        return self._toggle_plugin(plugin_name, enabled=False)

    def _toggle_plugin(self, plugin_name: str, enabled: bool) -> str:
        name = self._find_plugin(plugin_name)
        if name is None:
            return f"Plugin not found: {plugin_name}. Use list_plugins to see available plugins."

        state_word = "enabled" if enabled else "disabled"
        if self._state.plugins[name] == enabled:
            return f"Plugin '{name}' is already {state_word}."

        self._state.plugins[name] = enabled
        self._save()
        logger.info(f"Plugin '{name}' {state_word}")
        return f"Successfully {state_word} plugin: {name}"

    def _find_plugin(self, name: str) -> str | None:
        """Exact case-insensitive match first, then first substring match."""
        lower = name.lower()
        for plugin in self._state.plugins:
            if plugin.lower() == lower:
                return plugin
        for plugin in self._state.plugins:
            if lower in plugin.lower():
                return plugin
        return None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    async def list_config_groups(self) -> str:
        groups = sorted(self._state.config)
        if not groups:
            return "No configuration groups found."
        return "Configuration groups:\n" + "\n".join(f"- {g}" for g in groups)

    async def list_config_keys(self, group: str) -> str:
        keys = self._state.config.get(group, {})
        if not keys:
            return f"No config keys found for group '{group}'."
        lines = [f"Config keys for [{group}]:"]
        lines.extend(f"  {key} = {keys[key]}" for key in sorted(keys))
        return "\n".join(lines) + "\n"

    async def get_config(self, group: str, key: str) -> str:
        value = self._state.config.get(group, {}).get(key)
        if value is None:
            return f"No config value found for group='{group}', key='{key}'."
        return f"Config [{group}.{key}] = {value}"

    async def set_config(self, group: str, key: str, value: str) -> str:
        self._state.config.setdefault(group, {})[key] = value
        self._save()
        logger.info(f"Config [{group}.{key}] set")
        return f"Set config [{group}.{key}] = {value}"

    # ------------------------------------------------------------------
    # Player
    # ------------------------------------------------------------------

    async def get_player_stats(self) -> str:
        player = self._state.player
        if player is None:
            return "Not logged in - no player stats available."

        lines = [
            f"Player: {player.name}",
            f"Combat Level: {player.combat_level}",
            "",
            "Skills:",
        ]
        for skill, stats in player.skills.items():
            boosted = stats.boosted if stats.boosted is not None else stats.level
            lines.append(f"  {skill:<15} Level: {boosted}/{stats.level}  XP: {stats.xp:,}")
        return "\n".join(lines) + "\n"

    def _save(self) -> None:
        if self._state_file is None:
            return
        self._state_file.parent.mkdir(parents=True, exist_ok=True)
        self._state_file.write_text(self._state.model_dump_json(indent=2), encoding="utf-8")
