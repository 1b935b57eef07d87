"""
Component factory.

Centralises the construction of the agent from settings, so the CLI, tests
and any future front end wire things up the same way.
"""

from __future__ import annotations

from runeagent.config.settings import Settings
from runeagent.llm.client import CompletionClient, load_system_prompt
from runeagent.llm.orchestrator import AgentLoop
from runeagent.llm.session import SessionRunner
from runeagent.tools.base import HostController, WikiLookup
from runeagent.tools.catalog import TOOL_CATALOG
from runeagent.tools.dispatcher import ToolDispatcher
from runeagent.tools.host import LocalHostController
from runeagent.tools.wiki import WikiClient


class AgentComponents:
    """
    Factory for building agent components from settings.

    Example::

        factory = AgentComponents(settings)
        async with factory.create_wiki_client() as wiki:
            dispatcher = factory.create_dispatcher(factory.create_host_controller(), wiki)
            async with factory.create_session(dispatcher) as session:
                session.send("Price of a dragon bones?", print, print, print)
                await session.join()
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def create_host_controller(self) -> LocalHostController:
        """Local client state, loaded from HOST__STATE_FILE when set."""
        if self.settings.host.state_file:
            return LocalHostController.from_file(self.settings.host.state_file)
        return LocalHostController()

    def create_wiki_client(self) -> WikiClient:
        return WikiClient(self.settings.wiki)

    def create_dispatcher(self, host: HostController, wiki: WikiLookup) -> ToolDispatcher:
        return ToolDispatcher.for_collaborators(host, wiki, TOOL_CATALOG)

    def create_completion_client(self) -> CompletionClient:
        return CompletionClient(self.settings.llm, system_prompt=load_system_prompt())

    def create_agent_loop(
        self, dispatcher: ToolDispatcher, max_iterations: int | None = None
    ) -> AgentLoop:
        """Agent loop capped at ``max_iterations``, or AGENT__MAX_TOOL_ITERATIONS if None."""
        return AgentLoop(
            client=self.create_completion_client(),
            dispatcher=dispatcher,
            catalog=TOOL_CATALOG,
            max_iterations=(
                max_iterations if max_iterations is not None
                else self.settings.agent.max_tool_iterations
            ),
        )

    def create_session(
        self, dispatcher: ToolDispatcher, max_iterations: int | None = None
    ) -> SessionRunner:
        """New session with an empty conversation. Call from a running event loop."""
        return SessionRunner(self.create_agent_loop(dispatcher, max_iterations))
