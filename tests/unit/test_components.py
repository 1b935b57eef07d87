"""
Tests for AgentComponents wiring.
"""

import pytest

from runeagent.components import AgentComponents
from runeagent.config.settings import AgentSettings, HostSettings, Settings
from runeagent.llm.orchestrator import AgentLoop
from runeagent.llm.session import SessionRunner
from runeagent.tools.catalog import TOOL_CATALOG
from runeagent.tools.host import LocalHostController


@pytest.fixture
def factory(tmp_path):
    return AgentComponents(Settings(
        agent=AgentSettings(max_tool_iterations=4),
        host=HostSettings(state_file=tmp_path / "state.json"),
    ))


def test_host_controller_uses_state_file(factory, tmp_path):
    host = factory.create_host_controller()
    assert isinstance(host, LocalHostController)
    assert host.state.plugins == {}


def test_in_memory_host_without_state_file():
    host = AgentComponents(Settings(host=HostSettings(state_file=None))).create_host_controller()
    assert host.state.plugins == {}


def test_completion_client_has_system_prompt(factory):
    client = factory.create_completion_client()
    assert client.model == factory.settings.llm.model
    assert "RuneLite" in client._system_prompt


@pytest.mark.asyncio
async def test_agent_loop_uses_configured_cap(factory):
    async with factory.create_wiki_client() as wiki:
        dispatcher = factory.create_dispatcher(factory.create_host_controller(), wiki)
        loop = factory.create_agent_loop(dispatcher)

    assert isinstance(loop, AgentLoop)
    assert loop.max_iterations == 4
    assert dispatcher.tool_names == [tool.name for tool in TOOL_CATALOG]


@pytest.mark.asyncio
async def test_session_starts_empty(factory):
    async with factory.create_wiki_client() as wiki:
        dispatcher = factory.create_dispatcher(factory.create_host_controller(), wiki)
        async with factory.create_session(dispatcher) as session:
            assert isinstance(session, SessionRunner)
            assert len(session.conversation) == 0
        assert session.closed


@pytest.mark.asyncio
async def test_session_cap_override(factory):
    async with factory.create_wiki_client() as wiki:
        dispatcher = factory.create_dispatcher(factory.create_host_controller(), wiki)
        loop = factory.create_agent_loop(dispatcher, max_iterations=2)

    assert loop.max_iterations == 2
    assert factory.settings.agent.max_tool_iterations == 4
