"""
Unit tests for SessionRunner.

The agent loop is replaced by a real AgentLoop over a scripted completion
client, so these tests exercise the callback contract end to end without
touching the network.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from runeagent.llm.client import CompletionClient
from runeagent.llm.models import LLMError, Role, TextBlock, ToolUseBlock, Turn
from runeagent.llm.orchestrator import TOOL_NOTICE, AgentLoop
from runeagent.llm.session import SessionRunner
from runeagent.tools.dispatcher import ToolDispatcher


class Recorder:
    """Collects callback invocations in order."""

    def __init__(self):
        self.events: list[tuple[str, str]] = []

    def on_chunk(self, text):
        self.events.append(("chunk", text))

    def on_complete(self, text):
        self.events.append(("complete", text))

    def on_error(self, text):
        self.events.append(("error", text))

    def of(self, kind):
        return [value for event, value in self.events if event == kind]


def _text_turn(text):
    return Turn(stop_reason="end_turn", content=[TextBlock(text=text)])


def _tool_turn(call_id, name="list_plugins", text=None):
    blocks = [TextBlock(text=text)] if text else []
    blocks.append(ToolUseBlock(id=call_id, name=name, input={}))
    return Turn(stop_reason="tool_use", content=blocks)


@pytest.fixture
def client():
    return AsyncMock(spec=CompletionClient)


@pytest.fixture
def dispatcher():
    mock = AsyncMock(spec=ToolDispatcher)
    mock.execute.return_value = "Installed Plugins:\n- Agility [ENABLED]"
    return mock


@pytest.fixture
def runner(client, dispatcher):
    return SessionRunner(AgentLoop(client, dispatcher))


def _send(runner, text, recorder):
    runner.send(text, recorder.on_chunk, recorder.on_complete, recorder.on_error)


class TestSendCallbacks:

    @pytest.mark.asyncio
    async def test_send_returns_none_immediately(self, runner, client):
        client.complete.return_value = _text_turn("Hi")
        recorder = Recorder()

        result = runner.send("Hello", recorder.on_chunk, recorder.on_complete, recorder.on_error)

        assert result is None
        # Nothing has run yet: the worker only gets scheduled on the next await
        assert recorder.events == []
        await runner.join()
        await runner.aclose()

    @pytest.mark.asyncio
    async def test_scripted_run_callbacks(self, runner, client):
        client.complete.side_effect = [
            _tool_turn("t1", text="Checking…"),
            _text_turn("Done."),
        ]
        recorder = Recorder()

        _send(runner, "What plugins do I have?", recorder)
        await runner.join()

        assert recorder.events == [
            ("chunk", "Checking…"),
            ("chunk", TOOL_NOTICE.format(name="list_plugins")),
            ("chunk", "Done."),
            ("complete", "Checking…Done."),
        ]
        assert [m.role for m in runner.conversation] == [
            Role.USER, Role.ASSISTANT, Role.USER, Role.ASSISTANT,
        ]
        await runner.aclose()

    @pytest.mark.asyncio
    async def test_endless_tools_still_complete(self, runner, client):
        counter = iter(range(100))
        client.complete.side_effect = lambda conversation, tools: _tool_turn(f"t{next(counter)}")
        recorder = Recorder()

        _send(runner, "Loop forever", recorder)
        await runner.join()

        assert client.complete.await_count == 10
        assert len(recorder.of("complete")) == 1
        assert recorder.of("error") == []
        await runner.aclose()

    @pytest.mark.asyncio
    async def test_llm_error_calls_on_error_only(self, runner, client):
        client.complete.side_effect = LLMError("API key not configured.")
        recorder = Recorder()

        _send(runner, "Hello", recorder)
        await runner.join()

        assert recorder.of("complete") == []
        assert recorder.of("error") == ["Error: API key not configured."]
        await runner.aclose()

    @pytest.mark.asyncio
    async def test_unexpected_error_reported_and_worker_survives(self, runner, client):
        client.complete.side_effect = [RuntimeError("boom"), _text_turn("Recovered.")]
        first, second = Recorder(), Recorder()

        _send(runner, "one", first)
        _send(runner, "two", second)
        await runner.join()

        assert first.of("error") == ["Error: boom"]
        assert second.of("complete") == ["Recovered."]
        await runner.aclose()

    @pytest.mark.asyncio
    async def test_failure_does_not_roll_back_conversation(self, runner, client):
        client.complete.side_effect = LLMError("timeout")

        _send(runner, "Hello", Recorder())
        await runner.join()

        assert len(runner.conversation) == 1
        assert runner.conversation[0].text == "Hello"
        await runner.aclose()

    @pytest.mark.asyncio
    async def test_raising_chunk_callback_does_not_break_run(self, runner, client):
        client.complete.return_value = _text_turn("Hi")
        on_complete = MagicMock()
        on_error = MagicMock()

        def bad_chunk(_text):
            raise ValueError("UI went away")

        runner.send("Hello", bad_chunk, on_complete, on_error)
        await runner.join()

        on_complete.assert_called_once_with("Hi")
        on_error.assert_not_called()
        await runner.aclose()

    @pytest.mark.asyncio
    async def test_raising_complete_callback_does_not_trigger_error(self, runner, client):
        client.complete.return_value = _text_turn("Hi")
        on_error = MagicMock()

        runner.send("Hello", MagicMock(), MagicMock(side_effect=ValueError("x")), on_error)
        await runner.join()

        on_error.assert_not_called()
        await runner.aclose()


class TestSerialization:

    @pytest.mark.asyncio
    async def test_sends_processed_in_order_without_interleaving(self, client, dispatcher):
        release = asyncio.Event()
        calls = []

        async def complete(conversation, tools):
            calls.append(conversation[-1].text)
            if len(calls) == 1:
                await release.wait()
            return _text_turn(f"answer {len(calls)}")

        client.complete.side_effect = complete
        runner = SessionRunner(AgentLoop(client, dispatcher))
        recorder = Recorder()

        _send(runner, "first", recorder)
        _send(runner, "second", recorder)
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        # Second message must not be appended while the first is running
        assert [m.text for m in runner.conversation] == ["first"]
        assert runner.busy is True

        release.set()
        await runner.join()

        assert calls == ["first", "second"]
        assert recorder.of("complete") == ["answer 1", "answer 2"]
        assert [m.text for m in runner.conversation] == [
            "first", "answer 1", "second", "answer 2",
        ]
        await runner.aclose()


class TestClear:

    @pytest.mark.asyncio
    async def test_clear_then_send_starts_fresh(self, runner, client):
        client.complete.side_effect = [_text_turn("A"), _text_turn("B")]

        _send(runner, "old question", Recorder())
        await runner.join()
        runner.clear()
        assert len(runner.conversation) == 0

        _send(runner, "new question", Recorder())
        await runner.join()

        assert runner.conversation[0].role is Role.USER
        assert runner.conversation[0].text == "new question"
        assert len(runner.conversation) == 2
        await runner.aclose()

    @pytest.mark.asyncio
    async def test_clear_while_busy_raises(self, client, dispatcher):
        release = asyncio.Event()

        async def complete(conversation, tools):
            await release.wait()
            return _text_turn("late")

        client.complete.side_effect = complete
        runner = SessionRunner(AgentLoop(client, dispatcher))
        _send(runner, "slow", Recorder())
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        with pytest.raises(RuntimeError):
            runner.clear()

        release.set()
        await runner.join()
        await runner.aclose()


class TestShutdown:

    @pytest.mark.asyncio
    async def test_send_after_shutdown_raises(self, runner):
        runner.shutdown()

        with pytest.raises(RuntimeError):
            runner.send("Hello", print, print, print)
        assert runner.closed is True

    @pytest.mark.asyncio
    async def test_shutdown_abandons_in_flight_work(self, client, dispatcher):
        started = asyncio.Event()

        async def complete(conversation, tools):
            started.set()
            await asyncio.Event().wait()  # never returns

        client.complete.side_effect = complete
        runner = SessionRunner(AgentLoop(client, dispatcher))
        recorder, queued = Recorder(), Recorder()

        _send(runner, "stuck", recorder)
        _send(runner, "queued", queued)
        await started.wait()

        await runner.aclose()
        await asyncio.wait_for(runner.join(), timeout=1)

        assert recorder.of("complete") == []
        assert queued.events == []
        assert client.complete.await_count == 1

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(self, runner):
        runner.shutdown()
        runner.shutdown()
        await runner.aclose()
