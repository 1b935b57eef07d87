"""
Session runner.

Serializes every request for one conversation onto a single asyncio worker
task and reports results through callbacks:

    runner.send("Turn on the agility plugin", on_chunk, on_complete, on_error)

send() never blocks and never returns a result. For each send, exactly one
of on_complete (full accumulated text) or on_error (human-readable message)
is called, after any on_chunk calls. Sends queue up in FIFO order, so a second
send issued while the first is running waits for it; the conversation is
only ever touched by the worker.

Callbacks are plain functions called on the worker. An exception raised by a
callback is logged and otherwise ignored, so one misbehaving UI hook cannot
take the session down.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from runeagent.llm.conversation import Conversation
from runeagent.llm.models import LLMError
from runeagent.llm.orchestrator import AgentLoop

logger = logging.getLogger(__name__)

TextCallback = Callable[[str], None]


@dataclass(frozen=True)
class _Job:
    text: str
    on_chunk: TextCallback
    on_complete: TextCallback
    on_error: TextCallback


def _invoke(callback: TextCallback, value: str, label: str) -> None:
    try:
        callback(value)
    except Exception:
        logger.exception(f"{label} callback raised")


class SessionRunner:
    """
    One conversation plus the single worker that mutates it.

    Must be used from within a running event loop; the worker task starts on
    the first send() (or an explicit start()).

    Args:
        agent_loop: The loop that answers each message
        conversation: Initial conversation (default: empty)
    """

    def __init__(self, agent_loop: AgentLoop, conversation: Conversation | None = None):
        self._agent_loop = agent_loop
        self._conversation = conversation if conversation is not None else Conversation()
        self._queue: asyncio.Queue[_Job] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self._in_flight = False
        self._closed = False

    @property
    def conversation(self) -> Conversation:
        """The session's conversation. Read it only while the runner is idle."""
        return self._conversation

    @property
    def busy(self) -> bool:
        """True while a send is being processed."""
        return self._in_flight

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        """Start the worker task if it is not running."""
        if self._closed:
            raise RuntimeError("Session runner has been shut down")
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(
                self._run_worker(), name="runeagent-session-worker"
            )
            logger.debug("Session worker started")

    def send(
        self,
        text: str,
        on_chunk: TextCallback,
        on_complete: TextCallback,
        on_error: TextCallback,
    ) -> None:
        """
        Queue a user message; results arrive via the callbacks.

        Raises:
            RuntimeError: If the runner has been shut down, or no event loop
                          is running
        """
        if self._closed:
            raise RuntimeError("Session runner has been shut down")
        self.start()
        self._queue.put_nowait(_Job(text, on_chunk, on_complete, on_error))

    async def join(self) -> None:
        """Wait until every queued send has been processed."""
        await self._queue.join()

    def clear(self) -> None:
        """
        Start a new conversation.

        Precondition: no send is in flight. Queued sends that have not
        started yet will run against the cleared conversation.

        Raises:
            RuntimeError: If a send is currently being processed
        """
        if self._in_flight:
            raise RuntimeError("Cannot clear the conversation while a message is being processed")
        self._conversation.clear()
        logger.info("Conversation cleared")

    def shutdown(self) -> None:
        """
        Stop accepting work and abandon anything queued or in flight.

        No callbacks are guaranteed after this call.
        """
        if self._closed:
            return
        self._closed = True

        dropped = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1

        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
        logger.info(f"Session shut down ({dropped} queued messages dropped)")

    async def aclose(self) -> None:
        """shutdown() and wait for the worker task to finish cancelling."""
        self.shutdown()
        worker, self._worker = self._worker, None
        if worker is not None:
            try:
                await worker
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> SessionRunner:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    async def _run_worker(self) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self._process(job)
            finally:
                self._queue.task_done()

    async def _process(self, job: _Job) -> None:
        self._in_flight = True
        try:
            self._conversation.add_user_text(job.text)
            response = await self._agent_loop.run(
                self._conversation,
                on_chunk=lambda chunk: _invoke(job.on_chunk, chunk, "on_chunk"),
            )
        except LLMError as e:
            self._in_flight = False
            logger.error(f"Agent run failed: {e}")
            _invoke(job.on_error, f"Error: {e}", "on_error")
        except Exception as e:
            self._in_flight = False
            logger.exception("Agent error")
            _invoke(job.on_error, f"Error: {e}", "on_error")
        else:
            self._in_flight = False
            if response.truncated:
                logger.info(f"Response truncated after {response.rounds} rounds")
            _invoke(job.on_complete, response.text, "on_complete")
        finally:
            self._in_flight = False
