"""Pytest configuration and shared fixtures."""
import asyncio
import json
from collections import deque

import httpx
import pytest

from civicchat.assistant import ConversationStateMachine
from civicchat.retry import ReconnectPolicy, RetryPolicy
from civicchat.transport import AssistantReply, ChatError, ChatTransport, Err, ErrorKind, Ok


def reply(content: str = "Hola, ¿en qué puedo ayudarte?", **metadata) -> Ok:
    """Successful transport result."""
    return Ok(AssistantReply(content=content, **metadata))


def failure(kind: ErrorKind, status_code: int | None = None, raw: str = "") -> Err:
    """Failed transport result."""
    return Err(ChatError(kind=kind, status_code=status_code, raw_excerpt=raw))


class ScriptedTransport(ChatTransport):
    """In-memory transport answering from a script of results.

    When the script runs out every turn is answered with an echo.
    Setting ``gate`` holds every send until the event is set.
    """

    def __init__(self, results=None, probe_results=None):
        self.results = deque(results or [])
        self.probe_results = deque(probe_results or [])
        self.sent: list[tuple[str, str | None]] = []
        self.feedback: list[tuple[str | None, str, str, str | None]] = []
        self.probes = 0
        self.closed = False
        self.gate: asyncio.Event | None = None

    async def send(self, message, session_token, *, user_id=None):
        self.sent.append((message, session_token))
        gate = self.gate
        if gate is not None:
            await gate.wait()
        if self.results:
            return self.results.popleft()
        return reply(f"echo: {message}")

    async def probe(self):
        self.probes += 1
        if self.probe_results:
            return self.probe_results.popleft()
        return True

    async def send_feedback(self, session_token, message_id, feedback_type, comment=None):
        self.feedback.append((session_token, message_id, feedback_type, comment))
        return Ok(None)

    async def close(self):
        self.closed = True


@pytest.fixture
def transport():
    """Scripted transport with an empty script."""
    return ScriptedTransport()


@pytest.fixture
def fast_retry():
    """Retry policy without real waiting."""
    return RetryPolicy(max_retries=2, initial_delay=0.0, max_delay=0.0)


@pytest.fixture
def fast_reconnect():
    """Reconnect policy probing without real waiting."""
    return ReconnectPolicy(probe_interval=0.0, max_probe_attempts=3)


@pytest.fixture
def make_machine(transport, fast_retry, fast_reconnect):
    """Factory for state machines wired to the scripted transport."""
    counter = iter(range(1, 1000))

    def _make(**kwargs) -> ConversationStateMachine:
        kwargs.setdefault("retry_policy", fast_retry)
        kwargs.setdefault("reconnect_policy", fast_reconnect)
        kwargs.setdefault("token_factory", lambda: f"web_token_{next(counter)}")
        return ConversationStateMachine(kwargs.pop("transport", transport), **kwargs)

    return _make


def json_response(status_code: int, payload) -> httpx.Response:
    """httpx response with a JSON body."""
    return httpx.Response(
        status_code,
        content=json.dumps(payload).encode(),
        headers={"content-type": "application/json"},
    )


@pytest.fixture
def mock_client():
    """Factory for httpx clients backed by a MockTransport handler."""
    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url="http://portal.test/api",
            transport=httpx.MockTransport(handler),
        )

    return _make
