"""Pytest configuration and fixtures for chatlib tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from chatlib.ws_client import ChatWsMessage, ChatWsMessageType

BASE_URL = "https://chat.example.org"


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    session = MagicMock(spec=aiohttp.ClientSession)
    session.cookie_jar = MagicMock()
    session.cookie_jar.filter_cookies.return_value = {}
    return session


def create_mock_response(
    status: int = 200,
    json_data: Any = None,
    text_data: str | None = None,
    reason: str = "OK",
) -> AsyncMock:
    """Create a configured mock response usable as ``async with``.

    Args:
        status: HTTP status code
        json_data: Body to serialize as JSON for the text() call
        text_data: Raw body for the text() call (wins over json_data)
        reason: HTTP reason phrase

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status
    response.reason = reason

    if text_data is not None:
        response.text.return_value = text_data
    elif json_data is not None:
        response.text.return_value = json.dumps(json_data)
    else:
        response.text.return_value = ""

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


def queue_responses(session: MagicMock, *responses: AsyncMock) -> None:
    """Make successive session.request() calls return the given responses."""
    session.request.side_effect = list(responses)


def identity_dto(handle: str, identity_id: str | None = None, **extra: Any) -> dict[str, Any]:
    dto = {
        "id": identity_id or f"id-{handle}",
        "name": handle,
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-01T00:00:00.000Z",
    }
    dto.update(extra)
    return dto


def message_dto(
    message_id: str,
    sender: str,
    recipients: list[str],
    *,
    created_at: str = "2024-03-01T12:00:00.000Z",
    payload: Any = None,
) -> dict[str, Any]:
    return {
        "id": message_id,
        "createdAt": created_at,
        "updatedAt": created_at,
        "sender": identity_dto(sender),
        "recipients": [identity_dto(r) for r in recipients],
        "payload": json.dumps(payload if payload is not None else {"text": message_id}),
    }


class FakeWsClient:
    """In-memory stand-in for ChatWsClient driven by the test."""

    def __init__(
        self,
        *,
        connect_error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.connect_error = connect_error
        self.gate = gate
        self.connect_calls: list[tuple[str, dict[str, str] | None]] = []
        self.closed = False
        self.close_gate: asyncio.Event | None = None
        self._inbox: asyncio.Queue[ChatWsMessage | Exception | None] = asyncio.Queue()

    async def connect(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        ping_interval: int | None = 20,
        timeout: float = 15.0,
    ) -> None:
        self.connect_calls.append((url, headers))
        if self.gate is not None:
            await self.gate.wait()
        if self.connect_error is not None:
            raise self.connect_error

    async def close(self) -> None:
        if self.close_gate is not None:
            await self.close_gate.wait()
        self.closed = True
        self._inbox.put_nowait(None)

    def push_text(self, data: str) -> None:
        self._inbox.put_nowait(ChatWsMessage(ChatWsMessageType.TEXT, data))

    def push_frame(self, frame: dict[str, Any]) -> None:
        self.push_text(json.dumps(frame))

    def push_closed(self) -> None:
        self._inbox.put_nowait(ChatWsMessage(ChatWsMessageType.CLOSED))

    def push_error(self, error: Exception) -> None:
        self._inbox.put_nowait(error)

    def __aiter__(self):
        return self._iter_messages()

    async def _iter_messages(self):
        while True:
            msg = await self._inbox.get()
            if msg is None:
                return
            if isinstance(msg, Exception):
                raise msg
            yield msg


class FakeWsFactory:
    """Builds FakeWsClients and remembers them in creation order."""

    def __init__(self) -> None:
        self.clients: list[FakeWsClient] = []
        self.connect_error: Exception | None = None
        self.gate: asyncio.Event | None = None

    def __call__(self) -> FakeWsClient:
        client = FakeWsClient(connect_error=self.connect_error, gate=self.gate)
        self.clients.append(client)
        return client


@pytest.fixture
def ws_factory() -> FakeWsFactory:
    return FakeWsFactory()


async def settle(rounds: int = 10) -> None:
    """Let pending tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)
