"""Tests for realtime URL building and WebSocket connect error mapping."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from websockets.exceptions import InvalidHandshake, InvalidStatus

from chatlib.errors import ChatConnectionError, ChatHandshakeError, ChatTimeout
from chatlib.ws import connect_websocket, realtime_url


class TestRealtimeUrl:
    """Tests for realtime_url()."""

    @pytest.mark.parametrize(
        ("base_url", "expected"),
        [
            ("https://chat.example.org", "wss://chat.example.org/realtime?alias=alice"),
            ("http://localhost:4000", "ws://localhost:4000/realtime?alias=alice"),
            ("https://example.org/chat/", "wss://example.org/chat/realtime?alias=alice"),
        ],
    )
    def test_scheme_and_path(self, base_url: str, expected: str) -> None:
        assert realtime_url(base_url, "alice") == expected

    def test_handle_is_query_encoded(self) -> None:
        url = realtime_url("https://chat.example.org", "al ice&co")
        assert url.endswith("?alias=al+ice%26co")

    def test_custom_path(self) -> None:
        url = realtime_url("https://chat.example.org", "bob", path="/ws")
        assert url == "wss://chat.example.org/ws?alias=bob"


class TestConnectWebsocket:
    """Tests for connect_websocket() error mapping."""

    async def test_connect_success(self) -> None:
        mock_ws = MagicMock()
        with patch(
            "chatlib.ws.websockets.connect", new=AsyncMock(return_value=mock_ws)
        ) as mock_connect:
            result = await connect_websocket(
                "wss://chat.example.org/realtime?alias=alice",
                headers={"Cookie": "sid=1"},
            )

        assert result is mock_ws
        kwargs = mock_connect.call_args.kwargs
        assert kwargs["additional_headers"] == {"Cookie": "sid=1"}
        assert kwargs["ping_interval"] == 20

    async def test_timeout(self) -> None:
        with patch(
            "chatlib.ws.websockets.connect", new=AsyncMock(side_effect=TimeoutError())
        ):
            with pytest.raises(ChatTimeout, match="timed out"):
                await connect_websocket("wss://chat.example.org/realtime?alias=a")

    async def test_rejected_status(self) -> None:
        response = MagicMock()
        response.status_code = 401
        with patch(
            "chatlib.ws.websockets.connect",
            new=AsyncMock(side_effect=InvalidStatus(response)),
        ):
            with pytest.raises(ChatHandshakeError) as exc_info:
                await connect_websocket("wss://chat.example.org/realtime?alias=a")

        assert exc_info.value.status == 401
        assert exc_info.value.is_unauthorized

    async def test_invalid_handshake(self) -> None:
        with patch(
            "chatlib.ws.websockets.connect",
            new=AsyncMock(side_effect=InvalidHandshake("bad upgrade")),
        ):
            with pytest.raises(ChatHandshakeError) as exc_info:
                await connect_websocket("wss://chat.example.org/realtime?alias=a")

        assert not exc_info.value.is_unauthorized

    async def test_os_error(self) -> None:
        with patch(
            "chatlib.ws.websockets.connect",
            new=AsyncMock(side_effect=ConnectionRefusedError()),
        ):
            with pytest.raises(ChatConnectionError, match="connection failed"):
                await connect_websocket("wss://chat.example.org/realtime?alias=a")
