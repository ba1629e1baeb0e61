"""WebSocket client wrapper for the chat server realtime channel."""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed

from .errors import ChatClientError, ChatConnectionError
from .ws import connect_websocket

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class ChatWsMessageType(Enum):
    """Normalized WebSocket message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class ChatWsMessage:
    """Normalized WebSocket message payload."""

    type: ChatWsMessageType
    data: str | None = None


class ChatWsClient:
    """Wrapper around the websockets library for one realtime connection."""

    def __init__(self) -> None:
        self._ws: ClientConnection | None = None

    async def connect(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        ping_interval: int | None = 20,
        timeout: float = 15.0,
    ) -> None:
        """Open the realtime websocket."""
        self._ws = await connect_websocket(
            url,
            headers=headers,
            ping_interval=ping_interval,
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the websocket connection."""
        if self._ws is not None:
            ws, self._ws = self._ws, None
            await ws.close()

    def __aiter__(self) -> AsyncIterator[ChatWsMessage]:
        if self._ws is None:
            raise ChatConnectionError("WebSocket is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[ChatWsMessage]:
        ws = self._ws
        if ws is None:
            raise ChatConnectionError("WebSocket is not connected")

        try:
            async for msg in ws:
                normalized = self._normalize_message(msg)
                if normalized is None:
                    continue
                yield normalized
        except ConnectionClosed:
            yield ChatWsMessage(type=ChatWsMessageType.CLOSED)
        except Exception:
            yield ChatWsMessage(type=ChatWsMessageType.ERROR)
        else:
            # Normal iteration completion means the peer closed gracefully.
            yield ChatWsMessage(type=ChatWsMessageType.CLOSED)

    @staticmethod
    def _normalize_message(msg: Any) -> ChatWsMessage | None:
        """Normalize a received frame; binary frames are skipped."""
        if isinstance(msg, (bytes, bytearray, memoryview)):
            return None
        if isinstance(msg, str):
            return ChatWsMessage(ChatWsMessageType.TEXT, msg)
        return ChatWsMessage(ChatWsMessageType.TEXT, str(msg))

    @staticmethod
    def decode_json(message: ChatWsMessage) -> Any:
        """Decode a TEXT message payload into JSON."""
        if message.type is not ChatWsMessageType.TEXT:
            raise ChatClientError("Only TEXT messages can be decoded")
        if not isinstance(message.data, str):
            raise ChatClientError("Message data is not a string")
        try:
            return json.loads(message.data)
        except RecursionError as err:
            raise ValueError("Frame is nested too deeply to decode") from err
