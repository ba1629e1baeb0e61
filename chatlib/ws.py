"""WebSocket helpers for the chat server realtime channel."""

from __future__ import annotations

import asyncio
from urllib.parse import urlencode, urlsplit, urlunsplit

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidStatus,
    InvalidURI,
    WebSocketException,
)

from .errors import (
    ChatConnectionError,
    ChatHandshakeError,
    ChatTimeout,
)

_WS_SCHEMES = {"https": "wss", "http": "ws", "wss": "wss", "ws": "ws"}


def realtime_url(base_url: str, handle: str, *, path: str = "/realtime") -> str:
    """Build the realtime URL for a handle from the HTTP base URL.

    https maps to wss and http to ws; the handle travels as the ``alias``
    query parameter.
    """
    parts = urlsplit(base_url)
    scheme = _WS_SCHEMES.get(parts.scheme.lower(), "wss")
    base_path = parts.path.rstrip("/")
    return urlunsplit(
        (scheme, parts.netloc, f"{base_path}{path}", urlencode({"alias": handle}), "")
    )


async def connect_websocket(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    ping_interval: int | None = 20,
    timeout: float = 15.0,
) -> ClientConnection:
    """Connect to a WebSocket endpoint.

    Args:
        url: Full ws:// or wss:// URL
        headers: Extra handshake headers (e.g. the session Cookie)
        ping_interval: Interval for ping frames
        timeout: Connection timeout
    """
    try:
        return await asyncio.wait_for(
            websockets.connect(
                url,
                additional_headers=headers,
                ping_interval=ping_interval,
                close_timeout=5,
                max_size=None,
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise ChatTimeout("WebSocket connection timed out") from err
    except InvalidStatus as err:
        status = err.response.status_code
        raise ChatHandshakeError(
            f"WebSocket handshake rejected with HTTP {status}", status=status
        ) from err
    except (InvalidHandshake, InvalidURI) as err:
        raise ChatHandshakeError("WebSocket handshake failed") from err
    except (OSError, WebSocketException) as err:
        raise ChatConnectionError("WebSocket connection failed") from err
