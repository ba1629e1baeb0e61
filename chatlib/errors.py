"""Client error types for chat server interactions."""

from __future__ import annotations


class ChatClientError(Exception):
    """Base error for chat client failures."""


class ChatValidationError(ChatClientError):
    """Arguments were rejected before any request was sent."""


class ChatConnectionError(ChatClientError):
    """Network connection to the chat server failed."""


class ChatTimeout(ChatConnectionError):
    """Timeout while communicating with the chat server."""


class ChatHandshakeError(ChatConnectionError):
    """Realtime WebSocket handshake failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status

    @property
    def is_unauthorized(self) -> bool:
        """True when the server refused the handshake for lack of a session."""
        return self.status in (401, 403)


class ChatResponseError(ChatClientError):
    """HTTP response error or malformed response body from the server."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


class ChatNotFoundError(ChatResponseError):
    """The server answered successfully but the requested record is absent."""

    def __init__(self, message: str) -> None:
        super().__init__(404, message)
