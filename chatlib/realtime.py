"""Realtime subscription manager for chat server notifications.

This module owns the realtime side of the client. It handles:
- One WebSocket per identity handle, opened lazily on subscribe
- Coalescing concurrent subscribers onto a single connection attempt
- Translating inbound frames into typed events
- Teardown on unsubscribe and cleanup after remote close

There is no automatic reconnect: after a drop the handle is UNSUBSCRIBED
again and the caller decides whether to subscribe anew.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import partial

from .errors import ChatClientError, ChatConnectionError, ChatHandshakeError
from .events import AuthErrorEvent, EventEmitter, EventType
from .protocol import parse_frame
from .ws import realtime_url
from .ws_client import ChatWsClient, ChatWsMessage, ChatWsMessageType

_LOGGER = logging.getLogger(__name__)

CLOSE_TIMEOUT = 2.0


class SubscriptionState(str, Enum):
    """Lifecycle of the realtime channel for one handle."""

    UNSUBSCRIBED = "unsubscribed"
    CONNECTING = "connecting"
    OPEN = "open"


@dataclass(slots=True)
class _RealtimeConnection:
    """An open realtime channel and the task draining it."""

    handle: str
    ws: ChatWsClient
    listen_task: asyncio.Task[None] | None = None


class RealtimeManager:
    """Per-handle realtime connection cache with typed event fan-out.

    Usage:
        manager = RealtimeManager("https://chat.example.org")
        manager.events.on("message", on_message)
        await manager.subscribe("alice")
        ...
        await manager.unsubscribe("alice")

    Three dicts hold all mutable state: ``_attempts`` maps a handle to its
    in-flight connection task, ``_connections`` maps a handle to its open
    channel and ``_closing`` maps a handle to the task closing its previous
    channel. A handle is in at most one of them, and a new attempt for a
    handle starts only after its previous channel has finished closing.
    """

    def __init__(
        self,
        base_url: str,
        *,
        events: EventEmitter | None = None,
        headers_factory: Callable[[], dict[str, str]] | None = None,
        realtime_path: str = "/realtime",
        ping_interval: int | None = 20,
        connect_timeout: float = 15.0,
        ws_client_factory: Callable[[], ChatWsClient] = ChatWsClient,
    ) -> None:
        """Initialize the manager.

        Args:
            base_url: HTTP base URL of the chat server
            events: Sink to publish on (a private one is created if omitted)
            headers_factory: Returns extra handshake headers per attempt
            realtime_path: Path of the realtime endpoint
            ping_interval: Keepalive ping interval (seconds)
            connect_timeout: Handshake timeout (seconds)
            ws_client_factory: Builds the per-connection websocket wrapper
        """
        self.base_url = base_url
        self.events = events if events is not None else EventEmitter()

        self._headers_factory = headers_factory
        self._realtime_path = realtime_path
        self._ping_interval = ping_interval
        self._connect_timeout = connect_timeout
        self._ws_client_factory = ws_client_factory

        self._connections: dict[str, _RealtimeConnection] = {}
        self._attempts: dict[str, asyncio.Task[_RealtimeConnection]] = {}
        self._closing: dict[str, asyncio.Task[None]] = {}

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def state(self, handle: str) -> SubscriptionState:
        """Return the current subscription state for a handle."""
        if handle in self._connections:
            return SubscriptionState.OPEN
        if handle in self._attempts:
            return SubscriptionState.CONNECTING
        return SubscriptionState.UNSUBSCRIBED

    @property
    def handles(self) -> list[str]:
        """Handles with an open realtime channel."""
        return list(self._connections)

    async def subscribe(self, handle: str) -> None:
        """Ensure a realtime channel is open for a handle.

        Concurrent calls for the same handle share one connection attempt and
        all resolve, or all fail, together. If the previous channel for the
        handle is still closing, the new attempt waits for it.

        Raises:
            ChatConnectionError: If the channel could not be opened. A later
                call makes a fresh attempt.
        """
        closing = self._closing.get(handle)
        while closing is not None:
            _LOGGER.debug("[%s] Waiting for previous channel to close", handle)
            await asyncio.wait({closing})
            closing = self._closing.get(handle)

        if handle in self._connections:
            return

        attempt = self._attempts.get(handle)
        if attempt is None:
            attempt = asyncio.create_task(
                self._open(handle), name=f"chatlib-realtime-{handle}"
            )
            attempt.add_done_callback(self._consume_attempt_result)
            self._attempts[handle] = attempt
            _LOGGER.debug(
                "[%s] State: %s → %s",
                handle,
                SubscriptionState.UNSUBSCRIBED.value,
                SubscriptionState.CONNECTING.value,
            )
        else:
            _LOGGER.debug("[%s] Joining in-flight connection attempt", handle)

        # Shielded so one cancelled waiter does not abort the shared attempt
        await asyncio.shield(attempt)

    async def unsubscribe(self, handle: str) -> None:
        """Close the realtime channel for a handle.

        A no-op when nothing is open. While CONNECTING, waits for the attempt
        to settle and closes the channel if it opened. Returns once the
        channel is fully closed.
        """
        attempt = self._attempts.get(handle)
        if attempt is not None:
            try:
                await asyncio.shield(attempt)
            except ChatClientError:
                return

        conn = self._connections.pop(handle, None)
        if conn is None:
            closing = self._closing.get(handle)
            if closing is not None:
                await asyncio.wait({closing})
            else:
                _LOGGER.debug("[%s] Unsubscribe: not subscribed", handle)
            return

        _LOGGER.info("[%s] Closing realtime channel", handle)
        await asyncio.shield(self._begin_close(conn))
        _LOGGER.debug(
            "[%s] State: %s → %s",
            handle,
            SubscriptionState.OPEN.value,
            SubscriptionState.UNSUBSCRIBED.value,
        )

    async def unsubscribe_all(self) -> None:
        """Close every channel, including ones still connecting or closing."""
        for handle in {*self._connections, *self._attempts, *self._closing}:
            await self.unsubscribe(handle)

    # -------------------------------------------------------------------------
    # Internal: Connection lifecycle
    # -------------------------------------------------------------------------

    async def _open(self, handle: str) -> _RealtimeConnection:
        """Run one connection attempt (body of the in-flight task)."""
        try:
            url = realtime_url(self.base_url, handle, path=self._realtime_path)
            headers = self._headers_factory() if self._headers_factory else None
            ws = self._ws_client_factory()

            _LOGGER.info("[%s] Connecting to %s", handle, url)
            await ws.connect(
                url,
                headers=headers,
                ping_interval=self._ping_interval,
                timeout=self._connect_timeout,
            )
        except ChatConnectionError as err:
            self._clear_attempt(handle)
            _LOGGER.warning("[%s] Realtime connection failed: %s", handle, err)
            if isinstance(err, ChatHandshakeError) and err.is_unauthorized:
                await self.events.emit(
                    EventType.AUTH_ERROR, AuthErrorEvent(message=str(err), handle=handle)
                )
            raise
        except BaseException:
            self._clear_attempt(handle)
            raise

        # Cache insertion and marker removal happen without a suspension point
        conn = _RealtimeConnection(handle=handle, ws=ws)
        self._connections[handle] = conn
        self._clear_attempt(handle)
        conn.listen_task = asyncio.create_task(
            self._listen(conn), name=f"chatlib-listen-{handle}"
        )
        _LOGGER.info("[%s] Realtime channel open", handle)
        _LOGGER.debug(
            "[%s] State: %s → %s",
            handle,
            SubscriptionState.CONNECTING.value,
            SubscriptionState.OPEN.value,
        )
        return conn

    def _clear_attempt(self, handle: str) -> None:
        """Drop the in-flight marker if it belongs to the running attempt."""
        current = asyncio.current_task()
        if self._attempts.get(handle) is current:
            del self._attempts[handle]

    @staticmethod
    def _consume_attempt_result(task: asyncio.Task[_RealtimeConnection]) -> None:
        # Every waiter may have been cancelled; mark the failure as retrieved
        if not task.cancelled():
            task.exception()

    def _begin_close(self, conn: _RealtimeConnection) -> asyncio.Task[None]:
        """Start closing a channel already removed from the cache.

        The closing marker is registered before returning so no new attempt
        for the handle can start until the old socket is gone.
        """
        handle = conn.handle
        closing = asyncio.create_task(
            self._close_connection(conn), name=f"chatlib-close-{handle}"
        )
        self._closing[handle] = closing
        closing.add_done_callback(partial(self._close_finished, handle))
        return closing

    def _close_finished(self, handle: str, task: asyncio.Task[None]) -> None:
        if self._closing.get(handle) is task:
            del self._closing[handle]
        if task.cancelled():
            return
        err = task.exception()
        if err is not None:
            _LOGGER.warning("[%s] Error closing realtime channel: %s", handle, err)

    async def _close_connection(self, conn: _RealtimeConnection) -> None:
        task = conn.listen_task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.wait({task})

        try:
            await asyncio.wait_for(conn.ws.close(), timeout=CLOSE_TIMEOUT)
        except TimeoutError:
            _LOGGER.warning("[%s] WebSocket close timed out", conn.handle)

    # -------------------------------------------------------------------------
    # Internal: Frame listener
    # -------------------------------------------------------------------------

    async def _listen(self, conn: _RealtimeConnection) -> None:
        """Drain frames until the channel closes or the task is cancelled.

        Whenever the loop exits while the channel is still cached (remote
        close, transport error, unexpected failure) the channel is removed
        and its socket closed.
        """
        handle = conn.handle
        frame_count = 0

        try:
            async for msg in conn.ws:
                if msg.type is ChatWsMessageType.TEXT:
                    frame_count += 1
                    await self._dispatch(handle, msg)
                elif msg.type is ChatWsMessageType.CLOSED:
                    _LOGGER.warning("[%s] Realtime channel closed by server", handle)
                    break
                elif msg.type is ChatWsMessageType.ERROR:
                    _LOGGER.warning("[%s] Realtime channel error", handle)
                    break
        except asyncio.CancelledError:
            _LOGGER.debug("[%s] Listener cancelled (%d frames)", handle, frame_count)
            raise
        except ChatClientError as err:
            _LOGGER.warning("[%s] Client error: %s", handle, err)
        except Exception:
            _LOGGER.exception("[%s] Unexpected error in realtime listener", handle)
        finally:
            if self._connections.get(handle) is conn:
                del self._connections[handle]
                # This task is finishing on its own; the close must not cancel it
                conn.listen_task = None
                self._begin_close(conn)
                _LOGGER.debug(
                    "[%s] State: %s → %s",
                    handle,
                    SubscriptionState.OPEN.value,
                    SubscriptionState.UNSUBSCRIBED.value,
                )

    async def _dispatch(self, handle: str, msg: ChatWsMessage) -> None:
        """Decode one frame and publish the matching event."""
        try:
            frame = ChatWsClient.decode_json(msg)
            parsed = parse_frame(frame, handle)
        except (ValueError, RecursionError, ChatClientError) as err:
            _LOGGER.warning("[%s] Dropping malformed frame: %s", handle, err)
            return

        if parsed is None:
            _LOGGER.debug("[%s] Ignoring unknown frame type: %s", handle, frame.get("type"))
            return

        event_type, payload = parsed
        await self.events.emit(event_type, payload)
