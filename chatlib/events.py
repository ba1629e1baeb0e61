"""Typed publish/subscribe sink for client notifications."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Account

_LOGGER = logging.getLogger(__name__)


class EventType(str, Enum):
    """Names of the notifications a client publishes."""

    MESSAGE = "message"
    MESSAGE_UPDATE = "messageupdate"
    MESSAGE_DELETION = "messagedeletion"
    AUTH_ERROR = "autherror"
    LOGIN = "login"
    LOGOUT = "logout"


REALTIME_EVENTS: tuple[EventType, ...] = (
    EventType.MESSAGE,
    EventType.MESSAGE_UPDATE,
    EventType.MESSAGE_DELETION,
    EventType.AUTH_ERROR,
)


@dataclass(frozen=True)
class MessageEvent:
    """A message was created, updated or deleted.

    Only the id is carried; listeners re-fetch the message (except after a
    deletion, when it is gone).
    """

    message_id: str
    handle: str


@dataclass(frozen=True)
class AuthErrorEvent:
    """The server rejected access for a handle on the realtime channel."""

    message: str
    handle: str


@dataclass(frozen=True)
class LoginEvent:
    """A session was established."""

    account: Account


@dataclass(frozen=True)
class LogoutEvent:
    """The session was ended."""


EventPayload = MessageEvent | AuthErrorEvent | LoginEvent | LogoutEvent
Listener = Callable[[Any], Awaitable[None] | None]


class EventEmitter:
    """Mapping from event type to an ordered list of listeners.

    Listeners may be plain callables or coroutine functions. A failing
    listener is logged and does not stop delivery to the others.
    """

    def __init__(self) -> None:
        self._listeners: dict[EventType, list[Listener]] = {
            event: [] for event in EventType
        }

    def on(self, event: EventType | str, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        event_type = EventType(event)
        self._listeners[event_type].append(listener)
        return lambda: self.off(event_type, listener)

    def off(self, event: EventType | str, listener: Listener) -> None:
        """Remove a listener. Unknown listeners are ignored."""
        listeners = self._listeners[EventType(event)]
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: EventType | str) -> int:
        return len(self._listeners[EventType(event)])

    async def emit(self, event: EventType | str, payload: EventPayload) -> None:
        """Deliver a payload to every listener of an event, in order."""
        event_type = EventType(event)
        for listener in list(self._listeners[event_type]):
            try:
                result = listener(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception as err:
                _LOGGER.exception(
                    "Listener for '%s' raised: %s", event_type.value, err
                )
