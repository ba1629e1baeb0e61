"""Realtime frame protocol for the chat server.

Inbound frames are JSON objects with a ``type`` discriminant. Message frames
carry ``messageId``; ``unauthorized`` frames carry a human-readable
``message``. Unknown discriminants are ignored so newer servers can add
frame types.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

from .events import AuthErrorEvent, EventType, MessageEvent

FRAME_NEW_MESSAGE: Final = "new_message"
FRAME_MESSAGE_UPDATE: Final = "message_update"
FRAME_MESSAGE_DELETE: Final = "message_delete"
FRAME_UNAUTHORIZED: Final = "unauthorized"

MESSAGE_FRAME_EVENTS: Final[dict[str, EventType]] = {
    FRAME_NEW_MESSAGE: EventType.MESSAGE,
    FRAME_MESSAGE_UPDATE: EventType.MESSAGE_UPDATE,
    FRAME_MESSAGE_DELETE: EventType.MESSAGE_DELETION,
}


def _frame_field(frame: Mapping[str, Any], key: str) -> Any:
    """Read a payload field from the frame or its nested ``data`` object."""
    if key in frame:
        return frame[key]
    nested = frame.get("data")
    if isinstance(nested, Mapping):
        return nested.get(key)
    return None


def parse_frame(
    frame: Any, handle: str
) -> tuple[EventType, MessageEvent | AuthErrorEvent] | None:
    """Map a decoded frame to the event it should produce.

    Args:
        frame: Decoded JSON frame
        handle: Identity handle the connection belongs to

    Returns:
        (event type, payload), or None for unknown discriminants.

    Raises:
        ValueError: If the frame is not an object or lacks its payload field.
    """
    if not isinstance(frame, Mapping):
        raise ValueError("Frame is not a JSON object")

    frame_type = frame.get("type")

    event_type = MESSAGE_FRAME_EVENTS.get(frame_type) if isinstance(frame_type, str) else None
    if event_type is not None:
        message_id = _frame_field(frame, "messageId")
        if message_id is None or isinstance(message_id, (dict, list)):
            raise ValueError(f"'{frame_type}' frame has no messageId")
        return event_type, MessageEvent(message_id=str(message_id), handle=handle)

    if frame_type == FRAME_UNAUTHORIZED:
        message = _frame_field(frame, "message")
        return EventType.AUTH_ERROR, AuthErrorEvent(
            message=str(message) if message is not None else "Unauthorized",
            handle=handle,
        )

    return None
