"""Entity models decoded from chat server transfer objects.

Every model is a frozen dataclass built through ``from_dto``, which accepts
the server's wire representation (camelCase or snake_case keys, JSON data
either decoded or as an encoded string) and normalizes it.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .errors import ChatResponseError


def _pick(dto: Mapping[str, Any], *keys: str, required: bool = True) -> Any:
    """Return the first present key from a DTO."""
    for key in keys:
        if key in dto and dto[key] is not None:
            return dto[key]
    if required:
        raise ChatResponseError(200, f"Malformed response: missing field '{keys[0]}'")
    return None


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if isinstance(value, str):
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as err:
            raise ChatResponseError(
                200, f"Malformed response: bad timestamp {value!r}"
            ) from err
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise ChatResponseError(200, f"Malformed response: bad timestamp {value!r}")


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def decode_data(value: Any) -> Any:
    """Decode a JSON payload that may arrive encoded as a string."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            # Plain strings are valid payloads too
            return value
    return value


def _check_mapping(dto: Any, model: str) -> Mapping[str, Any]:
    if not isinstance(dto, Mapping):
        raise ChatResponseError(200, f"Malformed response: expected {model} object")
    return dto


@dataclass(frozen=True)
class Account:
    """Login credentials for a user.

    The account is not used to address messages; ``handle`` is the default
    identity handle used when the facade needs one.
    """

    id: str
    created_at: datetime | None
    updated_at: datetime | None
    email: str
    handle: str | None

    @classmethod
    def from_dto(cls, dto: Any, *, handle: str | None = None) -> Account:
        dto = _check_mapping(dto, "account")
        return cls(
            id=str(_pick(dto, "id")),
            created_at=parse_timestamp(_pick(dto, "createdAt", "created_at", required=False)),
            updated_at=parse_timestamp(_pick(dto, "updatedAt", "updated_at", required=False)),
            email=_pick(dto, "email"),
            handle=handle if handle is not None else _pick(dto, "handle", required=False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": _format_timestamp(self.created_at),
            "updatedAt": _format_timestamp(self.updated_at),
            "email": self.email,
            "handle": self.handle,
        }


@dataclass(frozen=True)
class Identity:
    """The addressable sender/recipient unit, named by a unique handle."""

    id: str
    created_at: datetime | None
    updated_at: datetime | None
    handle: str
    data: Any = None

    @classmethod
    def from_dto(cls, dto: Any) -> Identity:
        dto = _check_mapping(dto, "identity")
        return cls(
            id=str(_pick(dto, "id")),
            created_at=parse_timestamp(_pick(dto, "createdAt", "created_at", required=False)),
            updated_at=parse_timestamp(_pick(dto, "updatedAt", "updated_at", required=False)),
            handle=_pick(dto, "handle", "name"),
            data=decode_data(_pick(dto, "data", "payload", required=False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": _format_timestamp(self.created_at),
            "updatedAt": _format_timestamp(self.updated_at),
            "handle": self.handle,
            "data": self.data,
        }

    def __str__(self) -> str:
        return self.handle


@dataclass(frozen=True)
class Message:
    """A message from one sender identity to one or more recipients."""

    id: str
    created_at: datetime | None
    updated_at: datetime | None
    sender: Identity
    recipients: tuple[Identity, ...]
    data: Any = None

    @classmethod
    def from_dto(cls, dto: Any) -> Message:
        dto = _check_mapping(dto, "message")
        recipients = _pick(dto, "recipients")
        if not isinstance(recipients, list) or not recipients:
            raise ChatResponseError(
                200, "Malformed response: message needs at least one recipient"
            )
        return cls(
            id=str(_pick(dto, "id")),
            created_at=parse_timestamp(_pick(dto, "createdAt", "created_at", required=False)),
            updated_at=parse_timestamp(_pick(dto, "updatedAt", "updated_at", required=False)),
            sender=Identity.from_dto(_pick(dto, "sender")),
            recipients=tuple(Identity.from_dto(r) for r in recipients),
            data=decode_data(_pick(dto, "data", "payload", required=False)),
        )

    @property
    def participants(self) -> tuple[Identity, ...]:
        """Sender followed by recipients."""
        return (self.sender, *self.recipients)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": _format_timestamp(self.created_at),
            "updatedAt": _format_timestamp(self.updated_at),
            "sender": self.sender.to_dict(),
            "recipients": [r.to_dict() for r in self.recipients],
            "data": self.data,
        }


@dataclass(frozen=True)
class PrivateData:
    """Data attached to an entity, visible only to the identity that wrote it."""

    id: str
    created_at: datetime | None
    updated_at: datetime | None
    entity_id: str
    data: Any = None

    @classmethod
    def from_dto(cls, dto: Any) -> PrivateData:
        dto = _check_mapping(dto, "private data")
        return cls(
            id=str(_pick(dto, "id")),
            created_at=parse_timestamp(_pick(dto, "createdAt", "created_at", required=False)),
            updated_at=parse_timestamp(_pick(dto, "updatedAt", "updated_at", required=False)),
            entity_id=str(_pick(dto, "entityId", "entity_id")),
            data=decode_data(_pick(dto, "data", "payload", required=False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "createdAt": _format_timestamp(self.created_at),
            "updatedAt": _format_timestamp(self.updated_at),
            "entityId": self.entity_id,
            "data": self.data,
        }
