"""Tests for entity model decoding."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from chatlib.errors import ChatResponseError
from chatlib.models import (
    Account,
    Identity,
    Message,
    PrivateData,
    decode_data,
    parse_timestamp,
)

from .conftest import identity_dto, message_dto


class TestParseTimestamp:
    """Tests for parse_timestamp()."""

    def test_iso_with_z_suffix(self) -> None:
        assert parse_timestamp("2024-03-01T12:00:00.000Z") == datetime(
            2024, 3, 1, 12, 0, tzinfo=UTC
        )

    def test_epoch_milliseconds(self) -> None:
        assert parse_timestamp(0) == datetime(1970, 1, 1, tzinfo=UTC)

    def test_naive_datetime_becomes_utc(self) -> None:
        assert parse_timestamp(datetime(2024, 1, 1)).tzinfo is UTC

    def test_none(self) -> None:
        assert parse_timestamp(None) is None

    def test_garbage_raises(self) -> None:
        with pytest.raises(ChatResponseError, match="bad timestamp"):
            parse_timestamp("yesterday")


class TestDecodeData:
    """Tests for decode_data()."""

    def test_json_string(self) -> None:
        assert decode_data('{"text": "hi"}') == {"text": "hi"}

    def test_plain_string_kept(self) -> None:
        assert decode_data("hello") == "hello"

    def test_already_decoded(self) -> None:
        assert decode_data({"a": 1}) == {"a": 1}


class TestIdentity:
    """Tests for Identity.from_dto()."""

    def test_from_server_shape(self) -> None:
        identity = Identity.from_dto(identity_dto("alice", payload='{"bio": "hey"}'))

        assert identity.id == "id-alice"
        assert identity.handle == "alice"
        assert identity.data == {"bio": "hey"}
        assert identity.created_at == datetime(2024, 1, 1, tzinfo=UTC)
        assert str(identity) == "alice"

    def test_missing_handle_raises(self) -> None:
        with pytest.raises(ChatResponseError, match="missing field 'handle'"):
            Identity.from_dto({"id": "1"})

    def test_non_mapping_raises(self) -> None:
        with pytest.raises(ChatResponseError, match="expected identity object"):
            Identity.from_dto(["alice"])

    def test_to_dict(self) -> None:
        identity = Identity.from_dto({"id": 7, "handle": "bob", "data": None})

        assert identity.to_dict() == {
            "id": "7",
            "createdAt": None,
            "updatedAt": None,
            "handle": "bob",
            "data": None,
        }


class TestMessage:
    """Tests for Message.from_dto()."""

    def test_from_server_shape(self) -> None:
        message = Message.from_dto(message_dto("m1", "alice", ["bob", "carol"]))

        assert message.sender.handle == "alice"
        assert [r.handle for r in message.recipients] == ["bob", "carol"]
        assert [p.handle for p in message.participants] == ["alice", "bob", "carol"]
        assert message.data == {"text": "m1"}

    def test_requires_recipient(self) -> None:
        dto = message_dto("m1", "alice", ["bob"])
        dto["recipients"] = []

        with pytest.raises(ChatResponseError, match="at least one recipient"):
            Message.from_dto(dto)

    def test_to_dict_round_trips_handles(self) -> None:
        result = Message.from_dto(message_dto("m1", "alice", ["bob"])).to_dict()

        assert result["sender"]["handle"] == "alice"
        assert result["recipients"][0]["handle"] == "bob"
        assert result["createdAt"] == "2024-03-01T12:00:00+00:00"


class TestAccount:
    """Tests for Account.from_dto()."""

    def test_handle_override(self) -> None:
        account = Account.from_dto({"id": "u1", "email": "a@example.org"}, handle="alice")

        assert account.handle == "alice"
        assert account.email == "a@example.org"

    def test_missing_email_raises(self) -> None:
        with pytest.raises(ChatResponseError):
            Account.from_dto({"id": "u1"})


class TestPrivateData:
    """Tests for PrivateData.from_dto()."""

    @pytest.mark.parametrize("key", ["entityId", "entity_id"])
    def test_entity_id_spellings(self, key: str) -> None:
        record = PrivateData.from_dto({"id": "p1", key: "m1", "payload": '"draft"'})

        assert record.entity_id == "m1"
        assert record.data == "draft"
        assert record.to_dict()["entityId"] == "m1"
