"""Message query filters and conversation grouping.

Listing messages is a two-stage filter. The server only narrows by a flat
set of interlocutors (any sender or recipient in the set), so match policies
stricter than "any" are re-applied here after the fetch.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .errors import ChatValidationError
from .models import Message, parse_timestamp


class MatchPolicy(str, Enum):
    """How a handle set in a query must overlap a message's handles."""

    ANY = "any"
    ALL = "all"
    EXACT = "exact"


@dataclass(frozen=True)
class MessageQuery:
    """Filters for listing messages.

    Attributes:
        senders: Handles the sender must belong to
        recipients: Handles compared against the recipient set
        participants: Handles compared against sender plus recipients
        since: Only messages created strictly after this instant (naive
            datetimes are read as UTC)
        match: Policy applied to the recipient and participant sets
    """

    senders: frozenset[str] = frozenset()
    recipients: frozenset[str] = frozenset()
    participants: frozenset[str] = frozenset()
    since: datetime | None = None
    match: MatchPolicy = MatchPolicy.ANY

    def __post_init__(self) -> None:
        # Naive datetimes are taken as UTC so they compare with server timestamps
        object.__setattr__(self, "since", parse_timestamp(self.since))
        object.__setattr__(self, "match", MatchPolicy(self.match))

    @classmethod
    def build(
        cls,
        *,
        senders: Iterable[str] | str | None = None,
        recipients: Iterable[str] | str | None = None,
        participants: Iterable[str] | str | None = None,
        since: datetime | None = None,
        match: MatchPolicy | str = MatchPolicy.ANY,
    ) -> MessageQuery:
        """Build and validate a query from loose arguments."""
        try:
            policy = MatchPolicy(match)
        except ValueError as err:
            raise ChatValidationError(f"Unknown match policy: {match!r}") from err
        query = cls(
            senders=_to_set(senders),
            recipients=_to_set(recipients),
            participants=_to_set(participants),
            since=since,
            match=policy,
        )
        validate_query(query)
        return query

    @property
    def is_empty(self) -> bool:
        return not (self.senders or self.recipients or self.participants or self.since)


def _to_set(value: Iterable[str] | str | None) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset((value,))
    return frozenset(value)


def validate_query(query: MessageQuery) -> None:
    """Reject contradictory queries before any request is made.

    Raises:
        ChatValidationError: If EXACT matching is requested with more than
            one sender (a message has exactly one sender).
    """
    if query.match is MatchPolicy.EXACT and len(query.senders) > 1:
        raise ChatValidationError(
            "Exact match with more than one sender can never match a message"
        )


def interlocutors_for(query: MessageQuery) -> list[str]:
    """Handles for the coarse server-side filter, sorted for stable requests."""
    return sorted(query.senders | query.recipients | query.participants)


def _overlaps(wanted: frozenset[str], actual: set[str], policy: MatchPolicy) -> bool:
    if policy is MatchPolicy.ANY:
        return not wanted.isdisjoint(actual)
    if policy is MatchPolicy.ALL:
        return wanted <= actual
    return wanted == actual


def matches(message: Message, query: MessageQuery) -> bool:
    """Return True if a message satisfies every filter in the query."""
    if query.since is not None:
        if message.created_at is None or message.created_at <= query.since:
            return False

    if query.senders:
        if query.match is MatchPolicy.EXACT:
            if {message.sender.handle} != set(query.senders):
                return False
        elif message.sender.handle not in query.senders:
            return False

    if query.recipients:
        recipients = {r.handle for r in message.recipients}
        if not _overlaps(query.recipients, recipients, query.match):
            return False

    if query.participants:
        participants = {p.handle for p in message.participants}
        if not _overlaps(query.participants, participants, query.match):
            return False

    return True


def refine_messages(
    messages: Iterable[Message], query: MessageQuery
) -> list[Message]:
    """Apply the precise client-side filter to fetched messages."""
    validate_query(query)
    return [m for m in messages if matches(m, query)]


def group_by_interlocutors(messages: Sequence[Message]) -> list[list[Message]]:
    """Group messages by the unordered set of identities they involve.

    A message from Alice to Bob and one from Bob to Alice share the group
    {Alice, Bob}. Groups keep the order in which they were first seen.
    """
    groups: dict[frozenset[str], list[Message]] = {}
    for message in messages:
        key = frozenset(identity.id for identity in message.participants)
        groups.setdefault(key, []).append(message)
    return list(groups.values())
