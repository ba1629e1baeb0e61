"""High-level client facade for the chat server.

``ChatClient`` composes the HTTP endpoints and the realtime manager, keeps
the session Account, and re-publishes realtime notifications so
application code listens in one place:

    async with ChatClient("https://chat.example.org") as client:
        client.on("message", on_message)
        await client.login("alice@example.org", "secret")
        await client.send_message(["bob"], {"text": "hi"})
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence
from datetime import datetime
from functools import partial
from typing import Any

import aiohttp

from .config import ClientConfig
from .endpoints import (
    UNSET,
    AuthEndpoint,
    FriendsEndpoint,
    IdentitiesEndpoint,
    LoginStatus,
    MessagesEndpoint,
    PrivateDataEndpoint,
)
from .errors import ChatValidationError
from .events import (
    REALTIME_EVENTS,
    EventEmitter,
    EventType,
    Listener,
    LoginEvent,
    LogoutEvent,
)
from .filters import MatchPolicy, MessageQuery, group_by_interlocutors
from .http import ChatHttpClient
from .models import Account, Identity, Message, PrivateData
from .realtime import RealtimeManager, SubscriptionState

_LOGGER = logging.getLogger(__name__)


class ChatClient:
    """The interface for interacting with a chat server.

    Methods that act on behalf of an identity take an optional ``handle``;
    it defaults to the session account's handle.
    """

    def __init__(
        self,
        config: ClientConfig | str,
        *,
        session: aiohttp.ClientSession | None = None,
        realtime: RealtimeManager | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: ClientConfig, or just the server base URL
            session: aiohttp session to use (one is created when omitted)
            realtime: Realtime manager override
        """
        self.config = config if isinstance(config, ClientConfig) else ClientConfig(base_url=config)
        self.events = EventEmitter()

        self._http = ChatHttpClient(
            session, self.config.base_url, timeout=self.config.request_timeout
        )
        self.auth = AuthEndpoint(self._http)
        self.identities = IdentitiesEndpoint(self._http)
        self.messages = MessagesEndpoint(self._http)
        self.private_data = PrivateDataEndpoint(self._http)
        self.friends = FriendsEndpoint(self._http)

        self.realtime = realtime or RealtimeManager(
            self.config.base_url,
            headers_factory=self._http.cookie_header,
            realtime_path=self.config.realtime_path,
            ping_interval=self.config.ping_interval,
            connect_timeout=self.config.connect_timeout,
        )
        for event in REALTIME_EVENTS:
            self.realtime.events.on(event, partial(self.events.emit, event))

        self._account: Account | None = None

    async def __aenter__(self) -> ChatClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close every realtime channel and the HTTP session."""
        await self.realtime.unsubscribe_all()
        await self._http.close()

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def on(self, event: EventType | str, listener: Listener) -> Any:
        """Listen for message, messageupdate, messagedeletion, autherror,
        login or logout. Returns a callable that removes the listener."""
        return self.events.on(event, listener)

    def off(self, event: EventType | str, listener: Listener) -> None:
        self.events.off(event, listener)

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    @property
    def account(self) -> Account | None:
        """The logged in account, or None outside a session."""
        return self._account

    @property
    def is_authenticated(self) -> bool:
        return self._account is not None

    def _resolve_handle(self, handle: str | None) -> str:
        if handle:
            return handle
        if self._account is not None and self._account.handle:
            return self._account.handle
        raise ChatValidationError("No handle given and no logged in account to default to")

    async def signup(self, handle: str, email: str, password: str) -> Any:
        """Sign up for an account with a single initial identity."""
        return await self.auth.signup(handle, email, password)

    async def login(self, email: str, password: str) -> Account:
        """Log in, subscribe to the default handle and emit ``login``.

        Raises:
            ChatConnectionError: If the realtime channel for the default
                handle fails to open. The session stays established and
                ``subscribe`` may be retried.
        """
        account = await self.auth.login(email, password)
        self._account = account
        _LOGGER.info("Logged in as %s (handle=%s)", account.email, account.handle)
        await self.events.emit(EventType.LOGIN, LoginEvent(account=account))
        if account.handle:
            await self.realtime.subscribe(account.handle)
        return account

    async def logout(self) -> None:
        """Log out, close every realtime channel and emit ``logout``."""
        await self.auth.logout()
        await self.realtime.unsubscribe_all()
        self._account = None
        _LOGGER.info("Logged out")
        await self.events.emit(EventType.LOGOUT, LogoutEvent())

    async def is_logged_in(self) -> LoginStatus:
        """Check the server session; adopts the account if one is active."""
        status = await self.auth.is_logged_in()
        if status.account is not None:
            self._account = status.account
        elif not status.is_logged_in:
            self._account = None
        return status

    # -------------------------------------------------------------------------
    # Realtime
    # -------------------------------------------------------------------------

    async def subscribe(self, handle: str | None = None) -> None:
        await self.realtime.subscribe(self._resolve_handle(handle))

    async def unsubscribe(self, handle: str | None = None) -> None:
        await self.realtime.unsubscribe(self._resolve_handle(handle))

    def subscription_state(self, handle: str) -> SubscriptionState:
        return self.realtime.state(handle)

    # -------------------------------------------------------------------------
    # Messages
    # -------------------------------------------------------------------------

    async def list_messages(
        self,
        *,
        handle: str | None = None,
        senders: Sequence[str] | str | None = None,
        recipients: Sequence[str] | str | None = None,
        participants: Sequence[str] | str | None = None,
        since: datetime | None = None,
        match: MatchPolicy | str = MatchPolicy.ANY,
    ) -> list[Message]:
        """Messages sent or received by an identity, filtered.

        ``match`` governs the recipient and participant sets: "any" needs a
        shared handle, "all" needs every given handle, "exact" needs the same
        set. Exact matching with several senders is rejected up front.
        """
        query = MessageQuery.build(
            senders=senders,
            recipients=recipients,
            participants=participants,
            since=since,
            match=match,
        )
        return await self.messages.list_messages(self._resolve_handle(handle), query)

    async def get_message(self, message_id: str, *, handle: str | None = None) -> Message:
        return await self.messages.get_message(self._resolve_handle(handle), message_id)

    async def send_message(
        self, recipients: Sequence[str], data: Any, *, handle: str | None = None
    ) -> Message:
        return await self.messages.send_message(
            self._resolve_handle(handle), recipients, data
        )

    async def update_message(
        self, message_id: str, data: Any, *, handle: str | None = None
    ) -> Message:
        return await self.messages.update_message(
            self._resolve_handle(handle), message_id, data
        )

    async def delete_message(self, message_id: str, *, handle: str | None = None) -> Any:
        return await self.messages.delete_message(self._resolve_handle(handle), message_id)

    @staticmethod
    def group_messages_by_interlocutors(messages: Sequence[Message]) -> list[list[Message]]:
        """Cluster messages sharing the same unordered {sender, recipients} set."""
        return group_by_interlocutors(messages)

    # -------------------------------------------------------------------------
    # Identities
    # -------------------------------------------------------------------------

    async def list_identities(self, *, subscribe: bool = True) -> list[Identity]:
        """The account's identities; opens a realtime channel for each by default."""
        identities = await self.identities.list_identities()
        if subscribe:
            for identity in identities:
                await self.realtime.subscribe(identity.handle)
        return identities

    async def get_identity(self, handle: str) -> Identity:
        return await self.identities.get_identity(handle)

    async def create_identity(self, handle: str, data: Any = None) -> Identity:
        return await self.identities.create_identity(handle, data)

    async def update_identity(
        self,
        handle: str,
        *,
        new_handle: str | None = None,
        new_data: Any = UNSET,
    ) -> Identity:
        """Rename an identity and/or replace its data.

        A rename moves the realtime subscription and, for the default
        identity, the session account's handle.
        """
        identity = await self.identities.update_identity(
            handle, new_handle=new_handle, new_data=new_data
        )
        if identity.handle != handle:
            was_open = self.realtime.state(handle) is not SubscriptionState.UNSUBSCRIBED
            await self.realtime.unsubscribe(handle)
            if self._account is not None and self._account.handle == handle:
                self._account = dataclasses.replace(self._account, handle=identity.handle)
            if was_open:
                await self.realtime.subscribe(identity.handle)
        return identity

    async def delete_identity(self, handle: str) -> Any:
        result = await self.identities.delete_identity(handle)
        await self.realtime.unsubscribe(handle)
        return result

    # -------------------------------------------------------------------------
    # Private data
    # -------------------------------------------------------------------------

    async def create_private_data(
        self, entity_id: str, data: Any, *, handle: str | None = None
    ) -> PrivateData:
        return await self.private_data.create_private_data(
            self._resolve_handle(handle), entity_id, data
        )

    async def get_private_data(
        self, entity_id: str, *, handle: str | None = None
    ) -> PrivateData:
        return await self.private_data.get_private_data(
            self._resolve_handle(handle), entity_id
        )

    async def list_private_data(
        self, entity_id: str, *, handle: str | None = None
    ) -> list[PrivateData]:
        return await self.private_data.list_private_data(
            self._resolve_handle(handle), entity_id
        )

    async def update_private_data(
        self, entity_id: str, data: Any, *, handle: str | None = None
    ) -> PrivateData:
        return await self.private_data.update_private_data(
            self._resolve_handle(handle), entity_id, data
        )

    async def delete_private_data(
        self, entity_id: str, *, handle: str | None = None
    ) -> Any:
        return await self.private_data.delete_private_data(
            self._resolve_handle(handle), entity_id
        )

    # -------------------------------------------------------------------------
    # Friends
    # -------------------------------------------------------------------------

    async def list_friends(self, *, handle: str | None = None) -> list[Identity]:
        return await self.friends.list_friends(self._resolve_handle(handle))

    async def add_friend(self, friend: str, *, handle: str | None = None) -> Any:
        return await self.friends.add_friend(self._resolve_handle(handle), friend)

    async def remove_friend(self, friend: str, *, handle: str | None = None) -> Any:
        return await self.friends.remove_friend(self._resolve_handle(handle), friend)
