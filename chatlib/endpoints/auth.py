"""Authentication routes: signup, login, logout and session status."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..models import Account, Identity
from .base import Endpoint

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginStatus:
    """Result of a session check."""

    is_logged_in: bool
    account: Account | None = None


class AuthEndpoint(Endpoint):
    """Helper for the authentication routes."""

    async def signup(self, handle: str, email: str, password: str) -> Any:
        """Create an account with a single initial identity.

        Returns the server's confirmation message.
        """
        self._require(handle, "handle")
        self._require(email, "email")
        self._require(password, "password")
        return await self._http.request(
            "signup",
            method="POST",
            body={"alias": handle, "email": email, "password": password},
        )

    async def login(self, email: str, password: str) -> Account:
        """Log in and return the account, with its default handle resolved."""
        self._require(email, "email")
        self._require(password, "password")
        result = await self._http.request(
            "login",
            method="POST",
            body={"email": email, "password": password},
        )
        account_dto = (
            result.get("account", result) if isinstance(result, Mapping) else result
        )
        handle = await self._default_handle()
        return Account.from_dto(account_dto, handle=handle)

    async def logout(self) -> str:
        return await self._http.request("logout", method="POST", response_type="text")

    async def is_logged_in(self) -> LoginStatus:
        """Ask the server whether the cookie session is still valid."""
        result = await self._http.request("isloggedin")
        if not isinstance(result, Mapping) or not result.get("response"):
            return LoginStatus(is_logged_in=False)

        account_dto = result.get("data")
        if not account_dto:
            return LoginStatus(is_logged_in=True)
        handle = await self._default_handle()
        return LoginStatus(
            is_logged_in=True, account=Account.from_dto(account_dto, handle=handle)
        )

    async def _default_handle(self) -> str | None:
        """The first identity listed for the account is its default handle."""
        identities = self._as_list(await self._http.request("aliases"), "aliases")
        if not identities:
            _LOGGER.warning("No identities found for account")
            return None
        return Identity.from_dto(identities[0]).handle
