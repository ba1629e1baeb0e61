"""Friends routes."""

from __future__ import annotations

from typing import Any

from ..models import Identity
from .base import Endpoint


class FriendsEndpoint(Endpoint):
    """Manage the friend list of an identity."""

    async def list_friends(self, handle: str) -> list[Identity]:
        self._require(handle, "handle")
        result = await self._http.request("friends", handle=handle)
        return [Identity.from_dto(dto) for dto in self._as_list(result, "friends")]

    async def add_friend(self, handle: str, friend: str) -> Any:
        self._require(handle, "handle")
        self._require(friend, "friend")
        return await self._http.request(
            "friends", method="POST", handle=handle, body={"alias_name": friend}
        )

    async def remove_friend(self, handle: str, friend: str) -> Any:
        self._require(handle, "handle")
        self._require(friend, "friend")
        return await self._http.request(
            "friends", method="DELETE", handle=handle, body={"alias_name": friend}
        )
