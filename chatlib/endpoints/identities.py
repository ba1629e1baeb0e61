"""Identity routes."""

from __future__ import annotations

from typing import Any

from ..models import Identity
from .base import UNSET, Endpoint


class IdentitiesEndpoint(Endpoint):
    """Create, read, update and delete the account's identities."""

    async def list_identities(self) -> list[Identity]:
        """All identities owned by the logged in account."""
        result = await self._http.request("aliases")
        return [Identity.from_dto(dto) for dto in self._as_list(result, "aliases")]

    async def get_identity(self, handle: str) -> Identity:
        self._require(handle, "handle")
        return Identity.from_dto(await self._http.request(self._path("aliases", handle)))

    async def create_identity(self, handle: str, data: Any = None) -> Identity:
        """Create a new identity. The server rejects handles already taken."""
        self._require(handle, "handle")
        result = await self._http.request(
            "aliases",
            method="POST",
            body={"name": handle, "payload": self._encode_data(data)},
        )
        return Identity.from_dto(self._unwrap(result, "aliases"))

    async def update_identity(
        self,
        handle: str,
        *,
        new_handle: str | None = None,
        new_data: Any = UNSET,
    ) -> Identity:
        """Rename an identity and/or replace its public data.

        Fields left out keep their current value on the server.
        """
        self._require(handle, "handle")
        body: dict[str, Any] = {}
        if new_handle is not None:
            body["name"] = new_handle
        if new_data is not UNSET:
            body["payload"] = self._encode_data(new_data)

        route = self._path("aliases", handle)
        result = await self._http.request(route, method="PUT", body=body)
        return Identity.from_dto(self._unwrap(result, route))

    async def delete_identity(self, handle: str) -> Any:
        self._require(handle, "handle")
        return await self._http.request(self._path("aliases", handle), method="DELETE")
