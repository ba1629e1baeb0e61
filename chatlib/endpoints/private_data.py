"""Private data routes.

Records are addressed by the id of the entity they are attached to, never
by their own id, so updates and deletes need no prior lookup.
"""

from __future__ import annotations

from typing import Any

from ..errors import ChatNotFoundError
from ..models import PrivateData
from .base import Endpoint


class PrivateDataEndpoint(Endpoint):
    """Data attached to an entity, readable only by the identity that wrote it."""

    async def create_private_data(
        self, handle: str, entity_id: str, data: Any
    ) -> PrivateData:
        self._require(handle, "handle")
        self._require(entity_id, "entity_id")
        result = await self._http.request(
            "payloads",
            method="POST",
            handle=handle,
            body={"payload": self._encode_data(data), "entity_id": entity_id},
        )
        return PrivateData.from_dto(self._unwrap(result, "payloads"))

    async def list_private_data(self, handle: str, entity_id: str) -> list[PrivateData]:
        """Every record ``handle`` attached to the entity (usually one)."""
        self._require(handle, "handle")
        self._require(entity_id, "entity_id")
        route = self._path("payloads", entity_id)
        result = await self._http.request(route, handle=handle)
        return [PrivateData.from_dto(dto) for dto in self._as_list(result, route)]

    async def get_private_data(self, handle: str, entity_id: str) -> PrivateData:
        """The record ``handle`` attached to the entity.

        Raises:
            ChatNotFoundError: If there is none.
        """
        records = await self.list_private_data(handle, entity_id)
        if not records:
            raise ChatNotFoundError(
                f"No private data for entity {entity_id} and alias {handle}"
            )
        return records[0]

    async def update_private_data(
        self, handle: str, entity_id: str, data: Any
    ) -> PrivateData:
        self._require(handle, "handle")
        self._require(entity_id, "entity_id")
        route = self._path("payloads", entity_id)
        result = await self._http.request(
            route,
            method="PUT",
            handle=handle,
            body={"payload": self._encode_data(data)},
        )
        return PrivateData.from_dto(self._unwrap(result, route))

    async def delete_private_data(self, handle: str, entity_id: str) -> Any:
        self._require(handle, "handle")
        self._require(entity_id, "entity_id")
        return await self._http.request(
            self._path("payloads", entity_id), method="DELETE", handle=handle
        )
