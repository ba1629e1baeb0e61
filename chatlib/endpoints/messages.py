"""Message routes."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from ..filters import MessageQuery, interlocutors_for, refine_messages, validate_query
from ..models import Message
from .base import Endpoint

_LOGGER = logging.getLogger(__name__)


class MessagesEndpoint(Endpoint):
    """Send, fetch, update and delete messages on behalf of an identity."""

    async def list_messages(
        self, handle: str, query: MessageQuery | None = None
    ) -> list[Message]:
        """Messages sent or received by ``handle`` that pass the query.

        The server narrows by the union of every handle in the query; the
        match policy, sender set and since-time are then applied locally.

        Raises:
            ChatValidationError: If the query is contradictory. Nothing is
                sent in that case.
        """
        self._require(handle, "handle")
        query = query or MessageQuery()
        validate_query(query)

        headers: dict[str, str] = {}
        interlocutors = interlocutors_for(query)
        if interlocutors:
            headers["interlocutors"] = json.dumps(interlocutors)
        if query.since is not None:
            headers["since-time"] = str(int(query.since.timestamp() * 1000))

        result = await self._http.request("messages", handle=handle, headers=headers)
        messages = [Message.from_dto(dto) for dto in self._as_list(result, "messages")]
        refined = refine_messages(messages, query)
        _LOGGER.debug(
            "[%s] Listed %d messages, %d after refinement",
            handle,
            len(messages),
            len(refined),
        )
        return refined

    async def get_message(self, handle: str, message_id: str) -> Message:
        """Fetch one message that ``handle`` sent or received."""
        self._require(handle, "handle")
        self._require(message_id, "message_id")
        result = await self._http.request(self._path("messages", message_id), handle=handle)
        return Message.from_dto(result)

    async def send_message(
        self, handle: str, recipients: Sequence[str], data: Any
    ) -> Message:
        """Send a message and return it as stored by the server."""
        self._require(handle, "handle")
        self._require(list(recipients), "recipients")
        result = await self._http.request(
            "messages",
            method="POST",
            handle=handle,
            body={"payload": self._encode_data(data), "recipients": list(recipients)},
        )
        created = self._unwrap(result, "messages")
        return await self.get_message(handle, str(created["id"]))

    async def update_message(self, handle: str, message_id: str, data: Any) -> Message:
        """Replace a message's data. Only its sender may do this."""
        self._require(handle, "handle")
        self._require(message_id, "message_id")
        route = self._path("messages", message_id)
        result = await self._http.request(
            route,
            method="PUT",
            handle=handle,
            body={"payload": self._encode_data(data)},
        )
        updated = self._unwrap(result, route)
        return await self.get_message(handle, str(updated.get("id", message_id)))

    async def delete_message(self, handle: str, message_id: str) -> Any:
        self._require(handle, "handle")
        self._require(message_id, "message_id")
        return await self._http.request(
            self._path("messages", message_id), method="DELETE", handle=handle
        )
