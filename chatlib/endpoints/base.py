"""Shared plumbing for resource endpoints."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Final
from urllib.parse import quote

from ..errors import ChatResponseError, ChatValidationError
from ..http import ChatHttpClient

# Sentinel distinguishing "leave unchanged" from an explicit None
UNSET: Final[Any] = object()


class Endpoint:
    """Base class for chat server resource endpoints."""

    def __init__(self, http: ChatHttpClient) -> None:
        self._http = http

    @staticmethod
    def _path(*segments: str) -> str:
        return "/".join(quote(str(segment), safe="") for segment in segments)

    @staticmethod
    def _require(value: Any, name: str) -> None:
        if value is None or value == "" or value == [] or value == ():
            raise ChatValidationError(f"'{name}' is required")

    @staticmethod
    def _encode_data(data: Any) -> str:
        """Payloads are stored server-side as JSON strings."""
        return json.dumps(data)

    @staticmethod
    def _unwrap(result: Any, route: str) -> Mapping[str, Any]:
        """Return the ``data`` object of a create/update response."""
        if isinstance(result, Mapping) and isinstance(result.get("data"), Mapping):
            return result["data"]
        raise ChatResponseError(200, f"Malformed response from {route}: missing data")

    @staticmethod
    def _as_list(result: Any, route: str) -> list[Any]:
        if not isinstance(result, list):
            raise ChatResponseError(200, f"Malformed response from {route}: expected a list")
        return result
