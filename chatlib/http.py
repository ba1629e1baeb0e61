"""HTTP request helper for chat server endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any, Final, Literal

import aiohttp
from yarl import URL

from .errors import (
    ChatConnectionError,
    ChatResponseError,
    ChatTimeout,
)

_LOGGER = logging.getLogger(__name__)

# Header the server uses to scope a request to one of the account's identities
ALIAS_HEADER: Final = "user-alias-name"


class ChatHttpClient:
    """HTTP client wrapper for chat server endpoints.

    Issues one request per call and normalizes the outcome: a decoded body on
    2xx, ``ChatResponseError`` carrying the server's ``message`` otherwise.
    Cookies set by the server (the login session) live in the aiohttp
    session's cookie jar and ride along on every request.

    When no session is supplied one is created on first use and closed by
    ``close()``; a supplied session stays owned by the caller.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession | None,
        base_url: str,
        *,
        timeout: float = 10.0,
    ) -> None:
        self._session = session
        self._owns_session = session is None
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _url(self, route: str) -> str:
        return f"{self._base_url}/{route.lstrip('/')}"

    @staticmethod
    def _headers(
        handle: str | None, extra: dict[str, str] | None = None
    ) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if handle is not None:
            headers[ALIAS_HEADER] = handle
        if extra:
            headers.update(extra)
        return headers

    def cookie_header(self) -> dict[str, str]:
        """Return the session cookies for the server as a Cookie header."""
        if self._session is None:
            return {}
        cookies = self._session.cookie_jar.filter_cookies(URL(self._base_url))
        if not cookies:
            return {}
        value = "; ".join(f"{key}={morsel.value}" for key, morsel in cookies.items())
        return {"Cookie": value}

    async def request(
        self,
        route: str,
        *,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        handle: str | None = None,
        headers: dict[str, str] | None = None,
        response_type: Literal["json", "text"] = "json",
    ) -> Any:
        """Send a request to a chat server route.

        Args:
            route: Path relative to the base URL (e.g. "messages/abc")
            method: HTTP method
            body: Optional JSON body
            handle: Caller identity handle sent in the user-alias-name header
            headers: Extra headers
            response_type: "json" to decode the body, "text" to return it raw

        Raises:
            ChatResponseError: On non-2xx status or an undecodable body
            ChatTimeout: If the request times out
            ChatConnectionError: If the network request fails
        """
        url = self._url(route)
        _LOGGER.debug("%s %s (alias=%s)", method, url, handle)
        try:
            async with self._get_session().request(
                method,
                url,
                json=body,
                headers=self._headers(handle, headers),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    message = self._error_message(text, resp.reason or "")
                    _LOGGER.warning("API error %s on %s: %s", resp.status, route, message)
                    raise ChatResponseError(resp.status, message)
                if response_type == "text":
                    return text
                try:
                    return json.loads(text) if text else None
                except ValueError as err:
                    raise ChatResponseError(
                        resp.status, f"Malformed JSON response from {route}"
                    ) from err
        except TimeoutError as err:
            raise ChatTimeout(f"{method} {route} request timed out") from err
        except aiohttp.ClientError as err:
            raise ChatConnectionError(f"{method} {route} request failed") from err

    @staticmethod
    def _error_message(text: str, reason: str) -> str:
        try:
            payload = json.loads(text)
        except ValueError:
            return text or reason or "Request failed"
        if isinstance(payload, dict) and payload.get("message"):
            return str(payload["message"])
        return reason or "Request failed"
