"""HTTP transport shared by every generated client.

Generated methods call ``BaseClient.fetch`` (parsed payload) or
``BaseClient.fetch_stream`` (raw byte stream) with the records they built:

    await client.fetch("/chats/abc", "GET", path_params={"chatId": "abc"})

The transport injects the bearer token and session token, prefixes the base
URL, and turns failure statuses into ``sdkgen.runtime.errors`` exceptions.
"""

from __future__ import annotations

import codecs
import logging
import os
from collections.abc import AsyncIterable, AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from .. import __version__
from .errors import MissingApiKeyError, error_for_status

logger = logging.getLogger(__name__)

SESSION_TOKEN_HEADER = "x-session-token"

# Response content types returned as raw bytes
BINARY_CONTENT_TYPES = (
    "application/zip",
    "application/gzip",
    "application/octet-stream",
    "application/x-tar",
)


@dataclass(frozen=True)
class ClientConfig:
    """Per-client settings; unset values fall back to the generated defaults."""

    api_key: str | None = None
    base_url: str | None = None
    timeout: float = 30.0
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class StreamEvent:
    event: str | None
    data: str


def compact(record: Mapping[str, Any]) -> dict[str, Any]:
    """Drop the entries whose value is None."""
    return {key: value for key, value in record.items() if value is not None}


def query_value(value: Any) -> Any:
    """Convert a query or header value to its wire form.

    Booleans become "true"/"false", numbers their decimal string; None is
    kept so ``compact`` can drop it.
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _looks_like_json(content_type: str) -> bool:
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime == "application/json" or mime.endswith("+json")


class ByteStream:
    """Handle on a streaming response body.

    Iterate it for raw chunks; the response is closed once iteration ends or
    the stream is used as an async context manager and exits.
    """

    def __init__(self, response: httpx.Response) -> None:
        self.response = response

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    async def __aiter__(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.aiter_bytes():
                yield chunk
        finally:
            await self.response.aclose()

    async def aclose(self) -> None:
        await self.response.aclose()

    async def __aenter__(self) -> ByteStream:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


async def parse_streaming_response(stream: AsyncIterable[bytes]) -> AsyncIterator[StreamEvent]:
    """Parse a server-sent event stream.

    ``data:`` lines yield message events, ``event:`` lines yield named events
    with empty data, and ``data: [DONE]`` ends the stream.
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    buffer = ""
    async for chunk in stream:
        buffer += decoder.decode(chunk)
        *lines, buffer = buffer.split("\n")
        for line in lines:
            line = line.rstrip("\r")
            if not line.strip():
                continue
            if line.startswith("data: "):
                data = line[len("data: "):]
                if data == "[DONE]":
                    return
                yield StreamEvent(event="message", data=data)
            elif line.startswith("event: "):
                yield StreamEvent(event=line[len("event: "):], data="")


class BaseClient:
    """Transport and shared state of a generated client.

    ``session_token`` is best-effort, unsynchronized state: any in-flight
    call may overwrite it from the ``x-session-token`` response header, the
    last write wins, and later calls send it back.
    """

    default_base_url: str = ""
    api_key_env: str = "API_KEY"
    user_agent: str = f"sdkgen/{__version__}"

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.session_token: str | None = None
        self._base_url = (self.config.base_url or self.default_base_url).rstrip("/")
        if not self._base_url:
            raise ValueError("base_url is required: pass it in ClientConfig")
        self._http = http_client or httpx.AsyncClient(timeout=self.config.timeout)

    async def __aenter__(self) -> BaseClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _api_key(self) -> str:
        api_key = self.config.api_key or os.environ.get(self.api_key_env)
        if not api_key:
            raise MissingApiKeyError(
                f"API key is required. Provide it via ClientConfig.api_key"
                f" or the {self.api_key_env} environment variable"
            )
        return api_key

    def _build_request(
        self,
        url: str,
        method: str,
        body: Any | None,
        query: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
        accept: str | None = None,
    ) -> httpx.Request:
        request_headers = {
            "Authorization": f"Bearer {self._api_key()}",
            "User-Agent": self.user_agent,
            **self.config.headers,
            **(headers or {}),
        }
        if accept:
            request_headers["Accept"] = accept
            request_headers["Cache-Control"] = "no-cache"
        if self.session_token:
            request_headers[SESSION_TOKEN_HEADER] = self.session_token

        send_body = method != "GET" and body is not None
        return self._http.build_request(
            method,
            self._base_url + url,
            params=dict(query) if query else None,
            headers=request_headers,
            json=body if send_body else None,
        )

    def _remember_session(self, response: httpx.Response) -> None:
        token = response.headers.get(SESSION_TOKEN_HEADER)
        if token:
            self.session_token = token

    async def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        await response.aread()
        text = response.text
        logger.debug("%s %s failed with %s", response.request.method, response.request.url, response.status_code)
        raise error_for_status(response.status_code, text or None, text)

    async def fetch(
        self,
        url: str,
        method: str,
        *,
        body: Any | None = None,
        query: Mapping[str, Any] | None = None,
        path_params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Send one request and return its parsed payload.

        ``url`` already has ``path_params`` substituted; the record is
        accepted so the call mirrors what the generated method built.
        """
        request = self._build_request(url, method, body, query, headers)
        response = await self._http.send(request)
        self._remember_session(response)
        await self._raise_for_status(response)

        if response.status_code == 204 or not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if any(binary in content_type for binary in BINARY_CONTENT_TYPES):
            return response.content
        if _looks_like_json(content_type):
            return response.json()
        return response.text

    async def fetch_stream(
        self,
        url: str,
        method: str,
        *,
        body: Any | None = None,
        query: Mapping[str, Any] | None = None,
        path_params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ByteStream:
        """Send one request and return its body as a byte stream."""
        request = self._build_request(url, method, body, query, headers, accept="text/event-stream")
        response = await self._http.send(request, stream=True)
        self._remember_session(response)
        try:
            await self._raise_for_status(response)
        except BaseException:
            await response.aclose()
            raise
        return ByteStream(response)
