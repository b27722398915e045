"""Low-level HTTP transport and body decoding for the results provider."""

from __future__ import annotations

from typing import Any

import httpx
import json5

from livepush.exceptions import (
    UpstreamAPIError,
    UpstreamConnectionError,
    UpstreamDecodeError,
    UpstreamTimeoutError,
)

DEFAULT_BASE_URL = "https://liveresultat.orientering.se/api.php"
DEFAULT_TIMEOUT = 15.0

_KEEP_CONTROL_BYTES = frozenset({0x09, 0x0A, 0x0D})
_CONTROL_TRANSLATION = bytes(
    0x20 if byte < 0x20 and byte not in _KEEP_CONTROL_BYTES else byte
    for byte in range(256)
)


def sanitize_control_bytes(raw: bytes) -> bytes:
    """Replace control bytes other than tab, LF and CR with spaces.

    The provider leaks raw control bytes from club and runner names, which
    makes the body unparseable as JSON.
    """
    return raw.translate(_CONTROL_TRANSLATION)


def decode_body(raw: bytes) -> dict[str, Any]:
    """Sanitize, decode and leniently parse a provider response body."""
    text = sanitize_control_bytes(raw).decode("utf-8", errors="replace")
    try:
        data = json5.loads(text)
    except ValueError as exc:
        raise UpstreamDecodeError(f"Malformed response body: {exc}") from exc
    if not isinstance(data, dict):
        raise UpstreamDecodeError(f"Expected a JSON object, got {type(data).__name__}")
    return data


def _handle_response(response: httpx.Response) -> bytes:
    """Validate response status and return the raw body."""
    if response.status_code >= 400:
        raise UpstreamAPIError(
            status_code=response.status_code,
            message=response.text[:200],
        )
    return response.content


class AsyncTransport:
    """Asynchronous HTTP transport using httpx.AsyncClient."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def get_bytes(self, params: list[tuple[str, str]]) -> bytes:
        """Perform an async GET request and return the raw body."""
        try:
            response = await self._client.get(self.base_url, params=params)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeoutError(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise UpstreamConnectionError(str(exc)) from exc
        return _handle_response(response)

    async def close(self) -> None:
        await self._client.aclose()
