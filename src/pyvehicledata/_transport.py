"""HTTP transport shared by every upstream call."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyvehicledata._redact import redact_headers
from pyvehicledata.exceptions import (
    SourceHttpError,
    SourceParseError,
    SourceTimeout,
    TransportError,
)

_logger = logging.getLogger(__name__)


def _preview(raw: bytes) -> str:
    return raw[:200].decode("utf-8", errors="replace")


class Transport(Protocol):
    """Structural transport interface used by services and the fetcher.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        ...


class HttpTransport:
    """aiohttp-backed transport that classifies every failure.

    Raises
    ------
    SourceTimeout
        The request did not complete within *timeout* seconds.
    SourceHttpError
        The upstream answered with a non-2xx status.
    SourceParseError
        The body is not valid JSON.
    TransportError
        Any other network-level failure.
    """

    def __init__(self, http_session: aiohttp.ClientSession) -> None:
        self._http = http_session

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        kwargs: dict[str, Any] = {"headers": dict(headers or {})}
        if params:
            kwargs["params"] = dict(params)
        if json_body is not None:
            kwargs["json"] = json_body
        elif form is not None:
            kwargs["data"] = dict(form)
        if auth is not None:
            kwargs["auth"] = aiohttp.BasicAuth(*auth)
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        _logger.debug("%s %s headers=%s", method, url, redact_headers(kwargs["headers"]))

        try:
            async with self._http.request(method, url, **kwargs) as resp:
                raw = await resp.read()
                status = resp.status
        except asyncio.TimeoutError as exc:
            raise SourceTimeout(f"Request to {url} timed out after {timeout}s", endpoint=url) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Request to {url} failed: {exc}", endpoint=url) from exc

        if not 200 <= status < 300:
            raise SourceHttpError(
                f"HTTP {status} from {url}: {_preview(raw)}",
                status_code=status,
                endpoint=url,
            )

        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise SourceParseError(
                f"Invalid JSON from {url}: {_preview(raw)}",
                status_code=status,
                endpoint=url,
            ) from exc
