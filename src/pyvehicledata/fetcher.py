"""Concurrent fan-out over independent upstream sources.

Every source gets its own timeout and its own error boundary: a source
that times out, answers with an error status or sends garbage becomes a
:class:`FetchOutcome` with a failure status and never fails the batch.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import time
from collections.abc import Callable, Iterable
from typing import Any

from pyvehicledata._constants import ENVELOPE_KEYS
from pyvehicledata._transport import Transport
from pyvehicledata.exceptions import (
    SourceHttpError,
    SourceParseError,
    SourceTimeout,
    TransportError,
)
from pyvehicledata.models._base import Record
from pyvehicledata.models.outcome import FetchOutcome, FetchStatus
from pyvehicledata.models.source import SourceDescriptor

_logger = logging.getLogger(__name__)


def _records(value: list[Any]) -> list[Record]:
    return [item for item in value if isinstance(item, dict)]


def _probe(payload: Any, shape_keys: tuple[str, ...]) -> list[Record] | None:
    """Return the first non-null value among *shape_keys* if it is a list."""
    if not isinstance(payload, dict):
        return None
    for key in shape_keys:
        value = payload.get(key)
        if value is None:
            continue
        if isinstance(value, list):
            return _records(value)
        _logger.debug("Payload key %r is %s, not a list", key, type(value).__name__)
        return None
    return None


def _unwrap_envelope(payload: Any) -> Any | None:
    """Return the body a CORS relay embedded in *payload*, if any.

    Relays such as allorigins answer ``{"contents": "<upstream body>"}``.
    """
    if not isinstance(payload, dict):
        return None
    for key in ENVELOPE_KEYS:
        inner = payload.get(key)
        if isinstance(inner, dict):
            return inner
        if isinstance(inner, str):
            try:
                return json.loads(inner)
            except json.JSONDecodeError as exc:
                raise SourceParseError(f"Envelope field {key!r} is not JSON: {inner[:64]}") from exc
    return None


def extract_records(payload: Any, shape_keys: tuple[str, ...]) -> list[Record] | None:
    """Locate the data array in an upstream payload.

    Keys are probed in priority order; when none matches, one level of
    relay envelope is unwrapped and probed again. With no *shape_keys*
    the payload object itself is the single record.

    Returns ``None`` when no data array is found; that is "no data", not
    an error.

    Raises
    ------
    SourceParseError
        The envelope's inner string is not JSON.
    """
    if not shape_keys:
        if isinstance(payload, dict):
            return [payload]
        if isinstance(payload, list):
            return _records(payload)
        return None

    data = _probe(payload, shape_keys)
    if data is not None:
        return data
    inner = _unwrap_envelope(payload)
    if inner is None:
        return None
    return _probe(inner, shape_keys)


class FanOutFetcher:
    """Call many sources concurrently and collect one outcome per source.

    There are no retries: a failed source is left out of this pass and
    picked up again on the next full refresh. The ``alternate_endpoints``
    of a descriptor are a fallback chain inside that source's attempt,
    tried in order until one yields records.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport = transport
        self._clock = clock

    async def fetch_all(self, sources: Iterable[SourceDescriptor]) -> list[FetchOutcome]:
        """Fetch every source; the result has one outcome per input, in input order."""
        sources = list(sources)
        outcomes = await asyncio.gather(*(self.fetch_one(source) for source in sources))
        ok = sum(1 for outcome in outcomes if outcome.ok)
        _logger.debug("Fan-out finished: %d/%d sources ok", ok, len(sources))
        return list(outcomes)

    async def _request(self, source: SourceDescriptor, endpoint: str) -> Any:
        request = source.request
        body = None
        if request.method == "POST" and request.body is not None:
            body = copy.deepcopy(dict(request.body))
        return await self._transport.request_json(
            request.method,
            endpoint,
            headers=dict(request.headers),
            json_body=body,
            timeout=request.timeout,
        )

    async def fetch_one(self, source: SourceDescriptor) -> FetchOutcome:
        """Fetch one source, walking its fallback chain; never raises."""
        started = self._clock()
        status = FetchStatus.NETWORK_ERROR
        http_status: int | None = None
        error: str | None = None
        data: list[Record] | None = None
        answered = False

        for endpoint in source.endpoints:
            http_status = None
            data = None
            try:
                payload = await asyncio.wait_for(
                    self._request(source, endpoint),
                    timeout=source.request.timeout,
                )
                data = extract_records(payload, source.response_shape_keys)
            except (asyncio.TimeoutError, SourceTimeout):
                status = FetchStatus.TIMEOUT
                error = f"No response within {source.request.timeout}s"
            except SourceHttpError as exc:
                status = FetchStatus.HTTP_ERROR
                http_status = exc.status_code
                error = str(exc)
            except SourceParseError as exc:
                status = FetchStatus.PARSE_ERROR
                error = str(exc)
            except TransportError as exc:
                status = FetchStatus.NETWORK_ERROR
                error = str(exc)
            except Exception as exc:  # noqa: BLE001 - a broken source must not fail the batch
                _logger.exception("Unexpected error fetching %s from %s", source.name, endpoint)
                status = FetchStatus.NETWORK_ERROR
                error = f"{type(exc).__name__}: {exc}"
            else:
                status = FetchStatus.OK
                error = None
                if data is not None:
                    break
                answered = True
                _logger.debug("Source %s: no known data key at %s", source.name, endpoint)
                continue
            _logger.warning("Source %s failed at %s: %s", source.name, endpoint, status.value)

        if answered and status is not FetchStatus.OK:
            # An earlier endpoint answered without data; later fallbacks only failed.
            status = FetchStatus.OK
            http_status = None
            error = None

        return FetchOutcome(
            source_name=source.name,
            status=status,
            http_status=http_status,
            data=data if status is FetchStatus.OK else None,
            elapsed_ms=(self._clock() - started) * 1000.0,
            error=error,
        )
