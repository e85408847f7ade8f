"""Insurer name search backed by Logo.dev."""

from __future__ import annotations

import logging
from typing import Any

from pyvehicledata._api.logos import search_logos
from pyvehicledata._transport import Transport
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.exceptions import TransportError, UpstreamError, VehicleDataConfigError

_logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2


class InsurerSearchService:
    def __init__(self, config: VehicleDataConfig, transport: Transport) -> None:
        self._config = config
        self._transport = transport

    async def search(self, query: str | None) -> Any:
        """Brand matches for *query*; queries under two characters match nothing."""
        if not query or len(query.strip()) < MIN_QUERY_LENGTH:
            return []
        if not self._config.logo_dev_secret_key:
            raise VehicleDataConfigError("Server misconfigured: Missing Keys")
        try:
            return await search_logos(self._config, self._transport, query.strip())
        except TransportError as exc:
            _logger.warning("Logo search failed: %s", exc)
            raise UpstreamError("Logo API Error") from exc
