"""Logo.dev brand search, used to find insurer logos."""

from __future__ import annotations

from typing import Any

from pyvehicledata._transport import Transport
from pyvehicledata.config import VehicleDataConfig


async def search_logos(config: VehicleDataConfig, transport: Transport, query: str) -> Any:
    """Return Logo.dev's search result verbatim."""
    return await transport.request_json(
        "GET",
        config.logo_dev_search_url,
        headers={"Authorization": f"Bearer {config.logo_dev_secret_key}"},
        params={"q": query},
        timeout=config.source_timeout,
    )
