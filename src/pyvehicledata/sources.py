"""Registry of upstream sources and the built-in UK fuel retailer feeds."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from pyvehicledata._constants import DEFAULT_SOURCE_TIMEOUT, USER_AGENT
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.exceptions import VehicleDataConfigError
from pyvehicledata.models.source import RequestConfig, SourceDescriptor

_logger = logging.getLogger(__name__)

FUEL_SOURCE_HEADERS: dict[str, str] = {
    "User-Agent": USER_AGENT,
    "Accept": "application/json",
}

# Retailers publishing the CMA open fuel price format.
FUEL_RETAILER_FEEDS: tuple[tuple[str, str], ...] = (
    ("Ascona", "https://fuelprices.asconagroup.co.uk/newfuel.json"),
    ("Asda", "https://storelocator.asda.com/fuel_prices_data.json"),
    ("BP", "https://www.bp.com/en_gb/united-kingdom/home/fuelprices/fuel_prices_data.json"),
    ("Esso", "https://fuelprices.esso.co.uk/latestdata.json"),
    ("Jet", "https://jetlocal.co.uk/fuel_prices_data.json"),
    ("Karan", "https://devapi.krlpos.com/integration/live_price/krl"),
    ("Morrisons", "https://www.morrisons.com/fuel-prices/fuel.json"),
    ("Moto", "https://moto-way.com/fuel-price/fuel_prices.json"),
    ("MFG", "https://fuel.motorfuelgroup.com/fuel_prices_data.json"),
    ("Rontec", "https://www.rontec-servicestations.co.uk/fuel-prices/data/fuel_prices_data.json"),
    ("Sainsburys", "https://api.sainsburys.co.uk/v1/exports/latest/fuel_prices_data.json"),
    ("SGN", "https://www.sgnretail.uk/files/data/SGN_daily_fuel_prices.json"),
    ("Shell", "https://www.shell.co.uk/fuel-prices-data.html"),
)

_DESCRIPTOR_LIST = TypeAdapter(list[SourceDescriptor])


class SourceRegistry:
    """Ordered set of source descriptors with unique names.

    Descriptors are registered at startup and never mutated afterwards;
    iteration follows registration order, which is also the order items
    appear in an aggregated result.
    """

    def __init__(self, sources: Iterable[SourceDescriptor] = ()) -> None:
        self._sources: dict[str, SourceDescriptor] = {}
        for source in sources:
            self.register(source)

    def register(self, source: SourceDescriptor) -> None:
        if source.name in self._sources:
            raise ValueError(f"Source {source.name!r} is already registered")
        self._sources[source.name] = source

    def get(self, name: str) -> SourceDescriptor:
        return self._sources[name]

    @property
    def names(self) -> list[str]:
        return list(self._sources)

    def __iter__(self) -> Iterator[SourceDescriptor]:
        return iter(self._sources.values())

    def __len__(self) -> int:
        return len(self._sources)

    def __contains__(self, name: object) -> bool:
        return name in self._sources

    @classmethod
    def from_json_file(cls, path: str | Path) -> SourceRegistry:
        """Load descriptors from a JSON list, e.g. ``[{"name": ..., "endpoint": ...}]``."""
        try:
            raw = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise VehicleDataConfigError(f"Cannot read fuel sources file {path}: {exc}") from exc
        try:
            descriptors = _DESCRIPTOR_LIST.validate_json(raw)
        except ValidationError as exc:
            raise VehicleDataConfigError(f"Invalid fuel sources file {path}: {exc}") from exc
        try:
            return cls(descriptors)
        except ValueError as exc:
            raise VehicleDataConfigError(f"Invalid fuel sources file {path}: {exc}") from exc


def default_fuel_sources(
    *,
    timeout: float = DEFAULT_SOURCE_TIMEOUT,
    extra_source_url: str | None = None,
) -> SourceRegistry:
    """Build the registry of retailer feeds.

    *extra_source_url* points at the relay that republishes Tesco prices
    (Tesco does not serve its feed to non-browser clients).
    """
    request = RequestConfig(headers=FUEL_SOURCE_HEADERS, timeout=timeout)
    registry = SourceRegistry(
        SourceDescriptor(name=name, endpoint=url, request=request) for name, url in FUEL_RETAILER_FEEDS
    )
    if extra_source_url:
        registry.register(SourceDescriptor(name="Tesco", endpoint=extra_source_url, request=request))
    return registry


def build_fuel_registry(config: VehicleDataConfig) -> SourceRegistry:
    """Registry for the configured deployment."""
    if config.fuel_sources_file:
        registry = SourceRegistry.from_json_file(config.fuel_sources_file)
    else:
        registry = default_fuel_sources(
            timeout=config.source_timeout,
            extra_source_url=config.extra_fuel_source_url,
        )
    _logger.debug("Fuel source registry: %s", registry.names)
    return registry
