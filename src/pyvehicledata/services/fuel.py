"""Aggregated fuel prices and the nearby-station search."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from typing import Any

from pyvehicledata._constants import EARTH_RADIUS_MILES
from pyvehicledata.aggregator import aggregate
from pyvehicledata.cache import ResponseCache
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.exceptions import RequestValidationError
from pyvehicledata.fetcher import FanOutFetcher
from pyvehicledata.models._base import Record
from pyvehicledata.models.fuel import NearbyStation, PriceBand
from pyvehicledata.models.outcome import AggregatedResult
from pyvehicledata.sources import SourceRegistry

_logger = logging.getLogger(__name__)

DEFAULT_RADIUS_MILES = 3.0
MIN_RADIUS_MILES = 1.0
MAX_RADIUS_MILES = 25.0
DEFAULT_FUEL = "E10"
#: Pence either side of the local average that still counts as "average".
BAND_WIDTH_PENCE = 1.0


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in miles."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = math.sin(d_lat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def _coordinates(station: Record) -> tuple[float, float] | None:
    location = station.get("location")
    if not isinstance(location, dict):
        return None
    lat = _as_float(location.get("latitude"))
    lon = _as_float(location.get("longitude"))
    if lat is None or lon is None:
        return None
    return lat, lon


def _price(station: Record, fuel: str) -> float | None:
    prices = station.get("prices")
    if not isinstance(prices, dict):
        return None
    price = _as_float(prices.get(fuel))
    if price is None or price <= 0:
        return None
    return price


def price_band(price: float, average: float) -> PriceBand:
    if price < average - BAND_WIDTH_PENCE:
        return PriceBand.GREEN
    if price < average + BAND_WIDTH_PENCE:
        return PriceBand.ORANGE
    return PriceBand.RED


def validate_search(latitude: float, longitude: float, radius: float) -> None:
    if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
        raise RequestValidationError("lat/lng out of range")
    if not MIN_RADIUS_MILES <= radius <= MAX_RADIUS_MILES:
        raise RequestValidationError(f"radius must be between {MIN_RADIUS_MILES:g} and {MAX_RADIUS_MILES:g} miles")


def find_nearby(
    stations: Iterable[Record],
    *,
    latitude: float,
    longitude: float,
    radius: float = DEFAULT_RADIUS_MILES,
    fuel: str = DEFAULT_FUEL,
) -> list[NearbyStation]:
    """Stations within *radius* miles selling *fuel*, cheapest first.

    Each station is banded green/orange/red against the average price of
    the stations kept. Stations without coordinates or without a price
    for *fuel* are skipped.
    """
    validate_search(latitude, longitude, radius)

    local: list[tuple[Record, float, float, tuple[float, float]]] = []
    for station in stations:
        coords = _coordinates(station)
        price = _price(station, fuel)
        if coords is None or price is None:
            continue
        distance = haversine_miles(latitude, longitude, *coords)
        if distance <= radius:
            local.append((station, price, distance, coords))

    if not local:
        return []

    average = sum(price for _, price, _, _ in local) / len(local)
    nearby = [
        NearbyStation(
            site_id=_optional_str(station.get("site_id")),
            brand=_optional_str(station.get("brand")),
            address=_optional_str(station.get("address")),
            postcode=_optional_str(station.get("postcode")),
            latitude=coords[0],
            longitude=coords[1],
            prices=station.get("prices") or {},
            price=price,
            distance=round(distance, 2),
            color=price_band(price, average),
            raw=station,
        )
        for station, price, distance, coords in local
    ]
    nearby.sort(key=lambda s: (s.price, s.distance))
    return nearby


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


class FuelPriceService:
    """Fetch every retailer feed, merge them, and cache the result."""

    def __init__(
        self,
        config: VehicleDataConfig,
        registry: SourceRegistry,
        fetcher: FanOutFetcher,
        cache: ResponseCache[AggregatedResult],
    ) -> None:
        self._config = config
        self._registry = registry
        self._fetcher = fetcher
        self._cache = cache

    @property
    def registry(self) -> SourceRegistry:
        return self._registry

    async def refresh(self) -> AggregatedResult:
        """Run the full fan-out and aggregation, bypassing the cache."""
        outcomes = await self._fetcher.fetch_all(self._registry)
        result = aggregate(outcomes)
        _logger.info(
            "Aggregated %d stations from %d/%d sources",
            len(result.items),
            result.success_count,
            result.source_count,
        )
        return result

    async def get_prices(self) -> AggregatedResult:
        """Cached aggregate under the configured version key."""
        return await self._cache.get_or_compute(
            self._config.fuel_cache_key,
            self._config.fuel_cache_ttl,
            self.refresh,
        )

    async def nearby(
        self,
        *,
        latitude: float,
        longitude: float,
        radius: float = DEFAULT_RADIUS_MILES,
        fuel: str = DEFAULT_FUEL,
    ) -> list[NearbyStation]:
        validate_search(latitude, longitude, radius)
        result = await self.get_prices()
        return find_nearby(result.items, latitude=latitude, longitude=longitude, radius=radius, fuel=fuel)
