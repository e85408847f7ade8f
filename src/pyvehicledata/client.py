"""Process-wide hub owning the HTTP session and every service."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

import aiohttp

from pyvehicledata._transport import HttpTransport, Transport
from pyvehicledata.cache import ResponseCache
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.credentials import CredentialCache
from pyvehicledata.exceptions import VehicleDataError
from pyvehicledata.fetcher import FanOutFetcher
from pyvehicledata.models.fuel import NearbyStation
from pyvehicledata.models.outcome import AggregatedResult
from pyvehicledata.models.reminder import ReminderRequest
from pyvehicledata.models.vehicle import VehicleRecord
from pyvehicledata.services.fuel import DEFAULT_FUEL, DEFAULT_RADIUS_MILES, FuelPriceService
from pyvehicledata.services.insurers import InsurerSearchService
from pyvehicledata.services.notifications import NotificationService
from pyvehicledata.services.reminders import ReminderService
from pyvehicledata.services.vehicles import VehicleLookupService
from pyvehicledata.sources import SourceRegistry, build_fuel_registry

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Services:
    credentials: CredentialCache
    fetcher: FanOutFetcher
    vehicles: VehicleLookupService
    fuel: FuelPriceService
    notifications: NotificationService
    insurers: InsurerSearchService
    reminders: ReminderService


class VehicleDataHub:
    """Owns the shared state of a serving process.

    The credential cache and the response cache live as long as the hub,
    so one hub per process lets a warm process reuse its token and its
    cached aggregate across requests.

    Usage::

        async with VehicleDataHub(config) as hub:
            vehicle = await hub.lookup_vehicle("AB12 CDE")
            prices = await hub.get_fuel_prices()
    """

    def __init__(
        self,
        config: VehicleDataConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        registry: SourceRegistry | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._registry = registry
        self._clock = clock
        self._services: _Services | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> VehicleDataHub:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session)
        self._services = self._build_services(self._transport)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._services = None

    def _build_services(self, transport: Transport) -> _Services:
        config = self._config
        registry = self._registry if self._registry is not None else build_fuel_registry(config)
        credentials = CredentialCache(
            transport,
            config.dvsa_token_url,
            lifetime=config.token_lifetime,
            safety_margin=config.token_safety_margin,
            single_flight=config.token_single_flight,
            timeout=config.lookup_timeout,
            clock=self._clock,
        )
        fetcher = FanOutFetcher(transport, clock=self._clock)
        cache: ResponseCache[AggregatedResult] = ResponseCache(clock=self._clock)
        notifications = NotificationService(config, transport)
        _logger.debug("Hub ready with %d fuel sources", len(registry))
        return _Services(
            credentials=credentials,
            fetcher=fetcher,
            vehicles=VehicleLookupService(config, credentials, fetcher),
            fuel=FuelPriceService(config, registry, fetcher, cache),
            notifications=notifications,
            insurers=InsurerSearchService(config, transport),
            reminders=ReminderService(notifications),
        )

    def _require_services(self) -> _Services:
        if self._services is None:
            raise VehicleDataError("Hub not initialized. Use 'async with VehicleDataHub(...) as hub:'")
        return self._services

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> VehicleDataConfig:
        return self._config

    @property
    def credentials(self) -> CredentialCache:
        return self._require_services().credentials

    @property
    def fetcher(self) -> FanOutFetcher:
        return self._require_services().fetcher

    @property
    def fuel(self) -> FuelPriceService:
        return self._require_services().fuel

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def lookup_vehicle(self, registration: Any) -> VehicleRecord:
        return await self._require_services().vehicles.lookup(registration)

    async def get_fuel_prices(self) -> AggregatedResult:
        return await self._require_services().fuel.get_prices()

    async def nearby_stations(
        self,
        *,
        latitude: float,
        longitude: float,
        radius: float = DEFAULT_RADIUS_MILES,
        fuel: str = DEFAULT_FUEL,
    ) -> list[NearbyStation]:
        return await self._require_services().fuel.nearby(
            latitude=latitude,
            longitude=longitude,
            radius=radius,
            fuel=fuel,
        )

    async def send_notification(self, to: Any, body: Any) -> dict[str, Any]:
        return await self._require_services().notifications.send(to, body)

    async def search_insurers(self, query: str | None) -> Any:
        return await self._require_services().insurers.search(query)

    async def run_reminders(self, request: ReminderRequest, *, today: date | None = None) -> list[str]:
        return await self._require_services().reminders.run(request, today=today)
