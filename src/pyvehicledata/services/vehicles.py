"""Vehicle lookup: merge DVSA MOT history with DVLA tax data."""

from __future__ import annotations

import logging
from typing import Any

from pyvehicledata._api.vehicle_sources import MOT_SOURCE, TAX_SOURCE, build_mot_source, build_tax_source
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.credentials import CredentialCache
from pyvehicledata.exceptions import RequestValidationError, VehicleDataConfigError, VehicleNotFoundError
from pyvehicledata.fetcher import FanOutFetcher
from pyvehicledata.models._base import Record, first_present
from pyvehicledata.models.outcome import FetchOutcome
from pyvehicledata.models.vehicle import VehicleRecord, latest_mot_expiry

_logger = logging.getLogger(__name__)


def normalize_registration(value: Any) -> str:
    """Upper-case a number plate and drop its spaces (``"ab12 cde"`` -> ``"AB12CDE"``)."""
    if not isinstance(value, str):
        raise RequestValidationError("registration is required")
    normalized = "".join(value.split()).upper()
    if not normalized:
        raise RequestValidationError("registration is required")
    return normalized


def _record(outcome: FetchOutcome) -> Record | None:
    if outcome.ok and outcome.data:
        return outcome.data[0]
    return None


def merge_vehicle(registration: str, mot: Record | None, tax: Record | None) -> VehicleRecord:
    """Combine both sources, preferring DVLA facts over DVSA ones."""
    mot = mot or {}
    tax = tax or {}
    mot_tests = mot.get("motTests")
    mot_tests = mot_tests if isinstance(mot_tests, list) else []
    return VehicleRecord(
        registration=first_present(tax.get("registrationNumber"), mot.get("registration"), default=registration),
        make=first_present(tax.get("make"), mot.get("make"), default="Unknown"),
        model=first_present(mot.get("model"), default="Unknown"),
        primary_colour=first_present(tax.get("colour"), mot.get("primaryColour")),
        fuel_type=first_present(tax.get("fuelType"), mot.get("fuelType")),
        engine_size=first_present(tax.get("engineCapacity"), mot.get("engineSize")),
        manufacture_date=first_present(tax.get("yearOfManufacture"), mot.get("manufactureDate")),
        first_used_date=first_present(tax.get("monthOfFirstRegistration"), mot.get("firstUsedDate")),
        tax_status=first_present(tax.get("taxStatus"), default="Unknown"),
        tax_due_date=first_present(tax.get("taxDueDate"), default=""),
        mot_tests=[test for test in mot_tests if isinstance(test, dict)],
        mot_expiry_date=latest_mot_expiry(mot_tests),
    )


class VehicleLookupService:
    """Look a registration up in both government APIs concurrently."""

    def __init__(
        self,
        config: VehicleDataConfig,
        credentials: CredentialCache,
        fetcher: FanOutFetcher,
    ) -> None:
        self._config = config
        self._credentials = credentials
        self._fetcher = fetcher

    async def lookup(self, registration: Any) -> VehicleRecord:
        """Return the merged record for *registration*.

        Raises
        ------
        RequestValidationError
            *registration* is missing or blank.
        VehicleDataConfigError
            Lookup credentials are not configured.
        AuthError
            The DVSA token exchange failed.
        VehicleNotFoundError
            Neither source returned the vehicle.
        """
        reg = normalize_registration(registration)
        config = self._config
        if not config.has_lookup_credentials:
            raise VehicleDataConfigError("Server misconfigured: Missing Keys")

        token = await self._credentials.get_token(
            config.dvsa_client_id,
            config.dvsa_client_secret,
            config.dvsa_scope,
        )
        outcomes = await self._fetcher.fetch_all(
            [build_mot_source(config, reg, token.value), build_tax_source(config, reg)]
        )
        by_name = {outcome.source_name: outcome for outcome in outcomes}
        mot = _record(by_name[MOT_SOURCE])
        tax = _record(by_name[TAX_SOURCE])

        if mot is None and tax is None:
            _logger.info(
                "Vehicle %s not found (mot=%s tax=%s)",
                reg,
                by_name[MOT_SOURCE].status.value,
                by_name[TAX_SOURCE].status.value,
            )
            raise VehicleNotFoundError(reg)

        return merge_vehicle(reg, mot, tax)
