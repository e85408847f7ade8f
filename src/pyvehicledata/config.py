"""Service configuration for pyvehicledata."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyvehicledata._constants import (
    DEFAULT_SOURCE_TIMEOUT,
    DVSA_SCOPE,
    DVSA_TOKEN_URL,
    FUEL_CACHE_KEY,
    FUEL_CACHE_TTL,
    LOGO_DEV_SEARCH_URL,
    MOT_HISTORY_URL,
    TOKEN_LIFETIME,
    TOKEN_SAFETY_MARGIN,
    TWILIO_BASE_URL,
    VES_URL,
)
from pyvehicledata.exceptions import VehicleDataConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class VehicleDataConfig:
    """Service configuration.

    Parameters
    ----------
    dvsa_client_id, dvsa_client_secret : str
        OAuth client credentials for the DVSA MOT history API.
    dvsa_api_key : str
        ``X-API-Key`` sent alongside the DVSA bearer token.
    dvsa_token_url, dvsa_scope : str
        Token endpoint and scope for the client-credentials grant.
    mot_base_url : str
        MOT history lookup URL; the registration is appended as a path segment.
    ves_api_key, ves_url : str
        DVLA vehicle enquiry service key and URL.
    token_lifetime : float
        Nominal token lifetime in seconds.
    token_safety_margin : float
        Seconds before nominal expiry at which a token is considered stale.
    token_single_flight : bool
        Collapse concurrent token refreshes into one exchange call.
    source_timeout : float
        Per-source timeout for fuel-price sources without their own value.
    lookup_timeout : float
        Timeout for each vehicle-lookup upstream call.
    fuel_cache_key : str
        Version tag for the aggregated fuel-price response. Bump it
        (``...-v9`` -> ``...-v10``) to invalidate the cached response.
    fuel_cache_ttl : float
        Lifetime of the cached fuel-price response in seconds.
    fuel_sources_file : str or None
        Path to a JSON list of source descriptors replacing the built-in
        retailer registry.
    extra_fuel_source_url : str or None
        URL of the relay that republishes Tesco prices. Disabled when unset.
    twilio_account_sid, twilio_auth_token, twilio_from_number : str
        SMS provider credentials and sender number.
    logo_dev_secret_key : str
        Secret key for the insurer logo search.
    debug_outcomes : bool
        Always include per-source outcome reports and error stacks in responses.
    host, port
        Bind address for ``python -m pyvehicledata``.
    """

    dvsa_client_id: str = ""
    dvsa_client_secret: str = ""
    dvsa_api_key: str = ""
    dvsa_token_url: str = DVSA_TOKEN_URL
    dvsa_scope: str = DVSA_SCOPE
    mot_base_url: str = MOT_HISTORY_URL
    ves_api_key: str = ""
    ves_url: str = VES_URL
    token_lifetime: float = TOKEN_LIFETIME
    token_safety_margin: float = TOKEN_SAFETY_MARGIN
    token_single_flight: bool = True
    source_timeout: float = DEFAULT_SOURCE_TIMEOUT
    lookup_timeout: float = DEFAULT_SOURCE_TIMEOUT
    fuel_cache_key: str = FUEL_CACHE_KEY
    fuel_cache_ttl: float = FUEL_CACHE_TTL
    fuel_sources_file: str | None = None
    extra_fuel_source_url: str | None = None
    twilio_base_url: str = TWILIO_BASE_URL
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_from_number: str = ""
    logo_dev_search_url: str = LOGO_DEV_SEARCH_URL
    logo_dev_secret_key: str = ""
    debug_outcomes: bool = False
    host: str = "0.0.0.0"
    port: int = 8080

    def __post_init__(self) -> None:
        if self.token_safety_margin >= self.token_lifetime:
            raise VehicleDataConfigError("token_safety_margin must be shorter than token_lifetime")
        if self.fuel_cache_ttl < 0:
            raise VehicleDataConfigError("fuel_cache_ttl must not be negative")
        if not self.fuel_cache_key.strip():
            raise VehicleDataConfigError("fuel_cache_key must not be empty")

    @property
    def has_lookup_credentials(self) -> bool:
        return bool(self.dvsa_client_id and self.dvsa_client_secret and self.ves_api_key)

    @property
    def has_sms_credentials(self) -> bool:
        return bool(self.twilio_account_sid and self.twilio_auth_token and self.twilio_from_number)

    @classmethod
    def from_env(cls, **overrides: Any) -> VehicleDataConfig:
        """Create configuration from environment variables.

        Provider credentials keep the names the hosting dashboard uses
        (``DVSA_CLIENT_ID``, ``VES_API_KEY``, ``TWILIO_*``, ``LOGO_DEV_SK``);
        service tuning uses ``VEHICLEDATA_*``. Explicit keyword arguments
        override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "DVSA_CLIENT_ID": "dvsa_client_id",
            "DVSA_CLIENT_SECRET": "dvsa_client_secret",
            "DVSA_API_KEY": "dvsa_api_key",
            "DVSA_TOKEN_URL": "dvsa_token_url",
            "DVSA_SCOPE": "dvsa_scope",
            "DVSA_MOT_URL": "mot_base_url",
            "VES_API_KEY": "ves_api_key",
            "VES_URL": "ves_url",
            "VEHICLEDATA_FUEL_CACHE_KEY": "fuel_cache_key",
            "VEHICLEDATA_FUEL_SOURCES_FILE": "fuel_sources_file",
            "VEHICLEDATA_TESCO_SOURCE_URL": "extra_fuel_source_url",
            "TWILIO_ACCOUNT_SID": "twilio_account_sid",
            "TWILIO_AUTH_TOKEN": "twilio_auth_token",
            "LOGO_DEV_SK": "logo_dev_secret_key",
            "VEHICLEDATA_HOST": "host",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        # The sender number has gone by three names over time.
        from_number = env.get("TWILIO_FROM_NUMBER") or env.get("TWILIO_PHONE_NUMBER") or env.get("FROM_NUMBER")
        if from_number is not None:
            config_kwargs["twilio_from_number"] = from_number

        _ENV_FLOAT_MAP = {
            "VEHICLEDATA_TOKEN_LIFETIME": "token_lifetime",
            "VEHICLEDATA_TOKEN_SAFETY_MARGIN": "token_safety_margin",
            "VEHICLEDATA_SOURCE_TIMEOUT": "source_timeout",
            "VEHICLEDATA_LOOKUP_TIMEOUT": "lookup_timeout",
            "VEHICLEDATA_FUEL_CACHE_TTL": "fuel_cache_ttl",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise VehicleDataConfigError(f"{env_key} must be a number, got {val!r}") from exc

        port_env = env.get("VEHICLEDATA_PORT")
        if port_env is not None and "port" not in overrides:
            try:
                config_kwargs["port"] = int(port_env)
            except ValueError as exc:
                raise VehicleDataConfigError(f"VEHICLEDATA_PORT must be an integer, got {port_env!r}") from exc

        if "token_single_flight" not in overrides:
            config_kwargs["token_single_flight"] = _env_bool(env.get("VEHICLEDATA_TOKEN_SINGLE_FLIGHT"), True)

        if "debug_outcomes" not in overrides:
            config_kwargs["debug_outcomes"] = _env_bool(env.get("VEHICLEDATA_DEBUG_OUTCOMES"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
