"""pyvehicledata - UK vehicle, MOT, tax and fuel price aggregation service."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyvehicledata")
except PackageNotFoundError:
    __version__ = "0+local"
from pyvehicledata.aggregator import aggregate
from pyvehicledata.cache import CacheEntry, ResponseCache
from pyvehicledata.client import VehicleDataHub
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.credentials import CredentialCache
from pyvehicledata.exceptions import (
    AuthError,
    NotificationError,
    RequestValidationError,
    SourceHttpError,
    SourceParseError,
    SourceTimeout,
    TransportError,
    UpstreamError,
    VehicleDataConfigError,
    VehicleDataError,
    VehicleNotFoundError,
)
from pyvehicledata.fetcher import FanOutFetcher, extract_records
from pyvehicledata.models import (
    AggregatedResult,
    CredentialToken,
    FetchOutcome,
    FetchStatus,
    NearbyStation,
    PriceBand,
    RequestConfig,
    SourceDescriptor,
    VehicleRecord,
)
from pyvehicledata.sources import SourceRegistry

__all__ = [
    "__version__",
    "AggregatedResult",
    "AuthError",
    "CacheEntry",
    "CredentialCache",
    "CredentialToken",
    "FanOutFetcher",
    "FetchOutcome",
    "FetchStatus",
    "NearbyStation",
    "NotificationError",
    "PriceBand",
    "RequestConfig",
    "RequestValidationError",
    "ResponseCache",
    "SourceDescriptor",
    "SourceHttpError",
    "SourceParseError",
    "SourceRegistry",
    "SourceTimeout",
    "TransportError",
    "UpstreamError",
    "VehicleDataConfig",
    "VehicleDataConfigError",
    "VehicleDataError",
    "VehicleDataHub",
    "VehicleNotFoundError",
    "VehicleRecord",
    "aggregate",
    "extract_records",
]
