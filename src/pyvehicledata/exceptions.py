"""Custom exception hierarchy for pyvehicledata."""

from __future__ import annotations


class VehicleDataError(Exception):
    """Base exception for all pyvehicledata errors."""


class VehicleDataConfigError(VehicleDataError):
    """Invalid or missing configuration."""


class RequestValidationError(VehicleDataError):
    """Caller input is missing or malformed."""


class AuthError(VehicleDataError):
    """Credential exchange failed or returned no token.

    Fatal for the request that needed the token; there is no stale-token
    fallback.
    """

    def __init__(self, message: str, *, endpoint: str = "") -> None:
        self.endpoint = endpoint
        super().__init__(message)


class TransportError(VehicleDataError):
    """HTTP-level failure (network, non-2xx, invalid JSON, timeout)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class SourceTimeout(TransportError):
    """Upstream did not respond within its allotted window."""


class SourceHttpError(TransportError):
    """Upstream returned a non-success status."""


class SourceParseError(TransportError):
    """Upstream returned a body that is not JSON."""


class VehicleNotFoundError(VehicleDataError):
    """Neither the MOT history nor the tax source knows the registration."""

    def __init__(self, registration: str) -> None:
        self.registration = registration
        super().__init__("Vehicle not found")


class NotificationError(VehicleDataError):
    """SMS provider rejected the message."""


class UpstreamError(VehicleDataError):
    """A single-source passthrough call failed."""
