"""Source descriptors for the two government vehicle lookups.

Endpoints:
  - DVSA MOT history: ``GET {mot_base_url}/{registration}`` (bearer token + API key)
  - DVLA vehicle enquiry: ``POST {ves_url}`` with ``{"registrationNumber": ...}``
"""

from __future__ import annotations

from urllib.parse import quote

from pyvehicledata._constants import MOT_ACCEPT
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.models.source import RequestConfig, SourceDescriptor

MOT_SOURCE = "mot"
TAX_SOURCE = "tax"


def build_mot_source(config: VehicleDataConfig, registration: str, token: str) -> SourceDescriptor:
    """MOT history lookup; the whole response object is the record."""
    return SourceDescriptor(
        name=MOT_SOURCE,
        endpoint=f"{config.mot_base_url.rstrip('/')}/{quote(registration, safe='')}",
        request=RequestConfig(
            headers={
                "Authorization": f"Bearer {token}",
                "X-API-Key": config.dvsa_api_key,
                "Accept": MOT_ACCEPT,
            },
            timeout=config.lookup_timeout,
        ),
        response_shape_keys=(),
    )


def build_tax_source(config: VehicleDataConfig, registration: str) -> SourceDescriptor:
    """Tax and SORN status lookup; the whole response object is the record."""
    return SourceDescriptor(
        name=TAX_SOURCE,
        endpoint=config.ves_url,
        request=RequestConfig(
            method="POST",
            headers={
                "x-api-key": config.ves_api_key,
                "Content-Type": "application/json",
            },
            body={"registrationNumber": registration},
            timeout=config.lookup_timeout,
        ),
        response_shape_keys=(),
    )
