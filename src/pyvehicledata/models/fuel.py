"""Fuel station models used by the nearby-price search."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field

from pyvehicledata.models._base import ApiModel, Record


class PriceBand(StrEnum):
    """Traffic-light band relative to the local average price."""

    GREEN = "green"
    ORANGE = "orange"
    RED = "red"


class NearbyStation(ApiModel):
    """A station within the search radius, with its distance and band."""

    site_id: str | None = None
    brand: str | None = None
    address: str | None = None
    postcode: str | None = None
    latitude: float
    longitude: float
    prices: dict[str, Any] = Field(default_factory=dict)
    price: float
    distance: float
    """Miles from the search centre."""
    color: PriceBand
    raw: Record = Field(default_factory=dict, exclude=True)
