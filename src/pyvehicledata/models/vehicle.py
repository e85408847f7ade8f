"""Merged vehicle record built from MOT history and tax data."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from pyvehicledata.models._base import ApiModel, Record


class VehicleRecord(ApiModel):
    """One vehicle as seen by both government sources.

    Tax (DVLA) fields win over MOT (DVSA) fields where both sources carry
    the same fact; ``model`` and the test history only exist on the MOT side.
    """

    registration: str
    make: str = "Unknown"
    model: str = "Unknown"
    primary_colour: str | None = None
    fuel_type: str | None = None
    engine_size: int | str | None = None
    manufacture_date: int | str | None = None
    first_used_date: str | None = None
    tax_status: str = "Unknown"
    tax_due_date: str = ""
    mot_tests: list[Record] = Field(default_factory=list)
    mot_expiry_date: str | None = None

    @property
    def has_mot_history(self) -> bool:
        return bool(self.mot_tests)


def latest_mot_expiry(mot_tests: list[Any]) -> str | None:
    """Expiry date of the most recent test (the API lists newest first)."""
    for test in mot_tests:
        if isinstance(test, dict):
            expiry = test.get("expiryDate")
            if expiry:
                return str(expiry)
    return None
