"""Expiry reminder request models."""

from __future__ import annotations

from datetime import date

from pydantic import Field

from pyvehicledata.models._base import ApiModel


class ReminderVehicle(ApiModel):
    registration: str
    mot_expiry: date | None = None
    tax_expiry: date | None = None
    insurance_expiry: date | None = None


class ReminderRecipient(ApiModel):
    phone_number: str | None = None
    sms_enabled: bool = False
    vehicles: list[ReminderVehicle] = Field(default_factory=list)


class ReminderRequest(ApiModel):
    recipients: list[ReminderRecipient] = Field(default_factory=list)
