"""Typed models for pyvehicledata."""

from pyvehicledata.models._base import ApiModel, Record, first_present, is_missing
from pyvehicledata.models.fuel import NearbyStation, PriceBand
from pyvehicledata.models.outcome import AggregatedResult, FetchOutcome, FetchStatus
from pyvehicledata.models.reminder import ReminderRecipient, ReminderRequest, ReminderVehicle
from pyvehicledata.models.source import RequestConfig, SourceDescriptor
from pyvehicledata.models.token import CredentialToken
from pyvehicledata.models.vehicle import VehicleRecord

__all__ = [
    "AggregatedResult",
    "ApiModel",
    "CredentialToken",
    "FetchOutcome",
    "FetchStatus",
    "NearbyStation",
    "PriceBand",
    "Record",
    "ReminderRecipient",
    "ReminderRequest",
    "ReminderVehicle",
    "RequestConfig",
    "SourceDescriptor",
    "VehicleRecord",
    "first_present",
    "is_missing",
]
