"""Per-source fetch outcomes and the aggregated result."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from pyvehicledata.models._base import Record


class FetchStatus(StrEnum):
    """Terminal status of one source in one aggregation pass."""

    OK = "ok"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    PARSE_ERROR = "parse_error"
    NETWORK_ERROR = "network_error"


class FetchOutcome(BaseModel):
    """Result of calling a single source.

    ``data`` is ``None`` both for failures and for successful responses
    where no known data key was found.
    """

    model_config = ConfigDict(frozen=True)

    source_name: str
    status: FetchStatus
    http_status: int | None = None
    data: list[Record] | None = None
    elapsed_ms: float | None = None
    error: str | None = None

    @model_validator(mode="after")
    def _failed_outcomes_carry_no_data(self) -> FetchOutcome:
        if self.status is not FetchStatus.OK and self.data is not None:
            raise ValueError(f"{self.status} outcome for {self.source_name} must not carry data")
        return self

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK

    def summary(self) -> dict[str, Any]:
        """Outcome without its data, for debug reports."""
        return {
            "source": self.source_name,
            "status": self.status.value,
            "httpStatus": self.http_status,
            "count": len(self.data) if self.data is not None else None,
            "elapsedMs": round(self.elapsed_ms, 1) if self.elapsed_ms is not None else None,
            "error": self.error,
        }


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 with millisecond precision and a ``Z`` suffix."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class AggregatedResult(BaseModel):
    """Flattened union of every successful source's records."""

    model_config = ConfigDict(frozen=True)

    items: list[Record] = Field(default_factory=list)
    fetched_at: datetime = Field(default_factory=utcnow)
    source_count: int = 0
    success_count: int = 0
    outcomes: tuple[FetchOutcome, ...] = ()

    def to_payload(self, *, items_key: str = "stations", debug: bool = False) -> dict[str, Any]:
        """Build the JSON body returned to callers."""
        payload: dict[str, Any] = {
            "updated": format_timestamp(self.fetched_at),
            "count": len(self.items),
            items_key: self.items,
        }
        if debug:
            payload["sourceCount"] = self.source_count
            payload["successCount"] = self.success_count
            payload["sources"] = [outcome.summary() for outcome in self.outcomes]
        return payload
