"""Upstream source descriptors."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from pyvehicledata._constants import DEFAULT_SHAPE_KEYS, DEFAULT_SOURCE_TIMEOUT


def _check_url(value: str) -> str:
    stripped = value.strip()
    if not stripped.startswith(("http://", "https://")):
        raise ValueError(f"endpoint must be an http(s) URL, got {value!r}")
    return stripped


class RequestConfig(BaseModel):
    """How to call one upstream endpoint.

    ``headers`` and ``body`` are read-only views; descriptors are shared
    by every request for the life of the process.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    method: Literal["GET", "POST"] = "GET"
    headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    body: Mapping[str, Any] | None = None
    """JSON body sent with POST requests."""
    timeout: float = Field(default=DEFAULT_SOURCE_TIMEOUT, gt=0)

    @field_validator("headers", "body")
    @classmethod
    def _read_only(cls, value: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        if value is None:
            return None
        return MappingProxyType(copy.deepcopy(dict(value)))

    @field_serializer("headers", "body")
    def _dump_mapping(self, value: Mapping[str, Any] | None) -> dict[str, Any] | None:
        return dict(value) if value is not None else None


class SourceDescriptor(BaseModel):
    """Static metadata for one external data source.

    ``response_shape_keys`` lists the payload fields to probe, in priority
    order, for the data array. An empty tuple means the whole payload
    object is the single record (used for per-vehicle lookups).

    ``alternate_endpoints`` are tried in order when the primary endpoint
    fails or yields no records, all within this source's own attempt.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    endpoint: str
    request: RequestConfig = Field(default_factory=RequestConfig)
    response_shape_keys: tuple[str, ...] = DEFAULT_SHAPE_KEYS
    alternate_endpoints: tuple[str, ...] = ()

    @field_validator("endpoint")
    @classmethod
    def _validate_endpoint(cls, value: str) -> str:
        return _check_url(value)

    @field_validator("alternate_endpoints")
    @classmethod
    def _validate_alternates(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(_check_url(v) for v in value)

    @property
    def endpoints(self) -> tuple[str, ...]:
        """Primary endpoint followed by the fallbacks."""
        return (self.endpoint, *self.alternate_endpoints)
