"""Base model for upstream and API-facing payloads.

Models inheriting from :class:`ApiModel` get:

* ``alias_generator=to_camel`` so snake_case fields serialise to the
  camelCase keys the front-end and the government APIs use.
* ``populate_by_name`` so both spellings validate.
* Frozen instances; a merged record is never patched after creation.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Values upstream providers use for "not available".
_SENTINELS = frozenset({"", "--", "N/A"})

Record = dict[str, Any]
"""One untyped upstream row (a fuel station, an MOT test, ...)."""


def is_missing(value: Any) -> bool:
    """Return ``True`` when *value* should fall through to the next source."""
    if value is None:
        return True
    return isinstance(value, str) and value.strip() in _SENTINELS


def first_present(*values: Any, default: Any = None) -> Any:
    """Return the first value that is not missing, else *default*."""
    for value in values:
        if not is_missing(value):
            return value
    return default


class ApiModel(BaseModel):
    """Base for models exchanged with callers over JSON."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, as returned over HTTP."""
        return self.model_dump(mode="json", by_alias=True)
