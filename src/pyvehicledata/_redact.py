"""Mask credentials before request headers and token payloads reach DEBUG logs."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "<redacted>"

# Compared after lower-casing and mapping "-" to "_".
_SECRET_NAMES: frozenset[str] = frozenset(
    {
        "authorization",
        "cookie",
        "password",
        "token",
        "x_api_key",
        "api_key",
    }
)
_SECRET_SUFFIXES: tuple[str, ...] = ("_secret", "_token")

_MAX_ITEMS = 20
_MAX_DEPTH = 20


def is_secret(name: str) -> bool:
    """Return ``True`` for header or field names that carry credentials."""
    normalized = name.lower().replace("-", "_")
    return normalized in _SECRET_NAMES or normalized.endswith(_SECRET_SUFFIXES)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy *headers* with credential values masked.

    An ``Authorization`` value keeps its scheme (``Bearer <redacted>``) so a
    log still shows which kind of credential went out.
    """
    masked: dict[str, str] = {}
    for name, value in headers.items():
        if not is_secret(name):
            masked[name] = value
            continue
        scheme, sep, _ = value.partition(" ")
        masked[name] = f"{scheme} {REDACTED}" if sep else REDACTED
    return masked


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of a decoded JSON *value* that is safe to log.

    Secret fields are masked at any depth. Long strings are cut at
    *max_string* characters and lists (station feeds run to thousands of
    rows) are cut after their first entries.
    """
    return _redact(value, max_string, 0)


def _redact(value: Any, max_string: int, depth: int) -> Any:
    if depth > _MAX_DEPTH:
        return "<max-depth>"
    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED if is_secret(str(key)) else _redact(item, max_string, depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        head = [_redact(item, max_string, depth + 1) for item in value[:_MAX_ITEMS]]
        if len(value) > _MAX_ITEMS:
            head.append(f"<{len(value) - _MAX_ITEMS} more>")
        return head
    if value is None or isinstance(value, (bool, int, float)):
        return value
    return repr(value)
