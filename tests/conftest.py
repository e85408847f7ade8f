from __future__ import annotations

import asyncio
import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from pyvehicledata.exceptions import SourceHttpError


@dataclass
class Call:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] | None = None
    json_body: Any = None
    form: dict[str, str] | None = None
    auth: tuple[str, str] | None = None
    timeout: float | None = None


@dataclass
class _Route:
    response: Any = None
    error: Exception | None = None
    delay: float = 0.0
    handler: Callable[[Call], Any] | None = None


class FakeTransport:
    """In-memory `Transport`: canned responses keyed by URL, every call recorded."""

    def __init__(self) -> None:
        self.routes: dict[str, _Route] = {}
        self.calls: list[Call] = []

    def add(
        self,
        url: str,
        response: Any = None,
        *,
        error: Exception | None = None,
        delay: float = 0.0,
        handler: Callable[[Call], Any] | None = None,
    ) -> None:
        self.routes[url] = _Route(response=response, error=error, delay=delay, handler=handler)

    def count(self, url: str) -> int:
        return sum(1 for call in self.calls if call.url == url)

    async def request_json(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        form: Mapping[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        call = Call(
            method=method,
            url=url,
            headers=dict(headers or {}),
            params=dict(params) if params is not None else None,
            json_body=json_body,
            form=dict(form) if form is not None else None,
            auth=auth,
            timeout=timeout,
        )
        self.calls.append(call)
        route = self.routes.get(url)
        if route is None:
            raise SourceHttpError(f"HTTP 404 from {url}", status_code=404, endpoint=url)
        if route.delay:
            await asyncio.sleep(route.delay)
        if route.handler is not None:
            return route.handler(call)
        if route.error is not None:
            raise route.error
        return copy.deepcopy(route.response)


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
