"""aiohttp web application exposing the vehicle and fuel endpoints.

Every response, including errors, carries a JSON body.
"""

from __future__ import annotations

import json
import logging
import traceback
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from aiohttp import web
from pydantic import ValidationError

from pyvehicledata.client import VehicleDataHub
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.exceptions import (
    RequestValidationError,
    VehicleDataConfigError,
    VehicleDataError,
    VehicleNotFoundError,
)
from pyvehicledata.models.reminder import ReminderRequest
from pyvehicledata.services.fuel import DEFAULT_FUEL, DEFAULT_RADIUS_MILES

_logger = logging.getLogger(__name__)

HUB_KEY = web.AppKey("hub", VehicleDataHub)

_Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


def _error(status: int, message: str, **extra: Any) -> web.Response:
    return web.json_response({"error": message, **extra}, status=status)


def _debug_enabled(request: web.Request) -> bool:
    hub = request.app.get(HUB_KEY)
    return hub is not None and hub.config.debug_outcomes


@web.middleware
async def error_middleware(request: web.Request, handler: _Handler) -> web.StreamResponse:
    """Map the exception hierarchy onto JSON error responses."""
    try:
        return await handler(request)
    except web.HTTPException as exc:
        if exc.status < 400:
            raise
        return _error(exc.status, exc.reason)
    except RequestValidationError as exc:
        return _error(400, str(exc))
    except VehicleNotFoundError as exc:
        return _error(404, str(exc))
    except VehicleDataConfigError as exc:
        _logger.error("Configuration error on %s: %s", request.path, exc)
        return _error(500, str(exc))
    except VehicleDataError as exc:
        _logger.warning("%s failed: %s", request.path, exc)
        return _error(500, str(exc))
    except Exception as exc:
        _logger.exception("Unhandled error on %s", request.path)
        if _debug_enabled(request):
            return _error(500, str(exc) or type(exc).__name__, stack=traceback.format_exc())
        return _error(500, str(exc) or type(exc).__name__)


async def _read_json(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except json.JSONDecodeError as exc:
        raise RequestValidationError("Request body must be JSON") from exc
    if not isinstance(body, dict):
        raise RequestValidationError("Request body must be a JSON object")
    return body


def _float_param(request: web.Request, name: str, default: float | None = None) -> float:
    raw = request.query.get(name)
    if raw is None or raw == "":
        if default is None:
            raise RequestValidationError(f"{name} is required")
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RequestValidationError(f"{name} must be a number") from exc


def _truthy(value: str | None) -> bool:
    return value is not None and value.strip().lower() in {"1", "true", "yes", "on"}


# ----------------------------------------------------------------------
# Handlers
# ----------------------------------------------------------------------


async def vehicle_lookup(request: web.Request) -> web.Response:
    body = await _read_json(request)
    record = await request.app[HUB_KEY].lookup_vehicle(body.get("registration"))
    return web.json_response(record.to_json_dict())


async def fuel_prices(request: web.Request) -> web.Response:
    hub = request.app[HUB_KEY]
    result = await hub.get_fuel_prices()
    debug = hub.config.debug_outcomes or _truthy(request.query.get("debug"))
    return web.json_response(
        result.to_payload(debug=debug),
        headers={
            "Access-Control-Allow-Origin": "*",
            "Cache-Control": f"public, max-age={int(hub.config.fuel_cache_ttl)}",
        },
    )


async def fuel_prices_nearby(request: web.Request) -> web.Response:
    hub = request.app[HUB_KEY]
    stations = await hub.nearby_stations(
        latitude=_float_param(request, "lat"),
        longitude=_float_param(request, "lng"),
        radius=_float_param(request, "radius", DEFAULT_RADIUS_MILES),
        fuel=request.query.get("fuel") or DEFAULT_FUEL,
    )
    return web.json_response(
        {"count": len(stations), "stations": [station.to_json_dict() for station in stations]},
        headers={"Access-Control-Allow-Origin": "*"},
    )


async def send_notification(request: web.Request) -> web.Response:
    body = await _read_json(request)
    await request.app[HUB_KEY].send_notification(body.get("to"), body.get("body"))
    return web.json_response({"success": True})


async def insurer_search(request: web.Request) -> web.Response:
    result = await request.app[HUB_KEY].search_insurers(request.query.get("q"))
    return web.json_response(result)


async def reminders(request: web.Request) -> web.Response:
    body = await _read_json(request)
    try:
        reminder_request = ReminderRequest.model_validate(body)
    except ValidationError as exc:
        raise RequestValidationError(f"Invalid reminder request: {exc.error_count()} errors") from exc
    logs = await request.app[HUB_KEY].run_reminders(reminder_request)
    return web.json_response({"status": "Success", "logs": logs})


# ----------------------------------------------------------------------
# Application factory
# ----------------------------------------------------------------------


def setup_routes(app: web.Application) -> None:
    # Each operation is also served under the /api/* path the front-end calls.
    app.router.add_post("/vehicle-lookup", vehicle_lookup)
    app.router.add_post("/api/vehicle", vehicle_lookup)
    app.router.add_get("/fuel-prices", fuel_prices)
    app.router.add_get("/api/fuel-prices", fuel_prices)
    app.router.add_get("/fuel-prices/nearby", fuel_prices_nearby)
    app.router.add_get("/api/fuel-prices/nearby", fuel_prices_nearby)
    app.router.add_post("/send-notification", send_notification)
    app.router.add_post("/api/send-sms", send_notification)
    app.router.add_get("/insurer-search", insurer_search)
    app.router.add_get("/api/insurer-search", insurer_search)
    app.router.add_post("/reminders", reminders)
    app.router.add_post("/api/force-reminders", reminders)


def create_app(
    config: VehicleDataConfig | None = None,
    *,
    hub: VehicleDataHub | None = None,
) -> web.Application:
    """Build the application; the hub is opened on startup and closed on cleanup."""
    if hub is None:
        hub = VehicleDataHub(config if config is not None else VehicleDataConfig.from_env())

    async def _hub_context(app: web.Application) -> AsyncIterator[None]:
        async with hub:
            app[HUB_KEY] = hub
            yield

    app = web.Application(middlewares=[error_middleware])
    app.cleanup_ctx.append(_hub_context)
    setup_routes(app)
    return app
