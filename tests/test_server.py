from __future__ import annotations

import contextlib
from collections.abc import AsyncIterator
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import pytest
from aiohttp.test_utils import TestClient, TestServer

from pyvehicledata.client import VehicleDataHub
from pyvehicledata.config import VehicleDataConfig
from pyvehicledata.exceptions import SourceHttpError
from pyvehicledata.models.source import RequestConfig, SourceDescriptor
from pyvehicledata.server import create_app
from pyvehicledata.sources import SourceRegistry

if TYPE_CHECKING:
    from conftest import FakeTransport

TOKEN_URL = "https://login.example.test/token"
MOT_URL = "https://mot.example.test/registration"
VES_URL = "https://ves.example.test/vehicles"
TWILIO_URL = "https://api.twilio.test"
SMS_URL = f"{TWILIO_URL}/2010-04-01/Accounts/AC123/Messages.json"
LOGO_URL = "https://logo.example.test/search"
ASDA_URL = "https://asda.example.test/fuel.json"
BP_URL = "https://bp.example.test/fuel.json"

ASDA_STATIONS = [
    {
        "site_id": "asda-1",
        "brand": "ASDA",
        "address": "1 High St",
        "postcode": "SW1A 1AA",
        "location": {"latitude": 51.5010, "longitude": -0.1416},
        "prices": {"E10": 139.9, "B7": 149.9},
    },
]
BP_STATIONS = [
    {
        "site_id": "bp-1",
        "brand": "BP",
        "address": "2 Mall",
        "postcode": "SW1A 2AA",
        "location": {"latitude": 51.5030, "longitude": -0.1300},
        "prices": {"E10": 145.9},
    },
]


def _config(**overrides: Any) -> VehicleDataConfig:
    values: dict[str, Any] = {
        "dvsa_client_id": "cid",
        "dvsa_client_secret": "csecret",
        "dvsa_api_key": "mot-key",
        "ves_api_key": "ves-key",
        "dvsa_token_url": TOKEN_URL,
        "mot_base_url": MOT_URL,
        "ves_url": VES_URL,
        "lookup_timeout": 0.5,
        "twilio_base_url": TWILIO_URL,
        "twilio_account_sid": "AC123",
        "twilio_auth_token": "twilio-token",
        "twilio_from_number": "+447700900000",
        "logo_dev_search_url": LOGO_URL,
        "logo_dev_secret_key": "sk_logo",
        "fuel_cache_ttl": 600,
    }
    values.update(overrides)
    return VehicleDataConfig(**values)


def _registry() -> SourceRegistry:
    request = RequestConfig(timeout=0.5)
    return SourceRegistry(
        [
            SourceDescriptor(name="Asda", endpoint=ASDA_URL, request=request),
            SourceDescriptor(name="BP", endpoint=BP_URL, request=request),
        ]
    )


@contextlib.asynccontextmanager
async def _serve(transport: FakeTransport, **overrides: Any) -> AsyncIterator[TestClient]:
    hub = VehicleDataHub(_config(**overrides), transport=transport, registry=_registry())  # type: ignore[arg-type]
    async with TestClient(TestServer(create_app(hub=hub))) as client:
        yield client


def _fuel_routes(transport: FakeTransport) -> None:
    transport.add(ASDA_URL, {"last_updated": "19/10/2026 07:00:00", "stations": ASDA_STATIONS})
    transport.add(BP_URL, {"sites": BP_STATIONS})


# ----------------------------------------------------------------------
# Vehicle lookup
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_vehicle_lookup_returns_merged_record(transport: FakeTransport) -> None:
    transport.add(TOKEN_URL, {"access_token": "T1"})
    transport.add(f"{MOT_URL}/AB12CDE", {"registration": "AB12CDE", "make": "FORD", "model": "FOCUS", "motTests": []})
    transport.add(VES_URL, {"registrationNumber": "AB12CDE", "make": "FORD", "taxStatus": "Taxed"})

    async with _serve(transport) as client:
        resp = await client.post("/vehicle-lookup", json={"registration": "ab12 cde"})
        body = await resp.json()

    assert resp.status == 200
    assert body["registration"] == "AB12CDE"
    assert body["model"] == "FOCUS"
    assert body["taxStatus"] == "Taxed"
    assert body["motTests"] == []


@pytest.mark.asyncio
async def test_vehicle_lookup_alias_route(transport: FakeTransport) -> None:
    transport.add(TOKEN_URL, {"access_token": "T1"})
    transport.add(VES_URL, {"registrationNumber": "AB12CDE", "make": "FORD"})

    async with _serve(transport) as client:
        resp = await client.post("/api/vehicle", json={"registration": "AB12CDE"})

    assert resp.status == 200


@pytest.mark.asyncio
async def test_vehicle_lookup_not_found_is_404(transport: FakeTransport) -> None:
    transport.add(TOKEN_URL, {"access_token": "T1"})
    transport.add(VES_URL, error=SourceHttpError("HTTP 404", status_code=404))

    async with _serve(transport) as client:
        resp = await client.post("/vehicle-lookup", json={"registration": "ZZ99ZZZ"})
        body = await resp.json()

    assert resp.status == 404
    assert body == {"error": "Vehicle not found"}


@pytest.mark.asyncio
async def test_vehicle_lookup_missing_registration_is_400(transport: FakeTransport) -> None:
    async with _serve(transport) as client:
        resp = await client.post("/vehicle-lookup", json={})
        body = await resp.json()

    assert resp.status == 400
    assert "registration" in body["error"]
    assert transport.calls == []


@pytest.mark.asyncio
async def test_vehicle_lookup_rejects_non_json_body(transport: FakeTransport) -> None:
    async with _serve(transport) as client:
        resp = await client.post("/vehicle-lookup", data="not json")
        body = await resp.json()

    assert resp.status == 400
    assert body["error"] == "Request body must be JSON"


@pytest.mark.asyncio
async def test_vehicle_lookup_without_keys_is_500(transport: FakeTransport) -> None:
    async with _serve(transport, dvsa_client_secret="") as client:
        resp = await client.post("/vehicle-lookup", json={"registration": "AB12CDE"})
        body = await resp.json()

    assert resp.status == 500
    assert body["error"] == "Server misconfigured: Missing Keys"


@pytest.mark.asyncio
async def test_vehicle_lookup_token_failure_is_500(transport: FakeTransport) -> None:
    transport.add(TOKEN_URL, error=SourceHttpError("HTTP 401", status_code=401))

    async with _serve(transport) as client:
        resp = await client.post("/vehicle-lookup", json={"registration": "AB12CDE"})
        body = await resp.json()

    assert resp.status == 500
    assert body["error"].startswith("Failed to get Access Token")


# ----------------------------------------------------------------------
# Fuel prices
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fuel_prices_aggregates_every_source(transport: FakeTransport) -> None:
    _fuel_routes(transport)

    async with _serve(transport) as client:
        resp = await client.get("/fuel-prices")
        body = await resp.json()

    assert resp.status == 200
    assert resp.headers["Access-Control-Allow-Origin"] == "*"
    assert resp.headers["Cache-Control"] == "public, max-age=600"
    assert body["count"] == 2
    assert [s["site_id"] for s in body["stations"]] == ["asda-1", "bp-1"]
    assert body["updated"].endswith("Z")
    assert "sources" not in body


@pytest.mark.asyncio
async def test_fuel_prices_are_served_from_cache(transport: FakeTransport) -> None:
    _fuel_routes(transport)

    async with _serve(transport) as client:
        first = await (await client.get("/fuel-prices")).json()
        second = await (await client.get("/api/fuel-prices")).json()

    assert first == second
    assert transport.count(ASDA_URL) == 1
    assert transport.count(BP_URL) == 1


@pytest.mark.asyncio
async def test_fuel_prices_survive_a_failed_source(transport: FakeTransport) -> None:
    transport.add(ASDA_URL, error=SourceHttpError("HTTP 503", status_code=503))
    transport.add(BP_URL, {"sites": BP_STATIONS})

    async with _serve(transport) as client:
        resp = await client.get("/fuel-prices?debug=1")
        body = await resp.json()

    assert resp.status == 200
    assert body["count"] == 1
    assert body["sourceCount"] == 2
    assert body["successCount"] == 1
    assert [(s["source"], s["status"], s["httpStatus"]) for s in body["sources"]] == [
        ("Asda", "http_error", 503),
        ("BP", "ok", None),
    ]


@pytest.mark.asyncio
async def test_fuel_prices_all_sources_down_is_empty_200(transport: FakeTransport) -> None:
    async with _serve(transport) as client:
        resp = await client.get("/fuel-prices")
        body = await resp.json()

    assert resp.status == 200
    assert body["count"] == 0
    assert body["stations"] == []


@pytest.mark.asyncio
async def test_nearby_stations_sorted_and_banded(transport: FakeTransport) -> None:
    _fuel_routes(transport)

    async with _serve(transport) as client:
        resp = await client.get("/fuel-prices/nearby", params={"lat": "51.5014", "lng": "-0.1419", "radius": "5"})
        body = await resp.json()

    assert resp.status == 200
    assert body["count"] == 2
    first, second = body["stations"]
    assert (first["siteId"], first["color"]) == ("asda-1", "green")
    assert (second["siteId"], second["color"]) == ("bp-1", "red")
    assert first["distance"] < second["distance"]
    assert "raw" not in first


@pytest.mark.asyncio
async def test_nearby_stations_validates_query(transport: FakeTransport) -> None:
    async with _serve(transport) as client:
        missing = await client.get("/fuel-prices/nearby", params={"lng": "-0.1"})
        bad_radius = await client.get("/fuel-prices/nearby", params={"lat": "51.5", "lng": "-0.1", "radius": "50"})
        not_a_number = await client.get("/fuel-prices/nearby", params={"lat": "north", "lng": "-0.1"})

    assert missing.status == 400
    assert (await missing.json())["error"] == "lat is required"
    assert bad_radius.status == 400
    assert not_a_number.status == 400
    assert transport.calls == []


# ----------------------------------------------------------------------
# Notifications, insurers, reminders
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_send_notification(transport: FakeTransport) -> None:
    transport.add(SMS_URL, {"sid": "SM1", "status": "queued"})

    async with _serve(transport) as client:
        resp = await client.post("/send-notification", json={"to": "+447700900123", "body": "MOT due"})
        body = await resp.json()

    assert resp.status == 200
    assert body == {"success": True}
    (call,) = transport.calls
    assert call.form == {"To": "+447700900123", "From": "+447700900000", "Body": "MOT due"}
    assert call.auth == ("AC123", "twilio-token")


@pytest.mark.asyncio
async def test_send_notification_missing_parameters(transport: FakeTransport) -> None:
    async with _serve(transport) as client:
        resp = await client.post("/api/send-sms", json={"to": "+447700900123"})
        body = await resp.json()

    assert resp.status == 400
    assert body == {"error": "Missing parameters"}


@pytest.mark.asyncio
async def test_send_notification_provider_failure(transport: FakeTransport) -> None:
    transport.add(SMS_URL, error=SourceHttpError("HTTP 400", status_code=400))

    async with _serve(transport) as client:
        resp = await client.post("/send-notification", json={"to": "+447700900123", "body": "hi"})
        body = await resp.json()

    assert resp.status == 500
    assert body["error"].startswith("Twilio Error")


@pytest.mark.asyncio
async def test_insurer_search(transport: FakeTransport) -> None:
    transport.add(LOGO_URL, [{"name": "Aviva", "domain": "aviva.co.uk"}])

    async with _serve(transport) as client:
        short = await (await client.get("/insurer-search", params={"q": "a"})).json()
        found = await (await client.get("/api/insurer-search", params={"q": "aviva"})).json()

    assert short == []
    assert found == [{"name": "Aviva", "domain": "aviva.co.uk"}]
    (call,) = transport.calls
    assert call.params == {"q": "aviva"}
    assert call.headers["Authorization"] == "Bearer sk_logo"


@pytest.mark.asyncio
async def test_reminders_send_due_messages(transport: FakeTransport) -> None:
    transport.add(SMS_URL, {"sid": "SM1"})
    today = date.today()
    payload = {
        "recipients": [
            {
                "phoneNumber": "+447700900123",
                "smsEnabled": True,
                "vehicles": [
                    {"registration": "AB12CDE", "motExpiry": (today + timedelta(days=7)).isoformat()},
                    {"registration": "CD34EFG", "taxExpiry": (today + timedelta(days=30)).isoformat()},
                ],
            },
            {
                "phoneNumber": "+447700900456",
                "smsEnabled": False,
                "vehicles": [{"registration": "EF56GHI", "motExpiry": (today + timedelta(days=7)).isoformat()}],
            },
        ]
    }

    async with _serve(transport) as client:
        resp = await client.post("/reminders", json=payload)
        body = await resp.json()

    assert resp.status == 200
    assert body["status"] == "Success"
    assert transport.count(SMS_URL) == 1
    assert transport.calls[0].form is not None
    assert "AB12CDE" in transport.calls[0].form["Body"]
    assert "SMS sent for AB12CDE (MOT)" in body["logs"]


@pytest.mark.asyncio
async def test_reminders_reject_invalid_body(transport: FakeTransport) -> None:
    async with _serve(transport) as client:
        resp = await client.post("/reminders", json={"recipients": [{"vehicles": [{"motExpiry": "soon"}]}]})
        body = await resp.json()

    assert resp.status == 400
    assert body["error"].startswith("Invalid reminder request")


# ----------------------------------------------------------------------
# Errors
# ----------------------------------------------------------------------


@pytest.mark.asyncio
async def test_unknown_route_is_json_404(transport: FakeTransport) -> None:
    async with _serve(transport) as client:
        resp = await client.get("/nope")
        body = await resp.json()

    assert resp.status == 404
    assert body == {"error": "Not Found"}


@pytest.mark.asyncio
async def test_wrong_method_is_json_405(transport: FakeTransport) -> None:
    async with _serve(transport) as client:
        resp = await client.get("/vehicle-lookup")
        body = await resp.json()

    assert resp.status == 405
    assert body == {"error": "Method Not Allowed"}
