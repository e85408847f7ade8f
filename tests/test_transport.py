from __future__ import annotations

import asyncio

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from pyvehicledata._transport import HttpTransport
from pyvehicledata.credentials import CredentialCache
from pyvehicledata.exceptions import AuthError, SourceHttpError, SourceParseError, SourceTimeout, TransportError
from pyvehicledata.fetcher import FanOutFetcher
from pyvehicledata.models.outcome import FetchStatus
from pyvehicledata.models.source import SourceDescriptor


async def _ok(_request: web.Request) -> web.Response:
    return web.json_response({"stations": [{"site_id": "1"}]})


async def _server_error(_request: web.Request) -> web.Response:
    return web.Response(status=500, text="upstream exploded")


async def _html(_request: web.Request) -> web.Response:
    return web.Response(text="<html>Access denied</html>", content_type="text/html")


async def _bad_utf8(_request: web.Request) -> web.Response:
    return web.Response(body=b'{"stations": ["\xff\xfe"]}', content_type="application/json")


async def _slow(_request: web.Request) -> web.Response:
    await asyncio.sleep(1.0)
    return web.json_response({})


async def _echo_form(request: web.Request) -> web.Response:
    form = await request.post()
    return web.json_response(
        {
            "form": dict(form),
            "authorization": request.headers.get("Authorization"),
            "query": dict(request.query),
        },
        status=201,
    )


def _app() -> web.Application:
    app = web.Application()
    app.router.add_get("/ok", _ok)
    app.router.add_get("/error", _server_error)
    app.router.add_get("/html", _html)
    app.router.add_get("/slow", _slow)
    app.router.add_get("/bad-utf8", _bad_utf8)
    app.router.add_post("/bad-utf8", _bad_utf8)
    app.router.add_post("/form", _echo_form)
    return app


@pytest.mark.asyncio
async def test_transport_classifies_responses() -> None:
    async with TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = HttpTransport(session)

        assert await transport.request_json("GET", str(server.make_url("/ok"))) == {"stations": [{"site_id": "1"}]}

        with pytest.raises(SourceHttpError) as http_exc:
            await transport.request_json("GET", str(server.make_url("/error")))
        assert http_exc.value.status_code == 500
        assert "upstream exploded" in str(http_exc.value)

        with pytest.raises(SourceParseError):
            await transport.request_json("GET", str(server.make_url("/html")))

        with pytest.raises(SourceTimeout):
            await transport.request_json("GET", str(server.make_url("/slow")), timeout=0.1)


@pytest.mark.asyncio
async def test_transport_sends_form_with_basic_auth() -> None:
    async with TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = HttpTransport(session)

        result = await transport.request_json(
            "POST",
            str(server.make_url("/form")),
            form={"To": "+447700900000", "Body": "hello"},
            auth=("AC123", "secret"),
            params={"q": "x"},
        )

    assert result["form"] == {"To": "+447700900000", "Body": "hello"}
    assert result["authorization"].startswith("Basic ")
    assert result["query"] == {"q": "x"}


@pytest.mark.asyncio
async def test_transport_wraps_connection_errors() -> None:
    server = TestServer(_app())
    await server.start_server()
    url = str(server.make_url("/ok"))
    await server.close()

    async with aiohttp.ClientSession() as session:
        with pytest.raises(TransportError) as exc_info:
            await HttpTransport(session).request_json("GET", url, timeout=2.0)

    assert not isinstance(exc_info.value, (SourceHttpError, SourceParseError))


@pytest.mark.asyncio
async def test_undecodable_body_is_a_parse_error() -> None:
    async with TestServer(_app()) as server, aiohttp.ClientSession() as session:
        transport = HttpTransport(session)
        url = str(server.make_url("/bad-utf8"))

        with pytest.raises(SourceParseError) as exc_info:
            await transport.request_json("GET", url)
        outcome = await FanOutFetcher(transport).fetch_one(SourceDescriptor(name="Broken", endpoint=url))

    assert exc_info.value.status_code == 200
    assert outcome.status is FetchStatus.PARSE_ERROR
    assert outcome.data is None


@pytest.mark.asyncio
async def test_undecodable_token_response_is_an_auth_error() -> None:
    async with TestServer(_app()) as server, aiohttp.ClientSession() as session:
        credentials = CredentialCache(HttpTransport(session), str(server.make_url("/bad-utf8")))

        with pytest.raises(AuthError):
            await credentials.get_token("cid", "secret", "scope")

    assert credentials.token is None
