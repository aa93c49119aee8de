"""Tests for the national-ID client against a mocked HTTP transport."""

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from tesoreria.errors import EnrichmentUnavailableError, ErrorKind
from tesoreria.services.identity_lookup import NationalIdClient

API_URL = "https://api.consultasperu.com/api/v1/query"

FOUND = {
    "success": True,
    "data": {
        "name": "ROSA ELENA",
        "surname": "HUAMAN FLORES",
        "address": "JR. LIMA 123",
        "district": "WANCHAQ",
        "province": "CUSCO",
        "department": "CUSCO",
        "date_of_birth": "1980-05-12",
    },
    "message": "OK",
}


def make_client(logger, handler, token: str = "secret") -> NationalIdClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return NationalIdClient(http=http, api_url=API_URL, api_token=token, logger=logger)


async def test_lookup_posts_token_and_parses_record(logger):
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=FOUND)

    record = await make_client(logger, handler).lookup("45678912")

    assert seen == [{"token": "secret", "type_document": "dni", "document_number": "45678912"}]
    assert record.document_number == "45678912"
    assert record.name == "ROSA ELENA"
    assert record.paternal_surname == "HUAMAN"
    assert record.maternal_surname == "FLORES"
    assert record.date_of_birth == date(1980, 5, 12)


async def test_day_first_birth_date_is_parsed(logger):
    body = {**FOUND, "data": {**FOUND["data"], "date_of_birth": "12/05/1980"}}
    record = await make_client(logger, lambda request: httpx.Response(200, json=body)).lookup(
        "45678912"
    )
    assert record.date_of_birth == date(1980, 5, 12)


async def test_no_match_is_unavailable(logger):
    body = {"success": False, "message": "No se encontraron resultados"}
    client = make_client(logger, lambda request: httpx.Response(200, json=body))

    with pytest.raises(EnrichmentUnavailableError) as exc_info:
        await client.lookup("45678912")
    assert exc_info.value.message == "No se encontraron resultados"
    assert exc_info.value.kind == ErrorKind.ENRICHMENT_UNAVAILABLE


async def test_http_error_is_unavailable(logger):
    client = make_client(logger, lambda request: httpx.Response(500, text="oops"))

    with pytest.raises(EnrichmentUnavailableError):
        await client.lookup("45678912")


async def test_network_error_is_unavailable(logger):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(EnrichmentUnavailableError):
        await make_client(logger, handler).lookup("45678912")


async def test_invalid_json_is_unavailable(logger):
    client = make_client(logger, lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(EnrichmentUnavailableError):
        await client.lookup("45678912")


async def test_invalid_dni_never_calls_api(logger):
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=FOUND)

    with pytest.raises(EnrichmentUnavailableError) as exc_info:
        await make_client(logger, handler).lookup("1234")
    assert "dni" in exc_info.value.field_errors
    assert calls == []


async def test_missing_token_is_unavailable(logger):
    client = make_client(logger, lambda request: httpx.Response(200, json=FOUND), token="")

    assert not client.is_enabled
    with pytest.raises(EnrichmentUnavailableError):
        await client.lookup("45678912")
