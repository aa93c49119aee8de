"""Tests for member lookup, prefill and registration."""

from __future__ import annotations

import httpx

from tesoreria.errors import ErrorKind, TransportError
from tesoreria.services.identity_lookup import NationalIdClient
from tesoreria.services.members import MemberRegistrationService
from tests.conftest import VALID_MEMBER, member_row

REGISTRY_HIT = {
    "success": True,
    "data": {
        "name": "ROSA",
        "surname": "HUAMAN FLORES",
        "address": "JR. LIMA 123",
        "district": "WANCHAQ",
        "province": "CUSCO",
        "department": "CUSCO",
        "date_of_birth": "1980-05-12",
    },
}


def identity_client(logger, response: httpx.Response) -> NationalIdClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response))
    return NationalIdClient(
        http=http, api_url="https://example.test/query", api_token="t", logger=logger,
    )


async def test_find_by_dni(store, logger):
    store.seed("socio_titulares", [member_row(7, dni="45678912")])
    service = MemberRegistrationService(store=store, logger=logger)

    found = await service.find_by_dni("45678912")
    missing = await service.find_by_dni("00000000")

    assert found.success and found.data.id == 7
    assert missing.success and missing.data is None


async def test_prefill_prefers_existing_member(store, logger):
    store.seed("socio_titulares", [member_row(7, dni="45678912", nombres="Rosa")])
    client = identity_client(logger, httpx.Response(200, json=REGISTRY_HIT))
    service = MemberRegistrationService(store=store, logger=logger, identity_client=client)

    result = await service.prefill_from_dni("45678912")

    assert result.success
    assert result.data.source == "registry"
    assert result.data.existing_member_id == 7
    assert result.data.fields["nombres"] == "Rosa"
    assert "id" not in result.data.fields


async def test_prefill_from_national_registry(store, logger):
    client = identity_client(logger, httpx.Response(200, json=REGISTRY_HIT))
    service = MemberRegistrationService(store=store, logger=logger, identity_client=client)

    result = await service.prefill_from_dni("45678912")

    assert result.success
    assert result.error_kind is None
    prefill = result.data
    assert prefill.source == "national_id"
    assert prefill.fields["apellidoPaterno"] == "HUAMAN"
    assert prefill.fields["apellidoMaterno"] == "FLORES"
    assert prefill.fields["distritoDNI"] == "WANCHAQ"
    assert prefill.fields["localidad"] == "WANCHAQ"
    assert prefill.fields["regionDNI"] == "CUSCO"
    assert prefill.fields["fechaNacimiento"] == "1980-05-12"


async def test_prefill_degrades_to_manual_entry(store, logger):
    client = identity_client(logger, httpx.Response(503))
    service = MemberRegistrationService(store=store, logger=logger, identity_client=client)

    result = await service.prefill_from_dni("45678912")

    assert result.success
    assert result.error_kind == ErrorKind.ENRICHMENT_UNAVAILABLE
    assert result.data.source == "manual"
    assert result.data.fields == {"dni": "45678912"}
    assert result.data.warning


async def test_prefill_without_client_is_manual(store, logger):
    service = MemberRegistrationService(store=store, logger=logger)

    result = await service.prefill_from_dni("45678912")

    assert result.data.source == "manual"


async def test_prefill_rejects_malformed_dni(store, logger):
    service = MemberRegistrationService(store=store, logger=logger)

    result = await service.prefill_from_dni("12ab")

    assert not result.success
    assert result.error_kind == ErrorKind.VALIDATION_ERROR
    assert store.calls == []


async def test_prefill_store_failure_is_reported(store, logger):
    store.fail("find_one", TransportError("down"))
    service = MemberRegistrationService(store=store, logger=logger)

    result = await service.prefill_from_dni("45678912")

    assert not result.success
    assert result.error_kind == ErrorKind.TRANSPORT_ERROR


async def test_register_then_duplicate_dni(store, logger):
    service = MemberRegistrationService(store=store, logger=logger)

    first = await service.register(VALID_MEMBER)
    second = await service.register(VALID_MEMBER)
    await service.wait_idle()

    assert first.success
    assert first.data.edad is not None
    assert second.error_kind == ErrorKind.UNIQUENESS_VIOLATION
    assert second.status_code == 409
    assert len(store.tables["socio_titulares"]) == 1


async def test_save_updates_existing_member(store, logger):
    store.seed("socio_titulares", [member_row(7, dni="45678912")])
    service = MemberRegistrationService(store=store, logger=logger)

    result = await service.save({"celular": "912345678"}, existing_member_id=7)
    await service.wait_idle()

    assert result.success
    assert store.tables["socio_titulares"][0]["celular"] == "912345678"
