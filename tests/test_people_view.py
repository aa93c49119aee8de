"""Tests for the members page service."""

from __future__ import annotations

from tesoreria.errors import ErrorKind, TransportError
from tesoreria.models.enums import DerivedStatus
from tesoreria.models.member import Member
from tesoreria.services.people import PeopleView, matches_search
from tests.conftest import income_row, member_row


def seed_people(store) -> None:
    store.seed("socio_titulares", [
        member_row(1, dni="11111111", localidad="Centro", nombres="Ana", paterno="Quispe"),
        member_row(2, dni="22222222", localidad="Norte", nombres="José", paterno="Pérez"),
        member_row(3, dni="33333333", localidad="Centro", situacion="Extremo Pobre",
                   nombres="Luz", paterno="Condori"),
        member_row(4, dni=None, localidad=None, nombres="Sin", paterno="Documento"),
    ])
    store.seed("ingresos", [income_row(1, dni="11111111"), income_row(2, dni="")])


async def test_rows_carry_reconciled_status(store, logger):
    seed_people(store)
    view = PeopleView(store=store, logger=logger)
    await view.wait_idle()

    rows = view.rows()

    assert {member.id for member in rows.records} == {1, 2, 3, 4}
    assert rows.status == {
        1: DerivedStatus.PAID,
        2: DerivedStatus.UNPAID,
        3: DerivedStatus.EXEMPT,
        4: DerivedStatus.UNPAID,
    }


async def test_locality_filter_and_choices(store, logger):
    seed_people(store)
    view = PeopleView(store=store, logger=logger, locality="Centro")
    await view.wait_idle()

    assert {member.id for member in view.rows().records} == {1, 3}
    assert view.localities() == ["Centro", "Norte"]

    view.set_locality("Norte")
    await view.wait_idle()
    assert view.locality == "Norte"
    assert [member.id for member in view.rows().records] == [2]

    view.set_locality(None)
    await view.wait_idle()
    assert view.locality is None
    assert len(view.rows().records) == 4


async def test_search_by_dni_or_name_tokens(store, logger):
    seed_people(store)
    view = PeopleView(store=store, logger=logger)
    await view.wait_idle()

    assert [m.id for m in view.rows("2222").records] == [2]
    assert [m.id for m in view.rows("jose perez").records] == [2]
    assert [m.id for m in view.rows("quispe ana").records] == [1]
    assert view.rows("ana norte").records == []
    assert len(view.rows("   ").records) == 4


def test_matches_search_ignores_case_and_accents():
    member = Member.model_validate(
        member_row(9, dni="99999999", nombres="María", paterno="Ñahui", materno="López")
    )
    assert matches_search(member, "MARIA lopez")
    assert matches_search(member, "9999")
    assert not matches_search(member, "maria gomez")


async def test_delete_member_refreshes_views(store, logger):
    seed_people(store)
    view = PeopleView(store=store, logger=logger)
    await view.wait_idle()

    result = await view.delete_member(2)
    await view.wait_idle()

    assert result.success
    assert 2 not in {member.id for member in view.rows().records}
    assert view.localities() == ["Centro"]


async def test_fetch_error_is_reported(store, logger):
    store.fail("select", TransportError("down"))
    view = PeopleView(store=store, logger=logger)
    await view.wait_idle()

    assert view.last_error == ErrorKind.TRANSPORT_ERROR
    assert not view.is_loading

    view.refresh()
    await view.wait_idle()
    assert view.last_error is None


async def test_close_stops_all_views(store, logger):
    seed_people(store)
    view = PeopleView(store=store, logger=logger)
    await view.wait_idle()

    view.close()

    assert view.rows().records == []
    assert view.localities() == []
