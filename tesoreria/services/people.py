"""
People View Service.

Backs the members ("Personas") page: the titular members of the selected
locality, each tagged with their derived payment status, plus the list of
localities for the filter dropdown.

Three independent collection views are opened:
    - members filtered by ``localidad`` (the table),
    - all members (source of the locality choices),
    - all income receipts (input to the reconciler).

Statuses are recomputed from the two current snapshots on every call to
``rows``; they are never cached.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from tesoreria.errors import ErrorKind
from tesoreria.logger import StructuredLogger
from tesoreria.models.income import IncomeEvent
from tesoreria.models.member import Member
from tesoreria.models.service_models import PaymentStatusView, ServiceResult
from tesoreria.repositories.store import RemoteStore
from tesoreria.services.base_service import BaseService
from tesoreria.services.payment_status import reconcile_members
from tesoreria.sync import CollectionSync, open_collection
from tesoreria.utils.general import normalize_search_text


def _locality_filter(locality: Optional[str]) -> dict[str, str]:
    if locality is None or not locality.strip():
        return {}
    return {"localidad": locality.strip()}


def matches_search(member: Member, search: str) -> bool:
    """Global search used by the members table.

    A term matching part of the DNI wins outright; otherwise every
    whitespace-separated token must appear in the member's full name.
    Case and accents are ignored.
    """
    term = normalize_search_text(search)
    if not term:
        return True
    if member.dni and term.replace(" ", "") in member.dni:
        return True
    name = normalize_search_text(
        f"{member.nombres} {member.apellido_paterno} {member.apellido_materno}"
    )
    return all(token in name for token in term.split(" "))


class PeopleView(BaseService):
    """Members of one locality with their payment status.

    Must be constructed while an event loop is running; the three views
    start fetching immediately.
    """

    def __init__(
        self,
        store: RemoteStore,
        logger: StructuredLogger,
        locality: Optional[str] = None,
    ) -> None:
        super().__init__(logger)
        self._members: CollectionSync[Member] = open_collection(
            store, Member, logger, filters=_locality_filter(locality),
        )
        self._all_members: CollectionSync[Member] = open_collection(
            store, Member, logger,
        )
        self._incomes: CollectionSync[IncomeEvent] = open_collection(
            store, IncomeEvent, logger,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def locality(self) -> Optional[str]:
        value = self._members.filters.get("localidad")
        return str(value) if value is not None else None

    @property
    def is_loading(self) -> bool:
        return (
            self._members.is_loading
            or self._all_members.is_loading
            or self._incomes.is_loading
        )

    @property
    def last_error(self) -> Optional[ErrorKind]:
        for view in (self._members, self._incomes, self._all_members):
            if view.last_error is not None:
                return view.last_error
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def set_locality(self, locality: Optional[str]) -> None:
        """Switch the table to *locality*; ``None`` or blank shows everyone."""
        self._logger.debug("People view locality set to %r.", locality)
        self._members.set_filter(_locality_filter(locality))

    def localities(self) -> list[str]:
        """Sorted distinct non-empty localities across all members."""
        names = {
            member.localidad.strip()
            for member in self._all_members.records
            if member.localidad and member.localidad.strip()
        }
        return sorted(names)

    def rows(self, search: str = "") -> PaymentStatusView:
        """Members of the current locality matching *search*, with status."""
        view = reconcile_members(self._members.records, self._incomes.records)
        if not normalize_search_text(search):
            return view
        kept = [member for member in view.records if matches_search(member, search)]
        return PaymentStatusView(
            records=kept,
            status={member.id: view.status[member.id] for member in kept},
        )

    # ------------------------------------------------------------------
    # Mutations & lifecycle
    # ------------------------------------------------------------------

    async def delete_member(self, member_id: int) -> ServiceResult[None]:
        result = await self._members.remove(member_id)
        if result.success:
            self._all_members.refresh()
        return result

    def refresh(self) -> None:
        self._members.refresh()
        self._all_members.refresh()
        self._incomes.refresh()

    async def wait_idle(self) -> None:
        await asyncio.gather(
            self._members.wait_idle(),
            self._all_members.wait_idle(),
            self._incomes.wait_idle(),
        )

    def close(self) -> None:
        self._members.close()
        self._all_members.close()
        self._incomes.close()
