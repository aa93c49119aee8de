"""
Collection Sync.

A ``CollectionSync`` keeps an in-memory view of one remote collection under
an equality filter and offers create / update / remove operations that
write to the store and then refetch.  Each view service opens its own
instances; nothing is shared between them, so two views watching the same
collection may disagree until both have refetched.

Ordering
--------
Every fetch is tagged with a generation number and the filter active when
it was sent.  A result is applied only when its generation is still the
newest one issued *and* its filter equals the active filter, so a slow
response for an old filter can never overwrite a newer one.  Superseded
requests are not aborted at the transport; their results are dropped on
arrival.

Failure semantics
-----------------
Store failures never propagate out of this class.  Fetch failures set
``last_error`` and keep the last good ``records``; mutation failures return
a failed ``ServiceResult``, set ``last_error`` and leave the cache
untouched.  Nothing is retried automatically.

All state is mutated on the event loop thread only.
"""

from __future__ import annotations

import asyncio
from typing import Generic, Mapping, Optional, TypeVar, Union

from tesoreria.errors import ErrorKind, StoreError, TransportError
from tesoreria.logger import StructuredLogger
from tesoreria.models.base import RecordId, RecordInput, StoreRecord
from tesoreria.models.service_models import ServiceResult
from tesoreria.repositories.store import FilterValue, OrderBy, RemoteStore
from tesoreria.utils.audit import log_audit_event

RecordT = TypeVar("RecordT", bound=StoreRecord)

__all__ = ["CollectionSync", "open_collection"]


class CollectionSync(Generic[RecordT]):
    """Cached, filter-aware view of one remote collection.

    Parameters
    ----------
    store:
        The injected ``RemoteStore`` (shared client, no shared cache).
    record_type:
        ``StoreRecord`` subclass; names the collection and its input model.
    logger:
        Structured JSON logger.
    filters:
        Initial equality filter.  Empty means "fetch everything".
    order:
        Optional ordering; defaults to the record type's ``ORDER_BY``.
    """

    def __init__(
        self,
        store: RemoteStore,
        record_type: type[RecordT],
        logger: StructuredLogger,
        filters: Optional[Mapping[str, FilterValue]] = None,
        order: Optional[OrderBy] = None,
    ) -> None:
        self._store = store
        self._record_type = record_type
        self._logger = logger
        self._collection: str = record_type.TABLE
        if order is None and record_type.ORDER_BY:
            order = OrderBy(record_type.ORDER_BY, record_type.ORDER_DESC)
        self._order: Optional[OrderBy] = order

        self._filters: dict[str, FilterValue] = dict(filters or {})
        self._records: list[RecordT] = []
        self._last_error: Optional[ErrorKind] = None
        self._last_error_message: Optional[str] = None
        self._has_loaded: bool = False

        self._generation: int = 0
        self._in_flight: int = 0
        self._alive: bool = True
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def records(self) -> list[RecordT]:
        """Snapshot of the cached records; re-read after every change."""
        return list(self._records)

    @property
    def filters(self) -> dict[str, FilterValue]:
        return dict(self._filters)

    @property
    def is_loading(self) -> bool:
        """``True`` while any fetch or mutation of this view is in flight."""
        return self._in_flight > 0

    @property
    def has_loaded(self) -> bool:
        """``True`` once a fetch under the current lifetime has been applied."""
        return self._has_loaded

    @property
    def last_error(self) -> Optional[ErrorKind]:
        return self._last_error

    @property
    def last_error_message(self) -> Optional[str]:
        return self._last_error_message

    @property
    def is_closed(self) -> bool:
        return not self._alive

    def get(self, record_id: RecordId) -> Optional[RecordT]:
        """Return the cached record with *record_id*, if present."""
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    def set_filter(
        self, filters: Optional[Mapping[str, FilterValue]]
    ) -> Optional[asyncio.Task[None]]:
        """Replace the active filter and fetch under it.

        Returns the fetch task (``None`` once closed).  Results of any
        earlier fetch that arrive later are discarded.
        """
        self._filters = dict(filters or {})
        return self.refresh()

    def refresh(self) -> Optional[asyncio.Task[None]]:
        """Refetch under the current filter regardless of cache state."""
        if not self._alive:
            self._logger.debug("Ignoring refresh of closed view (%s).", self._collection)
            return None

        self._generation += 1
        self._in_flight += 1
        task = asyncio.get_running_loop().create_task(
            self._fetch(self._generation, dict(self._filters))
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until every fetch scheduled by this view has completed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _fetch(self, generation: int, filters: dict[str, FilterValue]) -> None:
        try:
            rows = await self._store.select(self._collection, filters, self._order)
            records = [self._record_type.parse_row(row) for row in rows]
        except StoreError as exc:
            if self._is_current(generation, filters):
                self._set_error(exc)
                self._logger.warning(
                    "Fetch of %s failed (%s): %s",
                    self._collection,
                    exc.kind,
                    exc.message,
                )
            return
        except Exception as exc:
            if self._is_current(generation, filters):
                self._set_error(TransportError(f"Unexpected fetch failure: {exc}"))
                self._logger.error(
                    "Unexpected failure fetching %s: %s",
                    self._collection,
                    exc,
                    exc_info=True,
                )
            return
        finally:
            self._in_flight -= 1

        if not self._is_current(generation, filters):
            self._logger.debug(
                "Discarding superseded fetch of %s (generation %d, current %d).",
                self._collection,
                generation,
                self._generation,
            )
            return

        self._records = records
        self._has_loaded = True
        self._clear_error()
        self._logger.debug(
            "Loaded %d rows from %s with filters %s.",
            len(records),
            self._collection,
            filters,
        )

    def _is_current(self, generation: int, filters: dict[str, FilterValue]) -> bool:
        return (
            self._alive
            and generation == self._generation
            and filters == self._filters
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create(
        self, fields: Union[RecordInput, Mapping[str, object]]
    ) -> ServiceResult[RecordT]:
        """Validate and insert a record, then refetch.

        The returned record carries the server-assigned ``id`` and
        ``created_at`` and is available before the refetch lands.
        """
        if not self._alive:
            return self._closed_result("create")

        self._in_flight += 1
        try:
            payload = self._record_type.INPUT_MODEL.parse_create(fields)
            row = await self._store.insert(self._collection, payload)
        except StoreError as exc:
            return self._mutation_failed("create", exc)
        except Exception as exc:
            return self._mutation_failed(
                "create", TransportError(f"Unexpected create failure: {exc}"), exc,
            )
        finally:
            self._in_flight -= 1

        record = self._read_written_row("create", row)
        log_audit_event(
            self._logger,
            action="CREATE",
            collection=self._collection,
            record_id=row.get("id"),
            details={"fields": ",".join(sorted(payload))},
        )
        self.refresh()
        return ServiceResult(success=True, data=record, status_code=201)

    async def update(
        self, record_id: RecordId, fields: Mapping[str, object]
    ) -> ServiceResult[RecordT]:
        """Validate and apply a partial update addressed by id, then refetch."""
        if not self._alive:
            return self._closed_result("update")

        self._in_flight += 1
        try:
            payload = self._record_type.INPUT_MODEL.parse_partial(fields)
            row = await self._store.update(self._collection, record_id, payload)
        except StoreError as exc:
            return self._mutation_failed("update", exc)
        except Exception as exc:
            return self._mutation_failed(
                "update", TransportError(f"Unexpected update failure: {exc}"), exc,
            )
        finally:
            self._in_flight -= 1

        record = self._read_written_row("update", row)
        log_audit_event(
            self._logger,
            action="UPDATE",
            collection=self._collection,
            record_id=record_id,
            details={"fields": ",".join(sorted(payload))},
        )
        self.refresh()
        return ServiceResult(success=True, data=record)

    def _read_written_row(self, operation: str, row) -> Optional[RecordT]:
        """Parse the row echoed by a write that already succeeded.

        The write is committed either way, so an unreadable echo is logged
        and yields ``None`` instead of a failed result.
        """
        try:
            return self._record_type.parse_row(row)
        except StoreError as exc:
            self._logger.warning(
                "%s on %s succeeded but the returned row is unreadable: %s",
                operation,
                self._collection,
                exc.message,
            )
            return None

    async def remove(self, record_id: RecordId) -> ServiceResult[None]:
        """Delete a record by id, then refetch."""
        if not self._alive:
            return self._closed_result("remove")

        self._in_flight += 1
        try:
            await self._store.delete(self._collection, record_id)
        except StoreError as exc:
            return self._mutation_failed("remove", exc)
        except Exception as exc:
            return self._mutation_failed(
                "remove", TransportError(f"Unexpected delete failure: {exc}"), exc,
            )
        finally:
            self._in_flight -= 1

        log_audit_event(
            self._logger,
            action="DELETE",
            collection=self._collection,
            record_id=record_id,
        )
        self.refresh()
        return ServiceResult(success=True)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop applying results and drop the cache.  Idempotent."""
        if not self._alive:
            return
        self._alive = False
        self._records = []
        self._logger.debug("Closed view of %s.", self._collection)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _set_error(self, exc: StoreError) -> None:
        self._last_error = exc.kind
        self._last_error_message = exc.message

    def _clear_error(self) -> None:
        self._last_error = None
        self._last_error_message = None

    def _mutation_failed(
        self,
        operation: str,
        exc: StoreError,
        cause: Optional[BaseException] = None,
    ) -> ServiceResult:
        if self._alive:
            self._set_error(exc)
        if cause is not None:
            self._logger.error(
                "Unexpected failure during %s on %s: %s",
                operation,
                self._collection,
                cause,
                exc_info=cause,
            )
        else:
            self._logger.warning(
                "%s on %s failed (%s): %s",
                operation,
                self._collection,
                exc.kind,
                exc.message,
            )
        return ServiceResult.from_error(exc)

    def _closed_result(self, operation: str) -> ServiceResult:
        self._logger.warning(
            "Rejected %s on closed view of %s.", operation, self._collection,
        )
        return ServiceResult(
            success=False,
            error=f"The {self._collection} view is closed.",
            status_code=410,
        )


def open_collection(
    store: RemoteStore,
    record_type: type[RecordT],
    logger: StructuredLogger,
    filters: Optional[Mapping[str, FilterValue]] = None,
    order: Optional[OrderBy] = None,
) -> CollectionSync[RecordT]:
    """Create a view of *record_type*'s collection and start the first fetch.

    Must be called with a running event loop.
    """
    view: CollectionSync[RecordT] = CollectionSync(
        store=store,
        record_type=record_type,
        logger=logger,
        filters=filters,
        order=order,
    )
    view.refresh()
    return view
