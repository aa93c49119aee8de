"""Collaborators View Service: CRUD over the ``colaboradores`` collection."""

from __future__ import annotations

from typing import Mapping, Optional

from tesoreria.errors import ErrorKind
from tesoreria.logger import StructuredLogger
from tesoreria.models.collaborator import Collaborator
from tesoreria.models.service_models import ServiceResult
from tesoreria.repositories.store import RemoteStore
from tesoreria.services.base_service import BaseService
from tesoreria.sync import CollectionSync, open_collection


class CollaboratorsView(BaseService):
    def __init__(self, store: RemoteStore, logger: StructuredLogger) -> None:
        super().__init__(logger)
        self._collaborators: CollectionSync[Collaborator] = open_collection(
            store, Collaborator, logger,
        )

    @property
    def collaborators(self) -> list[Collaborator]:
        return self._collaborators.records

    @property
    def is_loading(self) -> bool:
        return self._collaborators.is_loading

    @property
    def last_error(self) -> Optional[ErrorKind]:
        return self._collaborators.last_error

    async def create_collaborator(
        self, fields: Mapping[str, object]
    ) -> ServiceResult[Collaborator]:
        return await self._collaborators.create(fields)

    async def update_collaborator(
        self, collaborator_id: str, fields: Mapping[str, object]
    ) -> ServiceResult[Collaborator]:
        return await self._collaborators.update(collaborator_id, fields)

    async def delete_collaborator(self, collaborator_id: str) -> ServiceResult[None]:
        return await self._collaborators.remove(collaborator_id)

    def refresh(self) -> None:
        self._collaborators.refresh()

    async def wait_idle(self) -> None:
        await self._collaborators.wait_idle()

    def close(self) -> None:
        self._collaborators.close()
