from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from cuemaster.application.dto.requests import AddTableRequest, RetypeTableRequest
from cuemaster.application.dto.responses import TableResponse
from cuemaster.application.mappers.table_mapper import to_table_response
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.use_cases.context import utc_now
from cuemaster.domain.common.ids import TableId
from cuemaster.domain.table.entities import Table, next_table_id

logger = logging.getLogger(__name__)


class _RegistryUseCase:
    def __init__(
        self,
        sync: SyncCoordinator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sync = sync
        self._clock = clock

    def _response(self, table: Table) -> TableResponse:
        state = self._sync.state
        return to_table_response(table, state.rates, self._clock(), self._sync.settings.currency)


class AddTable(_RegistryUseCase):
    def execute(self, request_dto: AddTableRequest) -> TableResponse:
        state = self._sync.state
        table_id = next_table_id(list(state.tables))
        table = Table(table_id=table_id, name=f"Table {table_id}", table_type=request_dto.table_type)
        state.put_table(table)
        self._sync.persist_table_registry(operation="add_table")
        logger.info("table_added", extra={"table_id": str(table_id)})
        return self._response(table)


class DeleteTable(_RegistryUseCase):
    def execute(self, table_id: TableId) -> TableResponse:
        state = self._sync.state
        table = state.get_table(table_id)
        table.ensure_idle()
        state.remove_table(table_id)
        self._sync.persist_table_registry(operation="delete_table")
        logger.info("table_deleted", extra={"table_id": str(table_id)})
        return self._response(table)


class RetypeTable(_RegistryUseCase):
    def execute(self, table_id: TableId, request_dto: RetypeTableRequest) -> TableResponse:
        state = self._sync.state
        updated = state.get_table(table_id).retype(request_dto.table_type)
        state.put_table(updated)
        self._sync.persist_table(updated, operation="retype_table")
        logger.info(
            "table_retyped",
            extra={"table_id": str(table_id), "table_type": updated.table_type.value},
        )
        return self._response(updated)
