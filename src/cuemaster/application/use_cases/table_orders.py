from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable
from uuid import uuid4

from cuemaster.application.dto.requests import AddOrderItemRequest, AdjustQuantityRequest
from cuemaster.application.dto.responses import TableResponse
from cuemaster.application.mappers.table_mapper import to_table_response
from cuemaster.application.metrics.session_metrics import record_ledger_edit
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.sync.state import MenuItemNotFoundError
from cuemaster.application.use_cases.context import utc_now
from cuemaster.domain.common.ids import MenuItemId, OrderLineId, TableId
from cuemaster.domain.table.entities import Table

logger = logging.getLogger(__name__)


class UnknownMenuItemError(Exception):
    pass


class _LedgerUseCase:
    """Ledger edits update local state at once and are saved after a quiet period."""

    def __init__(
        self,
        sync: SyncCoordinator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sync = sync
        self._clock = clock

    def _commit(self, updated: Table, action: str) -> TableResponse:
        state = self._sync.state
        state.put_table(updated)
        self._sync.schedule_ledger_save(updated.table_id)
        record_ledger_edit(action)
        logger.info(
            "ledger_updated",
            extra={
                "table_id": str(updated.table_id),
                "action": action,
                "lines": len(updated.orders),
            },
        )
        return to_table_response(updated, state.rates, self._clock(), self._sync.settings.currency)


class AddOrderItem(_LedgerUseCase):
    def execute(self, table_id: TableId, request_dto: AddOrderItemRequest) -> TableResponse:
        state = self._sync.state
        table = state.get_table(table_id)
        try:
            menu_item = state.find_menu_item(MenuItemId(request_dto.item_id))
        except MenuItemNotFoundError as exc:
            raise UnknownMenuItemError(str(exc)) from exc
        updated = table.add_item(menu_item, line_id=OrderLineId(f"orl_{uuid4().hex[:12]}"))
        return self._commit(updated, "add")


class AdjustOrderQuantity(_LedgerUseCase):
    def execute(
        self,
        table_id: TableId,
        line_id: OrderLineId,
        request_dto: AdjustQuantityRequest,
    ) -> TableResponse:
        table = self._sync.state.get_table(table_id)
        updated = table.adjust_quantity(line_id, request_dto.delta)
        return self._commit(updated, "adjust")


class RemoveOrderItem(_LedgerUseCase):
    def execute(self, table_id: TableId, line_id: OrderLineId) -> TableResponse:
        table = self._sync.state.get_table(table_id)
        updated = table.remove_item(line_id)
        return self._commit(updated, "remove")
