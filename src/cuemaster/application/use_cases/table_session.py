from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from cuemaster.application.dto.requests import BookTableRequest, OpenTableRequest
from cuemaster.application.dto.responses import TableListResponse, TableResponse
from cuemaster.application.mappers.event_envelope import serialize_table_updated_event
from cuemaster.application.mappers.table_mapper import to_table_list_response, to_table_response
from cuemaster.application.metrics.session_metrics import record_table_opened
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.use_cases.context import TraceContext, utc_now
from cuemaster.domain.common.ids import TableId
from cuemaster.domain.table.entities import Table

logger = logging.getLogger(__name__)


class _TableUseCase:
    def __init__(
        self,
        sync: SyncCoordinator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sync = sync
        self._clock = clock

    def _commit(
        self,
        updated: Table,
        operation: str,
        now: datetime,
        trace_ctx: TraceContext,
    ) -> TableResponse:
        self._sync.state.put_table(updated)
        self._sync.persist_table(updated, operation=operation)
        self._sync.publish(
            serialize_table_updated_event(
                occurred_at=now,
                table=updated,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            )
        )
        logger.info(
            operation,
            extra={"table_id": str(updated.table_id), "status": updated.status.value},
        )
        return to_table_response(updated, self._sync.state.rates, now, self._sync.settings.currency)


class OpenTable(_TableUseCase):
    def execute(
        self,
        table_id: TableId,
        request_dto: OpenTableRequest,
        trace_ctx: TraceContext,
    ) -> TableResponse:
        table = self._sync.state.get_table(table_id)
        now = self._clock()
        if request_dto.prepaid_amount is None:
            updated = table.open(now)
            mode = "standard"
        else:
            updated = table.open_prepaid(request_dto.prepaid_amount, now)
            mode = "prepaid"
        record_table_opened(table_type=updated.table_type.value, mode=mode)
        return self._commit(updated, "table_opened", now, trace_ctx)


class BookTable(_TableUseCase):
    def execute(
        self,
        table_id: TableId,
        request_dto: BookTableRequest,
        trace_ctx: TraceContext,
    ) -> TableResponse:
        table = self._sync.state.get_table(table_id)
        updated = table.book(
            customer_name=request_dto.customer_name,
            phone=request_dto.phone,
            booked_time=request_dto.booked_time,
        )
        return self._commit(updated, "table_booked", self._clock(), trace_ctx)


class StartFromBooking(_TableUseCase):
    def execute(self, table_id: TableId, trace_ctx: TraceContext) -> TableResponse:
        table = self._sync.state.get_table(table_id)
        now = self._clock()
        updated = table.start_from_booking(now)
        record_table_opened(table_type=updated.table_type.value, mode="booking")
        return self._commit(updated, "table_started_from_booking", now, trace_ctx)


class CancelBooking(_TableUseCase):
    def execute(self, table_id: TableId, trace_ctx: TraceContext) -> TableResponse:
        updated = self._sync.state.get_table(table_id).cancel_booking()
        return self._commit(updated, "table_booking_cancelled", self._clock(), trace_ctx)


class SetMaintenance(_TableUseCase):
    def execute(self, table_id: TableId, trace_ctx: TraceContext) -> TableResponse:
        updated = self._sync.state.get_table(table_id).set_maintenance()
        return self._commit(updated, "table_maintenance_set", self._clock(), trace_ctx)


class ClearMaintenance(_TableUseCase):
    def execute(self, table_id: TableId, trace_ctx: TraceContext) -> TableResponse:
        updated = self._sync.state.get_table(table_id).clear_maintenance()
        return self._commit(updated, "table_maintenance_cleared", self._clock(), trace_ctx)


class GetTable:
    def __init__(
        self,
        sync: SyncCoordinator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sync = sync
        self._clock = clock

    def execute(self, table_id: TableId) -> TableResponse:
        state = self._sync.state
        table = state.get_table(table_id)
        return to_table_response(table, state.rates, self._clock(), self._sync.settings.currency)


class ListTables:
    def __init__(
        self,
        sync: SyncCoordinator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sync = sync
        self._clock = clock

    def execute(self) -> TableListResponse:
        state = self._sync.state
        return to_table_list_response(
            state.list_tables(),
            state.rates,
            self._clock(),
            self._sync.settings.currency,
        )
