from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable
from uuid import uuid4

from opentelemetry import trace

from cuemaster.application.dto.responses import TransactionResponse
from cuemaster.application.mappers.event_envelope import (
    serialize_table_updated_event,
    serialize_transaction_recorded_event,
)
from cuemaster.application.mappers.snapshot_mapper import table_update_fields
from cuemaster.application.mappers.transaction_mapper import to_transaction_response
from cuemaster.application.metrics.session_metrics import record_checkout
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.sync.state import TABLES, TRANSACTIONS, table_key
from cuemaster.application.use_cases.context import TraceContext, utc_now
from cuemaster.domain.common.ids import TableId, TransactionId
from cuemaster.domain.transaction.entities import create_paid_transaction

logger = logging.getLogger(__name__)


def new_transaction_id() -> TransactionId:
    return TransactionId(f"TX-{uuid4().hex[:12].upper()}")


class Checkout:
    """Closes a PLAYING table into a paid transaction.

    The table is reset and the transaction logged locally before returning.
    Appending the transaction and saving the reset table is one background
    write; its failure raises a critical alert because the sale is unrecorded.
    """

    def __init__(
        self,
        sync: SyncCoordinator,
        clock: Callable[[], datetime] = utc_now,
        tracer: trace.Tracer | None = None,
    ) -> None:
        self._sync = sync
        self._clock = clock
        self._tracer = tracer or trace.get_tracer(__name__)

    def execute(self, table_id: TableId, trace_ctx: TraceContext) -> TransactionResponse:
        with self._tracer.start_as_current_span(
            "checkout",
            attributes={"cuemaster.table_id": str(table_id)},
        ) as span:
            response = self._checkout(table_id, trace_ctx)
            span.set_attribute("cuemaster.transaction_id", response.transactionId)
            span.set_attribute("cuemaster.total", response.total)
            return response

    def _checkout(self, table_id: TableId, trace_ctx: TraceContext) -> TransactionResponse:
        state = self._sync.state
        table = state.get_table(table_id)
        now = self._clock()

        transaction = create_paid_transaction(
            transaction_id=new_transaction_id(),
            table=table,
            rates=state.rates,
            now=now,
        )
        reset_table = table.reset_after_checkout()

        state.record_transaction(transaction)
        state.put_table(reset_table)
        self._sync.ledger_saver.cancel(table_id)

        gateway = self._sync.gateway
        reset_fields = table_update_fields(reset_table)

        def _persist() -> None:
            gateway.add_transaction(transaction)
            gateway.update_table(table_id, reset_fields, operation="checkout")

        self._sync.writer.submit(
            operation="checkout",
            resources=[TABLES, table_key(table_id), TRANSACTIONS],
            write=_persist,
            severity="critical",
        )

        record_checkout(transaction, table_type=table.table_type.value)
        logger.info(
            "checkout_recorded",
            extra={
                "table_id": str(table_id),
                "transaction_id": str(transaction.transaction_id),
                "total": transaction.total,
            },
        )
        self._sync.publish(
            serialize_transaction_recorded_event(
                occurred_at=now,
                transaction=transaction,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            )
        )
        self._sync.publish(
            serialize_table_updated_event(
                occurred_at=now,
                table=reset_table,
                trace_id=trace_ctx.trace_id,
                request_id=trace_ctx.request_id,
            )
        )
        return to_transaction_response(transaction, self._sync.settings.currency)
