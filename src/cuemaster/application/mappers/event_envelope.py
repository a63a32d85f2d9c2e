from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from cuemaster.application.mappers.snapshot_mapper import table_to_dict, transaction_to_dict
from cuemaster.domain.table.entities import Table
from cuemaster.domain.transaction.entities import Transaction


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    payload: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def serialize_table_updated_event(
    *,
    occurred_at: datetime,
    table: Table,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_event(
        event_type="table.updated",
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload=table_to_dict(table),
    )


def serialize_transaction_recorded_event(
    *,
    occurred_at: datetime,
    transaction: Transaction,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_event(
        event_type="transaction.recorded",
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload=transaction_to_dict(transaction),
    )


def serialize_sync_failed_event(
    *,
    occurred_at: datetime,
    alert_id: str,
    operation: str,
    severity: str,
    message: str,
    trace_id: str | None,
    request_id: str | None,
) -> str:
    return _serialize_event(
        event_type="sync.failed",
        occurred_at=occurred_at,
        trace_id=trace_id,
        request_id=request_id,
        payload={
            "alertId": alert_id,
            "operation": operation,
            "severity": severity,
            "message": message,
        },
    )
