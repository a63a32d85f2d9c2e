from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from cuemaster.application.dto.requests import (
    AddOrderItemRequest,
    AdjustQuantityRequest,
    BookTableRequest,
    OpenTableRequest,
)
from cuemaster.application.settings import AppSettings
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.sync.state import AppState, TableNotFoundError
from cuemaster.application.use_cases.context import TraceContext
from cuemaster.application.use_cases.table_orders import (
    AddOrderItem,
    AdjustOrderQuantity,
    RemoveOrderItem,
    UnknownMenuItemError,
)
from cuemaster.application.use_cases.table_session import (
    BookTable,
    CancelBooking,
    ClearMaintenance,
    GetTable,
    ListTables,
    OpenTable,
    SetMaintenance,
    StartFromBooking,
)
from cuemaster.domain.common.ids import OrderLineId, TableId
from cuemaster.domain.table.entities import (
    BookingValidationError,
    InvalidPrepaidAmountError,
    InvalidTableTransitionError,
    TableNotPlayingError,
    TableStatus,
)
from cuemaster.infrastructure.kv.gateway import KeyValueGateway

NOW = datetime(2026, 10, 17, 18, 0, tzinfo=timezone.utc)
TRACE = TraceContext(trace_id="trace-1", request_id="req-1")


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self.data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = json.dumps(value)


class RecordingPublisher:
    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def broadcast(self, message_json_str: str) -> None:
        self.messages.append(json.loads(message_json_str))


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _run(scenario):
    """Runs ``scenario(sync, store, publisher, clock)`` against a freshly seeded store."""
    store = InMemoryKeyValueStore()
    publisher = RecordingPublisher()
    clock = FixedClock(NOW)
    sync = SyncCoordinator(
        state=AppState(),
        gateway=KeyValueGateway(store),
        settings=AppSettings(ledger_debounce_seconds=0.01),
        publisher=publisher,
        clock=clock,
    )

    async def wrapper():
        await sync.initialize()
        result = await scenario(sync, store, publisher, clock)
        await sync.shutdown()
        return result

    return asyncio.run(wrapper()), store, publisher


def _remote_table(store: InMemoryKeyValueStore, table_id: str) -> dict[str, Any]:
    return next(item for item in json.loads(store.data["cuemaster_tables"]) if item["id"] == table_id)


def test_open_table_returns_live_quote_and_persists() -> None:
    async def scenario(sync, store, publisher, clock):
        return OpenTable(sync, clock=clock).execute(TableId("01"), OpenTableRequest(), TRACE)

    response, store, publisher = _run(scenario)

    assert response.status == "PLAYING"
    assert response.startTime == NOW
    assert response.fees.tableFee == 15000
    assert response.fees.blocks == 1
    assert response.currency == "VND"
    remote = _remote_table(store, "01")
    assert remote["status"] == "PLAYING"
    assert "prepaidAmount" not in remote
    assert publisher.messages[0]["event_type"] == "table.updated"
    assert publisher.messages[0]["request_id"] == "req-1"


def test_open_prepaid_table_counts_down() -> None:
    async def scenario(sync, store, publisher, clock):
        OpenTable(sync, clock=clock).execute(
            TableId("02"), OpenTableRequest(prepaidAmount=50000), TRACE
        )
        clock.now = NOW + timedelta(seconds=1000)
        return GetTable(sync, clock=clock).execute(TableId("02"))

    response, store, _ = _run(scenario)

    assert response.prepaidAmount == 50000
    assert response.fees.prepaidRemainingSeconds == 2000
    assert response.fees.prepaidExhausted is False
    assert _remote_table(store, "02")["prepaidAmount"] == 50000


def test_open_with_invalid_prepaid_amount_changes_nothing() -> None:
    async def scenario(sync, store, publisher, clock):
        with pytest.raises(InvalidPrepaidAmountError):
            OpenTable(sync, clock=clock).execute(
                TableId("02"), OpenTableRequest(prepaidAmount=0), TRACE
            )
        return sync.state.get_table(TableId("02"))

    table, store, publisher = _run(scenario)

    assert table.status == TableStatus.EMPTY
    assert _remote_table(store, "02")["status"] == "EMPTY"
    assert publisher.messages == []


def test_unknown_table_raises_not_found() -> None:
    async def scenario(sync, store, publisher, clock):
        with pytest.raises(TableNotFoundError):
            OpenTable(sync, clock=clock).execute(TableId("99"), OpenTableRequest(), TRACE)

    _run(scenario)


def test_booking_flow_through_use_cases() -> None:
    async def scenario(sync, store, publisher, clock):
        with pytest.raises(BookingValidationError):
            BookTable(sync, clock=clock).execute(
                TableId("04"), BookTableRequest(customerName="Lan"), TRACE
            )
        booked = BookTable(sync, clock=clock).execute(
            TableId("04"),
            BookTableRequest(customerName="Lan", phone="0909", bookedTime="20:00"),
            TRACE,
        )
        assert booked.status == "BOOKED"
        assert booked.customerName == "Lan"
        return StartFromBooking(sync, clock=clock).execute(TableId("04"), TRACE)

    started, store, _ = _run(scenario)

    assert started.status == "PLAYING"
    assert started.customerName is None
    remote = _remote_table(store, "04")
    assert remote["status"] == "PLAYING"
    assert "customerName" not in remote
    assert "bookedTime" not in remote


def test_cancel_booking_and_maintenance() -> None:
    async def scenario(sync, store, publisher, clock):
        BookTable(sync, clock=clock).execute(
            TableId("05"),
            BookTableRequest(customerName="Lan", phone="0909", bookedTime="20:00"),
            TRACE,
        )
        cancelled = CancelBooking(sync, clock=clock).execute(TableId("05"), TRACE)
        maintained = SetMaintenance(sync, clock=clock).execute(TableId("05"), TRACE)
        with pytest.raises(InvalidTableTransitionError):
            OpenTable(sync, clock=clock).execute(TableId("05"), OpenTableRequest(), TRACE)
        cleared = ClearMaintenance(sync, clock=clock).execute(TableId("05"), TRACE)
        return cancelled, maintained, cleared

    (cancelled, maintained, cleared), store, _ = _run(scenario)

    assert cancelled.status == "EMPTY"
    assert maintained.status == "MAINTENANCE"
    assert cleared.status == "EMPTY"
    assert _remote_table(store, "05")["status"] == "EMPTY"


def test_ledger_edits_are_debounced_then_saved() -> None:
    async def scenario(sync, store, publisher, clock):
        OpenTable(sync, clock=clock).execute(TableId("06"), OpenTableRequest(), TRACE)
        await sync.writer.drain()
        AddOrderItem(sync, clock=clock).execute(TableId("06"), AddOrderItemRequest(itemId="1"))
        response = AddOrderItem(sync, clock=clock).execute(
            TableId("06"), AddOrderItemRequest(itemId="1")
        )
        assert sync.ledger_saver.pending_tables() == {TableId("06")}
        assert _remote_table(store, "06")["orders"] == []

        line_id = OrderLineId(response.orders[0].lineId)
        response = AdjustOrderQuantity(sync, clock=clock).execute(
            TableId("06"), line_id, AdjustQuantityRequest(delta=2)
        )
        await asyncio.sleep(0.05)
        await sync.writer.drain()
        return response

    response, store, _ = _run(scenario)

    assert response.orders[0].quantity == 4
    assert response.fees.serviceFee == 60000
    assert response.fees.total == 15000 + 60000
    remote_orders = _remote_table(store, "06")["orders"]
    assert len(remote_orders) == 1
    assert remote_orders[0]["quantity"] == 4


def test_remove_order_item_and_unknown_menu_item() -> None:
    async def scenario(sync, store, publisher, clock):
        OpenTable(sync, clock=clock).execute(TableId("07"), OpenTableRequest(), TRACE)
        added = AddOrderItem(sync, clock=clock).execute(
            TableId("07"), AddOrderItemRequest(itemId="3")
        )
        with pytest.raises(UnknownMenuItemError):
            AddOrderItem(sync, clock=clock).execute(
                TableId("07"), AddOrderItemRequest(itemId="nope")
            )
        return RemoveOrderItem(sync, clock=clock).execute(
            TableId("07"), OrderLineId(added.orders[0].lineId)
        )

    response, _, _ = _run(scenario)

    assert response.orders == []
    assert response.fees.serviceFee == 0


def test_ledger_edit_on_idle_table_is_rejected() -> None:
    async def scenario(sync, store, publisher, clock):
        with pytest.raises(TableNotPlayingError):
            AddOrderItem(sync, clock=clock).execute(TableId("08"), AddOrderItemRequest(itemId="1"))
        return sync.ledger_saver.pending_tables()

    pending, _, _ = _run(scenario)

    assert pending == set()


def test_list_tables_counts_statuses() -> None:
    async def scenario(sync, store, publisher, clock):
        OpenTable(sync, clock=clock).execute(TableId("01"), OpenTableRequest(), TRACE)
        SetMaintenance(sync, clock=clock).execute(TableId("02"), TRACE)
        return ListTables(sync, clock=clock).execute()

    response, _, _ = _run(scenario)

    assert len(response.tables) == 12
    assert response.playing == 1
    assert response.empty == 10
