from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from cuemaster.application.dto.requests import AddOrderItemRequest, OpenTableRequest
from cuemaster.application.ports.gateway import PersistenceError
from cuemaster.application.settings import AppSettings
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.sync.state import AppState
from cuemaster.application.use_cases.checkout import Checkout, new_transaction_id
from cuemaster.application.use_cases.context import TraceContext
from cuemaster.application.use_cases.table_orders import AddOrderItem
from cuemaster.application.use_cases.table_session import OpenTable
from cuemaster.domain.common.ids import TableId
from cuemaster.domain.table.entities import InvalidTableTransitionError, TableStatus
from cuemaster.infrastructure.kv.gateway import KeyValueGateway

NOW = datetime(2026, 10, 17, 18, 0, tzinfo=timezone.utc)
TRACE = TraceContext(trace_id=None, request_id="req-checkout")


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> Any | None:
        raw = self.data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = json.dumps(value)


class CheckoutFailingGateway(KeyValueGateway):
    def __init__(self, store: InMemoryKeyValueStore) -> None:
        super().__init__(store)
        self.fail = False

    def add_transaction(self, transaction) -> None:
        if self.fail:
            raise PersistenceError("store offline")
        super().add_transaction(transaction)


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


def _coordinator(gateway: KeyValueGateway, publisher: RecordingPublisher, clock: FixedClock):
    return SyncCoordinator(
        state=AppState(),
        gateway=gateway,
        settings=AppSettings(ledger_debounce_seconds=60),
        publisher=publisher,
        clock=clock,
    )


def test_checkout_records_transaction_and_resets_table() -> None:
    store = InMemoryKeyValueStore()
    publisher = RecordingPublisher()
    clock = FixedClock(NOW)
    sync = _coordinator(KeyValueGateway(store), publisher, clock)

    async def scenario():
        await sync.initialize()
        OpenTable(sync, clock=clock).execute(TableId("01"), OpenTableRequest(), TRACE)
        AddOrderItem(sync, clock=clock).execute(TableId("01"), AddOrderItemRequest(itemId="2"))
        clock.now = NOW + timedelta(minutes=16)
        response = Checkout(sync, clock=clock).execute(TableId("01"), TRACE)
        # the debounced ledger write was superseded by the checkout write
        assert sync.ledger_saver.pending_tables() == set()
        await sync.shutdown()
        return response

    response = asyncio.run(scenario())

    assert response.tableFee == 30000
    assert response.serviceFee == 20000
    assert response.total == 50000
    assert response.duration == "0h 16m"
    assert response.status == "Paid"
    assert response.transactionId.startswith("TX-")

    table = sync.state.get_table(TableId("01"))
    assert table.status == TableStatus.EMPTY
    assert table.orders == []
    assert sync.state.transactions[0].transaction_id == response.transactionId

    remote_transactions = json.loads(store.data["cuemaster_transactions"])
    assert [item["id"] for item in remote_transactions] == [response.transactionId]
    assert remote_transactions[0]["orders"][0]["name"] == "Red Bull"
    remote_table = next(
        item for item in json.loads(store.data["cuemaster_tables"]) if item["id"] == "01"
    )
    assert remote_table["status"] == "EMPTY"
    assert "startTime" not in remote_table

    event_types = [message["event_type"] for message in publisher.messages]
    assert event_types[-2:] == ["transaction.recorded", "table.updated"]


def test_checkout_of_idle_table_is_rejected() -> None:
    publisher = RecordingPublisher()
    clock = FixedClock(NOW)
    sync = _coordinator(KeyValueGateway(InMemoryKeyValueStore()), publisher, clock)

    async def scenario() -> None:
        await sync.initialize()
        with pytest.raises(InvalidTableTransitionError):
            Checkout(sync, clock=clock).execute(TableId("02"), TRACE)

    asyncio.run(scenario())

    assert sync.state.transactions == []


def test_failed_checkout_write_raises_critical_alert() -> None:
    gateway = CheckoutFailingGateway(InMemoryKeyValueStore())
    publisher = RecordingPublisher()
    clock = FixedClock(NOW)
    sync = _coordinator(gateway, publisher, clock)

    async def scenario() -> None:
        await sync.initialize()
        OpenTable(sync, clock=clock).execute(TableId("03"), OpenTableRequest(), TRACE)
        await sync.writer.drain()
        gateway.fail = True
        Checkout(sync, clock=clock).execute(TableId("03"), TRACE)
        await sync.shutdown()

    asyncio.run(scenario())

    # the sale stays visible locally even though it never reached the store
    assert len(sync.state.transactions) == 1
    assert gateway.get_transactions() == []
    alert = sync.state.alerts[0]
    assert alert.operation == "checkout"
    assert alert.severity == "critical"
    assert publisher.messages[-1]["event_type"] == "sync.failed"


def test_transaction_ids_are_unique() -> None:
    ids = {new_transaction_id() for _ in range(200)}

    assert len(ids) == 200


def test_checkout_span_parents_its_background_write(caplog: pytest.LogCaptureFixture) -> None:
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    tracer = provider.get_tracer("checkout-test")

    gateway = KeyValueGateway(InMemoryKeyValueStore())
    clock = FixedClock(NOW)
    sync = SyncCoordinator(
        state=AppState(),
        gateway=gateway,
        settings=AppSettings(ledger_debounce_seconds=60),
        publisher=RecordingPublisher(),
        clock=clock,
        tracer=tracer,
    )

    async def scenario():
        await sync.initialize()
        OpenTable(sync, clock=clock).execute(TableId("04"), OpenTableRequest(), TRACE)
        await sync.writer.drain()
        # another terminal deletes the table before the checkout write lands
        gateway.save_tables([table for table in gateway.get_tables() if table.table_id != "04"])
        clock.now = NOW + timedelta(minutes=30)
        response = Checkout(sync, clock=clock, tracer=tracer).execute(TableId("04"), TRACE)
        await sync.shutdown()
        return response

    with caplog.at_level(logging.WARNING, logger="cuemaster.infrastructure.kv.gateway"):
        response = asyncio.run(scenario())

    spans = exporter.get_finished_spans()
    checkout_span = next(span for span in spans if span.name == "checkout")
    write_span = next(
        span
        for span in spans
        if span.name == "background_write" and span.attributes["cuemaster.operation"] == "checkout"
    )
    assert checkout_span.attributes["cuemaster.table_id"] == "04"
    assert checkout_span.attributes["cuemaster.transaction_id"] == response.transactionId
    assert write_span.parent is not None
    assert write_span.parent.span_id == checkout_span.context.span_id
    assert write_span.attributes["cuemaster.severity"] == "critical"

    # the transaction still reached the store; only the table reset was lost
    assert [tx.transaction_id for tx in gateway.get_transactions()] == [response.transactionId]
    missing = [record for record in caplog.records if record.getMessage() == "update_table_missing"]
    assert [(record.table_id, record.operation) for record in missing] == [("04", "checkout")]
