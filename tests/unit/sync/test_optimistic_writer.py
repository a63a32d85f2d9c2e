from __future__ import annotations

import asyncio
import sys
import threading
import time
from pathlib import Path

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from cuemaster.application.ports.gateway import PersistenceError
from cuemaster.application.sync.writer import OptimisticWriter, WriteFailure


def test_successful_write_resolves_ok() -> None:
    calls: list[str] = []

    async def scenario():
        writer = OptimisticWriter()
        return await writer.submit("save_rates", ["rates"], lambda: calls.append("saved"))

    outcome = asyncio.run(scenario())

    assert outcome.ok is True
    assert outcome.operation == "save_rates"
    assert calls == ["saved"]


def test_writes_to_same_resource_keep_submission_order() -> None:
    order: list[int] = []

    def make_write(index: int):
        def write() -> None:
            # earlier writes are slower; they must still finish first
            time.sleep(0.02 * (3 - index))
            order.append(index)

        return write

    async def scenario() -> None:
        writer = OptimisticWriter()
        tasks = [writer.submit("save_orders", ["table:01"], make_write(i)) for i in range(3)]
        await asyncio.gather(*tasks)

    asyncio.run(scenario())

    assert order == [0, 1, 2]


def test_failed_write_reports_failure_without_raising() -> None:
    failures: list[WriteFailure] = []

    async def on_failure(failure: WriteFailure) -> None:
        failures.append(failure)

    def broken_write() -> None:
        raise PersistenceError("store offline")

    async def scenario():
        writer = OptimisticWriter(on_failure=on_failure)
        outcome = await writer.submit(
            "checkout",
            ["transactions", "tables"],
            broken_write,
            severity="critical",
        )
        return writer, outcome

    writer, outcome = asyncio.run(scenario())

    assert outcome.ok is False
    assert isinstance(outcome.error, PersistenceError)
    assert len(failures) == 1
    assert failures[0].operation == "checkout"
    assert failures[0].severity == "critical"
    assert failures[0].resources == ("tables", "transactions")
    assert writer.in_flight_resources() == set()


def test_in_flight_resources_tracked_until_write_finishes() -> None:
    started = threading.Event()
    release = threading.Event()

    def slow_write() -> None:
        started.set()
        release.wait(timeout=2)

    async def scenario() -> None:
        writer = OptimisticWriter()
        task = writer.submit("open_table", ["tables", "table:01"], slow_write)
        await asyncio.to_thread(started.wait, 2)

        assert writer.in_flight_resources() == {"tables", "table:01"}
        assert writer.pending_count == 1

        release.set()
        outcomes = await writer.drain()

        assert [outcome.ok for outcome in outcomes] == [True]
        assert task.done()
        assert writer.in_flight_resources() == set()
        assert writer.pending_count == 0

    asyncio.run(scenario())


def test_drain_with_nothing_pending_returns_empty() -> None:
    async def scenario():
        return await OptimisticWriter().drain()

    assert asyncio.run(scenario()) == []


def test_each_write_is_traced_and_failures_mark_the_span() -> None:
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))

    def fail() -> None:
        raise PersistenceError("store offline")

    async def scenario() -> None:
        writer = OptimisticWriter(tracer=provider.get_tracer("writer-test"))
        await writer.submit("save_menu", ["menu"], lambda: None)
        await writer.submit("checkout", ["transactions", "tables"], fail, severity="critical")

    asyncio.run(scenario())

    spans = {span.attributes["cuemaster.operation"]: span for span in exporter.get_finished_spans()}
    assert spans["save_menu"].name == "background_write"
    assert spans["save_menu"].status.status_code == StatusCode.UNSET
    failed = spans["checkout"]
    assert failed.status.status_code == StatusCode.ERROR
    assert tuple(failed.attributes["cuemaster.resources"]) == ("tables", "transactions")
    assert failed.attributes["cuemaster.severity"] == "critical"
    assert [event.name for event in failed.events] == ["exception"]
