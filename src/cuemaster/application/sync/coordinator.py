from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable

from opentelemetry import trace

from cuemaster.application.mappers.event_envelope import serialize_sync_failed_event
from cuemaster.application.mappers.snapshot_mapper import table_update_fields
from cuemaster.application.metrics.session_metrics import record_sync_failure
from cuemaster.application.ports.gateway import PersistenceGateway
from cuemaster.application.ports.publisher import EventPublisher
from cuemaster.application.settings import AppSettings
from cuemaster.application.sync.debounce import DebouncedTableSaver
from cuemaster.application.sync.state import (
    TABLES,
    AppState,
    RemoteSnapshot,
    table_key,
)
from cuemaster.application.sync.writer import OptimisticWriter, WriteFailure, WriteOutcome
from cuemaster.application.use_cases.context import utc_now
from cuemaster.domain.common.ids import TableId
from cuemaster.domain.table.entities import Table

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Keeps ``AppState`` and the persistence gateway in step.

    Local state is changed first by the caller; this class then issues the
    durable write in the background, reconciles with the remote store on
    refresh, and turns failed writes into operator alerts.
    """

    def __init__(
        self,
        state: AppState,
        gateway: PersistenceGateway,
        settings: AppSettings,
        publisher: EventPublisher | None = None,
        clock: Callable[[], datetime] = utc_now,
        tracer: trace.Tracer | None = None,
    ) -> None:
        self.state = state
        self.settings = settings
        self._gateway = gateway
        self._publisher = publisher
        self._clock = clock
        self._publish_tasks: set[asyncio.Task[None]] = set()
        self.writer = OptimisticWriter(on_failure=self._handle_write_failure, tracer=tracer)
        self.ledger_saver = DebouncedTableSaver(
            writer=self.writer,
            build_write=self._build_table_write,
            delay_seconds=settings.ledger_debounce_seconds,
        )

    @property
    def gateway(self) -> PersistenceGateway:
        return self._gateway

    async def initialize(self) -> None:
        await asyncio.to_thread(self._gateway.init)
        await self.refresh()

    async def refresh(self) -> None:
        revisions_before = dict(self.state.revisions)
        # a write that lands while the snapshot loads may be missing from it
        pending_before = self._unsaved_keys()
        snapshot = await asyncio.to_thread(self._load_snapshot)

        keep_local = {
            key
            for key, revision in self.state.revisions.items()
            if revisions_before.get(key, 0) != revision
        }
        keep_local |= pending_before | self._unsaved_keys()

        self.state.replace_from_remote(snapshot, keep_local=keep_local, now=self._clock())
        logger.debug("refresh_complete", extra={"kept_local": len(keep_local)})

    async def run_refresh_loop(self) -> None:
        interval = self.settings.refresh_interval_seconds
        initial_backoff = min(1.0, interval)
        backoff_seconds = initial_backoff
        while True:
            try:
                await self.refresh()
                backoff_seconds = initial_backoff
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                logger.info("refresh_loop_cancelled")
                raise
            except Exception:
                # stale data stays on screen; the next tick retries
                record_sync_failure("refresh")
                logger.exception("refresh_failed", extra={"backoff_seconds": backoff_seconds})
                await asyncio.sleep(backoff_seconds)
                backoff_seconds = min(backoff_seconds * 2, interval)

    def persist_table(
        self,
        table: Table,
        operation: str,
        severity: str = "error",
    ) -> asyncio.Task[WriteOutcome]:
        # a full table write supersedes any debounced ledger write
        self.ledger_saver.cancel(table.table_id)
        fields = table_update_fields(table)
        return self.writer.submit(
            operation=operation,
            resources=[TABLES, table_key(table.table_id)],
            write=lambda: self._gateway.update_table(
                table.table_id, fields, operation=operation
            ),
            severity=severity,
        )

    def persist_table_registry(self, operation: str) -> asyncio.Task[WriteOutcome]:
        tables = self.state.list_tables()
        for table in tables:
            self.ledger_saver.cancel(table.table_id)
        return self.writer.submit(
            operation=operation,
            resources=[TABLES],
            write=lambda: self._gateway.save_tables(tables),
        )

    def schedule_ledger_save(self, table_id: TableId) -> None:
        self.ledger_saver.touch(table_id)

    async def shutdown(self) -> None:
        await self.ledger_saver.flush()
        await self.writer.drain()
        if self._publish_tasks:
            await asyncio.gather(*list(self._publish_tasks))

    def publish(self, message: str) -> None:
        if self._publisher is None:
            return
        task = asyncio.get_running_loop().create_task(self._publish(message))
        self._publish_tasks.add(task)
        task.add_done_callback(self._publish_tasks.discard)

    async def _publish(self, message: str) -> None:
        if self._publisher is None:
            return
        try:
            await self._publisher.broadcast(message)
        except Exception:
            logger.warning("event_publish_failed", exc_info=True)

    def _unsaved_keys(self) -> set[str]:
        keys = self.writer.in_flight_resources()
        keys |= {table_key(table_id) for table_id in self.ledger_saver.pending_tables()}
        return keys

    def _load_snapshot(self) -> RemoteSnapshot:
        return RemoteSnapshot(
            tables=self._gateway.get_tables(),
            rates=self._gateway.get_rates(),
            menu=self._gateway.get_menu(),
            transactions=self._gateway.get_transactions(),
        )

    def _build_table_write(self, table_id: TableId):
        table = self.state.tables.get(table_id)
        if table is None:
            return None
        fields = table_update_fields(table)
        return (
            [TABLES, table_key(table_id)],
            lambda: self._gateway.update_table(table_id, fields, operation="save_orders"),
        )

    async def _handle_write_failure(self, failure: WriteFailure) -> None:
        if failure.severity == "critical":
            message = (
                f"{failure.operation} was applied locally but could not be saved: "
                f"{failure.error}. The sale may be unrecorded; verify and retry."
            )
        else:
            message = (
                f"{failure.operation} was applied locally but could not be saved: "
                f"{failure.error}"
            )
        alert = self.state.add_alert(
            operation=failure.operation,
            severity=failure.severity,
            message=message,
            now=self._clock(),
        )
        logger.error(
            "sync_alert_raised",
            extra={
                "alert_id": alert.alert_id,
                "operation": failure.operation,
                "severity": failure.severity,
            },
        )
        self.publish(
            serialize_sync_failed_event(
                occurred_at=alert.created_at,
                alert_id=alert.alert_id,
                operation=alert.operation,
                severity=alert.severity,
                message=alert.message,
                trace_id=None,
                request_id=None,
            )
        )
