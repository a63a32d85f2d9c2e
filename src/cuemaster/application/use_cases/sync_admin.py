from __future__ import annotations

import asyncio
import logging

from cuemaster.application.dto.responses import (
    SyncAlertListResponse,
    SyncAlertResponse,
    SyncStatusResponse,
)
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.sync.state import SyncAlert

logger = logging.getLogger(__name__)


def to_alert_response(alert: SyncAlert) -> SyncAlertResponse:
    return SyncAlertResponse(
        alertId=alert.alert_id,
        operation=alert.operation,
        severity=alert.severity,
        message=alert.message,
        createdAt=alert.created_at,
        acknowledged=alert.acknowledged,
    )


class SyncNow:
    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    async def execute(self) -> SyncStatusResponse:
        await self._sync.refresh()
        return GetSyncStatus(self._sync).execute()


class InitializeStore:
    """Seeds the store when it has no tables yet, then reloads local state."""

    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    async def execute(self) -> SyncStatusResponse:
        await self._sync.initialize()
        return GetSyncStatus(self._sync).execute()


class ResetStore:
    """Re-seeds every resource and discards pending local edits."""

    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    async def execute(self) -> SyncStatusResponse:
        for table_id in self._sync.ledger_saver.pending_tables():
            self._sync.ledger_saver.cancel(table_id)
        await self._sync.writer.drain()
        await asyncio.to_thread(self._sync.gateway.reset)
        self._sync.state.revisions.clear()
        await self._sync.refresh()
        logger.warning("store_reset")
        return GetSyncStatus(self._sync).execute()


class GetSyncStatus:
    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    def execute(self) -> SyncStatusResponse:
        state = self._sync.state
        return SyncStatusResponse(
            lastSyncedAt=state.last_synced_at,
            tables=len(state.tables),
            transactions=len(state.transactions),
            pendingWrites=self._sync.writer.pending_count
            + len(self._sync.ledger_saver.pending_tables()),
        )


class ListAlerts:
    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    def execute(self, include_acknowledged: bool = False) -> SyncAlertListResponse:
        alerts = [
            alert
            for alert in self._sync.state.alerts
            if include_acknowledged or not alert.acknowledged
        ]
        return SyncAlertListResponse(alerts=[to_alert_response(alert) for alert in alerts])


class AcknowledgeAlert:
    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    def execute(self, alert_id: str) -> SyncAlertResponse:
        return to_alert_response(self._sync.state.acknowledge_alert(alert_id))
