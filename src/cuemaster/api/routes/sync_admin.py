from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from cuemaster.api.dependencies import get_sync
from cuemaster.application.dto.responses import (
    SyncAlertListResponse,
    SyncAlertResponse,
    SyncStatusResponse,
)
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.use_cases.sync_admin import (
    AcknowledgeAlert,
    GetSyncStatus,
    InitializeStore,
    ListAlerts,
    ResetStore,
    SyncNow,
)

router = APIRouter()


@router.post("/v1/init", response_model=SyncStatusResponse)
async def init_store(sync: SyncCoordinator = Depends(get_sync)) -> SyncStatusResponse:
    return await InitializeStore(sync).execute()


@router.post("/v1/reset", response_model=SyncStatusResponse)
async def reset_store(sync: SyncCoordinator = Depends(get_sync)) -> SyncStatusResponse:
    return await ResetStore(sync).execute()


@router.post("/v1/sync", response_model=SyncStatusResponse)
async def sync_now(sync: SyncCoordinator = Depends(get_sync)) -> SyncStatusResponse:
    return await SyncNow(sync).execute()


@router.get("/v1/sync", response_model=SyncStatusResponse)
async def sync_status(sync: SyncCoordinator = Depends(get_sync)) -> SyncStatusResponse:
    return GetSyncStatus(sync).execute()


@router.get("/v1/alerts", response_model=SyncAlertListResponse)
async def list_alerts(
    include_acknowledged: bool = Query(default=False, alias="includeAcknowledged"),
    sync: SyncCoordinator = Depends(get_sync),
) -> SyncAlertListResponse:
    return ListAlerts(sync).execute(include_acknowledged=include_acknowledged)


@router.post("/v1/alerts/{alert_id}/ack", response_model=SyncAlertResponse)
async def acknowledge_alert(
    alert_id: str, sync: SyncCoordinator = Depends(get_sync)
) -> SyncAlertResponse:
    return AcknowledgeAlert(sync).execute(alert_id)
