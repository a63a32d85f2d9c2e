from __future__ import annotations

from fastapi import APIRouter, Body, Depends

from cuemaster.api.dependencies import current_trace_context, get_sync
from cuemaster.application.dto.requests import BookTableRequest, OpenTableRequest
from cuemaster.application.dto.responses import (
    TableListResponse,
    TableResponse,
    TransactionResponse,
)
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.use_cases.checkout import Checkout
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
from cuemaster.domain.common.ids import TableId

router = APIRouter()


@router.get("/v1/tables", response_model=TableListResponse)
async def list_tables(sync: SyncCoordinator = Depends(get_sync)) -> TableListResponse:
    return ListTables(sync).execute()


@router.get("/v1/tables/{table_id}", response_model=TableResponse)
async def get_table(table_id: str, sync: SyncCoordinator = Depends(get_sync)) -> TableResponse:
    return GetTable(sync).execute(TableId(table_id))


@router.post("/v1/tables/{table_id}/open", response_model=TableResponse)
async def open_table(
    table_id: str,
    request_dto: OpenTableRequest | None = Body(default=None),
    sync: SyncCoordinator = Depends(get_sync),
) -> TableResponse:
    return OpenTable(sync).execute(
        table_id=TableId(table_id),
        request_dto=request_dto or OpenTableRequest(),
        trace_ctx=current_trace_context(),
    )


@router.post("/v1/tables/{table_id}/book", response_model=TableResponse)
async def book_table(
    table_id: str,
    request_dto: BookTableRequest,
    sync: SyncCoordinator = Depends(get_sync),
) -> TableResponse:
    return BookTable(sync).execute(
        table_id=TableId(table_id),
        request_dto=request_dto,
        trace_ctx=current_trace_context(),
    )


@router.post("/v1/tables/{table_id}/start", response_model=TableResponse)
async def start_from_booking(
    table_id: str, sync: SyncCoordinator = Depends(get_sync)
) -> TableResponse:
    return StartFromBooking(sync).execute(TableId(table_id), current_trace_context())


@router.post("/v1/tables/{table_id}/cancel-booking", response_model=TableResponse)
async def cancel_booking(table_id: str, sync: SyncCoordinator = Depends(get_sync)) -> TableResponse:
    return CancelBooking(sync).execute(TableId(table_id), current_trace_context())


@router.post("/v1/tables/{table_id}/maintenance", response_model=TableResponse)
async def set_maintenance(
    table_id: str, sync: SyncCoordinator = Depends(get_sync)
) -> TableResponse:
    return SetMaintenance(sync).execute(TableId(table_id), current_trace_context())


@router.post("/v1/tables/{table_id}/clear-maintenance", response_model=TableResponse)
async def clear_maintenance(
    table_id: str, sync: SyncCoordinator = Depends(get_sync)
) -> TableResponse:
    return ClearMaintenance(sync).execute(TableId(table_id), current_trace_context())


@router.post("/v1/tables/{table_id}/checkout", response_model=TransactionResponse)
async def checkout(
    table_id: str, sync: SyncCoordinator = Depends(get_sync)
) -> TransactionResponse:
    return Checkout(sync).execute(TableId(table_id), current_trace_context())
