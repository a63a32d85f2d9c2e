from __future__ import annotations

from fastapi import APIRouter, Body, Depends, status

from cuemaster.api.dependencies import get_sync
from cuemaster.application.dto.requests import AddTableRequest, RetypeTableRequest
from cuemaster.application.dto.responses import TableResponse
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.use_cases.table_registry import AddTable, DeleteTable, RetypeTable
from cuemaster.domain.common.ids import TableId

router = APIRouter()


@router.post("/v1/tables", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
async def add_table(
    request_dto: AddTableRequest | None = Body(default=None),
    sync: SyncCoordinator = Depends(get_sync),
) -> TableResponse:
    return AddTable(sync).execute(request_dto or AddTableRequest())


@router.delete("/v1/tables/{table_id}", response_model=TableResponse)
async def delete_table(table_id: str, sync: SyncCoordinator = Depends(get_sync)) -> TableResponse:
    return DeleteTable(sync).execute(TableId(table_id))


@router.put("/v1/tables/{table_id}/type", response_model=TableResponse)
async def retype_table(
    table_id: str,
    request_dto: RetypeTableRequest,
    sync: SyncCoordinator = Depends(get_sync),
) -> TableResponse:
    return RetypeTable(sync).execute(TableId(table_id), request_dto)
