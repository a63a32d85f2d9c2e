from __future__ import annotations

from fastapi import APIRouter, Depends

from cuemaster.api.dependencies import get_sync
from cuemaster.application.dto.requests import AddOrderItemRequest, AdjustQuantityRequest
from cuemaster.application.dto.responses import TableResponse
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.use_cases.table_orders import (
    AddOrderItem,
    AdjustOrderQuantity,
    RemoveOrderItem,
)
from cuemaster.domain.common.ids import OrderLineId, TableId

router = APIRouter()


@router.post("/v1/tables/{table_id}/orders", response_model=TableResponse)
async def add_order_item(
    table_id: str,
    request_dto: AddOrderItemRequest,
    sync: SyncCoordinator = Depends(get_sync),
) -> TableResponse:
    return AddOrderItem(sync).execute(TableId(table_id), request_dto)


@router.patch("/v1/tables/{table_id}/orders/{line_id}", response_model=TableResponse)
async def adjust_order_quantity(
    table_id: str,
    line_id: str,
    request_dto: AdjustQuantityRequest,
    sync: SyncCoordinator = Depends(get_sync),
) -> TableResponse:
    return AdjustOrderQuantity(sync).execute(TableId(table_id), OrderLineId(line_id), request_dto)


@router.delete("/v1/tables/{table_id}/orders/{line_id}", response_model=TableResponse)
async def remove_order_item(
    table_id: str,
    line_id: str,
    sync: SyncCoordinator = Depends(get_sync),
) -> TableResponse:
    return RemoveOrderItem(sync).execute(TableId(table_id), OrderLineId(line_id))
