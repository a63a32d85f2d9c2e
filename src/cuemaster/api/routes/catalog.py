from __future__ import annotations

from fastapi import APIRouter, Depends, status

from cuemaster.api.dependencies import get_sync
from cuemaster.application.dto.requests import (
    CreateMenuItemRequest,
    RatesRequest,
    UpdateMenuItemRequest,
)
from cuemaster.application.dto.responses import MenuItemResponse, MenuResponse, RatesResponse
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.use_cases.manage_menu import (
    CreateMenuItem,
    DeleteMenuItem,
    GetMenu,
    UpdateMenuItem,
)
from cuemaster.application.use_cases.manage_rates import GetRates, UpdateRates
from cuemaster.domain.common.ids import MenuItemId

router = APIRouter()


@router.get("/v1/rates", response_model=RatesResponse)
async def get_rates(sync: SyncCoordinator = Depends(get_sync)) -> RatesResponse:
    return GetRates(sync).execute()


@router.put("/v1/rates", response_model=RatesResponse)
async def update_rates(
    request_dto: RatesRequest, sync: SyncCoordinator = Depends(get_sync)
) -> RatesResponse:
    return UpdateRates(sync).execute(request_dto)


@router.get("/v1/menu", response_model=MenuResponse)
async def get_menu(sync: SyncCoordinator = Depends(get_sync)) -> MenuResponse:
    return GetMenu(sync).execute()


@router.post("/v1/menu", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
async def create_menu_item(
    request_dto: CreateMenuItemRequest, sync: SyncCoordinator = Depends(get_sync)
) -> MenuItemResponse:
    return CreateMenuItem(sync).execute(request_dto)


@router.patch("/v1/menu/{item_id}", response_model=MenuItemResponse)
async def update_menu_item(
    item_id: str,
    request_dto: UpdateMenuItemRequest,
    sync: SyncCoordinator = Depends(get_sync),
) -> MenuItemResponse:
    return UpdateMenuItem(sync).execute(MenuItemId(item_id), request_dto)


@router.delete("/v1/menu/{item_id}", response_model=MenuItemResponse)
async def delete_menu_item(
    item_id: str, sync: SyncCoordinator = Depends(get_sync)
) -> MenuItemResponse:
    return DeleteMenuItem(sync).execute(MenuItemId(item_id))
