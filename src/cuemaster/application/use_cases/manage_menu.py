from __future__ import annotations

import logging
from dataclasses import replace
from uuid import uuid4

from cuemaster.application.dto.requests import CreateMenuItemRequest, UpdateMenuItemRequest
from cuemaster.application.dto.responses import MenuItemResponse, MenuResponse
from cuemaster.application.mappers.menu_mapper import to_menu_item_response, to_menu_response
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.sync.state import MENU
from cuemaster.domain.common.ids import MenuItemId
from cuemaster.domain.menu.entities import MenuItem

logger = logging.getLogger(__name__)


class InvalidMenuItemError(Exception):
    pass


class _MenuUseCase:
    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    def _save(self, menu: list[MenuItem], operation: str) -> None:
        self._sync.state.set_menu(menu)
        gateway = self._sync.gateway
        snapshot = list(menu)
        self._sync.writer.submit(
            operation=operation,
            resources=[MENU],
            write=lambda: gateway.save_menu(snapshot),
        )


class GetMenu(_MenuUseCase):
    def execute(self) -> MenuResponse:
        return to_menu_response(self._sync.state.menu, self._sync.settings.currency)


class CreateMenuItem(_MenuUseCase):
    def execute(self, request_dto: CreateMenuItemRequest) -> MenuItemResponse:
        try:
            item = MenuItem(
                item_id=MenuItemId(f"itm_{uuid4().hex[:12]}"),
                name=request_dto.name,
                price=request_dto.price,
                category=request_dto.category,
                stock_status=request_dto.status,
                image=request_dto.image,
            )
        except ValueError as exc:
            raise InvalidMenuItemError(str(exc)) from exc
        self._save([*self._sync.state.menu, item], operation="create_menu_item")
        logger.info("menu_item_created", extra={"item_id": str(item.item_id)})
        return to_menu_item_response(item)


class UpdateMenuItem(_MenuUseCase):
    """Edits a menu item. Open order lines keep the price they were added at."""

    def execute(self, item_id: MenuItemId, request_dto: UpdateMenuItemRequest) -> MenuItemResponse:
        current = self._sync.state.find_menu_item(item_id)
        changes = {
            key: value
            for key, value in request_dto.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if "status" in changes:
            changes["stock_status"] = changes.pop("status")
        try:
            updated = replace(current, **changes)
        except ValueError as exc:
            raise InvalidMenuItemError(str(exc)) from exc
        menu = [updated if item.item_id == item_id else item for item in self._sync.state.menu]
        self._save(menu, operation="update_menu_item")
        logger.info("menu_item_updated", extra={"item_id": str(item_id)})
        return to_menu_item_response(updated)


class DeleteMenuItem(_MenuUseCase):
    def execute(self, item_id: MenuItemId) -> MenuItemResponse:
        removed = self._sync.state.find_menu_item(item_id)
        menu = [item for item in self._sync.state.menu if item.item_id != item_id]
        self._save(menu, operation="delete_menu_item")
        logger.info("menu_item_deleted", extra={"item_id": str(item_id)})
        return to_menu_item_response(removed)
