from __future__ import annotations

from dataclasses import replace
from typing import Sequence

from cuemaster.domain.common.ids import OrderLineId
from cuemaster.domain.menu.entities import MenuItem
from cuemaster.domain.order.entities import OrderLine


class MenuItemOutOfStockError(Exception):
    pass


class OrderLineNotFoundError(Exception):
    pass


def add_item(
    orders: Sequence[OrderLine],
    menu_item: MenuItem,
    line_id: OrderLineId,
) -> list[OrderLine]:
    if not menu_item.is_orderable:
        raise MenuItemOutOfStockError(f"menu item {menu_item.item_id} is out of stock")

    updated = list(orders)
    for index, line in enumerate(updated):
        if line.item_id == menu_item.item_id:
            updated[index] = replace(line, quantity=line.quantity + 1)
            return updated

    # name and price are frozen at order time; later menu edits do not apply
    updated.append(
        OrderLine(
            line_id=line_id,
            item_id=menu_item.item_id,
            name=menu_item.name,
            price=menu_item.price,
            quantity=1,
        )
    )
    return updated


def adjust_quantity(
    orders: Sequence[OrderLine],
    line_id: OrderLineId,
    delta: int,
) -> list[OrderLine]:
    updated: list[OrderLine] = []
    found = False
    for line in orders:
        if line.line_id != line_id:
            updated.append(line)
            continue
        found = True
        quantity = max(0, line.quantity + delta)
        if quantity > 0:
            updated.append(replace(line, quantity=quantity))

    if not found:
        raise OrderLineNotFoundError(f"order line {line_id} not found")
    return updated


def remove_item(orders: Sequence[OrderLine], line_id: OrderLineId) -> list[OrderLine]:
    return [line for line in orders if line.line_id != line_id]


def service_fee_total(orders: Sequence[OrderLine]) -> int:
    return sum(line.price * line.quantity for line in orders)
