from __future__ import annotations

from dataclasses import dataclass

from cuemaster.domain.common.ids import MenuItemId, OrderLineId


@dataclass(frozen=True)
class OrderLine:
    line_id: OrderLineId
    item_id: MenuItemId
    name: str
    price: int
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.price < 0:
            raise ValueError("price must be >= 0")

    @property
    def line_total(self) -> int:
        return self.price * self.quantity
