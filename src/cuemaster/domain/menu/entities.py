from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cuemaster.domain.common.ids import MenuItemId


class MenuCategory(str, Enum):
    DRINK = "Drink"
    FOOD = "Food"
    OTHER = "Other"


class StockStatus(str, Enum):
    IN_STOCK = "In Stock"
    LOW_STOCK = "Low Stock"
    OUT_OF_STOCK = "Out of Stock"


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    price: int
    category: MenuCategory
    stock_status: StockStatus
    image: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        if self.price < 0:
            raise ValueError("price must be >= 0")

    @property
    def is_orderable(self) -> bool:
        return self.stock_status != StockStatus.OUT_OF_STOCK


def default_menu() -> list[MenuItem]:
    return [
        MenuItem(
            item_id=MenuItemId("1"),
            name="Sting Strawberry",
            price=15000,
            category=MenuCategory.DRINK,
            stock_status=StockStatus.IN_STOCK,
            image="https://picsum.photos/seed/sting/200",
        ),
        MenuItem(
            item_id=MenuItemId("2"),
            name="Red Bull",
            price=20000,
            category=MenuCategory.DRINK,
            stock_status=StockStatus.IN_STOCK,
            image="https://picsum.photos/seed/redbull/200",
        ),
        MenuItem(
            item_id=MenuItemId("3"),
            name="Egg Noodles",
            price=35000,
            category=MenuCategory.FOOD,
            stock_status=StockStatus.IN_STOCK,
            image="https://picsum.photos/seed/noodle/200",
        ),
        MenuItem(
            item_id=MenuItemId("4"),
            name="Cigarettes 555",
            price=35000,
            category=MenuCategory.OTHER,
            stock_status=StockStatus.IN_STOCK,
            image="https://picsum.photos/seed/cig/200",
        ),
    ]
