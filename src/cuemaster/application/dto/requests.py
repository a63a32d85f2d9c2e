from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from cuemaster.domain.menu.entities import MenuCategory, StockStatus
from cuemaster.domain.rates.entities import TableType


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class OpenTableRequest(CamelBaseModel):
    prepaid_amount: int | None = None


class BookTableRequest(CamelBaseModel):
    customer_name: str = ""
    phone: str = ""
    booked_time: str = ""


class AddOrderItemRequest(CamelBaseModel):
    item_id: str


class AdjustQuantityRequest(CamelBaseModel):
    delta: int


class AddTableRequest(CamelBaseModel):
    table_type: TableType = TableType.POOL


class RetypeTableRequest(CamelBaseModel):
    table_type: TableType


class RatesRequest(BaseModel):
    Pool: int = Field(ge=0)
    Carom: int = Field(ge=0)
    Snooker: int = Field(ge=0)
    VIP: int = Field(ge=0)
    billingBlock: int = Field(ge=0)


class CreateMenuItemRequest(CamelBaseModel):
    name: str = Field(min_length=1)
    price: int = Field(ge=0)
    category: MenuCategory = MenuCategory.DRINK
    status: StockStatus = StockStatus.IN_STOCK
    image: str | None = None


class UpdateMenuItemRequest(CamelBaseModel):
    name: str | None = Field(default=None, min_length=1)
    price: int | None = Field(default=None, ge=0)
    category: MenuCategory | None = None
    status: StockStatus | None = None
    image: str | None = None
