from __future__ import annotations

from cuemaster.application.dto.responses import MenuItemResponse, MenuResponse, RatesResponse
from cuemaster.domain.menu.entities import MenuItem
from cuemaster.domain.rates.entities import RateTable, TableType


def to_menu_item_response(item: MenuItem) -> MenuItemResponse:
    return MenuItemResponse(
        itemId=str(item.item_id),
        name=item.name,
        price=item.price,
        category=item.category.value,
        status=item.stock_status.value,
        image=item.image,
        orderable=item.is_orderable,
    )


def to_menu_response(items: list[MenuItem], currency: str) -> MenuResponse:
    return MenuResponse(
        items=[to_menu_item_response(item) for item in items],
        currency=currency,
    )


def to_rates_response(rates: RateTable, currency: str) -> RatesResponse:
    return RatesResponse(
        Pool=rates.hourly_rate(TableType.POOL),
        Carom=rates.hourly_rate(TableType.CAROM),
        Snooker=rates.hourly_rate(TableType.SNOOKER),
        VIP=rates.hourly_rate(TableType.VIP),
        billingBlock=rates.billing_block,
        effectiveBlockMinutes=rates.effective_block_minutes,
        currency=currency,
    )
