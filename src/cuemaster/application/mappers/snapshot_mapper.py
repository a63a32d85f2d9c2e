"""Domain <-> JSON blob conversion for the key-value store.

Blob shapes are camelCase and omit unset optional fields, so a table dict
can be merged with partial updates where ``None`` means "clear this field".
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from cuemaster.domain.common.ids import MenuItemId, OrderLineId, TableId, TransactionId
from cuemaster.domain.menu.entities import MenuCategory, MenuItem, StockStatus
from cuemaster.domain.order.entities import OrderLine
from cuemaster.domain.rates.entities import DEFAULT_BILLING_BLOCK_MINUTES, RateTable, TableType
from cuemaster.domain.table.entities import Table, TableStatus
from cuemaster.domain.transaction.entities import Transaction, TransactionStatus


def parse_datetime(raw: str) -> datetime:
    value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _format_datetime(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def order_line_to_dict(line: OrderLine) -> dict[str, Any]:
    return {
        "id": str(line.line_id),
        "itemId": str(line.item_id),
        "name": line.name,
        "quantity": line.quantity,
        "price": line.price,
    }


def order_line_from_dict(data: dict[str, Any]) -> OrderLine:
    return OrderLine(
        line_id=OrderLineId(str(data["id"])),
        item_id=MenuItemId(str(data["itemId"])),
        name=str(data["name"]),
        price=int(data["price"]),
        quantity=int(data["quantity"]),
    )


def table_to_dict(table: Table) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(table.table_id),
        "name": table.name,
        "status": table.status.value,
        "type": table.table_type.value,
        "orders": [order_line_to_dict(line) for line in table.orders],
    }
    optional = {
        "startTime": _format_datetime(table.start_time) if table.start_time else None,
        "prepaidAmount": table.prepaid_amount,
        "customerName": table.customer_name,
        "phone": table.phone,
        "bookedTime": table.booked_time,
    }
    payload.update({key: value for key, value in optional.items() if value is not None})
    return payload


def table_update_fields(table: Table) -> dict[str, Any]:
    """Full field set for ``update_table``; cleared fields are sent as ``None``."""
    return {
        "name": table.name,
        "status": table.status.value,
        "type": table.table_type.value,
        "orders": [order_line_to_dict(line) for line in table.orders],
        "startTime": _format_datetime(table.start_time) if table.start_time else None,
        "prepaidAmount": table.prepaid_amount,
        "customerName": table.customer_name,
        "phone": table.phone,
        "bookedTime": table.booked_time,
    }


def table_from_dict(data: dict[str, Any]) -> Table:
    start_time_raw = data.get("startTime")
    prepaid_raw = data.get("prepaidAmount")
    return Table(
        table_id=TableId(str(data["id"])),
        name=str(data.get("name") or f"Table {data['id']}"),
        table_type=TableType(data.get("type", TableType.POOL.value)),
        status=TableStatus(data.get("status", TableStatus.EMPTY.value)),
        start_time=parse_datetime(start_time_raw) if start_time_raw else None,
        prepaid_amount=int(prepaid_raw) if prepaid_raw is not None else None,
        orders=[order_line_from_dict(item) for item in data.get("orders") or []],
        customer_name=data.get("customerName") or None,
        phone=data.get("phone") or None,
        booked_time=data.get("bookedTime") or None,
    )


def merge_table_dict(current: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = dict(current)
    for key, value in updates.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


def rates_to_dict(rates: RateTable) -> dict[str, Any]:
    payload: dict[str, Any] = {
        table_type.value: rates.hourly_rate(table_type) for table_type in TableType
    }
    payload["billingBlock"] = rates.billing_block
    return payload


def rates_from_dict(data: dict[str, Any]) -> RateTable:
    block_raw = data.get("billingBlock")
    if block_raw in (None, ""):
        block_raw = DEFAULT_BILLING_BLOCK_MINUTES
    return RateTable(
        hourly_rates={
            table_type: int(data.get(table_type.value) or 0) for table_type in TableType
        },
        billing_block=int(block_raw),
    )


def menu_item_to_dict(item: MenuItem) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(item.item_id),
        "name": item.name,
        "price": item.price,
        "category": item.category.value,
        "status": item.stock_status.value,
    }
    if item.image:
        payload["image"] = item.image
    return payload


def menu_item_from_dict(data: dict[str, Any]) -> MenuItem:
    return MenuItem(
        item_id=MenuItemId(str(data["id"])),
        name=str(data["name"]),
        price=int(data["price"]),
        category=MenuCategory(data.get("category", MenuCategory.OTHER.value)),
        stock_status=StockStatus(data.get("status", StockStatus.IN_STOCK.value)),
        image=data.get("image") or None,
    )


def transaction_to_dict(transaction: Transaction) -> dict[str, Any]:
    return {
        "id": str(transaction.transaction_id),
        "tableId": str(transaction.table_id),
        "tableName": transaction.table_name,
        "startTime": _format_datetime(transaction.start_time),
        "endTime": _format_datetime(transaction.end_time),
        "duration": transaction.duration,
        "tableFee": transaction.table_fee,
        "serviceFee": transaction.service_fee,
        "orders": [order_line_to_dict(line) for line in transaction.orders],
        "total": transaction.total,
        "status": transaction.status.value,
    }


def transaction_from_dict(data: dict[str, Any]) -> Transaction:
    start_time = parse_datetime(data["startTime"])
    end_time_raw = data.get("endTime")
    return Transaction(
        transaction_id=TransactionId(str(data["id"])),
        table_id=TableId(str(data.get("tableId", ""))),
        table_name=str(data.get("tableName", "")),
        start_time=start_time,
        end_time=parse_datetime(end_time_raw) if end_time_raw else start_time,
        duration=str(data.get("duration", "")),
        table_fee=int(data.get("tableFee", 0)),
        service_fee=int(data.get("serviceFee", 0)),
        orders=tuple(order_line_from_dict(item) for item in data.get("orders") or []),
        total=int(data.get("total", 0)),
        status=TransactionStatus(data.get("status", TransactionStatus.PAID.value)),
    )
