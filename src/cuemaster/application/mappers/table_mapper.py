from __future__ import annotations

from datetime import datetime

from cuemaster.application.dto.responses import (
    FeeQuoteResponse,
    OrderLineResponse,
    TableListResponse,
    TableResponse,
)
from cuemaster.domain.billing import fees
from cuemaster.domain.order.entities import OrderLine
from cuemaster.domain.rates.entities import RateTable
from cuemaster.domain.table.entities import Table, TableStatus


def to_order_line_response(line: OrderLine) -> OrderLineResponse:
    return OrderLineResponse(
        lineId=str(line.line_id),
        itemId=str(line.item_id),
        name=line.name,
        quantity=line.quantity,
        price=line.price,
        lineTotal=line.line_total,
    )


def to_table_response(table: Table, rates: RateTable, now: datetime, currency: str) -> TableResponse:
    quote = fees.quote(
        start_time=table.start_time,
        table_type=table.table_type,
        rates=rates,
        now=now,
        prepaid_amount=table.prepaid_amount,
    )
    service_fee = table.service_fee_total()
    remaining = quote.prepaid_remaining_seconds
    return TableResponse(
        tableId=str(table.table_id),
        name=table.name,
        type=table.table_type.value,
        status=table.status.value,
        startTime=table.start_time,
        prepaidAmount=table.prepaid_amount,
        customerName=table.customer_name,
        phone=table.phone,
        bookedTime=table.booked_time,
        orders=[to_order_line_response(line) for line in table.orders],
        currency=currency,
        fees=FeeQuoteResponse(
            elapsedSeconds=int(quote.elapsed.total_seconds),
            elapsedDisplay=quote.elapsed.display(),
            blockMinutes=quote.block_minutes,
            blocks=quote.blocks,
            hourlyRate=quote.hourly_rate,
            tableFee=quote.table_fee,
            serviceFee=service_fee,
            total=quote.table_fee + service_fee,
            prepaidRemainingSeconds=int(remaining) if remaining is not None else None,
            prepaidExhausted=quote.prepaid_exhausted,
        ),
    )


def to_table_list_response(
    tables: list[Table],
    rates: RateTable,
    now: datetime,
    currency: str,
) -> TableListResponse:
    return TableListResponse(
        tables=[to_table_response(table, rates, now, currency) for table in tables],
        playing=sum(1 for table in tables if table.status == TableStatus.PLAYING),
        empty=sum(1 for table in tables if table.status == TableStatus.EMPTY),
    )
