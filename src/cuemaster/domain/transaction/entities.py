from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cuemaster.domain.billing import fees
from cuemaster.domain.common.ids import TableId, TransactionId
from cuemaster.domain.order.entities import OrderLine
from cuemaster.domain.rates.entities import RateTable
from cuemaster.domain.table.entities import Table


class TransactionStatus(str, Enum):
    PAID = "Paid"
    CANCELLED = "Cancelled"
    PENDING = "Pending"


@dataclass(frozen=True)
class Transaction:
    transaction_id: TransactionId
    table_id: TableId
    table_name: str
    start_time: datetime
    end_time: datetime
    duration: str
    table_fee: int
    service_fee: int
    orders: tuple[OrderLine, ...]
    total: int
    status: TransactionStatus

    def __post_init__(self) -> None:
        if self.table_fee < 0 or self.service_fee < 0:
            raise ValueError("fees must be >= 0")
        if self.total != self.table_fee + self.service_fee:
            raise ValueError("total must equal table_fee + service_fee")
        if self.end_time < self.start_time:
            raise ValueError("end_time must not precede start_time")


def create_paid_transaction(
    transaction_id: TransactionId,
    table: Table,
    rates: RateTable,
    now: datetime,
) -> Transaction:
    table.ensure_playing()
    start_time = table.start_time or now
    quote = fees.quote(
        start_time=start_time,
        table_type=table.table_type,
        rates=rates,
        now=now,
        prepaid_amount=table.prepaid_amount,
    )
    service_fee = table.service_fee_total()
    return Transaction(
        transaction_id=transaction_id,
        table_id=table.table_id,
        table_name=table.name,
        start_time=start_time,
        end_time=max(now, start_time),
        duration=quote.elapsed.display(),
        table_fee=quote.table_fee,
        service_fee=service_fee,
        orders=tuple(table.orders),
        total=quote.table_fee + service_fee,
        status=TransactionStatus.PAID,
    )
