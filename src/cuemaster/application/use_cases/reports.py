from __future__ import annotations

from datetime import datetime
from typing import Callable

from cuemaster.application.dto.responses import DailyReportResponse, TopItemResponse
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.use_cases.context import utc_now
from cuemaster.application.use_cases.transactions import TransactionPeriod, filter_transactions
from cuemaster.domain.table.entities import TableStatus
from cuemaster.domain.transaction.entities import Transaction, TransactionStatus


def top_items(transactions: list[Transaction], limit: int = 5) -> list[TopItemResponse]:
    sales: dict[str, TopItemResponse] = {}
    for transaction in transactions:
        for line in transaction.orders:
            key = str(line.item_id)
            current = sales.get(key)
            if current is None:
                current = TopItemResponse(itemId=key, name=line.name, quantity=0, revenue=0)
            sales[key] = current.model_copy(
                update={
                    "quantity": current.quantity + line.quantity,
                    "revenue": current.revenue + line.price * line.quantity,
                }
            )
    ranked = sorted(sales.values(), key=lambda item: (-item.quantity, item.name))
    return ranked[:limit]


class GetDailyReport:
    """Revenue summary for today's paid transactions."""

    def __init__(
        self,
        sync: SyncCoordinator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sync = sync
        self._clock = clock

    def execute(self) -> DailyReportResponse:
        state = self._sync.state
        now = self._clock()
        todays = [
            tx
            for tx in filter_transactions(state.transactions, TransactionPeriod.TODAY, None, now)
            if tx.status == TransactionStatus.PAID
        ]
        total_revenue = sum(tx.total for tx in todays)
        tables_played = len(todays)
        average = round(total_revenue / tables_played) if tables_played else 0

        return DailyReportResponse(
            date=now.date().isoformat(),
            totalRevenue=total_revenue,
            tableRevenue=sum(tx.table_fee for tx in todays),
            serviceRevenue=sum(tx.service_fee for tx in todays),
            tablesPlayed=tables_played,
            averagePerTable=average,
            currentlyPlaying=sum(
                1 for table in state.list_tables() if table.status == TableStatus.PLAYING
            ),
            topItems=top_items(todays),
            currency=self._sync.settings.currency,
        )
