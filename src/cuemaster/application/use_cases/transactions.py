from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable

from cuemaster.application.dto.responses import TransactionListResponse, TransactionResponse
from cuemaster.application.mappers.transaction_mapper import to_transaction_response
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.sync.state import TRANSACTIONS
from cuemaster.application.use_cases.context import utc_now
from cuemaster.domain.common.ids import TransactionId
from cuemaster.domain.transaction.entities import Transaction

logger = logging.getLogger(__name__)


class TransactionPeriod(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"


class InvalidTransactionPeriodError(Exception):
    pass


def filter_transactions(
    transactions: list[Transaction],
    period: TransactionPeriod,
    search: str | None,
    now: datetime,
) -> list[Transaction]:
    filtered = transactions
    if period == TransactionPeriod.TODAY:
        today = now.date()
        filtered = [tx for tx in filtered if tx.end_time.astimezone(now.tzinfo).date() == today]
    elif period == TransactionPeriod.WEEK:
        since = now - timedelta(days=7)
        filtered = [tx for tx in filtered if tx.end_time >= since]
    elif period == TransactionPeriod.MONTH:
        since = now - timedelta(days=30)
        filtered = [tx for tx in filtered if tx.end_time >= since]

    if search:
        needle = search.lower()
        filtered = [
            tx
            for tx in filtered
            if needle in tx.table_name.lower()
            or needle in str(tx.transaction_id).lower()
            or needle in str(tx.table_id).lower()
        ]
    return filtered


class ListTransactions:
    def __init__(
        self,
        sync: SyncCoordinator,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sync = sync
        self._clock = clock

    def execute(self, period: str = "all", search: str | None = None) -> TransactionListResponse:
        try:
            parsed_period = TransactionPeriod(period)
        except ValueError as exc:
            raise InvalidTransactionPeriodError(
                "period must be one of all, today, week, month"
            ) from exc

        selected = filter_transactions(
            self._sync.state.transactions,
            parsed_period,
            search,
            self._clock(),
        )
        currency = self._sync.settings.currency
        return TransactionListResponse(
            transactions=[to_transaction_response(tx, currency) for tx in selected]
        )


class DeleteTransaction:
    def __init__(self, sync: SyncCoordinator) -> None:
        self._sync = sync

    def execute(self, transaction_id: TransactionId) -> TransactionResponse:
        removed = self._sync.state.remove_transaction(transaction_id)
        gateway = self._sync.gateway
        self._sync.writer.submit(
            operation="delete_transaction",
            resources=[TRANSACTIONS],
            write=lambda: gateway.delete_transaction(transaction_id),
        )
        logger.info("transaction_deleted", extra={"transaction_id": str(transaction_id)})
        return to_transaction_response(removed, self._sync.settings.currency)
