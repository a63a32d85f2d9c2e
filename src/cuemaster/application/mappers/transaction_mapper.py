from __future__ import annotations

from cuemaster.application.dto.responses import TransactionResponse
from cuemaster.application.mappers.table_mapper import to_order_line_response
from cuemaster.domain.transaction.entities import Transaction


def to_transaction_response(transaction: Transaction, currency: str) -> TransactionResponse:
    return TransactionResponse(
        transactionId=str(transaction.transaction_id),
        tableId=str(transaction.table_id),
        tableName=transaction.table_name,
        startTime=transaction.start_time,
        endTime=transaction.end_time,
        duration=transaction.duration,
        tableFee=transaction.table_fee,
        serviceFee=transaction.service_fee,
        orders=[to_order_line_response(line) for line in transaction.orders],
        total=transaction.total,
        status=transaction.status.value,
        currency=currency,
    )
