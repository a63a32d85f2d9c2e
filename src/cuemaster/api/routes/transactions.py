from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from cuemaster.api.dependencies import get_sync
from cuemaster.application.dto.responses import (
    DailyReportResponse,
    TransactionListResponse,
    TransactionResponse,
)
from cuemaster.application.sync.coordinator import SyncCoordinator
from cuemaster.application.use_cases.reports import GetDailyReport
from cuemaster.application.use_cases.transactions import DeleteTransaction, ListTransactions
from cuemaster.domain.common.ids import TransactionId

router = APIRouter()


@router.get("/v1/transactions", response_model=TransactionListResponse)
async def list_transactions(
    period: str = Query(default="all"),
    search: str | None = Query(default=None),
    sync: SyncCoordinator = Depends(get_sync),
) -> TransactionListResponse:
    return ListTransactions(sync).execute(period=period, search=search)


@router.delete("/v1/transactions/{transaction_id}", response_model=TransactionResponse)
async def delete_transaction(
    transaction_id: str, sync: SyncCoordinator = Depends(get_sync)
) -> TransactionResponse:
    return DeleteTransaction(sync).execute(TransactionId(transaction_id))


@router.get("/v1/reports/daily", response_model=DailyReportResponse)
async def daily_report(sync: SyncCoordinator = Depends(get_sync)) -> DailyReportResponse:
    return GetDailyReport(sync).execute()
