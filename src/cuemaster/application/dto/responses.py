from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class OrderLineResponse(BaseModel):
    lineId: str
    itemId: str
    name: str
    quantity: int
    price: int
    lineTotal: int


class FeeQuoteResponse(BaseModel):
    elapsedSeconds: int
    elapsedDisplay: str
    blockMinutes: int
    blocks: int
    hourlyRate: int
    tableFee: int
    serviceFee: int
    total: int
    prepaidRemainingSeconds: int | None = None
    prepaidExhausted: bool = False


class TableResponse(BaseModel):
    tableId: str
    name: str
    type: str
    status: str
    startTime: datetime | None = None
    prepaidAmount: int | None = None
    customerName: str | None = None
    phone: str | None = None
    bookedTime: str | None = None
    orders: list[OrderLineResponse] = Field(default_factory=list)
    currency: str
    fees: FeeQuoteResponse


class TableListResponse(BaseModel):
    tables: list[TableResponse] = Field(default_factory=list)
    playing: int
    empty: int


class TransactionResponse(BaseModel):
    transactionId: str
    tableId: str
    tableName: str
    startTime: datetime
    endTime: datetime
    duration: str
    tableFee: int
    serviceFee: int
    orders: list[OrderLineResponse] = Field(default_factory=list)
    total: int
    status: str
    currency: str


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse] = Field(default_factory=list)


class RatesResponse(BaseModel):
    Pool: int
    Carom: int
    Snooker: int
    VIP: int
    billingBlock: int
    effectiveBlockMinutes: int
    currency: str


class MenuItemResponse(BaseModel):
    itemId: str
    name: str
    price: int
    category: str
    status: str
    image: str | None = None
    orderable: bool


class MenuResponse(BaseModel):
    items: list[MenuItemResponse] = Field(default_factory=list)
    currency: str


class TopItemResponse(BaseModel):
    itemId: str
    name: str
    quantity: int
    revenue: int


class DailyReportResponse(BaseModel):
    date: str
    totalRevenue: int
    tableRevenue: int
    serviceRevenue: int
    tablesPlayed: int
    averagePerTable: int
    currentlyPlaying: int
    topItems: list[TopItemResponse] = Field(default_factory=list)
    currency: str


class SyncAlertResponse(BaseModel):
    alertId: str
    operation: str
    severity: str
    message: str
    createdAt: datetime
    acknowledged: bool


class SyncAlertListResponse(BaseModel):
    alerts: list[SyncAlertResponse] = Field(default_factory=list)


class SyncStatusResponse(BaseModel):
    lastSyncedAt: datetime | None = None
    tables: int
    transactions: int
    pendingWrites: int
