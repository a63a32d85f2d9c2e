from __future__ import annotations

from prometheus_client import Counter, Histogram

from cuemaster.domain.transaction.entities import Transaction

TABLES_OPENED_TOTAL = Counter(
    "cuemaster_tables_opened_total",
    "Total number of table sessions started.",
    ["table_type", "mode"],
)

CHECKOUTS_TOTAL = Counter(
    "cuemaster_checkouts_total",
    "Total number of checkouts recorded.",
    ["table_type"],
)

REVENUE_TOTAL = Counter(
    "cuemaster_revenue_total",
    "Revenue recorded at checkout, in whole currency units.",
    ["component"],
)

SESSION_MINUTES = Histogram(
    "cuemaster_session_minutes",
    "Length of checked-out table sessions in minutes.",
    buckets=(15, 30, 60, 90, 120, 180, 240, 360, 480),
)

SYNC_FAILURES_TOTAL = Counter(
    "cuemaster_sync_failures_total",
    "Total number of failed durable writes or refreshes.",
    ["operation"],
)

LEDGER_EDITS_TOTAL = Counter(
    "cuemaster_ledger_edits_total",
    "Total number of order ledger edits.",
    ["action"],
)


def record_table_opened(table_type: str, mode: str) -> None:
    TABLES_OPENED_TOTAL.labels(table_type=table_type, mode=mode).inc()


def record_checkout(transaction: Transaction, table_type: str) -> None:
    CHECKOUTS_TOTAL.labels(table_type=table_type).inc()
    REVENUE_TOTAL.labels(component="table").inc(transaction.table_fee)
    REVENUE_TOTAL.labels(component="service").inc(transaction.service_fee)
    minutes = (transaction.end_time - transaction.start_time).total_seconds() / 60
    SESSION_MINUTES.observe(max(minutes, 0.0))


def record_sync_failure(operation: str) -> None:
    SYNC_FAILURES_TOTAL.labels(operation=operation).inc()


def record_ledger_edit(action: str) -> None:
    LEDGER_EDITS_TOTAL.labels(action=action).inc()
