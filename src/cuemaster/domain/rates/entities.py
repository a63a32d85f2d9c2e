from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum

DEFAULT_BILLING_BLOCK_MINUTES = 15


class TableType(str, Enum):
    POOL = "Pool"
    CAROM = "Carom"
    SNOOKER = "Snooker"
    VIP = "VIP"


@dataclass(frozen=True)
class RateTable:
    """Hourly rate per table type plus the billing block in minutes.

    ``billing_block`` is stored as entered; ``effective_block_minutes`` is what
    fee computations use (0 or unset falls back to 15, floor 1).
    """

    hourly_rates: dict[TableType, int] = field(default_factory=dict)
    billing_block: int = DEFAULT_BILLING_BLOCK_MINUTES

    def __post_init__(self) -> None:
        for table_type, rate in self.hourly_rates.items():
            if rate < 0:
                raise ValueError(f"hourly rate for {table_type.value} must be >= 0")
        if self.billing_block < 0:
            raise ValueError("billing_block must be >= 0")

    def hourly_rate(self, table_type: TableType) -> int:
        return self.hourly_rates.get(table_type, 0)

    @property
    def effective_block_minutes(self) -> int:
        if not self.billing_block:
            return DEFAULT_BILLING_BLOCK_MINUTES
        return max(1, self.billing_block)

    def with_rate(self, table_type: TableType, rate: int) -> RateTable:
        rates = dict(self.hourly_rates)
        rates[table_type] = rate
        return replace(self, hourly_rates=rates)


def default_rate_table() -> RateTable:
    return RateTable(
        hourly_rates={
            TableType.POOL: 60000,
            TableType.CAROM: 50000,
            TableType.SNOOKER: 80000,
            TableType.VIP: 120000,
        },
        billing_block=DEFAULT_BILLING_BLOCK_MINUTES,
    )
