"""Block billing for table time.

Every function here is pure and takes the observation instant explicitly;
callers re-evaluate on each read because the result moves with the clock.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from cuemaster.domain.rates.entities import RateTable, TableType


@dataclass(frozen=True)
class ElapsedTime:
    total_seconds: float
    hours: int
    minutes: int

    @property
    def total_minutes(self) -> float:
        return self.total_seconds / 60

    def display(self) -> str:
        return f"{self.hours}h {self.minutes:02d}m"


@dataclass(frozen=True)
class FeeQuote:
    elapsed: ElapsedTime
    block_minutes: int
    blocks: int
    hourly_rate: int
    table_fee: int
    prepaid_remaining_seconds: float | None

    @property
    def prepaid_exhausted(self) -> bool:
        return self.prepaid_remaining_seconds is not None and self.prepaid_remaining_seconds <= 0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def elapsed_since(start_time: datetime | None, now: datetime) -> ElapsedTime:
    if start_time is None:
        return ElapsedTime(total_seconds=0.0, hours=0, minutes=0)
    seconds = max(0.0, (now - start_time).total_seconds())
    whole_minutes = int(seconds // 60)
    return ElapsedTime(total_seconds=seconds, hours=whole_minutes // 60, minutes=whole_minutes % 60)


def billed_blocks(elapsed_minutes: float, block_minutes: int) -> int:
    # Any elapsed time at all bills one full block; partial blocks round up.
    return max(1, math.ceil(max(0.0, elapsed_minutes) / block_minutes))


def table_fee(elapsed_minutes: float, hourly_rate: int, block_minutes: int) -> int:
    if hourly_rate <= 0:
        return 0
    blocks = billed_blocks(elapsed_minutes, block_minutes)
    fee_per_block = hourly_rate / (60 / block_minutes)
    return round_half_up(blocks * fee_per_block)


def prepaid_remaining_seconds(
    prepaid_amount: int,
    hourly_rate: int,
    elapsed_seconds: float,
) -> float | None:
    if hourly_rate <= 0:
        return None
    funded_seconds = prepaid_amount / hourly_rate * 3600
    return max(0.0, funded_seconds - elapsed_seconds)


def quote(
    *,
    start_time: datetime | None,
    table_type: TableType,
    rates: RateTable,
    now: datetime,
    prepaid_amount: int | None = None,
) -> FeeQuote:
    elapsed = elapsed_since(start_time, now)
    block_minutes = rates.effective_block_minutes
    hourly_rate = rates.hourly_rate(table_type)

    if start_time is None:
        return FeeQuote(
            elapsed=elapsed,
            block_minutes=block_minutes,
            blocks=0,
            hourly_rate=hourly_rate,
            table_fee=0,
            prepaid_remaining_seconds=None,
        )

    remaining: float | None = None
    if prepaid_amount is not None:
        remaining = prepaid_remaining_seconds(prepaid_amount, hourly_rate, elapsed.total_seconds)

    return FeeQuote(
        elapsed=elapsed,
        block_minutes=block_minutes,
        blocks=billed_blocks(elapsed.total_minutes, block_minutes),
        hourly_rate=hourly_rate,
        table_fee=table_fee(elapsed.total_minutes, hourly_rate, block_minutes),
        prepaid_remaining_seconds=remaining,
    )
