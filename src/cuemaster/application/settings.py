from __future__ import annotations

import os
from dataclasses import dataclass


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class AppSettings:
    currency: str = "VND"
    refresh_interval_seconds: float = 30.0
    ledger_debounce_seconds: float = 3.0

    def __post_init__(self) -> None:
        if len(self.currency) != 3 or not self.currency.isalpha() or not self.currency.isupper():
            raise ValueError("currency must be a 3-letter uppercase code")
        if self.refresh_interval_seconds <= 0:
            raise ValueError("refresh_interval_seconds must be > 0")
        if self.ledger_debounce_seconds < 0:
            raise ValueError("ledger_debounce_seconds must be >= 0")

    @classmethod
    def from_env(cls) -> AppSettings:
        return cls(
            currency=os.getenv("CURRENCY", "VND").upper(),
            refresh_interval_seconds=_float_env("REFRESH_INTERVAL_SECONDS", 30.0),
            ledger_debounce_seconds=_float_env("LEDGER_DEBOUNCE_SECONDS", 3.0),
        )
