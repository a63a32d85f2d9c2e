from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(frozen=True)
class TraceContext:
    trace_id: str | None
    request_id: str | None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
