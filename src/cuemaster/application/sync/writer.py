from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from cuemaster.application.metrics.session_metrics import record_sync_failure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WriteFailure:
    operation: str
    severity: str
    resources: tuple[str, ...]
    error: Exception


@dataclass(frozen=True)
class WriteOutcome:
    operation: str
    ok: bool
    error: Exception | None = None


FailureHandler = Callable[[WriteFailure], Awaitable[None]]


class OptimisticWriter:
    """Runs durable writes in the background after local state has changed.

    Writes to the same resource run one at a time in submission order. A
    failed write is logged and handed to ``on_failure``; the returned task
    resolves to a ``WriteOutcome`` instead of raising.
    """

    def __init__(
        self,
        on_failure: FailureHandler | None = None,
        tracer: trace.Tracer | None = None,
    ) -> None:
        self._tracer = tracer or trace.get_tracer(__name__)
        self._on_failure = on_failure
        self._locks: dict[str, asyncio.Lock] = {}
        self._tasks: set[asyncio.Task[WriteOutcome]] = set()
        self._in_flight: dict[str, int] = {}

    def submit(
        self,
        operation: str,
        resources: Sequence[str],
        write: Callable[[], None],
        severity: str = "error",
    ) -> asyncio.Task[WriteOutcome]:
        keys = tuple(sorted(set(resources)))
        for key in keys:
            self._in_flight[key] = self._in_flight.get(key, 0) + 1

        task = asyncio.get_running_loop().create_task(
            self._run(operation=operation, resources=keys, write=write, severity=severity)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def in_flight_resources(self) -> set[str]:
        return {key for key, count in self._in_flight.items() if count > 0}

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    async def drain(self) -> list[WriteOutcome]:
        if not self._tasks:
            return []
        return list(await asyncio.gather(*list(self._tasks)))

    async def _run(
        self,
        *,
        operation: str,
        resources: tuple[str, ...],
        write: Callable[[], None],
        severity: str,
    ) -> WriteOutcome:
        locks = [self._locks.setdefault(key, asyncio.Lock()) for key in resources]
        with self._tracer.start_as_current_span(
            "background_write",
            attributes={
                "cuemaster.operation": operation,
                "cuemaster.severity": severity,
                "cuemaster.resources": list(resources),
            },
        ) as span:
            try:
                async with AsyncExitStack() as stack:
                    for lock in locks:
                        await stack.enter_async_context(lock)
                    await asyncio.to_thread(write)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                span.record_exception(exc)
                span.set_status(Status(StatusCode.ERROR, str(exc)))
                logger.exception(
                    "background_write_failed",
                    extra={"operation": operation, "severity": severity},
                )
                record_sync_failure(operation)
                if self._on_failure is not None:
                    await self._on_failure(
                        WriteFailure(
                            operation=operation,
                            severity=severity,
                            resources=resources,
                            error=exc,
                        )
                    )
                return WriteOutcome(operation=operation, ok=False, error=exc)
            finally:
                for key in resources:
                    self._in_flight[key] -= 1
                    if self._in_flight[key] <= 0:
                        del self._in_flight[key]

        logger.debug("background_write_complete", extra={"operation": operation})
        return WriteOutcome(operation=operation, ok=True)
