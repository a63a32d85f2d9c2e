from __future__ import annotations

import asyncio
import logging
from typing import Callable

from cuemaster.application.sync.writer import OptimisticWriter, WriteOutcome
from cuemaster.domain.common.ids import TableId

logger = logging.getLogger(__name__)

WriteFactory = Callable[[TableId], tuple[list[str], Callable[[], None]] | None]


class DebouncedTableSaver:
    """Coalesces rapid ledger edits into one durable write per table.

    Each ``touch`` cancels the table's pending timer and starts a new one.
    The write is built when the timer fires, so it carries the latest local
    state. ``flush`` writes everything pending right away.
    """

    def __init__(
        self,
        writer: OptimisticWriter,
        build_write: WriteFactory,
        delay_seconds: float = 3.0,
    ) -> None:
        self._writer = writer
        self._build_write = build_write
        self._delay_seconds = delay_seconds
        self._timers: dict[TableId, asyncio.Task[None]] = {}

    def touch(self, table_id: TableId) -> None:
        self.cancel(table_id)
        self._timers[table_id] = asyncio.get_running_loop().create_task(
            self._fire_after_delay(table_id)
        )

    def cancel(self, table_id: TableId) -> bool:
        timer = self._timers.pop(table_id, None)
        if timer is None:
            return False
        timer.cancel()
        return True

    def pending_tables(self) -> set[TableId]:
        return set(self._timers)

    async def flush(self) -> list[WriteOutcome]:
        table_ids = list(self._timers)
        tasks = []
        for table_id in table_ids:
            self.cancel(table_id)
            task = self._submit(table_id)
            if task is not None:
                tasks.append(task)
        if not tasks:
            return []
        logger.info("ledger_flush", extra={"tables": len(tasks)})
        return list(await asyncio.gather(*tasks))

    async def _fire_after_delay(self, table_id: TableId) -> None:
        await asyncio.sleep(self._delay_seconds)
        self._timers.pop(table_id, None)
        self._submit(table_id)

    def _submit(self, table_id: TableId) -> asyncio.Task[WriteOutcome] | None:
        built = self._build_write(table_id)
        if built is None:
            return None
        resources, write = built
        return self._writer.submit(operation="save_orders", resources=resources, write=write)
