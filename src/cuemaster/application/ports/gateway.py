from __future__ import annotations

from typing import Any, Protocol

from cuemaster.domain.common.ids import TableId, TransactionId
from cuemaster.domain.menu.entities import MenuItem
from cuemaster.domain.rates.entities import RateTable
from cuemaster.domain.table.entities import Table
from cuemaster.domain.transaction.entities import Transaction


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


class PersistenceGateway(Protocol):
    def init(self) -> None: ...

    def reset(self) -> None: ...

    def get_tables(self) -> list[Table]: ...

    def save_tables(self, tables: list[Table]) -> None: ...

    def update_table(
        self,
        table_id: TableId,
        updates: dict[str, Any],
        operation: str = "update_table",
    ) -> None: ...

    def get_rates(self) -> RateTable: ...

    def save_rates(self, rates: RateTable) -> None: ...

    def get_menu(self) -> list[MenuItem]: ...

    def save_menu(self, menu: list[MenuItem]) -> None: ...

    def get_transactions(self) -> list[Transaction]: ...

    def add_transaction(self, transaction: Transaction) -> None: ...

    def delete_transaction(self, transaction_id: TransactionId) -> None: ...


class PersistenceError(Exception):
    pass
