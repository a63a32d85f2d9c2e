from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from cuemaster.application.mappers.snapshot_mapper import (
    menu_item_from_dict,
    menu_item_to_dict,
    merge_table_dict,
    rates_from_dict,
    rates_to_dict,
    table_from_dict,
    table_to_dict,
    transaction_from_dict,
    transaction_to_dict,
)
from cuemaster.application.ports.gateway import KeyValueStore, PersistenceError, PersistenceGateway
from cuemaster.domain.common.ids import TableId, TransactionId
from cuemaster.domain.menu.entities import MenuItem, default_menu
from cuemaster.domain.rates.entities import RateTable, default_rate_table
from cuemaster.domain.table.entities import Table, default_tables
from cuemaster.domain.transaction.entities import Transaction

logger = logging.getLogger(__name__)

TABLES_KEY = "cuemaster_tables"
RATES_KEY = "cuemaster_rates"
MENU_KEY = "cuemaster_menu"
TRANSACTIONS_KEY = "cuemaster_transactions"

T = TypeVar("T")


def _decode(key: str, value: Any, decoder: Callable[[Any], T]) -> T:
    try:
        return decoder(value)
    except (KeyError, TypeError, ValueError) as exc:
        raise PersistenceError(f"malformed data stored under {key}: {exc}") from exc


def _as_list(key: str, value: Any) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise PersistenceError(f"expected a list under {key}")
    return value


class KeyValueGateway(PersistenceGateway):
    """Persistence over whole JSON blobs, one per resource.

    Every write replaces the full blob; there is no version check, so two
    terminals editing the same resource concurrently is last-writer-wins.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def init(self) -> None:
        existing = self._store.get(TABLES_KEY)
        if isinstance(existing, list) and existing:
            return
        self._seed()
        logger.info("store_seeded")

    def reset(self) -> None:
        self._seed()
        logger.warning("store_reset_to_defaults")

    def _seed(self) -> None:
        self.save_tables(default_tables())
        self.save_rates(default_rate_table())
        self.save_menu(default_menu())
        self._store.set(TRANSACTIONS_KEY, [])

    def get_tables(self) -> list[Table]:
        raw = _as_list(TABLES_KEY, self._store.get(TABLES_KEY))
        return [_decode(TABLES_KEY, item, table_from_dict) for item in raw]

    def save_tables(self, tables: list[Table]) -> None:
        self._store.set(TABLES_KEY, [table_to_dict(table) for table in tables])

    def update_table(
        self,
        table_id: TableId,
        updates: dict[str, Any],
        operation: str = "update_table",
    ) -> None:
        raw = _as_list(TABLES_KEY, self._store.get(TABLES_KEY))
        for index, item in enumerate(raw):
            if str(item.get("id")) == str(table_id):
                merged = merge_table_dict(item, updates)
                # validate before writing so a bad merge never reaches the store
                _decode(TABLES_KEY, merged, table_from_dict)
                raw[index] = merged
                self._store.set(TABLES_KEY, raw)
                return
        # the table was deleted elsewhere; after checkout this means the reset is lost
        logger.warning(
            "update_table_missing",
            extra={"table_id": str(table_id), "operation": operation},
        )

    def get_rates(self) -> RateTable:
        raw = self._store.get(RATES_KEY)
        if raw is None:
            return default_rate_table()
        return _decode(RATES_KEY, raw, rates_from_dict)

    def save_rates(self, rates: RateTable) -> None:
        self._store.set(RATES_KEY, rates_to_dict(rates))

    def get_menu(self) -> list[MenuItem]:
        raw = self._store.get(MENU_KEY)
        if raw is None:
            return default_menu()
        return [_decode(MENU_KEY, item, menu_item_from_dict) for item in _as_list(MENU_KEY, raw)]

    def save_menu(self, menu: list[MenuItem]) -> None:
        self._store.set(MENU_KEY, [menu_item_to_dict(item) for item in menu])

    def get_transactions(self) -> list[Transaction]:
        raw = _as_list(TRANSACTIONS_KEY, self._store.get(TRANSACTIONS_KEY))
        return [_decode(TRANSACTIONS_KEY, item, transaction_from_dict) for item in raw]

    def add_transaction(self, transaction: Transaction) -> None:
        raw = _as_list(TRANSACTIONS_KEY, self._store.get(TRANSACTIONS_KEY))
        self._store.set(TRANSACTIONS_KEY, [transaction_to_dict(transaction), *raw])

    def delete_transaction(self, transaction_id: TransactionId) -> None:
        raw = _as_list(TRANSACTIONS_KEY, self._store.get(TRANSACTIONS_KEY))
        remaining = [item for item in raw if str(item.get("id")) != str(transaction_id)]
        self._store.set(TRANSACTIONS_KEY, remaining)
