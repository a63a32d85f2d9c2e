from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import uuid4

from cuemaster.domain.common.ids import MenuItemId, TableId, TransactionId
from cuemaster.domain.menu.entities import MenuItem
from cuemaster.domain.rates.entities import RateTable, default_rate_table
from cuemaster.domain.table.entities import Table
from cuemaster.domain.transaction.entities import Transaction

TABLES = "tables"
RATES = "rates"
MENU = "menu"
TRANSACTIONS = "transactions"


def table_key(table_id: TableId) -> str:
    return f"table:{table_id}"


class TableNotFoundError(Exception):
    pass


class MenuItemNotFoundError(Exception):
    pass


class TransactionNotFoundError(Exception):
    pass


class AlertNotFoundError(Exception):
    pass


@dataclass(frozen=True)
class RemoteSnapshot:
    tables: list[Table]
    rates: RateTable
    menu: list[MenuItem]
    transactions: list[Transaction]


@dataclass(frozen=True)
class SyncAlert:
    alert_id: str
    operation: str
    severity: str
    message: str
    created_at: datetime
    acknowledged: bool = False


@dataclass
class AppState:
    """In-memory copy of every resource the terminal displays.

    Local mutations bump a revision counter per resource key so a refresh
    that started before the mutation does not overwrite it with stale data.
    """

    tables: dict[TableId, Table] = field(default_factory=dict)
    rates: RateTable = field(default_factory=default_rate_table)
    menu: list[MenuItem] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    alerts: list[SyncAlert] = field(default_factory=list)
    last_synced_at: datetime | None = None
    revisions: Counter[str] = field(default_factory=Counter)

    def list_tables(self) -> list[Table]:
        return list(self.tables.values())

    def get_table(self, table_id: TableId) -> Table:
        table = self.tables.get(table_id)
        if table is None:
            raise TableNotFoundError(f"table not found for table_id={table_id}")
        return table

    def put_table(self, table: Table) -> None:
        if table.table_id not in self.tables:
            self.revisions[TABLES] += 1
        self.tables[table.table_id] = table
        self.revisions[table_key(table.table_id)] += 1

    def remove_table(self, table_id: TableId) -> Table:
        table = self.get_table(table_id)
        del self.tables[table_id]
        self.revisions[TABLES] += 1
        return table

    def set_rates(self, rates: RateTable) -> None:
        self.rates = rates
        self.revisions[RATES] += 1

    def find_menu_item(self, item_id: MenuItemId) -> MenuItem:
        for item in self.menu:
            if item.item_id == item_id:
                return item
        raise MenuItemNotFoundError(f"menu item {item_id} does not exist")

    def set_menu(self, menu: list[MenuItem]) -> None:
        self.menu = list(menu)
        self.revisions[MENU] += 1

    def record_transaction(self, transaction: Transaction) -> None:
        self.transactions.insert(0, transaction)
        self.revisions[TRANSACTIONS] += 1

    def remove_transaction(self, transaction_id: TransactionId) -> Transaction:
        for index, transaction in enumerate(self.transactions):
            if transaction.transaction_id == transaction_id:
                del self.transactions[index]
                self.revisions[TRANSACTIONS] += 1
                return transaction
        raise TransactionNotFoundError(f"transaction {transaction_id} not found")

    def add_alert(self, operation: str, severity: str, message: str, now: datetime) -> SyncAlert:
        alert = SyncAlert(
            alert_id=f"alr_{uuid4().hex[:12]}",
            operation=operation,
            severity=severity,
            message=message,
            created_at=now,
        )
        self.alerts.insert(0, alert)
        return alert

    def acknowledge_alert(self, alert_id: str) -> SyncAlert:
        for index, alert in enumerate(self.alerts):
            if alert.alert_id == alert_id:
                acknowledged = replace(alert, acknowledged=True)
                self.alerts[index] = acknowledged
                return acknowledged
        raise AlertNotFoundError(f"alert {alert_id} not found")

    def replace_from_remote(
        self,
        snapshot: RemoteSnapshot,
        keep_local: set[str],
        now: datetime,
    ) -> None:
        """Replace local resources with the remote snapshot.

        Keys in ``keep_local`` (resource names or ``table:<id>``) stay local.
        Tables are replaced as a set unless the local registry itself is kept.
        """
        if TABLES not in keep_local:
            merged: dict[TableId, Table] = {}
            for remote_table in snapshot.tables:
                local_table = self.tables.get(remote_table.table_id)
                if local_table is not None and table_key(remote_table.table_id) in keep_local:
                    merged[remote_table.table_id] = local_table
                else:
                    merged[remote_table.table_id] = remote_table
            self.tables = merged
        else:
            for remote_table in snapshot.tables:
                if (
                    remote_table.table_id in self.tables
                    and table_key(remote_table.table_id) not in keep_local
                ):
                    self.tables[remote_table.table_id] = remote_table

        if RATES not in keep_local:
            self.rates = snapshot.rates
        if MENU not in keep_local:
            self.menu = list(snapshot.menu)
        if TRANSACTIONS not in keep_local:
            self.transactions = list(snapshot.transactions)
        self.last_synced_at = now
