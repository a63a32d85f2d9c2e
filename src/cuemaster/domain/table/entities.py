from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from cuemaster.domain.common.ids import OrderLineId, TableId
from cuemaster.domain.menu.entities import MenuItem
from cuemaster.domain.order import ledger
from cuemaster.domain.order.entities import OrderLine
from cuemaster.domain.rates.entities import TableType


class TableStatus(str, Enum):
    EMPTY = "EMPTY"
    PLAYING = "PLAYING"
    BOOKED = "BOOKED"
    MAINTENANCE = "MAINTENANCE"


@dataclass(frozen=True)
class Table:
    """One physical table and its current session.

    Transitions return a new ``Table``. A PLAYING table carries ``start_time``
    and never booking fields; a BOOKED table carries all three booking fields
    and no ``start_time``; EMPTY and MAINTENANCE carry neither.
    """

    table_id: TableId
    name: str
    table_type: TableType
    status: TableStatus = TableStatus.EMPTY
    start_time: datetime | None = None
    prepaid_amount: int | None = None
    orders: list[OrderLine] = field(default_factory=list)
    customer_name: str | None = None
    phone: str | None = None
    booked_time: str | None = None

    def __post_init__(self) -> None:
        has_booking = any(
            value is not None for value in (self.customer_name, self.phone, self.booked_time)
        )
        if self.status == TableStatus.PLAYING:
            if self.start_time is None:
                raise ValueError("start_time must be set when table status is PLAYING")
            if has_booking:
                raise ValueError("booking fields must be empty when table status is PLAYING")
            return

        if self.start_time is not None:
            raise ValueError(f"start_time must be empty when table status is {self.status.value}")
        if self.prepaid_amount is not None:
            raise ValueError("prepaid_amount is only allowed while PLAYING")

        if self.status == TableStatus.BOOKED:
            if not (self.customer_name and self.phone and self.booked_time):
                raise ValueError("booking fields must be set when table status is BOOKED")
        elif has_booking:
            raise ValueError(f"booking fields must be empty when table status is {self.status.value}")

    def open(self, now: datetime, prepaid_amount: int | None = None) -> Table:
        self._require(TableStatus.EMPTY, "open")
        if prepaid_amount is not None:
            _validate_prepaid_amount(prepaid_amount)
        return self._playing(now, prepaid_amount)

    def open_prepaid(self, amount: int, now: datetime) -> Table:
        self._require(TableStatus.EMPTY, "open_prepaid")
        _validate_prepaid_amount(amount)
        return self._playing(now, amount)

    def book(self, customer_name: str, phone: str, booked_time: str) -> Table:
        self._require(TableStatus.EMPTY, "book")
        missing = [
            label
            for label, value in (
                ("customer_name", customer_name),
                ("phone", phone),
                ("booked_time", booked_time),
            )
            if not (value and value.strip())
        ]
        if missing:
            raise BookingValidationError(
                f"booking requires {', '.join(missing)}",
                missing_fields=missing,
            )
        return replace(
            self,
            status=TableStatus.BOOKED,
            customer_name=customer_name.strip(),
            phone=phone.strip(),
            booked_time=booked_time.strip(),
        )

    def start_from_booking(self, now: datetime) -> Table:
        self._require(TableStatus.BOOKED, "start_from_booking")
        return self._playing(now, None)

    def cancel_booking(self) -> Table:
        self._require(TableStatus.BOOKED, "cancel_booking")
        return self._empty()

    def set_maintenance(self) -> Table:
        self._require(TableStatus.EMPTY, "set_maintenance")
        return replace(self._empty(), status=TableStatus.MAINTENANCE)

    def clear_maintenance(self) -> Table:
        self._require(TableStatus.MAINTENANCE, "clear_maintenance")
        return self._empty()

    def reset_after_checkout(self) -> Table:
        self._require(TableStatus.PLAYING, "checkout")
        return self._empty()

    def add_item(self, menu_item: MenuItem, line_id: OrderLineId) -> Table:
        self.ensure_playing()
        return replace(self, orders=ledger.add_item(self.orders, menu_item, line_id))

    def adjust_quantity(self, line_id: OrderLineId, delta: int) -> Table:
        self.ensure_playing()
        return replace(self, orders=ledger.adjust_quantity(self.orders, line_id, delta))

    def remove_item(self, line_id: OrderLineId) -> Table:
        self.ensure_playing()
        return replace(self, orders=ledger.remove_item(self.orders, line_id))

    def service_fee_total(self) -> int:
        return ledger.service_fee_total(self.orders)

    def retype(self, table_type: TableType) -> Table:
        self.ensure_idle()
        return replace(self, table_type=table_type)

    def ensure_playing(self) -> None:
        if self.status != TableStatus.PLAYING:
            raise TableNotPlayingError(f"table {self.table_id} is not playing")

    def ensure_idle(self) -> None:
        if self.status != TableStatus.EMPTY:
            raise TableBusyError(f"table {self.table_id} is {self.status.value}")

    def _require(self, expected: TableStatus, action: str) -> None:
        if self.status != expected:
            raise InvalidTableTransitionError(
                f"cannot {action} table {self.table_id} from status={self.status.value}"
            )

    def _playing(self, now: datetime, prepaid_amount: int | None) -> Table:
        return replace(
            self,
            status=TableStatus.PLAYING,
            start_time=now,
            prepaid_amount=prepaid_amount,
            orders=[],
            customer_name=None,
            phone=None,
            booked_time=None,
        )

    def _empty(self) -> Table:
        return replace(
            self,
            status=TableStatus.EMPTY,
            start_time=None,
            prepaid_amount=None,
            orders=[],
            customer_name=None,
            phone=None,
            booked_time=None,
        )


def _validate_prepaid_amount(amount: object) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidPrepaidAmountError("prepaid amount must be a whole number")
    if amount <= 0:
        raise InvalidPrepaidAmountError("prepaid amount must be > 0")


def next_table_id(existing: list[TableId]) -> TableId:
    numeric = [int(table_id) for table_id in existing if str(table_id).isdigit()]
    next_number = max(numeric, default=0) + 1
    return TableId(str(next_number).zfill(2))


def default_tables() -> list[Table]:
    tables: list[Table] = []
    for index in range(12):
        table_id = TableId(str(index + 1).zfill(2))
        if index < 8:
            table_type = TableType.POOL
        elif index < 10:
            table_type = TableType.CAROM
        else:
            table_type = TableType.VIP
        tables.append(Table(table_id=table_id, name=f"Table {table_id}", table_type=table_type))
    return tables


class InvalidTableTransitionError(Exception):
    pass


class TableNotPlayingError(Exception):
    pass


class TableBusyError(Exception):
    pass


class InvalidPrepaidAmountError(Exception):
    pass


class BookingValidationError(Exception):
    def __init__(self, message: str, missing_fields: list[str]) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields
        self.details = {"missingFields": missing_fields}
