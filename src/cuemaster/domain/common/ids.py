from __future__ import annotations

from typing import NewType

TableId = NewType("TableId", str)
MenuItemId = NewType("MenuItemId", str)
OrderLineId = NewType("OrderLineId", str)
TransactionId = NewType("TransactionId", str)
