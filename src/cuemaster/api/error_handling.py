from __future__ import annotations

from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from cuemaster.api.middleware.request_id import get_request_id
from cuemaster.application.ports.gateway import PersistenceError
from cuemaster.application.sync.state import (
    AlertNotFoundError,
    MenuItemNotFoundError,
    TableNotFoundError,
    TransactionNotFoundError,
)
from cuemaster.application.use_cases.manage_menu import InvalidMenuItemError
from cuemaster.application.use_cases.table_orders import UnknownMenuItemError
from cuemaster.application.use_cases.transactions import InvalidTransactionPeriodError
from cuemaster.domain.order.ledger import MenuItemOutOfStockError, OrderLineNotFoundError
from cuemaster.domain.table.entities import (
    BookingValidationError,
    InvalidPrepaidAmountError,
    InvalidTableTransitionError,
    TableBusyError,
    TableNotPlayingError,
)


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
    )


def _exception_handler(status_code: int, code: str):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        details = getattr(exc, "details", None)
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    code = "HTTP_ERROR"
    if http_exc.status_code == 404:
        code = "NOT_FOUND"
    elif http_exc.status_code == 400:
        code = "BAD_REQUEST"
    elif http_exc.status_code == 405:
        code = "METHOD_NOT_ALLOWED"
    elif http_exc.status_code == 409:
        code = "CONFLICT"
    return _error_response(
        status_code=http_exc.status_code,
        code=code,
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": validation_exc.errors()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    mappings: list[tuple[type[Exception], int, str]] = [
        (TableNotFoundError, 404, "TABLE_NOT_FOUND"),
        (OrderLineNotFoundError, 404, "ORDER_LINE_NOT_FOUND"),
        (MenuItemNotFoundError, 404, "MENU_ITEM_NOT_FOUND"),
        (TransactionNotFoundError, 404, "TRANSACTION_NOT_FOUND"),
        (AlertNotFoundError, 404, "ALERT_NOT_FOUND"),
        (BookingValidationError, 400, "BOOKING_INVALID"),
        (InvalidPrepaidAmountError, 400, "PREPAID_AMOUNT_INVALID"),
        (MenuItemOutOfStockError, 400, "MENU_ITEM_OUT_OF_STOCK"),
        (UnknownMenuItemError, 400, "MENU_ITEM_UNKNOWN"),
        (InvalidMenuItemError, 400, "MENU_ITEM_INVALID"),
        (InvalidTransactionPeriodError, 400, "INVALID_TRANSACTION_PERIOD"),
        (InvalidTableTransitionError, 409, "INVALID_TABLE_TRANSITION"),
        (TableNotPlayingError, 409, "TABLE_NOT_PLAYING"),
        (TableBusyError, 409, "TABLE_BUSY"),
        (PersistenceError, 503, "PERSISTENCE_UNAVAILABLE"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
