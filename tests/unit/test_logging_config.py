from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from cuemaster.api.middleware.request_id import request_id_context
from cuemaster.infrastructure.observability.logging_config import JsonFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="cuemaster.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="checkout_recorded",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_domain_fields() -> None:
    token = request_id_context.set("req-log-1")
    try:
        line = JsonFormatter().format(
            _record(table_id="01", transaction_id="TX-1", total=55000, unrelated="skip")
        )
    finally:
        request_id_context.reset(token)

    payload = json.loads(line)
    assert payload["message"] == "checkout_recorded"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-log-1"
    assert payload["table_id"] == "01"
    assert payload["transaction_id"] == "TX-1"
    assert payload["total"] == 55000
    assert "unrelated" not in payload


def test_formatter_includes_exception_text() -> None:
    try:
        raise RuntimeError("store offline")
    except RuntimeError:
        record = _record(operation="checkout", severity="critical")
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["operation"] == "checkout"
    assert payload["severity"] == "critical"
    assert "store offline" in payload["exception"]
