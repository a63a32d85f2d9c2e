from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from cuemaster.application.mappers.snapshot_mapper import (
    merge_table_dict,
    parse_datetime,
    rates_from_dict,
    rates_to_dict,
    table_from_dict,
    table_to_dict,
    table_update_fields,
)
from cuemaster.domain.common.ids import TableId
from cuemaster.domain.rates.entities import TableType, default_rate_table
from cuemaster.domain.table.entities import Table, TableStatus

NOW = datetime(2026, 10, 17, 18, 0, tzinfo=timezone.utc)


def test_parse_datetime_accepts_z_suffix_and_naive_values() -> None:
    assert parse_datetime("2026-10-17T18:00:00Z") == NOW
    assert parse_datetime("2026-10-17T18:00:00") == NOW
    assert parse_datetime("2026-10-18T01:00:00+07:00") == NOW


def test_table_dict_omits_unset_optionals() -> None:
    table = Table(table_id=TableId("01"), name="Table 01", table_type=TableType.POOL)

    assert table_to_dict(table) == {
        "id": "01",
        "name": "Table 01",
        "status": "EMPTY",
        "type": "Pool",
        "orders": [],
    }


def test_update_fields_clear_previous_session() -> None:
    playing = Table(
        table_id=TableId("02"), name="Table 02", table_type=TableType.VIP
    ).open_prepaid(200000, NOW - timedelta(minutes=30))
    stored = table_to_dict(playing)

    merged = merge_table_dict(stored, table_update_fields(playing.reset_after_checkout()))

    assert merged["status"] == "EMPTY"
    assert "startTime" not in merged
    assert "prepaidAmount" not in merged
    assert table_from_dict(merged).status == TableStatus.EMPTY


def test_playing_table_survives_blob_conversion() -> None:
    playing = Table(
        table_id=TableId("03"), name="Table 03", table_type=TableType.CAROM
    ).open(NOW)

    restored = table_from_dict(table_to_dict(playing))

    assert restored == playing


def test_rates_keep_zero_billing_block() -> None:
    rates = rates_from_dict({"Pool": 60000, "billingBlock": 0})

    assert rates.billing_block == 0
    assert rates.effective_block_minutes == 15
    assert rates.hourly_rate(TableType.VIP) == 0
    assert rates_from_dict({"Pool": 60000}).billing_block == 15
    assert rates_from_dict(rates_to_dict(default_rate_table())) == default_rate_table()
