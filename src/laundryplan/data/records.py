from __future__ import annotations

from typing import Any, Iterable, Mapping

from laundryplan.core.models import (
    UNKNOWN_CLIENT_ID,
    UNKNOWN_CLIENT_NAME,
    UNKNOWN_PRODUCT,
    ItemRecord,
    WeightRecord,
)
from laundryplan.data.excel_io import coerce_datetime, coerce_float, coerce_text


def weight_record_from_row(row: Mapping[str, Any]) -> WeightRecord:
    """Build from a raw store row; bad weight/timestamp values become None."""
    return WeightRecord(
        client_id=coerce_text(row.get("client_id")) or UNKNOWN_CLIENT_ID,
        client_name=coerce_text(row.get("client_name")) or UNKNOWN_CLIENT_NAME,
        weight=coerce_float(row.get("weight")),
        timestamp=coerce_datetime(row.get("timestamp")),
    )


def item_record_from_row(row: Mapping[str, Any]) -> ItemRecord:
    return ItemRecord(
        client_id=coerce_text(row.get("client_id")) or UNKNOWN_CLIENT_ID,
        client_name=coerce_text(row.get("client_name")) or UNKNOWN_CLIENT_NAME,
        product_name=coerce_text(row.get("product_name")) or UNKNOWN_PRODUCT,
        quantity=coerce_float(row.get("quantity")),
        added_at=coerce_datetime(row.get("added_at")),
    )


def weight_records_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[WeightRecord]:
    return [weight_record_from_row(r) for r in rows]


def item_records_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[ItemRecord]:
    return [item_record_from_row(r) for r in rows]
