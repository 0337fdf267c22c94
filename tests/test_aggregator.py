from datetime import datetime

import pytest

from laundryplan.core.aggregator import aggregate
from laundryplan.core.classifier import build_override_snapshot
from laundryplan.core.models import ItemRecord, WeightRecord
from laundryplan.data.records import item_record_from_row, weight_record_from_row

TS = datetime(2026, 10, 19, 8, 30)


def w(client_id, weight, name=None, timestamp=TS):
    return weight_record_from_row(
        {"client_id": client_id, "client_name": name or client_id.upper(), "weight": weight, "timestamp": timestamp}
    )


def item(client_id, product, qty):
    return item_record_from_row(
        {"client_id": client_id, "client_name": client_id.upper(), "product_name": product, "quantity": qty, "added_at": TS}
    )


def test_groups_weight_and_items_per_client():
    day = aggregate(
        [w("a", 100), w("a", 50), w("b", 50)],
        [item("a", "Flat Sheet", 30), item("a", "Scrub Shirt", 10), item("b", "Bata", 5)],
    )

    assert day.total_day_weight == 200
    assert day.total_day_items == 45
    assert day.day_mangle_items == 30
    assert day.day_doblado_items == 15

    a, b = day.clients
    assert a.client_id == "a"
    assert a.total_weight == 150
    assert a.total_items == 40
    assert a.actual_mangle_items == 30
    assert a.actual_doblado_items == 10
    assert a.percentage_of_day_weight == pytest.approx(75.0)
    assert a.percentage_of_day_items == pytest.approx(40 / 45 * 100)

    assert b.actual_mangle_items == 0
    assert b.actual_doblado_items == 5


def test_client_without_items_has_no_actual_split():
    day = aggregate([w("a", 100), w("b", 300)], [item("a", "Flat Sheet", 10)])
    by_id = {c.client_id: c for c in day.clients}

    assert by_id["b"].total_items == 0
    assert by_id["b"].actual_mangle_items is None
    assert by_id["b"].actual_doblado_items is None
    assert not by_id["b"].has_actual_split
    assert by_id["a"].has_actual_split


def test_client_with_items_but_no_weight_is_kept():
    day = aggregate([w("a", 100)], [item("a", "Flat Sheet", 10), item("z", "Bata", 4)])
    by_id = {c.client_id: c for c in day.clients}

    assert by_id["z"].total_weight == 0
    assert by_id["z"].total_items == 4
    assert sum(c.total_items for c in day.clients) == day.total_day_items


def test_clients_sorted_by_weight_share_with_stable_ties():
    day = aggregate([w("small", 10), w("tie1", 50), w("big", 90), w("tie2", 50)], [])
    assert [c.client_id for c in day.clients] == ["big", "tie1", "tie2", "small"]


def test_malformed_weight_records_count_as_zero():
    day = aggregate(
        [
            w("a", 100),
            w("a", "not a number"),
            w("b", None),
            w("c", 40, timestamp=None),
            w("d", -5),
            weight_record_from_row({"client_name": "No Id", "weight": 10, "timestamp": "2026-10-19T09:00:00"}),
        ],
        [],
    )
    by_id = {c.client_id: c for c in day.clients}

    assert day.total_day_weight == 110
    assert day.skipped_weight_records == 4
    assert by_id["a"].total_weight == 100
    # Clients with only malformed weighings are still listed, with zero weight
    assert by_id["b"].total_weight == 0
    assert by_id["c"].total_weight == 0
    assert by_id["unknown"].total_weight == 10
    assert by_id["unknown"].client_name == "No Id"


def test_malformed_item_records_are_skipped():
    day = aggregate(
        [w("a", 100)],
        [item("a", "Flat Sheet", 10), item("a", "Bata", None), item("a", "Bata", "x"), item("b", "Bata", -1)],
    )
    by_id = {c.client_id: c for c in day.clients}

    assert day.total_day_items == 10
    assert day.skipped_item_records == 3
    assert set(by_id) == {"a"}


def test_typed_records_mix_with_converted_rows():
    day = aggregate(
        [WeightRecord(client_id="a", client_name="A", weight=12.5, timestamp=TS), w("a", "7,5")],
        [ItemRecord(client_id="a", client_name="A", product_name="Towel", quantity=3)],
    )
    assert day.total_day_weight == 20
    assert day.clients[0].actual_mangle_items == 3


def test_uses_override_snapshot():
    overrides = build_override_snapshot({"Scrub Shirt": "Mangle"})
    day = aggregate([w("a", 10)], [item("a", "Scrub Shirt", 8)], overrides)
    assert day.day_mangle_items == 8
    assert day.clients[0].actual_mangle_items == 8


def test_empty_day():
    day = aggregate([], [])
    assert day.clients == []
    assert day.total_day_weight == 0
    assert day.total_day_items == 0
    assert day.day_mangle_ratio is None


def test_zero_weight_day_has_zero_shares():
    day = aggregate([w("a", 0), w("b", 0)], [])
    assert [c.percentage_of_day_weight for c in day.clients] == [0.0, 0.0]


def test_epoch_timestamps_are_counted():
    # 2026-10-19 00:00 UTC as epoch seconds and milliseconds
    day = aggregate(
        [w("a", 100, timestamp=1792368000), w("b", 50, timestamp=1792368000000), w("c", 25, timestamp="1792368000")],
        [],
    )

    assert day.total_day_weight == 175
    assert day.skipped_weight_records == 0


def test_thousands_separated_weights():
    day = aggregate([w("a", "1,234.5"), w("b", "1.234,5")], [])
    assert day.total_day_weight == pytest.approx(2469.0)
    assert day.skipped_weight_records == 0
