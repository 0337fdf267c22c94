import pytest

from laundryplan.core.models import ClientDayRecord, ScheduleReason
from laundryplan.core.scheduler import generate_balance_schedule, lagging_line, score_client
from laundryplan.core.models import ProductionLine
from laundryplan.settings import BalanceWeights


def client(cid, weight, mangle_items, doblado_items):
    total = mangle_items + doblado_items
    mangle_pct = mangle_items / total * 100 if total else 50.0
    return ClientDayRecord(
        client_id=cid,
        client_name=cid.upper(),
        total_weight=weight,
        total_items=total,
        mangle_percentage=mangle_pct,
        doblado_percentage=100 - mangle_pct,
        estimated_mangle_items=mangle_items,
        estimated_doblado_items=doblado_items,
    )


def test_two_clients_perfect_balance():
    x = client("x", 600, 100, 0)
    y = client("y", 400, 0, 100)

    entries, metrics = generate_balance_schedule([y, x], 1000)

    # Heavier client wins the first step (nothing to improve yet)
    first, second = entries
    assert first.client_id == "x"
    assert first.sequence == 1
    assert first.reason is ScheduleReason.HIGH_VOLUME
    assert first.priority_score == pytest.approx(600.0)
    assert (first.cumulative_mangle_load, first.cumulative_doblado_load) == (100, 0)
    assert first.load_balance == 100

    # y closes the gap: 100 improvement * 10 + 400 weight + 200 (Doblado behind, y Doblado-heavy)
    assert second.client_id == "y"
    assert second.sequence == 2
    assert second.reason is ScheduleReason.IMPROVES_BALANCE
    assert second.priority_score == pytest.approx(1600.0)
    assert (second.cumulative_mangle_load, second.cumulative_doblado_load) == (100, 100)
    assert second.load_balance == 0

    assert metrics.balance_difference == 0
    assert metrics.efficiency == 100
    assert metrics.optimal_balance == 100


def test_no_area_preference_when_loads_are_equal():
    c = client("a", 0, 10, 0)
    score, improvement = score_client(
        c, cumulative_mangle=5, cumulative_doblado=5, total_day_weight=0, weights=BalanceWeights()
    )
    # diff grows from 0 to 10: no improvement, no weight, no preference
    assert score == 0
    assert improvement == 0


def test_area_preference_for_lagging_dominant_line():
    c = client("a", 0, 1, 9)
    score, improvement = score_client(
        c, cumulative_mangle=50, cumulative_doblado=0, total_day_weight=0, weights=BalanceWeights()
    )
    # improvement = 50 - |51 - 9| = 8
    assert improvement == pytest.approx(8)
    assert score == pytest.approx(8 * 10 + 200)


def test_lagging_line():
    assert lagging_line(1, 2) is ProductionLine.MANGLE
    assert lagging_line(2, 1) is ProductionLine.DOBLADO
    assert lagging_line(3, 3) is None


def test_ties_keep_input_order():
    clients = [client(cid, 0, 0, 0) for cid in ("c", "a", "b")]
    entries, metrics = generate_balance_schedule(clients, 0)

    assert [e.client_id for e in entries] == ["c", "a", "b"]
    assert [e.priority_score for e in entries] == [0, 0, 0]
    assert entries[0].reason is ScheduleReason.SEED
    assert entries[1].reason is ScheduleReason.SEQUENTIAL
    assert metrics.efficiency == 100


def test_zero_day_weight_does_not_divide_by_zero():
    entries, metrics = generate_balance_schedule([client("a", 0, 3, 1), client("b", 0, 0, 2)], 0)
    assert len(entries) == 2
    assert metrics.current_mangle_load == 3
    assert metrics.current_doblado_load == 3
    assert metrics.efficiency == 100


def test_empty_input():
    entries, metrics = generate_balance_schedule([], 0)
    assert entries == []
    assert metrics.efficiency == 100
    assert metrics.optimal_balance == 0


def test_balances_deficit_reason():
    # After a (Mangle 10) and b (Mangle 10 more), Doblado is behind; c is Doblado-heavy
    # but too small to improve anything on its own turn.
    a = client("a", 100, 10, 0)
    b = client("b", 100, 10, 0)
    c = ClientDayRecord(
        client_id="c", client_name="C", total_weight=1, total_items=0,
        mangle_percentage=20, doblado_percentage=80,
    )
    entries, _ = generate_balance_schedule([a, b, c], 201)

    by_id = {e.client_id: e for e in entries}
    assert by_id["c"].reason is ScheduleReason.BALANCES_DEFICIT


def test_custom_weights_change_selection():
    heavy = client("heavy", 900, 50, 0)
    balancer = client("balancer", 100, 0, 10)

    # With default weights the heavy client goes first
    entries, _ = generate_balance_schedule([balancer, heavy], 1000)
    assert entries[0].client_id == "heavy"

    # Make weight irrelevant: zero scores everywhere at step 1, input order wins
    weights = BalanceWeights(weight_factor_scale=0)
    entries, _ = generate_balance_schedule([balancer, heavy], 1000, weights=weights)
    assert entries[0].client_id == "balancer"


def test_schedule_properties_on_larger_day():
    clients = [
        client("a", 320, 40, 10),
        client("b", 210, 5, 60),
        client("c", 150, 30, 30),
        client("d", 90, 0, 25),
        client("e", 60, 18, 2),
        client("f", 0, 0, 0),
        client("g", 45, 7, 9),
    ]
    total_weight = sum(c.total_weight for c in clients)
    entries, metrics = generate_balance_schedule(clients, total_weight)

    # permutation
    assert sorted(e.client_id for e in entries) == sorted(c.client_id for c in clients)
    assert [e.sequence for e in entries] == list(range(1, len(clients) + 1))

    # monotone cumulative loads
    for prev, cur in zip(entries, entries[1:]):
        assert cur.cumulative_mangle_load >= prev.cumulative_mangle_load
        assert cur.cumulative_doblado_load >= prev.cumulative_doblado_load

    # final loads equal straight sums
    sum_m = sum(c.estimated_mangle_items for c in clients)
    sum_d = sum(c.estimated_doblado_items for c in clients)
    assert entries[-1].cumulative_mangle_load == pytest.approx(sum_m)
    assert entries[-1].cumulative_doblado_load == pytest.approx(sum_d)
    assert metrics.balance_difference == pytest.approx(abs(sum_m - sum_d))
    assert 0 <= metrics.efficiency <= 100
