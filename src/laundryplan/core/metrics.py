from __future__ import annotations

from typing import Sequence

from laundryplan.core.models import BalanceMetrics, ScheduleEntry


def compute_metrics(entries: Sequence[ScheduleEntry]) -> BalanceMetrics:
    """Score a finished schedule.

    efficiency = 100 * (1 - |mangle - doblado| / (mangle + doblado)), clamped to
    [0, 100] and defined as 100 when nothing was scheduled.
    """
    if entries:
        mangle = entries[-1].cumulative_mangle_load
        doblado = entries[-1].cumulative_doblado_load
    else:
        mangle = doblado = 0.0

    total_expected = sum(e.estimated_mangle_items + e.estimated_doblado_items for e in entries)
    difference = abs(mangle - doblado)
    total_load = mangle + doblado
    if total_load > 0:
        efficiency = max(0.0, min(100.0, 100.0 * (1.0 - difference / total_load)))
    else:
        efficiency = 100.0

    return BalanceMetrics(
        optimal_balance=total_expected / 2,
        current_mangle_load=mangle,
        current_doblado_load=doblado,
        balance_difference=difference,
        efficiency=efficiency,
    )
