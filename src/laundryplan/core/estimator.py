from __future__ import annotations

from dataclasses import replace

from laundryplan.core.models import ClientDayRecord, DayAggregate


def line_percentages(record: ClientDayRecord, day_mangle_ratio: float | None) -> tuple[float, float]:
    """Return (mangle %, doblado %) for a client.

    Uses the client's own item split when it has one, else the day-wide ratio,
    else 50/50 when nothing was classified that day.
    """
    if record.has_actual_split and record.total_items > 0:
        mangle_pct = record.actual_mangle_items / record.total_items * 100
    elif day_mangle_ratio is not None:
        mangle_pct = day_mangle_ratio * 100
    else:
        mangle_pct = 50.0
    return mangle_pct, 100.0 - mangle_pct


def estimate(record: ClientDayRecord, day_mangle_ratio: float | None) -> ClientDayRecord:
    mangle_pct, doblado_pct = line_percentages(record, day_mangle_ratio)
    est_mangle_weight = record.total_weight * mangle_pct / 100
    est_mangle_items = record.total_items * mangle_pct / 100
    return replace(
        record,
        mangle_percentage=mangle_pct,
        doblado_percentage=doblado_pct,
        estimated_mangle_weight=est_mangle_weight,
        # Complements keep mangle + doblado equal to the totals.
        estimated_doblado_weight=record.total_weight - est_mangle_weight,
        estimated_mangle_items=est_mangle_items,
        estimated_doblado_items=record.total_items - est_mangle_items,
    )


def estimate_all(day: DayAggregate) -> list[ClientDayRecord]:
    ratio = day.day_mangle_ratio
    return [estimate(c, ratio) for c in day.clients]
