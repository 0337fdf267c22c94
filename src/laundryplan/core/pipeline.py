from __future__ import annotations

import logging
from typing import Iterable, Mapping

from laundryplan.core.aggregator import aggregate
from laundryplan.core.estimator import estimate_all
from laundryplan.core.models import DayPlan, ItemRecord, ProductionLine, WeightRecord
from laundryplan.core.scheduler import generate_balance_schedule
from laundryplan.settings import BalanceWeights

logger = logging.getLogger(__name__)


def analyze_day(
    weight_records: Iterable[WeightRecord],
    item_records: Iterable[ItemRecord],
    overrides: Mapping[str, ProductionLine] | None = None,
    *,
    weights: BalanceWeights | None = None,
) -> DayPlan:
    """Run aggregation, estimation and balancing for one day's records.

    The result is a pure function of the arguments. Callers must run it again
    after the override table changes; nothing is patched incrementally.
    """
    day = aggregate(weight_records, item_records, overrides)
    clients = estimate_all(day)
    schedule, metrics = generate_balance_schedule(clients, day.total_day_weight, weights=weights)
    logger.debug(
        "Day analysis: %d clients, %.1f weight, %.0f items, %d override(s)",
        len(clients),
        day.total_day_weight,
        day.total_day_items,
        len(overrides or {}),
    )
    return DayPlan(
        clients=clients,
        total_day_weight=day.total_day_weight,
        total_day_items=day.total_day_items,
        schedule=schedule,
        metrics=metrics,
    )
