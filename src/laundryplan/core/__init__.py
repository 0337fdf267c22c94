"""Estimation and balancing engine.

Pure functions over one day's records: classify products, aggregate per client,
estimate the Mangle/Doblado split and order clients to balance both lines.
"""

from laundryplan.core.aggregator import aggregate
from laundryplan.core.classifier import build_override_snapshot, classify, classify_entry, normalize_product_key
from laundryplan.core.estimator import estimate, estimate_all
from laundryplan.core.metrics import compute_metrics
from laundryplan.core.models import (
    BalanceMetrics,
    ClientDayRecord,
    DayPlan,
    ProductionLine,
    ScheduleEntry,
    ScheduleReason,
)
from laundryplan.core.pipeline import analyze_day
from laundryplan.core.scheduler import generate_balance_schedule

__all__ = [
    "BalanceMetrics",
    "ClientDayRecord",
    "DayPlan",
    "ProductionLine",
    "ScheduleEntry",
    "ScheduleReason",
    "aggregate",
    "analyze_day",
    "build_override_snapshot",
    "classify",
    "classify_entry",
    "compute_metrics",
    "estimate",
    "estimate_all",
    "generate_balance_schedule",
    "normalize_product_key",
]
