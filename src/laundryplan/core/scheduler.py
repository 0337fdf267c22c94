from __future__ import annotations

import logging
from typing import Sequence

from laundryplan.core.metrics import compute_metrics
from laundryplan.core.models import (
    BalanceMetrics,
    ClientDayRecord,
    ProductionLine,
    ScheduleEntry,
    ScheduleReason,
)
from laundryplan.settings import BalanceWeights

logger = logging.getLogger(__name__)


def lagging_line(cumulative_mangle: float, cumulative_doblado: float) -> ProductionLine | None:
    """Line with the strictly lower cumulative load; None when both are equal."""
    if cumulative_mangle < cumulative_doblado:
        return ProductionLine.MANGLE
    if cumulative_doblado < cumulative_mangle:
        return ProductionLine.DOBLADO
    return None


def score_client(
    client: ClientDayRecord,
    *,
    cumulative_mangle: float,
    cumulative_doblado: float,
    total_day_weight: float,
    weights: BalanceWeights,
) -> tuple[float, float]:
    """Return (priority_score, balance_improvement) of scheduling `client` next."""
    current_diff = abs(cumulative_mangle - cumulative_doblado)
    after_diff = abs(
        (cumulative_mangle + client.estimated_mangle_items)
        - (cumulative_doblado + client.estimated_doblado_items)
    )
    improvement = max(0.0, current_diff - after_diff)

    weight_factor = 0.0
    if total_day_weight > 0:
        weight_factor = client.total_weight / total_day_weight * weights.weight_factor_scale

    behind = lagging_line(cumulative_mangle, cumulative_doblado)
    area_preference = 0.0
    if behind is not None and client.dominant_line is behind:
        area_preference = weights.area_preference_bonus

    score = improvement * weights.balance_improvement + weight_factor + area_preference
    return score, improvement


def _reason(
    client: ClientDayRecord,
    *,
    improvement: float,
    sequence: int,
    cumulative_mangle: float,
    cumulative_doblado: float,
    total_day_weight: float,
    weights: BalanceWeights,
) -> ScheduleReason:
    if improvement > 0:
        return ScheduleReason.IMPROVES_BALANCE
    if client.total_weight > total_day_weight * weights.high_volume_share:
        return ScheduleReason.HIGH_VOLUME
    if sequence == 1:
        return ScheduleReason.SEED
    # Loads here are already updated with the selected client.
    behind = lagging_line(cumulative_mangle, cumulative_doblado)
    if behind is not None and client.dominant_line is behind:
        return ScheduleReason.BALANCES_DEFICIT
    return ScheduleReason.SEQUENTIAL


def generate_balance_schedule(
    clients: Sequence[ClientDayRecord],
    total_day_weight: float,
    *,
    weights: BalanceWeights | None = None,
) -> tuple[list[ScheduleEntry], BalanceMetrics]:
    """Order the day's clients so Mangle and Doblado loads stay balanced.

    Greedy: each step re-scores every remaining client against the current
    cumulative loads and takes the best one.

    Args:
        clients: Estimated client records (see ``estimator.estimate_all``).
        total_day_weight: Day intake weight; 0 disables the weight factor.
        weights: Scoring tunables; defaults to ``BalanceWeights()``.

    Returns:
        (entries, metrics):
            entries: one ScheduleEntry per input client, sequence 1..N
            metrics: BalanceMetrics of the final loads

    Ties on priority score go to the client that comes first in `clients`.
    """
    weights = weights or BalanceWeights()
    remaining = list(clients)
    entries: list[ScheduleEntry] = []
    cumulative_mangle = 0.0
    cumulative_doblado = 0.0
    sequence = 1

    while remaining:
        best_idx = 0
        best_score = best_improvement = None
        for idx, client in enumerate(remaining):
            score, improvement = score_client(
                client,
                cumulative_mangle=cumulative_mangle,
                cumulative_doblado=cumulative_doblado,
                total_day_weight=total_day_weight,
                weights=weights,
            )
            # strict '>' keeps the earliest client on ties
            if best_score is None or score > best_score:
                best_idx, best_score, best_improvement = idx, score, improvement

        selected = remaining.pop(best_idx)
        cumulative_mangle += selected.estimated_mangle_items
        cumulative_doblado += selected.estimated_doblado_items

        reason = _reason(
            selected,
            improvement=best_improvement,
            sequence=sequence,
            cumulative_mangle=cumulative_mangle,
            cumulative_doblado=cumulative_doblado,
            total_day_weight=total_day_weight,
            weights=weights,
        )
        entries.append(
            ScheduleEntry(
                sequence=sequence,
                client_id=selected.client_id,
                client_name=selected.client_name,
                total_weight=selected.total_weight,
                estimated_mangle_items=selected.estimated_mangle_items,
                estimated_doblado_items=selected.estimated_doblado_items,
                mangle_percentage=selected.mangle_percentage,
                doblado_percentage=selected.doblado_percentage,
                cumulative_mangle_load=cumulative_mangle,
                cumulative_doblado_load=cumulative_doblado,
                load_balance=abs(cumulative_mangle - cumulative_doblado),
                priority_score=best_score,
                reason=reason,
            )
        )
        logger.debug(
            "#%d %s score=%.1f (%s) loads M=%.1f D=%.1f",
            sequence,
            selected.client_id,
            best_score,
            reason.value,
            cumulative_mangle,
            cumulative_doblado,
        )
        sequence += 1

    metrics = compute_metrics(entries)
    logger.info(
        "Balance schedule for %d clients: Mangle %.0f vs Doblado %.0f, efficiency %.1f%%",
        len(entries),
        metrics.current_mangle_load,
        metrics.current_doblado_load,
        metrics.efficiency,
    )
    return entries, metrics
