from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from laundryplan.core.classifier import classify
from laundryplan.core.models import (
    ClientDayRecord,
    DayAggregate,
    ItemRecord,
    ProductionLine,
    WeightRecord,
)

logger = logging.getLogger(__name__)


def _share(part: float, total: float) -> float:
    return (part / total) * 100 if total > 0 else 0.0


def aggregate(
    weight_records: Iterable[WeightRecord],
    item_records: Iterable[ItemRecord],
    overrides: Mapping[str, ProductionLine] | None = None,
) -> DayAggregate:
    """Build one ClientDayRecord per client for a single day.

    Args:
        weight_records: Intake weighings (``client_id``, ``client_name``, ``weight``,
            ``timestamp``).
        item_records: Produced items (``client_id``, ``client_name``, ``product_name``,
            ``quantity``, ``added_at``).
        overrides: Classification override snapshot passed to the classifier.

    Returns:
        DayAggregate with un-estimated client records sorted by share of day weight
        (heaviest first, ties in order of first appearance) and the day totals.

    Malformed weighings count as zero weight; malformed items are skipped. Neither
    aborts the run.
    """
    weights: dict[str, dict[str, Any]] = {}
    skipped_weight = 0
    for rec in weight_records:
        slot = weights.setdefault(rec.client_id, {"client_name": rec.client_name, "weight": 0.0})
        if not rec.is_valid:
            skipped_weight += 1
            logger.debug("Weight record for %s treated as zero (weight=%r, timestamp=%r)", rec.client_id, rec.weight, rec.timestamp)
            continue
        slot["weight"] += float(rec.weight)

    items: dict[str, dict[str, Any]] = {}
    skipped_items = 0
    day_mangle = 0.0
    day_doblado = 0.0
    for rec in item_records:
        if not rec.is_valid:
            skipped_items += 1
            logger.debug("Item record %r for %s skipped (quantity=%r)", rec.product_name, rec.client_id, rec.quantity)
            continue
        qty = float(rec.quantity)
        slot = items.setdefault(rec.client_id, {"client_name": rec.client_name, "mangle": 0.0, "doblado": 0.0})
        if classify(rec.product_name, overrides) is ProductionLine.MANGLE:
            slot["mangle"] += qty
            day_mangle += qty
        else:
            slot["doblado"] += qty
            day_doblado += qty

    total_weight = sum(w["weight"] for w in weights.values())
    total_items = day_mangle + day_doblado

    # Weighed clients first (in appearance order), then clients only seen in items.
    client_ids = list(weights) + [cid for cid in items if cid not in weights]

    clients: list[ClientDayRecord] = []
    for cid in client_ids:
        w = weights.get(cid)
        it = items.get(cid)
        client_weight = w["weight"] if w else 0.0
        client_items = (it["mangle"] + it["doblado"]) if it else 0.0
        clients.append(
            ClientDayRecord(
                client_id=cid,
                client_name=(w or it)["client_name"],
                total_weight=client_weight,
                total_items=client_items,
                actual_mangle_items=it["mangle"] if it else None,
                actual_doblado_items=it["doblado"] if it else None,
                percentage_of_day_weight=_share(client_weight, total_weight),
                percentage_of_day_items=_share(client_items, total_items),
            )
        )

    # sorted() is stable: equal weights keep first-appearance order
    clients = sorted(clients, key=lambda c: -c.total_weight)

    if skipped_weight or skipped_items:
        logger.info(
            "Aggregation skipped %d weight record(s) and %d item record(s) as malformed",
            skipped_weight,
            skipped_items,
        )
    logger.debug(
        "Aggregated %d clients: %.1f weight, %.0f items (%.0f Mangle / %.0f Doblado)",
        len(clients),
        total_weight,
        total_items,
        day_mangle,
        day_doblado,
    )

    return DayAggregate(
        clients=clients,
        total_day_weight=total_weight,
        total_day_items=total_items,
        day_mangle_items=day_mangle,
        day_doblado_items=day_doblado,
        skipped_weight_records=skipped_weight,
        skipped_item_records=skipped_items,
    )
