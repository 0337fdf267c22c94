"""Product to production line classification.

Overrides come from the persisted classification table and always win; anything
without an override falls back to the keyword rule below.
"""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from laundryplan.core.models import (
    ClassificationEntry,
    ClassificationStats,
    ProductionLine,
    parse_line,
)

ORIGIN_OVERRIDE = "override"
ORIGIN_DEFAULT = "default-rule"

# Flat goods that go through the mangle. Order matters only for readability;
# any hit routes to Mangle.
MANGLE_KEYWORDS: tuple[str, ...] = (
    "sheet",
    "duvet",
    "sabana",
    "servilleta",
    "napkin",
    "funda",
    "pillowcase",
    "tablecloth",
    "mantel",
    "toalla",
    "towel",
    "mangle",
)

_WS_RE = re.compile(r"\s+")


def normalize_product_key(name: str | None) -> str:
    """Lookup key for a product: trimmed, lower-cased, single-spaced."""
    return _WS_RE.sub(" ", str(name or "").strip().lower())


def default_line(product_name: str | None) -> ProductionLine:
    key = normalize_product_key(product_name)
    if any(word in key for word in MANGLE_KEYWORDS):
        return ProductionLine.MANGLE
    return ProductionLine.DOBLADO


def classify_entry(
    product_name: str | None,
    overrides: Mapping[str, ProductionLine] | None = None,
) -> ClassificationEntry:
    key = normalize_product_key(product_name)
    line = (overrides or {}).get(key)
    if line is not None:
        return ClassificationEntry(
            product_key=key, line=line, origin=ORIGIN_OVERRIDE, example_product_name=product_name
        )
    return ClassificationEntry(
        product_key=key, line=default_line(key), origin=ORIGIN_DEFAULT, example_product_name=product_name
    )


def classify(
    product_name: str | None,
    overrides: Mapping[str, ProductionLine] | None = None,
) -> ProductionLine:
    """Resolve the production line of a product.

    Args:
        product_name: Raw product name as written on the item record.
        overrides: Snapshot of the override table keyed by normalized product key
            (see ``build_override_snapshot``). May be empty or None.

    Returns:
        The override's line when one exists for the normalized name, else the
        keyword rule's line. Never raises.
    """
    return classify_entry(product_name, overrides).line


def build_override_snapshot(raw: Mapping[str, object] | None) -> dict[str, ProductionLine]:
    """Normalize an external override mapping into a classifier snapshot.

    Keys are re-normalized so that "Queen  Flat Sheet" and "queen flat sheet"
    collide. Values may be ProductionLine members or their text.
    """
    snapshot: dict[str, ProductionLine] = {}
    for name, value in dict(raw or {}).items():
        key = normalize_product_key(name)
        if not key:
            continue
        snapshot[key] = parse_line(value)
    return snapshot


def classification_stats(
    overrides: Mapping[str, ProductionLine] | None,
    product_names: Iterable[str] = (),
) -> ClassificationStats:
    """Count products per line across the override table and extra names.

    Extra names without an override are resolved by the keyword rule and
    counted as default classifications.
    """
    resolved: dict[str, ClassificationEntry] = {}
    for key, line in dict(overrides or {}).items():
        resolved[key] = ClassificationEntry(product_key=key, line=line, origin=ORIGIN_OVERRIDE)
    for name in product_names:
        entry = classify_entry(name, overrides)
        if entry.product_key and entry.product_key not in resolved:
            resolved[entry.product_key] = entry

    mangle = sum(1 for e in resolved.values() if e.line is ProductionLine.MANGLE)
    custom = sum(1 for e in resolved.values() if e.origin == ORIGIN_OVERRIDE)
    return ClassificationStats(
        total_products=len(resolved),
        mangle_products=mangle,
        doblado_products=len(resolved) - mangle,
        custom_classifications=custom,
        default_classifications=len(resolved) - custom,
    )
