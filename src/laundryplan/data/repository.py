from __future__ import annotations

import logging
from typing import Iterable, Mapping

from laundryplan.core.classifier import (
    ORIGIN_OVERRIDE,
    build_override_snapshot,
    classification_stats,
    normalize_product_key,
)
from laundryplan.core.models import (
    AuditEntry,
    ClassificationEntry,
    ClassificationStats,
    ProductionLine,
    parse_line,
)
from laundryplan.data.db import Db
from laundryplan.data.excel_io import coerce_float, coerce_text, normalize_columns, read_excel_bytes
from laundryplan.settings import BalanceWeights

logger = logging.getLogger(__name__)

REVISION_KEY = "classification_revision"

# app_config key -> BalanceWeights field
BALANCE_WEIGHT_KEYS: dict[str, str] = {
    "balance_improvement_weight": "balance_improvement",
    "balance_weight_factor_scale": "weight_factor_scale",
    "balance_area_preference_bonus": "area_preference_bonus",
    "balance_high_volume_share": "high_volume_share",
}

_PRODUCT_COLUMNS = ("product_name", "product", "producto", "nombre_producto")
_LINE_COLUMNS = ("classification", "clasificacion", "line", "linea")


class Repository:
    def __init__(self, db: Db):
        self.db = db

    def log_audit(self, category: str, message: str, details: str | None = None) -> None:
        """Record a business event in the audit log."""
        try:
            with self.db.connect() as con:
                con.execute(
                    "INSERT INTO audit_log (category, message, details) VALUES (?, ?, ?)",
                    (category, message, details),
                )
        except Exception:
            # Audit failures must not block the change being audited
            logger.exception("Failed to write audit log entry %s/%s", category, message)

    def get_recent_audit_entries(self, limit: int = 100) -> list[AuditEntry]:
        with self.db.connect() as con:
            rows = con.execute(
                "SELECT * FROM audit_log ORDER BY id DESC LIMIT ?", (limit,)
            ).fetchall()
            return [
                AuditEntry(
                    id=row["id"],
                    timestamp=row["timestamp"],
                    category=row["category"],
                    message=row["message"],
                    details=row["details"],
                )
                for row in rows
            ]

    # ---------- Config ----------
    def get_config(self, *, key: str, default: str | None = None) -> str | None:
        key = str(key).strip()
        if not key:
            raise ValueError("empty config key")
        with self.db.connect() as con:
            row = con.execute("SELECT config_value FROM app_config WHERE config_key = ?", (key,)).fetchone()
        if row is None:
            return default
        return str(row[0])

    def set_config(self, *, key: str, value: str) -> None:
        key = str(key).strip()
        if not key:
            raise ValueError("empty config key")

        old_val = self.get_config(key=key, default="(none)")
        self.log_audit("CONFIG", f"Updated '{key}'", f"From '{old_val}' to '{value}'")

        with self.db.connect() as con:
            con.execute(
                "INSERT INTO app_config(config_key, config_value) VALUES(?, ?) "
                "ON CONFLICT(config_key) DO UPDATE SET config_value=excluded.config_value, updated_at=CURRENT_TIMESTAMP",
                (key, str(value).strip()),
            )

    def get_balance_weights(self) -> BalanceWeights:
        """Scheduler tunables from config; missing or non-numeric values keep the default."""
        defaults = BalanceWeights()
        values: dict[str, float] = {}
        for key, field in BALANCE_WEIGHT_KEYS.items():
            raw = self.get_config(key=key)
            if raw is None:
                continue
            parsed = coerce_float(raw)
            if parsed is None or parsed < 0:
                logger.warning("Ignoring invalid config %s=%r, using %s", key, raw, getattr(defaults, field))
                continue
            values[field] = parsed
        return BalanceWeights(**values)

    # ---------- Classification overrides ----------
    def get_override_revision(self) -> int:
        """Counter bumped on every override change.

        Any analysis computed under an older revision is stale and has to be run again.
        """
        raw = self.get_config(key=REVISION_KEY, default="0")
        try:
            return int(raw or 0)
        except ValueError:
            return 0

    def _bump_revision(self, con) -> None:
        con.execute(
            """
            INSERT INTO app_config(config_key, config_value) VALUES(?, '1')
            ON CONFLICT(config_key) DO UPDATE SET
                config_value = CAST(CAST(config_value AS INTEGER) + 1 AS TEXT),
                updated_at = CURRENT_TIMESTAMP
            """,
            (REVISION_KEY,),
        )

    def set_override(
        self,
        *,
        product_name: str,
        line: ProductionLine | str,
        modified_by: str | None = None,
    ) -> ClassificationEntry:
        key = normalize_product_key(product_name)
        if not key:
            raise ValueError("empty product name")
        parsed = parse_line(line)

        with self.db.connect() as con:
            con.execute(
                """
                INSERT INTO classification_override(product_key, line, example_product_name, modified_by)
                VALUES(?, ?, ?, ?)
                ON CONFLICT(product_key) DO UPDATE SET
                    line = excluded.line,
                    example_product_name = excluded.example_product_name,
                    modified_by = excluded.modified_by,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (key, parsed.value, str(product_name).strip(), modified_by),
            )
            self._bump_revision(con)

        self.log_audit("CLASSIFICATION", f"Set '{key}' -> {parsed.value}", f"By: {modified_by or '(unknown)'}")
        return ClassificationEntry(
            product_key=key, line=parsed, origin=ORIGIN_OVERRIDE, example_product_name=str(product_name).strip()
        )

    def remove_override(self, *, product_name: str) -> bool:
        """Drop an override so the keyword rule applies again. Returns False if none existed."""
        key = normalize_product_key(product_name)
        with self.db.connect() as con:
            cur = con.execute("DELETE FROM classification_override WHERE product_key = ?", (key,))
            removed = cur.rowcount > 0
            if removed:
                self._bump_revision(con)

        if removed:
            self.log_audit("CLASSIFICATION", f"Removed override '{key}'")
        return removed

    def list_overrides(self) -> list[ClassificationEntry]:
        with self.db.connect() as con:
            rows = con.execute(
                "SELECT product_key, line, example_product_name FROM classification_override ORDER BY product_key"
            ).fetchall()
        return [
            ClassificationEntry(
                product_key=str(r["product_key"]),
                line=parse_line(r["line"]),
                origin=ORIGIN_OVERRIDE,
                example_product_name=r["example_product_name"],
            )
            for r in rows
        ]

    def get_override_snapshot(self) -> dict[str, ProductionLine]:
        """Read-only override table for one analysis run."""
        return {e.product_key: e.line for e in self.list_overrides()}

    def bulk_import_overrides(
        self,
        classifications: Mapping[str, ProductionLine | str],
        *,
        modified_by: str | None = None,
    ) -> int:
        """Upsert many overrides in one transaction. All values are validated first."""
        snapshot = build_override_snapshot(classifications)
        examples = {normalize_product_key(name): str(name).strip() for name in classifications}
        if not snapshot:
            return 0

        with self.db.connect() as con:
            con.executemany(
                """
                INSERT INTO classification_override(product_key, line, example_product_name, modified_by)
                VALUES(?, ?, ?, ?)
                ON CONFLICT(product_key) DO UPDATE SET
                    line = excluded.line,
                    example_product_name = excluded.example_product_name,
                    modified_by = excluded.modified_by,
                    updated_at = CURRENT_TIMESTAMP
                """,
                [(key, line.value, examples.get(key), modified_by) for key, line in snapshot.items()],
            )
            self._bump_revision(con)

        self.log_audit("CLASSIFICATION", "Bulk import", f"{len(snapshot)} override(s) by {modified_by or '(unknown)'}")
        logger.info("Imported %d classification override(s)", len(snapshot))
        return len(snapshot)

    def import_overrides_excel_bytes(self, *, content: bytes, modified_by: str | None = None) -> int:
        """Import overrides from a sheet with a product column and a classification column."""
        size_kb = len(content) / 1024
        self.log_audit("DATA_LOAD", "Importing classification overrides", f"Size: {size_kb:.1f} KB")

        df = normalize_columns(read_excel_bytes(content))
        product_col = next((c for c in _PRODUCT_COLUMNS if c in df.columns), None)
        line_col = next((c for c in _LINE_COLUMNS if c in df.columns), None)
        if product_col is None or line_col is None:
            raise ValueError(f"missing product/classification columns, got: {list(df.columns)}")

        mapping: dict[str, str] = {}
        for _, row in df.iterrows():
            name = coerce_text(row[product_col])
            line = coerce_text(row[line_col])
            if name is None or line is None:
                continue
            mapping[name] = line
        return self.bulk_import_overrides(mapping, modified_by=modified_by)

    def get_classification_stats(self, *, product_names: Iterable[str] = ()) -> ClassificationStats:
        return classification_stats(self.get_override_snapshot(), product_names)
