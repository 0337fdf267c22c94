from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from laundryplan.core.pipeline import analyze_day
from laundryplan.data.db import Db
from laundryplan.data.records import item_records_from_rows, weight_records_from_rows
from laundryplan.data.repository import Repository
from laundryplan.logging_conf import configure_logging
from laundryplan.settings import Settings, default_db_path


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Mangle / Doblado washing order")
    parser.add_argument("--db", type=Path, default=default_db_path())
    parser.add_argument("--log-level", type=str, default="INFO")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="Estimate and balance one day of records (JSON)")
    analyze.add_argument("records", type=Path, help='JSON file with "weights" and "items" lists')

    set_ov = sub.add_parser("set-override", help="Force a product onto a line")
    set_ov.add_argument("product")
    set_ov.add_argument("line", choices=["Mangle", "Doblado", "mangle", "doblado"])
    set_ov.add_argument("--by", default=None)

    rm_ov = sub.add_parser("remove-override", help="Revert a product to the keyword rule")
    rm_ov.add_argument("product")

    imp = sub.add_parser("import-overrides", help="Import overrides from an .xlsx sheet")
    imp.add_argument("path", type=Path)
    imp.add_argument("--by", default=None)

    sub.add_parser("stats", help="Override table statistics")
    return parser


def _dump(payload) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str)


def run(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    settings = Settings(db_path=args.db, log_level=args.log_level)
    configure_logging(settings.log_level)

    db = Db(settings.db_path)
    db.ensure_schema()
    repo = Repository(db)

    if args.command == "analyze":
        raw = json.loads(args.records.read_text(encoding="utf-8"))
        plan = analyze_day(
            weight_records_from_rows(raw.get("weights") or []),
            item_records_from_rows(raw.get("items") or []),
            repo.get_override_snapshot(),
            weights=repo.get_balance_weights(),
        )
        out = asdict(plan)
        out["classification_revision"] = repo.get_override_revision()
        print(_dump(out))
    elif args.command == "set-override":
        entry = repo.set_override(product_name=args.product, line=args.line, modified_by=args.by)
        print(_dump(asdict(entry)))
    elif args.command == "remove-override":
        if not repo.remove_override(product_name=args.product):
            print(f"No override for {args.product!r}", file=sys.stderr)
            return 1
    elif args.command == "import-overrides":
        count = repo.import_overrides_excel_bytes(content=args.path.read_bytes(), modified_by=args.by)
        print(_dump({"imported": count, "revision": repo.get_override_revision()}))
    elif args.command == "stats":
        print(_dump(asdict(repo.get_classification_stats())))
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
