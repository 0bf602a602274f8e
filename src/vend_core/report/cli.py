#!/usr/bin/env python3
"""
Generate a vending report from exported transactions.

Input: raw joined transaction records (transaction x machine x location x
product), one per row/object, as CSV (as exported from the database, read
with utf-8-sig) or JSON (a list of objects, or {"transactions": [...]}).

Output:
- The ReportDocument as JSON (--out).
- Optionally one CSV per report table (--tables-dir), named after the sheet.

Usage:
    vend-report --input orders.csv --from 2024-01-01 --to 2024-03-31
    vend-report --input orders.json --from 2024-03-01 --to 2024-03-31 \
        --kind financial --machine M-001 --machine M-002 --out march.json
    vend-report --input orders.csv --from 2024-01-01 --to 2024-12-31 \
        --tables-dir ./tables --quiet
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from vend_core.config import ReportRequest
from vend_core.exceptions import VendCoreError
from vend_core.report.api import generate_report

logger = logging.getLogger(__name__)


@dataclass
class Args:
    input: Path
    date_from: str
    date_to: str
    kind: str
    machine_ids: Optional[List[str]]
    product_ids: Optional[List[str]]
    location_ids: Optional[List[str]]
    include_test_orders: bool
    organization_id: Optional[str]
    out: Path
    tables_dir: Optional[Path]
    quiet: bool


def parse_args(argv: Optional[List[str]] = None) -> Args:
    p = argparse.ArgumentParser(
        description="Build payment-type, financial and reconciliation reports from vending transactions"
    )
    p.add_argument("--input", type=Path, required=True, help="Transactions file (.csv or .json)")
    p.add_argument("--from", dest="date_from", required=True, help="Start date YYYY-MM-DD (inclusive)")
    p.add_argument("--to", dest="date_to", required=True, help="End date YYYY-MM-DD (inclusive)")
    p.add_argument(
        "--kind",
        default="Full",
        help="Report kind: PaymentTypes, Financial or Full (default: Full)",
    )
    p.add_argument("--machine", action="append", dest="machine_ids", help="Machine id filter (repeatable)")
    p.add_argument("--product", action="append", dest="product_ids", help="Product id filter (repeatable)")
    p.add_argument(
        "--location", action="append", dest="location_ids", help="Location id filter (repeatable)"
    )
    p.add_argument("--include-test", action="store_true", help="Keep TEST payments in the input")
    p.add_argument("--organization", default=None, help="Organization id echoed in the metadata")
    p.add_argument(
        "--out",
        type=Path,
        default=Path("report.json"),
        help="Output JSON path (default: ./report.json)",
    )
    p.add_argument("--tables-dir", type=Path, default=None, help="Also write one CSV per table here")
    p.add_argument("--quiet", action="store_true", help="Less logging")

    a = p.parse_args(argv)
    return Args(
        input=a.input,
        date_from=a.date_from,
        date_to=a.date_to,
        kind=a.kind,
        machine_ids=a.machine_ids,
        product_ids=a.product_ids,
        location_ids=a.location_ids,
        include_test_orders=a.include_test,
        organization_id=a.organization,
        out=a.out,
        tables_dir=a.tables_dir,
        quiet=a.quiet,
    )


def read_transactions(path: Path) -> Union[pd.DataFrame, List[dict]]:
    """Read raw transactions from CSV (as a DataFrame) or JSON (as a list of objects).

    JSON objects are passed on as-is, so numeric ids keep their integer form
    next to nulls and amounts are parsed as Decimal.
    """
    if path.suffix.lower() == ".json":
        with path.open(encoding="utf-8") as f:
            data = json.load(f, parse_float=Decimal)
        if isinstance(data, dict):
            data = data.get("transactions", [])
        return list(data)
    # Ids stay strings; ingredient usage stays the raw JSON text
    return pd.read_csv(path, dtype=str, encoding="utf-8-sig", keep_default_na=True)


def write_tables(frames: dict, out_dir: Path) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    for name, df in frames.items():
        df.to_csv(out_dir / f"{name}.csv", index=False, encoding="utf-8-sig")


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    if not args.input.exists():
        raise SystemExit(f"Input file not found: {args.input}")

    try:
        request = ReportRequest.from_strings(
            args.date_from,
            args.date_to,
            args.kind,
            machine_ids=args.machine_ids,
            product_ids=args.product_ids,
            location_ids=args.location_ids,
            include_test_orders=args.include_test_orders,
            organization_id=args.organization_id,
        )
        logger.info("Reading %s", args.input)
        document = generate_report(read_transactions(args.input), request)
    except VendCoreError as e:
        raise SystemExit(f"Error: {e}") from e

    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(document.to_json(), encoding="utf-8")
    logger.info("Wrote %s", args.out)

    if args.tables_dir is not None:
        frames = document.to_frames()
        write_tables(frames, args.tables_dir)
        logger.info("Wrote %d tables to %s", len(frames), args.tables_dir)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(130)
