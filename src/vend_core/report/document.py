"""ReportDocument: the single artifact handed to report renderers.

The document is read-only for renderers. ``to_dict``/``to_json`` give the
nested form, ``to_frames`` flattens every table into a pandas DataFrame
keyed by sheet name. None of them recompute a figure.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Dict, List, Optional

import pandas as pd

if TYPE_CHECKING:
    from vend_core.analytics import CrossAnalytics
    from vend_core.financial import StructureB
    from vend_core.payments import StructureA
    from vend_core.reconciliation import ReconciliationRow

SCHEMA_VERSION = "1.0"
REPORT_ID_PREFIX = "VHR-"

# Metadata fields that differ between two runs on the same input
VOLATILE_FIELDS = ("report_id", "generated_at", "generation_time_ms")


def new_report_id() -> str:
    """Return a fresh report id, e.g. ``VHR-1F0C...``."""
    return REPORT_ID_PREFIX + uuid.uuid4().hex[:12].upper()


@dataclass
class ReportMetadata:
    """Identification and provenance of one generated report.

    Attributes:
        report_id: Unique id with the ``VHR-`` prefix.
        generated_at: Generation start time (ISO 8601).
        generation_time_ms: Wall time spent generating.
        schema_version: Version of the document layout.
        period: {"from", "to", "day_count"}.
        kind: Report kind value.
        filters: Machine/product/location filters and the TEST flag.
        organization_id: Organization the report was requested for.
        transaction_count: Transactions left after filtering.
        data_quality: Records excluded per dimension for missing keys.
    """

    report_id: str
    generated_at: str
    period: dict
    kind: str
    filters: dict
    organization_id: Optional[str] = None
    transaction_count: int = 0
    data_quality: Dict[str, int] = field(default_factory=dict)
    generation_time_ms: int = 0
    schema_version: str = SCHEMA_VERSION

    def to_dict(self, include_volatile: bool = True) -> dict:
        data = asdict(self)
        if not include_volatile:
            for name in VOLATILE_FIELDS:
                data.pop(name, None)
        return data


@dataclass
class ReportDocument:
    """Generated report: metadata plus the structures the kind asked for."""

    metadata: ReportMetadata
    payment_types: Optional[StructureA] = None
    financial: Optional[StructureB] = None
    reconciliation: Optional[List[ReconciliationRow]] = None
    analytics: Optional[CrossAnalytics] = None

    def to_dict(self, include_volatile: bool = True) -> dict:
        """Nested plain-data form of the report.

        Args:
            include_volatile: If False, drop report_id, generated_at and
                generation_time_ms so two runs on the same input compare equal.

        Returns:
            Dict with ``metadata`` and one key per built structure. Money
            values stay Decimal.

        """
        data: dict = {"metadata": self.metadata.to_dict(include_volatile)}
        if self.payment_types is not None:
            data["payment_types"] = asdict(self.payment_types)
        if self.financial is not None:
            data["financial"] = asdict(self.financial)
        if self.reconciliation is not None:
            data["reconciliation"] = [row.to_dict() for row in self.reconciliation]
        if self.analytics is not None:
            data["analytics"] = self.analytics.to_dict()
        return data

    def to_json(self, include_volatile: bool = True, indent: Optional[int] = 2) -> str:
        """Serialize to JSON; Decimals and enums are written as strings."""
        return json.dumps(
            self.to_dict(include_volatile),
            default=str,
            ensure_ascii=False,
            indent=indent,
        )

    def to_frames(self) -> Dict[str, pd.DataFrame]:
        """Flatten every table of the report into DataFrames keyed by sheet name.

        Returns:
            Ordered dict of sheet name -> DataFrame. Nested count/amount
            cells become flat columns such as ``cash_count``. Only sheets for built
            structures are present; empty tables give empty DataFrames.

        """
        tables: Dict[str, List[dict]] = {"metadata": [_flat_metadata(self.metadata)]}
        if self.payment_types is not None:
            tables.update(_payment_type_tables(self.payment_types))
        if self.financial is not None:
            tables.update(_financial_tables(self.financial))
        if self.reconciliation is not None:
            tables["reconciliation"] = [_flat_reconciliation(row) for row in self.reconciliation]
        if self.analytics is not None:
            tables.update(_analytics_tables(self.analytics))
        return {name: pd.json_normalize(rows, sep="_") for name, rows in tables.items()}


def _flat_metadata(metadata: ReportMetadata) -> dict:
    data = metadata.to_dict()
    period = data.pop("period")
    filters = data.pop("filters")
    quality = data.pop("data_quality")
    data.update({f"period_{k}": v for k, v in period.items()})
    data.update({f"filter_{k}": v for k, v in filters.items()})
    data.update({f"missing_{k}_key": v for k, v in quality.items()})
    return data


def _usage_rows(rows: List[dict], key: str) -> List[dict]:
    """Long format: one row per (key, ingredient)."""
    return [
        {key: row[key], "ingredient_code": code, "consumption": qty}
        for row in rows
        for code, qty in row["ingredients"].items()
    ]


def _payment_type_tables(a: StructureA) -> Dict[str, List[dict]]:
    tables = {
        "summary": a.summary["by_payment_type"],
        "qr_providers": a.summary["qr_providers"],
        "by_months": a.by_months,
        "by_weekdays": a.by_weekdays,
        "by_machines": a.by_machines,
        "by_products": a.by_products,
        "daily": a.daily,
        "average_check_by_month": a.average_check["by_month"],
        "average_check_by_product": a.average_check["by_product"],
    }
    for name, detail in a.type_details.items():
        tables[f"{name}_months"] = detail["months"]
        tables[f"{name}_products"] = detail["products"]
        tables[f"{name}_machines"] = detail["machines"]
        if "qr_share" in detail:
            tables[f"{name}_share_by_machine"] = detail["qr_share"]
        if "transactions" in detail:
            tables[f"{name}_transactions"] = detail["transactions"]
    return tables


def _financial_tables(b: StructureB) -> Dict[str, List[dict]]:
    return {
        "financial_by_payment_type": b.summary["by_payment_type"],
        "financial_by_months": b.by_months,
        "financial_by_days": b.by_days,
        "financial_by_machines": b.by_machines,
        "financial_by_products": b.by_products,
        "ingredients": b.ingredients["summary"],
        "ingredients_by_months": _usage_rows(b.ingredients["by_months"], "month"),
        "ingredients_by_machines": _usage_rows(b.ingredients["by_machines"], "machine_id"),
        "ingredients_by_days": _usage_rows(b.ingredients["by_days"], "date"),
        "delivery_failures": b.delivery_failures,
    }


def _flat_reconciliation(row: ReconciliationRow) -> dict:
    flat = {
        "month": row.month,
        "internal_count": row.internal.count,
        "internal_amount": row.internal.amount,
    }
    for settlement in row.providers:
        flat[f"{settlement.provider}_count"] = settlement.count
        flat[f"{settlement.provider}_amount"] = settlement.amount
    flat.update(
        {
            "external_total": row.external_total,
            "difference": row.difference,
            "difference_percent": row.difference_percent,
            "status": row.status.value,
            "estimated": row.estimated,
        }
    )
    return flat


def _analytics_tables(analytics: CrossAnalytics) -> Dict[str, List[dict]]:
    machine_ids = [m["machine_id"] for m in analytics.top_machines]
    matrix_rows = [
        {"product_id": product["product_id"], **dict(zip(machine_ids, counts))}
        for product, counts in zip(analytics.top_products, analytics.matrix)
    ]
    return {
        "top_products": analytics.top_products,
        "top_machines": analytics.top_machines,
        "product_machine_matrix": matrix_rows,
        "hourly": analytics.hourly,
        "top_products_by_revenue": analytics.top_products_by_revenue,
        "top_machines_by_revenue": analytics.top_machines_by_revenue,
        "trends": [analytics.trends.to_dict()],
        "alerts": [
            {k: v for k, v in alert.to_dict().items() if k != "data"}
            for alert in analytics.alerts
        ],
    }


def generated_now() -> str:
    return datetime.now().isoformat(timespec="seconds")
