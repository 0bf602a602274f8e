"""Public API for cross-analytics.

Cross-analytics sit on top of the two reports: a top-K product x machine
matrix, the hourly distribution, revenue leaders, first-vs-last month
trends and rule-based alerts. They are only built for full reports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Sequence

from vend_core.aggregation import aggregate
from vend_core.analytics.alerts import Alert, evaluate_alerts
from vend_core.analytics.cross import build_hourly, build_top_k
from vend_core.analytics.trends import Trends, compute_trends

if TYPE_CHECKING:
    from vend_core.config import ReportConfig
    from vend_core.financial import StructureB
    from vend_core.reconciliation import ReconciliationRow
    from vend_core.transactions import TransactionRecord

logger = logging.getLogger(__name__)


@dataclass
class CrossAnalytics:
    """Cross-analytics block of a full report.

    Attributes:
        top_products: Top-K products by transaction count.
        top_machines: Top-K machines by transaction count.
        matrix: matrix[i][j] = transactions of top_products[i] on top_machines[j].
        hourly: 24 rows, hour 0 to 23.
        top_products_by_revenue: Revenue leaders among products.
        top_machines_by_revenue: Revenue leaders among machines.
        trends: First vs. last month deltas.
        alerts: Triggered alerts.
    """

    top_products: List[dict] = field(default_factory=list)
    top_machines: List[dict] = field(default_factory=list)
    matrix: List[List[int]] = field(default_factory=list)
    hourly: List[dict] = field(default_factory=list)
    top_products_by_revenue: List[dict] = field(default_factory=list)
    top_machines_by_revenue: List[dict] = field(default_factory=list)
    trends: Trends = field(default_factory=Trends)
    alerts: List[Alert] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "top_products": self.top_products,
            "top_machines": self.top_machines,
            "matrix": self.matrix,
            "hourly": self.hourly,
            "top_products_by_revenue": self.top_products_by_revenue,
            "top_machines_by_revenue": self.top_machines_by_revenue,
            "trends": self.trends.to_dict(),
            "alerts": [a.to_dict() for a in self.alerts],
        }


def build_cross_analysis(records: Sequence[TransactionRecord], config: ReportConfig) -> dict:
    """Top-K matrix and hourly distribution.

    Args:
        records: Revenue transactions (paid, TEST excluded).
        config: ReportConfig (``top_k``, rounding quantum).

    Returns:
        Dict with top_products, top_machines, matrix and hourly.

    Examples:
        >>> from vend_core.config import ReportConfig
        >>> result = build_cross_analysis([], ReportConfig())
        >>> result["matrix"], len(result["hourly"])
        ([], 24)

    """
    overall = aggregate(records)
    result = build_top_k(records, overall, config.top_k)
    result["hourly"] = build_hourly(overall, config.money_quantum)
    return result


def _top_by_revenue(structure_b: StructureB, limit: int) -> tuple:
    # B's machine/product tables are already sorted revenue desc, id asc
    products = [
        {
            "product_id": row["product_id"],
            "product_name": row["product_name"],
            "revenue": row["revenue"],
            "order_count": row["order_count"],
        }
        for row in structure_b.by_products[:limit]
    ]
    machines = [
        {
            "machine_id": row["machine_id"],
            "machine_code": row["machine_code"],
            "address": row["address"],
            "revenue": row["revenue"],
            "order_count": row["order_count"],
        }
        for row in structure_b.by_machines[:limit]
    ]
    return products, machines


def build_analytics(
    revenue_records: Sequence[TransactionRecord],
    structure_b: StructureB,
    reconciliation: Sequence[ReconciliationRow],
    config: ReportConfig,
) -> CrossAnalytics:
    """Build the cross-analytics block of a full report.

    Args:
        revenue_records: Paid, non-TEST transactions.
        structure_b: Financial report (monthly rows, orders, revenue tables).
        reconciliation: QR reconciliation rows.
        config: ReportConfig.

    Returns:
        CrossAnalytics.

    """
    cross = build_cross_analysis(revenue_records, config)
    top_products, top_machines = _top_by_revenue(structure_b, config.top_revenue_limit)
    trends = compute_trends(structure_b.by_months)
    alerts = evaluate_alerts(reconciliation, structure_b.summary["orders"], trends, config)
    logger.debug("Cross-analytics: %d alerts", len(alerts))

    return CrossAnalytics(
        top_products=cross["top_products"],
        top_machines=cross["top_machines"],
        matrix=cross["matrix"],
        hourly=cross["hourly"],
        top_products_by_revenue=top_products,
        top_machines_by_revenue=top_machines,
        trends=trends,
        alerts=alerts,
    )
