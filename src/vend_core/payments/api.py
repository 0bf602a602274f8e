"""Public API for the payment-type report (Structure A).

This module builds the payment-method-centric report from normalized
transactions. It does not read or write files and only logs progress.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Sequence

from vend_core.aggregation import DimensionalBuckets, aggregate, aggregate_by, get_bucket
from vend_core.money import average, percent
from vend_core.payments.breakdowns import (
    TYPE_COLUMNS,
    build_average_check,
    build_daily,
    build_machines,
    build_monthly,
    build_monthly_drilldown,
    build_products,
    build_qr_share,
    build_type_summary,
    build_weekdays,
    simple_rows,
    transaction_details,
    type_summary_row,
)
from vend_core.types import REVENUE_TYPES, PaymentType

if TYPE_CHECKING:
    from vend_core.config import ReportConfig, ReportRequest
    from vend_core.transactions import TransactionRecord

logger = logging.getLogger(__name__)


@dataclass
class StructureA:
    """Payment-type report.

    Attributes:
        summary: Period, per-type summary rows, paid totals, TEST order count
            and the QR provider split.
        by_months: One row per month with cash/qr/vip/credit/total columns.
        by_weekdays: Seven rows, Monday first.
        by_machines: One row per machine with revenue share.
        by_products: One row per product.
        daily: One row per date with activity.
        type_details: Drill-down per payment type ("cash", "qr", "vip", "credit").
        average_check: Average check by month and by product.
    """

    summary: dict
    by_months: List[dict] = field(default_factory=list)
    by_weekdays: List[dict] = field(default_factory=list)
    by_machines: List[dict] = field(default_factory=list)
    by_products: List[dict] = field(default_factory=list)
    daily: List[dict] = field(default_factory=list)
    type_details: Dict[str, dict] = field(default_factory=dict)
    average_check: dict = field(default_factory=dict)


def revenue_transactions(records: Sequence[TransactionRecord]) -> List[TransactionRecord]:
    """Paid transactions that count toward revenue (TEST excluded)."""
    return [r for r in records if r.is_paid and r.payment_type is not PaymentType.TEST]


def build_qr_providers(overall: DimensionalBuckets, config: ReportConfig) -> List[dict]:
    """Apportion the period's QR total across settlement providers."""
    qr_total = get_bucket(overall.by_payment_type, PaymentType.QR)
    settlements = config.provider_attribution("period", qr_total)
    return [
        {
            "provider": s.provider,
            "payment_count": s.count,
            "total_amount": s.amount,
            "percent_of_qr": percent(s.amount, qr_total.amount),
            "average_payment": average(s.amount, s.count, config.money_quantum),
            "method": s.method,
            "estimated": s.estimated,
        }
        for s in settlements
    ]


def _type_detail(
    payment_type: PaymentType,
    records: List[TransactionRecord],
    buckets: DimensionalBuckets,
    overall: DimensionalBuckets,
    parts: Dict[PaymentType, DimensionalBuckets],
    config: ReportConfig,
) -> dict:
    quantum = config.money_quantum
    detail = {
        "summary": type_summary_row(payment_type, buckets.total, overall.total, quantum),
        "months": simple_rows(buckets, "month", quantum),
        "products": simple_rows(buckets, "product", quantum),
        "machines": simple_rows(buckets, "machine", quantum),
        "monthly_detail": build_monthly_drilldown(records, payment_type, quantum),
    }
    if payment_type is PaymentType.QR:
        detail["qr_share"] = build_qr_share(overall, parts)
        detail["providers"] = build_qr_providers(overall, config)
    elif payment_type in (PaymentType.VIP, PaymentType.CREDIT):
        detail["transactions"] = transaction_details(records)
    return detail


def build_structure_a(
    records: Sequence[TransactionRecord],
    request: ReportRequest,
    config: ReportConfig,
) -> StructureA:
    """Build the payment-type report.

    Only PAID transactions are aggregated. TEST payments never count toward
    revenue; they are reported as ``summary["test_order_count"]``.

    Args:
        records: Transactions selected for the request.
        request: ReportRequest (period is echoed in the summary).
        config: ReportConfig (rounding quantum, provider attribution).

    Returns:
        StructureA. With no transactions every count, amount and percentage
        is zero and the weekday table still has seven rows.

    """
    logger.debug("Building payment-type report from %d transactions", len(records))
    quantum = config.money_quantum

    paid = revenue_transactions(records)
    overall = aggregate(paid)
    parts = aggregate_by(paid, key=lambda r: r.payment_type)

    type_rows, total_paid = build_type_summary(overall, quantum)
    summary = {
        "period": {
            "from": request.date_from.isoformat(),
            "to": request.date_to.isoformat(),
            "day_count": request.day_count,
        },
        "by_payment_type": type_rows,
        "total_paid": total_paid,
        "test_order_count": sum(1 for r in records if r.payment_type is PaymentType.TEST),
        "qr_providers": build_qr_providers(overall, config),
    }

    by_type: Dict[PaymentType, List[TransactionRecord]] = {pt: [] for pt in REVENUE_TYPES}
    for record in paid:
        by_type[record.payment_type].append(record)

    type_details = {
        TYPE_COLUMNS[pt]: _type_detail(
            pt, by_type[pt], parts.get(pt) or DimensionalBuckets(), overall, parts, config
        )
        for pt in REVENUE_TYPES
    }

    result = StructureA(
        summary=summary,
        by_months=build_monthly(overall, parts),
        by_weekdays=build_weekdays(overall, parts),
        by_machines=build_machines(overall, parts),
        by_products=build_products(overall, parts),
        daily=build_daily(overall, parts),
        type_details=type_details,
        average_check=build_average_check(overall, quantum),
    )

    logger.debug(
        "Payment-type report: %d paid orders, total %s", overall.total.count, overall.total.amount
    )
    return result
