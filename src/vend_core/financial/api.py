"""Public API for the financial report (Structure B).

This module builds the profit/cost-centric report: revenue, cost of goods
and margin per month, day, machine and product, ingredient consumption
and the delivery-failure audit list. It does not read or write files.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, List, Sequence

from vend_core.aggregation import get_bucket
from vend_core.financial.breakdowns import (
    FinanceBuckets,
    build_daily_financial,
    build_delivery_failures,
    build_machine_financial,
    build_monthly_financial,
    build_product_financial,
    finance_fields,
    orders_per_day,
)
from vend_core.financial.ingredients import build_ingredient_consumption
from vend_core.money import percent
from vend_core.types import PaymentType

if TYPE_CHECKING:
    from vend_core.config import ReportConfig, ReportRequest
    from vend_core.transactions import TransactionRecord

logger = logging.getLogger(__name__)


@dataclass
class StructureB:
    """Financial report.

    Attributes:
        summary: Period, order counts with success rate, finance block and
            revenue per payment type.
        by_months: Finance rows per month.
        by_days: Finance rows per date.
        by_machines: Finance rows per machine with revenue share.
        by_products: Finance rows per product with cost per unit and revenue share.
        ingredients: Consumption summary and breakdowns by month, machine and day.
        delivery_failures: Flat audit rows for failed deliveries.
    """

    summary: dict
    by_months: List[dict] = field(default_factory=list)
    by_days: List[dict] = field(default_factory=list)
    by_machines: List[dict] = field(default_factory=list)
    by_products: List[dict] = field(default_factory=list)
    ingredients: dict = field(default_factory=dict)
    delivery_failures: List[dict] = field(default_factory=list)


def _build_summary(fb: FinanceBuckets, request: ReportRequest, quantum: Decimal) -> dict:
    total = fb.revenue.total
    finance = finance_fields(
        order_count=total.count,
        successful=fb.delivered.total.count,
        failed=fb.failed.total.count,
        revenue=total.amount,
        cost=fb.cost.total.amount,
        quantum=quantum,
    )
    day_count = request.day_count
    return {
        "period": {
            "from": request.date_from.isoformat(),
            "to": request.date_to.isoformat(),
            "day_count": day_count,
        },
        "orders": {
            "total": finance["order_count"],
            "successful": finance["successful_count"],
            "failed": finance["failed_count"],
            "success_rate": percent(finance["successful_count"], finance["order_count"]),
        },
        "finance": {
            "total_revenue": finance["revenue"],
            "cost_of_goods": finance["cost_of_goods"],
            "gross_profit": finance["profit"],
            "margin_percent": finance["margin_percent"],
            "average_check": finance["average_check"],
            "orders_per_day": orders_per_day(total.count, day_count),
        },
        "by_payment_type": [
            {
                "type": payment_type.value,
                "order_count": bucket.count,
                "total_amount": bucket.amount,
            }
            for payment_type in PaymentType
            for bucket in [get_bucket(fb.revenue.by_payment_type, payment_type)]
            if bucket.count > 0
        ],
    }


def build_structure_b(
    records: Sequence[TransactionRecord],
    request: ReportRequest,
    config: ReportConfig,
) -> StructureB:
    """Build the financial report.

    Only PAID transactions count as orders; refunded and unfinished payments
    never reach revenue. Cost of goods and ingredient consumption only come
    from paid transactions in the successful delivery set; the rest count
    toward ``failed_count`` and the delivery-failure list.

    Args:
        records: Transactions selected for the request.
        request: ReportRequest (period bounds and day counts).
        config: ReportConfig (price table, rounding quantum).

    Returns:
        StructureB.

    """
    paid = [r for r in records if r.is_paid]
    logger.debug(
        "Building financial report from %d paid of %d transactions", len(paid), len(records)
    )
    quantum = config.money_quantum
    fb = FinanceBuckets.from_records(paid)

    result = StructureB(
        summary=_build_summary(fb, request, quantum),
        by_months=build_monthly_financial(fb, request.date_from, request.date_to, quantum),
        by_days=build_daily_financial(fb, quantum),
        by_machines=build_machine_financial(fb, quantum),
        by_products=build_product_financial(fb, quantum),
        ingredients=build_ingredient_consumption(
            (r for r in paid if r.is_delivered), config.ingredient_prices, quantum
        ),
        delivery_failures=build_delivery_failures(paid),
    )
    logger.debug(
        "Financial report: %d orders, %d failed deliveries",
        fb.revenue.total.count,
        fb.failed.total.count,
    )
    return result
