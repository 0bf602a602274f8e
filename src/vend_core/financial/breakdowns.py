"""Revenue/cost/margin rows for the financial report.

Three aggregations of the same transactions feed every table:

- revenue: all transactions (order counts and amounts)
- outcome: partition by successful delivery (successful/failed counts)
- cost: successful transactions only, accumulating cost of goods
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Hashable, List, Sequence

from vend_core.aggregation import DimensionalBuckets, aggregate, aggregate_by, get_bucket
from vend_core.date_formatters import day_name_for_key, days_of_month_in_period, format_month_key
from vend_core.money import CENT, average, percent, round_money, safe_div

if TYPE_CHECKING:
    from datetime import date

    from vend_core.transactions import TransactionRecord


@dataclass
class FinanceBuckets:
    """Revenue, delivery outcome and cost buckets for one transaction set."""

    revenue: DimensionalBuckets
    delivered: DimensionalBuckets
    failed: DimensionalBuckets
    cost: DimensionalBuckets

    @classmethod
    def from_records(cls, records: Sequence[TransactionRecord]) -> FinanceBuckets:
        outcome = aggregate_by(records, key=lambda r: r.is_delivered)
        return cls(
            revenue=aggregate(records),
            delivered=outcome.get(True) or DimensionalBuckets(),
            failed=outcome.get(False) or DimensionalBuckets(),
            cost=aggregate(
                (r for r in records if r.is_delivered), value=lambda r: r.cost_of_goods
            ),
        )

    def fields(self, dimension: str, key: Hashable, quantum: Decimal) -> dict:
        """Finance columns for one dimension value."""
        revenue = get_bucket(self.revenue.dimension(dimension), key)
        cost = get_bucket(self.cost.dimension(dimension), key).amount
        return finance_fields(
            order_count=revenue.count,
            successful=get_bucket(self.delivered.dimension(dimension), key).count,
            failed=get_bucket(self.failed.dimension(dimension), key).count,
            revenue=revenue.amount,
            cost=cost,
            quantum=quantum,
        )


def finance_fields(
    order_count: int,
    successful: int,
    failed: int,
    revenue: Decimal,
    cost: Decimal,
    quantum: Decimal,
) -> dict:
    profit = revenue - cost
    return {
        "order_count": order_count,
        "successful_count": successful,
        "failed_count": failed,
        "revenue": revenue,
        "cost_of_goods": cost,
        "profit": profit,
        "margin_percent": percent(profit, revenue),
        "average_check": average(revenue, order_count, quantum),
    }


def orders_per_day(order_count: int, day_count: int) -> Decimal:
    return round_money(safe_div(order_count, day_count), CENT)


def build_monthly_financial(
    fb: FinanceBuckets, date_from: date, date_to: date, quantum: Decimal
) -> List[dict]:
    rows = []
    for month in sorted(fb.revenue.by_month):
        day_count = days_of_month_in_period(month, date_from, date_to)
        row = {"month": month, "month_name": format_month_key(month), "day_count": day_count}
        row.update(fb.fields("month", month, quantum))
        row["orders_per_day"] = orders_per_day(row["order_count"], day_count)
        rows.append(row)
    return rows


def build_daily_financial(fb: FinanceBuckets, quantum: Decimal) -> List[dict]:
    rows = []
    for day in sorted(fb.revenue.by_date):
        row = {"date": day, "day_of_week": day_name_for_key(day)}
        row.update(fb.fields("date", day, quantum))
        rows.append(row)
    return rows


def _by_revenue_desc(buckets: dict) -> List[str]:
    return [key for key, _ in sorted(buckets.items(), key=lambda kv: (-kv[1].amount, kv[0]))]


def build_machine_financial(fb: FinanceBuckets, quantum: Decimal) -> List[dict]:
    total_revenue = fb.revenue.total.amount
    rows = []
    for machine_id in _by_revenue_desc(fb.revenue.by_machine):
        info = fb.revenue.machine_info(machine_id)
        row = {"machine_id": machine_id, "machine_code": info.code, "address": info.address}
        row.update(fb.fields("machine", machine_id, quantum))
        row["revenue_percent"] = percent(row["revenue"], total_revenue)
        rows.append(row)
    return rows


def build_product_financial(fb: FinanceBuckets, quantum: Decimal) -> List[dict]:
    total_revenue = fb.revenue.total.amount
    rows = []
    for product_id in _by_revenue_desc(fb.revenue.by_product):
        info = fb.revenue.product_info(product_id)
        row = {"product_id": product_id, "product_name": info.name, "category": info.category}
        row.update(fb.fields("product", product_id, quantum))
        row["cost_per_unit"] = average(row["cost_of_goods"], row["successful_count"], quantum)
        row["revenue_percent"] = percent(row["revenue"], total_revenue)
        rows.append(row)
    return rows


def build_delivery_failures(records: Sequence[TransactionRecord]) -> List[dict]:
    """Every transaction outside the successful delivery set, as flat rows."""
    failures = sorted((r for r in records if not r.is_delivered), key=lambda r: (r.timestamp, r.id))
    return [
        {
            "id": r.id,
            "date": r.date_key,
            "time": r.timestamp.strftime("%H:%M:%S"),
            "machine_id": r.machine_id,
            "machine_code": r.machine_code,
            "address": r.machine_address,
            "product_name": r.product_name,
            "price": r.amount,
            "payment_type": r.payment_type.value,
            "status": r.delivery_status.value,
        }
        for r in failures
    ]
