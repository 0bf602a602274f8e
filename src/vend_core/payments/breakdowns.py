"""Row builders for the payment-type report.

Every table re-slices two aggregations of the same paid transactions: the
overall buckets and the per-payment-type partition (``aggregate_by`` on
payment type). A row's type columns come from the partition, its total from
the overall buckets.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Hashable, Iterable, List, Tuple

from vend_core.aggregation import Bucket, DimensionalBuckets, aggregate_by, get_bucket
from vend_core.date_formatters import DAY_NAMES, format_month_key
from vend_core.money import average, percent
from vend_core.types import REVENUE_TYPES, PaymentType

if TYPE_CHECKING:
    from vend_core.transactions import TransactionRecord

Parts = Dict[PaymentType, DimensionalBuckets]

# Column name per payment type in split rows
TYPE_COLUMNS = {
    PaymentType.CASH: "cash",
    PaymentType.QR: "qr",
    PaymentType.VIP: "vip",
    PaymentType.CREDIT: "credit",
}


def split_columns(parts: Parts, dimension: str, key: Hashable, total: Bucket) -> dict:
    """Type columns plus total for one dimension value."""
    row = {}
    for payment_type in REVENUE_TYPES:
        part = parts.get(payment_type)
        bucket = get_bucket(part.dimension(dimension), key) if part else Bucket()
        row[TYPE_COLUMNS[payment_type]] = bucket.to_dict()
    row["total"] = total.to_dict()
    return row


def by_amount_desc(buckets: Dict[str, Bucket]) -> List[Tuple[str, Bucket]]:
    return sorted(buckets.items(), key=lambda kv: (-kv[1].amount, kv[0]))


def by_count_desc(buckets: Dict[str, Bucket]) -> List[Tuple[str, Bucket]]:
    return sorted(buckets.items(), key=lambda kv: (-kv[1].count, kv[0]))


def build_type_summary(overall: DimensionalBuckets, quantum: Decimal) -> Tuple[List[dict], dict]:
    """Summary rows for CASH, QR, VIP and CREDIT plus the paid total.

    Percentages are rounded independently; their sum may drift from 100 by
    up to 0.01 per type and is not corrected.
    """
    total = overall.total
    rows = []
    for payment_type in REVENUE_TYPES:
        bucket = get_bucket(overall.by_payment_type, payment_type)
        rows.append(type_summary_row(payment_type, bucket, total, quantum))

    total_paid = {
        "order_count": total.count,
        "total_amount": total.amount,
        "average_check": average(total.amount, total.count, quantum),
    }
    return rows, total_paid


def type_summary_row(
    payment_type: PaymentType, bucket: Bucket, total: Bucket, quantum: Decimal
) -> dict:
    return {
        "payment_type": payment_type.value,
        "order_count": bucket.count,
        "total_amount": bucket.amount,
        "percent_by_count": percent(bucket.count, total.count),
        "percent_by_amount": percent(bucket.amount, total.amount),
        "average_check": average(bucket.amount, bucket.count, quantum),
    }


def build_monthly(overall: DimensionalBuckets, parts: Parts) -> List[dict]:
    rows = []
    for month in sorted(overall.by_month):
        row = {"month": month, "month_name": format_month_key(month)}
        row.update(split_columns(parts, "month", month, overall.by_month[month]))
        rows.append(row)
    return rows


def build_weekdays(overall: DimensionalBuckets, parts: Parts) -> List[dict]:
    """Exactly seven rows, Monday first, zero-filled."""
    rows = []
    for weekday in range(7):
        row = {"day_of_week": weekday, "day_name": DAY_NAMES[weekday]}
        row.update(split_columns(parts, "weekday", weekday, get_bucket(overall.by_weekday, weekday)))
        rows.append(row)
    return rows


def build_daily(overall: DimensionalBuckets, parts: Parts) -> List[dict]:
    rows = []
    for day in sorted(overall.by_date):
        row = {"date": day}
        row.update(split_columns(parts, "date", day, overall.by_date[day]))
        rows.append(row)
    return rows


def build_machines(overall: DimensionalBuckets, parts: Parts) -> List[dict]:
    """Machine rows, highest amount first, with share of paid revenue."""
    rows = []
    for machine_id, bucket in by_amount_desc(overall.by_machine):
        info = overall.machine_info(machine_id)
        row = {"machine_id": machine_id, "machine_code": info.code, "address": info.address}
        row.update(split_columns(parts, "machine", machine_id, bucket))
        row["revenue_percent"] = percent(bucket.amount, overall.total.amount)
        rows.append(row)
    return rows


def build_products(overall: DimensionalBuckets, parts: Parts) -> List[dict]:
    """Product rows, most orders first."""
    rows = []
    for product_id, bucket in by_count_desc(overall.by_product):
        info = overall.product_info(product_id)
        row = {"product_id": product_id, "product_name": info.name, "category": info.category}
        row.update(split_columns(parts, "product", product_id, bucket))
        rows.append(row)
    return rows


def build_qr_share(overall: DimensionalBuckets, parts: Parts) -> List[dict]:
    """Share of QR orders per machine."""
    qr = parts.get(PaymentType.QR)
    cash = parts.get(PaymentType.CASH)
    rows = []
    for machine_id, bucket in by_count_desc(overall.by_machine):
        qr_orders = get_bucket(qr.by_machine, machine_id).count if qr else 0
        rows.append(
            {
                "machine_id": machine_id,
                "machine_code": overall.machine_info(machine_id).code,
                "total_orders": bucket.count,
                "cash_orders": get_bucket(cash.by_machine, machine_id).count if cash else 0,
                "qr_orders": qr_orders,
                "qr_share_percent": percent(qr_orders, bucket.count),
            }
        )
    return rows


def simple_rows(buckets: DimensionalBuckets, dimension: str, quantum: Decimal) -> List[dict]:
    """Count/amount/average rows for one dimension of a single-type aggregation."""
    rows = []
    if dimension == "month":
        for month in sorted(buckets.by_month):
            bucket = buckets.by_month[month]
            rows.append(
                {
                    "month": month,
                    "month_name": format_month_key(month),
                    **_amount_fields(bucket, buckets.total, quantum),
                }
            )
    elif dimension == "machine":
        for machine_id, bucket in by_amount_desc(buckets.by_machine):
            info = buckets.machine_info(machine_id)
            rows.append(
                {
                    "machine_id": machine_id,
                    "machine_code": info.code,
                    "address": info.address,
                    **_amount_fields(bucket, buckets.total, quantum),
                }
            )
    elif dimension == "product":
        for product_id, bucket in by_count_desc(buckets.by_product):
            rows.append(
                {
                    "product_id": product_id,
                    "product_name": buckets.product_info(product_id).name,
                    **_amount_fields(bucket, buckets.total, quantum),
                }
            )
    else:
        raise ValueError(f"Unsupported dimension for simple rows: {dimension}")
    return rows


def _amount_fields(bucket: Bucket, total: Bucket, quantum: Decimal) -> dict:
    return {
        "order_count": bucket.count,
        "total_amount": bucket.amount,
        "average_check": average(bucket.amount, bucket.count, quantum),
        "percent_of_total": percent(bucket.amount, total.amount),
    }


def build_monthly_drilldown(
    records: Iterable[TransactionRecord],
    payment_type: PaymentType,
    quantum: Decimal,
) -> List[dict]:
    """Per month: product rows, machine rows and a month summary for one type."""
    months = aggregate_by(records, key=lambda r: r.month_key)
    out = []
    for month in sorted(months):
        buckets = months[month]
        out.append(
            {
                "month": month,
                "month_name": format_month_key(month),
                "payment_type": payment_type.value,
                "products": simple_rows(buckets, "product", quantum),
                "machines": simple_rows(buckets, "machine", quantum),
                "summary": {
                    "total_orders": buckets.total.count,
                    "total_amount": buckets.total.amount,
                    "average_check": average(buckets.total.amount, buckets.total.count, quantum),
                },
            }
        )
    return out


def build_average_check(overall: DimensionalBuckets, quantum: Decimal) -> dict:
    return {
        "by_month": [
            {"month": month, "average_check": average(b.amount, b.count, quantum)}
            for month, b in sorted(overall.by_month.items())
        ],
        "by_product": [
            {
                "product_id": product_id,
                "product_name": overall.product_info(product_id).name,
                "average_check": average(b.amount, b.count, quantum),
            }
            for product_id, b in by_count_desc(overall.by_product)
        ],
    }


def transaction_details(records: Iterable[TransactionRecord]) -> List[dict]:
    """Flat per-transaction rows, ordered by time then id."""
    return [
        {
            "id": r.id,
            "date": r.date_key,
            "time": r.timestamp.strftime("%H:%M:%S"),
            "machine_id": r.machine_id,
            "machine_code": r.machine_code,
            "address": r.machine_address,
            "product_name": r.product_name,
            "amount": r.amount,
            "delivery_status": r.delivery_status.value,
        }
        for r in sorted(records, key=lambda r: (r.timestamp, r.id))
    ]
