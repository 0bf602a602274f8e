"""Top-K product x machine matrix and hourly distribution."""

from __future__ import annotations

from collections import Counter
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple

from vend_core.aggregation import Bucket, DimensionalBuckets, get_bucket
from vend_core.money import average

if TYPE_CHECKING:
    from vend_core.transactions import TransactionRecord


def top_keys(buckets: Dict[str, Bucket], k: int) -> List[str]:
    """Keys of the k buckets with the most transactions (ties: key ascending)."""
    ranked = sorted(buckets.items(), key=lambda kv: (-kv[1].count, kv[0]))
    return [key for key, _ in ranked[:k]]


def build_matrix(
    records: Sequence[TransactionRecord],
    products: List[str],
    machines: List[str],
) -> List[List[int]]:
    """Count transactions per (product, machine) for the given top lists.

    One pass builds a composite-key index, then the K x K cells are read
    from it.

    Examples:
        >>> build_matrix([], ["p1"], ["m1", "m2"])
        [[0, 0]]

    """
    wanted_products = set(products)
    wanted_machines = set(machines)
    pairs: Counter[Tuple[str, str]] = Counter(
        (r.product_id, r.machine_id)
        for r in records
        if r.product_id in wanted_products and r.machine_id in wanted_machines
    )
    return [[pairs[(p, m)] for m in machines] for p in products]


def build_hourly(overall: DimensionalBuckets, quantum: Decimal) -> List[dict]:
    """24 rows, one per hour, zero-filled."""
    rows = []
    for hour in range(24):
        bucket = get_bucket(overall.by_hour, hour)
        rows.append(
            {
                "hour": hour,
                "order_count": bucket.count,
                "total_amount": bucket.amount,
                "average_check": average(bucket.amount, bucket.count, quantum),
            }
        )
    return rows


def build_top_k(
    records: Sequence[TransactionRecord],
    overall: DimensionalBuckets,
    k: int,
) -> dict:
    """Top-K products and machines by transaction count, plus their matrix."""
    products = top_keys(overall.by_product, k)
    machines = top_keys(overall.by_machine, k)
    return {
        "top_products": [
            {
                "product_id": p,
                "product_name": overall.product_info(p).name,
                "order_count": overall.by_product[p].count,
            }
            for p in products
        ],
        "top_machines": [
            {
                "machine_id": m,
                "machine_code": overall.machine_info(m).code,
                "order_count": overall.by_machine[m].count,
            }
            for m in machines
        ],
        "matrix": build_matrix(records, products, machines),
    }
