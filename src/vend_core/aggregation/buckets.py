"""Single-pass aggregation into seven keyed bucket maps.

One pass over the transactions fills, per record, exactly one bucket in
each dimension:

- payment type, machine id, product id
- month ("YYYY-MM"), weekday (0 = Monday .. 6 = Sunday)
- date ("YYYY-MM-DD"), hour (0-23)

Accumulation is purely additive on Decimal values, so the result does not
depend on input order. The maps carry no ordering; builders sort with an
explicit key.

Records without a machine or product key still count in ``total`` and the
other dimensions; they are skipped in that one dimension and counted in
``missing_keys``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import (
    TYPE_CHECKING,
    Callable,
    Dict,
    Hashable,
    Iterable,
    Mapping,
    NamedTuple,
    Optional,
    TypeVar,
)

from vend_core.money import ZERO
from vend_core.types import PaymentType

if TYPE_CHECKING:
    from vend_core.transactions import TransactionRecord

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

DIMENSIONS = ("payment_type", "machine", "product", "month", "weekday", "date", "hour")

ValueFn = Callable[["TransactionRecord"], Decimal]


@dataclass
class Bucket:
    """Count/amount accumulator for one value of one dimension."""

    count: int = 0
    amount: Decimal = ZERO

    def add(self, amount: Decimal) -> None:
        self.count += 1
        self.amount += amount

    def to_dict(self) -> dict:
        return {"count": self.count, "amount": self.amount}


class MachineInfo(NamedTuple):
    code: str
    address: str


class ProductInfo(NamedTuple):
    name: str
    category: str


def pick_label(current: Optional[tuple], candidate: tuple) -> tuple:
    # Non-empty labels beat empty ones; among non-empty, the smallest wins
    if current is None:
        return candidate
    if not any(current) and any(candidate):
        return candidate
    if any(candidate) and candidate < current:
        return candidate
    return current


def _bump(buckets: Dict[K, Bucket], key: K, amount: Decimal) -> None:
    bucket = buckets.get(key)
    if bucket is None:
        bucket = buckets[key] = Bucket()
    bucket.add(amount)


def get_bucket(buckets: Mapping[K, Bucket], key: K) -> Bucket:
    """Return the bucket for key, or an empty one (not stored)."""
    return buckets.get(key) or Bucket()


@dataclass
class DimensionalBuckets:
    """Bucket maps for all seven dimensions plus the grand total.

    Attributes:
        total: All records added.
        by_payment_type: PaymentType -> Bucket.
        by_machine: machine id -> Bucket.
        by_product: product id -> Bucket.
        by_month: "YYYY-MM" -> Bucket.
        by_weekday: 0 (Monday) .. 6 (Sunday) -> Bucket.
        by_date: "YYYY-MM-DD" -> Bucket.
        by_hour: 0..23 -> Bucket.
        machines: machine id -> display info.
        products: product id -> display info.
        missing_keys: dimension name -> records skipped for lack of a key.
    """

    total: Bucket = field(default_factory=Bucket)
    by_payment_type: Dict[PaymentType, Bucket] = field(default_factory=dict)
    by_machine: Dict[str, Bucket] = field(default_factory=dict)
    by_product: Dict[str, Bucket] = field(default_factory=dict)
    by_month: Dict[str, Bucket] = field(default_factory=dict)
    by_weekday: Dict[int, Bucket] = field(default_factory=dict)
    by_date: Dict[str, Bucket] = field(default_factory=dict)
    by_hour: Dict[int, Bucket] = field(default_factory=dict)
    machines: Dict[str, MachineInfo] = field(default_factory=dict)
    products: Dict[str, ProductInfo] = field(default_factory=dict)
    missing_keys: Dict[str, int] = field(default_factory=dict)

    def add(self, record: TransactionRecord, amount: Decimal) -> None:
        """Add one record's amount to one bucket in every dimension."""
        ts = record.timestamp
        self.total.add(amount)
        _bump(self.by_payment_type, record.payment_type, amount)
        _bump(self.by_month, record.month_key, amount)
        _bump(self.by_weekday, ts.weekday(), amount)
        _bump(self.by_date, record.date_key, amount)
        _bump(self.by_hour, ts.hour, amount)

        if record.machine_id is None:
            self.missing_keys["machine"] = self.missing_keys.get("machine", 0) + 1
        else:
            _bump(self.by_machine, record.machine_id, amount)
            self.machines[record.machine_id] = pick_label(
                self.machines.get(record.machine_id),
                MachineInfo(record.machine_code, record.machine_address),
            )

        if record.product_id is None:
            self.missing_keys["product"] = self.missing_keys.get("product", 0) + 1
        else:
            _bump(self.by_product, record.product_id, amount)
            self.products[record.product_id] = pick_label(
                self.products.get(record.product_id),
                ProductInfo(record.product_name, record.product_category),
            )

    def dimension(self, name: str) -> Dict:
        """Return the bucket map for a dimension name (see DIMENSIONS)."""
        if name not in DIMENSIONS:
            raise KeyError(f"Unknown dimension '{name}'. Must be one of {DIMENSIONS}")
        return getattr(self, f"by_{name}")

    def machine_info(self, machine_id: str) -> MachineInfo:
        return self.machines.get(machine_id, MachineInfo("", ""))

    def product_info(self, product_id: str) -> ProductInfo:
        return self.products.get(product_id, ProductInfo("", ""))


def _amount(record: TransactionRecord) -> Decimal:
    return record.amount


def aggregate(
    records: Iterable[TransactionRecord],
    value: Optional[ValueFn] = None,
) -> DimensionalBuckets:
    """Aggregate records into all seven dimensions in one O(n) pass.

    Args:
        records: Transactions, already filtered by the caller.
        value: Optional function giving the amount to accumulate per record
            (default: ``record.amount``). Used to sum cost of goods with the
            same bucket layout.

    Returns:
        DimensionalBuckets with fresh, call-local state.

    """
    value = value or _amount
    result = DimensionalBuckets()
    for record in records:
        result.add(record, value(record))

    if result.missing_keys:
        logger.debug("Records skipped per dimension for missing keys: %s", result.missing_keys)
    return result


def aggregate_by(
    records: Iterable[TransactionRecord],
    key: Callable[[TransactionRecord], K],
    value: Optional[ValueFn] = None,
) -> Dict[K, DimensionalBuckets]:
    """Partition records by ``key`` and aggregate each partition, in one pass.

    This is the sub-split used by the report builders, e.g. partitioning by
    payment type gives per-type buckets for every dimension.

    Args:
        records: Transactions.
        key: Partition function.
        value: Optional amount function (see ``aggregate``).

    Returns:
        Mapping partition key -> DimensionalBuckets. Partitions with no
        records are absent.

    """
    value = value or _amount
    result: Dict[K, DimensionalBuckets] = {}
    for record in records:
        part = key(record)
        buckets = result.get(part)
        if buckets is None:
            buckets = result[part] = DimensionalBuckets()
        buckets.add(record, value(record))
    return result
