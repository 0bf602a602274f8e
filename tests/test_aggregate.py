"""Tests for single-pass dimensional aggregation."""

import random
from decimal import Decimal

import pytest

from vend_core.aggregation import DIMENSIONS, Bucket, aggregate, aggregate_by, pick_label
from vend_core.types import PaymentType


class TestAggregate:
    """Bucket maps built by ``aggregate``."""

    @pytest.fixture
    def records(self, make_record):
        """Mixed transactions, two of them lacking a join key."""
        return [
            make_record("t1", "2024-03-04 08:10:00", "1000.50", payment="cash", machine="M1"),
            make_record("t2", "2024-03-05 09:20:00", "2000", payment="payme", machine="M2"),
            make_record("t3", "2024-03-05 09:40:00", "3000", payment="vip", product="P2"),
            make_record("t4", "2024-04-10 23:00:00", "4000.25", payment="credit", machine=None),
            make_record("t5", "2024-04-14 00:05:00", "500", payment="click", product=None),
        ]

    def test_conservation_per_dimension(self, records) -> None:
        """Test that bucket amounts over a complete dimension add up to the total."""
        result = aggregate(records)
        total = sum((r.amount for r in records), Decimal("0"))

        assert result.total.amount == total
        assert result.total.count == len(records)
        for name in ("payment_type", "month", "weekday", "date", "hour"):
            buckets = result.dimension(name)
            assert sum((b.amount for b in buckets.values()), Decimal("0")) == total, (
                f"amounts over {name} do not add up"
            )
            assert sum(b.count for b in buckets.values()) == len(records)

    def test_missing_keys_excluded_from_one_dimension(self, records) -> None:
        """Test that records without a machine/product key are counted but not bucketed."""
        result = aggregate(records)

        assert result.missing_keys == {"machine": 1, "product": 1}
        machine_total = sum((b.amount for b in result.by_machine.values()), Decimal("0"))
        assert machine_total == result.total.amount - Decimal("4000.25")
        assert "P2" in result.by_product
        assert sum(b.count for b in result.by_product.values()) == 4

    def test_dimension_keys(self, records) -> None:
        """Test month, weekday (Monday = 0), date and hour keys."""
        result = aggregate(records)

        assert set(result.by_month) == {"2024-03", "2024-04"}
        # 2024-03-04 is a Monday, 2024-03-05 a Tuesday, 2024-04-14 a Sunday
        assert result.by_weekday[0].count == 1
        assert result.by_weekday[1].count == 2
        assert result.by_weekday[6].count == 1
        assert result.by_date["2024-03-05"] == Bucket(2, Decimal("5000"))
        assert result.by_hour[9].count == 2
        assert result.by_hour[0].amount == Decimal("500")
        assert result.by_payment_type[PaymentType.QR] == Bucket(2, Decimal("2500"))

    def test_order_independence(self, records) -> None:
        """Test that shuffling the input does not change any bucket."""
        shuffled = list(records)
        random.Random(7).shuffle(shuffled)

        assert aggregate(shuffled) == aggregate(records)
        assert aggregate(list(reversed(records))) == aggregate(records)

    def test_empty_input(self) -> None:
        """Test that no records give an empty, zero total."""
        result = aggregate([])

        assert result.total == Bucket(0, Decimal("0"))
        assert all(result.dimension(name) == {} for name in DIMENSIONS)

    def test_unknown_dimension(self) -> None:
        """Test that asking for an unknown dimension raises KeyError."""
        with pytest.raises(KeyError):
            aggregate([]).dimension("region")

    def test_custom_value(self, make_record) -> None:
        """Test aggregating another per-record value with the same layout."""
        records = [
            make_record("a", "2024-03-01 10:00", 100, costOfGoods=40),
            make_record("b", "2024-03-01 11:00", 100, costOfGoods=25),
        ]

        result = aggregate(records, value=lambda r: r.cost_of_goods)

        assert result.total == Bucket(2, Decimal("65"))


def test_aggregate_by_partitions(make_record) -> None:
    """Test that partitions are aggregated independently in one pass."""
    records = [
        make_record("a", "2024-03-01 10:00", 100, payment="cash"),
        make_record("b", "2024-03-01 11:00", 200, payment="qr"),
        make_record("c", "2024-03-02 12:00", 300, payment="cash"),
    ]

    parts = aggregate_by(records, key=lambda r: r.payment_type)

    assert set(parts) == {PaymentType.CASH, PaymentType.QR}
    assert parts[PaymentType.CASH].total == Bucket(2, Decimal("400"))
    assert parts[PaymentType.QR].by_date == {"2024-03-01": Bucket(1, Decimal("200"))}


def test_pick_label_is_deterministic() -> None:
    """Test that label choice does not depend on the order labels are seen."""
    labels = [("", ""), ("VH-2", "B street"), ("VH-1", "A street")]

    forward = None
    for label in labels:
        forward = pick_label(forward, label)
    backward = None
    for label in reversed(labels):
        backward = pick_label(backward, label)

    assert forward == backward == ("VH-1", "A street")
