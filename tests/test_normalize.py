"""Tests for transaction normalization and request filtering."""

import logging
from datetime import datetime
from decimal import Decimal

import pandas as pd
import pytest

from vend_core.config import ReportRequest
from vend_core.exceptions import DataQualityError
from vend_core.transactions import (
    normalize_frame,
    normalize_record,
    normalize_records,
    select_transactions,
)
from vend_core.transactions.normalize import map_delivery_status, map_payment_status
from vend_core.types import DeliveryStatus, PaymentStatus, PaymentType


class TestNormalizeRecord:
    """Mapping of one raw joined record."""

    def test_camel_case_record(self, make_raw) -> None:
        """Test that a source-shaped record maps onto typed fields."""
        raw = make_raw("t1", "2024-03-05T10:15:00", "10000", payment="Payme")
        record = normalize_record(raw)

        assert record.id == "t1"
        assert record.timestamp == datetime(2024, 3, 5, 10, 15)
        assert record.amount == Decimal("10000")
        assert record.payment_type is PaymentType.QR
        assert record.payment_status is PaymentStatus.PAID
        assert record.delivery_status is DeliveryStatus.DELIVERED
        assert record.machine_id == "M1"
        assert record.machine_code == "VH-M1"
        assert record.product_name == "Product P1"
        assert record.month_key == "2024-03"
        assert record.date_key == "2024-03-05"

    def test_snake_case_record(self) -> None:
        """Test that snake_case field names are accepted too."""
        record = normalize_record(
            {
                "id": "t2",
                "created_at": datetime(2024, 1, 2, 8, 0),
                "amount": 5000,
                "payment_type": "vip",
                "machine_id": "M9",
                "product_id": "P9",
            }
        )

        assert record.payment_type is PaymentType.VIP
        assert record.machine_id == "M9"
        assert record.product_id == "P9"

    def test_optional_fields_default_to_empty(self) -> None:
        """Test that missing optional fields never become None in arithmetic."""
        record = normalize_record({"id": "t3", "createdAt": "2024-01-02 08:00", "amount": 100})

        assert record.cost_of_goods == Decimal("0")
        assert dict(record.ingredient_usage) == {}
        assert record.machine_id is None
        assert record.product_id is None
        assert record.machine_code == ""
        # No delivery status means the order was delivered
        assert record.is_delivered is True

    def test_unknown_payment_method_counts_as_cash(self, make_raw, caplog) -> None:
        """Test that an unknown payment method falls back to CASH with a warning."""
        with caplog.at_level(logging.WARNING):
            record = normalize_record(make_raw("t4", "2024-01-02 08:00", 100, payment="bitcoin"))

        assert record.payment_type is PaymentType.CASH
        assert "unknown payment method" in caplog.text

    def test_ingredient_usage_from_json_text(self, make_raw) -> None:
        """Test that ingredient usage stored as JSON text is parsed to Decimals."""
        raw = make_raw(
            "t5", "2024-01-02 08:00", 100, ingredientUsage='{"COFFEE_BEANS": 18, "WATER": 0.25}'
        )
        record = normalize_record(raw)

        assert record.ingredient_usage == {
            "COFFEE_BEANS": Decimal("18"),
            "WATER": Decimal("0.25"),
        }

    def test_unreadable_ingredient_usage_is_ignored(self, make_raw, caplog) -> None:
        """Test that broken ingredient usage is logged and treated as empty."""
        with caplog.at_level(logging.WARNING):
            record = normalize_record(
                make_raw("t6", "2024-01-02 08:00", 100, ingredientUsage="{not json")
            )

        assert dict(record.ingredient_usage) == {}
        assert "unreadable ingredient usage" in caplog.text

    def test_missing_timestamp_raises(self) -> None:
        """Test that a record without a timestamp is rejected with its id."""
        with pytest.raises(DataQualityError, match="t7"):
            normalize_record({"id": "t7", "amount": 100})

    def test_offset_timestamps_become_naive_utc(self, make_raw) -> None:
        """Test that offset-aware timestamps are shifted to UTC and made naive."""
        zulu = normalize_record(make_raw("z", "2024-03-05T10:00:00Z", 100))
        offset = normalize_record(make_raw("o", "2024-03-05T15:00:00+05:00", 100))
        naive = normalize_record(make_raw("n", "2024-03-05 11:00:00", 100))

        assert zulu.timestamp == datetime(2024, 3, 5, 10, 0)
        assert offset.timestamp == datetime(2024, 3, 5, 10, 0)
        assert naive.timestamp == datetime(2024, 3, 5, 11, 0)
        assert all(r.timestamp.tzinfo is None for r in (zulu, offset, naive))
        assert sorted([naive, zulu], key=lambda r: r.timestamp)[0] is zulu

    def test_unparseable_timestamp_raises(self, make_raw) -> None:
        """Test that an unreadable timestamp is rejected with its id."""
        with pytest.raises(DataQualityError, match="t9"):
            normalize_record(make_raw("t9", "not a date", 100))

    def test_invalid_amount_raises(self, make_raw) -> None:
        """Test that an unparseable amount is rejected."""
        with pytest.raises(DataQualityError, match="t8"):
            normalize_record(make_raw("t8", "2024-01-02 08:00", "ten thousand"))


def test_status_mappings() -> None:
    """Test completion and delivery status mapping."""
    assert map_payment_status("completed") is PaymentStatus.PAID
    assert map_payment_status("PAID") is PaymentStatus.PAID
    assert map_payment_status("refunded") is PaymentStatus.REFUNDED
    assert map_payment_status("pending") is PaymentStatus.OTHER

    assert map_delivery_status(None) is DeliveryStatus.DELIVERED
    assert map_delivery_status("DELIVERY_CONFIRMED") is DeliveryStatus.DELIVERY_CONFIRMED
    assert map_delivery_status("delivery failed") is DeliveryStatus.DELIVERY_FAILED
    assert map_delivery_status("brewing") is DeliveryStatus.NOT_DELIVERED


class TestNormalizeFrame:
    """Normalization of CSV-shaped DataFrames."""

    def test_nan_cells_are_missing(self) -> None:
        """Test that NaN join keys become None and rows keep their order."""
        df = pd.DataFrame(
            {
                "id": ["a", "b"],
                "createdAt": ["2024-03-01 09:00:00", "2024-03-02 10:00:00"],
                "amount": [1500.0, 2500.0],
                "paymentMethod": ["cash", "click"],
                "machineId": ["M1", float("nan")],
            }
        )

        records = normalize_frame(df)

        assert [r.id for r in records] == ["a", "b"]
        assert records[0].machine_id == "M1"
        assert records[1].machine_id is None
        assert records[1].payment_type is PaymentType.QR
        assert records[1].amount == Decimal("2500.0")

    def test_missing_required_columns(self) -> None:
        """Test that a frame without an amount column is rejected."""
        df = pd.DataFrame({"id": ["a"], "createdAt": ["2024-03-01"]})

        with pytest.raises(DataQualityError, match="amount"):
            normalize_frame(df)


class TestSelectTransactions:
    """Request filters applied before aggregation."""

    @pytest.fixture
    def records(self, make_raw):
        """Records on and around the January 2024 boundaries."""
        return normalize_records(
            [
                make_raw("before", "2023-12-31 23:59:59", 100),
                make_raw("first", "2024-01-01 00:00:00", 100),
                make_raw("last", "2024-01-31 23:59:59", 100, machine="M2"),
                make_raw("after", "2024-02-01 00:00:00", 100),
                make_raw("test", "2024-01-15 12:00:00", 100, payment="test"),
                make_raw("other", "2024-01-15 12:00:00", 100, product="P2", locationId="L2"),
            ]
        )

    def test_inclusive_date_range_and_test_exclusion(self, records) -> None:
        """Test that both period bounds are inclusive and TEST orders are dropped."""
        request = ReportRequest.from_strings("2024-01-01", "2024-01-31")

        selected = select_transactions(records, request)

        assert [r.id for r in selected] == ["first", "last", "other"]

    def test_include_test_orders(self, records) -> None:
        """Test that TEST orders are kept when requested."""
        request = ReportRequest.from_strings(
            "2024-01-01", "2024-01-31", include_test_orders=True
        )

        selected = select_transactions(records, request)

        assert "test" in [r.id for r in selected]

    def test_dimension_filters(self, records) -> None:
        """Test machine, product and location filters."""
        by_machine = ReportRequest.from_strings("2024-01-01", "2024-01-31", machine_ids=["M2"])
        by_product = ReportRequest.from_strings("2024-01-01", "2024-01-31", product_ids=["P2"])
        by_location = ReportRequest.from_strings("2024-01-01", "2024-01-31", location_ids=["L2"])

        assert [r.id for r in select_transactions(records, by_machine)] == ["last"]
        assert [r.id for r in select_transactions(records, by_product)] == ["other"]
        assert [r.id for r in select_transactions(records, by_location)] == ["other"]
