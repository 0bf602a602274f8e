"""Tests for QR reconciliation."""

from decimal import Decimal

import pytest

from vend_core.aggregation import Bucket
from vend_core.config import ReportConfig
from vend_core.payments import ProviderSettlement
from vend_core.reconciliation import classify_discrepancy, reconcile_month, reconcile_qr
from vend_core.types import ReconciliationStatus


def settled_at(external: Decimal):
    """Attribution stub reporting a fixed settled amount for every month."""

    def attribute(month_key, internal):
        return [
            ProviderSettlement("Payme", internal.count, external, method="feed", estimated=False)
        ]

    return attribute


class TestReconcileQr:
    """Monthly QR reconciliation."""

    def test_critical_discrepancy(self, make_record) -> None:
        """Test 50000 recorded vs 45000 settled: 10% discrepancy, CRITICAL."""
        records = [
            make_record("a", "2024-04-03 10:00", 20000, payment="payme"),
            make_record("b", "2024-04-20 10:00", 30000, payment="click"),
            make_record("c", "2024-04-20 11:00", 7000, payment="cash"),
        ]
        config = ReportConfig(provider_attribution=settled_at(Decimal("45000")))

        rows = reconcile_qr(records, config)

        assert len(rows) == 1
        row = rows[0]
        assert row.month == "2024-04"
        assert row.internal == Bucket(2, Decimal("50000"))
        assert row.external_total == Decimal("45000")
        assert row.difference == Decimal("5000")
        assert row.difference_percent == Decimal("10.00")
        assert row.status is ReconciliationStatus.CRITICAL
        assert row.estimated is False

    def test_default_split_reconciles(self, make_record) -> None:
        """Test that the fixed split settles everything and is marked estimated."""
        records = [
            make_record("a", "2024-03-03 10:00", 1234, payment="qr"),
            make_record("b", "2024-04-20 10:00", 999, payment="qr"),
        ]

        rows = reconcile_qr(records, ReportConfig())

        assert [r.month for r in rows] == ["2024-03", "2024-04"]
        assert all(r.status is ReconciliationStatus.OK for r in rows)
        assert all(r.difference == 0 for r in rows)
        assert all(r.estimated for r in rows)
        assert rows[0].to_dict()["providers"][0]["provider"] == "Payme"

    def test_no_qr_activity(self, make_record) -> None:
        """Test that months without QR orders produce no rows."""
        records = [make_record("a", "2024-03-03 10:00", 1234, payment="cash")]

        assert reconcile_qr(records, ReportConfig()) == []

    def test_zero_internal_amount(self) -> None:
        """Test that a zero internal amount gives a 0% discrepancy."""
        config = ReportConfig(provider_attribution=settled_at(Decimal("0")))

        row = reconcile_month("2024-03", Bucket(1, Decimal("0")), config)

        assert row.difference_percent == 0
        assert row.status is ReconciliationStatus.OK


class TestClassifyDiscrepancy:
    """Threshold classification."""

    @pytest.mark.parametrize(
        "pct,expected",
        [
            ("0", ReconciliationStatus.OK),
            ("0.99", ReconciliationStatus.OK),
            ("1.00", ReconciliationStatus.WARNING),
            ("2.99", ReconciliationStatus.WARNING),
            ("3.00", ReconciliationStatus.CRITICAL),
            ("25", ReconciliationStatus.CRITICAL),
        ],
    )
    def test_default_thresholds(self, pct, expected) -> None:
        """Test classification at and around the default 1% / 3% thresholds."""
        config = ReportConfig()

        status = classify_discrepancy(
            Decimal(pct), config.warning_threshold, config.critical_threshold
        )

        assert status is expected

    def test_monotonic(self) -> None:
        """Test that a growing discrepancy never lowers the severity."""
        rank = {
            ReconciliationStatus.OK: 0,
            ReconciliationStatus.WARNING: 1,
            ReconciliationStatus.CRITICAL: 2,
        }
        levels = [
            rank[classify_discrepancy(Decimal(n) / 10, Decimal("1"), Decimal("3"))]
            for n in range(0, 60)
        ]

        assert levels == sorted(levels)
        assert levels[0] == 0 and levels[-1] == 2
