"""Closed enumerations shared across the report engine."""

from __future__ import annotations

from enum import Enum


class PaymentType(str, Enum):
    """Payment resource of a vending order."""

    CASH = "CASH"
    QR = "QR"
    VIP = "VIP"
    CREDIT = "CREDIT"
    TEST = "TEST"


# Payment types that contribute to revenue, in report column order
REVENUE_TYPES = (PaymentType.CASH, PaymentType.QR, PaymentType.VIP, PaymentType.CREDIT)


class PaymentStatus(str, Enum):
    """Completion status of the payment."""

    PAID = "PAID"
    REFUNDED = "REFUNDED"
    OTHER = "OTHER"


class DeliveryStatus(str, Enum):
    """Dispense (brew) outcome reported by the machine."""

    DELIVERED = "DELIVERED"
    DELIVERY_CONFIRMED = "DELIVERY_CONFIRMED"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    NOT_DELIVERED = "NOT_DELIVERED"

    @property
    def is_successful(self) -> bool:
        """Whether this status belongs to the successful delivery set."""
        return self in SUCCESSFUL_DELIVERY


SUCCESSFUL_DELIVERY = frozenset({DeliveryStatus.DELIVERED, DeliveryStatus.DELIVERY_CONFIRMED})


class ReportKind(str, Enum):
    """Which report structures to build."""

    PAYMENT_TYPES = "PaymentTypes"
    FINANCIAL = "Financial"
    FULL = "Full"

    @property
    def includes_payment_types(self) -> bool:
        return self in (ReportKind.PAYMENT_TYPES, ReportKind.FULL)

    @property
    def includes_financial(self) -> bool:
        return self in (ReportKind.FINANCIAL, ReportKind.FULL)


class ReconciliationStatus(str, Enum):
    OK = "OK"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertKind(str, Enum):
    QR_DISCREPANCY = "qr_discrepancy"
    HIGH_FAILURE_RATE = "high_failure_rate"
    MARGIN_DECLINE = "margin_decline"
