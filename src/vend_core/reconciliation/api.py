"""QR reconciliation: internal QR totals vs. externally settled totals.

For each month, the QR transactions recorded by the machines are compared
with the amounts the settlement providers report. The provider side comes
from ``ReportConfig.provider_attribution``; with the default fixed-ratio
attribution the rows are flagged ``estimated`` since no real settlement
feed is involved.

Severity is a pure function of the discrepancy percentage and two
thresholds, evaluated high to low:

    difference_percent >= critical_threshold  -> CRITICAL
    difference_percent >= warning_threshold   -> WARNING
    otherwise                                 -> OK
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, List

from vend_core.aggregation import Bucket, aggregate
from vend_core.money import percent
from vend_core.payments.providers import ProviderSettlement, settled_total
from vend_core.types import PaymentType, ReconciliationStatus

if TYPE_CHECKING:
    from vend_core.config import ReportConfig
    from vend_core.transactions import TransactionRecord

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationRow:
    """Reconciliation result for one month.

    Attributes:
        month: Month key ("YYYY-MM").
        internal: QR orders recorded internally.
        providers: Settled totals per provider.
        external_total: Sum of provider amounts.
        difference: internal amount - external total.
        difference_percent: |difference| / internal amount * 100, 2 decimals.
        status: OK, WARNING or CRITICAL.
    """

    month: str
    internal: Bucket
    providers: List[ProviderSettlement] = field(default_factory=list)
    external_total: Decimal = Decimal("0")
    difference: Decimal = Decimal("0")
    difference_percent: Decimal = Decimal("0")
    status: ReconciliationStatus = ReconciliationStatus.OK

    @property
    def estimated(self) -> bool:
        return any(p.estimated for p in self.providers)

    def to_dict(self) -> dict:
        return {
            "month": self.month,
            "internal": self.internal.to_dict(),
            "providers": [p.to_dict() for p in self.providers],
            "external_total": self.external_total,
            "difference": self.difference,
            "difference_percent": self.difference_percent,
            "status": self.status.value,
            "estimated": self.estimated,
        }


def classify_discrepancy(
    difference_percent: Decimal,
    warning_threshold: Decimal,
    critical_threshold: Decimal,
) -> ReconciliationStatus:
    """Map a discrepancy percentage to a status.

    Examples:
        >>> classify_discrepancy(Decimal("10"), Decimal("1"), Decimal("3"))
        <ReconciliationStatus.CRITICAL: 'CRITICAL'>
        >>> classify_discrepancy(Decimal("0.5"), Decimal("1"), Decimal("3"))
        <ReconciliationStatus.OK: 'OK'>

    """
    if difference_percent >= critical_threshold:
        return ReconciliationStatus.CRITICAL
    if difference_percent >= warning_threshold:
        return ReconciliationStatus.WARNING
    return ReconciliationStatus.OK


def reconcile_month(month: str, internal: Bucket, config: ReportConfig) -> ReconciliationRow:
    providers = list(config.provider_attribution(month, internal))
    external_total = settled_total(providers)
    difference = internal.amount - external_total
    difference_percent = percent(abs(difference), internal.amount)
    return ReconciliationRow(
        month=month,
        internal=internal,
        providers=providers,
        external_total=external_total,
        difference=difference,
        difference_percent=difference_percent,
        status=classify_discrepancy(
            difference_percent, config.warning_threshold, config.critical_threshold
        ),
    )


def reconcile_qr(
    records: Iterable[TransactionRecord],
    config: ReportConfig,
) -> List[ReconciliationRow]:
    """Reconcile QR payments month by month.

    Args:
        records: Paid revenue transactions; non-QR ones are ignored.
        config: ReportConfig with thresholds and provider attribution.

    Returns:
        One ReconciliationRow per month with QR activity, in month order.

    """
    qr = aggregate(r for r in records if r.payment_type is PaymentType.QR)
    rows = [reconcile_month(month, qr.by_month[month], config) for month in sorted(qr.by_month)]

    flagged = [row.month for row in rows if row.status is not ReconciliationStatus.OK]
    if flagged:
        logger.info("QR reconciliation flagged months: %s", flagged)
    return rows
