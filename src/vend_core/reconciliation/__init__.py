"""QR settlement reconciliation."""

from vend_core.reconciliation.api import (
    ReconciliationRow,
    classify_discrepancy,
    reconcile_month,
    reconcile_qr,
)

__all__ = ["ReconciliationRow", "classify_discrepancy", "reconcile_month", "reconcile_qr"]
