"""Vend Core - transaction aggregation and financial reconciliation for vending machines.

This package turns a bounded set of vending transactions for one
organization and one period into an auditable report document:

- **Structure A (payment types)**: cash/QR/VIP/credit breakdowns by month,
  weekday, machine, product and date, with per-type drill-downs
- **Structure B (financial)**: revenue, cost of goods and margin, ingredient
  consumption and the delivery-failure audit list
- **Reconciliation**: internal QR totals vs. provider-settled totals per month
- **Cross-analytics**: top-K product x machine matrix, hourly distribution,
  trends and alerts

Module Structure:
    vend_core.transactions: Normalizing and filtering raw records
    vend_core.aggregation: Single-pass dimensional buckets
    vend_core.payments: Structure A and QR provider attribution
    vend_core.financial: Structure B and ingredient consumption
    vend_core.reconciliation: QR reconciliation
    vend_core.analytics: Cross-analysis, trends and alerts
    vend_core.report: generate_report, ReportDocument and the CLI

Quick Start:
    >>> from vend_core import ReportRequest, generate_report
    >>>
    >>> request = ReportRequest.from_strings("2024-03-01", "2024-03-31", "Full")
    >>> doc = generate_report(raw_records, request)  # doctest: +SKIP
    >>> doc.to_frames()["by_machines"].head()  # doctest: +SKIP
"""

__version__ = "0.1.0"

from vend_core.config import ReportConfig, ReportRequest
from vend_core.exceptions import ConfigError, DataQualityError, InvalidRangeError, VendCoreError
from vend_core.report import ReportDocument, generate_report
from vend_core.types import ReportKind

__all__ = [
    "ConfigError",
    "DataQualityError",
    "InvalidRangeError",
    "ReportConfig",
    "ReportDocument",
    "ReportKind",
    "ReportRequest",
    "VendCoreError",
    "__version__",
    "generate_report",
]
