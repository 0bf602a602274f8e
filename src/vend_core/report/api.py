"""Public API for report generation.

``generate_report`` is the one entry point callers need: it validates the
request and configuration, normalizes and filters the transactions, and
assembles the structures the report kind asks for into a ReportDocument.

The call is pure apart from logging: no file or network I/O, no state kept
between calls.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable, List, Mapping, Optional, Union

import pandas as pd

from vend_core.analytics import build_analytics
from vend_core.config import ReportConfig, ReportRequest
from vend_core.financial import build_structure_b
from vend_core.payments import build_structure_a, revenue_transactions
from vend_core.reconciliation import reconcile_qr
from vend_core.report.document import ReportDocument, ReportMetadata, generated_now, new_report_id
from vend_core.transactions import (
    TransactionRecord,
    normalize_frame,
    normalize_record,
    select_transactions,
)

logger = logging.getLogger(__name__)

RawInput = Union[pd.DataFrame, Iterable[Union[TransactionRecord, Mapping[str, Any]]]]


def _to_records(raw: RawInput) -> List[TransactionRecord]:
    if isinstance(raw, pd.DataFrame):
        return normalize_frame(raw)
    return [
        item if isinstance(item, TransactionRecord) else normalize_record(item) for item in raw
    ]


def count_missing_keys(records: Iterable[TransactionRecord]) -> dict:
    """Records lacking a machine or product key, per dimension."""
    missing = {"machine": 0, "product": 0}
    for record in records:
        if record.machine_id is None:
            missing["machine"] += 1
        if record.product_id is None:
            missing["product"] += 1
    return missing


def _filters(request: ReportRequest) -> dict:
    return {
        "machine_ids": sorted(request.machine_ids) if request.machine_ids else None,
        "product_ids": sorted(request.product_ids) if request.product_ids else None,
        "location_ids": sorted(request.location_ids) if request.location_ids else None,
        "include_test_orders": request.include_test_orders,
    }


def generate_report(
    transactions: RawInput,
    request: ReportRequest,
    config: Optional[ReportConfig] = None,
) -> ReportDocument:
    """Generate a vending report for one period.

    Args:
        transactions: Raw joined records (mappings or a DataFrame) or
            already normalized TransactionRecord values.
        request: ReportRequest (period, kind, filters).
        config: ReportConfig; defaults are used when omitted.

    Returns:
        ReportDocument with the structures the kind asks for. PaymentTypes
        and Financial kinds carry their structure plus QR reconciliation;
        Full carries both structures, reconciliation and cross-analytics.

    Raises:
        InvalidRangeError: If date_from is after date_to.
        ConfigError: If the kind is unknown or the config is inconsistent.
        DataQualityError: If a raw record has no usable timestamp or amount.

    Examples:
        >>> from vend_core import ReportRequest
        >>> request = ReportRequest.from_strings("2024-01-01", "2024-01-31")
        >>> doc = generate_report([], request)
        >>> doc.payment_types.summary["total_paid"]["order_count"]
        0
        >>> len(doc.analytics.hourly)
        24

    """
    request.validate()
    config = config or ReportConfig()
    config.validate()

    started = time.perf_counter()
    generated_at = generated_now()
    logger.info(
        "Generating %s report for %s..%s",
        request.kind.value,
        request.date_from.isoformat(),
        request.date_to.isoformat(),
    )

    records = select_transactions(_to_records(transactions), request)
    logger.info("Selected %d transactions", len(records))

    missing = count_missing_keys(records)
    for dimension, count in missing.items():
        if count:
            logger.warning(
                "%d transactions have no %s key; excluded from the %s breakdown",
                count,
                dimension,
                dimension,
            )

    revenue = revenue_transactions(records)
    structure_a = structure_b = analytics = None
    if request.kind.includes_payment_types:
        structure_a = build_structure_a(records, request, config)
    if request.kind.includes_financial:
        structure_b = build_structure_b(records, request, config)
    reconciliation = reconcile_qr(revenue, config)
    if structure_a is not None and structure_b is not None:
        analytics = build_analytics(revenue, structure_b, reconciliation, config)

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    metadata = ReportMetadata(
        report_id=new_report_id(),
        generated_at=generated_at,
        period={
            "from": request.date_from.isoformat(),
            "to": request.date_to.isoformat(),
            "day_count": request.day_count,
        },
        kind=request.kind.value,
        filters=_filters(request),
        organization_id=request.organization_id,
        transaction_count=len(records),
        data_quality=missing,
        generation_time_ms=elapsed_ms,
    )
    logger.info("Report %s generated in %d ms", metadata.report_id, elapsed_ms)

    return ReportDocument(
        metadata=metadata,
        payment_types=structure_a,
        financial=structure_b,
        reconciliation=reconciliation,
        analytics=analytics,
    )
