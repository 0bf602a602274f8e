"""Apply the request filters to normalized transactions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List

from vend_core.types import PaymentType

if TYPE_CHECKING:
    from vend_core.config import ReportRequest
    from vend_core.transactions.normalize import TransactionRecord

logger = logging.getLogger(__name__)


def select_transactions(
    records: Iterable[TransactionRecord],
    request: ReportRequest,
) -> List[TransactionRecord]:
    """Keep the transactions the request covers.

    Applies, in order: the inclusive date range (on the calendar date of the
    timestamp), machine/product/location filters, and TEST exclusion unless
    ``include_test_orders`` is set. Input order is preserved.

    Args:
        records: Normalized transactions.
        request: ReportRequest with period and filters.

    Returns:
        Filtered list of TransactionRecord.

    """
    machine_ids = set(request.machine_ids or [])
    product_ids = set(request.product_ids or [])
    location_ids = set(request.location_ids or [])

    selected: List[TransactionRecord] = []
    dropped = 0
    for record in records:
        day = record.timestamp.date()
        if day < request.date_from or day > request.date_to:
            dropped += 1
            continue
        if machine_ids and record.machine_id not in machine_ids:
            dropped += 1
            continue
        if product_ids and record.product_id not in product_ids:
            dropped += 1
            continue
        if location_ids and record.location_id not in location_ids:
            dropped += 1
            continue
        if not request.include_test_orders and record.payment_type is PaymentType.TEST:
            dropped += 1
            continue
        selected.append(record)

    if dropped:
        logger.debug("Filtered out %d transactions, %d remain", dropped, len(selected))
    return selected
