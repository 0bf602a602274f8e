"""Transaction normalization.

Raw joined records from the transaction source (transaction x machine x
location x product) are mapped into immutable ``TransactionRecord`` values
before any aggregation:

Example:
    >>> from vend_core.transactions import normalize_records
    >>> records = normalize_records([
    ...     {"id": "t1", "createdAt": "2024-03-05T10:15:00", "amount": 10000,
    ...      "paymentMethod": "cash", "status": "completed",
    ...      "machineId": "m1", "productId": "p1"},
    ... ])
    >>> records[0].payment_type
    <PaymentType.CASH: 'CASH'>

"""

from vend_core.transactions.normalize import (
    TransactionRecord,
    normalize_frame,
    normalize_record,
    normalize_records,
)
from vend_core.transactions.select import select_transactions

__all__ = [
    "TransactionRecord",
    "normalize_frame",
    "normalize_record",
    "normalize_records",
    "select_transactions",
]
