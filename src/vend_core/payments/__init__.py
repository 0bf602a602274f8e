"""Payment-type report (Structure A).

Example:
    >>> from vend_core.config import ReportConfig, ReportRequest
    >>> from vend_core.payments import build_structure_a
    >>>
    >>> request = ReportRequest.from_strings("2024-01-01", "2024-01-31", "PaymentTypes")
    >>> structure = build_structure_a([], request, ReportConfig())
    >>> len(structure.by_weekdays)
    7

"""

from vend_core.payments.api import StructureA, build_structure_a, revenue_transactions
from vend_core.payments.providers import (
    DEFAULT_QR_SPLIT,
    ProviderSettlement,
    fixed_ratio_attribution,
)

__all__ = [
    "DEFAULT_QR_SPLIT",
    "ProviderSettlement",
    "StructureA",
    "build_structure_a",
    "fixed_ratio_attribution",
    "revenue_transactions",
]
