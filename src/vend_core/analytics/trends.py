"""Trend deltas between the first and last month of the financial report."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import List

from vend_core.money import ZERO, percent


@dataclass(frozen=True)
class Trends:
    """Growth between first and last month.

    Attributes:
        revenue_growth: Revenue change in percent of the first month.
        order_growth: Order count change in percent of the first month.
        margin_trend: Margin change in percentage points.
        months_compared: Number of monthly rows available (no signal below 2).
    """

    revenue_growth: Decimal = ZERO
    order_growth: Decimal = ZERO
    margin_trend: Decimal = ZERO
    months_compared: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def compute_trends(monthly_rows: List[dict]) -> Trends:
    """Compare the first and last monthly financial rows.

    With fewer than two months there is no signal and all deltas are 0.

    Args:
        monthly_rows: Month-ordered rows with revenue, order_count and
            margin_percent (Structure B ``by_months``).

    Returns:
        Trends.

    """
    if len(monthly_rows) < 2:
        return Trends(months_compared=len(monthly_rows))

    first, last = monthly_rows[0], monthly_rows[-1]
    return Trends(
        revenue_growth=percent(last["revenue"] - first["revenue"], first["revenue"]),
        order_growth=percent(last["order_count"] - first["order_count"], first["order_count"]),
        margin_trend=last["margin_percent"] - first["margin_percent"],
        months_compared=len(monthly_rows),
    )
