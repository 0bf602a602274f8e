"""Configuration for report generation.

This module provides the two configuration objects used by the engine:

- ``ReportRequest``: what to report on (period, kind, filters).
- ``ReportConfig``: how to compute it (thresholds, price table, top-K,
  QR provider attribution).

Neither object reads environment variables or files; callers build them
explicitly and pass them to ``generate_report``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

import pandas as pd

from vend_core.exceptions import ConfigError, InvalidRangeError
from vend_core.money import CENT
from vend_core.types import ReportKind

if TYPE_CHECKING:
    from vend_core.aggregation import Bucket
    from vend_core.payments.providers import ProviderSettlement

# (month key, internal QR bucket) -> per-provider settled totals
ProviderAttribution = Callable[[str, "Bucket"], List["ProviderSettlement"]]


@dataclass(frozen=True)
class IngredientPrice:
    """Price-list entry for one ingredient.

    Attributes:
        code: Ingredient code used as key in transaction ingredient usage.
        name: Display name.
        unit: Unit of measure for consumption ("g", "ml", "pcs").
        price_per_unit: Cost of one unit.
        package_size: Units per purchase package, if known.
    """

    code: str
    name: str
    unit: str
    price_per_unit: Decimal
    package_size: Optional[Decimal] = None


DEFAULT_INGREDIENT_PRICES: Dict[str, IngredientPrice] = {
    p.code: p
    for p in [
        IngredientPrice("COFFEE_BEANS", "Coffee beans", "g", Decimal("239")),
        IngredientPrice("DRY_MILK", "Dry milk", "g", Decimal("120")),
        IngredientPrice("SUGAR", "Sugar", "g", Decimal("15")),
        IngredientPrice("CHOCOLATE", "Chocolate", "g", Decimal("178.2")),
        IngredientPrice("MACCOFFEE_3IN1", "MacCoffee 3in1", "g", Decimal("80")),
        IngredientPrice("BERRY_TEA", "Berry tea", "g", Decimal("144")),
        IngredientPrice("LEMON_TEA", "Lemon tea", "g", Decimal("144")),
        IngredientPrice("MATCHA", "Matcha", "g", Decimal("235.2")),
        IngredientPrice("SYRUP_VANILLA", "Vanilla syrup", "ml", Decimal("75")),
        IngredientPrice("SYRUP_CARAMEL", "Caramel syrup", "ml", Decimal("75")),
        IngredientPrice("SYRUP_COCONUT", "Coconut syrup", "ml", Decimal("75")),
        IngredientPrice("WATER", "Water", "ml", Decimal("1.058")),
        IngredientPrice("ICE", "Ice", "g", Decimal("2")),
        IngredientPrice("CUP", "Cup", "pcs", Decimal("3800")),
    ]
}


@dataclass
class ReportRequest:
    """What to report on.

    Attributes:
        date_from: First day of the period (inclusive).
        date_to: Last day of the period (inclusive).
        kind: Which structures to build (default: FULL).
        machine_ids: Optional machine filter.
        product_ids: Optional product filter.
        location_ids: Optional location filter.
        include_test_orders: Keep TEST payments in the input (default False).
        organization_id: Echoed into report metadata.
    """

    date_from: date
    date_to: date
    kind: ReportKind = ReportKind.FULL
    machine_ids: Optional[List[str]] = None
    product_ids: Optional[List[str]] = None
    location_ids: Optional[List[str]] = None
    include_test_orders: bool = False
    organization_id: Optional[str] = None

    def validate(self) -> None:
        """Reject structurally invalid requests.

        Raises:
            InvalidRangeError: If date_from is after date_to.
            ConfigError: If kind is not a ReportKind.
        """
        if not isinstance(self.kind, ReportKind):
            raise ConfigError(f"Unknown report kind: {self.kind!r}")
        if self.date_from > self.date_to:
            raise InvalidRangeError(
                f"date_from {self.date_from.isoformat()} is after date_to {self.date_to.isoformat()}"
            )

    @property
    def day_count(self) -> int:
        """Number of calendar days in the period (inclusive)."""
        return max((self.date_to - self.date_from).days + 1, 0)

    @classmethod
    def from_strings(
        cls,
        date_from: str,
        date_to: str,
        kind: str = ReportKind.FULL.value,
        **kwargs,
    ) -> ReportRequest:
        """Create a request from ISO date strings and a kind name.

        Args:
            date_from: Start date in YYYY-MM-DD format.
            date_to: End date in YYYY-MM-DD format.
            kind: "PaymentTypes", "Financial" or "Full" (case-insensitive).
            **kwargs: Remaining ReportRequest fields.

        Returns:
            Validated ReportRequest.

        Raises:
            ConfigError: If a date cannot be parsed or kind is unknown.
            InvalidRangeError: If date_from is after date_to.

        Examples:
            >>> req = ReportRequest.from_strings("2024-01-01", "2024-01-31", "financial")
            >>> req.kind
            <ReportKind.FINANCIAL: 'Financial'>

        """
        try:
            start = pd.to_datetime(date_from).date()
            end = pd.to_datetime(date_to).date()
        except (ValueError, TypeError, AttributeError) as e:
            raise ConfigError(f"Invalid date format: {e}") from e

        request = cls(date_from=start, date_to=end, kind=parse_report_kind(kind), **kwargs)
        request.validate()
        return request


def parse_report_kind(value: str | ReportKind) -> ReportKind:
    """Resolve a report kind by value or name, case-insensitively."""
    if isinstance(value, ReportKind):
        return value
    wanted = str(value).strip().lower()
    for kind in ReportKind:
        if wanted in (kind.value.lower(), kind.name.lower()):
            return kind
    raise ConfigError(
        f"Unknown report kind '{value}'. Must be one of: {', '.join(k.value for k in ReportKind)}"
    )


def _default_attribution() -> ProviderAttribution:
    # Imported here to avoid a circular import with vend_core.payments
    from vend_core.payments.providers import fixed_ratio_attribution

    return fixed_ratio_attribution()


@dataclass
class ReportConfig:
    """Tuning parameters for report computation.

    Attributes:
        warning_threshold: QR discrepancy (percent) at which a month is WARNING.
        critical_threshold: QR discrepancy (percent) at which a month is CRITICAL.
        failure_warning_rate: Failed/total ratio above which a WARNING alert fires.
        failure_critical_rate: Failed/total ratio above which a CRITICAL alert fires.
        margin_warning_points: Margin trend (points) below which a WARNING alert fires.
        margin_critical_points: Margin trend (points) below which a CRITICAL alert fires.
        ingredient_prices: Ingredient price table keyed by ingredient code.
        top_k: Size of the product x machine cross-analysis matrix.
        top_revenue_limit: Length of top products/machines by revenue lists.
        provider_attribution: Function splitting monthly QR totals across
            settlement providers. The default is an estimate, not a real
            settlement feed.
        money_quantum: Quantum used to round averages and costs.
    """

    warning_threshold: Decimal = Decimal("1")
    critical_threshold: Decimal = Decimal("3")
    failure_warning_rate: Decimal = Decimal("0.05")
    failure_critical_rate: Decimal = Decimal("0.10")
    margin_warning_points: Decimal = Decimal("-5")
    margin_critical_points: Decimal = Decimal("-10")
    ingredient_prices: Dict[str, IngredientPrice] = field(
        default_factory=lambda: dict(DEFAULT_INGREDIENT_PRICES)
    )
    top_k: int = 5
    top_revenue_limit: int = 10
    provider_attribution: ProviderAttribution = field(default_factory=_default_attribution)
    money_quantum: Decimal = CENT

    def validate(self) -> None:
        """Check thresholds and sizes.

        Raises:
            ConfigError: If any threshold is negative or inverted, or a size is < 1.
        """
        if self.warning_threshold < 0 or self.critical_threshold < 0:
            raise ConfigError("Reconciliation thresholds must be non-negative")
        if self.warning_threshold > self.critical_threshold:
            raise ConfigError(
                f"warning_threshold ({self.warning_threshold}) must not exceed "
                f"critical_threshold ({self.critical_threshold})"
            )
        if not 0 <= self.failure_warning_rate <= self.failure_critical_rate:
            raise ConfigError("Failure rate thresholds must satisfy 0 <= warning <= critical")
        if self.margin_critical_points > self.margin_warning_points:
            raise ConfigError("margin_critical_points must not be above margin_warning_points")
        if self.top_k < 1 or self.top_revenue_limit < 1:
            raise ConfigError("top_k and top_revenue_limit must be at least 1")
        if self.money_quantum <= 0:
            raise ConfigError("money_quantum must be positive")
