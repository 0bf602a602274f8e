"""QR settlement provider attribution.

The engine has no settlement feed per transaction. Instead, monthly QR
totals are apportioned across named providers by a pluggable attribution
function. The default, ``fixed_ratio_attribution``, applies a static split
and labels every row it produces as an estimate (``estimated=True``,
``method="fixed_ratio"``), so downstream consumers can tell it apart from
real settlement data.

A real attribution function has the same signature
``(month_key, internal_bucket) -> list[ProviderSettlement]`` and can be set
on ``ReportConfig.provider_attribution``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

from vend_core.exceptions import ConfigError
from vend_core.money import CENT, ZERO

if TYPE_CHECKING:
    from vend_core.aggregation import Bucket
    from vend_core.config import ProviderAttribution

DEFAULT_QR_SPLIT: Dict[str, Decimal] = {"Payme": Decimal("0.6"), "Click": Decimal("0.4")}


@dataclass(frozen=True)
class ProviderSettlement:
    """Settled totals attributed to one QR provider for one period.

    Attributes:
        provider: Provider name, e.g. "Payme".
        count: Number of settled payments.
        amount: Settled amount.
        method: How the numbers were obtained ("fixed_ratio" for the estimate).
        estimated: True when the numbers are not real settlement data.
    """

    provider: str
    count: int
    amount: Decimal
    method: str = "fixed_ratio"
    estimated: bool = True

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "count": self.count,
            "amount": self.amount,
            "method": self.method,
            "estimated": self.estimated,
        }


def fixed_ratio_attribution(
    ratios: Optional[Mapping[str, Decimal]] = None,
    quantum: Decimal = CENT,
) -> ProviderAttribution:
    """Build an attribution function applying a static provider split.

    Every provider but the last receives ``floor(total * ratio)`` (counts to
    whole payments, amounts to ``quantum``); the last provider receives the
    remainder, so the attributed totals add back up to the internal totals.

    Args:
        ratios: Provider name -> share, summing to 1 (default 60/40
            Payme/Click). Provider order follows the mapping order.
        quantum: Rounding quantum for amounts.

    Returns:
        Attribution function ``(month_key, bucket) -> list[ProviderSettlement]``.

    Raises:
        ConfigError: If ratios are empty, negative or do not sum to 1.

    Examples:
        >>> from vend_core.aggregation import Bucket
        >>> attribute = fixed_ratio_attribution()
        >>> [s.amount for s in attribute("2024-04", Bucket(3, Decimal("1000")))]
        [Decimal('600.00'), Decimal('400.00')]

    """
    split = {name: Decimal(str(share)) for name, share in (ratios or DEFAULT_QR_SPLIT).items()}
    if not split:
        raise ConfigError("At least one QR provider ratio is required")
    if any(share < 0 for share in split.values()):
        raise ConfigError(f"QR provider ratios must be non-negative: {split}")
    if sum(split.values()) != 1:
        raise ConfigError(f"QR provider ratios must sum to 1, got {sum(split.values())}")

    providers = list(split)

    def attribute(month_key: str, internal: Bucket) -> List[ProviderSettlement]:
        settlements: List[ProviderSettlement] = []
        count_left = internal.count
        amount_left = internal.amount
        for index, name in enumerate(providers):
            if index == len(providers) - 1:
                count, amount = count_left, amount_left
            else:
                share = split[name]
                count = int((internal.count * share).to_integral_value(rounding=ROUND_FLOOR))
                amount = (internal.amount * share).quantize(quantum, rounding=ROUND_FLOOR)
                count_left -= count
                amount_left -= amount
            settlements.append(ProviderSettlement(provider=name, count=count, amount=amount))
        return settlements

    return attribute


def settled_total(settlements: List[ProviderSettlement]) -> Decimal:
    """Sum of settled amounts across providers."""
    return sum((s.amount for s in settlements), ZERO)
