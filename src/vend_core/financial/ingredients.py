"""Ingredient consumption and cost for successfully delivered orders.

Ingredient usage maps are summed across transactions globally and per
month, machine and day, then priced with the configured price table.
``packages_used`` is only computed when the price entry declares a package
size; otherwise it stays None.
"""

from __future__ import annotations

import logging
from decimal import ROUND_CEILING, Decimal
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional

from vend_core.aggregation import MachineInfo, pick_label
from vend_core.money import ZERO, round_money

if TYPE_CHECKING:
    from vend_core.config import IngredientPrice
    from vend_core.transactions import TransactionRecord

logger = logging.getLogger(__name__)

Usage = Dict[str, Decimal]


def _accumulate(target: Usage, usage: Mapping[str, Decimal]) -> None:
    for code, qty in usage.items():
        target[code] = target.get(code, ZERO) + qty


def usage_cost(
    usage: Mapping[str, Decimal],
    prices: Mapping[str, IngredientPrice],
    quantum: Decimal,
) -> Decimal:
    """Cost of a consumption map; unpriced ingredients cost nothing."""
    total = ZERO
    for code, qty in usage.items():
        price = prices.get(code)
        if price is not None:
            total += qty * price.price_per_unit
    return round_money(total, quantum)


def packages_used(consumption: Decimal, price: Optional[IngredientPrice]) -> Optional[int]:
    """Whole packages needed for a consumption, None without a package size."""
    if price is None or not price.package_size:
        return None
    return int((consumption / price.package_size).to_integral_value(rounding=ROUND_CEILING))


def _sorted_usage(usage: Usage) -> Usage:
    return {code: usage[code] for code in sorted(usage)}


def build_ingredient_consumption(
    records: Iterable[TransactionRecord],
    prices: Mapping[str, IngredientPrice],
    quantum: Decimal,
) -> dict:
    """Sum ingredient usage and price it.

    Args:
        records: Successfully delivered transactions only.
        prices: Ingredient price table keyed by code.
        quantum: Rounding quantum for costs.

    Returns:
        Dict with ``summary`` (one row per priced or consumed ingredient),
        ``by_months``, ``by_machines`` and ``by_days``.

    """
    totals: Usage = {}
    by_month: Dict[str, Usage] = {}
    by_machine: Dict[str, Usage] = {}
    by_date: Dict[str, Usage] = {}
    machines: Dict[str, MachineInfo] = {}

    for record in records:
        usage = record.ingredient_usage
        _accumulate(totals, usage)
        _accumulate(by_month.setdefault(record.month_key, {}), usage)
        _accumulate(by_date.setdefault(record.date_key, {}), usage)
        if record.machine_id is not None:
            _accumulate(by_machine.setdefault(record.machine_id, {}), usage)
            machines[record.machine_id] = pick_label(
                machines.get(record.machine_id),
                MachineInfo(record.machine_code, record.machine_address),
            )

    unpriced = sorted(code for code in totals if code not in prices)
    if unpriced:
        logger.warning("Ingredients consumed without a price entry (costed as 0): %s", unpriced)

    summary = []
    for code in [*prices, *unpriced]:
        price = prices.get(code)
        consumption = totals.get(code, ZERO)
        summary.append(
            {
                "ingredient_code": code,
                "ingredient_name": price.name if price else code,
                "unit": price.unit if price else "",
                "price_per_unit": price.price_per_unit if price else None,
                "total_consumption": consumption,
                "packages_used": packages_used(consumption, price),
                "total_cost": usage_cost({code: consumption}, prices, quantum),
            }
        )

    return {
        "summary": summary,
        "by_months": [
            {
                "month": month,
                "ingredients": _sorted_usage(by_month[month]),
                "total_cost": usage_cost(by_month[month], prices, quantum),
            }
            for month in sorted(by_month)
        ],
        "by_machines": [
            {
                "machine_id": machine_id,
                "machine_code": machines[machine_id].code,
                "address": machines[machine_id].address,
                "ingredients": _sorted_usage(by_machine[machine_id]),
                "total_cost": usage_cost(by_machine[machine_id], prices, quantum),
            }
            for machine_id in sorted(by_machine)
        ],
        "by_days": [
            {
                "date": day,
                "ingredients": _sorted_usage(by_date[day]),
                "total_cost": usage_cost(by_date[day], prices, quantum),
            }
            for day in sorted(by_date)
        ],
    }
