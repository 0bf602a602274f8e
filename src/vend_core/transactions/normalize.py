"""Map raw joined transaction records into typed TransactionRecord values.

The transaction source delivers loosely typed rows, either as mappings
(ORM/JSON results) or as a pandas DataFrame (CSV exports). This module
turns each row into a frozen ``TransactionRecord``:

- Required: id, timestamp, amount.
- Payment method, completion and delivery status are mapped onto closed
  enums (see ``vend_core.types``).
- Machine and product keys may be missing; the record is still kept and
  the aggregator excludes it from that dimension only.
- Optional ingredient usage and cost of goods default to empty/zero so
  arithmetic never meets a null.

Field names are accepted in camelCase (as the source emits them) and in
snake_case.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from vend_core.exceptions import DataQualityError
from vend_core.money import ZERO, to_money
from vend_core.types import DeliveryStatus, PaymentStatus, PaymentType

logger = logging.getLogger(__name__)

PAYMENT_METHOD_MAP = {
    "cash": PaymentType.CASH,
    "qr": PaymentType.QR,
    "payme": PaymentType.QR,
    "click": PaymentType.QR,
    "uzum": PaymentType.QR,
    "credit": PaymentType.CREDIT,
    "vip": PaymentType.VIP,
    "test": PaymentType.TEST,
}

PAYMENT_STATUS_MAP = {
    "completed": PaymentStatus.PAID,
    "paid": PaymentStatus.PAID,
    "refunded": PaymentStatus.REFUNDED,
}

DELIVERY_STATUS_MAP = {
    "delivered": DeliveryStatus.DELIVERED,
    "delivery_confirmed": DeliveryStatus.DELIVERY_CONFIRMED,
    "confirmed": DeliveryStatus.DELIVERY_CONFIRMED,
    "delivery_failed": DeliveryStatus.DELIVERY_FAILED,
    "failed": DeliveryStatus.DELIVERY_FAILED,
    "not_delivered": DeliveryStatus.NOT_DELIVERED,
}

# Accepted source names per field, first match wins
FIELD_ALIASES = {
    "id": ("id", "transaction_id"),
    "timestamp": ("createdAt", "created_at", "timestamp"),
    "amount": ("amount",),
    "payment_method": ("paymentMethod", "payment_method", "paymentType", "payment_type", "type"),
    "payment_status": ("status", "paymentStatus", "payment_status"),
    "delivery_status": ("deliveryStatus", "delivery_status", "brewStatus", "brew_status"),
    "machine_id": ("machineId", "machine_id"),
    "machine_code": ("machineCode", "machine_code"),
    "machine_address": ("machineAddress", "machine_address", "address"),
    "location_id": ("locationId", "location_id"),
    "product_id": ("productId", "product_id"),
    "product_name": ("productName", "product_name"),
    "product_category": ("productCategory", "product_category"),
    "ingredient_usage": ("ingredientUsage", "ingredient_usage", "ingredients"),
    "cost_of_goods": ("costOfGoods", "cost_of_goods"),
}


@dataclass(frozen=True)
class TransactionRecord:
    """One vending order, flattened and typed.

    Attributes:
        id: Transaction id.
        timestamp: Creation time, naive (offset-aware input is shifted to UTC).
        amount: Order amount.
        payment_type: Payment resource.
        payment_status: Completion status.
        delivery_status: Dispense outcome.
        machine_id: Machine key, None if the join produced no machine.
        machine_code: Machine serial/code ("" when unknown).
        machine_address: Location address ("" when unknown).
        location_id: Location key, if known.
        product_id: Product key, None if the join produced no product.
        product_name: Product display name ("" when unknown).
        product_category: Product category ("" when unknown).
        ingredient_usage: Ingredient code -> consumed quantity.
        cost_of_goods: Cost of goods for this order (0 when unknown).
    """

    id: str
    timestamp: datetime
    amount: Decimal
    payment_type: PaymentType
    payment_status: PaymentStatus = PaymentStatus.PAID
    delivery_status: DeliveryStatus = DeliveryStatus.DELIVERED
    machine_id: Optional[str] = None
    machine_code: str = ""
    machine_address: str = ""
    location_id: Optional[str] = None
    product_id: Optional[str] = None
    product_name: str = ""
    product_category: str = ""
    ingredient_usage: Mapping[str, Decimal] = field(default_factory=dict)
    cost_of_goods: Decimal = ZERO

    @property
    def is_paid(self) -> bool:
        return self.payment_status is PaymentStatus.PAID

    @property
    def is_delivered(self) -> bool:
        return self.delivery_status.is_successful

    @property
    def month_key(self) -> str:
        return self.timestamp.strftime("%Y-%m")

    @property
    def date_key(self) -> str:
        return self.timestamp.strftime("%Y-%m-%d")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (dict, list, tuple, set)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _get(raw: Mapping[str, Any], name: str) -> Any:
    for alias in FIELD_ALIASES[name]:
        if alias in raw and not _is_missing(raw[alias]):
            return raw[alias]
    return None


def _text(value: Any) -> str:
    return "" if _is_missing(value) else str(value).strip()


def _key(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _parse_timestamp(value: Any, record_id: str) -> datetime:
    """Parse a timestamp into a naive datetime.

    Offset-aware values ("...Z", "+05:00") are converted to UTC and the
    offset is dropped, so every record compares and sorts with every other.
    """
    if _is_missing(value):
        raise DataQualityError(f"Transaction {record_id}: missing timestamp")
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError) as e:
        raise DataQualityError(f"Transaction {record_id}: invalid timestamp {value!r}") from e
    if pd.isna(ts):
        raise DataQualityError(f"Transaction {record_id}: invalid timestamp {value!r}")
    if ts.tzinfo is not None:
        ts = ts.tz_convert(None)
    return ts.to_pydatetime()


def map_payment_type(value: Any, record_id: str = "?") -> PaymentType:
    """Map a raw payment method to PaymentType.

    Unknown or missing methods fall back to CASH and are logged.

    Examples:
        >>> map_payment_type("Payme")
        <PaymentType.QR: 'QR'>
        >>> map_payment_type("VIP")
        <PaymentType.VIP: 'VIP'>

    """
    if isinstance(value, PaymentType):
        return value
    mapped = PAYMENT_METHOD_MAP.get(_text(value).lower())
    if mapped is None:
        logger.warning(
            "Transaction %s: unknown payment method %r, counted as CASH", record_id, value
        )
        return PaymentType.CASH
    return mapped


def map_payment_status(value: Any) -> PaymentStatus:
    if isinstance(value, PaymentStatus):
        return value
    text = _text(value)
    if text.upper() in PaymentStatus.__members__:
        return PaymentStatus[text.upper()]
    return PAYMENT_STATUS_MAP.get(text.lower(), PaymentStatus.OTHER)


def map_delivery_status(value: Any) -> DeliveryStatus:
    """Map a raw brew/delivery status; missing means delivered."""
    if isinstance(value, DeliveryStatus):
        return value
    text = _text(value)
    if not text:
        return DeliveryStatus.DELIVERED
    normalized = text.lower().replace(" ", "_").replace("-", "_")
    if normalized in DELIVERY_STATUS_MAP:
        return DELIVERY_STATUS_MAP[normalized]
    return DeliveryStatus.NOT_DELIVERED


def _parse_ingredients(value: Any, record_id: str) -> dict[str, Decimal]:
    if _is_missing(value):
        return {}
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return {}
        try:
            value = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Transaction %s: unreadable ingredient usage %r ignored", record_id, text)
            return {}
    if not isinstance(value, Mapping):
        logger.warning(
            "Transaction %s: ingredient usage of type %s ignored", record_id, type(value).__name__
        )
        return {}

    usage: dict[str, Decimal] = {}
    for code, qty in value.items():
        try:
            usage[str(code)] = to_money(qty)
        except ValueError:
            logger.warning(
                "Transaction %s: ingredient %s has invalid quantity %r", record_id, code, qty
            )
    return usage


def normalize_record(raw: Mapping[str, Any]) -> TransactionRecord:
    """Build a TransactionRecord from one raw joined record.

    Args:
        raw: Mapping with the source fields (camelCase or snake_case).

    Returns:
        TransactionRecord.

    Raises:
        DataQualityError: If the timestamp is missing/invalid or the amount
            cannot be parsed.

    """
    record_id = _text(_get(raw, "id")) or "?"
    timestamp = _parse_timestamp(_get(raw, "timestamp"), record_id)

    try:
        amount = to_money(_get(raw, "amount"))
        cost = to_money(_get(raw, "cost_of_goods"))
    except ValueError as e:
        raise DataQualityError(f"Transaction {record_id}: {e}") from e

    return TransactionRecord(
        id=record_id,
        timestamp=timestamp,
        amount=amount,
        payment_type=map_payment_type(_get(raw, "payment_method"), record_id),
        payment_status=map_payment_status(_get(raw, "payment_status")),
        delivery_status=map_delivery_status(_get(raw, "delivery_status")),
        machine_id=_key(_get(raw, "machine_id")),
        machine_code=_text(_get(raw, "machine_code")),
        machine_address=_text(_get(raw, "machine_address")),
        location_id=_key(_get(raw, "location_id")),
        product_id=_key(_get(raw, "product_id")),
        product_name=_text(_get(raw, "product_name")),
        product_category=_text(_get(raw, "product_category")),
        ingredient_usage=_parse_ingredients(_get(raw, "ingredient_usage"), record_id),
        cost_of_goods=cost,
    )


def normalize_records(raws: Iterable[Mapping[str, Any]]) -> List[TransactionRecord]:
    """Normalize a sequence of raw records, preserving order."""
    return [normalize_record(raw) for raw in raws]


def normalize_frame(df: pd.DataFrame) -> List[TransactionRecord]:
    """Normalize a DataFrame of raw records (one row per transaction).

    NaN cells are treated as missing values. An ``ingredientUsage`` column
    may hold JSON strings (as read from CSV) or dicts.

    Args:
        df: DataFrame with source columns.

    Returns:
        List of TransactionRecord in row order.

    Raises:
        DataQualityError: If a non-empty frame lacks the id/timestamp/amount
            columns.

    """
    if df.empty:
        return []
    required = ("id", "timestamp", "amount")
    missing = [
        name for name in required if not any(alias in df.columns for alias in FIELD_ALIASES[name])
    ]
    if missing:
        raise DataQualityError(
            f"Missing required columns for: {missing}. Columns present: {list(df.columns)}"
        )
    return normalize_records(df.to_dict(orient="records"))
