"""Shared builders for raw and normalized vending transactions."""

from typing import Any, Callable, Dict

import pytest

from vend_core.config import ReportConfig, ReportRequest
from vend_core.transactions import TransactionRecord, normalize_record

RawFactory = Callable[..., Dict[str, Any]]


def _raw(
    tx_id: str,
    created_at: str,
    amount: Any,
    payment: str = "cash",
    status: str = "completed",
    delivery: str = "DELIVERED",
    machine: Any = "M1",
    product: Any = "P1",
    **extra: Any,
) -> Dict[str, Any]:
    raw = {
        "id": tx_id,
        "createdAt": created_at,
        "amount": amount,
        "paymentMethod": payment,
        "status": status,
        "deliveryStatus": delivery,
        "machineId": machine,
        "machineCode": f"VH-{machine}" if machine else None,
        "machineAddress": f"Address of {machine}" if machine else None,
        "productId": product,
        "productName": f"Product {product}" if product else None,
        "productCategory": "coffee",
    }
    raw.update(extra)
    return raw


@pytest.fixture
def make_raw() -> RawFactory:
    """Factory for raw joined records in the source's camelCase shape."""
    return _raw


@pytest.fixture
def make_record() -> Callable[..., TransactionRecord]:
    """Factory for normalized TransactionRecord values."""

    def build(*args: Any, **kwargs: Any) -> TransactionRecord:
        return normalize_record(_raw(*args, **kwargs))

    return build


@pytest.fixture
def march_request() -> ReportRequest:
    """Full report request for March 2024."""
    return ReportRequest.from_strings("2024-03-01", "2024-03-31", "Full")


@pytest.fixture
def config() -> ReportConfig:
    """Default report configuration."""
    return ReportConfig()
