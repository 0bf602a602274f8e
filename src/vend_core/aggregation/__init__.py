"""Dimensional aggregation of transactions into count/amount buckets."""

from vend_core.aggregation.buckets import (
    DIMENSIONS,
    Bucket,
    DimensionalBuckets,
    MachineInfo,
    ProductInfo,
    aggregate,
    aggregate_by,
    get_bucket,
    pick_label,
)

__all__ = [
    "DIMENSIONS",
    "Bucket",
    "DimensionalBuckets",
    "MachineInfo",
    "ProductInfo",
    "aggregate",
    "aggregate_by",
    "get_bucket",
    "pick_label",
]
