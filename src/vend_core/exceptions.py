"""Domain-specific exceptions for the vending report engine.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from VendCoreError for easy catching.
"""


class VendCoreError(Exception):
    """Base exception for all report engine errors.

    Users can catch this exception to handle any error raised while
    normalizing transactions or generating a report.
    """

    pass


class ConfigError(VendCoreError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - An unknown report kind is requested
    - Reconciliation or alert thresholds are negative or inverted
    - top_k is smaller than 1
    """

    pass


class InvalidRangeError(ConfigError):
    """Raised when the requested period starts after it ends.

    The range is checked before any aggregation starts.
    """

    pass


class DataQualityError(VendCoreError):
    """Raised when a raw transaction record cannot be used at all.

    This exception is raised when:
    - The record has no timestamp or the timestamp cannot be parsed
    - The amount cannot be converted to a fixed-point value

    Records that only miss a dimension key (machine or product) are not
    rejected; they are counted and logged instead.
    """

    pass
