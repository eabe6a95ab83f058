"""Contract helpers for chainhash errors."""

from .error import (
    AllocationFailureError,
    ErrorEnvelope,
    InvalidConfigurationError,
    InvariantError,
    NullKeyUnsupportedError,
    TableError,
)

__all__ = [
    "ErrorEnvelope",
    "TableError",
    "InvalidConfigurationError",
    "NullKeyUnsupportedError",
    "AllocationFailureError",
    "InvariantError",
]
