"""Separately chained hash table core package."""

from . import contracts, core
from .config import AppConfig, TablePolicy, WatchdogPolicy, load_app_config
from .contracts import (
    AllocationFailureError,
    InvalidConfigurationError,
    InvariantError,
    NullKeyUnsupportedError,
    TableError,
)
from .core import HashTable
from .logging_setup import configure_logging

__all__ = [
    "AllocationFailureError",
    "AppConfig",
    "HashTable",
    "InvalidConfigurationError",
    "InvariantError",
    "NullKeyUnsupportedError",
    "TableError",
    "TablePolicy",
    "WatchdogPolicy",
    "configure_logging",
    "contracts",
    "core",
    "load_app_config",
]
