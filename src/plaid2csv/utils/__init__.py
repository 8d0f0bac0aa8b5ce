"""Utility functions and helpers"""

from .error_handler import (
    ConfigurationError,
    ErrorCategory,
    Plaid2CsvError,
    ProviderError,
    ResponseStatusError,
    TransportError,
    UnresolvedReferenceError,
    configure_logging,
)
from .config_manager import ConfigManager
from .csv_writer import CSVWriter
from .record_filter import RecordFilter, RecordSorter, clamp_boundary

# refresh_checker, paginator and aggregator depend on api/ and are imported directly

__all__ = [
    'ConfigurationError',
    'ErrorCategory',
    'Plaid2CsvError',
    'ProviderError',
    'ResponseStatusError',
    'TransportError',
    'UnresolvedReferenceError',
    'configure_logging',
    'ConfigManager',
    'CSVWriter',
    'RecordFilter',
    'RecordSorter',
    'clamp_boundary',
]
