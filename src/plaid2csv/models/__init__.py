"""Data models and structures"""

from .core import (
    ENVIRONMENTS,
    MAX_PAGE_SIZE,
    REFRESH_THRESHOLD_LIMIT,
    ExportOptions,
    ExportResult,
    ItemBundle,
    ItemConfig,
    ItemSummary,
    ProviderConfig,
    RunOptions,
    RunSummary,
    Stream,
)
from .records import (
    Account,
    InvestmentTransaction,
    InvestmentsPage,
    ItemStatus,
    Security,
    StreamStatus,
    Transaction,
    TransactionsPage,
)

__all__ = [
    'ENVIRONMENTS',
    'MAX_PAGE_SIZE',
    'REFRESH_THRESHOLD_LIMIT',
    'Account',
    'ExportOptions',
    'ExportResult',
    'InvestmentTransaction',
    'InvestmentsPage',
    'ItemBundle',
    'ItemConfig',
    'ItemStatus',
    'ItemSummary',
    'ProviderConfig',
    'RunOptions',
    'RunSummary',
    'Security',
    'Stream',
    'StreamStatus',
    'Transaction',
    'TransactionsPage',
]
