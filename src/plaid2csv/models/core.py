"""Core data models for the activity export pipeline."""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Dict, List, Optional

from .records import InvestmentTransaction, Security, Transaction


# Largest page the provider will return for a single fetch
MAX_PAGE_SIZE = 500

# Refreshes are billed per item, so thresholds at or above one week disable them
REFRESH_THRESHOLD_LIMIT = timedelta(hours=168)

DEFAULT_ENVIRONMENT = "sandbox"
ENVIRONMENTS = ("sandbox", "development", "production")


class Stream(Enum):
    """Independent data feeds of an item"""
    TRANSACTIONS = "transactions"
    INVESTMENTS = "investments"

    @property
    def refresh_endpoint(self) -> str:
        return f"{self.value}/refresh"

    @property
    def fetch_endpoint(self) -> str:
        if self is Stream.TRANSACTIONS:
            return "transactions/get"
        return "investments/transactions/get"


@dataclass(frozen=True)
class ItemConfig:
    """Configuration for one linked institution.

    Attributes:
        item_id: Provider item identifier
        name: Display name written to the "Account Name" column
        token: Provider access token for the item
        transactions: Transaction-eligible account IDs mapped to display names
        investments: Investment-eligible account IDs mapped to display names
    """
    item_id: str
    name: str
    token: str
    transactions: Dict[str, str] = field(default_factory=dict)
    investments: Dict[str, str] = field(default_factory=dict)

    def account_ids(self, stream: Stream) -> List[str]:
        """Configured account IDs for a stream, sorted for stable requests"""
        if stream is Stream.TRANSACTIONS:
            return sorted(self.transactions)
        return sorted(self.investments)


@dataclass(frozen=True)
class ProviderConfig:
    """Credentials and items for one provider environment"""
    environment: str
    client_id: str
    secret: str
    items: Dict[str, ItemConfig] = field(default_factory=dict)

    def sorted_items(self) -> List[ItemConfig]:
        """Items ordered by identifier so output order is reproducible"""
        return [self.items[item_id] for item_id in sorted(self.items)]


@dataclass(frozen=True)
class ExportOptions:
    """Formatting options for rendered rows"""
    omit_pending: bool = False
    post_date_format: str = "%Y-%m-%d"
    auth_date_format: str = "%Y-%m-%d"
    amount_format: str = ".2f"
    price_format: str = "g"
    category_delimiter: str = "."


@dataclass(frozen=True)
class RunOptions:
    """Options controlling what is fetched and which records are kept"""
    start: date
    end: date
    refresh_threshold: timedelta = REFRESH_THRESHOLD_LIMIT
    clamp_semimonthly: bool = False
    inclusive_end_date: bool = False
    sort: bool = False
    omit_header: bool = False

    @property
    def effective_end(self) -> date:
        """End date sent to the provider and used for clamping"""
        if self.inclusive_end_date:
            return self.end + timedelta(days=1)
        return self.end


@dataclass
class ItemBundle:
    """Per-item working set built from all fetched pages"""
    item_id: str
    transactions: List[Transaction] = field(default_factory=list)
    investments: List[InvestmentTransaction] = field(default_factory=list)
    securities: Dict[str, Security] = field(default_factory=dict)


@dataclass
class ExportResult:
    """Rows written by an export and the error that stopped it, if any"""
    rows_written: int = 0
    error: Optional[Exception] = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class ItemSummary:
    """Export outcome for a single item"""
    item_id: str
    name: str
    transaction_rows: int = 0
    investment_rows: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass
class RunSummary:
    """Outcome of a full run across all items"""
    items: List[ItemSummary] = field(default_factory=list)
    skipped_items: List[str] = field(default_factory=list)

    @property
    def failed_items(self) -> List[ItemSummary]:
        return [item for item in self.items if not item.success]

    @property
    def total_transaction_rows(self) -> int:
        return sum(item.transaction_rows for item in self.items)

    @property
    def total_investment_rows(self) -> int:
        return sum(item.investment_rows for item in self.items)
