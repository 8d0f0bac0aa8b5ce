"""Provider record types decoded from Plaid responses."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional


@dataclass
class Account:
    """Account summary returned alongside transaction pages"""
    account_id: str
    name: str = ""
    official_name: str = ""
    mask: str = ""
    type: str = ""
    subtype: str = ""


@dataclass
class Transaction:
    """A single cash-account event.

    Attributes:
        transaction_id: Provider-assigned unique identifier
        account_id: Provider account the transaction belongs to
        amount: Transaction amount as reported by the provider
        date: Post date
        authorized_date: Authorization date, None when the provider has none
        pending: Whether the transaction has not yet posted
        category: Category hierarchy, most general label first
        name: Provider-cleaned transaction name
        merchant_name: Merchant name, empty when unknown
        check_number: Check number, empty for non-check transactions
    """
    transaction_id: str
    account_id: str
    amount: Decimal
    date: date
    authorized_date: Optional[date] = None
    pending: bool = False
    category: List[str] = field(default_factory=list)
    name: str = ""
    merchant_name: str = ""
    check_number: str = ""
    iso_currency_code: str = ""
    unofficial_currency_code: str = ""
    original_description: str = ""
    payment_channel: str = ""
    pending_transaction_id: str = ""
    transaction_type: str = ""

    @property
    def effective_date(self) -> date:
        """Authorized date when present, otherwise the post date"""
        return self.authorized_date or self.date


@dataclass
class InvestmentTransaction:
    """A brokerage event such as a trade, dividend or fee"""
    investment_transaction_id: str
    account_id: str
    security_id: str
    date: date
    type: str
    subtype: str = ""
    name: str = ""
    quantity: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    price: Decimal = Decimal("0")
    fees: Decimal = Decimal("0")
    iso_currency_code: str = ""
    unofficial_currency_code: str = ""


@dataclass
class Security:
    """Security metadata keyed by security_id within an item"""
    security_id: str
    name: str = ""
    ticker_symbol: str = ""
    sector: str = ""
    industry: str = ""
    type: str = ""
    isin: str = ""
    cusip: str = ""
    close_price: Optional[Decimal] = None
    iso_currency_code: str = ""
    unofficial_currency_code: str = ""


@dataclass
class StreamStatus:
    """Last update timestamps for one stream; None means never"""
    last_successful_update: Optional[datetime] = None
    last_failed_update: Optional[datetime] = None


@dataclass
class ItemStatus:
    """Result of an item/get call"""
    item_id: str
    institution_id: str = ""
    transactions: StreamStatus = field(default_factory=StreamStatus)
    investments: StreamStatus = field(default_factory=StreamStatus)


@dataclass
class TransactionsPage:
    """One page of a transactions/get response"""
    item_id: str
    transactions: List[Transaction]
    total: int
    accounts: List[Account] = field(default_factory=list)
    request_id: str = ""


@dataclass
class InvestmentsPage:
    """One page of an investments/transactions/get response"""
    item_id: str
    investment_transactions: List[InvestmentTransaction]
    total: int
    securities: List[Security] = field(default_factory=list)
    accounts: List[Account] = field(default_factory=list)
    request_id: str = ""

    def securities_by_id(self) -> Dict[str, Security]:
        return {security.security_id: security for security in self.securities}
