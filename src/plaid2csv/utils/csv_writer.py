"""CSV output of transaction and investment rows."""

import csv
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, TextIO

from ..models.core import ExportOptions, ExportResult, ItemBundle, ItemConfig, Stream
from ..models.records import InvestmentTransaction, Security, Transaction
from .error_handler import UnresolvedReferenceError


logger = logging.getLogger(__name__)

# Investment types that move cash rather than securities
CASH_TYPES = frozenset({'cash', 'fee'})

# The only cash subtype without a monetary amount
NON_MONETARY_SUBTYPES = frozenset({'stock distribution'})

UNKNOWN_CATEGORY = "unknown"


def format_number(value: Optional[Decimal], spec: str) -> str:
    """Render a number with a format spec (".2f") or printf pattern ("%0.2f")"""
    if value is None:
        return ''
    if '%' in spec:
        return spec % value
    return format(value, spec)


def check_number_format(spec: str) -> None:
    """Raise ValueError if spec cannot render a single decimal"""
    try:
        format_number(Decimal("1234.5"), spec)
    except (TypeError, ValueError, KeyError) as e:
        raise ValueError(f"invalid number format {spec!r}: {e}") from e


def format_quantity(value: Optional[Decimal]) -> str:
    """Plain decimal rendering without trailing zeros or exponent"""
    if value is None:
        return ''
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.normalize(), 'f')


def format_date(value: Optional[date], fmt: str) -> str:
    if value is None:
        return ''
    return value.strftime(fmt)


def join_category(category: Iterable[str], delimiter: str) -> str:
    return delimiter.join(category)


def currency_code(record) -> str:
    """Official ISO code, falling back to the unofficial code"""
    return record.iso_currency_code or record.unofficial_currency_code


def is_cash_like(investment: InvestmentTransaction) -> bool:
    return investment.type in CASH_TYPES


def is_non_monetary(investment: InvestmentTransaction) -> bool:
    return investment.subtype in NON_MONETARY_SUBTYPES


class CSVWriter:
    """Projects item bundles onto the two output row schemas.

    Both write methods stop at the first unresolvable account or security
    and report it through ExportResult. Rows written before the failure are
    left in the output.
    """

    TRANSACTION_HEADERS = [
        'Post Date',
        'Authorized Date',
        'Account',
        'Account Name',
        'Check Number',
        'Payee',
        'Amount',
        'Currency',
        'Category',
        'Transaction ID',
    ]

    INVESTMENT_HEADERS = [
        'Post Date',
        'Account',
        'Account Name',
        'Name',
        'Quantity',
        'Amount',
        'Price',
        'Transaction ID',
        'Fee',
        'Fee Currency',
        'Ticker Symbol',
        'Category',
    ]

    def __init__(self, options: Optional[ExportOptions] = None):
        self.options = options or ExportOptions()

    def write_header(self, output: TextIO, headers: List[str]) -> None:
        csv.writer(output).writerow(headers)
        output.flush()

    def write_transactions(self, item: ItemConfig, bundle: ItemBundle, output: TextIO) -> ExportResult:
        """
        Write transaction rows followed by cash-like investment rows

        Returns:
            ExportResult with the number of rows written and the failure, if any
        """
        writer = csv.writer(output)
        result = ExportResult()

        try:
            for transaction in bundle.transactions:
                writer.writerow(self.transaction_row(item, transaction))
                result.rows_written += 1

            for investment in bundle.investments:
                if not is_cash_like(investment) or is_non_monetary(investment):
                    continue
                writer.writerow(self.cash_investment_row(item, investment, bundle.securities))
                result.rows_written += 1

            output.flush()
        except (UnresolvedReferenceError, OSError, csv.Error) as e:
            result.error = e

        self._log_result(item, Stream.TRANSACTIONS, result)
        return result

    def write_investments(self, item: ItemConfig, bundle: ItemBundle, output: TextIO) -> ExportResult:
        """
        Write security trade rows

        Returns:
            ExportResult with the number of rows written and the failure, if any
        """
        writer = csv.writer(output)
        result = ExportResult()

        try:
            for investment in bundle.investments:
                if is_cash_like(investment):
                    continue
                writer.writerow(self.investment_row(item, investment, bundle.securities))
                result.rows_written += 1

            output.flush()
        except (UnresolvedReferenceError, OSError, csv.Error) as e:
            result.error = e

        self._log_result(item, Stream.INVESTMENTS, result)
        return result

    def transaction_row(self, item: ItemConfig, transaction: Transaction) -> List[str]:
        opts = self.options
        account_name = self._account_name(item, item.transactions, transaction.account_id, Stream.TRANSACTIONS)

        return [
            format_date(transaction.date, opts.post_date_format),
            format_date(transaction.authorized_date, opts.auth_date_format),
            account_name,
            item.name,
            transaction.check_number,
            transaction.merchant_name or transaction.name,
            format_number(transaction.amount, opts.amount_format),
            currency_code(transaction),
            join_category(transaction.category, opts.category_delimiter),
            transaction.transaction_id,
        ]

    def cash_investment_row(self, item: ItemConfig, investment: InvestmentTransaction,
                            securities: Dict[str, Security]) -> List[str]:
        opts = self.options
        security = self._security(item, securities, investment.security_id)
        account_name = self._account_name(item, item.investments, investment.account_id, Stream.INVESTMENTS)

        return [
            format_date(investment.date, opts.post_date_format),
            '',
            account_name,
            item.name,
            '',
            security.name,
            format_number(investment.amount, opts.amount_format),
            currency_code(investment),
            f"{investment.type}.{investment.subtype}",
            investment.investment_transaction_id,
        ]

    def investment_row(self, item: ItemConfig, investment: InvestmentTransaction,
                       securities: Dict[str, Security]) -> List[str]:
        opts = self.options
        security = self._security(item, securities, investment.security_id)
        account_name = self._account_name(item, item.investments, investment.account_id, Stream.INVESTMENTS)

        category = f"{security.sector}.{security.industry}"
        if not security.sector and not security.industry:
            category = UNKNOWN_CATEGORY

        return [
            format_date(investment.date, opts.post_date_format),
            account_name,
            item.name,
            security.name,
            format_quantity(investment.quantity),
            format_number(investment.amount, opts.amount_format),
            format_number(investment.price, opts.price_format),
            investment.investment_transaction_id,
            format_number(investment.fees, opts.amount_format),
            currency_code(investment),
            security.ticker_symbol,
            category,
        ]

    @staticmethod
    def _account_name(item: ItemConfig, accounts: Dict[str, str], account_id: str, stream: Stream) -> str:
        try:
            return accounts[account_id]
        except KeyError:
            raise UnresolvedReferenceError(
                "unknown account", item=item.name, stream=stream.value, identifier=account_id
            ) from None

    @staticmethod
    def _security(item: ItemConfig, securities: Dict[str, Security], security_id: str) -> Security:
        try:
            return securities[security_id]
        except KeyError:
            raise UnresolvedReferenceError(
                "unknown security", item=item.name, stream=Stream.INVESTMENTS.value, identifier=security_id
            ) from None

    @staticmethod
    def _log_result(item: ItemConfig, stream: Stream, result: ExportResult) -> None:
        if result.success:
            logger.info(f"{item.name}: wrote {result.rows_written} {stream.value} rows")
        else:
            logger.error(
                f"{item.name}: {stream.value} export stopped after {result.rows_written} rows: {result.error}"
            )
