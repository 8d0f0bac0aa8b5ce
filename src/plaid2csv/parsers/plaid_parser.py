"""Decoding of Plaid JSON responses into typed records."""

import logging
from typing import Any, Dict, Optional

from ..models.records import (
    Account,
    InvestmentTransaction,
    InvestmentsPage,
    ItemStatus,
    Security,
    StreamStatus,
    Transaction,
    TransactionsPage,
)
from ..utils.error_handler import ProviderError
from .base import DataTransformer


logger = logging.getLogger(__name__)


class ResponseParser:
    """Builds records from decoded response bodies.

    Every parse method first checks for an embedded provider error, which
    Plaid may report inside a 200 response either at the top level or under
    ``item.error``.
    """

    def __init__(self, transformer: Optional[DataTransformer] = None):
        self.transformer = transformer or DataTransformer()

    def check_error(self, payload: Dict[str, Any], item: Optional[str] = None,
                    stream: Optional[str] = None) -> None:
        """Raise ProviderError if the body carries a populated error type"""
        candidates = [payload]
        item_body = payload.get('item') or {}
        if isinstance(item_body, dict):
            candidates.append(item_body.get('error') or {})

        for error in candidates:
            if not isinstance(error, dict):
                continue
            error_type = error.get('error_type')
            if error_type:
                raise ProviderError(
                    error_type=str(error_type),
                    error_code=self.transformer.normalize_text(error.get('error_code')),
                    error_message=self.transformer.normalize_text(error.get('error_message')),
                    display_message=self.transformer.normalize_text(error.get('display_message')),
                    item=item,
                    stream=stream
                )

    def parse_item_status(self, payload: Dict[str, Any], item: Optional[str] = None) -> ItemStatus:
        self.check_error(payload, item=item)
        t = self.transformer
        item_body = payload.get('item') or {}
        status = payload.get('status') or {}

        return ItemStatus(
            item_id=t.normalize_text(item_body.get('item_id')),
            institution_id=t.normalize_text(item_body.get('institution_id')),
            transactions=self._parse_stream_status(status.get('transactions')),
            investments=self._parse_stream_status(status.get('investments'))
        )

    def _parse_stream_status(self, body: Optional[Dict[str, Any]]) -> StreamStatus:
        body = body or {}
        return StreamStatus(
            last_successful_update=self.transformer.normalize_timestamp(body.get('last_successful_update')),
            last_failed_update=self.transformer.normalize_timestamp(body.get('last_failed_update'))
        )

    def parse_transactions_page(self, payload: Dict[str, Any], item: Optional[str] = None) -> TransactionsPage:
        self.check_error(payload, item=item, stream='transactions')
        item_body = payload.get('item') or {}

        transactions = [self.parse_transaction(raw) for raw in payload.get('transactions') or []]
        page = TransactionsPage(
            item_id=self.transformer.normalize_text(item_body.get('item_id')),
            transactions=transactions,
            total=int(payload.get('total_transactions') or 0),
            accounts=[self.parse_account(raw) for raw in payload.get('accounts') or []],
            request_id=self.transformer.normalize_text(payload.get('request_id'))
        )
        logger.debug(
            f"Decoded {len(transactions)} transactions (total {page.total}) for item {page.item_id}"
        )
        return page

    def parse_investments_page(self, payload: Dict[str, Any], item: Optional[str] = None) -> InvestmentsPage:
        self.check_error(payload, item=item, stream='investments')
        item_body = payload.get('item') or {}

        investments = [
            self.parse_investment_transaction(raw)
            for raw in payload.get('investment_transactions') or []
        ]
        page = InvestmentsPage(
            item_id=self.transformer.normalize_text(item_body.get('item_id')),
            investment_transactions=investments,
            total=int(payload.get('total_investment_transactions') or 0),
            securities=[self.parse_security(raw) for raw in payload.get('securities') or []],
            accounts=[self.parse_account(raw) for raw in payload.get('accounts') or []],
            request_id=self.transformer.normalize_text(payload.get('request_id'))
        )
        logger.debug(
            f"Decoded {len(investments)} investment transactions and "
            f"{len(page.securities)} securities (total {page.total}) for item {page.item_id}"
        )
        return page

    def parse_account(self, raw: Dict[str, Any]) -> Account:
        t = self.transformer
        return Account(
            account_id=t.normalize_text(raw.get('account_id')),
            name=t.normalize_text(raw.get('name')),
            official_name=t.normalize_text(raw.get('official_name')),
            mask=t.normalize_text(raw.get('mask')),
            type=t.normalize_text(raw.get('type')),
            subtype=t.normalize_text(raw.get('subtype'))
        )

    def parse_transaction(self, raw: Dict[str, Any]) -> Transaction:
        t = self.transformer
        return Transaction(
            transaction_id=t.normalize_text(raw.get('transaction_id')),
            account_id=t.normalize_text(raw.get('account_id')),
            amount=t.normalize_amount(raw.get('amount')),
            date=t.normalize_date(raw.get('date')),
            authorized_date=t.normalize_date(raw.get('authorized_date')),
            pending=bool(raw.get('pending')),
            category=t.normalize_list(raw.get('category')),
            name=t.normalize_text(raw.get('name')),
            merchant_name=t.normalize_text(raw.get('merchant_name')),
            check_number=t.normalize_text(raw.get('check_number')),
            iso_currency_code=t.normalize_text(raw.get('iso_currency_code')),
            unofficial_currency_code=t.normalize_text(raw.get('unofficial_currency_code')),
            original_description=t.normalize_text(raw.get('original_description')),
            payment_channel=t.normalize_text(raw.get('payment_channel')),
            pending_transaction_id=t.normalize_text(raw.get('pending_transaction_id')),
            transaction_type=t.normalize_text(raw.get('transaction_type'))
        )

    def parse_investment_transaction(self, raw: Dict[str, Any]) -> InvestmentTransaction:
        t = self.transformer
        return InvestmentTransaction(
            investment_transaction_id=t.normalize_text(raw.get('investment_transaction_id')),
            account_id=t.normalize_text(raw.get('account_id')),
            security_id=t.normalize_text(raw.get('security_id')),
            date=t.normalize_date(raw.get('date')),
            type=t.normalize_text(raw.get('type')),
            subtype=t.normalize_text(raw.get('subtype')),
            name=t.normalize_text(raw.get('name')),
            quantity=t.normalize_amount(raw.get('quantity')),
            amount=t.normalize_amount(raw.get('amount')),
            price=t.normalize_amount(raw.get('price')),
            fees=t.normalize_amount(raw.get('fees')),
            iso_currency_code=t.normalize_text(raw.get('iso_currency_code')),
            unofficial_currency_code=t.normalize_text(raw.get('unofficial_currency_code'))
        )

    def parse_security(self, raw: Dict[str, Any]) -> Security:
        t = self.transformer
        return Security(
            security_id=t.normalize_text(raw.get('security_id')),
            name=t.normalize_text(raw.get('name')),
            ticker_symbol=t.normalize_text(raw.get('ticker_symbol')),
            sector=t.normalize_text(raw.get('sector')),
            industry=t.normalize_text(raw.get('industry')),
            type=t.normalize_text(raw.get('type')),
            isin=t.normalize_text(raw.get('isin')),
            cusip=t.normalize_text(raw.get('cusip')),
            close_price=t.normalize_amount(raw.get('close_price'), default=None),
            iso_currency_code=t.normalize_text(raw.get('iso_currency_code')),
            unofficial_currency_code=t.normalize_text(raw.get('unofficial_currency_code'))
        )
