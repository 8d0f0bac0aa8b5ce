"""Tests for bundle aggregation."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

from plaid2csv.models.core import ItemConfig
from plaid2csv.models.records import (
    InvestmentTransaction,
    InvestmentsPage,
    Security,
    Transaction,
    TransactionsPage,
)
from plaid2csv.utils.aggregator import ActivityAggregator


def txn(transaction_id):
    return Transaction(
        transaction_id=transaction_id,
        account_id='acc-1',
        amount=Decimal('10.00'),
        date=date(2024, 3, 5),
    )


def inv(investment_id, security_id):
    return InvestmentTransaction(
        investment_transaction_id=investment_id,
        account_id='acc-9',
        security_id=security_id,
        date=date(2024, 3, 6),
        type='buy',
    )


class TestActivityAggregator:
    """Test cases for ActivityAggregator"""

    def setup_method(self):
        self.item = ItemConfig(
            item_id='item-a',
            name='First Bank',
            token='token-a',
            transactions={'acc-1': 'Checking'},
            investments={'acc-9': 'Brokerage'},
        )
        self.accumulator = MagicMock()
        self.aggregator = ActivityAggregator(self.accumulator)

    def test_pages_concatenated_in_order(self):
        transaction_pages = [
            TransactionsPage(item_id='item-a', transactions=[txn('t1'), txn('t2')], total=500),
            TransactionsPage(item_id='item-a', transactions=[txn('t3')], total=1),
        ]

        bundle = self.aggregator.merge(self.item, transaction_pages, [])

        assert [t.transaction_id for t in bundle.transactions] == ['t1', 't2', 't3']
        assert bundle.investments == []
        assert bundle.securities == {}

    def test_duplicates_propagate(self):
        """Test overlapping pages are not deduplicated"""
        transaction_pages = [
            TransactionsPage(item_id='item-a', transactions=[txn('t1')], total=500),
            TransactionsPage(item_id='item-a', transactions=[txn('t1')], total=1),
        ]

        bundle = self.aggregator.merge(self.item, transaction_pages, [])

        assert [t.transaction_id for t in bundle.transactions] == ['t1', 't1']

    def test_securities_merged_later_pages_win(self):
        investment_pages = [
            InvestmentsPage(
                item_id='item-a',
                investment_transactions=[inv('i1', 'sec-1')],
                securities=[Security(security_id='sec-1', name='Old Name'),
                            Security(security_id='sec-2', name='Bond Fund')],
                total=500,
            ),
            InvestmentsPage(
                item_id='item-a',
                investment_transactions=[inv('i2', 'sec-3')],
                securities=[Security(security_id='sec-1', name='New Name'),
                            Security(security_id='sec-3', name='Index Fund')],
                total=1,
            ),
        ]

        bundle = self.aggregator.merge(self.item, [], investment_pages)

        assert [i.investment_transaction_id for i in bundle.investments] == ['i1', 'i2']
        assert set(bundle.securities) == {'sec-1', 'sec-2', 'sec-3'}
        assert bundle.securities['sec-1'].name == 'New Name'

    def test_item_id_from_provider(self):
        transaction_pages = [TransactionsPage(item_id='item-renamed', transactions=[], total=0)]

        bundle = self.aggregator.merge(self.item, transaction_pages, [])

        assert bundle.item_id == 'item-renamed'

    def test_item_id_falls_back_to_config(self):
        bundle = self.aggregator.merge(self.item, [], [])
        assert bundle.item_id == 'item-a'

    def test_collect_fetches_both_streams(self):
        start, end = date(2024, 3, 1), date(2024, 3, 16)
        self.accumulator.fetch_transactions.return_value = [
            TransactionsPage(item_id='item-a', transactions=[txn('t1')], total=1)
        ]
        self.accumulator.fetch_investments.return_value = [
            InvestmentsPage(item_id='item-a', investment_transactions=[inv('i1', 'sec-1')],
                            securities=[Security(security_id='sec-1')], total=1)
        ]

        bundle = self.aggregator.collect(self.item, start, end)

        self.accumulator.fetch_transactions.assert_called_once_with(self.item, start, end)
        self.accumulator.fetch_investments.assert_called_once_with(self.item, start, end)
        assert len(bundle.transactions) == 1
        assert len(bundle.investments) == 1
        assert 'sec-1' in bundle.securities
