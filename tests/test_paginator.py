"""Tests for paginated stream retrieval."""

from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, call

import pytest

from plaid2csv.models.core import ItemConfig
from plaid2csv.models.records import (
    InvestmentTransaction,
    InvestmentsPage,
    Transaction,
    TransactionsPage,
)
from plaid2csv.utils.error_handler import ProviderError
from plaid2csv.utils.paginator import PageAccumulator


START = date(2024, 3, 1)
END = date(2024, 3, 16)


def make_transactions(count, prefix='txn'):
    return [
        Transaction(
            transaction_id=f"{prefix}-{i}",
            account_id='acc-1',
            amount=Decimal('1.00'),
            date=date(2024, 3, 5),
        )
        for i in range(count)
    ]


def transactions_page(count, total, prefix='txn'):
    return TransactionsPage(item_id='item-a', transactions=make_transactions(count, prefix), total=total)


def investments_page(count, total):
    return InvestmentsPage(
        item_id='item-a',
        investment_transactions=[
            InvestmentTransaction(
                investment_transaction_id=f"inv-{i}",
                account_id='acc-9',
                security_id='sec-1',
                date=date(2024, 3, 6),
                type='buy',
            )
            for i in range(count)
        ],
        total=total,
    )


class TestPageAccumulator:
    """Test cases for PageAccumulator"""

    def setup_method(self):
        self.item = ItemConfig(
            item_id='item-a',
            name='First Bank',
            token='token-a',
            transactions={'acc-1': 'Checking'},
            investments={'acc-9': 'Brokerage'},
        )
        self.client = MagicMock()
        self.accumulator = PageAccumulator(self.client)

    def test_single_page_when_total_below_page_size(self):
        """Test total 120 on page one issues no second request"""
        self.client.get_transactions.return_value = transactions_page(120, 120)

        pages = self.accumulator.fetch_transactions(self.item, START, END)

        assert len(pages) == 1
        self.client.get_transactions.assert_called_once_with(self.item, START, END, offset=0, count=500)

    def test_second_request_offset_tracks_records_received(self):
        """Test total 500 triggers a second request at the received offset"""
        self.client.get_transactions.side_effect = [
            transactions_page(480, 500, 'p1'),
            transactions_page(20, 20, 'p2'),
        ]

        pages = self.accumulator.fetch_transactions(self.item, START, END)

        assert len(pages) == 2
        assert self.client.get_transactions.call_args_list == [
            call(self.item, START, END, offset=0, count=500),
            call(self.item, START, END, offset=480, count=500),
        ]

    def test_offset_is_not_a_sum_of_totals(self):
        """Test a total that does not shrink never inflates the offset"""
        self.client.get_transactions.side_effect = [
            transactions_page(500, 1200, 'p1'),
            transactions_page(500, 1200, 'p2'),
            transactions_page(200, 200, 'p3'),
        ]

        self.accumulator.fetch_transactions(self.item, START, END)

        offsets = [c.kwargs['offset'] for c in self.client.get_transactions.call_args_list]
        assert offsets == [0, 500, 1000]

    def test_total_exactly_page_size_continues(self):
        self.client.get_transactions.side_effect = [
            transactions_page(500, 500),
            transactions_page(0, 499),
        ]

        pages = self.accumulator.fetch_transactions(self.item, START, END)

        assert len(pages) == 2

    def test_empty_page_stops_loop(self):
        """Test that a page without records ends pagination"""
        self.client.get_transactions.side_effect = [
            transactions_page(500, 1000, 'p1'),
            transactions_page(0, 1000, 'p2'),
        ]

        pages = self.accumulator.fetch_transactions(self.item, START, END)

        assert len(pages) == 2
        assert self.client.get_transactions.call_count == 2

    def test_no_accounts_means_no_request(self):
        item = ItemConfig(item_id='item-b', name='Second Bank', token='token-b')

        assert self.accumulator.fetch_transactions(item, START, END) == []
        assert self.accumulator.fetch_investments(item, START, END) == []
        self.client.get_transactions.assert_not_called()
        self.client.get_investment_transactions.assert_not_called()

    def test_investments_paginated(self):
        self.client.get_investment_transactions.side_effect = [
            investments_page(500, 700),
            investments_page(200, 200),
        ]

        pages = self.accumulator.fetch_investments(self.item, START, END)

        assert [len(p.investment_transactions) for p in pages] == [500, 200]
        offsets = [c.kwargs['offset'] for c in self.client.get_investment_transactions.call_args_list]
        assert offsets == [0, 500]

    def test_custom_page_size(self):
        accumulator = PageAccumulator(self.client, page_size=100)
        self.client.get_transactions.side_effect = [
            transactions_page(100, 150),
            transactions_page(50, 50),
        ]

        accumulator.fetch_transactions(self.item, START, END)

        assert self.client.get_transactions.call_args_list[1] == call(
            self.item, START, END, offset=100, count=100
        )

    def test_invalid_page_size(self):
        with pytest.raises(ValueError):
            PageAccumulator(self.client, page_size=501)

    def test_provider_error_propagates(self):
        self.client.get_transactions.side_effect = [
            transactions_page(500, 900),
            ProviderError('ITEM_ERROR', 'ITEM_LOGIN_REQUIRED', item='First Bank', stream='transactions'),
        ]

        with pytest.raises(ProviderError):
            self.accumulator.fetch_transactions(self.item, START, END)
