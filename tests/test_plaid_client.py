"""Tests for the Plaid API client."""

import logging
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
import requests

from plaid2csv.api.plaid_client import PlaidClient
from plaid2csv.models.core import ItemConfig, ProviderConfig, Stream
from plaid2csv.utils.error_handler import (
    ProviderError,
    ResponseStatusError,
    TransportError,
)


def make_response(payload=None, status_code=200, reason='OK', text=''):
    response = MagicMock()
    response.status_code = status_code
    response.reason = reason
    response.text = text
    response.json.return_value = payload if payload is not None else {}
    return response


class TestPlaidClient:
    """Test cases for PlaidClient"""

    def setup_method(self):
        self.item = ItemConfig(
            item_id='item-a',
            name='First Bank',
            token='access-sandbox-a',
            transactions={'acc-2': 'Savings', 'acc-1': 'Checking'},
            investments={'acc-9': 'Brokerage'},
        )
        self.config = ProviderConfig(
            environment='sandbox',
            client_id='client-123',
            secret='secret-456',
            items={'item-a': self.item},
        )
        self.client = PlaidClient(self.config)

    def test_base_url_uses_environment(self):
        assert self.client.base_url == 'https://sandbox.plaid.com'

    @patch("plaid2csv.api.plaid_client.requests.post")
    def test_get_transactions_request(self, mock_post):
        mock_post.return_value = make_response({
            'item': {'item_id': 'item-a'},
            'transactions': [],
            'total_transactions': 0,
        })

        page = self.client.get_transactions(self.item, date(2024, 3, 1), date(2024, 3, 16), offset=500)

        assert page.total == 0
        args, kwargs = mock_post.call_args
        assert args[0] == 'https://sandbox.plaid.com/transactions/get'
        assert kwargs['headers'] == {'content-type': 'application/json'}

        body = kwargs['json']
        assert body['client_id'] == 'client-123'
        assert body['secret'] == 'secret-456'
        assert body['access_token'] == 'access-sandbox-a'
        assert body['start_date'] == '2024-03-01'
        assert body['end_date'] == '2024-03-16'
        assert body['options'] == {
            'count': 500,
            'offset': 500,
            'account_ids': ['acc-1', 'acc-2'],
            'include_original_description': True,
        }

    @patch("plaid2csv.api.plaid_client.requests.post")
    def test_get_investment_transactions_request(self, mock_post):
        mock_post.return_value = make_response({
            'item': {'item_id': 'item-a'},
            'investment_transactions': [],
            'securities': [],
            'total_investment_transactions': 0,
        })

        self.client.get_investment_transactions(self.item, date(2024, 3, 1), date(2024, 3, 16))

        args, kwargs = mock_post.call_args
        assert args[0] == 'https://sandbox.plaid.com/investments/transactions/get'
        assert kwargs['json']['options'] == {
            'count': 500,
            'offset': 0,
            'account_ids': ['acc-9'],
            'async_update': False,
        }

    @patch("plaid2csv.api.plaid_client.requests.post")
    def test_json_numbers_decoded_as_decimal(self, mock_post):
        mock_post.return_value = make_response({'item': {'item_id': 'item-a'}})

        self.client.get_item(self.item)

        mock_post.return_value.json.assert_called_once_with(parse_float=Decimal)

    @patch("plaid2csv.api.plaid_client.requests.post")
    def test_refresh_endpoints(self, mock_post):
        mock_post.return_value = make_response({'request_id': 'req-9'})

        assert self.client.refresh(self.item, Stream.TRANSACTIONS) == 'req-9'
        assert mock_post.call_args[0][0] == 'https://sandbox.plaid.com/transactions/refresh'

        self.client.refresh(self.item, Stream.INVESTMENTS)
        assert mock_post.call_args[0][0] == 'https://sandbox.plaid.com/investments/refresh'
        assert mock_post.call_args[1]['json'] == {
            'client_id': 'client-123',
            'secret': 'secret-456',
            'access_token': 'access-sandbox-a',
        }

    @patch("plaid2csv.api.plaid_client.requests.post")
    def test_bad_request_logs_body(self, mock_post, caplog):
        mock_post.return_value = make_response(
            status_code=400, reason='Bad Request', text='{"error_code": "INVALID_FIELD"}'
        )

        with caplog.at_level(logging.ERROR, logger='plaid2csv.api.plaid_client'):
            with pytest.raises(ResponseStatusError) as excinfo:
                self.client.get_item(self.item)

        assert excinfo.value.status_code == 400
        assert 'bad response: 400 Bad Request' in str(excinfo.value)
        assert 'INVALID_FIELD' in caplog.text

    @patch("plaid2csv.api.plaid_client.requests.post")
    def test_other_status_does_not_log_body(self, mock_post, caplog):
        mock_post.return_value = make_response(
            status_code=500, reason='Internal Server Error', text='secret-body'
        )

        with caplog.at_level(logging.ERROR, logger='plaid2csv.api.plaid_client'):
            with pytest.raises(ResponseStatusError) as excinfo:
                self.client.get_transactions(self.item, date(2024, 3, 1), date(2024, 3, 16))

        assert excinfo.value.stream == 'transactions'
        assert 'secret-body' not in caplog.text

    @patch("plaid2csv.api.plaid_client.requests.post")
    def test_transport_failure(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(TransportError) as excinfo:
            self.client.get_item(self.item)
        assert 'connection refused' in str(excinfo.value)

    @patch("plaid2csv.api.plaid_client.requests.post")
    def test_undecodable_body(self, mock_post):
        response = make_response()
        response.json.side_effect = ValueError("Expecting value")
        mock_post.return_value = response

        with pytest.raises(TransportError):
            self.client.get_item(self.item)

    @patch("plaid2csv.api.plaid_client.requests.post")
    def test_embedded_error_on_200(self, mock_post):
        mock_post.return_value = make_response({
            'item': {
                'item_id': 'item-a',
                'error': {
                    'error_type': 'ITEM_ERROR',
                    'error_code': 'PRODUCT_NOT_READY',
                    'error_message': 'not ready',
                    'display_message': None,
                },
            },
            'investment_transactions': [],
            'total_investment_transactions': 0,
        })

        with pytest.raises(ProviderError) as excinfo:
            self.client.get_investment_transactions(self.item, date(2024, 3, 1), date(2024, 3, 16))

        assert excinfo.value.error_code == 'PRODUCT_NOT_READY'
        assert excinfo.value.stream == 'investments'
        assert excinfo.value.item == 'First Bank'
