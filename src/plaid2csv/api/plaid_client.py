"""
Plaid API Client
Handles all requests to the Plaid item, refresh and activity endpoints
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

import requests

from ..models.core import MAX_PAGE_SIZE, ItemConfig, ProviderConfig, Stream
from ..models.records import InvestmentsPage, ItemStatus, TransactionsPage
from ..parsers.plaid_parser import ResponseParser
from ..utils.error_handler import ResponseStatusError, TransportError


logger = logging.getLogger(__name__)

PLAID_DOMAIN = "plaid.com"
ITEM_GET_ENDPOINT = "item/get"


class PlaidClient:
    """Client for the Plaid endpoints used by the exporter"""

    def __init__(self, config: ProviderConfig, base_url: Optional[str] = None,
                 parser: Optional[ResponseParser] = None):
        self.config = config
        self.base_url = (base_url or f"https://{config.environment}.{PLAID_DOMAIN}").rstrip('/')
        self.parser = parser or ResponseParser()
        self.headers = {
            'content-type': 'application/json'
        }

    def get_item(self, item: ItemConfig) -> ItemStatus:
        """
        Get item metadata and per-stream update status

        Returns:
            ItemStatus with last successful/failed update per stream
        """
        payload = self._post(ITEM_GET_ENDPOINT, self._basic_request(item), item=item)
        return self.parser.parse_item_status(payload, item=item.name)

    def refresh(self, item: ItemConfig, stream: Stream) -> str:
        """
        Ask the provider to refresh one stream of an item

        Returns:
            str: provider request id
        """
        payload = self._post(stream.refresh_endpoint, self._basic_request(item),
                             item=item, stream=stream)
        self.parser.check_error(payload, item=item.name, stream=stream.value)
        return str(payload.get('request_id') or '')

    def get_transactions(self, item: ItemConfig, start: date, end: date,
                         offset: int = 0, count: int = MAX_PAGE_SIZE) -> TransactionsPage:
        """
        Get one page of transactions for the item's transaction accounts

        Args:
            start: First date of the query, inclusive
            end: Last date of the query
            offset: Number of records to skip
            count: Page size, at most MAX_PAGE_SIZE
        """
        request = self._basic_request(item)
        request.update({
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
            'options': {
                'count': count,
                'offset': offset,
                'account_ids': item.account_ids(Stream.TRANSACTIONS),
                'include_original_description': True,
            },
        })
        payload = self._post(Stream.TRANSACTIONS.fetch_endpoint, request,
                             item=item, stream=Stream.TRANSACTIONS)
        return self.parser.parse_transactions_page(payload, item=item.name)

    def get_investment_transactions(self, item: ItemConfig, start: date, end: date,
                                    offset: int = 0, count: int = MAX_PAGE_SIZE) -> InvestmentsPage:
        """
        Get one page of investment transactions and their securities
        """
        request = self._basic_request(item)
        request.update({
            'start_date': start.isoformat(),
            'end_date': end.isoformat(),
            'options': {
                'count': count,
                'offset': offset,
                'account_ids': item.account_ids(Stream.INVESTMENTS),
                'async_update': False,
            },
        })
        payload = self._post(Stream.INVESTMENTS.fetch_endpoint, request,
                             item=item, stream=Stream.INVESTMENTS)
        return self.parser.parse_investments_page(payload, item=item.name)

    def _basic_request(self, item: ItemConfig) -> Dict[str, Any]:
        return {
            'client_id': self.config.client_id,
            'secret': self.config.secret,
            'access_token': item.token,
        }

    def _post(self, endpoint: str, body: Dict[str, Any], item: ItemConfig,
              stream: Optional[Stream] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{endpoint}"
        context = {
            'item': item.name,
            'stream': stream.value if stream else None,
        }
        logger.debug(f"POST {url}")

        try:
            response = requests.post(url, json=body, headers=self.headers)
        except requests.RequestException as e:
            raise TransportError(f"Failed to request {endpoint}: {e}", **context) from e

        if response.status_code != 200:
            if response.status_code == 400:
                logger.error(f"API Error:\n{response.text}")
            raise ResponseStatusError(response.status_code, response.reason or '', **context)

        try:
            payload = response.json(parse_float=Decimal)
        except ValueError as e:
            raise TransportError(f"Failed to decode {endpoint} response: {e}", **context) from e

        if not isinstance(payload, dict):
            raise TransportError(f"Unexpected {endpoint} response body", **context)
        return payload
