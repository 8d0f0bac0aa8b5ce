"""Paginated retrieval of transaction and investment streams."""

import logging
from datetime import date
from typing import Callable, List, TypeVar

from ..api.plaid_client import PlaidClient
from ..models.core import MAX_PAGE_SIZE, ItemConfig, Stream
from ..models.records import InvestmentsPage, TransactionsPage


logger = logging.getLogger(__name__)

Page = TypeVar('Page', TransactionsPage, InvestmentsPage)


def _page_length(page) -> int:
    if isinstance(page, InvestmentsPage):
        return len(page.investment_transactions)
    return len(page.transactions)


class PageAccumulator:
    """Fetches every page of a stream for one item.

    Fetching continues while the latest reported total is at least the page
    size. The offset advances by the number of records actually received on
    each page, never by the reported totals.
    """

    def __init__(self, client: PlaidClient, page_size: int = MAX_PAGE_SIZE):
        if not 0 < page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        self.client = client
        self.page_size = page_size

    def fetch_transactions(self, item: ItemConfig, start: date, end: date) -> List[TransactionsPage]:
        if not item.transactions:
            logger.debug(f"{item.name}: no transaction accounts configured")
            return []

        def fetch(offset: int) -> TransactionsPage:
            return self.client.get_transactions(item, start, end, offset=offset, count=self.page_size)

        return self._paginate(item, Stream.TRANSACTIONS, fetch)

    def fetch_investments(self, item: ItemConfig, start: date, end: date) -> List[InvestmentsPage]:
        if not item.investments:
            logger.debug(f"{item.name}: no investment accounts configured")
            return []

        def fetch(offset: int) -> InvestmentsPage:
            return self.client.get_investment_transactions(item, start, end, offset=offset, count=self.page_size)

        return self._paginate(item, Stream.INVESTMENTS, fetch)

    def _paginate(self, item: ItemConfig, stream: Stream, fetch: Callable[[int], Page]) -> List[Page]:
        pages = []
        offset = 0

        while True:
            page = fetch(offset)
            pages.append(page)
            received = _page_length(page)
            offset += received

            logger.debug(
                f"{item.name}: {stream.value} page {len(pages)} returned {received} "
                f"records, reported total {page.total}, next offset {offset}"
            )

            if page.total < self.page_size:
                break
            if received == 0:
                logger.warning(
                    f"{item.name}: {stream.value} reported {page.total} records but "
                    f"returned none at offset {offset}, stopping"
                )
                break

        logger.info(f"{item.name}: fetched {offset} {stream.value} records in {len(pages)} page(s)")
        return pages
