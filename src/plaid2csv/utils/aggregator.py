"""Assembly of per-item bundles from fetched pages."""

import logging
from datetime import date
from typing import List, Optional

from ..models.core import ItemBundle, ItemConfig
from ..models.records import InvestmentsPage, TransactionsPage
from .paginator import PageAccumulator


logger = logging.getLogger(__name__)


class ActivityAggregator:
    """Builds one ItemBundle per item from both streams.

    This stage only accumulates: records are concatenated in page order,
    securities are merged by identifier with later pages winning, and no
    deduplication is performed.
    """

    def __init__(self, accumulator: PageAccumulator):
        self.accumulator = accumulator

    def collect(self, item: ItemConfig, start: date, end: date) -> ItemBundle:
        """Fetch both streams of an item and merge them into a bundle"""
        transaction_pages = self.accumulator.fetch_transactions(item, start, end)
        investment_pages = self.accumulator.fetch_investments(item, start, end)
        return self.merge(item, transaction_pages, investment_pages)

    def merge(self, item: ItemConfig, transaction_pages: List[TransactionsPage],
              investment_pages: List[InvestmentsPage]) -> ItemBundle:
        bundle = ItemBundle(item_id=self._reported_item_id(item, transaction_pages, investment_pages))

        for page in transaction_pages:
            bundle.transactions.extend(page.transactions)

        for page in investment_pages:
            bundle.investments.extend(page.investment_transactions)
            bundle.securities.update(page.securities_by_id())

        logger.debug(
            f"{item.name}: bundle has {len(bundle.transactions)} transactions, "
            f"{len(bundle.investments)} investment transactions, "
            f"{len(bundle.securities)} securities"
        )
        return bundle

    @staticmethod
    def _reported_item_id(item: ItemConfig, transaction_pages: List[TransactionsPage],
                          investment_pages: List[InvestmentsPage]) -> str:
        """Item id as reported by the provider, else the configured one"""
        reported: Optional[str] = None
        for page in list(transaction_pages) + list(investment_pages):
            if page.item_id:
                reported = page.item_id
                break
        return reported or item.item_id
