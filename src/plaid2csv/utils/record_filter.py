"""Filtering, semimonthly clamping and ordering of bundle records."""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, TypeVar

from ..models.core import ItemBundle
from ..models.records import Transaction


logger = logging.getLogger(__name__)

Record = TypeVar('Record')

SEMIMONTHLY_SPLIT_DAY = 15


def clamp_boundary(end: date) -> datetime:
    """Last instant of the half month that closes before ``end``.

    An end date before the 15th clamps to the last instant of the previous
    month; otherwise to the last instant of the 15th of the end month.
    """
    if end.day < SEMIMONTHLY_SPLIT_DAY:
        next_start = date(end.year, end.month, 1)
    else:
        next_start = date(end.year, end.month, SEMIMONTHLY_SPLIT_DAY + 1)
    return datetime.combine(next_start, time.min) - timedelta(microseconds=1)


def _within(value: date, start: date, boundary: datetime) -> bool:
    return start <= value and datetime.combine(value, time.min) <= boundary


class RecordFilter:
    """Removes records from a bundle in place"""

    def omit_pending(self, bundle: ItemBundle) -> int:
        """Drop pending transactions; investments have no pending state.

        Returns:
            Number of transactions removed
        """
        kept = [txn for txn in bundle.transactions if not txn.pending]
        removed = len(bundle.transactions) - len(kept)
        bundle.transactions = kept
        if removed:
            logger.debug(f"item {bundle.item_id}: omitted {removed} pending transactions")
        return removed

    def clamp_semimonthly(self, bundle: ItemBundle, start: date, end: date) -> int:
        """Keep only records dated within [start, clamp_boundary(end)].

        Transactions are judged by their effective date (authorized date when
        present, else post date); investment transactions by their date.

        Returns:
            Number of records removed across both lists
        """
        boundary = clamp_boundary(end)
        before = len(bundle.transactions) + len(bundle.investments)

        bundle.transactions = [
            txn for txn in bundle.transactions
            if self.keep_transaction(txn, start, boundary)
        ]
        bundle.investments = [
            inv for inv in bundle.investments
            if inv.date is not None and _within(inv.date, start, boundary)
        ]

        removed = before - len(bundle.transactions) - len(bundle.investments)
        logger.debug(
            f"item {bundle.item_id}: clamped to {start.isoformat()}..{boundary.isoformat()}, "
            f"removed {removed} records"
        )
        return removed

    @staticmethod
    def keep_transaction(transaction: Transaction, start: date, boundary: datetime) -> bool:
        effective = transaction.effective_date
        if effective is None:
            return False
        return _within(effective, start, boundary)


class RecordSorter:
    """Stable chronological ordering of bundle records"""

    @staticmethod
    def sort_by_date(records: List[Record]) -> List[Record]:
        """Return records ordered by date; ties keep their input order"""
        return sorted(records, key=lambda record: record.date or date.min)

    def sort(self, bundle: ItemBundle) -> None:
        bundle.transactions = self.sort_by_date(bundle.transactions)
        bundle.investments = self.sort_by_date(bundle.investments)
