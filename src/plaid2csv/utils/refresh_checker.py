"""Staleness-driven refresh of provider-side data."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ..api.plaid_client import PlaidClient
from ..models.core import REFRESH_THRESHOLD_LIMIT, ItemConfig, Stream
from ..models.records import ItemStatus


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshChecker:
    """Requests a refresh for each stream whose last update is too old.

    Refreshes are billed, so the check is skipped entirely (no status call)
    when the threshold is at or above REFRESH_THRESHOLD_LIMIT. A stream that
    has never updated successfully is never refreshed. Client errors are not
    caught: a failed refresh must stop the run.

    Example:
        checker = RefreshChecker(client, timedelta(hours=24))
        refreshed = checker.check(item_config)
    """

    def __init__(self, client: PlaidClient, threshold: timedelta,
                 clock: Optional[Callable[[], datetime]] = None):
        self.client = client
        self.threshold = threshold
        self.clock = clock or _utcnow

    @property
    def enabled(self) -> bool:
        return self.threshold < REFRESH_THRESHOLD_LIMIT

    def check(self, item: ItemConfig) -> List[Stream]:
        """Refresh stale streams of one item.

        Returns:
            Streams for which a refresh was requested
        """
        if not self.enabled:
            return []

        now = self.clock()
        status = self.client.get_item(item)

        refreshed = []
        for stream in Stream:
            if self.is_stale(status, stream, now):
                self.client.refresh(item, stream)
                refreshed.append(stream)
        return refreshed

    def is_stale(self, status: ItemStatus, stream: Stream, now: datetime) -> bool:
        """Whether a stream's own last successful update is older than the threshold"""
        stream_status = status.investments if stream is Stream.INVESTMENTS else status.transactions
        last_update = stream_status.last_successful_update
        if last_update is None:
            logger.debug(f"item {status.item_id}: {stream.value} never updated, skipping refresh")
            return False

        age = now - last_update
        if age < self.threshold:
            return False

        logger.info(
            f"item {status.item_id}: last successful {stream.value} update at "
            f"{last_update.isoformat()}, {timedelta(seconds=round(age.total_seconds()))} ago, "
            "requesting refresh"
        )
        return True
