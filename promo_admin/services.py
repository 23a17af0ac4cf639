"""
Statistics service

Binds a source of code records to a StatsAggregator and exposes an explicit
refresh operation. One instance is created per application by create_app().
"""

import logging
import threading
from typing import Callable, Iterable, Optional

from promo_admin.stats import CodeRecord, StatsAggregator, StatsReport

logger = logging.getLogger("flask.app")

# key of the service in app.extensions
STATS_EXTENSION = "promo_stats"


class PromoCodeStatsService:
    """Fetches code records on demand and keeps the latest report"""

    def __init__(
        self,
        fetch_records: Callable[[], Iterable[CodeRecord]],
        aggregator: Optional[StatsAggregator] = None,
    ):
        self._fetch_records = fetch_records
        self._aggregator = aggregator or StatsAggregator()
        self._lock = threading.Lock()
        self._latest: Optional[StatsReport] = None

    @property
    def latest(self) -> Optional[StatsReport]:
        """The report produced by the last successful refresh, if any"""
        return self._latest

    def refresh(self) -> StatsReport:
        """
        Fetches a fresh snapshot of the records and recomputes the report

        Refreshes are serialized so only one fetch is in flight at a time.
        Errors raised by the fetch propagate and leave `latest` untouched.
        """
        with self._lock:
            records = list(self._fetch_records())
            logger.info("Computing promo code statistics over %d records", len(records))
            report = self._aggregator.summarize(records)
            self._latest = report
            return report
