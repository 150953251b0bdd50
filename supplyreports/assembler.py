"""
Builds one consistent ReportBundle from the document store.

Thresholds, items and the OUT movements for the default window are fetched
concurrently. The join waits for all three; if items or movements hard-fail the
whole load fails and nothing partial is returned. Thresholds never fail, they
degrade to the configured defaults.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from . import settings
from .analytics.movements import MovementAggregator
from .normalizer import normalize_item, parse_timestamp, to_number
from .schemas import Item, ReportBundle, StockMovement, Thresholds
from .sources import DocumentSource

logger = logging.getLogger(__name__)


def thresholds_from_record(
    record: Mapping[str, Any] | None, defaults: Thresholds
) -> Thresholds:
    """
    Reads d30/d60/d90 from a settings document, falling back per field.
    Values configured out of order are sorted so the buckets stay nested.
    """
    if not record:
        return defaults

    values = []
    for key, default in zip(("d30", "d60", "d90"), defaults.as_tuple()):
        value = to_number(record.get(key), default)
        values.append(value if value > 0 else default)

    if values != sorted(values):
        logger.warning(f"Expiry thresholds {values} are not ascending. Sorting them.")
        values.sort()

    d30, d60, d90 = values
    return Thresholds(d30=d30, d60=d60, d90=d90)


class ReportBundleAssembler:
    def __init__(
        self,
        source: DocumentSource,
        window_days: int = None,
        default_thresholds: Thresholds = None,
    ):
        self.source = source
        self.window_days = window_days or settings.MOVEMENT_WINDOW_DAYS
        self.default_thresholds = default_thresholds or Thresholds(**settings.DEFAULT_THRESHOLDS)
        self.aggregator = MovementAggregator(source)

    def resolve_thresholds(self) -> Thresholds:
        """Configured thresholds, or the defaults when the document is missing or unreadable."""
        try:
            record = self.source.fetch_thresholds()
            if record is None:
                logger.warning("No thresholds document found. Using defaults.")
            return thresholds_from_record(record, self.default_thresholds)
        except Exception as e:
            logger.warning(f"Thresholds not found/blocked. Using defaults. ({e})")
            return self.default_thresholds

    def get_items(self) -> list[Item]:
        return [normalize_item(raw) for raw in self.source.fetch_all_items()]

    def get_out_movements(self, days: int = None, now: datetime = None) -> list[StockMovement]:
        return self.aggregator.out_movements(days or self.window_days, now)

    async def load_bundle(self, now: datetime = None) -> ReportBundle:
        now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
        logger.info(f"Loading report bundle (window: {self.window_days} days)...")

        results = await asyncio.gather(
            asyncio.to_thread(self.resolve_thresholds),
            asyncio.to_thread(self.get_items),
            asyncio.to_thread(self.get_out_movements, self.window_days, now),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        thresholds, items, movements = results
        logger.info(f"Loaded {len(items)} items and {len(movements)} OUT movements.")
        return ReportBundle(
            thresholds=thresholds,
            items=tuple(items),
            movements_out=tuple(movements),
            loaded_at=now,
        )

    def load_bundle_sync(self, now: datetime = None) -> ReportBundle:
        return asyncio.run(self.load_bundle(now))
