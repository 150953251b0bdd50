"""
Fast-moving analysis: OUT quantity per item over a rolling window.

The store can only serve "type == OUT and timestamp >= from" when a composite
index is deployed. When it is not, the query is retried with the timestamp
predicate alone and the type filter runs here instead. Both paths go through
the same in-memory window check, so callers get the same result either way.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable

import pandas as pd

from ..normalizer import UNKNOWN_ITEM_ID, normalize_movement, parse_timestamp, to_number
from ..schemas import FastMovingEntry, FastMovingResult, StockMovement
from ..sources import DocumentSource, MovementFilter, RawRecord, UnsupportedQueryError

logger = logging.getLogger(__name__)

OUT = "OUT"


def window_start(now: datetime, days: int) -> datetime:
    return now - timedelta(days=days)


def is_out_in_window(movement: StockMovement, since: datetime, now: datetime) -> bool:
    if movement.type != OUT or movement.timestamp is None:
        return False
    return since <= movement.timestamp <= now


def _exact_sum(quantities: pd.Series) -> int | float:
    # python ints, so large totals cannot wrap around like int64
    return sum(quantities.tolist())


def aggregate_out(movements: Iterable[StockMovement]) -> list[FastMovingEntry]:
    """
    Sums quantity per item, largest total first. Ties keep first-encounter order;
    each item shows the last name/unit seen for it.
    """
    rows = [
        {
            "item_id": m.item_id or UNKNOWN_ITEM_ID,
            "name": m.item_name or "Unnamed",
            "unit": m.unit or "—",
            "quantity": m.quantity,
        }
        for m in movements
    ]
    if not rows:
        return []

    df = pd.DataFrame(rows, dtype=object)
    totals = (
        df.groupby("item_id", sort=False)
        .agg(
            name=("name", "last"),
            unit=("unit", "last"),
            out_qty=("quantity", _exact_sum),
        )
        .reset_index()
    )
    totals = totals.sort_values("out_qty", ascending=False, kind="stable")

    return [
        FastMovingEntry(
            item_id=row["item_id"],
            name=row["name"],
            unit=row["unit"],
            out_qty=to_number(row["out_qty"]),
        )
        for row in totals.to_dict("records")
    ]


class MovementAggregator:
    """Reads OUT movements for a window from the injected source and totals them per item."""

    def __init__(self, source: DocumentSource):
        self.source = source

    def _primary_query(self, since: datetime) -> list[RawRecord]:
        return self.source.fetch_movements(MovementFilter(min_timestamp=since, type=OUT))

    def _fallback_query(self, since: datetime) -> list[RawRecord]:
        return self.source.fetch_movements(MovementFilter(min_timestamp=since))

    def _query(self, since: datetime) -> list[RawRecord]:
        try:
            return self._primary_query(since)
        except UnsupportedQueryError as e:
            logger.warning(f"Composite index missing, using fallback query. ({e})")
            return self._fallback_query(since)

    def out_movements(self, days: int, now: datetime = None) -> list[StockMovement]:
        """OUT movements with timestamp in [now - days, now]."""
        now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
        since = window_start(now, days)

        movements = [normalize_movement(raw) for raw in self._query(since)]
        return [m for m in movements if is_out_in_window(m, since, now)]

    def fast_moving(self, days: int, now: datetime = None) -> FastMovingResult:
        movements = self.out_movements(days, now)
        return FastMovingResult(
            totals=tuple(aggregate_out(movements)),
            movements=tuple(movements),
        )
