"""
View-level helpers over a loaded bundle: item filters, the report summary cards
and the dashboard overview. Slicing policies (top N) live here, not in the
classifiers.
"""

from datetime import date
from typing import Iterable

from . import settings, utils
from .analytics.expiry import EXPIRED, bucket_expiring
from .analytics.low_stock import CRITICAL, classify_low_stock
from .analytics.movements import aggregate_out
from .schemas import (
    DashboardSummary,
    ExpiryEntry,
    FastMovingEntry,
    Item,
    LowStockEntry,
    ReportBundle,
    ReportSummary,
    Thresholds,
)

ALL = "ALL"


def filter_items(
    items: Iterable[Item], text: str = "", unit: str = ALL, category: str = ALL
) -> list[Item]:
    """
    Case-insensitive search on name or category, plus exact unit/category filters.
    "ALL" (or an empty value) disables a filter.
    """
    needle = (text or "").strip().lower()

    def matches(item: Item) -> bool:
        match_text = (
            not needle
            or needle in item.name.lower()
            or needle in str(item.category).lower()
        )
        match_unit = unit in (ALL, "", None) or item.unit == unit
        match_category = category in (ALL, "", None) or item.category == category
        return match_text and match_unit and match_category

    return [item for item in items if matches(item)]


def critical_items(entries: Iterable[LowStockEntry], limit: int = None) -> list[LowStockEntry]:
    """The first `limit` Critical entries of an already sorted low-stock list."""
    limit = limit or settings.CRITICAL_PREVIEW_LIMIT
    return [e for e in entries if e.status == CRITICAL][:limit]


def expiring_soon(entries: Iterable[ExpiryEntry], thresholds: Thresholds) -> list[ExpiryEntry]:
    """Entries already expired or inside the first (smallest) bucket."""
    first_bucket = Thresholds.label(thresholds.d30)
    return [e for e in entries if e.bucket in (EXPIRED, first_bucket)]


def expiry_counts(entries: Iterable[ExpiryEntry], thresholds: Thresholds) -> dict[str, int]:
    counts = {label: 0 for label in [EXPIRED, *thresholds.labels()]}
    for e in entries:
        counts[e.bucket] = counts.get(e.bucket, 0) + 1
    return counts


def report_summary(
    low_stock: list[LowStockEntry],
    near_expiry: list[ExpiryEntry],
    fast_moving: list[FastMovingEntry],
    thresholds: Thresholds,
) -> ReportSummary:
    return ReportSummary(
        low_stock_count=len(low_stock),
        near_expiry_count=len(expiring_soon(near_expiry, thresholds)),
        thresholds_line="/".join(str(v) for v in thresholds.as_tuple()) + " days",
        top_fast_moving=fast_moving[0].name if fast_moving else None,
    )


def dashboard_summary(bundle: ReportBundle, today: date = None) -> DashboardSummary:
    """Inventory health overview computed from one bundle."""
    today = today or utils.local_today(bundle.loaded_at)
    low_stock = classify_low_stock(bundle.items)
    near_expiry = bucket_expiring(bundle.items, bundle.thresholds, today)
    fast_moving = aggregate_out(bundle.movements_out)

    return DashboardSummary(
        total_items=len(bundle.items),
        low_stock_count=len(low_stock),
        critical_low=tuple(critical_items(low_stock)),
        near_expiry_counts=expiry_counts(near_expiry, bundle.thresholds),
        out_movement_count=len(bundle.movements_out),
        fast_moving_top=tuple(fast_moving[: settings.FAST_MOVING_PREVIEW_LIMIT]),
    )
