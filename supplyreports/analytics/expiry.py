"""
FEFO (First-Expired-First-Out) bucketing of items by days until expiration.
"""

from datetime import date
from typing import Iterable

from ..schemas import ExpiryEntry, Item, Thresholds

EXPIRED = "Expired"


def parse_expiration_date(value: str | None) -> date | None:
    """
    Parses "YYYY-M-D" or "YYYY-MM-DD" into a calendar date.
    Anything that is not exactly three non-zero integers, or not a real date,
    means "no expiration tracked".
    """
    if not value:
        return None

    parts = str(value).split("-")
    if len(parts) != 3:
        return None

    try:
        year, month, day = (int(p) for p in parts)
    except ValueError:
        return None
    if not (year and month and day):
        return None

    try:
        return date(year, month, day)
    except ValueError:
        return None


def days_until(expiry: date, today: date) -> int:
    """Whole calendar days from today to expiry; negative once expired."""
    return (expiry - today).days


def bucket_for(days_left: int, thresholds: Thresholds) -> str | None:
    """First matching bucket label, or None when the date is too far out to report."""
    if days_left < 0:
        return EXPIRED
    for limit in thresholds.as_tuple():
        if days_left <= limit:
            return Thresholds.label(limit)
    return None


def bucket_expiring(
    items: Iterable[Item], thresholds: Thresholds, today: date
) -> list[ExpiryEntry]:
    """
    Returns near-expiry and expired items, soonest first.
    Items without a usable expiration date, or beyond the last threshold, are left out.
    """
    entries = []
    for item in items:
        expiry = parse_expiration_date(item.expiration_date)
        if expiry is None:
            continue

        days_left = days_until(expiry, today)
        bucket = bucket_for(days_left, thresholds)
        if bucket is None:
            continue

        entries.append(ExpiryEntry(item=item, days_left=days_left, bucket=bucket))

    # sorted() is stable, so equal days keep input order
    return sorted(entries, key=lambda e: e.days_left)
