from typing import Iterable

from .. import settings
from ..schemas import Item, LowStockEntry

CRITICAL = "Critical"
LOW = "Low"
NOT_TRACKED = "—"


def low_stock_status(on_hand: float, par_level: float) -> str:
    """Critical at or below half of par, Low above that. "—" when par is not tracked."""
    if par_level <= 0:
        return NOT_TRACKED
    ratio = on_hand / par_level
    return CRITICAL if ratio <= settings.CRITICAL_RATIO else LOW


def is_low_stock(item: Item) -> bool:
    return item.par_level > 0 and item.on_hand < item.par_level


def classify_low_stock(items: Iterable[Item]) -> list[LowStockEntry]:
    """Items below par, tightest stock (lowest on-hand / par ratio) first."""
    entries = [
        LowStockEntry(
            item=item,
            ratio=item.on_hand / item.par_level,
            status=low_stock_status(item.on_hand, item.par_level),
        )
        for item in items
        if is_low_stock(item)
    ]
    return sorted(entries, key=lambda e: e.ratio)
