"""
Reconciles raw document-store records into canonical Item / StockMovement models.

Documents written by different versions of the inventory screens carry the same
field under different spellings (onHand vs onhand, date vs timestamp). Every
spelling we accept is listed once in FIELD_ALIASES; nothing else guesses field
names. Normalization never raises: unusable values fall back to the field default.
"""

import math
from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

from .schemas import Item, StockMovement

# canonical key -> alternate keys, tried in order after the canonical one
FIELD_ALIASES: dict[str, list[str]] = {
    "onHand": ["onhand"],
    "parLevel": ["parlevel"],
    "expirationDate": ["expirationdate"],
    "itemId": ["itemid"],
    "itemName": ["itemname"],
    "timestamp": ["date"],
}

UNKNOWN_ITEM_ID = "UNKNOWN"


def resolve_field(raw: Mapping[str, Any], key: str, default: Any = None) -> Any:
    """Returns the first non-null value among `key` and its aliases, else `default`."""
    for candidate in [key, *FIELD_ALIASES.get(key, [])]:
        value = raw.get(candidate)
        if value is not None:
            return value
    return default


def to_number(value: Any, default: int | float = 0) -> int | float:
    """
    Coerces a raw value to a finite, non-negative number.
    Integral results come back as int so they keep their plain decimal form.
    """
    if value is None or isinstance(value, bool):
        return default

    if isinstance(value, (int, float)):
        number = value
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return default

    try:
        if not math.isfinite(number) or number < 0:
            return default
    except OverflowError:
        # ints too large for a float
        return default
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _text(value: Any, default: str) -> str:
    return default if value is None else str(value)


def _optional_text(value: Any) -> str | None:
    return None if value is None else str(value)


def parse_timestamp(value: Any) -> datetime | None:
    """
    Converts the timestamp shapes a document store hands back into an aware datetime.

    Accepted: datetime, date, ISO-8601 strings, epoch seconds, and timestamp
    mappings ({"seconds": .., "nanoseconds": ..} or the "_seconds" export form).
    Naive values are taken as UTC.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, Mapping):
        seconds = value.get("seconds", value.get("_seconds"))
        nanos = value.get("nanoseconds", value.get("_nanoseconds", 0))
        seconds = to_number(seconds, None)
        if seconds is None:
            return None
        return parse_timestamp(seconds + to_number(nanos) / 1e9)
    else:
        try:
            result = datetime.fromisoformat(str(value).strip())
        except ValueError:
            return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


def normalize_item(raw: Mapping[str, Any]) -> Item:
    """Builds a canonical Item from a raw item document."""
    return Item(
        id=_optional_text(raw.get("id")),
        name=_text(raw.get("name"), "Unnamed"),
        unit=_text(raw.get("unit"), "—"),
        category=_text(raw.get("category"), "—"),
        expiration_date=_text(resolve_field(raw, "expirationDate"), ""),
        on_hand=to_number(resolve_field(raw, "onHand")),
        par_level=to_number(resolve_field(raw, "parLevel")),
    )


def normalize_movement(raw: Mapping[str, Any]) -> StockMovement:
    """Builds a canonical StockMovement from a raw movement document."""
    return StockMovement(
        id=_optional_text(raw.get("id")),
        item_id=_optional_text(resolve_field(raw, "itemId")),
        item_name=_text(resolve_field(raw, "itemName"), "Unnamed"),
        unit=_text(raw.get("unit"), "—"),
        quantity=to_number(raw.get("quantity")),
        # kept verbatim: the store matches type == "OUT" exactly, so the in-memory
        # filter must too
        type=_text(raw.get("type"), ""),
        timestamp=parse_timestamp(resolve_field(raw, "timestamp")),
    )
