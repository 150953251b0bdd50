"""Tests for raw record normalization."""

from datetime import date, datetime, timezone

import pytest

from supplyreports.normalizer import (
    normalize_item,
    normalize_movement,
    parse_timestamp,
    resolve_field,
    to_number,
)


def test_item_alias_keys_normalize_identically():
    canonical = {"id": "a", "name": "Syringe", "onHand": 5, "parLevel": 20, "expirationDate": "2026-3-15"}
    lowercase = {"expirationdate": "2026-3-15", "parlevel": 20, "onhand": 5, "name": "Syringe", "id": "a"}

    assert normalize_item(canonical) == normalize_item(lowercase)


def test_movement_alias_keys_normalize_identically():
    canonical = {"itemId": "X", "itemName": "Gauze", "quantity": 4, "type": "OUT",
                 "timestamp": "2026-01-01T08:00:00+00:00"}
    lowercase = {"itemid": "X", "itemname": "Gauze", "quantity": 4, "type": "OUT",
                 "date": "2026-01-01T08:00:00+00:00"}

    assert normalize_movement(canonical) == normalize_movement(lowercase)


def test_canonical_key_wins_over_alias():
    assert resolve_field({"onHand": 3, "onhand": 9}, "onHand") == 3
    assert resolve_field({"onHand": None, "onhand": 9}, "onHand") == 9
    assert resolve_field({}, "onHand", default=0) == 0


def test_item_defaults():
    item = normalize_item({"id": 7})

    assert item.id == "7"
    assert item.name == "Unnamed"
    assert item.unit == "—"
    assert item.category == "—"
    assert item.expiration_date == ""
    assert item.on_hand == 0
    assert item.par_level == 0


@pytest.mark.parametrize(
    "raw, expected",
    [
        (5, 5),
        ("12", 12),
        ("2.5", 2.5),
        (4.0, 4),
        (None, 0),
        ("", 0),
        ("abc", 0),
        (True, 0),
        (float("nan"), 0),
        (float("inf"), 0),
        (-3, 0),
        ([1, 2], 0),
    ],
)
def test_to_number_coercion(raw, expected):
    result = to_number(raw)
    assert result == expected
    assert type(result) is type(expected)


def test_to_number_uses_given_default():
    assert to_number("bad", default=30) == 30


def test_numeric_fields_never_raise():
    item = normalize_item({"onHand": {"nested": 1}, "parLevel": "n/a"})
    assert item.on_hand == 0
    assert item.par_level == 0


def test_movement_defaults_and_type_kept_verbatim():
    mv = normalize_movement({"quantity": "3", "type": "OUT"})

    assert mv.item_id is None
    assert mv.item_name == "Unnamed"
    assert mv.unit == "—"
    assert mv.quantity == 3
    assert mv.type == "OUT"
    assert mv.timestamp is None


@pytest.mark.parametrize(
    "raw",
    [
        datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc),
        datetime(2026, 1, 1, 8, 0),
        "2026-01-01T08:00:00Z",
        "2026-01-01T08:00:00",
        1767254400,
        {"seconds": 1767254400, "nanoseconds": 0},
        {"_seconds": 1767254400, "_nanoseconds": 0},
    ],
)
def test_parse_timestamp_shapes(raw):
    assert parse_timestamp(raw) == datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)


def test_parse_timestamp_date_and_garbage():
    assert parse_timestamp(date(2026, 1, 1)) == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp("yesterday") is None
    assert parse_timestamp({"nanoseconds": 5}) is None
    assert parse_timestamp(None) is None


def test_oversized_numbers_fall_back_to_default():
    assert to_number(10**400) == 0
    assert to_number(-(10**400), default=7) == 7
    assert normalize_item({"onHand": 10**400, "parLevel": 20}).on_hand == 0


def test_oversized_timestamps_are_missing():
    mv = normalize_movement({"itemId": "X", "type": "OUT", "timestamp": {"seconds": 10**400}})
    assert mv.timestamp is None
    assert parse_timestamp(10**400) is None
    assert parse_timestamp(float("nan")) is None
