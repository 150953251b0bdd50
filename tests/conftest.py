"""Shared pytest fixtures: an in-memory document source and a fixed clock."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from supplyreports.sources import (
    DocumentSource,
    MovementFilter,
    SourceError,
    UnsupportedQueryError,
    matches_filter,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
TODAY = date(2026, 1, 1)


class InMemorySource(DocumentSource):
    """Document source double that evaluates filters the way the store does."""

    def __init__(
        self,
        items=None,
        movements=None,
        thresholds=None,
        supports_compound: bool = True,
        items_error: Exception | None = None,
        movements_error: Exception | None = None,
        thresholds_error: Exception | None = None,
    ):
        self.items = list(items or [])
        self.movements = list(movements or [])
        self.thresholds = thresholds
        self.supports_compound = supports_compound
        self.items_error = items_error
        self.movements_error = movements_error
        self.thresholds_error = thresholds_error
        self.movement_filters: list[MovementFilter] = []

    def fetch_all_items(self):
        if self.items_error:
            raise self.items_error
        return [dict(raw) for raw in self.items]

    def fetch_movements(self, movement_filter):
        self.movement_filters.append(movement_filter)
        if self.movements_error:
            raise self.movements_error
        if movement_filter.is_compound and not self.supports_compound:
            raise UnsupportedQueryError("FAILED_PRECONDITION: The query requires an index.")
        return [dict(raw) for raw in self.movements if matches_filter(raw, movement_filter)]

    def fetch_thresholds(self):
        if self.thresholds_error:
            raise self.thresholds_error
        return self.thresholds


def movement(item_id, quantity, days_ago=1, type="OUT", name=None, unit="CSR", **extra):
    raw = {
        "id": f"m-{item_id}-{quantity}-{days_ago}",
        "itemId": item_id,
        "itemName": name or f"Item {item_id}",
        "unit": unit,
        "quantity": quantity,
        "type": type,
        "timestamp": (NOW - timedelta(days=days_ago)).isoformat(),
    }
    raw.update(extra)
    return raw


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def sample_items():
    return [
        {"id": "i1", "name": "Syringe", "unit": "CSR", "category": "A", "onHand": 5, "parLevel": 20,
         "expirationDate": "2026-01-20"},
        {"id": "i2", "name": "Gauze", "unit": "OR", "category": "B", "onhand": 18, "parlevel": 20,
         "expirationdate": "2025-12-31"},
        {"id": "i3", "name": "Gloves", "unit": "OR", "category": "A", "onHand": 100, "parLevel": 50,
         "expirationDate": "2026-2-15"},
        {"id": "i4", "name": "Masks", "unit": "Supply Office", "onHand": "7"},
    ]


@pytest.fixture
def sample_movements():
    return [
        movement("X", 5, days_ago=1, name="Syringe"),
        movement("X", 3, days_ago=2, name="Syringe"),
        movement("Y", 10, days_ago=3, name="Gauze"),
        movement("X", 2, days_ago=4, name="Syringe"),
        movement("Y", 40, days_ago=2, type="IN", name="Gauze"),
        movement("Z", 99, days_ago=45, name="Gloves"),
    ]


@pytest.fixture
def source(sample_items, sample_movements):
    return InMemorySource(
        items=sample_items,
        movements=sample_movements,
        thresholds={"d30": 30, "d60": 60, "d90": 90},
    )


@pytest.fixture
def failing_source():
    return InMemorySource(items_error=SourceError("permission denied"))
