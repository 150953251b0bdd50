from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field

# Integral quantities stay ints so they render as "5", not "5.0".
Quantity = int | float


class Record(BaseModel):
    """
    Base for every data contract in the engine. Attributes are snake_case; the
    camelCase names used by the document store are the aliases, so a dump with
    by_alias=True reproduces the wire format.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Item(Record):
    """A consumable supply item as stored per hospital unit."""

    id: Optional[str] = None
    name: str = "Unnamed"
    unit: str = "—"
    category: str = "—"
    expiration_date: str = Field(default="", alias="expirationDate")
    on_hand: Quantity = Field(default=0, ge=0, alias="onHand")
    par_level: Quantity = Field(default=0, ge=0, alias="parLevel")


class StockMovement(Record):
    id: Optional[str] = None
    item_id: Optional[str] = Field(default=None, alias="itemId")
    item_name: str = Field(default="Unnamed", alias="itemName")
    unit: str = "—"
    quantity: Quantity = Field(default=0, ge=0)
    type: str = ""
    timestamp: Optional[datetime] = None


class Thresholds(Record):
    """
    FEFO bucket boundaries in days. The names are conventional labels; the
    values are whatever the settings document configures.
    """

    d30: Quantity = Field(default=30, gt=0)
    d60: Quantity = Field(default=60, gt=0)
    d90: Quantity = Field(default=90, gt=0)

    @staticmethod
    def label(value: Quantity) -> str:
        return f"{value} days"

    def as_tuple(self) -> tuple[Quantity, Quantity, Quantity]:
        return self.d30, self.d60, self.d90

    def labels(self) -> list[str]:
        return [self.label(v) for v in self.as_tuple()]

    @property
    def is_ordered(self) -> bool:
        return self.d30 < self.d60 < self.d90


class ReportBundle(Record):
    """One consistent snapshot of everything the reports are computed from."""

    thresholds: Thresholds
    items: tuple[Item, ...] = ()
    movements_out: tuple[StockMovement, ...] = Field(default=(), alias="movementsOut")
    loaded_at: datetime = Field(..., alias="loadedAt")


# --- Derived report entries ---


class ExpiryEntry(Record):
    item: Item
    days_left: int = Field(..., alias="daysLeft")
    bucket: str


class LowStockEntry(Record):
    item: Item
    ratio: float
    status: str


class FastMovingEntry(Record):
    item_id: str = Field(..., alias="itemId")
    name: str
    unit: str
    out_qty: Quantity = Field(..., alias="outQty")


class FastMovingResult(Record):
    totals: tuple[FastMovingEntry, ...] = ()
    movements: tuple[StockMovement, ...] = ()


# --- Presentation ---


class ReportTable(Record):
    """A classified dataset laid out for export: header plus ordered rows."""

    key: str
    title: str
    filename: str
    header: tuple[str, ...]
    rows: tuple[tuple[Any, ...], ...] = ()
    empty_message: str = Field(default="No data found.", alias="emptyMessage")


class ReportSummary(Record):
    low_stock_count: int = Field(..., alias="lowStockCount")
    near_expiry_count: int = Field(..., alias="nearExpiryCount")
    thresholds_line: str = Field(..., alias="thresholdsLine")
    top_fast_moving: Optional[str] = Field(default=None, alias="topFastMoving")


class DashboardSummary(Record):
    total_items: int = Field(..., alias="totalItems")
    low_stock_count: int = Field(..., alias="lowStockCount")
    critical_low: tuple[LowStockEntry, ...] = Field(default=(), alias="criticalLow")
    near_expiry_counts: dict[str, int] = Field(default_factory=dict, alias="nearExpiryCounts")
    out_movement_count: int = Field(..., alias="outMovementCount")
    fast_moving_top: tuple[FastMovingEntry, ...] = Field(default=(), alias="fastMovingTop")
