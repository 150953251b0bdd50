"""Tests for CSV and printable renderers and the report tables."""

import csv
import io
from datetime import datetime

from supplyreports.exporters import (
    escape_csv_cell,
    fast_moving_table,
    low_stock_table,
    near_expiry_table,
    render_csv,
    render_html_table,
    render_printable,
    table_to_printable,
)
from supplyreports.schemas import ExpiryEntry, FastMovingEntry, Item, LowStockEntry


def test_quotes_and_commas_are_escaped():
    assert escape_csv_cell('Item, "A"') == '"Item, ""A"""'


def test_escaped_cell_round_trips_through_csv_reader():
    text = render_csv(["Item"], [['Item, "A"']])
    rows = list(csv.reader(io.StringIO(text)))
    assert rows == [["Item"], ['Item, "A"']]


def test_newlines_are_quoted():
    assert escape_csv_cell("line1\nline2") == '"line1\nline2"'


def test_plain_values_pass_through():
    assert escape_csv_cell("Gauze") == "Gauze"
    assert escape_csv_cell(5) == "5"
    assert escape_csv_cell(0.25) == "0.25"
    assert escape_csv_cell(None) == ""
    assert escape_csv_cell("") == ""


def test_render_csv_keeps_column_order_and_has_no_trailing_newline():
    text = render_csv(["B", "A"], [[1, "x"], [2, "y,z"]])
    assert text == 'B,A\n1,x\n2,"y,z"'


def test_render_csv_header_only():
    assert render_csv(["Item", "Unit"], []) == "Item,Unit"


def test_render_printable_wraps_body():
    doc = render_printable("Low <Stock>", "<table></table>", generated_at=datetime(2026, 1, 1, 9, 30))

    assert doc.startswith("<html>")
    assert "<title>Low &lt;Stock&gt;</title>" in doc
    assert "<h1>Low &lt;Stock&gt;</h1>" in doc
    assert "Generated: 2026-01-01 09:30" in doc
    assert "<table></table>" in doc
    assert "border-collapse" in doc


def test_low_stock_table_rows():
    entry = LowStockEntry(
        item=Item(name="Syringe", unit="CSR", category="A", on_hand=5, par_level=20),
        ratio=0.25,
        status="Critical",
    )
    table = low_stock_table([entry])

    assert table.header == ("Item", "Unit", "On Hand", "Par", "Status", "Category")
    assert render_csv(table.header, table.rows).splitlines()[1] == "Syringe,CSR,5,20,Critical,A"


def test_near_expiry_table_uses_placeholder_for_missing_date():
    entry = ExpiryEntry(item=Item(name="Gauze"), days_left=-1, bucket="Expired")
    (row,) = near_expiry_table([entry]).rows
    assert row == ("Gauze", "—", "—", -1, "Expired", "—")


def test_fast_moving_table_header_carries_window():
    table = fast_moving_table([FastMovingEntry(item_id="X", name="Syringe", unit="CSR", out_qty=10)], 14)

    assert table.title == "Fast Moving Items (Last 14 Days OUT)"
    assert table.header == ("Item", "Unit", "OUT Qty (14d)")
    assert table.rows == (("Syringe", "CSR", 10),)


def test_html_table_escapes_cells():
    entry = FastMovingEntry(item_id="X", name="<b>Gloves</b>", unit="OR", out_qty=3)
    html_table = render_html_table(fast_moving_table([entry]))

    assert "<td>&lt;b&gt;Gloves&lt;/b&gt;</td>" in html_table
    assert "<th>Item</th>" in html_table


def test_empty_table_renders_explicit_empty_state():
    html_table = render_html_table(low_stock_table([]))
    assert 'colspan="6"' in html_table
    assert "No low stock items found." in html_table


def test_table_to_printable_titles_with_prefix():
    doc = table_to_printable(near_expiry_table([]), generated_at=datetime(2026, 1, 1))
    assert "Near Expiry Items (FEFO)</h1>" in doc
    assert "No near-expiry items found." in doc


def test_printable_keeps_body_markup_but_escapes_title():
    doc = render_printable("<script>x</script>", "<table><tr><td>A</td></tr></table>", datetime(2026, 1, 1))

    assert "<table><tr><td>A</td></tr></table>" in doc
    assert "<script>" not in doc


def test_html_table_renders_none_cells_blank():
    entry = LowStockEntry(item=Item(name="Syringe"), ratio=0.0, status="Critical")
    table = low_stock_table([entry]).model_copy(update={"rows": (("Syringe", None),)})

    assert "<td>Syringe</td><td></td>" in render_html_table(table)
