"""
Exporters for the classified report datasets.

render_csv and render_printable are pure text renderers. Writing the result to
disk or handing it to a print dialog is the caller's job (see data_handler).
"""

from datetime import datetime
from typing import Any, Iterable, Sequence

from jinja2 import BaseLoader, Environment, select_autoescape
from markupsafe import Markup

from . import settings
from .schemas import ExpiryEntry, FastMovingEntry, LowStockEntry, ReportTable

PLACEHOLDER = "—"
CSV_SPECIAL_CHARS = (",", '"', "\n")


def _format_value(value: Any) -> str:
    """Format a value for CSV/HTML output"""
    if value is None:
        return ""
    return str(value)


def escape_csv_cell(value: Any) -> str:
    """Quotes a cell only if it holds a comma, double quote or newline; inner quotes are doubled."""
    text = _format_value(value)
    if any(ch in text for ch in CSV_SPECIAL_CHARS):
        return '"' + text.replace('"', '""') + '"'
    return text


def render_csv(header: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    """Header plus rows, comma separated and newline joined, columns in the given order."""
    lines = [",".join(escape_csv_cell(cell) for cell in header)]
    lines.extend(",".join(escape_csv_cell(cell) for cell in row) for row in rows)
    return "\n".join(lines)


def _jinja_env() -> Environment:
    env = Environment(
        loader=BaseLoader(),
        autoescape=select_autoescape(enabled_extensions=("html", "xml")),
    )
    env.filters["cell"] = _format_value
    return env


_env = _jinja_env()

PRINTABLE_TEMPLATE = _env.from_string(
    """<html>
  <head>
    <title>{{ title }}</title>
    <style>
      body { font-family: Arial, sans-serif; padding: 20px; }
      h1 { margin: 0 0 12px; }
      p { margin: 0 0 16px; opacity: .75; }
      table { width: 100%; border-collapse: collapse; }
      th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
      th { background: #f3f6f2; }
    </style>
  </head>
  <body>
    <h1>{{ title }}</h1>
    <p>Generated: {{ generated_at.strftime("%Y-%m-%d %H:%M") }}</p>
    {{ body }}
  </body>
</html>
"""
)

HTML_TABLE_TEMPLATE = _env.from_string(
    "<table><thead><tr>"
    "{% for h in table.header %}<th>{{ h }}</th>{% endfor %}"
    "</tr></thead><tbody>"
    "{% for row in table.rows %}<tr>{% for cell in row %}<td>{{ cell | cell }}</td>{% endfor %}</tr>"
    '{% else %}<tr><td colspan="{{ table.header | length }}" class="empty">{{ table.empty_message }}</td></tr>'
    "{% endfor %}"
    "</tbody></table>"
)


def render_printable(title: str, body_html: str, generated_at: datetime = None) -> str:
    """Wraps an already rendered table in a minimal styled document, ready to print or save."""
    return PRINTABLE_TEMPLATE.render(
        title=title,
        generated_at=generated_at or datetime.now(),
        body=Markup(body_html),
    )


def render_html_table(table: ReportTable) -> str:
    """Renders a ReportTable as an HTML table, with an explicit empty-state row."""
    return HTML_TABLE_TEMPLATE.render(table=table)


def table_to_csv(table: ReportTable) -> str:
    return render_csv(table.header, table.rows)


def table_to_printable(table: ReportTable, generated_at: datetime = None) -> str:
    title = f"{settings.REPORT_TITLE_PREFIX} - {table.title}"
    return render_printable(title, render_html_table(table), generated_at)


# --- Report tables (one per report tab) ---


def low_stock_table(entries: Iterable[LowStockEntry]) -> ReportTable:
    return ReportTable(
        key="LOW",
        title="Low Stock Items (Below Par)",
        filename="low_stock",
        header=("Item", "Unit", "On Hand", "Par", "Status", "Category"),
        rows=tuple(
            (
                e.item.name,
                e.item.unit,
                e.item.on_hand,
                e.item.par_level,
                e.status,
                e.item.category,
            )
            for e in entries
        ),
        empty_message="No low stock items found.",
    )


def near_expiry_table(entries: Iterable[ExpiryEntry]) -> ReportTable:
    return ReportTable(
        key="EXPIRY",
        title="Near Expiry Items (FEFO)",
        filename="near_expiry",
        header=("Item", "Unit", "Expiry", "Days Left", "Bucket", "Category"),
        rows=tuple(
            (
                e.item.name,
                e.item.unit,
                e.item.expiration_date or PLACEHOLDER,
                e.days_left,
                e.bucket,
                e.item.category,
            )
            for e in entries
        ),
        empty_message="No near-expiry items found.",
    )


def fast_moving_table(entries: Iterable[FastMovingEntry], window_days: int = None) -> ReportTable:
    window_days = window_days or settings.MOVEMENT_WINDOW_DAYS
    return ReportTable(
        key="FAST",
        title=f"Fast Moving Items (Last {window_days} Days OUT)",
        filename="fast_moving",
        header=("Item", "Unit", f"OUT Qty ({window_days}d)"),
        rows=tuple((e.name, e.unit, e.out_qty) for e in entries),
        empty_message="No movements found (try stock OUT first).",
    )
