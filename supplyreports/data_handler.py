import logging
from datetime import date, datetime
from pathlib import Path

import requests

from . import settings
from . import utils
from .exporters import table_to_csv, table_to_printable
from .schemas import DashboardSummary, ReportTable

logger = logging.getLogger(__name__)


def save_outputs(
    tables: list[ReportTable],
    output_dir: Path = None,
    day: date = None,
    generated_at: datetime = None,
    save_html: bool = None,
) -> list[Path]:
    """Saves each report table as a dated CSV and, when enabled, a printable HTML file."""
    output_dir = Path(output_dir or settings.OUTPUT_DIR)
    output_dir.mkdir(parents=True, exist_ok=True)
    save_html = settings.SAVE_HTML_OUTPUT if save_html is None else save_html
    date_suffix = utils.get_date_suffix_for_filename(day)

    written = []
    for table in tables:
        csv_path = output_dir / f"{table.filename}_{date_suffix}.csv"
        csv_path.write_text(table_to_csv(table), encoding="utf-8")
        written.append(csv_path)
        logger.info(f"✅ {table.title} saved to: {csv_path}")

        if save_html:
            html_path = output_dir / f"{table.filename}_{date_suffix}.html"
            html_path.write_text(table_to_printable(table, generated_at), encoding="utf-8")
            written.append(html_path)
            logger.info(f"✅ Printable report saved to: {html_path}")

    if not save_html:
        logger.info("INFO: Skipping printable HTML output as per configuration.")
    return written


def post_to_webhook(summary: DashboardSummary, metadata: dict = None) -> bool:
    """
    Posts the dashboard summary (and optional metadata) to the webhook.
    Returns True when the post went through.
    """
    if not settings.WEBHOOK_URL:
        logger.warning("⚠️ WEBHOOK_URL not set. Skipping webhook post.")
        return False

    logger.info(f"🚀 Posting dashboard summary to webhook: {settings.WEBHOOK_URL}")

    payload = {
        "summary": summary.model_dump(mode="json", by_alias=True),
        "metadata": metadata or {},
    }

    try:
        response = requests.post(settings.WEBHOOK_URL, json=payload, timeout=15)
        response.raise_for_status()
        logger.info("✅ Summary successfully posted to webhook.")
        return True
    except requests.exceptions.RequestException as e:
        logger.error(f"❌ Error posting to webhook: {e}")
        return False
