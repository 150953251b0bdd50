import logging
from datetime import date, datetime, timezone
from pathlib import Path

from . import data_handler, utils
from .analytics.expiry import bucket_expiring
from .analytics.low_stock import classify_low_stock
from .analytics.movements import aggregate_out
from .assembler import ReportBundleAssembler
from .exporters import fast_moving_table, low_stock_table, near_expiry_table
from .normalizer import parse_timestamp
from .schemas import DashboardSummary, ReportBundle, ReportSummary, ReportTable
from .sources import DocumentSource, SourceError
from .summary import ALL, dashboard_summary, filter_items, report_summary

logger = logging.getLogger(__name__)


class ReportPipeline:
    """
    Supply reports as an Extract -> Transform -> Load run:
    load one bundle, classify it into the three report tables, then save/post.
    """

    def __init__(
        self,
        source: DocumentSource,
        test_mode: bool = False,
        now: datetime = None,
        today: date = None,
        output_dir: Path = None,
        text: str = "",
        unit: str = ALL,
        category: str = ALL,
    ):
        self.assembler = ReportBundleAssembler(source)
        self.test_mode = test_mode
        self.now = parse_timestamp(now) if now is not None else datetime.now(timezone.utc)
        self.today = today or utils.local_today(self.now)
        self.output_dir = output_dir
        self.filters = {"text": text, "unit": unit, "category": category}

        self.bundle: ReportBundle | None = None
        self.tables: list[ReportTable] = []
        self.report_summary: ReportSummary | None = None
        self.dashboard: DashboardSummary | None = None

    def run(self) -> bool:
        """
        Orchestrates the pipeline execution. Returns False when the data could
        not be loaded; an empty report is still a successful run.
        """
        logger.info("🚀 STEP: SUPPLY REPORTS")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        try:
            self.bundle = self.extract()
        except SourceError as e:
            logger.error(f"❌ Failed to load reports data: {e}")
            return False

        # --- 2. TRANSFORM ---
        self.tables = self.transform(self.bundle)

        # --- 3. LOAD ---
        self.load(self.tables)

        logger.info("✅ Reports Pipeline Finished.\n")
        logger.info("=" * 60)
        return True

    def extract(self) -> ReportBundle:
        return self.assembler.load_bundle_sync(self.now)

    def transform(self, bundle: ReportBundle) -> list[ReportTable]:
        """Classifies the bundle into the Low Stock, Near Expiry and Fast Moving tables."""
        items = filter_items(bundle.items, **self.filters)

        low_stock = classify_low_stock(items)
        near_expiry = bucket_expiring(items, bundle.thresholds, self.today)
        fast_moving = aggregate_out(bundle.movements_out)

        self.report_summary = report_summary(low_stock, near_expiry, fast_moving, bundle.thresholds)
        self.dashboard = dashboard_summary(bundle, self.today)

        return [
            low_stock_table(low_stock),
            near_expiry_table(near_expiry),
            fast_moving_table(fast_moving, self.assembler.window_days),
        ]

    def load(self, tables: list[ReportTable]):
        """Prints the summary, saves the report files and posts to the webhook."""
        summary = self.report_summary
        logger.info("\n--- Report Summary ---")
        logger.info(f"Low Stock: {summary.low_stock_count} item(s) below par")
        logger.info(
            f"Near Expiry: {summary.near_expiry_count} expiring soon / expired "
            f"(thresholds: {summary.thresholds_line})"
        )
        logger.info(f"Fast Moving: {summary.top_fast_moving or 'No data'}")

        for table in tables:
            if not table.rows:
                logger.info(f"{table.title}: {table.empty_message}")

        data_handler.save_outputs(
            tables,
            output_dir=self.output_dir,
            day=self.today,
            generated_at=self.now.astimezone(),
        )

        if not self.test_mode:
            data_handler.post_to_webhook(
                self.dashboard,
                metadata={
                    "thresholds": self.report_summary.thresholds_line,
                    "windowDays": self.assembler.window_days,
                    "generatedAt": self.now.isoformat(),
                },
            )
        else:
            logger.info("🧪 Test Mode: Skipping webhook post.")
