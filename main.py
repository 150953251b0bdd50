import sys

from supplyreports import settings
from supplyreports.logger import setup_logger
from supplyreports.pipeline import ReportPipeline
from supplyreports.sources import DocumentSource, JsonFileSource, RestDocumentSource

logger = setup_logger("supplyreports")


def build_source() -> DocumentSource:
    """The REST document store when one is configured, otherwise the JSON exports in INPUT_DIR."""
    if settings.DOCUMENT_STORE_URL:
        logger.info(f"Reading from document store: {settings.DOCUMENT_STORE_URL}")
        return RestDocumentSource()
    logger.info(f"Reading JSON exports from: {settings.INPUT_DIR}")
    return JsonFileSource(settings.INPUT_DIR)


def run_process() -> bool:
    """Main orchestration function to run the supply reporting process."""
    logger.info("--- Starting Supply Reports Process ---")
    pipeline = ReportPipeline(build_source())
    ok = pipeline.run()
    if ok:
        logger.info("--- Process Finished Successfully ---")
    return ok


if __name__ == "__main__":
    sys.exit(0 if run_process() else 1)
