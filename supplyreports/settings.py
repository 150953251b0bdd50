import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
# Use Path objects for robust, OS-agnostic path handling.
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")

# --- Document Store ---
# When DOCUMENT_STORE_URL is unset, records are read from JSON exports in INPUT_DIR.
DOCUMENT_STORE_URL = os.getenv("DOCUMENT_STORE_URL")
DOCUMENT_STORE_TOKEN = os.getenv("DOCUMENT_STORE_TOKEN")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "15"))

ITEMS_COLLECTION = os.getenv("ITEMS_COLLECTION", "items")
MOVEMENTS_COLLECTION = os.getenv("MOVEMENTS_COLLECTION", "stockMovements")
THRESHOLDS_DOCUMENT = os.getenv("THRESHOLDS_DOCUMENT", "settings/thresholds")

# --- Webhook ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")

# --- Output Toggles ---
SAVE_HTML_OUTPUT = os.getenv("SAVE_HTML_OUTPUT", "true").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Shared Business Logic ---
# FEFO bucket boundaries (days) used when the thresholds document is missing.
DEFAULT_THRESHOLDS = {
    "d30": int(os.getenv("EXPIRY_D30", "30")),
    "d60": int(os.getenv("EXPIRY_D60", "60")),
    "d90": int(os.getenv("EXPIRY_D90", "90")),
}

# Rolling window for fast-moving (OUT) aggregation.
MOVEMENT_WINDOW_DAYS = int(os.getenv("MOVEMENT_WINDOW_DAYS", "30"))

# Dashboard preview sizes.
CRITICAL_PREVIEW_LIMIT = 6
FAST_MOVING_PREVIEW_LIMIT = 5

# Ratio of on-hand to par at or below which an item is "Critical".
CRITICAL_RATIO = 0.5

REPORT_TITLE_PREFIX = os.getenv("REPORT_TITLE_PREFIX", "Supply Reports")
