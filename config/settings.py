"""
Configuration for the KidChart growth percentile service.
"""
import os
from pathlib import Path

# ── Paths ─────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.environ.get("KIDCHART_DATA_DIR", PROJECT_ROOT / "data"))
SHARE_DIR = DATA_DIR / "shares"
CHILDREN_FILE = DATA_DIR / "children.json"
LOCATION_FILE = DATA_DIR / "location.json"

# ── Server ────────────────────────────────────────────────────
PORT = int(os.environ.get("PORT", 8000))
HOST = os.environ.get("HOST", "0.0.0.0")
DEBUG = os.environ.get("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

# ── Sharing ───────────────────────────────────────────────────
SHARE_URL_BASE = os.environ.get("SHARE_URL_BASE", "https://kidchart.com")

# ── Reference data ────────────────────────────────────────────
DEFAULT_STANDARD = os.environ.get("DEFAULT_STANDARD", "WHO")

# Optional CSV with extra reference tables, merged over the built-in ones
REFERENCE_CSV = os.environ.get("REFERENCE_CSV") or None

# WHO average month length, used to place monthly LMS rows on a day axis
WHO_MONTH_DAYS = 30.4375

# Month length used for chart age axes
CHART_MONTH_DAYS = 30.44

DAYS_PER_YEAR = 365

# Decimal places kept for pre-computed centile values
REFERENCE_DECIMALS = {
    'height': 1,
    'weight': 2,
    'headCircumference': 1,
}
