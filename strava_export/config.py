"""Central configuration for the Strava export tool.

All values are constants imported by the rest of the package. Adjust as needed
for your environment. Overrides are read from environment variables
(optionally via a local `.env`).
"""

from __future__ import annotations

import importlib
import os


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


# Load .env variables when python-dotenv is available.
_load_dotenv = None
try:
    _dotenv_mod = importlib.import_module("dotenv")
    _load_dotenv = getattr(_dotenv_mod, "load_dotenv", None)
except Exception:
    _load_dotenv = None

if callable(_load_dotenv):
    # Load .env from the current directory or any parent folder.
    _load_dotenv()


# ---------------------------------------------------------------------------
# Output files
# ---------------------------------------------------------------------------
# Paths can be absolute or relative.
KML_FILE = os.getenv("STRAVA_EXPORT_KML_FILE", "Activities.kml")
BIKELOG_FILE = os.getenv("STRAVA_EXPORT_BIKELOG_FILE", "bikelog.xml")

# Use miles/feet/Fahrenheit in rich KML descriptions by default.
IMPERIAL_UNITS = _env_bool("STRAVA_EXPORT_IMPERIAL", False)

LOG_LEVEL = os.getenv("STRAVA_EXPORT_LOG_LEVEL", "INFO")


# ---------------------------------------------------------------------------
# Sink buffering
# ---------------------------------------------------------------------------
# Bytes a file sink accepts before it reports backpressure and must be
# drained (flushed to the OS) before the next write completes.
SINK_HIGH_WATER_MARK = _env_int("STRAVA_EXPORT_SINK_HIGH_WATER_MARK", 16 * 1024)


# ---------------------------------------------------------------------------
# Bikelog form layout
# ---------------------------------------------------------------------------
# The printable form has room for two bikes per day.
BIKELOG_MAX_SLOTS = 2

XFDF_NAMESPACE = "http://ns.adobe.com/xfdf-transition/"


# ---------------------------------------------------------------------------
# Excel formatting
# ---------------------------------------------------------------------------
# Automatically size columns after writing the bikelog sheet (openpyxl only).
EXCEL_AUTOSIZE_COLUMNS = True
EXCEL_AUTOSIZE_MAX_WIDTH = 60  # characters
EXCEL_AUTOSIZE_MIN_WIDTH = 6  # characters
EXCEL_AUTOSIZE_PADDING = 2  # extra characters added to the detected max
EXCEL_AUTOSIZE_MAX_ROWS = 5000  # skip autosize for very large sheets
