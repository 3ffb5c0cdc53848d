"""Default configuration values for MemeFeed."""

from __future__ import annotations

from typing import Final

# The feed reads one column of the spreadsheet, one URL per row.  Pages are
# requested as fixed-size A1 windows; the first window covers rows 1..100.
DEFAULT_RANGE: Final[str] = "Sheet1!A1:A100"
PAGE_ROWS: Final[int] = 100

INITIAL_LOAD_COUNT: Final[int] = 5
BUFFER_SIZE: Final[int] = 5

# ---------------------------------------------------------------------------
# Prefetch heuristics
# ---------------------------------------------------------------------------

# The scroll threshold starts at 60% of the content and grows logarithmically
# with the number of consumed URLs, capped at 95%.
THRESHOLD_BASE: Final[float] = 0.6
THRESHOLD_SLOPE: Final[float] = 0.1
THRESHOLD_CAP: Final[float] = 0.95

# Another URL page is requested once this share of the buffer was consumed.
URL_FETCH_RATIO_PERCENT: Final[int] = 90
INITIAL_URL_FETCH_THRESHOLD: Final[int] = 90

# ---------------------------------------------------------------------------
# Google Sheets
# ---------------------------------------------------------------------------

SHEETS_READONLY_SCOPE: Final[str] = "https://www.googleapis.com/auth/spreadsheets.readonly"
SHEETS_APPLICATION_NAME: Final[str] = "MemeApp"

# ---------------------------------------------------------------------------
# UI interaction constants
# ---------------------------------------------------------------------------

RENDER_TICK_MS: Final[int] = 100
DEFAULT_WINDOW_SIZE: Final[tuple[int, int]] = (480, 800)
DEFAULT_IMAGE_SPACING: Final[int] = 8
SETTINGS_DIR_NAME: Final[str] = "MemeFeed"
