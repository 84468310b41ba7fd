"""Cross-cutting helpers: constants, size formatting, CSV output."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CSV_COLUMNS = ("category", "filename", "remote_id", "remote_url")
GIS_LINK_COLUMNS = ("object_id", "instrument", "global_id", "web_link")
REPORT_COLUMNS = ("folder", "size", "percent")

DEFAULT_TIMEOUT_S = 60.0
DEFAULT_PAGE_SIZE = 100

STATUS_DRAFT = 10
STATUS_PUBLISHED = 30

# Folders sized by the ``report`` command in addition to the categories.
DEFAULT_REPORT_FOLDERS = ("GIS", "Address Notifications", "Images")

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_size_kb(size_kb: float) -> str:
    """Render a size in KB with the largest decimal unit that keeps it >= 1.

    ``format_size_kb(1500)`` -> ``"1.50 MB"``; sizes under 1 KB are whole
    bytes: ``format_size_kb(0.5)`` -> ``"500 B"``.
    """
    value = float(size_kb) * 1000
    unit = _SIZE_UNITS[0]
    for unit in _SIZE_UNITS:
        if abs(value) < 1000 or unit == _SIZE_UNITS[-1]:
            break
        value /= 1000
    if unit == "B":
        return f"{value:.0f} B"
    return f"{value:.2f} {unit}"


# ---------------------------------------------------------------------------
# CSV output
# ---------------------------------------------------------------------------


def write_csv(
    path: Path,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
) -> Path:
    """Write *rows* under a *columns* header and return *path*.

    Fields are quoted only when needed, so commas, quotes and newlines in
    values survive a round trip through any CSV reader.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
        writer.writerow(columns)
        for row in rows:
            writer.writerow(row)
    return path
