"""
P&L CSV source adapter.

Reads one monthly P&L export and locates its clinic identity and month
columns.  The layout is positional, not self-describing:

    row 0          "<Org> - <Location>" (clinic identity)
    row 3          month headers ("Jan 24") in every other column from 1
    rows 4..       line-item label in column 0, one value per month column

Uses csv.reader.  Handles BOM via utf-8-sig.  Undecodable bytes become
U+FFFD, which the label normalizer treats as a corrupted separator.
"""

from __future__ import annotations

import csv
import re
from pathlib import Path

from pnl_kernel.exceptions import FormatError
from pnl_kernel.logging_config import get_logger

from pnl_ingestion.domain.types import MonthColumn, PnlStructure

logger = get_logger("ingestion.pnl_csv")

DEFAULT_ORGANIZATION = "American Pain Partners LLC"

MONTHS: dict[str, int] = {
    "Jan": 1, "Feb": 2, "Mar": 3, "Apr": 4, "May": 5, "Jun": 6,
    "Jul": 7, "Aug": 8, "Sep": 9, "Oct": 10, "Nov": 11, "Dec": 12,
}

_MONTH_TOKEN_RE = re.compile(r"^([A-Z][a-z]{2}) (\d{2})$")
_FILENAME_PARENS_RE = re.compile(r"\(([^)]+)\)")


def read_rows(path: Path) -> list[list[str]]:
    """
    Read the rows of a CSV file, skipping empty lines.

    Only a line with no content at all is skipped.  A row of empty cells
    (``,,,``) is kept, since layout rows are addressed by position.
    """
    with path.open("r", encoding="utf-8-sig", errors="replace", newline="") as f:
        return [row for row in csv.reader(f) if row and row != [""]]


def expand_year(two_digit: int) -> int:
    """00-49 -> 2000s, 50-99 -> 1900s."""
    return 2000 + two_digit if two_digit < 50 else 1900 + two_digit


def parse_month_header(token: str | None) -> tuple[int, int] | None:
    """``"Jan 24"`` -> ``(2024, 1)``; anything else -> None."""
    if not token:
        return None
    match = _MONTH_TOKEN_RE.match(token.strip())
    if not match:
        return None
    month = MONTHS.get(match.group(1))
    if month is None:
        return None
    return expand_year(int(match.group(2))), month


def clinic_name_from_filename(filename: str) -> str:
    """Text in the first parentheses (``_`` -> space), else the bare filename."""
    match = _FILENAME_PARENS_RE.search(filename)
    if match:
        return match.group(1).replace("_", " ")
    if filename.lower().endswith(".csv"):
        return filename[: -len(".csv")]
    return filename


def clinic_name_from_title(title: str | None, organization: str) -> str | None:
    """Location from ``"<organization> - <Location>"``, else None."""
    if not title:
        return None
    pattern = re.compile(rf"^\s*{re.escape(organization)}\s*-\s*(.+)$", re.IGNORECASE)
    match = pattern.match(title)
    if not match:
        return None
    location = match.group(1).strip()
    return location or None


def parse_structure(
    rows: list[list[str]],
    filename: str,
    *,
    organization: str = DEFAULT_ORGANIZATION,
    min_rows: int = 5,
    header_row_index: int = 3,
    first_data_column: int = 1,
    column_stride: int = 2,
) -> PnlStructure:
    """
    Locate the clinic name and month columns of one export.

    Raises:
        FormatError: If the file has fewer than *min_rows* rows.
    """
    if len(rows) < min_rows:
        raise FormatError(filename, f"expected at least {min_rows} rows, found {len(rows)}")
    if len(rows) <= header_row_index:
        raise FormatError(filename, f"no header row at index {header_row_index}")

    title = rows[0][0] if rows[0] else None
    clinic_name = clinic_name_from_title(title, organization)
    source = "title"
    if clinic_name is None:
        clinic_name = clinic_name_from_filename(filename)
        source = "filename"

    header = rows[header_row_index]
    months: list[MonthColumn] = []
    for index in range(first_data_column, len(header), column_stride):
        parsed = parse_month_header(header[index])
        if parsed is not None:
            year, month = parsed
            months.append(MonthColumn(year=year, month=month, column_index=index))

    logger.info(
        "pnl_structure_parsed",
        extra={
            "source_name": filename,
            "clinic_name": clinic_name,
            "clinic_name_source": source,
            "month_count": len(months),
        },
    )
    return PnlStructure(clinic_name=clinic_name, months=tuple(months))
