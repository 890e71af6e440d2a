"""Excel rendition of the bikelog: one row per day with both bike slots."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from .config import BIKELOG_MAX_SLOTS
from .day_aggregation import sorted_days
from .markup_writer import PathInput
from .models import DaySummaryRecord

LOGGER = logging.getLogger(__name__)

BIKELOG_SHEET = "Bikelog"
DATE_COL = "Date"
JD_COL = "Julian Day"
NOTE0_COL = "Note"
NOTE1_COL = "Note 2"
EXCEL_DATE_FORMAT = "yyyy-mm-dd"

HEADER_FONT = Font(bold=True)
HEADER_FILL = PatternFill(patternType="solid", fgColor="FFFF40FF")
HEADER_BORDER = Border(
    left=Side(style="thin", color="000000"),
    right=Side(style="thin", color="000000"),
    top=Side(style="thin", color="000000"),
    bottom=Side(style="thin", color="000000"),
)


def _slot_columns(idx: int) -> List[str]:
    n = idx + 1
    return [f"Bike {n}", f"Distance {n} (km)", f"Elevation {n} (m)", f"Time {n} (h)"]


def bikelog_columns() -> List[str]:
    cols = [DATE_COL, JD_COL]
    for idx in range(BIKELOG_MAX_SLOTS):
        cols.extend(_slot_columns(idx))
    return cols + [NOTE0_COL, NOTE1_COL]


def build_bikelog_rows(day_records: Mapping[int, DaySummaryRecord]) -> List[dict[str, Any]]:
    rows: List[dict[str, Any]] = []
    for record in sorted_days(dict(day_records)):
        row: dict[str, Any] = {DATE_COL: record.date, JD_COL: record.jd}
        for idx in range(BIKELOG_MAX_SLOTS):
            bike, dist, elev, hours = _slot_columns(idx)
            event = record.events[idx] if idx < len(record.events) else None
            row[bike] = event.bike if event else None
            row[dist] = event.distance if event else None
            row[elev] = event.elevation if event else None
            row[hours] = event.time if event else None
        row[NOTE0_COL] = record.note0
        row[NOTE1_COL] = record.note1
        rows.append(row)
    return rows


def _style_header_row(ws: Worksheet, max_col: int) -> None:
    for col_idx in range(1, max_col + 1):
        cell = ws.cell(row=1, column=col_idx)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.border = HEADER_BORDER


def _autosize(ws: Worksheet) -> None:
    from .config import (
        EXCEL_AUTOSIZE_COLUMNS,
        EXCEL_AUTOSIZE_MAX_WIDTH,
        EXCEL_AUTOSIZE_MIN_WIDTH,
        EXCEL_AUTOSIZE_PADDING,
        EXCEL_AUTOSIZE_MAX_ROWS,
    )

    if not EXCEL_AUTOSIZE_COLUMNS or ws.max_row > EXCEL_AUTOSIZE_MAX_ROWS:
        return
    for col_cells in ws.columns:
        col_letter = getattr(col_cells[0], "column_letter", None)
        max_len = 0
        for cell in col_cells:
            if cell.value is None:
                continue
            # Notes are multi-line; size to the longest line.
            longest = max(len(line) for line in str(cell.value).splitlines() or [""])
            max_len = max(max_len, longest)
        width = min(
            EXCEL_AUTOSIZE_MAX_WIDTH,
            max(EXCEL_AUTOSIZE_MIN_WIDTH, max_len + EXCEL_AUTOSIZE_PADDING),
        )
        if col_letter:
            ws.column_dimensions[col_letter].width = width


def _wrap_notes(ws: Worksheet, columns: List[str]) -> None:
    wrap = Alignment(wrap_text=True, vertical="top")
    for name in (NOTE0_COL, NOTE1_COL):
        col_idx = columns.index(name) + 1
        for row_idx in range(2, ws.max_row + 1):
            ws.cell(row=row_idx, column=col_idx).alignment = wrap


def write_bikelog_workbook(path: PathInput, day_records: Mapping[int, DaySummaryRecord]) -> int:
    """Write the bikelog sheet to ``path``; return the number of day rows."""

    filepath = str(Path(path))
    columns = bikelog_columns()
    df = pd.DataFrame(build_bikelog_rows(day_records), columns=columns)
    with pd.ExcelWriter(filepath, engine="openpyxl", date_format=EXCEL_DATE_FORMAT) as writer:
        df.to_excel(writer, sheet_name=BIKELOG_SHEET, index=False)
        ws = writer.sheets[BIKELOG_SHEET]
        _style_header_row(ws, len(columns))
        _wrap_notes(ws, columns)
        _autosize(ws)
    LOGGER.info("Wrote bikelog workbook %s rows=%d", filepath, len(df))
    return len(df)


__all__ = ["bikelog_columns", "build_bikelog_rows", "write_bikelog_workbook"]
