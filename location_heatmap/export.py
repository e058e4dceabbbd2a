"""Write stored location points to Excel or CSV."""

from __future__ import annotations

import logging
from os import PathLike
from pathlib import Path
from typing import Sequence

import pandas as pd
from openpyxl.styles import Font
from openpyxl.worksheet.worksheet import Worksheet

from .models import LocationRecord

LOGGER = logging.getLogger(__name__)

LOCATIONS_SHEET = "Locations"
EXPORT_COLUMNS = ["ID", "Latitude", "Longitude", "Captured At (UTC)"]
EXCEL_DATETIME_FORMAT = "yyyy-mm-dd hh:mm:ss"
HEADER_FONT = Font(bold=True)

PathInput = str | Path | PathLike[str]


def records_to_frame(records: Sequence[LocationRecord]) -> pd.DataFrame:
    rows = [
        {
            "ID": r.id,
            "Latitude": r.latitude,
            "Longitude": r.longitude,
            # Excel cannot store tz-aware datetimes; values are already UTC.
            "Captured At (UTC)": r.captured_at_utc.replace(tzinfo=None),
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=EXPORT_COLUMNS)


def _autosize(ws: Worksheet) -> None:
    from .config import (
        EXCEL_AUTOSIZE_COLUMNS,
        EXCEL_AUTOSIZE_MAX_WIDTH,
        EXCEL_AUTOSIZE_MIN_WIDTH,
        EXCEL_AUTOSIZE_PADDING,
        EXCEL_AUTOSIZE_MAX_ROWS,
    )

    if not EXCEL_AUTOSIZE_COLUMNS:
        return
    if ws.max_row > EXCEL_AUTOSIZE_MAX_ROWS:
        return
    for col_cells in ws.columns:
        col_letter = getattr(col_cells[0], "column_letter", None)
        if not col_letter:
            continue
        max_len = max(
            (len(str(cell.value)) for cell in col_cells if cell.value is not None),
            default=0,
        )
        ws.column_dimensions[col_letter].width = min(
            EXCEL_AUTOSIZE_MAX_WIDTH,
            max(EXCEL_AUTOSIZE_MIN_WIDTH, max_len + EXCEL_AUTOSIZE_PADDING),
        )


def _write_excel(path: Path, df: pd.DataFrame) -> None:
    with pd.ExcelWriter(
        path, engine="openpyxl", datetime_format=EXCEL_DATETIME_FORMAT
    ) as writer:
        if df.empty:
            pd.DataFrame({"Message": ["No points recorded."]}).to_excel(
                writer, sheet_name=LOCATIONS_SHEET, index=False
            )
        else:
            df.to_excel(writer, sheet_name=LOCATIONS_SHEET, index=False)
        ws = writer.sheets[LOCATIONS_SHEET]
        for cell in ws[1]:
            cell.font = HEADER_FONT
        _autosize(ws)


def export_records(records: Sequence[LocationRecord], path: PathInput) -> Path:
    """Write ``records`` to ``path``; the suffix selects ``.xlsx`` or ``.csv``.

    Raises:
        ValueError: If the suffix is not a supported export format.
    """

    output_path = Path(path)
    suffix = output_path.suffix.lower()
    if suffix not in {".xlsx", ".csv"}:
        raise ValueError(f"Unsupported export format '{suffix or output_path.name}'")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = records_to_frame(records)
    if suffix == ".xlsx":
        _write_excel(output_path, df)
    else:
        df.to_csv(output_path, index=False)
    LOGGER.info("Exported %d point(s) to %s", len(df), output_path)
    return output_path


__all__ = ["EXPORT_COLUMNS", "LOCATIONS_SHEET", "export_records", "records_to_frame"]
