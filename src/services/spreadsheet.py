import io
import logging
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from openpyxl import Workbook, load_workbook

logger = logging.getLogger(__name__)

# (sheet row number, {header: value})
SheetRows = List[Tuple[int, Dict[str, Any]]]

def _header_name(value: Any) -> str:
    return str(value).strip() if value is not None else ""

def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())

def read_workbook(content: bytes, sheet_names: Iterable[str]) -> Dict[str, SheetRows]:
    """
    Reads the named sheets of an xlsx file.

    The first row of each sheet is the header. Data rows are returned with
    their real sheet row number (the first data row is 2); fully empty rows
    are skipped. Sheets that are not present are left out of the result.
    """
    wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        res: Dict[str, SheetRows] = {}
        for name in sheet_names:
            if name not in wb.sheetnames:
                continue
            ws = wb[name]

            header: List[str] = []
            rows: SheetRows = []
            for row_idx, values in enumerate(ws.iter_rows(values_only=True), start=1):
                if row_idx == 1:
                    header = [_header_name(v) for v in values]
                    continue
                if all(_is_empty(v) for v in values):
                    continue

                row = {}
                for col_idx, value in enumerate(values):
                    if col_idx < len(header) and header[col_idx]:
                        row[header[col_idx]] = value
                rows.append((row_idx, row))

            logger.info(f"Read {len(rows)} rows from sheet {name}")
            res[name] = rows
        return res
    finally:
        wb.close()

def write_workbook(sheets: Sequence[Tuple[str, List[str], List[Dict[str, Any]]]]) -> bytes:
    """Writes (sheet name, columns, rows) triples to xlsx bytes. Missing values become empty cells."""
    wb = Workbook()
    wb.remove(wb.active)

    for name, columns, rows in sheets:
        ws = wb.create_sheet(name)
        ws.append(columns)
        for row in rows:
            ws.append([row.get(col) for col in columns])

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
