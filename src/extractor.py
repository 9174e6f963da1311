import csv
import io
import re
from typing import Dict, List, Optional, Sequence

import pandas as pd
from loguru import logger

from src.field_aliases import get_value
from src.models import BusinessRecord

RawGrid = List[List[str]]

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def load_grid_from_csv_text(text: str) -> RawGrid:
    """
    Parse CSV text into a raw grid of strings.

    Every cell is read as text (no NaN, no numeric coercion). Rows that are
    entirely empty are dropped and trailing empty cells are trimmed, so rows
    may have different lengths.

    Args:
        text (str): CSV content, e.g. a spreadsheet exported from Drive.

    Returns:
        RawGrid: Rows x columns of strings.
    """
    if not text or not text.strip():
        return []

    # pandas needs the widest row up front or it rejects ragged input
    width = max((len(row) for row in csv.reader(io.StringIO(text))), default=0)
    if width == 0:
        return []

    df = pd.read_csv(
        io.StringIO(text),
        header=None,
        names=list(range(width)),
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
    )

    grid: RawGrid = []
    for values in df.itertuples(index=False, name=None):
        row = ["" if pd.isna(v) else str(v) for v in values]
        while row and not row[-1].strip():
            row.pop()
        if row:
            grid.append(row)
    return grid


def load_grid_from_csv(file_path: str) -> RawGrid:
    """Load a transposed business sheet from a local CSV file."""
    with open(file_path, "r", encoding="utf-8") as f:
        return load_grid_from_csv_text(f.read())


def _clean_cell(cell) -> str:
    if cell is None:
        return ""
    value = str(cell).strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1].strip()
    return value


def _parse_int(text: str) -> Optional[int]:
    """Leading-integer parse: "1998 (est.)" -> 1998, "n/a" -> None."""
    match = _LEADING_INT.match(text or "")
    if not match:
        return None
    return int(match.group(1))


def split_services(text: str) -> List[str]:
    """Comma-separated services; blank input gives an empty list."""
    if not text or not text.strip():
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def build_label_map(grid: Sequence[Sequence[str]], column_index: int) -> Dict[str, str]:
    """
    Map each row label to this column's cleaned cell.

    Labels repeat occasionally; a later row only overrides an earlier one
    when it actually carries a value.
    """
    label_map: Dict[str, str] = {}
    for row in grid:
        if not row:
            continue
        label = _clean_cell(row[0])
        if not label:
            continue
        value = _clean_cell(row[column_index]) if column_index < len(row) else ""
        if label not in label_map or value:
            label_map[label] = value
    return label_map


def extract_business_from_column(grid: Sequence[Sequence[str]], column_index: int) -> Optional[BusinessRecord]:
    """
    Build one BusinessRecord from a single business column.

    Returns None for columns without a business name, and for businesses
    that have neither a phone number nor an email address.
    """
    label_map = build_label_map(grid, column_index)

    name = get_value(label_map, "name")
    if not name:
        return None

    year_text = get_value(label_map, "year_founded")
    size_text = get_value(label_map, "company_size")

    record = BusinessRecord(
        name=name,
        address=get_value(label_map, "address"),
        phone=get_value(label_map, "phone"),
        website=get_value(label_map, "website"),
        email=get_value(label_map, "email"),
        year_founded=_parse_int(year_text),
        year_founded_text=year_text,
        main_services=split_services(get_value(label_map, "main_services")),
        other_services=split_services(get_value(label_map, "other_services")),
        company_size=_parse_int(size_text) or None,
        company_size_text=size_text,
        service_area=get_value(label_map, "service_area"),
        description=get_value(label_map, "description"),
        contractor_type=get_value(label_map, "contractor_type"),
        gmail=get_value(label_map, "gmail"),
        gmail_app_password=get_value(label_map, "gmail_app_password"),
    )

    if not record.phone and not record.email:
        logger.debug(f"Skipping '{name}' (column {column_index}): no phone or email")
        return None

    return record


def extract(grid: Sequence[Sequence[str]]) -> List[BusinessRecord]:
    """
    Turn a transposed sheet into one record per business.

    Column 0 holds the field labels; every later column is one business.
    Columns without a name, repeated names, and businesses with no way to
    contact them are left out. A column that fails to parse is logged and
    skipped.

    Args:
        grid (Sequence[Sequence[str]]): Raw rows of the sheet.

    Returns:
        List[BusinessRecord]: Businesses in column order.

    Raises:
        ValueError: If the grid is empty.
    """
    if not grid:
        raise ValueError("No CSV data to parse")

    max_columns = max((len(row) for row in grid if row), default=0)
    records: List[BusinessRecord] = []
    seen_names = set()

    for column_index in range(1, max_columns):
        try:
            record = extract_business_from_column(grid, column_index)
        except Exception as e:
            logger.warning(f"⚠️ Error parsing business column {column_index}: {e}")
            continue

        if record is None:
            continue
        if record.name in seen_names:
            logger.debug(f"Skipping duplicate business '{record.name}' in column {column_index}")
            continue

        seen_names.add(record.name)
        records.append(record)

    logger.info(f"✅ Extracted {len(records)} businesses from {max(max_columns - 1, 0)} columns")
    return records
