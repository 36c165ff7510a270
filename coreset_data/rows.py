"""
Helpers shared by the parsers of the textual table layouts.

Rows are lists of cells; a cell is a string or None (empty/missing).
"""

from typing import Any, List, Optional, Sequence, Tuple

import pandas as pd

from .exceptions import StructuralError
from .headers import Header, headers_from_columns

IDENTIFIERS_HEADER = 'ID'
NAMES_HEADER = 'NAME'
ALLELE_NAMES_HEADER = 'ALLELE'
SELECTED_HEADER = 'SELECTED'
INDEX_HEADER = 'X'

Row = List[Optional[str]]


def unquote(value: str) -> str:
    """Remove one matching pair of surrounding single or double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def clean_cell(value: Any) -> Optional[str]:
    """Strip whitespace and quotes; empty and NaN cells become None."""
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    value = unquote(str(value).strip()).strip()
    return value if value else None


def clean_rows(rows: Sequence[Sequence[Any]]) -> List[Row]:
    """Clean every cell and drop trailing empty cells of every row."""
    cleaned = []
    for row in rows:
        cells = [clean_cell(v) for v in row]
        while cells and cells[-1] is None:
            cells.pop()
        cleaned.append(cells)
    return cleaned


def pad_rows(rows: Sequence[Row], width: Optional[int] = None) -> List[Row]:
    """Extend rows with missing cells up to the given (or widest) width."""
    if width is None:
        width = max((len(row) for row in rows), default=0)
    return [list(row) + [None] * (width - len(row)) for row in rows]


def parse_header_row(rows: Sequence[Row], file_type: str = "marker") -> Tuple[bool, int]:
    """
    Check the mandatory ``ID`` and optional ``NAME`` header columns.

    The ``X`` and ``SELECTED`` columns written alongside a selection are
    rejected rather than read as data.

    Returns:
        Tuple of (whether a NAME column is present, number of header columns)
    """
    if not rows:
        raise StructuralError("File is empty.")
    first_row = rows[0]
    if first_row and first_row[0] == INDEX_HEADER:
        raise StructuralError(f"Index column {INDEX_HEADER} is not supported in {file_type} file.",
                              {'row': 0, 'column': 0})
    if not first_row or first_row[0] != IDENTIFIERS_HEADER:
        raise StructuralError(f"Missing header row/column {IDENTIFIERS_HEADER} in {file_type} file.")
    with_names = len(first_row) >= 2 and first_row[1] == NAMES_HEADER
    num_header_cols = 2 if with_names else 1
    if len(first_row) > num_header_cols and first_row[num_header_cols] == SELECTED_HEADER:
        raise StructuralError(f"Selection column {SELECTED_HEADER} is not supported in {file_type} file.",
                              {'row': 0, 'column': num_header_cols})
    return with_names, num_header_cols


def parse_item_headers(rows: Sequence[Row], first_data_row: int, with_names: bool) -> List[Header]:
    """Build item headers from the ID (and NAME) column of the data rows."""
    identifiers = []
    names = []
    seen = set()
    for r in range(first_data_row, len(rows)):
        identifier = rows[r][0]
        if identifier is None:
            raise StructuralError(f"Missing item identifier at row {r}.", {'row': r})
        if identifier in seen:
            raise StructuralError(f"Duplicate item identifier {identifier} at row {r}.", {'row': r})
        seen.add(identifier)
        identifiers.append(identifier)
        if with_names:
            names.append(rows[r][1])
    return headers_from_columns(identifiers, names if with_names else None)
