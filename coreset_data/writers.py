"""
Write marker, trait and distance data back to their textual layouts.

Every writer can restrict the output to the selected or unselected items and
mark the selection in an extra ``SELECTED`` column.
"""

import logging
import os
from typing import Any, Iterable, List, Optional, Sequence, Set

import pandas as pd

from .distances import DistanceMatrixData, SymmetricMatrixFormat
from .headers import IdentifiedData
from .rows import IDENTIFIERS_HEADER, INDEX_HEADER, NAMES_HEADER, SELECTED_HEADER

logger = logging.getLogger(__name__)


def _included_ids(size: int, selected: Set[int], include_selected: bool, include_unselected: bool) -> List[int]:
    if not include_selected and not include_unselected:
        raise ValueError("At least one of include_selected and include_unselected should be true.")
    return [i for i in range(size) if (i in selected and include_selected) or (i not in selected and include_unselected)]


def _format_cell(value: Any) -> str:
    if value is None:
        return ''
    return str(value)


def _save_rows(rows: Sequence[Sequence[Any]], path: str) -> None:
    if os.path.exists(path):
        raise FileExistsError(f"File already exists: {path}")
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    sep = ',' if str(path).lower().endswith('.csv') else '\t'
    pd.DataFrame([[_format_cell(v) for v in row] for row in rows]).to_csv(
        path, sep=sep, header=False, index=False, na_rep=''
    )


def _item_identifier(data: IdentifiedData, item_id: int) -> str:
    header = data.get_header(item_id)
    if header is None:
        return str(item_id)
    return header.identifier if header.identifier is not None else header.name


def write_table_data(data: IdentifiedData, path: str, selected: Optional[Iterable[int]] = None,
                     include_selected: bool = True, include_unselected: bool = True,
                     include_index: bool = False) -> None:
    """
    Write marker or trait data in the layout it was read from.

    Args:
        data: Dataset providing ``column_labels``, ``extra_header_rows`` and
            ``data_cells`` (all genotype classes and :class:`PhenotypeData`)
        path: Output file (CSV for ``.csv``, tab separated otherwise)
        selected: IDs of the selected items
        include_selected: Write the selected items
        include_unselected: Write the unselected items
        include_index: Prepend an ``X`` column with the integer IDs

    When a selection is given and both selected and unselected items are
    written, a ``SELECTED`` column marks the selection.
    """
    mark_selection = selected is not None and include_selected and include_unselected
    selected = set(selected or ())
    ids = _included_ids(data.get_size(), selected, include_selected, include_unselected)

    def layout_row(index_cell, id_cell, name_cell, selected_cell, cells):
        row = [index_cell] if include_index else []
        row.extend([id_cell, name_cell])
        if mark_selection:
            row.append(selected_cell)
        row.extend(cells)
        return row

    rows = [layout_row(INDEX_HEADER, IDENTIFIERS_HEADER, NAMES_HEADER, SELECTED_HEADER, data.column_labels())]
    for header_label, cells in data.extra_header_rows():
        rows.append(layout_row(None, header_label, None, None, cells))
    for item_id in ids:
        rows.append(layout_row(item_id, _item_identifier(data, item_id), data.get_name(item_id),
                               item_id in selected, data.data_cells(item_id)))

    _save_rows(rows, path)
    logger.info(f"💾 Wrote {len(ids)} items of {data.dataset_name} to {path}")


def write_distance_matrix(data: DistanceMatrixData, path: str, matrix_format=SymmetricMatrixFormat.FULL,
                          selected: Optional[Iterable[int]] = None, include_selected: bool = True,
                          include_unselected: bool = True) -> None:
    """
    Write (a subset of) a distance matrix in the given encoding.

    The first row holds the item names when the data has headers.
    """
    selected = set(selected or ())
    ids = _included_ids(data.get_size(), selected, include_selected, include_unselected)
    labels, matrix_rows = data.encode(matrix_format, ids)

    rows: List[List[Any]] = [labels] if data.has_headers() else []
    rows.extend(matrix_rows)
    _save_rows(rows, path)
    logger.info(f"💾 Wrote {SymmetricMatrixFormat.parse(matrix_format).value} distance matrix "
                f"of {len(ids)} items to {path}")
