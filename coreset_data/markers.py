"""
Group the data columns of a marker file into markers.

Consecutive columns belonging to the same marker share a marker name, which
is the column label with its suffix removed. The suffix starts at the last
``-``, ``_`` or ``.`` in the label (``M1-1`` and ``M1-2`` both belong to
``M1``). A label without any of these characters is a marker name by itself.
"""

from collections import OrderedDict
from typing import Dict, Optional, Sequence

from .exceptions import StructuralError

MARKER_NAME_SEPARATORS = ('-', '_', '.')


def infer_marker_name(column_name: str) -> str:
    """Strip the allele/observation suffix from a column label."""
    i = max(column_name.rfind(sep) for sep in MARKER_NAME_SEPARATORS)
    return column_name[:i] if i >= 0 else column_name


def infer_marker_columns(column_names: Sequence[Optional[str]]) -> Dict[str, int]:
    """
    Infer marker names and the number of columns per marker.

    Args:
        column_names: Labels of the data columns, in file order

    Returns:
        Ordered mapping from marker name to number of consecutive columns

    Raises:
        StructuralError: If a label is missing, yields an empty marker name,
            or a marker reappears after another marker's columns
    """
    if column_names is None:
        raise StructuralError("Column names undefined.")

    markers: Dict[str, int] = OrderedDict()
    current = None
    for c, column_name in enumerate(column_names):
        if column_name is None:
            raise StructuralError(f"Missing column name for data column {c}.", {'column': c})

        marker_name = infer_marker_name(column_name)
        if not marker_name.strip():
            raise StructuralError(
                f"Invalid marker name at data column {c} ({column_name}).", {'column': c}
            )

        if marker_name == current:
            markers[marker_name] += 1
        elif marker_name in markers:
            raise StructuralError(
                f"Duplicate marker name: {marker_name}. "
                "Columns corresponding to same marker should occur consecutively.",
                {'column': c}
            )
        else:
            markers[marker_name] = 1
            current = marker_name

    return markers
