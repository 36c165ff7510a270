"""
Precomputed distance matrices and their triangular text encodings.

A symmetric matrix can be stored in three ways:

- ``FULL``: every row holds all n values,
- ``LOWER``: row r holds the r+1 values left of the diagonal of matrix row
  r+1 (the diagonal and matrix row 0 are implicit),
- ``LOWER_DIAG``: row r holds the r+1 values of matrix row r up to and
  including the diagonal.
"""

import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.spatial.distance import squareform

from .exceptions import InvariantError, StructuralError
from .headers import HeaderLike, IdentifiedData, headers_from_columns
from .rows import Row

logger = logging.getLogger(__name__)

# tolerance for symmetry and zero diagonal
DISTANCE_PRECISION = 1e-10


class SymmetricMatrixFormat(Enum):
    """Textual encodings of a symmetric matrix."""

    FULL = 'full'
    LOWER = 'lower'
    LOWER_DIAG = 'lower_diag'

    @classmethod
    def parse(cls, value: Any) -> 'SymmetricMatrixFormat':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            expected = ', '.join(f.value for f in cls)
            raise StructuralError(f"Unknown symmetric matrix format: {value}. Expected one of: {expected}.") from None


def validate_distance_matrix(matrix: np.ndarray) -> None:
    """
    Check that a square matrix is a valid distance matrix.

    Raises:
        InvariantError: On a negative or non-finite entry, a non-zero diagonal
            entry or an asymmetric pair, naming the offending row and column
    """
    non_finite = np.argwhere(~np.isfinite(matrix))
    if len(non_finite):
        i, j = (int(x) for x in non_finite[0])
        raise InvariantError(f"Distances should be finite. Got {matrix[i, j]} at row {i}, column {j}.",
                             {'row': i, 'column': j})

    negative = np.argwhere(matrix < 0.0)
    if len(negative):
        i, j = (int(x) for x in negative[0])
        raise InvariantError(f"Distances should be non-negative. Got {matrix[i, j]} at row {i}, column {j}.",
                             {'row': i, 'column': j})

    diagonal = np.flatnonzero(np.abs(np.diag(matrix)) > DISTANCE_PRECISION)
    if len(diagonal):
        i = int(diagonal[0])
        raise InvariantError(f"Distance of item {i} to itself should be zero. Got {matrix[i, i]}.",
                             {'row': i, 'column': i})

    asymmetric = np.argwhere(np.abs(matrix - matrix.T) > DISTANCE_PRECISION)
    if len(asymmetric):
        i, j = (int(x) for x in asymmetric[0])
        raise InvariantError(
            f"Distance matrix is not symmetric at row {i}, column {j}: {matrix[i, j]} != {matrix[j, i]}.",
            {'row': i, 'column': j}
        )


def decode_symmetric_matrix(rows: Sequence[Sequence[float]], matrix_format: Any,
                            names: Optional[Sequence[Optional[str]]] = None) -> np.ndarray:
    """
    Reconstruct a full distance matrix from its textual rows.

    Args:
        rows: Numeric data rows, in file order
        matrix_format: A :class:`SymmetricMatrixFormat` (or its name)
        names: Optional item names from the header row

    Returns:
        Validated n x n matrix

    Raises:
        StructuralError: If row lengths do not follow the format or the number
            of names does not match the number of items implied by the data
        InvariantError: If the matrix is not a valid distance matrix
    """
    matrix_format = SymmetricMatrixFormat.parse(matrix_format)

    if not rows:
        # a single item has no values below the diagonal
        if matrix_format is SymmetricMatrixFormat.LOWER and names is not None and len(names) == 1:
            return np.zeros((1, 1))
        raise StructuralError("No data rows.")

    for r, row in enumerate(rows):
        expected = len(rows[0]) if matrix_format is SymmetricMatrixFormat.FULL else r + 1
        if len(row) != expected:
            raise StructuralError(
                f"Incorrect number of values at data row {r} for format {matrix_format.name}. "
                f"Expected: {expected}, actual: {len(row)}.",
                {'row': r}
            )

    if matrix_format is SymmetricMatrixFormat.LOWER:
        n = len(rows[-1]) + 1
        expected_rows = n - 1
    else:
        n = len(rows)
        expected_rows = n
    if matrix_format is SymmetricMatrixFormat.FULL and len(rows[0]) != n:
        raise StructuralError(
            f"Number of values per row ({len(rows[0])}) does not match number of rows ({n}) "
            f"for format {matrix_format.name}."
        )
    if len(rows) != expected_rows:
        raise StructuralError(
            f"Incorrect number of data rows for format {matrix_format.name}. "
            f"Expected: {expected_rows}, actual: {len(rows)}."
        )
    if names is not None and len(names) != n:
        raise StructuralError(
            f"Number of item names ({len(names)}) does not match "
            f"number of items implied by the distance data ({n})."
        )

    matrix = np.zeros((n, n))
    if matrix_format is SymmetricMatrixFormat.FULL:
        matrix[:, :] = np.asarray(rows, dtype=float)
    else:
        offset = 1 if matrix_format is SymmetricMatrixFormat.LOWER else 0
        for r, row in enumerate(rows):
            matrix[r + offset, :len(row)] = row
        matrix = matrix + np.tril(matrix, -1).T

    validate_distance_matrix(matrix)
    return matrix


def encode_symmetric_matrix(matrix: Any, matrix_format: Any) -> List[List[float]]:
    """Rows of a symmetric matrix in the given textual encoding."""
    matrix = np.asarray(matrix, dtype=float)
    matrix_format = SymmetricMatrixFormat.parse(matrix_format)
    n = matrix.shape[0]
    if matrix_format is SymmetricMatrixFormat.FULL:
        return [list(matrix[i]) for i in range(n)]
    if matrix_format is SymmetricMatrixFormat.LOWER:
        return [list(matrix[i, :i]) for i in range(1, n)]
    return [list(matrix[i, :i + 1]) for i in range(n)]


def _parse_distance_rows(rows: Sequence[Row], first_row: int) -> List[List[float]]:
    parsed = []
    for r in range(first_row, len(rows)):
        values = []
        for c, cell in enumerate(rows[r]):
            if cell is None:
                raise StructuralError(f"Missing distance at row {r}, column {c}.", {'row': r, 'column': c})
            try:
                values.append(float(cell))
            except ValueError:
                raise StructuralError(
                    f"Invalid distance at row {r}, column {c}. Expected float value, got: \"{cell}\".",
                    {'row': r, 'column': c}
                ) from None
        parsed.append(values)
    return parsed


def _is_names_row(row: Row) -> bool:
    for cell in row:
        if cell is None:
            continue
        try:
            float(cell)
        except ValueError:
            return True
    return False


class DistanceMatrixData(IdentifiedData):
    """
    Validated symmetric distance matrix with zero diagonal.

    Args:
        distances: Full n x n matrix
        headers: Optional header per item
        name: Dataset name
    """

    def __init__(self, distances: Any, headers: Optional[Sequence[HeaderLike]] = None,
                 name: str = "Precomputed distance matrix"):
        if distances is None:
            raise StructuralError("Distances not defined.")
        n = len(distances)
        for i, row in enumerate(distances):
            if len(row) != n:
                raise StructuralError(
                    f"Number of distances does not match number of items in row {i}. Expected: {n}, actual: {len(row)}.",
                    {'row': i}
                )
        matrix = np.array(distances, dtype=float).reshape(n, n)
        validate_distance_matrix(matrix)
        matrix.setflags(write=False)

        super().__init__(name, n, headers)
        self._distances = matrix
        logger.debug(f"Created {name}: {n} items")

    def get_distance(self, id_x: int, id_y: int) -> float:
        self._registry.get_header(id_x)
        self._registry.get_header(id_y)
        return float(self._distances[id_x, id_y])

    def get_distance_matrix(self) -> np.ndarray:
        return self._distances.copy()

    def get_condensed_distances(self) -> np.ndarray:
        """Upper triangle as a condensed vector, as used by scipy.cluster."""
        return squareform(self._distances, checks=False)

    def get_labels(self) -> List[str]:
        labels = []
        for item_id in range(self.get_size()):
            header = self.get_header(item_id)
            labels.append(header.label if header is not None else str(item_id))
        return labels

    def to_frame(self) -> pd.DataFrame:
        """Distance matrix as a DataFrame indexed by item labels."""
        labels = self.get_labels()
        return pd.DataFrame(self._distances, index=labels, columns=labels)

    def encode(self, matrix_format: Any, ids: Optional[Sequence[int]] = None) -> Tuple[List[str], List[List[float]]]:
        """Item labels and textual rows of (a subset of) the matrix."""
        ids = list(range(self.get_size())) if ids is None else sorted(ids)
        labels = self.get_labels()
        sub_matrix = self._distances[np.ix_(ids, ids)]
        return [labels[i] for i in ids], encode_symmetric_matrix(sub_matrix, matrix_format)

    @classmethod
    def from_rows(cls, rows: Sequence[Row], matrix_format: Any, names_header: Optional[bool] = None,
                  name: str = "Precomputed distance matrix") -> 'DistanceMatrixData':
        """
        Parse a distance file layout.

        Args:
            rows: Cleaned text rows
            matrix_format: Encoding of the data rows
            names_header: Whether the first row holds item names; detected
                from the first row when None
            name: Dataset name
        """
        if not rows:
            raise StructuralError("File is empty.")
        if names_header is None:
            names_header = _is_names_row(rows[0])

        names = None
        headers = None
        if names_header:
            names = rows[0]
            missing = [c for c, cell in enumerate(names) if cell is None]
            if missing:
                raise StructuralError(f"Missing item name in header row at column {missing[0]}.",
                                      {'row': 0, 'column': missing[0]})
            if len(set(names)) != len(names):
                raise StructuralError("Duplicate item names in header row.", {'row': 0})
            # names in the header row identify the items
            headers = headers_from_columns(names)

        matrix = decode_symmetric_matrix(_parse_distance_rows(rows, 1 if names_header else 0), matrix_format, names)
        return cls(matrix, headers, name)
