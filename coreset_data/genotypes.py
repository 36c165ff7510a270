"""
Marker data: allele frequencies per item, marker and allele.

Three flavours share the same frequency view:

- :class:`FrequencyGenotypeData` is built from allele frequencies directly,
- :class:`DefaultGenotypeData` infers them from symbolic allele observations,
- :class:`BiAllelicGenotypeData` infers them from 0/1/2 allele scores.

Missing frequencies are masked, never stored as a number; the accessors
return None for them.
"""

import logging
from enum import Enum
from numbers import Integral, Real
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .exceptions import InvariantError, StructuralError
from .headers import HeaderLike, IdentifiedData
from .markers import infer_marker_columns
from .rows import ALLELE_NAMES_HEADER, Row, pad_rows, parse_header_row, parse_item_headers

logger = logging.getLogger(__name__)

# tolerance on the sum of the allele frequencies of one marker
SUM_TO_ONE_PRECISION = 0.01 + 1e-8


class GenotypeDataFormat(Enum):
    """Supported marker file layouts."""

    DEFAULT = 'default'
    FREQUENCY = 'frequency'
    BIPARENTAL = 'biparental'

    @classmethod
    def parse(cls, value: Any) -> 'GenotypeDataFormat':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            expected = ', '.join(f.value for f in cls)
            raise StructuralError(f"Unknown genotype data format: {value}. Expected one of: {expected}.") from None


def _is_missing(value: Any) -> bool:
    return value is None or (isinstance(value, float) and np.isnan(value))


def _as_frequency(value: Any, item: int, marker: int, allele: int) -> float:
    if _is_missing(value):
        return np.nan
    if isinstance(value, bool) or not isinstance(value, Real):
        raise StructuralError(
            f"Invalid frequency for item {item} at marker {marker}, allele {allele}. Got: {value!r}.",
            {'item': item, 'marker': marker, 'allele': allele}
        )
    return float(value)


def _split_per_marker(cells: Sequence[Any], counts: Sequence[int]) -> List[List[Any]]:
    grouped = []
    c = 0
    for count in counts:
        grouped.append(list(cells[c:c + count]))
        c += count
    return grouped


def _marker_label(marker_names: Sequence[Optional[str]], marker: int) -> str:
    name = marker_names[marker] if marker_names is not None and marker < len(marker_names) else None
    return f"{marker} ({name})" if name is not None else str(marker)


def validate_frequencies(values: np.ndarray, marker: int) -> np.ma.MaskedArray:
    """
    Check and normalize the frequency table of one marker.

    Args:
        values: Array of shape (items, alleles), NaN where missing
        marker: Marker index, used in error messages

    Returns:
        Masked array in which missing frequencies are masked and every fully
        observed row sums to exactly one
    """
    values = np.array(values, dtype=float)
    missing = np.isnan(values)

    negative = np.argwhere(values < 0.0)
    if len(negative):
        i, a = (int(x) for x in negative[0])
        raise InvariantError(
            f"Frequencies should not be negative. Got {values[i, a]} for item {i} at marker {marker}, allele {a}.",
            {'item': i, 'marker': marker, 'allele': a}
        )

    sums = np.where(missing, 0.0, values).sum(axis=1)
    exceeding = np.flatnonzero(sums > 1.0 + SUM_TO_ONE_PRECISION)
    if len(exceeding):
        i = int(exceeding[0])
        raise InvariantError(
            f"Allele frequency sum per marker should not exceed one. "
            f"Got {sums[i]} for item {i} at marker {marker}.",
            {'item': i, 'marker': marker}
        )

    # without missing values the frequencies should sum to one
    complete = ~missing.any(axis=1)
    short = np.flatnonzero(complete & (1.0 - sums > SUM_TO_ONE_PRECISION))
    if len(short):
        i = int(short[0])
        raise InvariantError(
            f"Allele frequencies for marker should sum to one. Got {sums[i]} for item {i} at marker {marker}.",
            {'item': i, 'marker': marker}
        )

    values[complete] = values[complete] / sums[complete, np.newaxis]
    return np.ma.masked_array(values, mask=missing)


class FrequencyGenotypeData(IdentifiedData):
    """
    Allele frequencies ``frequencies[item][marker][allele]``.

    Args:
        frequencies: Nested sequence of frequencies; None (or NaN) means missing
        headers: Optional header per item
        marker_names: Optional name per marker
        allele_names: Optional names per marker (None entries allowed)
        name: Dataset name

    Raises:
        StructuralError: If the dimensions are inconsistent
        InvariantError: If frequencies are negative or do not sum to one
    """

    def __init__(self, frequencies: Sequence[Sequence[Sequence[Optional[float]]]],
                 headers: Optional[Sequence[HeaderLike]] = None,
                 marker_names: Optional[Sequence[Optional[str]]] = None,
                 allele_names: Optional[Sequence[Optional[Sequence[Optional[str]]]]] = None,
                 name: str = "Allele frequency data"):
        num_items = len(frequencies)
        if num_items == 0:
            raise StructuralError("No data (zero rows).")
        super().__init__(name, num_items, headers)

        num_markers = None
        num_alleles: List[int] = []
        for i, item_freqs in enumerate(frequencies):
            if item_freqs is None:
                raise StructuralError(f"Allele frequencies not defined for item {i}.", {'item': i})
            if num_markers is None:
                num_markers = len(item_freqs)
                num_alleles = [len(f) if f is not None else -1 for f in item_freqs]
            elif len(item_freqs) != num_markers:
                raise StructuralError(
                    f"Incorrect number of markers for item {i}. Expected: {num_markers}, actual: {len(item_freqs)}.",
                    {'item': i}
                )
            for j, allele_freqs in enumerate(item_freqs):
                if allele_freqs is None:
                    raise StructuralError(
                        f"Allele frequencies not defined for item {i} at marker {j}.", {'item': i, 'marker': j}
                    )
                if num_alleles[j] == -1:
                    num_alleles[j] = len(allele_freqs)
                elif len(allele_freqs) != num_alleles[j]:
                    raise StructuralError(
                        f"Number of alleles per marker should be consistent across all items. "
                        f"Expected: {num_alleles[j]}, actual: {len(allele_freqs)} for item {i} at marker {j}.",
                        {'item': i, 'marker': j}
                    )

        tables = []
        for j in range(num_markers):
            values = np.array(
                [[_as_frequency(f, i, j, a) for a, f in enumerate(frequencies[i][j])] for i in range(num_items)],
                dtype=float
            ).reshape(num_items, num_alleles[j])
            tables.append(validate_frequencies(values, j))
        self._frequencies: Tuple[np.ma.MaskedArray, ...] = tuple(tables)

        if marker_names is None:
            self._marker_names: Tuple[Optional[str], ...] = (None,) * num_markers
        else:
            if len(marker_names) != num_markers:
                raise StructuralError(
                    f"Incorrect number of marker names provided. Expected: {num_markers}, actual: {len(marker_names)}."
                )
            self._marker_names = tuple(marker_names)

        if allele_names is None:
            allele_names = [None] * num_markers
        elif len(allele_names) != num_markers:
            raise StructuralError(
                f"Incorrect number of marker-allele names provided. "
                f"Expected: {num_markers}, actual: {len(allele_names)}."
            )
        names = []
        for j, marker_allele_names in enumerate(allele_names):
            if marker_allele_names is None:
                names.append((None,) * num_alleles[j])
            elif len(marker_allele_names) != num_alleles[j]:
                raise StructuralError(
                    f"Incorrect number of allele names provided for marker {j}. "
                    f"Expected: {num_alleles[j]}, actual: {len(marker_allele_names)}.",
                    {'marker': j}
                )
            else:
                names.append(tuple(marker_allele_names))
        self._allele_names: Tuple[Tuple[Optional[str], ...], ...] = tuple(names)

        logger.debug(f"Created {name}: {num_items} items, {num_markers} markers, "
                     f"{self.get_total_number_of_alleles()} alleles")

    def get_number_of_markers(self) -> int:
        return len(self._marker_names)

    def get_number_of_alleles(self, marker: int) -> int:
        return len(self._allele_names[marker])

    def get_total_number_of_alleles(self) -> int:
        return sum(len(names) for names in self._allele_names)

    def get_marker_name(self, marker: int) -> Optional[str]:
        return self._marker_names[marker]

    def get_marker_names(self) -> List[Optional[str]]:
        return list(self._marker_names)

    def get_allele_name(self, marker: int, allele: int) -> Optional[str]:
        return self._allele_names[marker][allele]

    def get_allele_names(self, marker: int) -> List[Optional[str]]:
        return list(self._allele_names[marker])

    def get_allele_frequency(self, item_id: int, marker: int, allele: int) -> Optional[float]:
        """Frequency of an allele, or None if it is missing."""
        self._registry.get_header(item_id)
        value = self._frequencies[marker][item_id, allele]
        return None if value is np.ma.masked else float(value)

    def get_allele_frequencies(self, item_id: int, marker: int) -> List[Optional[float]]:
        return [self.get_allele_frequency(item_id, marker, a) for a in range(self.get_number_of_alleles(marker))]

    def get_marker_frequencies(self, marker: int) -> np.ma.MaskedArray:
        """Copy of the (items x alleles) frequency table of one marker."""
        return self._frequencies[marker].copy()

    def has_missing_values(self, item_id: int, marker: int) -> bool:
        self._registry.get_header(item_id)
        return bool(np.ma.getmaskarray(self._frequencies[marker])[item_id].any())

    def marker_label(self, marker: int) -> str:
        name = self._marker_names[marker]
        return name if name is not None else f"marker{marker}"

    # textual layout, used by the writers

    def column_labels(self) -> List[str]:
        return [self.marker_label(j) for j in range(self.get_number_of_markers())
                for _ in range(self.get_number_of_alleles(j))]

    def extra_header_rows(self) -> List[Tuple[str, List[Optional[str]]]]:
        return [(ALLELE_NAMES_HEADER, [a for names in self._allele_names for a in names])]

    def data_cells(self, item_id: int) -> List[Any]:
        return [f for j in range(self.get_number_of_markers()) for f in self.get_allele_frequencies(item_id, j)]

    @classmethod
    def from_rows(cls, rows: Sequence[Row], name: str = "Allele frequency data") -> 'FrequencyGenotypeData':
        """Parse the column-grouped frequency layout (with optional ALLELE row)."""
        with_names, num_header_cols = parse_header_row(rows)
        num_cols = len(rows[0])
        if num_cols == num_header_cols:
            raise StructuralError("No data columns.")

        markers = infer_marker_columns(rows[0][num_header_cols:])
        marker_names = list(markers.keys())
        allele_counts = list(markers.values())

        for r in range(1, len(rows)):
            if len(rows[r]) > num_cols:
                raise StructuralError(
                    f"Incorrect number of columns at row {r}. Expected: {num_cols}, actual: {len(rows[r])}.",
                    {'row': r}
                )
        rows = pad_rows(rows, num_cols)

        allele_names = None
        first_data_row = 1
        if len(rows) > 1 and rows[1][0] == ALLELE_NAMES_HEADER:
            allele_names = _split_per_marker(rows[1][num_header_cols:], allele_counts)
            first_data_row = 2
        for r in range(first_data_row, len(rows)):
            if rows[r][0] == ALLELE_NAMES_HEADER:
                raise StructuralError("Allele names header should be the second row in the file.", {'row': r})
        if first_data_row >= len(rows):
            raise StructuralError("No data rows.")

        headers = parse_item_headers(rows, first_data_row, with_names)

        frequencies = []
        for r in range(first_data_row, len(rows)):
            cells = []
            for c in range(num_header_cols, num_cols):
                cell = rows[r][c]
                if cell is None:
                    cells.append(None)
                    continue
                try:
                    value = float(cell)
                except ValueError:
                    value = np.nan
                # missing frequencies are empty cells only
                if not np.isfinite(value):
                    raise StructuralError(
                        f"Invalid frequency at row {r}, column {c}. Expected float value, got: \"{cell}\".",
                        {'row': r, 'column': c}
                    )
                cells.append(value)
            frequencies.append(_split_per_marker(cells, allele_counts))

        return cls(frequencies, headers, marker_names, allele_names, name)


def _copy_observations(observed_alleles: Sequence[Sequence[Sequence[Optional[str]]]]
                       ) -> Tuple[Tuple[Tuple[Optional[str], ...], ...], ...]:
    num_items = len(observed_alleles)
    if num_items == 0:
        raise StructuralError("No data (zero rows).")

    num_markers = None
    slots_per_marker: List[int] = []
    copied = []
    for i, item_obs in enumerate(observed_alleles):
        if item_obs is None:
            raise StructuralError(f"Marker data not defined for item {i}.", {'item': i})
        if num_markers is None:
            num_markers = len(item_obs)
            if num_markers == 0:
                raise StructuralError(f"No markers (zero columns) for item {i}.", {'item': i})
            slots_per_marker = [-1] * num_markers
        elif len(item_obs) != num_markers:
            raise StructuralError(
                f"Incorrect number of markers for item {i}. Expected: {num_markers}, actual: {len(item_obs)}.",
                {'item': i}
            )

        item_copy = []
        for j, slots in enumerate(item_obs):
            if slots is None:
                raise StructuralError(
                    f"Observed alleles not defined for item {i} at marker {j}.", {'item': i, 'marker': j}
                )
            if slots_per_marker[j] == -1:
                if len(slots) == 0:
                    raise StructuralError(
                        f"No allele references (zero columns) for item {i} at marker {j}.", {'item': i, 'marker': j}
                    )
                slots_per_marker[j] = len(slots)
            elif len(slots) != slots_per_marker[j]:
                raise StructuralError(
                    f"Incorrect number of columns for item {i} at marker {j}. "
                    f"Expected: {slots_per_marker[j]}, actual: {len(slots)}.",
                    {'item': i, 'marker': j}
                )
            item_copy.append(tuple(None if s is None else str(s) for s in slots))
        copied.append(tuple(item_copy))

    return tuple(copied)


def infer_allele_names(observed: Sequence[Sequence[Sequence[Optional[str]]]],
                       marker_names: Optional[Sequence[Optional[str]]] = None) -> List[List[str]]:
    """Sorted set of observed alleles per marker."""
    num_markers = len(observed[0])
    allele_names = []
    for j in range(num_markers):
        alleles = sorted({a for item_obs in observed for a in item_obs[j] if a is not None})
        if not alleles:
            raise StructuralError(f"No data for marker {_marker_label(marker_names, j)}.", {'marker': j})
        allele_names.append(alleles)
    return allele_names


def infer_allele_frequencies(observed: Sequence[Sequence[Sequence[Optional[str]]]],
                             allele_names: Sequence[Sequence[str]]) -> List[List[List[Optional[float]]]]:
    """
    Frequencies of the observed alleles per item and marker.

    An allele observed in k of the s slots has frequency k/s. If any slot is
    missing, the alleles that were not observed are missing rather than zero.
    """
    num_items = len(observed)
    frequencies: List[List[List[Optional[float]]]] = [[] for _ in range(num_items)]
    for j, names in enumerate(allele_names):
        index: Dict[str, int] = {allele: a for a, allele in enumerate(names)}
        num_slots = len(observed[0][j])
        counts = np.zeros((num_items, len(names)))
        for i in range(num_items):
            for allele in observed[i][j]:
                if allele is not None:
                    counts[i, index[allele]] += 1
        freqs = counts / num_slots
        for i in range(num_items):
            if any(allele is None for allele in observed[i][j]):
                freqs[i, counts[i] == 0] = np.nan
        for i in range(num_items):
            frequencies[i].append([None if np.isnan(f) else float(f) for f in freqs[i]])
    return frequencies


class DefaultGenotypeData(FrequencyGenotypeData):
    """
    Marker data given as observed alleles ``observed[item][marker][slot]``.

    Every item has the same number of observation slots per marker (e.g. two
    for diploid data). The allele names of a marker are the sorted distinct
    observed symbols; frequencies are inferred from the observation counts.
    """

    def __init__(self, observed_alleles: Sequence[Sequence[Sequence[Optional[str]]]],
                 headers: Optional[Sequence[HeaderLike]] = None,
                 marker_names: Optional[Sequence[Optional[str]]] = None,
                 name: str = "Default marker data"):
        observed = _copy_observations(observed_alleles)
        allele_names = infer_allele_names(observed, marker_names)
        frequencies = infer_allele_frequencies(observed, allele_names)
        super().__init__(frequencies, headers, marker_names, allele_names, name)
        self._observed = observed

    def get_number_of_observed_alleles(self, marker: int) -> int:
        return len(self._observed[0][marker])

    def get_observed_allele(self, item_id: int, marker: int, slot: int) -> Optional[str]:
        self._registry.get_header(item_id)
        return self._observed[item_id][marker][slot]

    def get_observed_alleles(self, item_id: int, marker: int) -> List[Optional[str]]:
        self._registry.get_header(item_id)
        return list(self._observed[item_id][marker])

    def column_labels(self) -> List[str]:
        return [self.marker_label(j) for j in range(self.get_number_of_markers())
                for _ in range(self.get_number_of_observed_alleles(j))]

    def extra_header_rows(self) -> List[Tuple[str, List[Optional[str]]]]:
        return []

    def data_cells(self, item_id: int) -> List[Any]:
        return [a for slots in self._observed[item_id] for a in slots]

    @classmethod
    def from_rows(cls, rows: Sequence[Row], name: str = "Default marker data") -> 'DefaultGenotypeData':
        """Parse the column-grouped allele observation layout."""
        with_names, num_header_cols = parse_header_row(rows)
        rows = pad_rows(rows)
        num_cols = len(rows[0])
        if len(rows) == 1:
            raise StructuralError("No data rows.")
        if num_cols == num_header_cols:
            raise StructuralError("No data columns.")
        if rows[1][0] == ALLELE_NAMES_HEADER:
            raise StructuralError("Allele names header is only supported for frequency data.", {'row': 1})

        markers = infer_marker_columns(rows[0][num_header_cols:])
        slot_counts = list(markers.values())
        headers = parse_item_headers(rows, 1, with_names)
        observed = [_split_per_marker(row[num_header_cols:], slot_counts) for row in rows[1:]]

        return cls(observed, headers, list(markers.keys()), name)


class BiAllelicGenotypeData(FrequencyGenotypeData):
    """
    Bi-allelic marker data given as scores ``scores[item][marker]``.

    A score in {0, 1, 2} counts the copies of allele "1"; None is missing.
    """

    ALLELE_NAMES = ('0', '1')

    def __init__(self, allele_scores: Sequence[Sequence[Optional[int]]],
                 headers: Optional[Sequence[HeaderLike]] = None,
                 marker_names: Optional[Sequence[Optional[str]]] = None,
                 name: str = "Biallelic marker data"):
        num_items = len(allele_scores)
        if num_items == 0:
            raise StructuralError("No data (zero rows).")

        num_markers = None
        scores = []
        for i, item_scores in enumerate(allele_scores):
            if item_scores is None:
                raise StructuralError(f"Allele scores not defined for item {i}.", {'item': i})
            if num_markers is None:
                num_markers = len(item_scores)
                if num_markers == 0:
                    raise StructuralError("No markers (zero columns).")
            elif len(item_scores) != num_markers:
                raise StructuralError(
                    f"Incorrect number of markers for item {i}. Expected: {num_markers}, actual: {len(item_scores)}.",
                    {'item': i}
                )
            for j, score in enumerate(item_scores):
                if score is not None and (isinstance(score, bool) or not isinstance(score, Integral)
                                          or not 0 <= score <= 2):
                    raise InvariantError(
                        f"Unexpected value at data row {i} and data column {j}. Got: {score} (allowed: 0, 1, 2).",
                        {'item': i, 'marker': j}
                    )
            scores.append(tuple(None if s is None else int(s) for s in item_scores))

        frequencies = [
            [[None, None] if s is None else [1.0 - s / 2.0, s / 2.0] for s in item_scores]
            for item_scores in scores
        ]
        super().__init__(frequencies, headers, marker_names, [list(self.ALLELE_NAMES)] * num_markers, name)
        self._scores = tuple(scores)

    def get_allele_score(self, item_id: int, marker: int) -> Optional[int]:
        self._registry.get_header(item_id)
        return self._scores[item_id][marker]

    def column_labels(self) -> List[str]:
        return [self.marker_label(j) for j in range(self.get_number_of_markers())]

    def extra_header_rows(self) -> List[Tuple[str, List[Optional[str]]]]:
        return []

    def data_cells(self, item_id: int) -> List[Any]:
        return list(self._scores[item_id])

    @classmethod
    def from_rows(cls, rows: Sequence[Row], name: str = "Biallelic marker data") -> 'BiAllelicGenotypeData':
        """Parse the one-column-per-marker 0/1/2 score layout."""
        with_names, num_header_cols = parse_header_row(rows)
        rows = pad_rows(rows)
        num_cols = len(rows[0])
        if len(rows) == 1:
            raise StructuralError("No data rows.")
        if num_cols == num_header_cols:
            raise StructuralError("No data columns.")

        marker_names = rows[0][num_header_cols:]
        headers = parse_item_headers(rows, 1, with_names)

        scores = []
        for r in range(1, len(rows)):
            item_scores = []
            for c in range(num_header_cols, num_cols):
                cell = rows[r][c]
                try:
                    item_scores.append(None if cell is None else int(cell))
                except ValueError:
                    raise StructuralError(
                        f"Invalid allele score at row {r}, column {c}. Expected integer value 0/1/2, got: \"{cell}\".",
                        {'row': r, 'column': c}
                    ) from None
            scores.append(item_scores)

        return cls(scores, headers, marker_names, name)


GENOTYPE_DATA_CLASSES = {
    GenotypeDataFormat.DEFAULT: DefaultGenotypeData,
    GenotypeDataFormat.FREQUENCY: FrequencyGenotypeData,
    GenotypeDataFormat.BIPARENTAL: BiAllelicGenotypeData,
}


def genotype_data_from_rows(rows: Sequence[Row], data_format: Any, name: Optional[str] = None) -> FrequencyGenotypeData:
    """Parse marker rows in the given :class:`GenotypeDataFormat`."""
    data_class = GENOTYPE_DATA_CLASSES[GenotypeDataFormat.parse(data_format)]
    if name is None:
        return data_class.from_rows(rows)
    return data_class.from_rows(rows, name=name)
