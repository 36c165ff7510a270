"""
Phenotypic trait tables: one row per item, one typed column per trait.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from numbers import Integral, Real
from typing import Any, Dict, List, Optional, Sequence

import pandas as pd

from .exceptions import InvariantError, StructuralError
from .headers import HeaderLike, IdentifiedData
from .rows import Row, pad_rows, parse_header_row, parse_item_headers

logger = logging.getLogger(__name__)

TYPE_HEADER = 'TYPE'
MIN_HEADER = 'MIN'
MAX_HEADER = 'MAX'

TRUE_VALUES = {'true', 'yes', '1'}
FALSE_VALUES = {'false', 'no', '0'}


class ScaleType(Enum):
    NOMINAL = 'N'
    ORDINAL = 'O'
    INTERVAL = 'I'
    RATIO = 'R'


class DataType(Enum):
    BOOLEAN = 'B'
    STRING = 'S'
    INTEGER = 'I'
    LONG = 'L'
    FLOAT = 'F'
    DOUBLE = 'D'

    @property
    def is_numeric(self) -> bool:
        return self in (DataType.INTEGER, DataType.LONG, DataType.FLOAT, DataType.DOUBLE)

    @property
    def is_integral(self) -> bool:
        return self in (DataType.INTEGER, DataType.LONG)

    def parse(self, cell: Optional[str]) -> Any:
        """Convert a text cell to a value of this type (None stays None)."""
        if cell is None:
            return None
        if self is DataType.BOOLEAN:
            lowered = cell.lower()
            if lowered in TRUE_VALUES:
                return True
            if lowered in FALSE_VALUES:
                return False
            raise ValueError(f"not a boolean: {cell}")
        if self is DataType.STRING:
            return cell
        if self.is_integral:
            return int(cell)
        return float(cell)

    def accepts(self, value: Any) -> bool:
        if self is DataType.BOOLEAN:
            return isinstance(value, bool)
        if self is DataType.STRING:
            return isinstance(value, str)
        if isinstance(value, bool):
            return False
        if self.is_integral:
            return isinstance(value, Integral)
        return isinstance(value, Real)


@dataclass(frozen=True)
class Feature:
    """A trait column: identifier, measurement scale, data type and bounds."""

    identifier: str
    scale: ScaleType
    data_type: DataType
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    name: Optional[str] = None

    def __post_init__(self):
        if (self.minimum is not None or self.maximum is not None) and not self.data_type.is_numeric:
            raise StructuralError(
                f"Bounds are only supported for numeric traits, got {self.data_type.name} for trait {self.identifier}."
            )
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise InvariantError(
                f"Minimum {self.minimum} exceeds maximum {self.maximum} for trait {self.identifier}."
            )

    @classmethod
    def from_code(cls, identifier: str, code: str, minimum: Optional[float] = None,
                  maximum: Optional[float] = None) -> 'Feature':
        """Create a feature from a two-letter type code such as ``NB`` or ``RD``."""
        if code is None or len(code) != 2:
            raise StructuralError(f"Invalid type code {code!r} for trait {identifier}.")
        try:
            scale = ScaleType(code[0].upper())
            data_type = DataType(code[1].upper())
        except ValueError:
            raise StructuralError(f"Invalid type code {code!r} for trait {identifier}.") from None
        return cls(identifier, scale, data_type, minimum, maximum)

    @property
    def code(self) -> str:
        return self.scale.value + self.data_type.value

    @property
    def value_range(self) -> Optional[float]:
        if self.minimum is None or self.maximum is None:
            return None
        return self.maximum - self.minimum


def _check_value(feature: Feature, value: Any, item: int, k: int) -> Any:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return None
    if not feature.data_type.accepts(value):
        raise StructuralError(
            f"Invalid value {value!r} for item {item} and trait {feature.identifier}. "
            f"Expected {feature.data_type.name.lower()}.",
            {'item': item, 'feature': k}
        )
    if feature.data_type.is_integral:
        value = int(value)
    elif feature.data_type.is_numeric:
        value = float(value)
    if feature.data_type.is_numeric:
        if ((feature.minimum is not None and value < feature.minimum)
                or (feature.maximum is not None and value > feature.maximum)):
            raise InvariantError(
                f"Value {value} for item {item} is outside of the range "
                f"[{feature.minimum}, {feature.maximum}] of trait {feature.identifier}.",
                {'item': item, 'feature': k}
            )
    return value


class PhenotypeData(IdentifiedData):
    """
    Immutable table of trait values ``values[item][feature]``.

    Numeric traits without declared bounds get the observed minimum and
    maximum as bounds.
    """

    def __init__(self, features: Sequence[Feature], values: Sequence[Sequence[Any]],
                 headers: Optional[Sequence[HeaderLike]] = None, name: str = "Phenotypic trait data"):
        if not features:
            raise StructuralError("No traits (zero columns).")
        identifiers = [f.identifier for f in features]
        if len(set(identifiers)) != len(identifiers):
            raise StructuralError(f"Duplicate trait identifiers: {identifiers}.")
        num_items = len(values)
        if num_items == 0:
            raise StructuralError("No data (zero rows).")
        super().__init__(name, num_items, headers)

        rows = []
        for i, row in enumerate(values):
            if row is None or len(row) != len(features):
                actual = None if row is None else len(row)
                raise StructuralError(
                    f"Incorrect number of values for item {i}. Expected: {len(features)}, actual: {actual}.",
                    {'item': i}
                )
            rows.append(tuple(_check_value(f, v, i, k) for k, (f, v) in enumerate(zip(features, row))))
        self._values = tuple(rows)

        completed = []
        for k, feature in enumerate(features):
            if feature.data_type.is_numeric and (feature.minimum is None or feature.maximum is None):
                observed = [row[k] for row in rows if row[k] is not None]
                if observed:
                    feature = replace(
                        feature,
                        minimum=feature.minimum if feature.minimum is not None else min(observed),
                        maximum=feature.maximum if feature.maximum is not None else max(observed),
                    )
            completed.append(feature)
        self._features = tuple(completed)

        logger.debug(f"Created {name}: {num_items} items, {len(completed)} traits")

    def get_features(self) -> List[Feature]:
        return list(self._features)

    def get_feature(self, k: int) -> Feature:
        return self._features[k]

    def get_number_of_features(self) -> int:
        return len(self._features)

    def get_value(self, item_id: int, k: int) -> Any:
        self._registry.get_header(item_id)
        return self._values[item_id][k]

    def get_row(self, item_id: int) -> List[Any]:
        self._registry.get_header(item_id)
        return list(self._values[item_id])

    def get_values(self) -> List[List[Any]]:
        return [list(row) for row in self._values]

    def to_frame(self) -> pd.DataFrame:
        """Trait values as a DataFrame with one column per trait identifier."""
        return pd.DataFrame(self.get_values(), columns=[f.identifier for f in self._features], dtype=object)

    # textual layout, used by the writers

    def column_labels(self) -> List[str]:
        return [f.identifier for f in self._features]

    def extra_header_rows(self):
        return [
            (TYPE_HEADER, [f.code for f in self._features]),
            (MIN_HEADER, [f.minimum for f in self._features]),
            (MAX_HEADER, [f.maximum for f in self._features]),
        ]

    def data_cells(self, item_id: int) -> List[Any]:
        return self.get_row(item_id)

    @classmethod
    def from_rows(cls, rows: Sequence[Row], features: Optional[Dict[str, Feature]] = None,
                  name: str = "Phenotypic trait data") -> 'PhenotypeData':
        """
        Parse a trait table.

        Args:
            rows: Cleaned text rows
            features: Trait definitions by column label; when None the file
                must provide a TYPE row (and optionally MIN/MAX rows)
            name: Dataset name
        """
        with_names, num_header_cols = parse_header_row(rows, "phenotype")
        num_cols = len(rows[0])
        if num_cols == num_header_cols:
            raise StructuralError("No data columns.")
        for r in range(1, len(rows)):
            if len(rows[r]) > num_cols:
                raise StructuralError(
                    f"Incorrect number of columns at row {r}. Expected: {num_cols}, actual: {len(rows[r])}.",
                    {'row': r}
                )
        rows = pad_rows(rows, num_cols)
        labels = rows[0][num_header_cols:]
        for c, label in enumerate(labels):
            if label is None:
                raise StructuralError(f"Missing trait name for data column {c}.", {'column': c + num_header_cols})

        first_data_row = 1
        if features is None:
            header_rows = {}
            while first_data_row < len(rows) and rows[first_data_row][0] in (TYPE_HEADER, MIN_HEADER, MAX_HEADER):
                header_rows[rows[first_data_row][0]] = rows[first_data_row][num_header_cols:]
                first_data_row += 1
            if TYPE_HEADER not in header_rows:
                raise StructuralError(f"Missing {TYPE_HEADER} row in phenotype file.")
            bounds = {}
            for header in (MIN_HEADER, MAX_HEADER):
                cells = header_rows.get(header, [None] * len(labels))
                try:
                    bounds[header] = [None if cell is None else float(cell) for cell in cells]
                except ValueError as e:
                    raise StructuralError(f"Invalid value in {header} row: {e}.") from None
            column_features = [
                Feature.from_code(label, code, minimum, maximum)
                for label, code, minimum, maximum
                in zip(labels, header_rows[TYPE_HEADER], bounds[MIN_HEADER], bounds[MAX_HEADER])
            ]
        else:
            undefined = [label for label in labels if label not in features]
            if undefined:
                raise StructuralError(f"No definition for trait columns: {undefined}.")
            column_features = [features[label] for label in labels]

        if first_data_row >= len(rows):
            raise StructuralError("No data rows.")
        headers = parse_item_headers(rows, first_data_row, with_names)

        values = []
        for r in range(first_data_row, len(rows)):
            row_values = []
            for k, feature in enumerate(column_features):
                c = num_header_cols + k
                try:
                    row_values.append(feature.data_type.parse(rows[r][c]))
                except ValueError:
                    raise StructuralError(
                        f"Invalid value at row {r}, column {c}. "
                        f"Expected {feature.data_type.name.lower()}, got: \"{rows[r][c]}\".",
                        {'row': r, 'column': c}
                    ) from None
            values.append(row_values)

        return cls(column_features, values, headers, name)
