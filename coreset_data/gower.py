"""
Gower distance matrix for mixed-type trait tables.

Each trait is compared as binary (boolean nominal), discrete (other nominal)
or ranged (numeric with a positive range). Per pair of items the distance is
the weighted average of the per-trait distances:

- binary: distance 0 if both values are true, 1 otherwise; weight 0 if both
  values are false, 1 otherwise,
- discrete: distance 0 if the values are equal, 1 otherwise; weight 1,
- ranged: distance ``|x_i - x_j| / range``; weight 1,
- missing value on either side: distance and weight 0.

A pair without any informative trait gets distance 0.
"""

import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .distances import DistanceMatrixData
from .exceptions import StructuralError
from .headers import HeaderLike
from .phenotypes import DataType, Feature, PhenotypeData, ScaleType

logger = logging.getLogger(__name__)


class GowerScaleType(Enum):
    BINARY = 'binary'
    DISCRETE = 'discrete'
    RANGED = 'ranged'


def classify_feature(feature: Feature) -> Tuple[GowerScaleType, float]:
    """
    Determine how a trait is compared, and its range for ranged traits.

    Raises:
        StructuralError: If a non-numeric trait has an ordinal, interval or
            ratio scale
    """
    if feature.scale is ScaleType.NOMINAL:
        if feature.data_type is DataType.BOOLEAN:
            return GowerScaleType.BINARY, 0.0
        return GowerScaleType.DISCRETE, 0.0

    if not feature.data_type.is_numeric:
        raise StructuralError(
            f"Illegal data type {feature.data_type.name} for scale type {feature.scale.name} "
            f"(trait {feature.identifier})."
        )
    value_range = feature.value_range
    if value_range is not None and value_range > 0:
        return GowerScaleType.RANGED, value_range
    # constant traits can only be compared for equality
    return GowerScaleType.DISCRETE, 0.0


def _column_contribution(column: Sequence[Any], scale_type: GowerScaleType,
                         value_range: float) -> Tuple[np.ndarray, np.ndarray]:
    """Per-pair distances and weights of one trait column."""
    present = np.array([v is not None for v in column], dtype=bool)
    both = np.logical_and.outer(present, present)

    if scale_type is GowerScaleType.BINARY:
        values = np.array([bool(v) if v is not None else False for v in column], dtype=bool)
        distance = ~np.logical_and.outer(values, values)
        weight = np.logical_or.outer(values, values)
    elif scale_type is GowerScaleType.DISCRETE:
        codes, _ = pd.factorize(pd.Series(list(column), dtype=object))
        distance = codes[:, np.newaxis] != codes[np.newaxis, :]
        weight = np.ones_like(both)
    else:
        values = np.array([float(v) if v is not None else 0.0 for v in column])
        distance = np.abs(values[:, np.newaxis] - values[np.newaxis, :]) / value_range
        weight = np.ones_like(both)

    return np.where(both, distance, 0.0), np.where(both & weight, 1.0, 0.0)


def gower_distance_matrix(values: Sequence[Sequence[Any]], features: Sequence[Feature]) -> np.ndarray:
    """
    Compute the Gower distance matrix of a trait table.

    Args:
        values: Rows of trait values (None for missing)
        features: Trait definitions, one per column

    Returns:
        Symmetric n x n matrix with zero diagonal
    """
    classified = [classify_feature(f) for f in features]
    n = len(values)
    for i, row in enumerate(values):
        if len(row) != len(features):
            raise StructuralError(
                f"Number of traits must match number of values in row {i}. "
                f"Expected: {len(features)}, actual: {len(row)}.",
                {'row': i}
            )

    distance_sum = np.zeros((n, n))
    weight_sum = np.zeros((n, n))
    for k, (scale_type, value_range) in enumerate(classified):
        column = [row[k] for row in values]
        distance, weight = _column_contribution(column, scale_type, value_range)
        distance_sum += distance * weight
        weight_sum += weight
        logger.debug(f"Trait {features[k].identifier}: compared as {scale_type.value}")

    distances = np.divide(distance_sum, weight_sum, out=np.zeros((n, n)), where=weight_sum > 0)
    # mirror the upper triangle
    upper = np.triu(distances)
    return upper + np.triu(distances, 1).T


class GowerDistanceMatrixGenerator:
    """
    Generates a :class:`DistanceMatrixData` from phenotypic trait data.

    Trait classification happens at construction, so incoherent trait
    definitions are rejected before any distance is computed.
    """

    def __init__(self, data: Optional[PhenotypeData] = None, values: Optional[Sequence[Sequence[Any]]] = None,
                 features: Optional[Sequence[Feature]] = None, headers: Optional[Sequence[HeaderLike]] = None):
        if data is not None:
            values = data.get_values()
            features = data.get_features()
            headers = data.get_headers()
        if values is None or features is None:
            raise StructuralError("Features and data must be defined.")
        self._scale_types: List[Tuple[GowerScaleType, float]] = [classify_feature(f) for f in features]
        self._values = [list(row) for row in values]
        self._features = list(features)
        self._headers = headers

    @property
    def scale_types(self) -> List[GowerScaleType]:
        return [scale_type for scale_type, _ in self._scale_types]

    def generate_distance_matrix(self) -> DistanceMatrixData:
        logger.info(f"Computing Gower distances for {len(self._values)} items and {len(self._features)} traits")
        matrix = gower_distance_matrix(self._values, self._features)
        return DistanceMatrixData(matrix, self._headers, name="Gower distance matrix")
