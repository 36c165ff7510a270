"""
Data loading utilities for coreset data files.
"""

import csv
import io
import json
import logging
import os
from typing import Any, Dict, List, Optional

import pandas as pd
from schema import And, Or, Schema, SchemaError, Use
from schema import Optional as SchemaOptional

from .distances import DistanceMatrixData, SymmetricMatrixFormat
from .exceptions import DataError, StructuralError
from .genotypes import FrequencyGenotypeData, GenotypeDataFormat, genotype_data_from_rows
from .phenotypes import DataType, Feature, PhenotypeData, ScaleType
from .rows import Row, clean_rows

logger = logging.getLogger(__name__)

_LOAD_ERRORS = (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError)


def _separator(path: str) -> str:
    return ',' if str(path).lower().endswith('.csv') else '\t'


def read_rows(path: str, sep: Optional[str] = None) -> List[Row]:
    """
    Read a delimited text file into cleaned rows.

    CSV files (``.csv``) are comma separated, all others tab separated.
    Cells are stripped of whitespace and one pair of surrounding quotes;
    empty cells become None; trailing empty cells and empty rows are dropped.
    """
    sep = sep or _separator(path)
    with open(path, encoding='utf-8') as f:
        text = f.read()
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        raise StructuralError("File is empty.", {'file': path})

    # rows may have different lengths (e.g. triangular matrices)
    width = max(line.count(sep) for line in lines) + 1
    table = pd.read_csv(
        io.StringIO(text), sep=sep, header=None, names=list(range(width)), dtype=str,
        keep_default_na=False, quoting=csv.QUOTE_NONE, skip_blank_lines=True
    )
    rows = [row for row in clean_rows(table.values.tolist()) if row]
    logger.debug(f"Read {len(rows)} rows from {path}")
    return rows


def load_genotype_data(path: str, data_format: Any = GenotypeDataFormat.DEFAULT) -> FrequencyGenotypeData:
    """Load marker data in the given :class:`GenotypeDataFormat`."""
    data_format = GenotypeDataFormat.parse(data_format)
    try:
        rows = read_rows(path)
        data = genotype_data_from_rows(rows, data_format, name=os.path.basename(path))
    except DataError:
        raise
    except _LOAD_ERRORS as e:
        raise StructuralError(f"Error loading marker file: {e}", {'file': path}) from e

    logger.info(f"🧬 Loaded {data_format.value} marker data from {path}: {data.get_size()} items, "
                f"{data.get_number_of_markers()} markers, {data.get_total_number_of_alleles()} alleles")
    return data


def load_distance_matrix(path: str, matrix_format: Any = SymmetricMatrixFormat.FULL,
                         names_header: Optional[bool] = None) -> DistanceMatrixData:
    """Load a precomputed distance matrix stored in the given encoding."""
    matrix_format = SymmetricMatrixFormat.parse(matrix_format)
    try:
        rows = read_rows(path)
        data = DistanceMatrixData.from_rows(rows, matrix_format, names_header, name=os.path.basename(path))
    except DataError:
        raise
    except _LOAD_ERRORS as e:
        raise StructuralError(f"Error loading distance matrix: {e}", {'file': path}) from e

    logger.info(f"📏 Loaded {matrix_format.value} distance matrix from {path}: {data.get_size()} items")
    return data


# Define the trait configuration schema
FEATURE_CONFIG_SCHEMA = Schema({
    'features': {
        str: {  # Trait (column) name
            'scale': And(str, Use(str.lower), lambda s: s in [
                'nominal', 'ordinal', 'interval', 'ratio'
            ]),
            'type': And(str, Use(str.lower), lambda s: s in [
                'boolean', 'string', 'integer', 'long', 'float', 'double'
            ]),
            SchemaOptional('min'): And(Or(int, float), lambda n: not isinstance(n, bool)),
            SchemaOptional('max'): And(Or(int, float), lambda n: not isinstance(n, bool)),
            SchemaOptional('name'): str,
        }
    }
})


def validate_feature_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Validate and normalize a JSON trait configuration."""
    validated_config = FEATURE_CONFIG_SCHEMA.validate(config)

    for feature_name, feature_config in validated_config['features'].items():
        numeric = feature_config['type'] not in ('boolean', 'string')
        has_bounds = 'min' in feature_config or 'max' in feature_config

        if has_bounds and not numeric:
            raise SchemaError(f"Trait '{feature_name}' of type '{feature_config['type']}' can not have bounds")

        if 'min' in feature_config and 'max' in feature_config and feature_config['min'] > feature_config['max']:
            raise SchemaError(f"Trait '{feature_name}' has 'min' larger than 'max'")

    return validated_config


def features_from_config(config: Dict[str, Any]) -> Dict[str, Feature]:
    """Trait definitions by column name from a validated configuration."""
    features = {}
    for feature_name, feature_config in config['features'].items():
        features[feature_name] = Feature(
            identifier=feature_name,
            scale=ScaleType[feature_config['scale'].upper()],
            data_type=DataType[feature_config['type'].upper()],
            minimum=feature_config.get('min'),
            maximum=feature_config.get('max'),
            name=feature_config.get('name'),
        )
    return features


def load_feature_config(config_file: str) -> Dict[str, Feature]:
    with open(config_file) as f:
        config = json.load(f)
    return features_from_config(validate_feature_config(config))


def load_phenotype_data(path: str, config_file: Optional[str] = None) -> PhenotypeData:
    """
    Load a trait table.

    Without ``config_file`` the file must declare the trait types in a TYPE
    row; with it, the traits are defined by the JSON configuration.
    """
    features = load_feature_config(config_file) if config_file else None
    try:
        rows = read_rows(path)
        data = PhenotypeData.from_rows(rows, features, name=os.path.basename(path))
    except DataError:
        raise
    except _LOAD_ERRORS as e:
        raise StructuralError(f"Error loading phenotype file: {e}", {'file': path}) from e

    logger.info(f"🌱 Loaded phenotypic data from {path}: {data.get_size()} items, "
                f"{data.get_number_of_features()} traits")
    return data
