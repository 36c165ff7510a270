"""
coreset-data: input data model for core set selection

Loads and validates the data describing a collection of items (accessions):
1. Marker data, as allele observations, allele frequencies or 0/1/2 scores
2. Phenotypic trait tables with typed, bounded traits
3. Precomputed symmetric distance matrices in full or triangular form

Datasets describing the same items are combined into a CoreDataset, with
their item headers reconciled. Trait tables can be turned into a Gower
distance matrix.
"""

__version__ = "0.1.0"

from .data_loading import load_distance_matrix, load_genotype_data, load_phenotype_data, validate_feature_config
from .dataset import CoreDataset
from .distances import DistanceMatrixData, SymmetricMatrixFormat, decode_symmetric_matrix, encode_symmetric_matrix
from .exceptions import (DataError, HeaderConflictError, IdentifierConflictError, InvariantError,
                         NameConflictError, NoSuchEntryError, StructuralError)
from .genotypes import (BiAllelicGenotypeData, DefaultGenotypeData, FrequencyGenotypeData, GenotypeDataFormat,
                        genotype_data_from_rows)
from .gower import GowerDistanceMatrixGenerator, gower_distance_matrix
from .headers import Header, ItemRegistry, merge_header, merge_headers
from .markers import infer_marker_columns, infer_marker_name
from .phenotypes import DataType, Feature, PhenotypeData, ScaleType
from .writers import write_distance_matrix, write_table_data

__all__ = [
    "Header",
    "ItemRegistry",
    "merge_header",
    "merge_headers",
    "infer_marker_name",
    "infer_marker_columns",
    "GenotypeDataFormat",
    "FrequencyGenotypeData",
    "DefaultGenotypeData",
    "BiAllelicGenotypeData",
    "genotype_data_from_rows",
    "SymmetricMatrixFormat",
    "DistanceMatrixData",
    "decode_symmetric_matrix",
    "encode_symmetric_matrix",
    "ScaleType",
    "DataType",
    "Feature",
    "PhenotypeData",
    "GowerDistanceMatrixGenerator",
    "gower_distance_matrix",
    "CoreDataset",
    "load_genotype_data",
    "load_phenotype_data",
    "load_distance_matrix",
    "validate_feature_config",
    "write_table_data",
    "write_distance_matrix",
    "DataError",
    "StructuralError",
    "InvariantError",
    "HeaderConflictError",
    "IdentifierConflictError",
    "NameConflictError",
    "NoSuchEntryError",
]
