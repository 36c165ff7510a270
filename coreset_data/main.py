"""
coreset-data: load, check and convert the input data of core set selection

Usage:
    # Load marker, trait and/or distance data for the same items and check that they agree
    coreset-data validate [--markers <file>] [--marker-format default|frequency|biparental]
                          [--phenotypes <file>] [--phenotype-config <json>]
                          [--distances <file>] [--distance-format full|lower|lower_diag] [--distance-names-header]
                          [--plot-file <svg>] [--log-level INFO]

    # Compute the Gower distance matrix of a trait table
    coreset-data gower <phenotypes> <output_file> [--config-file <json>] [--output-format lower_diag]

    # Re-encode a distance matrix
    coreset-data convert <input_file> <output_file> --input-format full --output-format lower [--names-header]
"""

import logging
import sys
from typing import Optional

import fire

from .dataset import CoreDataset
from .data_loading import load_distance_matrix, load_genotype_data, load_phenotype_data
from .gower import GowerDistanceMatrixGenerator
from .plots import create_distance_visualization
from .writers import write_distance_matrix

# Set up module-level logger
logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO") -> None:
    package_logger = logging.getLogger("coreset_data")
    package_logger.setLevel(log_level.upper())
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(handler)


def build_core_dataset(
    markers: Optional[str] = None,
    marker_format: str = "default",
    phenotypes: Optional[str] = None,
    phenotype_config: Optional[str] = None,
    distances: Optional[str] = None,
    distance_format: str = "full",
    distance_names_header: Optional[bool] = None,
) -> CoreDataset:
    """
    Load the given files and combine them into one dataset.

    Raises:
        ValueError: If no file is given, or the files do not describe the same items
    """
    if not (markers or phenotypes or distances):
        raise ValueError("Provide at least one of markers, phenotypes or distances.")
    if phenotype_config and not phenotypes:
        raise ValueError("If providing phenotype_config, phenotypes is also required.")

    genotype_data = load_genotype_data(markers, marker_format) if markers else None
    phenotype_data = load_phenotype_data(phenotypes, phenotype_config) if phenotypes else None
    distance_data = load_distance_matrix(distances, distance_format, distance_names_header) if distances else None

    dataset = CoreDataset(genotype_data, phenotype_data, distance_data)
    logger.info(f"✅ All datasets describe the same {dataset.get_size()} items")
    return dataset


def validate(
    markers: Optional[str] = None,
    marker_format: str = "default",
    phenotypes: Optional[str] = None,
    phenotype_config: Optional[str] = None,
    distances: Optional[str] = None,
    distance_format: str = "full",
    distance_names_header: Optional[bool] = None,
    plot_file: Optional[str] = None,
    log_level: str = "INFO",
) -> int:
    """
    CLI interface to load and cross-check coreset input data.

    Args:
        markers: Path to marker file (optional)
        marker_format: Marker file layout (default, frequency, biparental)
        phenotypes: Path to phenotypic trait file (optional)
        phenotype_config: JSON trait definitions, replacing the TYPE/MIN/MAX rows (optional)
        distances: Path to precomputed distance matrix (optional)
        distance_format: Distance matrix encoding (full, lower, lower_diag)
        distance_names_header: Whether the first distance row holds item names
            (detected when not given; set it for numeric item names)
        plot_file: SVG file for a visualization of the distances (optional)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Number of items
    """
    setup_logging(log_level)

    dataset = build_core_dataset(markers, marker_format, phenotypes, phenotype_config,
                                 distances, distance_format, distance_names_header)
    for line in dataset.summary():
        logger.info(f"   {line}")

    if plot_file:
        plot_distances = dataset.distances
        if plot_distances is None and dataset.has_phenotypes():
            plot_distances = GowerDistanceMatrixGenerator(dataset.phenotypes).generate_distance_matrix()
        if plot_distances is None:
            raise ValueError("Plotting requires distances or phenotypes.")
        create_distance_visualization(plot_distances, plot_file)

    return dataset.get_size()


def gower(
    phenotypes: str,
    output_file: str,
    config_file: Optional[str] = None,
    output_format: str = "lower_diag",
    log_level: str = "INFO",
) -> int:
    """
    CLI interface to compute the Gower distance matrix of a trait table.

    Args:
        phenotypes: Path to phenotypic trait file
        output_file: File to write the distance matrix to (must not exist)
        config_file: JSON trait definitions (optional)
        output_format: Distance matrix encoding (full, lower, lower_diag)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    setup_logging(log_level)

    logger.info(f"🌱 Phenotypes: {phenotypes}")
    if config_file:
        logger.info(f"⚙️ Config file: {config_file}")

    phenotype_data = load_phenotype_data(phenotypes, config_file)
    generator = GowerDistanceMatrixGenerator(phenotype_data)
    for feature, scale_type in zip(phenotype_data.get_features(), generator.scale_types):
        logger.debug(f"   {feature.identifier}: {scale_type.value}")

    distances = generator.generate_distance_matrix()
    write_distance_matrix(distances, output_file, output_format)

    logger.info(f"\n💾 Results saved to: {output_file}")
    return distances.get_size()


def convert(
    input_file: str,
    output_file: str,
    input_format: str = "full",
    output_format: str = "lower_diag",
    names_header: Optional[bool] = None,
    log_level: str = "INFO",
) -> int:
    """
    CLI interface to re-encode a distance matrix file.

    Args:
        input_file: Path to distance matrix
        output_file: File to write the converted matrix to (must not exist)
        input_format: Encoding of the input (full, lower, lower_diag)
        output_format: Encoding of the output (full, lower, lower_diag)
        names_header: Whether the first input row holds item names
            (detected when not given; set it for numeric item names)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    setup_logging(log_level)

    distances = load_distance_matrix(input_file, input_format, names_header)
    write_distance_matrix(distances, output_file, output_format)

    logger.info(f"\n💾 Results saved to: {output_file}")
    return distances.get_size()


def main():
    fire.Fire({
        'validate': validate,
        'gower': gower,
        'convert': convert,
    })


if __name__ == "__main__":
    main()
