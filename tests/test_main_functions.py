"""
Tests for the command line functions.
"""

import logging

# Add src to path for imports
import os
import sys
import tempfile
import unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from coreset_data.data_loading import load_distance_matrix, read_rows
from coreset_data.exceptions import IdentifierConflictError, StructuralError
from coreset_data.main import build_core_dataset, convert, gower, setup_logging, validate

DATA_DIR = Path(__file__).parent / "data"


class TestMainFunctions(unittest.TestCase):
    """Test validate, gower and convert."""

    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        # Disable logging for tests
        logging.getLogger("coreset_data").setLevel(logging.CRITICAL)

    def tearDown(self):
        self.tmp_dir.cleanup()

    def path(self, name):
        return os.path.join(self.tmp_dir.name, name)

    def test_build_core_dataset(self):
        dataset = build_core_dataset(
            markers=str(DATA_DIR / "markers.tsv"),
            phenotypes=str(DATA_DIR / "phenotypes.tsv"),
            distances=str(DATA_DIR / "distances_full.csv"),
        )
        self.assertEqual(dataset.get_size(), 4)
        self.assertEqual(dataset.get_name(0), 'Alpha')
        self.assertEqual(dataset.get_identifier(3), 'acc4')

    def test_build_requires_input(self):
        with self.assertRaises(ValueError):
            build_core_dataset()
        with self.assertRaises(ValueError):
            build_core_dataset(phenotype_config=str(DATA_DIR / "phenotypes_config.json"))

    def test_validate(self):
        size = validate(
            markers=str(DATA_DIR / "biparental.tsv"),
            marker_format='biparental',
            distances=str(DATA_DIR / "distances_lower.tsv"),
            distance_format='lower',
            log_level='CRITICAL',
        )
        self.assertEqual(size, 4)

    def test_validate_detects_conflicts(self):
        path = self.path('swapped.csv')
        with open(path, 'w') as f:
            f.write("acc2,acc1,acc3,acc4\n0.3\n0.5,0.4\n0.8,0.7,0.2\n")
        with self.assertRaises(IdentifierConflictError):
            validate(markers=str(DATA_DIR / "markers.tsv"), distances=path, distance_format='lower',
                     log_level='CRITICAL')

    def test_validate_with_plot(self):
        plot_file = self.path('distances.svg')
        validate(phenotypes=str(DATA_DIR / "phenotypes.tsv"), plot_file=plot_file, log_level='CRITICAL')
        self.assertTrue(os.path.exists(plot_file))

    def test_validate_plot_needs_distances(self):
        with self.assertRaises(ValueError):
            validate(markers=str(DATA_DIR / "markers.tsv"), plot_file=self.path('x.svg'), log_level='CRITICAL')

    def test_gower(self):
        output_file = self.path('gower.tsv')
        size = gower(str(DATA_DIR / "phenotypes.tsv"), output_file, log_level='CRITICAL')
        self.assertEqual(size, 4)

        rows = read_rows(output_file)
        self.assertEqual(rows[0], ['Alpha', 'Beta', 'acc3', 'Delta'])
        self.assertEqual([len(row) for row in rows[1:]], [1, 2, 3, 4])

        distances = load_distance_matrix(output_file, 'lower_diag')
        # resistant true/false, colour equal, height 40.5/200, yield 2/4
        self.assertAlmostEqual(distances.get_distance(0, 1), (1.0 + 0.0 + 0.2025 + 0.5) / 4)
        # resistant false/false has no weight and height is missing
        self.assertAlmostEqual(distances.get_distance(1, 2), (1.0 + 1.0) / 2)

    def test_gower_with_config(self):
        output_file = self.path('gower.csv')
        gower(str(DATA_DIR / "phenotypes_plain.tsv"), output_file,
              config_file=str(DATA_DIR / "phenotypes_config.json"), output_format='full', log_level='CRITICAL')
        distances = load_distance_matrix(output_file, 'full')
        self.assertEqual(distances.get_size(), 4)

    def test_convert(self):
        output_file = self.path('converted.tsv')
        size = convert(str(DATA_DIR / "distances_full.csv"), output_file, 'full', 'lower', log_level='CRITICAL')
        self.assertEqual(size, 4)

        converted = load_distance_matrix(output_file, 'lower')
        original = load_distance_matrix(str(DATA_DIR / "distances_full.csv"), 'full')
        np.testing.assert_allclose(converted.get_distance_matrix(), original.get_distance_matrix())
        self.assertEqual(converted.get_headers(), original.get_headers())

    def test_numeric_identifiers_round_trip(self):
        phenotypes = self.path('numeric.tsv')
        with open(phenotypes, 'w') as f:
            f.write("ID\theight\nTYPE\tRD\nMIN\t0\nMAX\t10\n101\t1.0\n102\t2.0\n103\t4.0\n")
        gower_file = self.path('gower.tsv')
        gower(phenotypes, gower_file, log_level='CRITICAL')
        self.assertEqual(read_rows(gower_file)[0], ['101', '102', '103'])

        # all-numeric names row is only recognised when requested
        with self.assertRaises(StructuralError):
            convert(gower_file, self.path('detected.tsv'), 'lower_diag', 'full', log_level='CRITICAL')

        output_file = self.path('converted.tsv')
        size = convert(gower_file, output_file, 'lower_diag', 'full', names_header=True, log_level='CRITICAL')
        self.assertEqual(size, 3)
        converted = load_distance_matrix(output_file, 'full', names_header=True)
        self.assertEqual(converted.get_identifier(2), '103')
        self.assertAlmostEqual(converted.get_distance(0, 2), 0.3)

        size = validate(phenotypes=phenotypes, distances=gower_file, distance_format='lower_diag',
                        distance_names_header=True, log_level='CRITICAL')
        self.assertEqual(size, 3)

    def test_convert_invalid_input(self):
        with self.assertRaises(StructuralError):
            convert(str(DATA_DIR / "distances_lower.tsv"), self.path('out.tsv'), 'lower_diag', 'full',
                    log_level='CRITICAL')

    def test_setup_logging(self):
        setup_logging('DEBUG')
        package_logger = logging.getLogger("coreset_data")
        self.assertEqual(package_logger.level, logging.DEBUG)
        handlers = len(package_logger.handlers)
        setup_logging('INFO')
        self.assertEqual(len(package_logger.handlers), handlers)


if __name__ == '__main__':
    unittest.main()
