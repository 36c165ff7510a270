"""
Tests for writing data back to text files.
"""

# Add src to path for imports
import os
import sys
import tempfile
import unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from coreset_data.data_loading import load_distance_matrix, load_genotype_data, load_phenotype_data, read_rows
from coreset_data.distances import DistanceMatrixData
from coreset_data.exceptions import StructuralError
from coreset_data.genotypes import BiAllelicGenotypeData, DefaultGenotypeData, FrequencyGenotypeData
from coreset_data.phenotypes import DataType, Feature, PhenotypeData, ScaleType
from coreset_data.rows import SELECTED_HEADER
from coreset_data.writers import write_distance_matrix, write_table_data

DATA_DIR = Path(__file__).parent / "data"


class TestWriters(unittest.TestCase):
    """Test the table and matrix writers."""

    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.distances = DistanceMatrixData(
            [[0.0, 0.3, 0.5], [0.3, 0.0, 0.4], [0.5, 0.4, 0.0]],
            [('a', None), ('b', 'Bob'), ('c', None)]
        )

    def tearDown(self):
        self.tmp_dir.cleanup()

    def path(self, name):
        return os.path.join(self.tmp_dir.name, name)

    def test_frequency_round_trip(self):
        data = load_genotype_data(str(DATA_DIR / "frequencies.csv"), 'frequency')
        path = self.path('frequencies.csv')
        write_table_data(data, path, include_selected=False)

        reloaded = load_genotype_data(path, 'frequency')
        self.assertEqual(reloaded.get_headers(), data.get_headers())
        self.assertEqual(reloaded.get_allele_names(0), ['a', 'b', 'c'])
        for item_id in range(data.get_size()):
            for marker in range(data.get_number_of_markers()):
                self.assertEqual(reloaded.get_allele_frequencies(item_id, marker),
                                 data.get_allele_frequencies(item_id, marker))

    def test_default_round_trip(self):
        data = load_genotype_data(str(DATA_DIR / "markers.tsv"))
        path = self.path('markers.tsv')
        write_table_data(data, path, include_selected=False)

        reloaded = load_genotype_data(path)
        self.assertEqual(reloaded.get_marker_names(), data.get_marker_names())
        self.assertEqual(reloaded.get_observed_alleles(3, 0), ['A', None])

    def test_round_trip_without_selection(self):
        datasets = {
            'default': DefaultGenotypeData([[['a', 'b']], [['a', 'a']]], [('i1', None), ('i2', 'Two')], ['M1']),
            'frequency': FrequencyGenotypeData([[[0.5, 0.5]], [[1.0, 0.0]]], [('i1', None), ('i2', 'Two')],
                                               ['M1'], [['x', 'y']]),
            'biparental': BiAllelicGenotypeData([[0], [2]], [('i1', None), ('i2', 'Two')], ['M1']),
        }
        for data_format, data in datasets.items():
            path = self.path(f'{data_format}.tsv')
            write_table_data(data, path)
            self.assertNotIn(SELECTED_HEADER, read_rows(path)[0])

            reloaded = load_genotype_data(path, data_format)
            self.assertEqual(reloaded.get_marker_names(), ['M1'])
            self.assertEqual(reloaded.get_headers(), data.get_headers())
            for item_id in range(data.get_size()):
                self.assertEqual(reloaded.get_allele_frequencies(item_id, 0),
                                 data.get_allele_frequencies(item_id, 0))

    def test_marked_selection_not_read_as_marker(self):
        data = DefaultGenotypeData([[['a', 'b']], [['a', 'a']]], [('i1', None), ('i2', None)], ['M1'])
        path = self.path('marked.tsv')
        write_table_data(data, path, selected=[])
        self.assertEqual(read_rows(path)[0], ['ID', 'NAME', 'SELECTED', 'M1', 'M1'])
        with self.assertRaises(StructuralError):
            load_genotype_data(path)

    def test_selection_column(self):
        data = BiAllelicGenotypeData([[0, 1], [2, None], [1, 1]], [('i1', None), ('i2', None), ('i3', None)],
                                     ['s1', 's2'])
        path = self.path('scores.tsv')
        write_table_data(data, path, selected={0, 2}, include_index=True)

        rows = read_rows(path)
        self.assertEqual(rows[0], ['X', 'ID', 'NAME', 'SELECTED', 's1', 's2'])
        self.assertEqual(rows[1], ['0', 'i1', None, 'True', '0', '1'])
        self.assertEqual(rows[2], ['1', 'i2', None, 'False', '2'])
        self.assertEqual(len(rows), 4)

    def test_only_selected(self):
        data = BiAllelicGenotypeData([[0], [2], [1]], [('i1', None), ('i2', None), ('i3', None)], ['s1'])
        path = self.path('scores.csv')
        write_table_data(data, path, selected=[1], include_unselected=False)

        rows = read_rows(path)
        self.assertEqual(rows, [['ID', 'NAME', 's1'], ['i2', None, '2']])

    def test_nothing_included(self):
        data = FrequencyGenotypeData([[[1.0]]])
        with self.assertRaises(ValueError):
            write_table_data(data, self.path('x.tsv'), include_selected=False, include_unselected=False)

    def test_refuses_overwrite(self):
        path = self.path('existing.tsv')
        with open(path, 'w') as f:
            f.write('keep')
        with self.assertRaises(FileExistsError):
            write_distance_matrix(self.distances, path)
        with open(path) as f:
            self.assertEqual(f.read(), 'keep')

    def test_phenotype_round_trip(self):
        features = [
            Feature('flag', ScaleType.NOMINAL, DataType.BOOLEAN),
            Feature('height', ScaleType.RATIO, DataType.DOUBLE, minimum=0.0, maximum=10.0),
            Feature('score', ScaleType.ORDINAL, DataType.INTEGER),
        ]
        data = PhenotypeData(features, [[True, 1.5, 2], [False, None, 4]], [('a', 'Alice'), ('b', None)])
        path = self.path('nested/traits.tsv')
        write_table_data(data, path, include_selected=False)

        reloaded = load_phenotype_data(path)
        self.assertEqual(reloaded.get_values(), data.get_values())
        self.assertEqual(reloaded.get_features(), [
            Feature('flag', ScaleType.NOMINAL, DataType.BOOLEAN),
            Feature('height', ScaleType.RATIO, DataType.DOUBLE, minimum=0.0, maximum=10.0),
            Feature('score', ScaleType.ORDINAL, DataType.INTEGER, minimum=2.0, maximum=4.0),
        ])
        self.assertEqual(reloaded.get_name(0), 'Alice')

    def test_distance_round_trip(self):
        for matrix_format in ('full', 'lower', 'lower_diag'):
            path = self.path(f'distances_{matrix_format}.tsv')
            write_distance_matrix(self.distances, path, matrix_format)
            reloaded = load_distance_matrix(path, matrix_format)
            np.testing.assert_allclose(reloaded.get_distance_matrix(), self.distances.get_distance_matrix())
            self.assertEqual(reloaded.get_labels(), ['a', 'Bob', 'c'])

    def test_distance_subset(self):
        path = self.path('subset.csv')
        write_distance_matrix(self.distances, path, 'lower', selected=[0, 2], include_unselected=False)
        self.assertEqual(read_rows(path), [['a', 'c'], ['0.5']])

    def test_distance_without_headers(self):
        path = self.path('plain.tsv')
        write_distance_matrix(DistanceMatrixData([[0.0, 1.0], [1.0, 0.0]]), path, 'lower_diag')
        self.assertEqual(read_rows(path), [['0.0'], ['1.0', '0.0']])


if __name__ == '__main__':
    unittest.main()
