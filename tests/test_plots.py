"""
Tests for plotting functionality.
"""

import logging

# Add src to path for imports
import sys
import tempfile
import unittest
from pathlib import Path

import numpy as np

sys.path.insert(0, str(Path(__file__).parent.parent))

from coreset_data.distances import DistanceMatrixData
from coreset_data.plots import create_distance_visualization


class TestPlots(unittest.TestCase):
    """Test the distance visualization."""

    def setUp(self):
        # Disable logging for tests
        logging.getLogger("coreset_data").setLevel(logging.CRITICAL)

        rng = np.random.default_rng(11)
        values = np.triu(rng.random((6, 6)), 1)
        self.distances = DistanceMatrixData(values + values.T, [(f"acc{i}", None) for i in range(6)])

    def test_create_visualization(self):
        with tempfile.NamedTemporaryFile(suffix='.svg') as viz_file:
            create_distance_visualization(self.distances, viz_file.name, selected=[0, 3])
            content = Path(viz_file.name).read_text()
        self.assertIn('<svg', content)
        self.assertIn('acc3', content)

    def test_without_headers(self):
        distances = DistanceMatrixData([[0.0, 1.0], [1.0, 0.0]])
        with tempfile.NamedTemporaryFile(suffix='.svg') as viz_file:
            create_distance_visualization(distances, viz_file.name)
            self.assertGreater(Path(viz_file.name).stat().st_size, 0)

    def test_single_item(self):
        distances = DistanceMatrixData([[0.0]])
        with tempfile.NamedTemporaryFile(suffix='.svg') as viz_file:
            with self.assertRaises(ValueError):
                create_distance_visualization(distances, viz_file.name)


if __name__ == '__main__':
    unittest.main()
