"""
Visualization utilities for coreset data.
"""

import logging
from typing import Iterable, Optional

import matplotlib
import numpy as np

matplotlib.use('SVG')  # Use SVG backend
import matplotlib.pyplot as plt
from scipy.cluster import hierarchy

from .distances import DistanceMatrixData

# Configure matplotlib for SVG text rendering
plt.rcParams['svg.fonttype'] = 'none'  # Ensure text is saved as text, not paths

logger = logging.getLogger(__name__)


def create_distance_visualization(
    distances: DistanceMatrixData,
    output_file: str,
    selected: Optional[Iterable[int]] = None,
):
    """Create SVG visualization with a clustering tree and the distance heatmap to the right."""
    n = distances.get_size()
    if n < 2:
        raise ValueError("At least two items are needed to visualize a distance matrix")

    labels = distances.get_labels()
    selected = set(selected or ())
    logger.info(f"   Creating visualization with {n} items")

    # Perform hierarchical clustering
    linkage_matrix = hierarchy.linkage(distances.get_condensed_distances(), method='average')

    # Minimum 8 inches, 0.3 inches per leaf
    fig_height = max(8, n * 0.3)
    fig = plt.figure(figsize=(20, fig_height))
    gs = fig.add_gridspec(1, 2, width_ratios=[0.4, 0.6], wspace=0.3)

    ax_tree = fig.add_subplot(gs[0])
    dendro_data = hierarchy.dendrogram(
        linkage_matrix,
        labels=labels,
        ax=ax_tree,
        orientation='left',
        leaf_font_size=8,
        distance_sort='descending',
        link_color_func=lambda x: 'black'
    )
    ax_tree.set_title('Hierarchical Clustering Tree', fontsize=14, fontweight='bold')
    ax_tree.set_xlabel('Distance', fontsize=12)

    # Leaves are drawn at y = 5, 15, 25, ... in dendrogram order
    leaf_order = dendro_data['leaves']
    for position, item_id in enumerate(leaf_order):
        if item_id in selected:
            ax_tree.axhline(y=5 + position * 10, color='red', alpha=0.3, linewidth=2)
    for label, item_id in zip(ax_tree.get_yticklabels(), leaf_order):
        if item_id in selected:
            label.set_fontweight('bold')

    # Heatmap rows follow the leaves from bottom to top
    ax_heatmap = fig.add_subplot(gs[1])
    matrix = distances.get_distance_matrix()
    ordered = matrix[np.ix_(leaf_order, leaf_order)]
    image = ax_heatmap.imshow(ordered, cmap='viridis', aspect='auto', origin='lower')
    ax_heatmap.set_xticks(range(n))
    ax_heatmap.set_xticklabels([labels[i] for i in leaf_order], rotation=90, fontsize=8)
    ax_heatmap.set_yticks([])
    ax_heatmap.set_title(distances.dataset_name, fontsize=14, fontweight='bold')
    fig.colorbar(image, ax=ax_heatmap, label='Distance')

    plt.savefig(output_file, format='svg', bbox_inches='tight', metadata={'Creator': 'coreset-data'})
    plt.close()

    logger.info(f"   Visualization saved to: {output_file}")
