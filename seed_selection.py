"""Deterministic choices of the point orientation propagation starts from.

A strategy is any callable taking (neighbor_graph, normals) and returning a
point index. The seed only fixes which way a connected component ends up
facing; any point gives a consistent result within its component.
"""

import logging

import numpy as np

from cloud_types import as_point_array
from normal_estimation import scatter_matrix

logger = logging.getLogger(__name__)


def fixed_seed(point_id):
    """Strategy that always starts from `point_id`."""

    def strategy(neighbor_graph, normals):
        return point_id

    return strategy


def surface_variation(points, point_id, neighbor_ids):
    """Returns l0 / (l0 + l1 + l2) of the scatter matrix, or None without usable neighbours.

    0 means the neighbourhood is perfectly flat.
    """
    cov, n_used = scatter_matrix(points, point_id, neighbor_ids)
    if n_used == 0:
        return None
    eigenvalues = np.clip(np.linalg.eigvalsh(cov), 0.0, None)
    total = eigenvalues.sum()
    if total <= 0.0:
        return None
    return float(eigenvalues[0] / total)


def min_variation_seed(points):
    """Strategy that starts from the flattest point, i.e. the lowest surface variation.

    Ties go to the lowest index. Points without usable neighbours are
    skipped; if no point has any, index 0 is used.
    """
    points = as_point_array(points)

    def strategy(neighbor_graph, normals):
        best_id, best_variation = 0, None
        for point_id in range(points.shape[0]):
            variation = surface_variation(points, point_id, neighbor_graph.get(point_id, ()))
            if variation is None:
                continue
            if best_variation is None or variation < best_variation:
                best_id, best_variation = point_id, variation
        logger.debug("Lowest surface variation %s at point %d.", best_variation, best_id)
        return best_id

    return strategy


def resolve_seed(seed, neighbor_graph, normals):
    """Turns an index or a strategy into a validated point index."""
    if callable(seed):
        seed = seed(neighbor_graph, normals)
    seed = int(seed)

    n_points = len(normals)
    if not 0 <= seed < n_points:
        raise IndexError(f"Seed {seed} out of range for {n_points} points.")
    return seed
