"""k-nearest-neighbour search over a static point cloud.

The index is a scipy k-d tree built over a snapshot of the point positions.
Queries never return the query point itself, so the result can be used
directly as a neighbour list for normal estimation.
"""

import logging
import math

import numpy as np
from scipy.spatial import cKDTree

from cloud_types import NeighborGraph, as_point_array
from normal_diagnostics import DiagnosticKind, report

logger = logging.getLogger(__name__)

DEFAULT_MAX_LEAF_SIZE = 10


class NeighborhoodIndex:
    """A k-d tree together with the point snapshot it was built from."""

    def __init__(self, points, max_leaf_size=DEFAULT_MAX_LEAF_SIZE):
        if max_leaf_size < 1:
            raise ValueError(f"max_leaf_size must be positive, got {max_leaf_size}.")

        # Copy so later edits to the caller's array cannot desync the tree.
        self.points = np.array(as_point_array(points), copy=True)
        self.points.setflags(write=False)
        self.max_leaf_size = int(max_leaf_size)

        # cKDTree balances the tree by splitting on the median.
        self._tree = cKDTree(self.points, leafsize=self.max_leaf_size, balanced_tree=True)

    def __len__(self):
        return self.points.shape[0]

    def search(self, queries, n_candidates, max_distance=math.inf):
        """Raw search: (distances, indices) arrays of shape (len(queries), n_candidates).

        Missing results are reported by the tree as index len(self) and
        infinite distance.
        """
        # The tree excludes points at exactly the bound, so widen it by one ulp.
        bound = max_distance
        if math.isfinite(max_distance):
            bound = float(np.nextafter(max_distance, math.inf))

        distances, indices = self._tree.query(
            queries, k=n_candidates, distance_upper_bound=bound
        )

        # A single candidate comes back squeezed; keep the 2D shape.
        distances = np.asarray(distances, dtype=np.float64).reshape(-1, n_candidates)
        indices = np.asarray(indices).reshape(-1, n_candidates)
        return distances, indices


def build_spatial_index(points, max_leaf_size=DEFAULT_MAX_LEAF_SIZE):
    """Builds a NeighborhoodIndex, raising DimensionMismatch for non N x 3 input."""
    index = NeighborhoodIndex(points, max_leaf_size=max_leaf_size)
    logger.debug(
        "Built k-d tree over %d points (max leaf size %d).", len(index), index.max_leaf_size
    )
    return index


def _check_query_args(k, max_distance):
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}.")
    if max_distance < 0:
        raise ValueError(f"max_distance must be non-negative, got {max_distance}.")


def _neighbors_from_row(point_id, distances, indices, n_points, k, diagnostics):
    """Turns one row of raw search results into a neighbour list without `point_id`."""
    neighbors = []
    coincident = []
    for distance, neighbor_id in zip(distances, indices):
        neighbor_id = int(neighbor_id)
        # Padding for "not enough points within max_distance".
        if neighbor_id >= n_points:
            break
        if neighbor_id == point_id:
            continue
        if distance == 0.0:
            coincident.append(neighbor_id)
        neighbors.append(neighbor_id)

    if coincident:
        report(
            diagnostics,
            DiagnosticKind.COINCIDENT_POINT,
            point_id,
            f"coincides with point(s) {coincident}",
        )
    return neighbors[:k]


def query_k_nearest(index, point_id, k, max_distance=math.inf, diagnostics=None):
    """Returns up to `k` neighbour ids of `point_id`, nearest first.

    Fewer than `k` ids are returned when fewer points lie within
    `max_distance` (inclusive); that is a valid result, not an error.
    """
    _check_query_args(k, max_distance)
    n_points = len(index)
    if not 0 <= point_id < n_points:
        raise IndexError(f"Point id {point_id} out of range for {n_points} points.")

    # Ask for one extra candidate since the point itself is normally the first hit.
    n_candidates = min(k + 1, n_points)
    distances, indices = index.search(
        index.points[point_id], n_candidates, max_distance=max_distance
    )
    return _neighbors_from_row(
        point_id, distances[0], indices[0], n_points, k, diagnostics
    )


def build_knn_graph(
    points,
    k,
    max_leaf_size=DEFAULT_MAX_LEAF_SIZE,
    max_distance=math.inf,
    diagnostics=None,
) -> NeighborGraph:
    """Builds the k-nearest-neighbour graph of a whole cloud.

    Every point gets an entry, possibly empty when nothing lies within
    `max_distance`. The graph is generally not symmetric.
    """
    _check_query_args(k, max_distance)
    points = as_point_array(points)
    n_points = points.shape[0]
    if n_points == 0:
        return {}
    index = build_spatial_index(points, max_leaf_size=max_leaf_size)

    # One batched query for all points, then per-row self removal.
    n_candidates = min(k + 1, n_points)
    distances, indices = index.search(index.points, n_candidates, max_distance=max_distance)

    graph = {}
    for point_id in range(n_points):
        graph[point_id] = _neighbors_from_row(
            point_id, distances[point_id], indices[point_id], n_points, k, diagnostics
        )

    sizes = [len(neighbors) for neighbors in graph.values()]
    logger.info(
        "Computed %d-NN graph for %d points (min %d, max %d neighbours).",
        k,
        n_points,
        min(sizes),
        max(sizes),
    )
    return graph
