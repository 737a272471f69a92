"""Shared types and small helpers for point clouds, neighbour graphs and normals."""

from typing import Dict, List

import numpy as np

from normal_errors import DimensionMismatch, InvalidTopology

# Point index -> neighbour indices. A point never lists itself; a missing
# key means the point has no known neighbours.
NeighborGraph = Dict[int, List[int]]

# Normal returned for points whose neighbourhood does not define a plane.
ZERO_NORMAL = np.zeros(3, dtype=np.float64)


def as_point_array(points) -> np.ndarray:
    """Returns `points` as a float64 (N, 3) array, raising DimensionMismatch otherwise."""
    try:
        array = np.asarray(points, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        # Ragged rows or non-numeric entries.
        raise DimensionMismatch(f"Points are not a real-valued matrix: {exc}") from exc

    # An empty input is still required to carry 3 columns.
    if array.ndim == 1 and array.size == 0:
        return array.reshape(0, 3)
    if array.ndim != 2 or array.shape[1] != 3:
        raise DimensionMismatch(
            f"Expected an N x 3 point matrix, got shape {array.shape}."
        )
    if not np.all(np.isfinite(array)):
        raise DimensionMismatch("Point coordinates must be finite.")
    return array


def is_sentinel(normal, atol=0.0) -> bool:
    """True if `normal` is the zero-vector sentinel of a degenerate neighbourhood."""
    return bool(np.allclose(normal, ZERO_NORMAL, rtol=0.0, atol=atol))


def empty_normal_field(n_points):
    """Allocates an (n_points, 3) normal field filled with the zero sentinel."""
    return np.zeros((n_points, 3), dtype=np.float64)


def check_neighbor_graph(neighbor_graph: NeighborGraph, n_points):
    """Raises InvalidTopology if any key or neighbour id lies outside [0, n_points)."""
    for point_id, neighbor_ids in neighbor_graph.items():
        for vertex_id in (point_id, *neighbor_ids):
            if not 0 <= vertex_id < n_points:
                raise InvalidTopology(
                    f"Neighbour graph entry {point_id} references point {vertex_id}, "
                    f"valid range is [0, {n_points})."
                )
