"""Consistent orientation of estimated normals.

Plane fitting leaves the sign of each normal undetermined. Starting from a
seed point, a breadth-first traversal of the neighbour graph flips every
newly reached normal that points against the normal it was reached from.

Only the seed's connected component is oriented. Points in other
components keep the sign the estimator gave them.
"""

import collections
import logging

import numpy as np

from cloud_types import NeighborGraph, check_neighbor_graph
from face_adjacency import build_face_adjacency
from normal_diagnostics import DiagnosticKind, report
from normal_errors import DimensionMismatch, InvalidTopology
from seed_selection import resolve_seed

logger = logging.getLogger(__name__)

# Per-point traversal states.
UNVISITED = 0
QUEUED = 1
VISITED = 2


def traverse(neighbor_graph: NeighborGraph, n_points, seed, diagnostics=None):
    """Yields the (parent, child) edges of a breadth-first traversal from `seed`.

    Each point is yielded as a child at most once. Points that are dequeued
    but have no entry in `neighbor_graph` are reported and skipped. A
    neighbour id outside [0, n_points) raises InvalidTopology.
    """
    state = np.full(n_points, UNVISITED, dtype=np.int8)
    state[seed] = QUEUED
    queue = collections.deque([seed])

    while queue:
        current = queue.popleft()
        state[current] = VISITED

        neighbor_ids = neighbor_graph.get(current)
        if neighbor_ids is None:
            report(
                diagnostics,
                DiagnosticKind.MISSING_NEIGHBOR_ENTRY,
                current,
                "no neighbour entry, nothing to propagate through",
            )
            continue

        for neighbor_id in neighbor_ids:
            if not 0 <= neighbor_id < n_points:
                raise InvalidTopology(
                    f"Point {current} lists neighbour {neighbor_id}, "
                    f"valid range is [0, {n_points})."
                )
            if state[neighbor_id] != UNVISITED:
                continue
            state[neighbor_id] = QUEUED
            queue.append(neighbor_id)
            yield current, neighbor_id


def orient_normals(
    neighbor_graph: NeighborGraph, normals, seed=0, diagnostics=None
) -> int:
    """Flips normals in place so they agree with the seed within its component.

    Args:
      neighbor_graph: Point index -> neighbour indices.
      normals: (N, 3) float array, modified in place.
      seed: Start index or a strategy from seed_selection.
      diagnostics: Optional DiagnosticLog.

    Returns:
      The number of normals that were flipped.
    """
    if not isinstance(normals, np.ndarray) or normals.ndim != 2 or normals.shape[1] != 3:
        raise DimensionMismatch(
            f"Expected an (N, 3) normal array, got {getattr(normals, 'shape', type(normals))}."
        )
    n_points = normals.shape[0]
    if n_points == 0:
        return 0

    # Reject bad ids before any normal is touched.
    check_neighbor_graph(neighbor_graph, n_points)
    seed = resolve_seed(seed, neighbor_graph, normals)

    flips = 0
    reached = 1
    for parent, child in traverse(neighbor_graph, n_points, seed, diagnostics=diagnostics):
        reached += 1
        # The parent's sign is final once it has been reached.
        if np.dot(normals[parent], normals[child]) < 0.0:
            normals[child] *= -1.0
            flips += 1

    logger.info(
        "Oriented %d of %d normals from seed %d (%d flipped).", reached, n_points, seed, flips
    )
    return flips


def orient_normals_from_faces(faces, normals, seed=0, diagnostics=None):
    """Orients normals along the edges of a polygon mesh."""
    neighbor_graph = build_face_adjacency(faces, n_points=len(normals))
    return orient_normals(neighbor_graph, normals, seed=seed, diagnostics=diagnostics)
