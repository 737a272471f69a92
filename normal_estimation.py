"""Per-point normal estimation by local plane fitting.

For a point p with neighbours q_j the scatter matrix

    C = sum_j (q_j - p)(q_j - p)^T

is decomposed and the eigenvector of its smallest eigenvalue is taken as
the normal. The matrix is built around p itself rather than around the
neighbourhood centroid, so results stay comparable with earlier runs.
The sign of each normal is arbitrary; see normal_orientation.
"""

import logging

import numpy as np

from cloud_types import ZERO_NORMAL, NeighborGraph, as_point_array, empty_normal_field
from normal_diagnostics import DiagnosticKind, report
from normal_errors import InvalidTopology

logger = logging.getLogger(__name__)

# Relative gap between the two smallest eigenvalues below which the plane
# normal is considered ill-defined.
LOW_CONFIDENCE_RTOL = 1e-10


def scatter_matrix(points, point_id, neighbor_ids, diagnostics=None):
    """Returns (C, n_used): the 3x3 scatter matrix around `point_id` and the neighbours used.

    Raises InvalidTopology for a neighbour id outside the cloud.
    """
    cov = np.zeros((3, 3), dtype=np.float64)
    n_used = 0
    n_points = points.shape[0]
    for neighbor_id in neighbor_ids:
        if not 0 <= neighbor_id < n_points:
            raise InvalidTopology(
                f"Point {point_id} lists neighbour {neighbor_id}, "
                f"valid range is [0, {n_points})."
            )
        # A point listed as its own neighbour adds nothing but is worth flagging.
        if neighbor_id == point_id:
            report(
                diagnostics,
                DiagnosticKind.SELF_REFERENCE,
                point_id,
                "listed as its own neighbour, entry skipped",
            )
            continue

        to_neighbor = points[neighbor_id] - points[point_id]
        cov += np.outer(to_neighbor, to_neighbor)
        n_used += 1
    return cov, n_used


def smallest_eigenpair(cov):
    """Returns (eigenvalues ascending, eigenvector of the first minimal eigenvalue)."""
    eigenvalues, eigenvectors = np.linalg.eigh(cov)
    smallest_id = int(np.argmin(eigenvalues))
    return eigenvalues, eigenvectors[:, smallest_id]


def is_low_confidence(eigenvalues):
    """True if the smallest eigenvalue is not separated from the middle one."""
    largest = eigenvalues[-1]
    if largest <= 0.0:
        return True
    return (eigenvalues[1] - eigenvalues[0]) <= LOW_CONFIDENCE_RTOL * largest


def estimate_point_normal(points, point_id, neighbor_ids, diagnostics=None):
    """Estimates the unit normal of one point from its neighbour ids.

    Returns a copy of ZERO_NORMAL when no usable neighbour is given. When
    the neighbours are collinear with the point (or coincide with it) a
    unit normal is still returned but flagged as low confidence.
    """
    points = as_point_array(points)
    if not 0 <= point_id < points.shape[0]:
        raise IndexError(f"Point id {point_id} out of range for {points.shape[0]} points.")
    return _estimate_normal(points, point_id, neighbor_ids, diagnostics)


def _estimate_normal(points, point_id, neighbor_ids, diagnostics):
    cov, n_used = scatter_matrix(points, point_id, neighbor_ids, diagnostics=diagnostics)

    if n_used == 0:
        report(
            diagnostics,
            DiagnosticKind.DEGENERATE_NEIGHBORHOOD,
            point_id,
            "no neighbours, returning zero normal",
        )
        return ZERO_NORMAL.copy()

    eigenvalues, normal = smallest_eigenpair(cov)
    if is_low_confidence(eigenvalues):
        report(
            diagnostics,
            DiagnosticKind.LOW_CONFIDENCE,
            point_id,
            f"plane not well defined, eigenvalues {eigenvalues.tolist()}",
        )

    # eigh already returns unit vectors; renormalise against round-off.
    return normal / np.linalg.norm(normal)


def estimate_cloud_normals(
    points, neighbor_graph: NeighborGraph, diagnostics=None
) -> np.ndarray:
    """Estimates one normal per point, in index order.

    Points without an entry in `neighbor_graph` are treated as having no
    neighbours and get the zero sentinel.
    """
    points = as_point_array(points)
    n_points = points.shape[0]
    normals = empty_normal_field(n_points)

    for point_id in range(n_points):
        neighbor_ids = neighbor_graph.get(point_id, ())
        normals[point_id] = _estimate_normal(points, point_id, neighbor_ids, diagnostics)

    logger.info("Estimated normals for %d points.", n_points)
    return normals
