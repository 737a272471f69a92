"""Neighbour graphs taken from mesh connectivity instead of spatial search."""

import logging

import numpy as np

from cloud_types import NeighborGraph
from normal_errors import InvalidTopology

logger = logging.getLogger(__name__)


def _face_loops(faces):
    """Yields each face as a tuple of ints, accepting arrays or ragged lists."""
    if isinstance(faces, np.ndarray):
        if faces.size == 0:
            return
        if faces.ndim != 2:
            raise InvalidTopology(f"Face array must be 2D, got shape {faces.shape}.")
        if not np.issubdtype(faces.dtype, np.integer):
            raise InvalidTopology(f"Face indices must be integers, got {faces.dtype}.")
    for face in faces:
        yield tuple(int(vertex_id) for vertex_id in face)


def build_face_adjacency(faces, n_points=None) -> NeighborGraph:
    """Returns the 1-ring edge adjacency of a polygon mesh.

    Each vertex is linked to its predecessor and successor in every face
    loop it belongs to, wrapping around at the ends of the loop. Neighbour
    lists are deduplicated and sorted, so the graph is symmetric.

    Args:
      faces: Sequence of vertex loops, e.g. an (M, 3) triangle array.
      n_points: Number of points in the cloud. When given, indices must be
        smaller than it.

    Raises:
      InvalidTopology: A face has fewer than two vertices or references a
        negative or out-of-range vertex.
    """
    neighbor_sets = {}
    n_faces = 0
    for face_id, loop in enumerate(_face_loops(faces)):
        n_faces += 1
        size = len(loop)
        if size < 2:
            raise InvalidTopology(f"Face {face_id} has {size} vertices, need at least 2.")

        # Validate the whole loop before touching the graph.
        for vertex_id in loop:
            if vertex_id < 0:
                raise InvalidTopology(
                    f"Face {face_id} references negative vertex {vertex_id}."
                )
            if n_points is not None and vertex_id >= n_points:
                raise InvalidTopology(
                    f"Face {face_id} references vertex {vertex_id}, "
                    f"but the cloud has only {n_points} points."
                )

        for position, vertex_id in enumerate(loop):
            # Incoming edge start and outgoing edge end.
            previous_id = loop[position - 1]
            next_id = loop[(position + 1) % size]
            neighbors = neighbor_sets.setdefault(vertex_id, set())
            for neighbor_id in (previous_id, next_id):
                # Degenerate faces may repeat a vertex.
                if neighbor_id != vertex_id:
                    neighbors.add(neighbor_id)

    logger.info(
        "Built face adjacency for %d vertices from %d faces.", len(neighbor_sets), n_faces
    )
    return {vertex_id: sorted(neighbors) for vertex_id, neighbors in neighbor_sets.items()}
