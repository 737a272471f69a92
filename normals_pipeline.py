#!/usr/bin/env python3
"""Mesh / point cloud → oriented normals pipeline.

Steps:
  1) Load a mesh or point cloud with Open3D.
  2) Build a neighbour graph, either k-NN or from the mesh faces.
  3) Estimate per-point normals by local plane fitting.
  4) Orient the normals consistently and save an oriented PLY.

Requirements:
  - `pip install numpy scipy open3d`.
"""

import logging
import math
import pathlib
import sys

import numpy as np

import pipeline_config
from cloud_types import as_point_array
from face_adjacency import build_face_adjacency
from neighborhood_index import DEFAULT_MAX_LEAF_SIZE, build_knn_graph
from normal_diagnostics import DiagnosticLog
from normal_errors import NormalEstimationError
from normal_estimation import estimate_cloud_normals
from normal_orientation import orient_normals
from seed_selection import fixed_seed, min_variation_seed


def load_geometry(path):
    """Reads a mesh or point cloud; returns (points, faces), faces is None for clouds."""
    import open3d as o3d  # Imported lazily.

    path = str(path)

    # Try a mesh first so that face connectivity is kept.
    logging.info("Loading geometry from %s", path)
    mesh = o3d.io.read_triangle_mesh(path)
    if len(mesh.vertices) > 0:
        points = np.asarray(mesh.vertices, dtype=np.float64)
        faces = np.asarray(mesh.triangles, dtype=np.int64)
        if faces.shape[0] == 0:
            faces = None
        return points, faces

    # Fall back to a plain point cloud.
    pcd = o3d.io.read_point_cloud(path)
    return np.asarray(pcd.points, dtype=np.float64), None


def save_oriented_point_cloud(points, normals, ply_path):
    """Saves points with normals to PLY using Open3D."""
    import open3d as o3d  # Imported lazily.

    # Create Open3D point cloud and assign points & normals.
    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(np.asarray(points, dtype=np.float64))
    pcd.normals = o3d.utility.Vector3dVector(np.asarray(normals, dtype=np.float64))

    # Write the point cloud as a PLY file.
    ply_path = pathlib.Path(ply_path)
    logging.info("Writing oriented point cloud to %s", ply_path)
    success = o3d.io.write_point_cloud(str(ply_path), pcd, write_ascii=False)
    if not success:
        raise RuntimeError(f"Failed to write point cloud to {ply_path}")


def make_seed_strategy(name, seed, points):
    """Maps a --seed_strategy name to a seed_selection strategy."""
    if name == "fixed":
        return fixed_seed(seed)
    if name == "min_variation":
        return min_variation_seed(points)
    raise ValueError(f"Unknown seed strategy: {name!r}")


def recalc_normals(
    points,
    k,
    faces=None,
    max_distance=math.inf,
    max_leaf_size=DEFAULT_MAX_LEAF_SIZE,
    seed=0,
    orient=True,
    diagnostics=None,
):
    """Re-estimates the normals of a cloud from its k nearest neighbours or its faces.

    Returns (normals, flip_count, diagnostics). flip_count is 0 when
    `orient` is False.
    """
    points = as_point_array(points)
    if diagnostics is None:
        diagnostics = DiagnosticLog()

    # Neighbours either from the mesh or from the k-d tree.
    if faces is not None:
        logging.info("Building neighbour graph from %d faces...", len(faces))
        neighbor_graph = build_face_adjacency(faces, n_points=points.shape[0])
    else:
        logging.info("Building neighbour graph with k-NN (k=%d)...", k)
        neighbor_graph = build_knn_graph(
            points,
            k,
            max_leaf_size=max_leaf_size,
            max_distance=max_distance,
            diagnostics=diagnostics,
        )

    # Estimate normals for points in the cloud.
    normals = estimate_cloud_normals(points, neighbor_graph, diagnostics=diagnostics)

    # Flip normals consistently.
    flip_count = 0
    if orient and points.shape[0] > 0:
        flip_count = orient_normals(
            neighbor_graph, normals, seed=seed, diagnostics=diagnostics
        )

    return normals, flip_count, diagnostics


def parse_args(argv):
    """Parses command-line arguments for the pipeline."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Mesh / point cloud → oriented normals pipeline"
    )

    # Add common arguments from shared configuration
    pipeline_config.add_common_args(parser)

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for the pipeline script; returns the exit status."""
    # Parse command-line arguments.
    args = parse_args(argv if argv is not None else sys.argv[1:])

    # Configure logging.
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    # Prepare output paths.
    output_dir = pathlib.Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    oriented_points_path = output_dir / f"{args.output_name}_normals.ply"

    # Step 1: Load the geometry.
    logging.info("=== Step 1: Load geometry ===")
    try:
        points, faces = load_geometry(args.input)
    except (RuntimeError, OSError, ImportError) as exc:
        logging.error("Could not load %s: %s", args.input, exc)
        return 1
    if points.shape[0] == 0:
        logging.error("Could not read any vertices from %s", args.input)
        return 1
    logging.info("Loaded %d points.", points.shape[0])

    if args.use_faces and faces is None:
        logging.warning("No faces in %s, falling back to k-NN neighbours.", args.input)

    # Step 2: Neighbours, normals and orientation.
    logging.info("=== Step 2: Estimate and orient normals ===")
    try:
        normals, flip_count, diagnostics = recalc_normals(
            points,
            args.k,
            faces=faces if args.use_faces else None,
            max_distance=args.max_distance,
            max_leaf_size=args.max_leaf_size,
            seed=make_seed_strategy(args.seed_strategy, args.seed, points),
            orient=not args.no_orient,
        )
    except (NormalEstimationError, ValueError, IndexError) as exc:
        logging.error("Normal estimation failed: %s", exc)
        return 1

    logging.info("Flipped %d normals.", flip_count)
    if len(diagnostics):
        logging.info("Diagnostics: %s", diagnostics.summary())

    # Step 3: Save the oriented point cloud.
    logging.info("=== Step 3: Save oriented PLY ===")
    try:
        save_oriented_point_cloud(points, normals, oriented_points_path)
    except (RuntimeError, OSError, ImportError) as exc:
        logging.error("Could not save %s: %s", oriented_points_path, exc)
        return 1

    logging.info("Pipeline complete.")
    logging.info("Final oriented point cloud: %s", oriented_points_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
