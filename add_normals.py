#!/usr/bin/env python3
import numpy as np
import open3d as o3d

from normals_pipeline import recalc_normals


def add_normals(in_path: str, out_path: str, k: int = 10) -> int:
    # Load point cloud from PLY
    pcd = o3d.io.read_point_cloud(in_path)
    points = np.asarray(pcd.points, dtype=np.float64)

    # Estimate normals from k-NN neighborhood and orient them coherently
    normals, flip_count, _ = recalc_normals(points, k)

    # Save back to PLY (with normals)
    pcd.normals = o3d.utility.Vector3dVector(normals)
    o3d.io.write_point_cloud(out_path, pcd, write_ascii=False)
    return flip_count

if __name__ == "__main__":
    add_normals("cloud.ply", "cloud_with_normals.ply")
