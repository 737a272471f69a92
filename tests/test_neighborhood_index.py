import math

import numpy as np
import pytest

from neighborhood_index import build_knn_graph, build_spatial_index, query_k_nearest
from normal_diagnostics import DiagnosticKind, DiagnosticLog
from normal_errors import DimensionMismatch


@pytest.fixture
def line_points():
    return np.array(
        [[0, 0, 0], [1, 0, 0], [2, 0, 0], [3, 0, 0], [10, 0, 0]], dtype=np.float64
    )


def test_build_rejects_2d_points():
    with pytest.raises(DimensionMismatch):
        build_spatial_index(np.zeros((10, 2)))


def test_build_rejects_bad_leaf_size(line_points):
    with pytest.raises(ValueError):
        build_spatial_index(line_points, max_leaf_size=0)


def test_index_keeps_a_snapshot(line_points):
    index = build_spatial_index(line_points, max_leaf_size=2)
    line_points[1] = [100, 100, 100]
    assert query_k_nearest(index, 0, 1) == [1]


def test_query_is_nearest_first(line_points):
    index = build_spatial_index(line_points)
    assert query_k_nearest(index, 0, 3) == [1, 2, 3]
    assert query_k_nearest(index, 4, 2) == [3, 2]


def test_query_never_returns_itself(grid_points):
    index = build_spatial_index(grid_points)
    for point_id in range(len(grid_points)):
        for k in (1, 4, 8, 30):
            neighbors = query_k_nearest(index, point_id, k)
            assert point_id not in neighbors
            assert len(neighbors) == min(k, len(grid_points) - 1)


def test_max_distance_is_inclusive_and_short_results_are_valid(line_points):
    index = build_spatial_index(line_points)
    assert query_k_nearest(index, 0, 4, max_distance=2.0) == [1, 2]
    assert query_k_nearest(index, 4, 3, max_distance=1.0) == []


def test_single_point_has_no_neighbors():
    index = build_spatial_index([[1.0, 2.0, 3.0]])
    assert query_k_nearest(index, 0, 5) == []


def test_repeated_queries_are_stable(grid_points):
    index = build_spatial_index(grid_points)
    # The centre of the grid has four neighbours at distance 1 and four at sqrt(2).
    first = query_k_nearest(index, 12, 6)
    for _ in range(5):
        assert query_k_nearest(index, 12, 6) == first
    assert set(first[:4]) == {7, 11, 13, 17}


def test_coincident_point_is_reported():
    points = np.array([[0, 0, 0], [0, 0, 0], [1, 0, 0], [0, 1, 0]], dtype=np.float64)
    index = build_spatial_index(points)
    diagnostics = DiagnosticLog()

    neighbors = query_k_nearest(index, 0, 2, diagnostics=diagnostics)

    assert 0 not in neighbors
    assert neighbors[0] == 1
    assert diagnostics.point_ids(DiagnosticKind.COINCIDENT_POINT) == [0]


@pytest.mark.parametrize("point_id", [-1, 5])
def test_query_rejects_unknown_point(line_points, point_id):
    index = build_spatial_index(line_points)
    with pytest.raises(IndexError):
        query_k_nearest(index, point_id, 2)


def test_query_rejects_bad_parameters(line_points):
    index = build_spatial_index(line_points)
    with pytest.raises(ValueError):
        query_k_nearest(index, 0, 0)
    with pytest.raises(ValueError):
        query_k_nearest(index, 0, 2, max_distance=-1.0)


def test_knn_graph_matches_single_queries(sphere_points):
    graph = build_knn_graph(sphere_points, 8, max_leaf_size=4)
    index = build_spatial_index(sphere_points, max_leaf_size=4)

    assert sorted(graph) == list(range(len(sphere_points)))
    for point_id in (0, 17, 150, 299):
        assert graph[point_id] == query_k_nearest(index, point_id, 8)


def test_knn_graph_with_max_distance_keeps_empty_entries(line_points):
    graph = build_knn_graph(line_points, 2, max_distance=1.5)
    # Points 1 and 2 have two equidistant neighbours, so compare as sets.
    assert {point_id: sorted(ids) for point_id, ids in graph.items()} == {
        0: [1],
        1: [0, 2],
        2: [1, 3],
        3: [2],
        4: [],
    }


def test_knn_graph_of_empty_cloud():
    assert build_knn_graph(np.zeros((0, 3)), 4) == {}


def test_knn_graph_default_distance_is_unbounded(line_points):
    graph = build_knn_graph(line_points, 1, max_distance=math.inf)
    assert graph[4] == [3]
