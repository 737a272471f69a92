import numpy as np
import pytest

from cloud_types import (
    ZERO_NORMAL,
    as_point_array,
    check_neighbor_graph,
    empty_normal_field,
    is_sentinel,
)
from normal_errors import DimensionMismatch, InvalidTopology, NormalEstimationError


def test_as_point_array_accepts_lists():
    points = as_point_array([[0, 0, 0], [1, 2, 3]])
    assert points.dtype == np.float64
    assert points.shape == (2, 3)


def test_as_point_array_empty_input():
    assert as_point_array([]).shape == (0, 3)


@pytest.mark.parametrize(
    "points",
    [
        np.zeros((4, 2)),
        np.zeros((4, 4)),
        np.zeros(3),
        np.zeros((2, 3, 1)),
        [[0.0, 0.0, 0.0], [1.0, 1.0]],
        [[0.0, 0.0, np.nan]],
    ],
)
def test_as_point_array_rejects_non_3d(points):
    with pytest.raises(DimensionMismatch):
        as_point_array(points)


def test_dimension_mismatch_is_a_value_error():
    assert issubclass(DimensionMismatch, ValueError)
    assert issubclass(DimensionMismatch, NormalEstimationError)


def test_sentinel_helpers():
    field = empty_normal_field(4)
    assert field.shape == (4, 3)
    assert all(is_sentinel(normal) for normal in field)
    assert not is_sentinel(np.array([0.0, 0.0, 1.0]))
    assert np.all(ZERO_NORMAL == 0.0)


def test_check_neighbor_graph():
    check_neighbor_graph({0: [1, 2], 2: [0]}, 3)
    with pytest.raises(InvalidTopology):
        check_neighbor_graph({0: [1, -1]}, 3)
    with pytest.raises(InvalidTopology):
        check_neighbor_graph({3: [0]}, 3)
