import numpy as np
import pytest


def fibonacci_sphere(n_points, radius=1.0):
    """Roughly uniform points on a sphere."""
    ids = np.arange(n_points) + 0.5
    phi = np.arccos(1.0 - 2.0 * ids / n_points)
    theta = np.pi * (1.0 + 5.0 ** 0.5) * ids
    return radius * np.column_stack(
        [np.cos(theta) * np.sin(phi), np.sin(theta) * np.sin(phi), np.cos(phi)]
    )


@pytest.fixture
def grid_points():
    """Flat 5 x 5 grid in the z = 0 plane, row-major."""
    return np.array(
        [(x, y, 0.0) for y in range(5) for x in range(5)], dtype=np.float64
    )


@pytest.fixture
def sphere_points():
    return fibonacci_sphere(300)


@pytest.fixture
def cube_points():
    return np.array(
        [
            (0, 0, 0),
            (1, 0, 0),
            (1, 1, 0),
            (0, 1, 0),
            (0, 0, 1),
            (1, 0, 1),
            (1, 1, 1),
            (0, 1, 1),
        ],
        dtype=np.float64,
    )


@pytest.fixture
def cube_faces():
    """Outward wound quads of the unit cube."""
    return [
        [0, 3, 2, 1],
        [4, 5, 6, 7],
        [0, 1, 5, 4],
        [1, 2, 6, 5],
        [2, 3, 7, 6],
        [3, 0, 4, 7],
    ]
