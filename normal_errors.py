"""Exceptions raised by the normal estimation modules.

Only structural problems raise. Per-point conditions (empty neighbourhoods,
missing graph entries, ...) are reported through normal_diagnostics instead.
"""


class NormalEstimationError(Exception):
    """Base class for fatal normal estimation errors."""


class DimensionMismatch(NormalEstimationError, ValueError):
    """The point cloud is not an N x 3 matrix of real coordinates."""


class InvalidTopology(NormalEstimationError, ValueError):
    """A face references a vertex that does not exist."""
