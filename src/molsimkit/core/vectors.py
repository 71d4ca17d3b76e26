"""
Vector Geometry Utilities

Pure functions on points and point sets shared by the aligner and the
dihedral calculator.

Key Features:
- Input normalisation to (n, N) float arrays with shape checks
- (Mass-weighted) center of mass
- RMSD between index-aligned point sets
"""

import numpy as np
from typing import Optional

from ..exceptions import DimensionMismatchError, DomainError, DegenerateStructureError


def as_points(points, dim: Optional[int] = None, name: str = "points") -> np.ndarray:
    """
    Convert a sequence of points to a float64 array of shape (n, N).

    Args:
        points: Sequence of N-vectors (anything accepted by np.asarray)
        dim: Required point dimension N, or None to accept any
        name: Argument name used in error messages

    Returns:
        points: (n, N) array (a new array, never a view of the input)

    Raises:
        DimensionMismatchError: If the input is not a 2D stack of points,
            or the points do not have ``dim`` coordinates
    """
    try:
        arr = np.array(points, dtype=np.float64)
    except ValueError as e:
        # ragged input, e.g. a 2D point mixed with 3D points
        raise DimensionMismatchError(f"{name} must have equal-length vectors: {e}") from e

    if arr.ndim == 1 and arr.size == 0:
        arr = arr.reshape(0, dim if dim is not None else 0)

    if arr.ndim != 2:
        raise DimensionMismatchError(
            f"{name} must be a sequence of vectors with shape (n, N), got shape {arr.shape}"
        )

    if dim is not None and arr.shape[1] != dim:
        raise DimensionMismatchError(
            f"{name} must contain {dim}D vectors, got {arr.shape[1]}D"
        )

    return arr


def unit_vector(v: np.ndarray) -> np.ndarray:
    """Return ``v / |v|``; a zero vector has no direction."""
    v = np.asarray(v, dtype=np.float64)
    norm = np.linalg.norm(v)

    if norm == 0.0:
        raise DegenerateStructureError("Cannot normalize a zero-length vector")

    return v / norm


def _check_weights(weights, n_points: int) -> np.ndarray:
    weights = np.asarray(weights, dtype=np.float64)

    if weights.ndim != 1 or len(weights) != n_points:
        raise DimensionMismatchError(
            f"Number of weights ({weights.size}) must match number of points ({n_points})"
        )

    if np.any(weights < 0):
        raise DomainError("Weights must be non-negative")

    if not np.sum(weights) > 0:
        raise DomainError("Sum of weights must be positive")

    return weights


def center_of_mass(points, weights=None) -> np.ndarray:
    """
    Calculate the center of mass of a set of points.

    Args:
        points: (n, N) coordinates
        weights: Optional (n,) masses. If None, all masses are equal.

    Returns:
        com: (N,) weighted average point, Σ wᵢ pᵢ / Σ wᵢ

    Raises:
        DomainError: If ``points`` is empty or the weights are invalid
        DimensionMismatchError: If ``weights`` has the wrong length

    Example:
        >>> center_of_mass([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]])
        array([4., 5., 6.])
        >>> center_of_mass([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]],
        ...                [1.0, 2.0, 3.0])
        array([5., 6., 7.])
    """
    points = as_points(points)

    if len(points) == 0:
        raise DomainError("Cannot compute the center of mass of an empty point set")

    if weights is None:
        return points.sum(axis=0) / len(points)

    weights = _check_weights(weights, len(points))
    return (points * weights[:, np.newaxis]).sum(axis=0) / weights.sum()


def rmsd(x, y) -> float:
    """
    Root mean square deviation between two index-aligned point sets.

    Args:
        x: (n, N) coordinates
        y: (n, N) coordinates

    Returns:
        rmsd: sqrt(Σᵢ |xᵢ - yᵢ|² / n)

    Raises:
        DimensionMismatchError: If the sets differ in shape
        DomainError: If the sets are empty

    Example:
        >>> x = [[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]]
        >>> y = [[2.0, 3.0, 4.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]]
        >>> rmsd(x, y)
        1.0
    """
    x = as_points(x, name="x")
    y = as_points(y, name="y")

    if x.shape != y.shape:
        raise DimensionMismatchError(
            f"x and y must have the same shape, got {x.shape} and {y.shape}"
        )

    if len(x) == 0:
        raise DomainError("Cannot compute the RMSD of empty point sets")

    diff = x - y
    return float(np.sqrt(np.sum(diff**2) / len(x)))


__all__ = [
    'as_points',
    'unit_vector',
    'center_of_mass',
    'rmsd',
]
