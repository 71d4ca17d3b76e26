"""
Periodic Boundary Wrapping

This module maps points onto periodic images of a unit cell. Cells are given
either as an (N, N) matrix whose columns are the lattice vectors (any
triclinic geometry) or as an (N,) vector of orthogonal side lengths.

Key Features:
- Fractional coordinates reduced to the half-open interval [0, 1)
- Minimum image of a point relative to a reference point
- Remapping into the first cell
- Any dimension N; single points (N,) or stacks of points (m, N)

Mathematical Background:
========================

For a cell matrix C = [a | b | c] a position r has fractional coordinates
f = C⁻¹ r. Two positions are periodic images of each other when their
fractional coordinates differ by integers. Minimum images are computed on
the fractional displacement, reducing each component to (-1/2, 1/2], and
mapped back with C. For an orthogonal cell this is the usual per-axis
minimum image; for a strongly skewed cell it is the image nearest in
fractional space.

Notes:
    - Only relative tolerances are used (the cell condition number), so a
      uniform change of length scale never changes the result.
    - A displacement of exactly half a cell resolves to the positive image.
"""

import numpy as np
from typing import Optional

from . import kernels as K
from ..config import get_config
from ..exceptions import DimensionMismatchError, DomainError, SingularCellError


def _as_coordinates(x, name: str) -> np.ndarray:
    x = np.array(x, dtype=np.float64)

    if x.ndim not in (1, 2):
        raise DimensionMismatchError(
            f"{name} must be a vector (N,) or a stack of vectors (m, N), got shape {x.shape}"
        )

    return x


def validate_cell(cell, dim: int, max_condition: Optional[float] = None) -> np.ndarray:
    """
    Check a unit cell against the point dimension.

    Args:
        cell: (N, N) lattice-vector matrix or (N,) side lengths
        dim: Point dimension N
        max_condition: Largest accepted condition number of a cell matrix.
            Defaults to ``periodic.max_condition`` of the active configuration.

    Returns:
        cell: float64 copy of the cell

    Raises:
        DimensionMismatchError: If the cell shape does not match ``dim``
        DomainError: If side lengths are not finite and positive, or the
            matrix has non-finite entries
        SingularCellError: If the matrix is singular or ill-conditioned
    """
    cell = np.array(cell, dtype=np.float64)

    if cell.ndim == 1:
        if cell.shape != (dim,):
            raise DimensionMismatchError(
                f"Expected {dim} cell side lengths, got {cell.shape[0]}"
            )
        if not np.all(np.isfinite(cell)) or np.any(cell <= 0):
            raise DomainError(f"Cell side lengths must be finite and positive, got {cell}")
        return cell

    if cell.ndim != 2 or cell.shape != (dim, dim):
        raise DimensionMismatchError(
            f"Cell matrix must have shape ({dim}, {dim}), got {cell.shape}"
        )

    if not np.all(np.isfinite(cell)):
        raise DomainError("Cell matrix contains non-finite values")

    if max_condition is None:
        max_condition = get_config().get('periodic.max_condition')

    with np.errstate(divide='ignore', invalid='ignore'):
        condition = np.linalg.cond(cell)

    if not np.isfinite(condition) or condition > max_condition:
        raise SingularCellError(
            f"Cell matrix is singular or ill-conditioned (condition number {condition:.3e})"
        )

    return cell


def _fractional(x: np.ndarray, cell: np.ndarray) -> np.ndarray:
    """Fractional coordinates in [0, 1) for a validated cell matrix."""
    f = np.linalg.solve(cell, x.T).T
    f = f - np.floor(f)

    # Boundary coordinates belong to the lower boundary
    f[f == 1.0] = 0.0

    return f


def _cell_matrix(cell: np.ndarray) -> np.ndarray:
    return np.diag(cell) if cell.ndim == 1 else cell


def to_fractional(point, cell, max_condition: Optional[float] = None) -> np.ndarray:
    """
    Fractional coordinates of ``point`` in the first cell.

    Solves cell · f = point and reduces every component into [0, 1).

    Args:
        point: (N,) or (m, N) coordinates
        cell: (N, N) lattice vectors as columns, or (N,) side lengths
        max_condition: See :func:`validate_cell`

    Returns:
        f: Fractional coordinates, same shape as ``point``

    Example:
        >>> to_fractional([15.0, 13.0], [[10.0, 0.0], [0.0, 10.0]])
        array([0.5, 0.3])
    """
    x = _as_coordinates(point, "point")
    cell = validate_cell(cell, x.shape[-1], max_condition)

    return _fractional(x, _cell_matrix(cell))


def wrap(point, reference, cell, max_condition: Optional[float] = None) -> np.ndarray:
    """
    Minimum image of ``point`` relative to ``reference``.

    Args:
        point: (N,) or (m, N) coordinates
        reference: (N,) or (m, N) reference coordinates, broadcast against point
        cell: (N, N) lattice vectors as columns, or (N,) orthogonal side lengths
        max_condition: See :func:`validate_cell`

    Returns:
        wrapped: Image of ``point`` closest to ``reference``

    Example:
        >>> uc = [[10.0, 5.0, 5.0], [0.0, 10.0, 5.0], [0.0, 0.0, 10.0]]
        >>> wrap([10.5, 10.5, 10.5], [0.0, 0.0, 0.0], uc)
        array([ 0.5, -4.5,  0.5])
    """
    x = _as_coordinates(point, "point")
    xref = _as_coordinates(reference, "reference")

    if x.shape[-1] != xref.shape[-1]:
        raise DimensionMismatchError(
            f"point and reference must have the same dimension, "
            f"got {x.shape[-1]} and {xref.shape[-1]}"
        )

    dim = x.shape[-1]
    cell = validate_cell(cell, dim, max_condition)

    if cell.ndim == 1:
        d = x - xref
        dw = K.minimum_image_orthogonal(d.reshape(-1, dim), cell)
        return xref + dw.reshape(d.shape)

    # Displacement in fractional space, wrapped in a unit cube
    df = _fractional(x, cell) - _fractional(xref, cell)
    dfw = K.minimum_image_orthogonal(df.reshape(-1, dim), np.ones(dim))
    return xref + (dfw @ cell.T).reshape(df.shape)


def minimum_image(displacement, cell, max_condition: Optional[float] = None) -> np.ndarray:
    """Shortest periodic image of a displacement vector (``wrap`` about the origin)."""
    d = _as_coordinates(displacement, "displacement")
    return wrap(d, np.zeros(d.shape[-1]), cell, max_condition)


def wrap_to_first(point, cell, max_condition: Optional[float] = None) -> np.ndarray:
    """
    Remap ``point`` into the first unit cell.

    The returned coordinates have all fractional coordinates in [0, 1).

    Args:
        point: (N,) or (m, N) coordinates
        cell: (N, N) lattice vectors as columns, or (N,) side lengths
        max_condition: See :func:`validate_cell`

    Returns:
        wrapped: cell · to_fractional(point, cell)

    Example:
        >>> wrap_to_first([15.0, 13.0, 2.0], np.diag([10.0, 10.0, 10.0]))
        array([5., 3., 2.])
    """
    x = _as_coordinates(point, "point")
    cell = _cell_matrix(validate_cell(cell, x.shape[-1], max_condition))

    return _fractional(x, cell) @ cell.T


__all__ = [
    'validate_cell',
    'to_fractional',
    'wrap',
    'minimum_image',
    'wrap_to_first',
]
