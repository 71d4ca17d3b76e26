"""
Dihedral Angles

Torsion angle between the plane through points 1-2-3 and the plane through
points 2-3-4 of a four-point chain, for single quadruples and batches.

Convention:
- Angles are signed, in (-180°, 180°] (or (-π, π] with degrees=False)
- Bond vectors b1 = v2 - v1, b2 = v3 - v2, b3 = v4 - v3
- Plane normals n1 = b1 × b2 and n2 = b2 × b3 (normalised)
- angle = atan2((n1 × n2) · b2/|b2|, n1 · n2)
"""

import numpy as np
from typing import Optional

from . import kernels as K
from ..config import get_config
from ..exceptions import DimensionMismatchError, DomainError, DegenerateStructureError


def _as_quads(quads) -> np.ndarray:
    try:
        quads = np.array(quads, dtype=np.float64)
    except ValueError as e:
        raise DimensionMismatchError(f"Dihedral input must be quadruples of 3D vectors: {e}") from e

    if quads.ndim == 1 and quads.size == 0:
        quads = quads.reshape(0, 4, 3)

    if quads.ndim != 3 or quads.shape[1:] != (4, 3):
        raise DimensionMismatchError(
            f"Dihedral input must have shape (n, 4, 3), got {quads.shape}"
        )

    if not np.all(np.isfinite(quads)):
        raise DomainError("Dihedral input contains non-finite coordinates")

    return quads


def dihedral(*points, degrees: Optional[bool] = None) -> float:
    """
    Dihedral angle defined by four points.

    Call either with four 3D vectors, ``dihedral(v1, v2, v3, v4)``, or with a
    single sequence of four 3D vectors, ``dihedral([v1, v2, v3, v4])``.

    Args:
        *points: Four (3,) vectors, or one (4, 3) sequence
        degrees: Return degrees (default, see ``dihedral.degrees``) or radians

    Returns:
        angle: Signed dihedral angle

    Raises:
        DimensionMismatchError: Wrong number of points or non-3D vectors
        DegenerateStructureError: Three consecutive points are colinear

    Example:
        >>> dihedral([-9.229, -14.861, -5.481], [-10.048, -15.427, -5.569],
        ...          [-9.488, -13.913, -5.295], [-8.652, -15.208, -4.741])
        -34.57...
    """
    if len(points) == 1:
        points = points[0]
        if len(points) != 4:
            raise DimensionMismatchError(
                f"The input sequence must have 4 vectors, got {len(points)}"
            )
    elif len(points) != 4:
        raise DimensionMismatchError(
            f"dihedral takes 4 vectors or one sequence of 4 vectors, got {len(points)} arguments"
        )

    if any(np.ndim(v) != 1 or len(v) != 3 for v in points):
        raise DimensionMismatchError("All input vectors must have 3 elements")

    return float(dihedrals([points], degrees=degrees)[0])


def dihedrals(quads, degrees: Optional[bool] = None) -> np.ndarray:
    """
    Dihedral angles for many sets of four points.

    Args:
        quads: (n, 4, 3) sequence; each element holds the four points of one
            dihedral
        degrees: Return degrees (default, see ``dihedral.degrees``) or radians

    Returns:
        angles: (n,) angles in input order

    Raises:
        DimensionMismatchError: If any element is not four 3D vectors
        DegenerateStructureError: If any quadruple has colinear consecutive
            points; the message lists the offending indices

    Example:
        >>> v1 = [[-8.483, -14.912, -6.726], [-5.113, -13.737, -5.466],
        ...       [-3.903, -11.262, -8.062], [-1.162, -9.64, -6.015]]
        >>> v2 = [[-9.229, -14.861, -5.481], [-8.483, -14.912, -6.726],
        ...       [-7.227, -14.047, -6.599], [-7.083, -13.048, -7.303]]
        >>> dihedrals([v1, v2])
        array([ 164.43481281, -115.82544005])
    """
    if degrees is None:
        degrees = get_config().get('dihedral.degrees')

    quads = _as_quads(quads)
    angles = K.dihedral_batch(quads)

    bad = np.flatnonzero(np.isnan(angles))
    if bad.size:
        raise DegenerateStructureError(
            f"Dihedral undefined for colinear consecutive points at indices {bad.tolist()}"
        )

    return np.degrees(angles) if degrees else angles


__all__ = [
    'dihedral',
    'dihedrals',
]
