"""
Numba Computational Kernels for molsimkit

CPU-optimized kernels using Numba JIT compilation. This is the DEFAULT
runtime. Loops over independent elements (dihedral quadruples, wrapped
displacements) run in parallel with prange; the quaternion-matrix
accumulation is a serial reduction so its summation order is fixed and
results are reproducible.

For the pure NumPy runtime, see numpy_kernels.py.
"""

import math

import numpy as np
from numba import jit, prange


# =============================================================================
# Quaternion Matrix for Structural Alignment
# =============================================================================


def quaternion_matrix(xc: np.ndarray, yc: np.ndarray) -> np.ndarray:
    """
    Accumulate the symmetric 4×4 quaternion matrix Q for two centered sets.

    Args:
        xc: (n, 3) centered mobile coordinates
        yc: (n, 3) centered reference coordinates

    Returns:
        q: (4, 4) symmetric matrix; the eigenvector of its smallest
           eigenvalue is the optimal rotation quaternion
    """
    xc = np.ascontiguousarray(xc, dtype=np.float64)
    yc = np.ascontiguousarray(yc, dtype=np.float64)

    return _quaternion_matrix_impl(xc, yc)


@jit(nopython=True)
def _quaternion_matrix_impl(xc: np.ndarray, yc: np.ndarray) -> np.ndarray:
    """Internal JIT-compiled implementation."""
    q = np.zeros((4, 4), dtype=np.float64)

    for i in range(xc.shape[0]):
        # m = y - x, p = y + x
        m0 = yc[i, 0] - xc[i, 0]
        m1 = yc[i, 1] - xc[i, 1]
        m2 = yc[i, 2] - xc[i, 2]
        p0 = yc[i, 0] + xc[i, 0]
        p1 = yc[i, 1] + xc[i, 1]
        p2 = yc[i, 2] + xc[i, 2]

        q[0, 0] += m0 * m0 + m1 * m1 + m2 * m2
        q[0, 1] += p1 * m2 - m1 * p2
        q[0, 2] += m0 * p2 - p0 * m2
        q[0, 3] += p0 * m1 - m0 * p1
        q[1, 1] += p1 * p1 + p2 * p2 + m0 * m0
        q[1, 2] += m0 * m1 - p0 * p1
        q[1, 3] += m0 * m2 - p0 * p2
        q[2, 2] += p0 * p0 + p2 * p2 + m1 * m1
        q[2, 3] += m1 * m2 - p1 * p2
        q[3, 3] += p0 * p0 + p1 * p1 + m2 * m2

    for i in range(4):
        for j in range(i):
            q[i, j] = q[j, i]

    return q


# =============================================================================
# Dihedral Angles
# =============================================================================


def dihedral_batch(quads: np.ndarray, colinear_tol: float = 1e-10) -> np.ndarray:
    """
    Dihedral angles for a batch of point quadruples.

    Args:
        quads: (n, 4, 3) coordinates
        colinear_tol: Smallest accepted sine of a bond angle; quadruples with
            a (near) colinear triple yield NaN

    Returns:
        angles: (n,) angles in radians in (-π, π]
    """
    quads = np.ascontiguousarray(quads, dtype=np.float64)

    return _dihedral_batch_impl(quads, colinear_tol)


@jit(nopython=True)
def _cross(a, b):
    return np.array([
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    ])


@jit(nopython=True)
def _norm(a):
    return math.sqrt(a[0] * a[0] + a[1] * a[1] + a[2] * a[2])


@jit(nopython=True, parallel=True)
def _dihedral_batch_impl(quads: np.ndarray, colinear_tol: float) -> np.ndarray:
    """Internal JIT-compiled implementation."""
    n = quads.shape[0]
    angles = np.empty(n, dtype=np.float64)

    for k in prange(n):
        b1 = quads[k, 1] - quads[k, 0]
        b2 = quads[k, 2] - quads[k, 1]
        b3 = quads[k, 3] - quads[k, 2]

        n1 = _cross(b1, b2)
        n2 = _cross(b2, b3)
        n1_norm = _norm(n1)
        n2_norm = _norm(n2)
        b2_norm = _norm(b2)

        angle = np.nan
        if (n1_norm > colinear_tol * _norm(b1) * b2_norm
                and n2_norm > colinear_tol * b2_norm * _norm(b3)):
            n1 = n1 / n1_norm
            n2 = n2 / n2_norm
            u1 = _cross(n1, n2)

            m1 = (u1[0] * b2[0] + u1[1] * b2[1] + u1[2] * b2[2]) / b2_norm
            m2 = n1[0] * n2[0] + n1[1] * n2[1] + n1[2] * n2[2]

            angle = math.atan2(m1, m2)
            if angle == -math.pi:
                angle = math.pi

        angles[k] = angle

    return angles


# =============================================================================
# Orthogonal Minimum Image
# =============================================================================


def minimum_image_orthogonal(displacements: np.ndarray, sides: np.ndarray) -> np.ndarray:
    """
    Reduce displacements to the minimum image of an orthogonal cell.

    Args:
        displacements: (m, N) raw displacements
        sides: (N,) positive side lengths

    Returns:
        wrapped: (m, N) displacements with components in (-side/2, side/2]
    """
    displacements = np.ascontiguousarray(displacements, dtype=np.float64)
    sides = np.ascontiguousarray(sides, dtype=np.float64)

    return _minimum_image_orthogonal_impl(displacements, sides)


@jit(nopython=True, parallel=True)
def _minimum_image_orthogonal_impl(displacements: np.ndarray, sides: np.ndarray) -> np.ndarray:
    """Internal JIT-compiled implementation."""
    m, dim = displacements.shape
    wrapped = np.empty_like(displacements)

    for i in prange(m):
        for j in range(dim):
            s = sides[j]
            x = displacements[i, j]
            x = x - s * np.floor(x / s)
            if x > 0.5 * s:
                x -= s
            elif x <= -0.5 * s:
                x += s
            wrapped[i, j] = x

    return wrapped


__all__ = [
    'quaternion_matrix',
    'dihedral_batch',
    'minimum_image_orthogonal',
]
