"""
NumPy Computational Kernels for molsimkit

Vectorised implementations of the kernels in numba_kernels.py. No JIT
compilation, so there is no warm-up cost; select with
``set_backend('numpy')`` or ``MOLSIMKIT_BACKEND=numpy``.
"""

import numpy as np


def quaternion_matrix(xc: np.ndarray, yc: np.ndarray) -> np.ndarray:
    """
    Accumulate the symmetric 4×4 quaternion matrix Q for two centered sets.

    Args:
        xc: (n, 3) centered mobile coordinates
        yc: (n, 3) centered reference coordinates

    Returns:
        q: (4, 4) symmetric matrix
    """
    xc = np.asarray(xc, dtype=np.float64)
    yc = np.asarray(yc, dtype=np.float64)

    m = yc - xc
    p = yc + xc
    m0, m1, m2 = m.T
    p0, p1, p2 = p.T

    q = np.zeros((4, 4), dtype=np.float64)
    q[0, 0] = np.sum(m0**2 + m1**2 + m2**2)
    q[0, 1] = np.sum(p1 * m2 - m1 * p2)
    q[0, 2] = np.sum(m0 * p2 - p0 * m2)
    q[0, 3] = np.sum(p0 * m1 - m0 * p1)
    q[1, 1] = np.sum(p1**2 + p2**2 + m0**2)
    q[1, 2] = np.sum(m0 * m1 - p0 * p1)
    q[1, 3] = np.sum(m0 * m2 - p0 * p2)
    q[2, 2] = np.sum(p0**2 + p2**2 + m1**2)
    q[2, 3] = np.sum(m1 * m2 - p1 * p2)
    q[3, 3] = np.sum(p0**2 + p1**2 + m2**2)

    # Mirror upper triangle
    lower = np.tril_indices(4, -1)
    q[lower] = q.T[lower]

    return q


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
    quads = np.asarray(quads, dtype=np.float64)

    b1 = quads[:, 1] - quads[:, 0]
    b2 = quads[:, 2] - quads[:, 1]
    b3 = quads[:, 3] - quads[:, 2]

    n1 = np.cross(b1, b2)
    n2 = np.cross(b2, b3)
    n1_norm = np.linalg.norm(n1, axis=1)
    n2_norm = np.linalg.norm(n2, axis=1)
    b1_norm = np.linalg.norm(b1, axis=1)
    b2_norm = np.linalg.norm(b2, axis=1)
    b3_norm = np.linalg.norm(b3, axis=1)

    valid = ((n1_norm > colinear_tol * b1_norm * b2_norm)
             & (n2_norm > colinear_tol * b2_norm * b3_norm))

    with np.errstate(invalid='ignore', divide='ignore'):
        n1 = n1 / n1_norm[:, np.newaxis]
        n2 = n2 / n2_norm[:, np.newaxis]
        u1 = np.cross(n1, n2)

        m1 = np.einsum('ij,ij->i', u1, b2) / b2_norm
        m2 = np.einsum('ij,ij->i', n1, n2)

        angles = np.arctan2(m1, m2)

    angles[angles == -np.pi] = np.pi
    angles[~valid] = np.nan

    return angles


def minimum_image_orthogonal(displacements: np.ndarray, sides: np.ndarray) -> np.ndarray:
    """
    Reduce displacements to the minimum image of an orthogonal cell.

    Args:
        displacements: (m, N) raw displacements
        sides: (N,) positive side lengths

    Returns:
        wrapped: (m, N) displacements with components in (-side/2, side/2]
    """
    displacements = np.asarray(displacements, dtype=np.float64)
    sides = np.asarray(sides, dtype=np.float64)

    wrapped = displacements - sides * np.floor(displacements / sides)
    wrapped = np.where(wrapped > 0.5 * sides, wrapped - sides, wrapped)
    wrapped = np.where(wrapped <= -0.5 * sides, wrapped + sides, wrapped)

    return wrapped


__all__ = [
    'quaternion_matrix',
    'dihedral_batch',
    'minimum_image_orthogonal',
]
