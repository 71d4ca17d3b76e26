"""
Structural Alignment

Optimal rigid-body superposition of two index-aligned 3D point sets by
minimising their RMSD.

Key Features:
- Quaternion eigenvector method (no SVD, no reflection branch)
- Optional mass-weighted centering
- Copying (align) and in-place (align_inplace) entry points
- Explicit Superposition result exposing the rotation matrix
- Detection of underdetermined (coincident or colinear) inputs

Mathematical Background:
========================

After both sets are centered, for every pair (xᵢ, yᵢ) let mᵢ = yᵢ - xᵢ and
pᵢ = yᵢ + xᵢ. The residual Σ |R xᵢ - yᵢ|² of a rotation R written as a unit
quaternion q is the quadratic form qᵀ Q q of the symmetric 4×4 matrix

    Q = Σᵢ Aᵢᵀ Aᵢ,

whose entries are sums of squares and cross terms of the mᵢ and pᵢ
components. The optimal rotation is therefore the eigenvector of Q with the
SMALLEST eigenvalue, and that eigenvalue is the residual itself.

References:
-----------
- Kearsley (1989). On the orthogonal transformation used for structural
  comparisons. Acta Cryst. A45, 208-210.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional
from scipy.spatial.transform import Rotation

from . import kernels as K
from .vectors import as_points, center_of_mass, rmsd
from ..config import get_config
from ..exceptions import (
    DimensionMismatchError,
    DomainError,
    DegenerateStructureError,
    ImproperRotationError,
)
from ..utils.decorators import per_frame


@dataclass(frozen=True, eq=False)
class Superposition:
    """Optimal rigid transform mapping a mobile point set onto a reference."""
    rotation: np.ndarray  # (3, 3) proper rotation
    quaternion: np.ndarray  # (4,) eigenvector of Q, scalar part first
    mobile_center: np.ndarray  # (3,) center of mass of the mobile set
    reference_center: np.ndarray  # (3,) center of mass of the reference set
    eigenvalues: np.ndarray  # (4,) eigenvalues of Q, ascending
    rmsd: float  # RMSD after superposition

    @property
    def translation(self) -> np.ndarray:
        """Vector t such that apply(p) = R · p + t."""
        return self.reference_center - self.rotation @ self.mobile_center

    def apply(self, points) -> np.ndarray:
        """
        Map points from the mobile frame onto the reference frame.

        Args:
            points: (n, 3) coordinates in the mobile frame

        Returns:
            transformed: (n, 3) new array, R · (p - cm_mobile) + cm_reference
        """
        points = as_points(points, dim=3)
        return (points - self.mobile_center) @ self.rotation.T + self.reference_center

    def as_rotation(self) -> Rotation:
        """The rotation part as a scipy Rotation."""
        return Rotation.from_matrix(self.rotation)


def rotation_from_quaternion(q) -> np.ndarray:
    """
    Rotation matrix for the quaternion picked from the Q eigen-decomposition.

    Args:
        q: (4,) quaternion (q0, q1, q2, q3), scalar part first; normalised
           before use

    Returns:
        R: (3, 3) rotation matrix

    Notes:
        This is the standard quaternion matrix of the CONJUGATE quaternion
        (q0, -q1, -q2, -q3), which is the orientation convention under which
        the minimum-eigenvalue eigenvector of Q rotates x onto y.
    """
    q = np.asarray(q, dtype=np.float64)

    if q.shape != (4,):
        raise DimensionMismatchError(f"Quaternion must have shape (4,), got {q.shape}")

    norm = np.linalg.norm(q)
    if norm == 0.0:
        raise DomainError("Zero quaternion does not represent a rotation")

    q0, q1, q2, q3 = q / norm

    return np.array([
        [q0**2 + q1**2 - q2**2 - q3**2, 2.0 * (q1 * q2 + q0 * q3), 2.0 * (q1 * q3 - q0 * q2)],
        [2.0 * (q1 * q2 - q0 * q3), q0**2 + q2**2 - q1**2 - q3**2, 2.0 * (q2 * q3 + q0 * q1)],
        [2.0 * (q1 * q3 + q0 * q2), 2.0 * (q2 * q3 - q0 * q1), q0**2 + q3**2 - q1**2 - q2**2],
    ])


def _check_degeneracy(eigenvalues: np.ndarray, tol: float) -> None:
    scale = np.max(np.abs(eigenvalues))

    if scale == 0.0:
        raise DegenerateStructureError(
            "All points coincide with their center of mass; the rotation is undefined"
        )

    gap = eigenvalues[1] - eigenvalues[0]
    if gap <= tol * scale:
        raise DegenerateStructureError(
            "Alignment is underdetermined: the smallest eigenvalue of the quaternion "
            f"matrix is degenerate (relative gap {gap / scale:.2e}). "
            "Colinear point sets do not fix a unique rotation."
        )


def _check_proper_rotation(R: np.ndarray, tol: float) -> None:
    det = np.linalg.det(R)
    orthogonality = np.max(np.abs(R @ R.T - np.eye(3)))

    if abs(det - 1.0) > tol or orthogonality > tol:
        raise ImproperRotationError(
            f"Extracted matrix is not a proper rotation (det={det:.6f}, "
            f"max |RRᵀ - I|={orthogonality:.2e})"
        )


def superpose(
    x,
    y,
    mass: Optional[np.ndarray] = None,
    degeneracy_tol: Optional[float] = None,
    check_rotation: Optional[bool] = None
) -> Superposition:
    """
    Find the rigid transform that best superposes ``x`` onto ``y``.

    Neither input is modified.

    Args:
        x: (n, 3) mobile coordinates
        y: (n, 3) reference coordinates, index-aligned with x
        mass: Optional (n,) masses used to weight both centers of mass
        degeneracy_tol: Relative eigenvalue gap below which the input is
            considered underdetermined. Defaults to ``alignment.degeneracy_tol``.
        check_rotation: Verify that the extracted matrix lies in SO(3).
            Defaults to ``alignment.check_rotation``.

    Returns:
        Superposition with the rotation, both centers and the final RMSD

    Raises:
        DimensionMismatchError: If x and y differ in length, are not 3D, or
            mass has the wrong length
        DomainError: If the sets are empty
        DegenerateStructureError: If the optimal rotation is not unique
        ImproperRotationError: If the extracted matrix is not a rotation
    """
    config = get_config()
    if degeneracy_tol is None:
        degeneracy_tol = config.get('alignment.degeneracy_tol')
    if check_rotation is None:
        check_rotation = config.get('alignment.check_rotation')

    x = as_points(x, dim=3, name="x")
    y = as_points(y, dim=3, name="y")

    if len(x) != len(y):
        raise DimensionMismatchError(
            f"x and y must have the same length, got {len(x)} and {len(y)}"
        )

    if len(x) == 0:
        raise DomainError("Cannot align empty point sets")

    cmx = center_of_mass(x, mass)
    cmy = center_of_mass(y, mass)

    q = K.quaternion_matrix(x - cmx, y - cmy)

    # eigh returns eigenvalues in ascending order
    eigenvalues, eigenvectors = np.linalg.eigh(q)
    _check_degeneracy(eigenvalues, degeneracy_tol)

    quaternion = eigenvectors[:, 0]
    R = rotation_from_quaternion(quaternion)

    if check_rotation:
        _check_proper_rotation(R, config.get('alignment.rotation_tol'))

    aligned = (x - cmx) @ R.T + cmy

    return Superposition(
        rotation=R,
        quaternion=quaternion,
        mobile_center=cmx,
        reference_center=cmy,
        eigenvalues=eigenvalues,
        rmsd=rmsd(aligned, y),
    )


def align(x, y, mass: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Align ``x`` onto ``y``, returning new coordinates.

    Solves the Procrustes problem: the rotation and translation of x that
    minimise RMSD(x, y). Correspondence is given by index. The aligned set
    shares y's center of mass. Neither input is modified.

    Args:
        x: (n, 3) mobile coordinates
        y: (n, 3) reference coordinates
        mass: Optional (n,) masses for the centers of mass

    Returns:
        aligned: (n, 3) coordinates of x superposed on y

    Example:
        >>> rot = Rotation.random(random_state=1).as_matrix()
        >>> x = np.random.rand(10, 3)
        >>> y = x @ rot.T + [45.0, -15.0, 31.5]
        >>> rmsd(align(x, y), y) < 1e-5
        True
    """
    x = as_points(x, dim=3, name="x")
    return superpose(x, y, mass=mass).apply(x)


def align_inplace(x, y, mass: Optional[np.ndarray] = None):
    """
    Align ``x`` onto ``y`` in place.

    The aligned coordinates are written into ``x``; ``y`` is only read.

    Args:
        x: Writeable float ndarray of shape (n, 3), or a list of points
        y: (n, 3) reference coordinates
        mass: Optional (n,) masses for the centers of mass

    Returns:
        x, after alignment

    Raises:
        TypeError: If x cannot hold the aligned coordinates (integer arrays,
            tuples and other immutable containers)
    """
    if isinstance(x, np.ndarray):
        if not np.issubdtype(x.dtype, np.floating):
            raise TypeError(f"align_inplace needs a floating point array, got dtype {x.dtype}")
        if not x.flags.writeable:
            raise TypeError("align_inplace needs a writeable array")

        x[...] = align(x, y, mass)
        return x

    if not isinstance(x, list):
        raise TypeError(
            f"align_inplace needs a numpy array or a list of points, got {type(x).__name__}"
        )

    aligned = align(x, y, mass)
    for i, point in enumerate(aligned):
        if isinstance(x[i], np.ndarray):
            if x[i].flags.writeable and np.issubdtype(x[i].dtype, np.floating):
                x[i][...] = point
            else:
                x[i] = point
        elif isinstance(x[i], tuple):
            x[i] = tuple(point.tolist())
        else:
            x[i] = point.tolist()

    return x


@per_frame()
def align_frames(frame, reference, mass: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Align every frame of a trajectory onto a reference structure.

    Args:
        frame: (n_frames, n, 3) trajectory (one frame per call after decoration)
        reference: (n, 3) reference coordinates
        mass: Optional (n,) masses

    Returns:
        aligned: (n_frames, n, 3)
    """
    return align(frame, reference, mass=mass)


@per_frame()
def rmsd_frames(frame, reference) -> float:
    """RMSD of every frame of a (n_frames, n, N) trajectory to a reference, without fitting."""
    return rmsd(frame, reference)


__all__ = [
    'Superposition',
    'rotation_from_quaternion',
    'superpose',
    'align',
    'align_inplace',
    'align_frames',
    'rmsd_frames',
]
