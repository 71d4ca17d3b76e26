"""
molsimkit - Geometric Primitives for Molecular Simulation Analysis

Small, dependable building blocks shared by trajectory analysis tools.
Kernels are compiled with numba by default; a pure NumPy runtime is
available for environments where JIT warm-up is unwanted.

Main Features:
- Center of mass and RMSD of index-aligned point sets
- Optimal rigid-body alignment via the quaternion eigenvector method
- Minimum-image and first-cell wrapping for orthogonal and triclinic cells
- Dihedral angles, single and batched

Quick Start:
    >>> import numpy as np
    >>> from molsimkit import align, rmsd, wrap, dihedral
    >>> aligned = align(mobile, reference)
    >>> print(f"RMSD after fit: {rmsd(aligned, reference):.3f} Å")
    >>> wrap([15.0, 13.0, 2.0], [0.0, 0.0, 0.0], np.diag([10.0, 10.0, 10.0]))
    array([5., 3., 2.])
"""

__version__ = "0.1.0"

# Core functionality
from .core.vectors import center_of_mass, rmsd
from .core.periodic import to_fractional, wrap, minimum_image, wrap_to_first
from .core.alignment import (
    Superposition,
    rotation_from_quaternion,
    superpose,
    align,
    align_inplace,
    align_frames,
    rmsd_frames,
)
from .core.dihedral import dihedral, dihedrals
from .core.kernels import set_backend, get_backend, get_available_backends

# Errors
from .exceptions import (
    MolSimKitError,
    DimensionMismatchError,
    DomainError,
    DegenerateStructureError,
    SingularCellError,
    ImproperRotationError,
)

# Configuration
from .config import GeometryConfig, get_config, set_config, load_config_with_overrides

# Shared naming contract
from . import interfaces


__all__ = [
    # Version
    "__version__",
    # Vectors
    "center_of_mass",
    "rmsd",
    # Periodic
    "to_fractional",
    "wrap",
    "minimum_image",
    "wrap_to_first",
    # Alignment
    "Superposition",
    "rotation_from_quaternion",
    "superpose",
    "align",
    "align_inplace",
    "align_frames",
    "rmsd_frames",
    # Dihedrals
    "dihedral",
    "dihedrals",
    # Backends
    "set_backend",
    "get_backend",
    "get_available_backends",
    # Errors
    "MolSimKitError",
    "DimensionMismatchError",
    "DomainError",
    "DegenerateStructureError",
    "SingularCellError",
    "ImproperRotationError",
    # Configuration
    "GeometryConfig",
    "get_config",
    "set_config",
    "load_config_with_overrides",
    "interfaces",
]
