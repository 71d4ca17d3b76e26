"""
Core geometric primitives for molecular simulation analysis.

This module provides:
- Center of mass and RMSD
- Periodic boundary wrapping (orthogonal and triclinic cells)
- Optimal structural alignment (quaternion eigenvector method)
- Dihedral angles
"""

from .vectors import (
    as_points,
    unit_vector,
    center_of_mass,
    rmsd
)
from .periodic import (
    validate_cell,
    to_fractional,
    wrap,
    minimum_image,
    wrap_to_first
)
from .alignment import (
    Superposition,
    rotation_from_quaternion,
    superpose,
    align,
    align_inplace,
    align_frames,
    rmsd_frames
)
from .dihedral import (
    dihedral,
    dihedrals
)

__all__ = [
    'as_points',
    'unit_vector',
    'center_of_mass',
    'rmsd',
    'validate_cell',
    'to_fractional',
    'wrap',
    'minimum_image',
    'wrap_to_first',
    'Superposition',
    'rotation_from_quaternion',
    'superpose',
    'align',
    'align_inplace',
    'align_frames',
    'rmsd_frames',
    'dihedral',
    'dihedrals'
]
