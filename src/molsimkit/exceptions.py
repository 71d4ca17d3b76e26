"""
Error Taxonomy

Exceptions raised by molsimkit. Every class also derives from the builtin
exception a caller would naturally catch (``ValueError``, ``LinAlgError``,
``ArithmeticError``), so ``except ValueError`` keeps working.
"""

import numpy as np


class MolSimKitError(Exception):
    """Base class for all molsimkit errors."""


class DimensionMismatchError(MolSimKitError, ValueError):
    """Paired sequences differ in length, or a vector has the wrong arity."""


class DomainError(MolSimKitError, ValueError):
    """Input lies outside the domain of the operation (e.g. an empty set)."""


class DegenerateStructureError(DomainError):
    """
    Geometry is underdetermined.

    Raised for coincident or colinear point sets passed to the aligner, where
    the optimal rotation is not unique, and for colinear dihedral quadruples.
    """


class SingularCellError(MolSimKitError, np.linalg.LinAlgError):
    """Unit cell matrix is singular or too ill-conditioned to invert."""


class ImproperRotationError(MolSimKitError, ArithmeticError):
    """An extracted rotation matrix is not a member of SO(3)."""


__all__ = [
    'MolSimKitError',
    'DimensionMismatchError',
    'DomainError',
    'DegenerateStructureError',
    'SingularCellError',
    'ImproperRotationError',
]
