"""
Shared Function Names

Packages built on molsimkit (trajectory analysis, distance and contact
tools) agree on a common vocabulary of function names so that users can call
``distance`` or ``coordination_number`` on any of them. molsimkit itself
implements none of these; the protocols below only record the expected call
signatures.

Implementations are ordinary functions; a static type checker accepts any
function with a compatible signature where one of these protocols is
expected.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Distance(Protocol):
    """``distance(x, y, *args, **kwargs) -> float``: distance between two selections."""

    def __call__(self, x: Any, y: Any, *args: Any, **kwargs: Any) -> float: ...


@runtime_checkable
class Distances(Protocol):
    """``distances(x, y, *args, **kwargs)``: per-frame or per-pair distances."""

    def __call__(self, x: Any, y: Any, *args: Any, **kwargs: Any) -> Any: ...


@runtime_checkable
class CoordinationNumber(Protocol):
    """``coordination_number(solute, solvent, cutoff, ...)``: neighbours within a cutoff."""

    def __call__(self, *args: Any, **kwargs: Any) -> Any: ...


@runtime_checkable
class BulkCoordination(Protocol):
    """``bulk_coordination(...)``: coordination profile relative to bulk solvent."""

    def __call__(self, *args: Any, **kwargs: Any) -> Any: ...


SHARED_FUNCTION_NAMES = (
    "distance",
    "distances",
    "coordination_number",
    "bulk_coordination",
)

PROTOCOLS = {
    "distance": Distance,
    "distances": Distances,
    "coordination_number": CoordinationNumber,
    "bulk_coordination": BulkCoordination,
}


def implements_shared_api(module) -> dict:
    """
    Report which shared names a module provides as callables.

    Args:
        module: Any object with attributes (usually a module)

    Returns:
        found: {name: bool} for every name in SHARED_FUNCTION_NAMES
    """
    return {
        name: isinstance(getattr(module, name, None), PROTOCOLS[name])
        for name in SHARED_FUNCTION_NAMES
    }


__all__ = [
    'Distance',
    'Distances',
    'CoordinationNumber',
    'BulkCoordination',
    'SHARED_FUNCTION_NAMES',
    'implements_shared_api',
]
