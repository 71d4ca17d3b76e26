"""
Kernel Runtime Selection for molsimkit

The geometry routines call their inner loops through this module, which
forwards to one of two interchangeable runtimes:

- numba (default): JIT-compiled, parallel loops over independent elements
- numpy: vectorised NumPy, no compilation step

The runtime is chosen at import (environment variable, then configuration)
and can be switched at any time.

Usage:
    from molsimkit.core import kernels as K
    q = K.quaternion_matrix(xc, yc)

    K.set_backend('numpy')

    # or, before import
    export MOLSIMKIT_BACKEND=numpy
"""

import importlib
import importlib.util
import os
import warnings

from ..config import get_config

ENV_VAR = "MOLSIMKIT_BACKEND"

# backend name -> implementing module
_BACKENDS = {
    "numba": "molsimkit.core.numba_kernels",
    "numpy": "molsimkit.core.numpy_kernels",
}

_CURRENT_BACKEND = None
_BACKEND_MODULE = None


# =============================================================================
# Discovery & Switching
# =============================================================================


def _detect_available_backends():
    """Map every known backend to whether its runtime can be imported."""
    return {
        "numba": importlib.util.find_spec("numba") is not None,
        "numpy": True,
    }


def get_available_backends():
    """Names of the backends usable in this environment."""
    return [name for name, ok in _detect_available_backends().items() if ok]


def get_backend():
    """Name of the active backend."""
    return _CURRENT_BACKEND


def set_backend(backend: str):
    """
    Switch the kernel runtime.

    Args:
        backend: 'numba' or 'numpy' (case-insensitive)

    Raises:
        ValueError: If the name is not a known backend
        ImportError: If the backend's runtime is not installed
    """
    global _CURRENT_BACKEND, _BACKEND_MODULE

    name = backend.lower()

    if name not in _BACKENDS:
        raise ValueError(
            f"Unknown backend '{backend}'. Choose one of {sorted(_BACKENDS)}"
        )

    if name not in get_available_backends():
        raise ImportError(
            f"Backend '{name}' cannot be used: its runtime is not installed "
            f"(available: {get_available_backends()})"
        )

    _BACKEND_MODULE = importlib.import_module(_BACKENDS[name])
    _CURRENT_BACKEND = name


def _auto_select_backend():
    """
    Pick the runtime at import.

    The environment variable wins; an unusable value is reported with a
    warning and the configured ``kernels.backend`` is used instead.
    """
    requested = os.environ.get(ENV_VAR, "").strip()

    if requested:
        try:
            set_backend(requested)
            return
        except (ImportError, ValueError) as e:
            warnings.warn(f"Ignoring {ENV_VAR}={requested!r}: {e}")

    set_backend(get_config().get("kernels.backend", "numba"))


_auto_select_backend()


# =============================================================================
# Forwarding
# =============================================================================


def __getattr__(name):
    """Resolve kernel names (``K.dihedral_batch`` etc.) on the active backend."""
    if _BACKEND_MODULE is None:
        raise RuntimeError("No kernel backend has been selected")

    if not hasattr(_BACKEND_MODULE, name):
        raise AttributeError(f"Backend '{_CURRENT_BACKEND}' provides no kernel '{name}'")

    return getattr(_BACKEND_MODULE, name)


def print_backend_info():
    """Print the active backend and what else is available."""
    print("=" * 60)
    print("molsimkit kernel backends")
    print("=" * 60)
    print(f"Active:    {_CURRENT_BACKEND}")
    print(f"Available: {get_available_backends()}")

    if _CURRENT_BACKEND == "numba":
        import numba

        print(f"numba {numba.__version__}, threading layer {numba.config.THREADING_LAYER}")

    print("=" * 60)


__all__ = [
    "set_backend",
    "get_backend",
    "get_available_backends",
    "print_backend_info",
]
