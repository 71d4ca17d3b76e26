import sys
from pathlib import Path

import numpy as np
import pytest

# Make the src/ layout importable without an editable install.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from molsimkit import config as config_module  # noqa: E402
from molsimkit.core import kernels  # noqa: E402


@pytest.fixture
def rng():
    return np.random.default_rng(20240611)


@pytest.fixture(params=["numba", "numpy"])
def backend(request):
    """Run the test once per kernel backend, restoring the previous one."""
    previous = kernels.get_backend()
    kernels.set_backend(request.param)
    yield request.param
    kernels.set_backend(previous)


@pytest.fixture
def restore_config():
    """Let the test mutate a copy of the active configuration."""
    previous = config_module.get_config()
    config_module.set_config(config_module.GeometryConfig(previous.to_dict()))
    yield
    config_module.set_config(previous)


@pytest.fixture
def cloud(rng):
    """A random, non-degenerate 3D point cloud."""
    return rng.uniform(-10.0, 10.0, size=(25, 3))
