"""Pytest configuration for PIC tests."""
import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure(config):
    """Configure pytest environment for PIC tests."""
    # Add workspace root to Python path for pic2d package imports
    workspace_root = Path(__file__).parent.parent.parent
    if str(workspace_root) not in sys.path:
        sys.path.insert(0, str(workspace_root))


@pytest.fixture(params=['cpu', 'numba'])
def backend(request):
    """Parametrize tests over all available backends."""
    import pic2d
    from pic2d.core.backend import list_backends

    backend_name = request.param
    if not list_backends().get(backend_name, False):
        pytest.skip(f"Backend {backend_name} not available")

    original_backend = pic2d.get_backend()
    pic2d.set_backend(backend_name)
    yield backend_name
    pic2d.set_backend(original_backend)


@pytest.fixture
def open_grid():
    """8x6 all-Air grid with unit cells."""
    from pic2d.core.grid import GridArrays
    return GridArrays.allocate((8, 6), (1.0, 1.0))


@pytest.fixture
def make_particles():
    """Factory building ParticleArrays from a list of (x, y) positions."""
    from pic2d.core.particles import ParticleArrays

    def _make(positions, velocities=None):
        return ParticleArrays.from_positions(np.asarray(positions, dtype=np.float32), velocities)
    return _make
