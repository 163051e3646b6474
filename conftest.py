# conftest.py
import numpy as np
import pytest

from pyhho.core import Mesh
from pyhho.utils.meshgen import structured_tetrahedra, structured_triangles


@pytest.fixture(autouse=True)
def serial_assembly(monkeypatch):
    """Run every test with the default single-worker assembly."""
    monkeypatch.delenv("PYHHO_NUM_WORKERS", raising=False)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def unit_square_tri():
    return Mesh(*structured_triangles(1.0, 1.0, nx_quads=2, ny_quads=2))


@pytest.fixture
def kuhn_cube():
    return Mesh(*structured_tetrahedra(1.0, 1.0, 1.0, nx=1, ny=1, nz=1))
