import numpy as np
import pytest

from pyhho.bases import make_scalar_monomial_basis
from pyhho.core import BoundaryConditions, Mesh
from pyhho.core.geometry import measure
from pyhho.hho import (DegreeInfo, make_hho_nitsche_terms, make_mass_matrix,
                       make_scalar_hdg_stabilization, make_scalar_hho_laplacian,
                       make_scalar_hho_stabilization, make_stiffness_matrix, project_function)
from pyhho.hho.operators import local_dofs
from pyhho.utils.meshgen import (single_polygon, structured_hexahedra, structured_quads,
                                 structured_tetrahedra, structured_triangles, uniform_interval)


def _meshes():
    return {
        "interval": Mesh(*uniform_interval(0.0, 1.0, 2)),
        "triangles": Mesh(*structured_triangles(1.0, 1.0, nx_quads=1, ny_quads=1)),
        "quads": Mesh(*structured_quads(1.0, 0.5, nx=1, ny=1)),
        "hexagon": Mesh(*single_polygon(6, radius=0.7)),
        "tetrahedra": Mesh(*structured_tetrahedra(1.0, 1.0, 1.0, nx=1, ny=1, nz=1)),
        "hexahedra": Mesh(*structured_hexahedra(1.0, 1.0, 1.0, nx=1, ny=1, nz=1)),
    }


def _random_polynomial(mesh, cell, degree, rng):
    """A polynomial of ``degree`` written in the cell's own basis."""
    pb = make_scalar_monomial_basis(mesh, cell, degree)
    coeffs = rng.normal(size=pb.size)
    return (lambda *x: float(pb.eval_functions(np.array(x, dtype=float)) @ coeffs)), coeffs


def test_mass_and_stiffness(unit_square_tri):
    cell = unit_square_tri.cell(0)
    cb = make_scalar_monomial_basis(unit_square_tri, cell, 2)
    M = make_mass_matrix(unit_square_tri, cell, cb)
    K = make_stiffness_matrix(unit_square_tri, cell, cb)
    assert np.allclose(M, M.T) and np.all(np.linalg.eigvalsh(M) > 0)
    assert np.isclose(M[0, 0], measure(unit_square_tri, cell))
    assert np.allclose(K, K.T)
    assert np.allclose(K[0], 0.0) and np.allclose(K[:, 0], 0.0)


@pytest.mark.parametrize("name", ["interval", "triangles", "quads", "hexagon",
                                  "tetrahedra", "hexahedra"])
@pytest.mark.parametrize("k", [0, 1, 2])
def test_reconstruction_is_exact_on_polynomials(name, k, rng):
    mesh = _meshes()[name]
    di = DegreeInfo(face=k)
    cell = mesh.cell(0)
    f, coeffs = _random_polynomial(mesh, cell, di.reconstruction, rng)
    R, A = make_scalar_hho_laplacian(mesh, cell, di)
    I_f = project_function(mesh, cell, di, f)
    assert np.allclose(R @ I_f, coeffs[1:], atol=1e-9 * np.abs(coeffs).max())
    assert np.allclose(A, A.T, atol=1e-10)


@pytest.mark.parametrize("name", ["triangles", "hexagon", "tetrahedra", "hexahedra"])
@pytest.mark.parametrize("k", [0, 1])
def test_hho_stabilization_vanishes_on_polynomials(name, k, rng):
    mesh = _meshes()[name]
    di = DegreeInfo(face=k)
    cell = mesh.cell(0)
    f, _ = _random_polynomial(mesh, cell, di.reconstruction, rng)
    R, A = make_scalar_hho_laplacian(mesh, cell, di)
    S = make_scalar_hho_stabilization(mesh, cell, R, di)
    I_f = project_function(mesh, cell, di, f)
    assert np.allclose(S, S.T, atol=1e-10)
    assert np.abs(S @ I_f).max() < 1e-9 * np.abs(S).max() * np.abs(I_f).max()


def test_hdg_stabilization_vanishes_on_cell_polynomials(rng):
    mesh = _meshes()["hexagon"]
    di = DegreeInfo(face=1)
    cell = mesh.cell(0)
    f, _ = _random_polynomial(mesh, cell, di.cell, rng)
    S = make_scalar_hdg_stabilization(mesh, cell, di)
    I_f = project_function(mesh, cell, di, f)
    assert np.abs(S @ I_f).max() < 1e-10 * np.abs(S).max() * np.abs(I_f).max()


@pytest.mark.parametrize("name", ["interval", "triangles", "hexahedra"])
def test_local_operator_kernel_is_constants(name):
    mesh = _meshes()[name]
    di = DegreeInfo(face=1)
    cell = mesh.cell(0)
    R, A = make_scalar_hho_laplacian(mesh, cell, di)
    lhs = A + make_scalar_hho_stabilization(mesh, cell, R, di)
    ones = project_function(mesh, cell, di, lambda *x: 1.0)
    assert np.allclose(lhs @ ones, 0.0, atol=1e-10)
    ev = np.linalg.eigvalsh(lhs)
    assert abs(ev[0]) < 1e-10 * ev[-1]
    assert ev[1] > 1e-8 * ev[-1]


def test_mixed_order_sizes():
    mesh = _meshes()["triangles"]
    cell = mesh.cell(0)
    for offset in (-1, 0, 1):
        di = DegreeInfo(face=1, cell=1 + offset)
        cbs, fbs, n = local_dofs(mesh, cell, di)
        R, A = make_scalar_hho_laplacian(mesh, cell, di)
        assert A.shape == (n, n) and n == cbs + 3 * fbs
        assert R.shape == (5, n)
    with pytest.raises(ValueError):
        DegreeInfo(face=1, cell=3)
    with pytest.raises(ValueError):
        DegreeInfo(face=-1)


def test_nitsche_terms_structure():
    mesh = Mesh(*structured_triangles(1.0, 1.0, nx_quads=1, ny_quads=1))
    bnd = BoundaryConditions(mesh).add_dirichlet_everywhere(lambda x, y: x + y)
    di = DegreeInfo(face=1)
    cell = mesh.cell(0)
    cbs, fbs, n = local_dofs(mesh, cell, di)
    dirichlet = [(i, bnd.condition(fc.gid).value)
                 for i, fc in enumerate(mesh.faces_of(cell)) if bnd.is_dirichlet_face(fc.gid)]
    assert len(dirichlet) == 2

    R, A = make_scalar_hho_laplacian(mesh, cell, di)
    A_consist, A_nitsche, B_nitsche = make_hho_nitsche_terms(mesh, cell, di, R, dirichlet,
                                                             gamma_0=10.0, theta=1.0)
    lhs = A - A_nitsche - A_consist
    # the cell block is untouched, the symmetric variant stays symmetric
    assert np.allclose(lhs[:cbs, :cbs], A[:cbs, :cbs])
    assert np.allclose(lhs, lhs.T, atol=1e-10)
    # no consistency rows on the interior face
    interior = [i for i, fc in enumerate(mesh.faces_of(cell)) if not fc.is_boundary]
    for i in interior:
        block = slice(cbs + i * fbs, cbs + (i + 1) * fbs)
        assert np.allclose(A_consist[block], 0.0)
    assert np.any(B_nitsche != 0.0)

    with pytest.raises(ValueError):
        make_hho_nitsche_terms(mesh, cell, di, R, dirichlet, gamma_0=0.0, theta=1.0)
