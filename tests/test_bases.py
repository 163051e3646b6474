from math import comb

import numpy as np
import pytest
from numpy.polynomial import legendre as npleg

from pyhho.bases import (BasisConfig, EdgeMonomialBasis, FaceMonomialBasis3D,
                         LegendreFaceBasis, PointFaceBasis, ReferenceFrame,
                         ScaledMonomialBasis, iexp_pow, make_scalar_monomial_basis,
                         monomial_powers, scalar_basis_size)
from pyhho.core import DegenerateElementError, Mesh, UnsupportedDegree
from pyhho.core.geometry import barycenter, diameter, points
from pyhho.hho.operators import make_mass_matrix
from pyhho.utils.meshgen import (single_polygon, structured_hexahedra, structured_quads,
                                 uniform_interval)


def test_scalar_basis_size():
    for d in (1, 2, 3):
        for k in range(8):
            assert scalar_basis_size(k, d) == comb(k + d, d)
            assert monomial_powers(k, d).shape == (comb(k + d, d), d)
    assert scalar_basis_size(2, 2) == 6
    assert scalar_basis_size(3, 3) == 20


def test_monomial_ordering():
    assert monomial_powers(2, 2).tolist() == [[0, 0], [1, 0], [0, 1], [2, 0], [1, 1], [0, 2]]
    p3 = monomial_powers(2, 3).tolist()
    assert p3[:4] == [[0, 0, 0], [1, 0, 0], [0, 1, 0], [0, 0, 1]]
    assert p3[4:] == [[2, 0, 0], [1, 1, 0], [1, 0, 1], [0, 2, 0], [0, 1, 1], [0, 0, 2]]


def test_iexp_pow(rng):
    assert iexp_pow(0.0, 0) == 1.0
    assert iexp_pow(2.0, 10) == 1024.0
    x = rng.uniform(-2.0, 2.0, size=(20, 1))
    n = np.arange(8)[None, :]
    assert np.allclose(iexp_pow(x, n), np.power(x, n), rtol=1e-14)


def test_1d_cell_midpoint():
    mesh = Mesh(*uniform_interval(0.0, 1.0, 1))
    cb = make_scalar_monomial_basis(mesh, mesh.cell(0), 1)
    assert cb.size == 2
    assert np.allclose(cb.eval_functions(0.5), [1.0, 0.0])
    assert np.allclose(cb.eval_functions([0.5]), [1.0, 0.0])
    assert np.allclose(cb.eval_functions(1.0), [1.0, 1.0])


def _sample_meshes():
    return [
        Mesh(*uniform_interval(0.0, 2.0, 3)),
        Mesh(*structured_quads(2.0, 1.0, nx=2, ny=1)),
        Mesh(*single_polygon(5)),
        Mesh(*structured_hexahedra(1.0, 1.0, 2.0, nx=1, ny=1, nz=1)),
    ]


@pytest.mark.parametrize("degree", [0, 1, 3])
def test_values_at_barycenter(degree, kuhn_cube, unit_square_tri):
    for mesh in _sample_meshes() + [kuhn_cube, unit_square_tri]:
        cell = mesh.cell(0)
        cb = make_scalar_monomial_basis(mesh, cell, degree)
        vals = cb.eval_functions(barycenter(mesh, cell))
        expected = np.zeros(cb.size)
        expected[0] = 1.0
        assert np.allclose(vals, expected, atol=1e-14)


def test_gradients_match_finite_differences(kuhn_cube, unit_square_tri):
    eps = 1e-6
    for mesh in _sample_meshes() + [kuhn_cube, unit_square_tri]:
        cell = mesh.cell(0)
        cb = make_scalar_monomial_basis(mesh, cell, 3)
        x0 = barycenter(mesh, cell) + 0.05 * np.linspace(1.0, -1.0, mesh.dim)
        grads = cb.eval_gradients(x0)
        assert grads.shape == (cb.size, mesh.dim)
        for i in range(mesh.dim):
            e = np.zeros(mesh.dim)
            e[i] = eps
            fd = (cb.eval_functions(x0 + e) - cb.eval_functions(x0 - e)) / (2 * eps)
            assert np.allclose(grads[:, i], fd, atol=1e-6)


def test_batch_matches_single_points(unit_square_tri):
    cell = unit_square_tri.cell(3)
    cb = make_scalar_monomial_basis(unit_square_tri, cell, 2)
    pts = points(unit_square_tri, cell)
    batch = cb.eval_functions(pts)
    gbatch = cb.eval_gradients(pts)
    for i, p in enumerate(pts):
        assert np.allclose(batch[i], cb.eval_functions(p), rtol=1e-14, atol=0.0)
        assert np.allclose(gbatch[i], cb.eval_gradients(p), rtol=1e-14, atol=0.0)


def test_construction_is_idempotent(kuhn_cube):
    cell = kuhn_cube.cell(2)
    pts = points(kuhn_cube, cell)
    a = make_scalar_monomial_basis(kuhn_cube, cell, 3)
    b = make_scalar_monomial_basis(kuhn_cube, cell, 3)
    assert np.array_equal(a.eval_functions(pts), b.eval_functions(pts))
    assert np.array_equal(a.eval_gradients(pts), b.eval_gradients(pts))
    fc = kuhn_cube.faces_of(cell)[0]
    fa = make_scalar_monomial_basis(kuhn_cube, fc, 2)
    fb = make_scalar_monomial_basis(kuhn_cube, fc, 2)
    assert np.array_equal(fa.eval_functions(points(kuhn_cube, fc)),
                          fb.eval_functions(points(kuhn_cube, fc)))


def test_curls2(unit_square_tri):
    cb = make_scalar_monomial_basis(unit_square_tri, unit_square_tri.cell(0), 2)
    x = np.array([0.3, 0.1])
    g = cb.eval_gradients(x)
    c = cb.eval_curls2(x)
    assert np.allclose(c[:, 0], g[:, 1]) and np.allclose(c[:, 1], -g[:, 0])


def test_basis_is_read_only():
    cb = ScaledMonomialBasis([0.0, 0.0], [1.0, 1.0], 2)
    with pytest.raises(ValueError):
        cb.barycenter[0] = 1.0
    with pytest.raises(ValueError):
        ScaledMonomialBasis([0.0, 0.0], [1.0, 0.0], 2)


def test_negative_degree_is_unsupported(unit_square_tri):
    with pytest.raises(UnsupportedDegree):
        make_scalar_monomial_basis(unit_square_tri, unit_square_tri.cell(0), -1)


# -------------------------------------------------------------------------
# face bases
# -------------------------------------------------------------------------
def test_point_face_basis():
    mesh = Mesh(*uniform_interval(0.0, 1.0, 2))
    fb = make_scalar_monomial_basis(mesh, mesh.face(0), 3)
    assert isinstance(fb, PointFaceBasis)
    assert fb.size == 1
    assert np.allclose(fb.eval_functions([0.0]), [1.0])


def test_legendre_face_basis(unit_square_tri):
    fc = unit_square_tri.face(0)
    fb = make_scalar_monomial_basis(unit_square_tri, fc, 5)
    assert isinstance(fb, LegendreFaceBasis) and fb.size == 6
    # orthonormal in L2(face)
    assert np.allclose(make_mass_matrix(unit_square_tri, fc, fb), np.eye(6), atol=1e-12)

    p0, p1 = points(unit_square_tri, fc)
    h = diameter(unit_square_tri, fc)
    t = np.linspace(0.0, 1.0, 7)
    pts = p0 + t[:, None] * (p1 - p0)
    vals = fb.eval_functions(pts)
    for n in range(6):
        c = np.zeros(n + 1)
        c[n] = 1.0
        expected = npleg.legval(2 * t - 1, c) * np.sqrt((2 * n + 1) / 2) * np.sqrt(2 / h)
        assert np.allclose(vals[:, n], expected)


def test_legendre_degree_limit(unit_square_tri):
    fc = unit_square_tri.face(0)
    assert make_scalar_monomial_basis(unit_square_tri, fc, 10).size == 11
    with pytest.raises(UnsupportedDegree):
        make_scalar_monomial_basis(unit_square_tri, fc, 11)


def test_edge_monomial_family(unit_square_tri):
    fc = unit_square_tri.face(0)
    fb = make_scalar_monomial_basis(unit_square_tri, fc, 2, family="monomial")
    assert isinstance(fb, EdgeMonomialBasis)
    p0, p1 = points(unit_square_tri, fc)
    assert np.allclose(fb.eval_functions(p0), [1.0, -1.0, 1.0])
    assert np.allclose(fb.eval_functions(p1), [1.0, 1.0, 1.0])
    assert np.allclose(fb.eval_functions(barycenter(unit_square_tri, fc)), [1.0, 0.0, 0.0])


def test_3d_face_basis(kuhn_cube):
    fc = kuhn_cube.face(0)
    fb = make_scalar_monomial_basis(kuhn_cube, fc, 2)
    assert isinstance(fb, FaceMonomialBasis3D) and fb.size == 6
    assert np.allclose(fb.eval_functions(barycenter(kuhn_cube, fc)), [1, 0, 0, 0, 0, 0])
    mass = make_mass_matrix(kuhn_cube, fc, fb)
    assert np.all(np.linalg.eigvalsh(mass) > 0.0)
    with pytest.raises(ValueError):
        make_scalar_monomial_basis(kuhn_cube, fc, 2, family="legendre")


def test_basis_config(unit_square_tri):
    cell = unit_square_tri.cell(0)
    cb = make_scalar_monomial_basis(unit_square_tri, cell, BasisConfig(kind="cell", degree=2))
    assert cb.size == 6
    with pytest.raises(ValueError):
        make_scalar_monomial_basis(unit_square_tri, cell, BasisConfig(kind="face", degree=2))
    with pytest.raises(ValueError):
        BasisConfig(kind="edge", degree=1)
    with pytest.raises(ValueError):
        BasisConfig(kind="cell", degree=1, dtype=np.int64)


# -------------------------------------------------------------------------
# reference frames
# -------------------------------------------------------------------------
def test_reference_frame_first_admissible_vertex():
    square = np.array([[0, 0, 0], [1, 0, 0], [1, 1, 0], [0, 1, 0]], dtype=float)
    fr = ReferenceFrame.from_points(square, square.mean(axis=0), np.sqrt(2))
    assert np.allclose(fr.e0, [0, 1, 0]) and np.allclose(fr.e1, [-1, 0, 0])

    # a nearly straight angle at vertex 1 is still below the threshold
    bent = np.array([[0, 0, 0], [1, 0, 0], [2, 0.1, 0], [1, 2, 0]], dtype=float)
    fr = ReferenceFrame.from_points(bent, bent.mean(axis=0), 2.0)
    assert np.allclose(fr.e0, np.array([1.0, 0.1, 0.0]) / np.sqrt(1.01))
    assert np.isclose(np.dot(fr.e0, fr.e1), 0.0, atol=1e-15)
    assert fr.e1[1] > 0.0

    # an exactly straight angle at vertex 1 leaves no second tangent
    flat = np.array([[0, 0, 0], [1, 0, 0], [2, 0, 0], [2, 1, 0]], dtype=float)
    with pytest.raises(DegenerateElementError):
        ReferenceFrame.from_points(flat, flat.mean(axis=0), np.sqrt(5))


def test_reference_frame_is_orthonormal_isometry(rng):
    tri = np.array([[0.1, 0.2, 0.3], [1.2, 0.4, -0.1], [0.5, 1.1, 0.7]])
    bar = tri.mean(axis=0)
    h = 1.5
    fr = ReferenceFrame.from_points(tri, bar, h)
    assert np.isclose(np.dot(fr.e0, fr.e1), 0.0, atol=1e-15)
    assert np.isclose(np.linalg.norm(fr.e0), 1.0) and np.isclose(np.linalg.norm(fr.e1), 1.0)
    w = rng.dirichlet(np.ones(3), size=5) @ tri
    m = fr.map_to_face(w)
    d3 = np.linalg.norm(w[0] - w[1:], axis=1)
    d2 = np.linalg.norm(m[0] - m[1:], axis=1) * 0.5 * h
    assert np.allclose(d2, d3)


def test_degenerate_face_frame():
    collinear = np.array([[0, 0, 0], [1, 1, 1], [2, 2, 2]], dtype=float)
    with pytest.raises(DegenerateElementError):
        ReferenceFrame.from_points(collinear, collinear.mean(axis=0), 2 * np.sqrt(3))
    repeated = np.array([[0, 0, 0], [0, 0, 0], [1, 0, 0]], dtype=float)
    with pytest.raises(DegenerateElementError):
        ReferenceFrame.from_points(repeated, repeated.mean(axis=0), 1.0)


def test_degenerate_face_in_mesh():
    pts = [[0, 0, 0], [1, 0, 0], [2, 0, 0], [0, 0, 1]]
    mesh = Mesh(pts, [(0, 1, 2, 3)])
    fc = mesh.face(0)
    assert set(fc.vertices) == {0, 1, 2}
    with pytest.raises(DegenerateElementError):
        make_scalar_monomial_basis(mesh, fc, 1)


@pytest.mark.parametrize("dtype", [np.float32, np.float64])
def test_basis_scalar_type(dtype, unit_square_tri, kuhn_cube):
    interval = Mesh(*uniform_interval(0.0, 1.0, 2))
    cases = [
        (unit_square_tri, unit_square_tri.cell(0), "cell", None),
        (kuhn_cube, kuhn_cube.cell(0), "cell", None),
        (unit_square_tri, unit_square_tri.face(0), "face", None),
        (unit_square_tri, unit_square_tri.face(0), "face", "monomial"),
        (kuhn_cube, kuhn_cube.face(0), "face", None),
        (interval, interval.face(0), "face", None),
    ]
    for mesh, elem, kind, family in cases:
        cfg = BasisConfig(kind=kind, degree=2, dtype=dtype, family=family)
        basis = make_scalar_monomial_basis(mesh, elem, cfg)
        pts = points(mesh, elem)
        vals = basis.eval_functions(pts)
        assert vals.dtype == dtype
        assert basis.eval_functions(pts[0]).dtype == dtype
        ref = make_scalar_monomial_basis(mesh, elem, 2, family=family).eval_functions(pts)
        assert np.allclose(vals, ref, rtol=1e-6, atol=1e-6)
        if kind == "cell":
            assert basis.eval_gradients(pts).dtype == dtype
