"""pyhho.integration.quadrature
Quadrature provider for mesh elements of any dimension (points, segments,
polygons, polyhedra).  Rules are exact for polynomials up to the requested
degree on every simplex of the element's decomposition.
"""
from functools import lru_cache
from typing import Callable, Tuple

import numba as nb
import numpy as np
from numpy.polynomial.legendre import leggauss

from pyhho.core.geometry import element_dim, simplex_measure, simplices


# -------------------------------------------------------------------------
# 1-D Gauss-Legendre
# -------------------------------------------------------------------------
def gauss_legendre(order: int):
    if order < 1:
        raise ValueError(order)
    return leggauss(order)  # (points, weights)


def _gl01(order: int):
    """Gauss-Legendre nodes and weights mapped to [0,1]."""
    xi, w = gauss_legendre(int(order))
    return 0.5 * (xi + 1.0), 0.5 * w


def _num_points(degree: int, collapsed: bool) -> int:
    # n Gauss points integrate degree 2n-1; a collapsed direction adds
    # one or two to the polynomial degree through the Jacobian.
    return max(degree, 0) // 2 + (2 if collapsed else 1)


# -------------------------------------------------------------------------
# Reference rules
# -------------------------------------------------------------------------
@lru_cache(maxsize=None)
def segment_rule(degree: int):
    """Rule on [0,1]."""
    return _gl01(_num_points(degree, collapsed=False))


@lru_cache(maxsize=None)
def tri_rule(degree: int):
    """Collapsed Gauss rule on the triangle (0,0)-(1,0)-(0,1)."""
    u, w_u = _gl01(_num_points(degree, collapsed=True))
    pts, wts = [], []
    for i, ui in enumerate(u):
        for j, vj in enumerate(u):
            pts.append([ui, vj * (1.0 - ui)])
            wts.append(w_u[i] * w_u[j] * (1.0 - ui))
    return np.array(pts), np.array(wts)


@lru_cache(maxsize=None)
def tet_rule(degree: int):
    """Collapsed Gauss rule on the unit tetrahedron."""
    u, w_u = _gl01(_num_points(degree, collapsed=True))
    pts, wts = [], []
    for i, ui in enumerate(u):
        for j, vj in enumerate(u):
            for k, wk in enumerate(u):
                pts.append([ui, vj * (1.0 - ui), wk * (1.0 - ui) * (1.0 - vj)])
                wts.append(w_u[i] * w_u[j] * w_u[k] * (1.0 - ui) ** 2 * (1.0 - vj))
    return np.array(pts), np.array(wts)


_REFERENCE_RULES = {1: segment_rule, 2: tri_rule, 3: tet_rule}
_REFERENCE_MEASURE = {1: 1.0, 2: 0.5, 3: 1.0 / 6.0}


@nb.njit(cache=True, fastmath=True)
def _map_simplex_rule(verts, ref_pts, ref_wts, scale):
    """x = v0 + sum_i r_i (v_{i+1} - v0), weights scaled by |S| / |S_ref|."""
    nq, k = ref_pts.shape
    d = verts.shape[1]
    pts = np.empty((nq, d))
    for q in range(nq):
        for c in range(d):
            x = verts[0, c]
            for i in range(k):
                x += ref_pts[q, i] * (verts[i + 1, c] - verts[0, c])
            pts[q, c] = x
    return pts, ref_wts * scale


def simplex_quadrature(verts: np.ndarray, degree: int) -> Tuple[np.ndarray, np.ndarray]:
    """Rule on the simplex with vertex rows ``verts`` in physical space."""
    k = len(verts) - 1
    if k == 0:
        return np.array(verts, dtype=float), np.ones(1)
    ref_pts, ref_wts = _REFERENCE_RULES[k](int(degree))
    if k == 1:
        ref_pts = ref_pts[:, None]
    scale = simplex_measure(verts) / _REFERENCE_MEASURE[k]
    return _map_simplex_rule(np.ascontiguousarray(verts, dtype=float),
                             np.ascontiguousarray(ref_pts, dtype=float),
                             np.ascontiguousarray(ref_wts, dtype=float), scale)


# -------------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------------
def integrate(mesh, elem, degree: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Quadrature points and weights on a mesh cell or face.

    Returns ``(points, weights)`` with points of shape ``(n, mesh.dim)`` in
    physical coordinates; ``sum(weights * p(points))`` is exact for every
    polynomial ``p`` of total degree ``<= degree``.  A point face (1D mesh)
    yields its vertex with unit weight.
    """
    if degree < 0:
        raise ValueError(f"Quadrature degree must be non-negative, got {degree}.")
    if element_dim(mesh, elem) == 0:
        return mesh.points[list(elem.vertices)].copy(), np.ones(1)
    rules = [simplex_quadrature(s, degree) for s in simplices(mesh, elem)]
    if len(rules) == 1:
        return rules[0]
    return np.vstack([r[0] for r in rules]), np.concatenate([r[1] for r in rules])


def values_at(func: Callable, pts: np.ndarray) -> np.ndarray:
    """Evaluate a scalar function ``func(x[, y[, z]])`` at each row of ``pts``."""
    return np.array([func(*p) for p in pts], dtype=float)
