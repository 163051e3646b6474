"""pyhho.bases.monomial
Scaled monomial bases on cells and faces.

A cell basis of degree ``k`` in ``d`` dimensions holds ``C(k+d, d)``
functions ``prod_i xt_i**p_i`` with ``xt = (x - bar) / (0.5 * box_h)``.
Entries are ordered by degree blocks ``m = 0..k``; inside a block the first
exponent runs downward.  Callers index basis entries positionally, so this
ordering must not change.  In 3D ``px`` runs down from ``m`` and ``py`` down
from ``m - px``; codes that run ``px`` upward store the same space in a
different order, so 3D coefficient vectors do not carry over between them.
"""
from math import comb
from typing import Tuple

import numba as nb
import numpy as np

from pyhho.core.errors import UnsupportedDegree


@nb.vectorize(["float64(float64, int64)"], cache=True)
def iexp_pow(x, n):
    """``x**n`` for integer ``n >= 0`` by iterated squaring; ``0**0 == 1``."""
    if n == 0:
        return 1.0
    y = 1.0
    while n > 1:
        if n % 2 == 0:
            x = x * x
            n = n // 2
        else:
            y = x * y
            x = x * x
            n = (n - 1) // 2
    return x * y


def scalar_basis_size(degree: int, dim: int) -> int:
    """Number of monomials of total degree ``<= degree`` in ``dim`` variables."""
    if degree < 0 or dim < 0:
        raise ValueError(f"Invalid (degree, dim) = ({degree}, {dim}).")
    return comb(degree + dim, dim)


def monomial_powers(degree: int, dim: int) -> np.ndarray:
    """Exponent table of shape ``(scalar_basis_size(degree, dim), dim)``."""
    rows = []
    for m in range(degree + 1):
        if dim == 0:
            rows.append(())
            break
        if dim == 1:
            rows.append((m,))
        elif dim == 2:
            rows.extend((m - i, i) for i in range(m + 1))
        elif dim == 3:
            for px in range(m, -1, -1):
                for py in range(m - px, -1, -1):
                    rows.append((px, py, m - px - py))
        else:
            raise ValueError(f"Unsupported dimension {dim}.")
    return np.array(rows, dtype=np.int64).reshape(len(rows), dim)


def _as_points(pt, dim: int) -> Tuple[np.ndarray, bool]:
    """Coerce ``pt`` into a ``(n, dim)`` batch; report whether it was a single point."""
    a = np.asarray(pt, dtype=float)
    if a.ndim == 0:
        a = a.reshape(1)
    if a.ndim == 1:
        if a.shape[0] != dim:
            raise ValueError(f"Expected a point with {dim} coordinates, got {a.shape[0]}.")
        return a[None, :], True
    if a.ndim != 2 or a.shape[1] != dim:
        raise ValueError(f"Expected points of shape (n, {dim}), got {a.shape}.")
    return a, False


def _check_degree(degree) -> int:
    if int(degree) != degree or degree < 0:
        raise UnsupportedDegree(f"Polynomial degree must be a non-negative integer, got {degree}.")
    return int(degree)


def eval_monomials(xt: np.ndarray, powers: np.ndarray) -> np.ndarray:
    """Monomials at rescaled coordinates ``xt`` (n, d) -> (n, size)."""
    if powers.shape[1] == 0:
        return np.ones((xt.shape[0], powers.shape[0]))
    return np.prod(iexp_pow(xt[:, None, :], powers[None, :, :]), axis=2)


class ScaledMonomialBasis:
    """
    Scaled monomial basis on a mesh cell.

    The basis only remembers the geometric anchor (barycenter and bounding
    box extents) of its element, so it can be evaluated anywhere; values
    are only meaningful on the element closure.
    """
    def __init__(self, barycenter, box_h, degree: int, dtype=np.float64):
        self.dtype = np.dtype(dtype)
        self._bar = np.array(barycenter, dtype=float).reshape(-1)
        self._box_h = np.array(box_h, dtype=float).reshape(-1)
        if self._bar.shape != self._box_h.shape:
            raise ValueError("Barycenter and bounding box must have the same dimension.")
        if np.any(self._box_h <= 0.0):
            raise ValueError(f"Bounding box extents must be positive, got {self._box_h}.")
        self._degree = _check_degree(degree)
        self._powers = monomial_powers(self._degree, self._bar.size)
        self._bar.setflags(write=False)
        self._box_h.setflags(write=False)
        self._powers.setflags(write=False)

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def dim(self) -> int:
        return self._bar.size

    @property
    def size(self) -> int:
        return self._powers.shape[0]

    @property
    def barycenter(self) -> np.ndarray:
        return self._bar

    @property
    def powers(self) -> np.ndarray:
        return self._powers

    def _rescale(self, pt):
        pts, single = _as_points(pt, self.dim)
        return (pts - self._bar) / (0.5 * self._box_h), single

    def eval_functions(self, pt) -> np.ndarray:
        """Values at one point ``(size,)`` or a batch of points ``(n, size)``."""
        xt, single = self._rescale(pt)
        vals = eval_monomials(xt, self._powers).astype(self.dtype, copy=False)
        return vals[0] if single else vals

    def eval_gradients(self, pt) -> np.ndarray:
        """Gradients, ``(size, d)`` for one point or ``(n, size, d)`` for a batch."""
        xt, single = self._rescale(pt)
        P = self._powers[None, :, :]
        X = xt[:, None, :]
        pw = iexp_pow(X, P)
        dpw = np.where(P > 0, P * (2.0 / self._box_h) * iexp_pow(X, np.maximum(P - 1, 0)), 0.0)
        grads = np.empty(pw.shape)
        for i in range(self.dim):
            g = dpw[..., i]
            for j in range(self.dim):
                if j != i:
                    g = g * pw[..., j]
            grads[..., i] = g
        grads = grads.astype(self.dtype, copy=False)
        return grads[0] if single else grads

    def eval_curls2(self, pt) -> np.ndarray:
        """Rotated gradients ``(dphi/dy, -dphi/dx)`` of a 2D basis."""
        if self.dim != 2:
            raise ValueError("Curls are only defined for 2D cell bases.")
        g = self.eval_gradients(pt)
        return np.stack([g[..., 1], -g[..., 0]], axis=-1)

    def __repr__(self):
        return f"ScaledMonomialBasis(dim={self.dim}, degree={self.degree}, size={self.size})"


class PointFaceBasis:
    """Basis on the point faces of a 1D mesh: the constant 1 for any degree."""
    dim = 0

    def __init__(self, degree: int, dtype=np.float64):
        self._degree = _check_degree(degree)
        self.dtype = np.dtype(dtype)

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def size(self) -> int:
        return 1

    def eval_functions(self, pt) -> np.ndarray:
        a = np.asarray(pt, dtype=float)
        if a.ndim <= 1:
            return np.ones(1, dtype=self.dtype)
        return np.ones((a.shape[0], 1), dtype=self.dtype)


class EdgeMonomialBasis:
    """
    Scaled monomial basis ``ep**i`` on a segment face of a 2D mesh.

    ``ep = 4 ((x - bar) . (bar - p0)) / h**2`` runs from -1 at ``p0`` to 1
    at the other endpoint.
    """
    dim = 1

    def __init__(self, barycenter, first_point, diameter: float, degree: int, dtype=np.float64):
        self.dtype = np.dtype(dtype)
        self._bar = np.array(barycenter, dtype=float)
        self._base = self._bar - np.asarray(first_point, dtype=float)
        self._h = float(diameter)
        if self._h <= 0.0:
            raise ValueError("Face diameter must be positive.")
        self._degree = _check_degree(degree)

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def size(self) -> int:
        return self._degree + 1

    def _coordinate(self, pt):
        pts, single = _as_points(pt, self._bar.size)
        return 4.0 * ((pts - self._bar) @ self._base) / (self._h * self._h), single

    def eval_functions(self, pt) -> np.ndarray:
        ep, single = self._coordinate(pt)
        vals = iexp_pow(ep[:, None], np.arange(self.size, dtype=np.int64)[None, :])
        vals = vals.astype(self.dtype, copy=False)
        return vals[0] if single else vals


class FaceMonomialBasis3D:
    """
    2D scaled monomial basis on a planar face of a 3D mesh.

    Points are first mapped to face coordinates by a
    :class:`~pyhho.bases.frame.ReferenceFrame`.
    """
    dim = 2

    def __init__(self, frame, degree: int, dtype=np.float64):
        self.dtype = np.dtype(dtype)
        self.frame = frame
        self._degree = _check_degree(degree)
        self._powers = monomial_powers(self._degree, 2)

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def size(self) -> int:
        return self._powers.shape[0]

    def eval_functions(self, pt) -> np.ndarray:
        pts, single = _as_points(pt, 3)
        vals = eval_monomials(self.frame.map_to_face(pts), self._powers)
        vals = vals.astype(self.dtype, copy=False)
        return vals[0] if single else vals
