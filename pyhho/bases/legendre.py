"""pyhho.bases.legendre
Legendre basis on the segment faces of 2D meshes.
"""
import numpy as np

from pyhho.bases.monomial import _as_points, _check_degree, iexp_pow
from pyhho.core.errors import UnsupportedDegree

# P_n(x) = sum_i LEGENDRE_COEFFS[n][0][i] * x**i / LEGENDRE_COEFFS[n][1]
LEGENDRE_COEFFS = (
    ((1,), 1),
    ((0, 1), 1),
    ((-1, 0, 3), 2),
    ((0, -3, 0, 5), 2),
    ((3, 0, -30, 0, 35), 8),
    ((0, 15, 0, -70, 0, 63), 8),
    ((-5, 0, 105, 0, -315, 0, 231), 16),
    ((0, -35, 0, 315, 0, -693, 0, 429), 16),
    ((35, 0, -1260, 0, 6930, 0, -12012, 0, 6435), 128),
    ((0, 315, 0, -4620, 0, 18018, 0, -25740, 0, 12155), 128),
    ((-63, 0, 3465, 0, -30030, 0, 90090, 0, -109395, 0, 46189), 256),
)
MAX_LEGENDRE_DEGREE = len(LEGENDRE_COEFFS) - 1


def _coefficient_matrix(degree: int) -> np.ndarray:
    """Row ``i``: power coefficients of the normalized ``P_i`` on [-1, 1]."""
    C = np.zeros((degree + 1, degree + 1))
    for n in range(degree + 1):
        num, den = LEGENDRE_COEFFS[n]
        C[n, :n + 1] = np.array(num, dtype=float) / den / np.sqrt(2.0 / (2 * n + 1))
    return C


class LegendreFaceBasis:
    """
    Orthonormal Legendre basis on a segment face.

    Uses the same ``ep`` coordinate as
    :class:`~pyhho.bases.monomial.EdgeMonomialBasis`; the functions are
    ``P_n(ep) / sqrt(2 / (2n + 1)) * sqrt(2 / h)``, orthonormal in
    ``L2(face)``.
    """
    dim = 1

    def __init__(self, barycenter, first_point, diameter: float, degree: int, dtype=np.float64):
        degree = _check_degree(degree)
        if degree > MAX_LEGENDRE_DEGREE:
            raise UnsupportedDegree(
                f"Legendre face bases are tabulated up to degree {MAX_LEGENDRE_DEGREE}, "
                f"got {degree}.")
        self._bar = np.array(barycenter, dtype=float)
        self._base = self._bar - np.asarray(first_point, dtype=float)
        self._h = float(diameter)
        if self._h <= 0.0:
            raise ValueError("Face diameter must be positive.")
        self._degree = degree
        self.dtype = np.dtype(dtype)
        self._coeffs = _coefficient_matrix(degree) * np.sqrt(2.0 / self._h)

    @property
    def degree(self) -> int:
        return self._degree

    @property
    def size(self) -> int:
        return self._degree + 1

    def eval_functions(self, pt) -> np.ndarray:
        pts, single = _as_points(pt, self._bar.size)
        ep = 4.0 * ((pts - self._bar) @ self._base) / (self._h * self._h)
        pows = iexp_pow(ep[:, None], np.arange(self.size, dtype=np.int64)[None, :])
        vals = (pows @ self._coeffs.T).astype(self.dtype, copy=False)
        return vals[0] if single else vals
