"""pyhho.solvers.linear
Thin wrappers around the scipy sparse solvers used for the condensed
global system.
"""
import logging
import time
import warnings
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from pyhho.core.errors import SolverFailure

logger = logging.getLogger(__name__)

BACKENDS = ("scipy", "splu", "cg", "gmres", "bicgstab")


@dataclass
class LinearSolverParameters:
    """Sparse linear solver settings."""

    backend: str = "scipy"              # spsolve; "splu" or a Krylov method
    tol: float = 1e-12                  # relative residual for Krylov methods
    maxit: int = 10_000

    def __post_init__(self):
        self.backend = self.backend.lower()
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown linear solver backend '{self.backend}'.")


def _check_finite(x: np.ndarray, backend: str) -> np.ndarray:
    if not np.all(np.isfinite(x)):
        raise SolverFailure(f"{backend}: solution contains non-finite values (singular matrix?)")
    return x


def _solve_direct(A: sp.csr_matrix, b: np.ndarray) -> np.ndarray:
    with warnings.catch_warnings():
        warnings.simplefilter("error", spla.MatrixRankWarning)
        try:
            x = spla.spsolve(A.tocsc(), b)
        except spla.MatrixRankWarning as exc:
            raise SolverFailure(f"spsolve: {exc}") from exc
    return np.atleast_1d(x)


def _solve_splu(A: sp.csr_matrix, b: np.ndarray) -> np.ndarray:
    try:
        lu = spla.splu(A.tocsc())
    except RuntimeError as exc:
        raise SolverFailure(f"splu: {exc}") from exc
    return lu.solve(b)


_KRYLOV = {"cg": spla.cg, "gmres": spla.gmres, "bicgstab": spla.bicgstab}


def _solve_krylov(A: sp.csr_matrix, b: np.ndarray, lp: LinearSolverParameters) -> np.ndarray:
    x, info = _KRYLOV[lp.backend](A, b, rtol=lp.tol, atol=0.0, maxiter=lp.maxit)
    if info > 0:
        raise SolverFailure(f"{lp.backend}: no convergence to rtol={lp.tol} after {info} iterations")
    if info < 0:
        raise SolverFailure(f"{lp.backend}: illegal input or breakdown (info={info})")
    return x


def solve(A: sp.spmatrix, b: np.ndarray, lp: Optional[LinearSolverParameters] = None) -> np.ndarray:
    """Solve ``A x = b``; raises :class:`SolverFailure` instead of returning garbage."""
    lp = lp or LinearSolverParameters()
    A = sp.csr_matrix(A)
    b = np.asarray(b, dtype=float)
    if A.shape[0] != A.shape[1] or A.shape[0] != b.shape[0]:
        raise ValueError(f"Incompatible system: A is {A.shape}, b is {b.shape}.")
    if A.shape[0] == 0:
        return np.zeros(0)

    t0 = time.perf_counter()
    if lp.backend == "scipy":
        x = _solve_direct(A, b)
    elif lp.backend == "splu":
        x = _solve_splu(A, b)
    else:
        x = _solve_krylov(A, b, lp)
    x = _check_finite(x, lp.backend)
    logger.info("Linear solve (%s, n=%d): %.3f s", lp.backend, A.shape[0], time.perf_counter() - t0)
    return x


def extreme_eigenvalues(A: sp.spmatrix, tol: float = 1e-8) -> Tuple[float, float]:
    """Smallest and largest eigenvalue of a symmetric positive definite matrix."""
    A = sp.csc_matrix(A)
    if A.shape[0] <= 2:
        ev = np.linalg.eigvalsh(A.toarray())
        return float(ev[0]), float(ev[-1])
    try:
        lmax = spla.eigsh(A, k=1, which="LA", tol=tol, return_eigenvectors=False)[0]
        lmin = spla.eigsh(A, k=1, sigma=0.0, which="LM", tol=tol, return_eigenvectors=False)[0]
    except (spla.ArpackNoConvergence, RuntimeError) as exc:
        raise SolverFailure(f"eigsh: {exc}") from exc
    return float(lmin), float(lmax)
