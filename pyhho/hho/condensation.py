"""pyhho.hho.condensation
Static condensation of the cell unknowns.

For a local system split into a cell block ``T`` and a face block ``F``

    [ A_TT  A_TF ] [u_T]   [L_T]
    [ A_FT  A_FF ] [u_F] = [L_F]

the cell unknowns are eliminated exactly through the Schur complement
``S = A_FF - A_FT A_TT^-1 A_TF``.
"""
from typing import Callable, Tuple

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve, lu_factor, lu_solve

from pyhho.core.errors import SingularLocalSystem

_METHODS = ("cholesky", "lu")


def _factorize(A_TT: np.ndarray, method: str) -> Callable[[np.ndarray], np.ndarray]:
    """Return ``b -> A_TT^-1 b``."""
    if method == "cholesky":
        try:
            fact = cho_factor(A_TT)
        except LinAlgError as exc:
            raise SingularLocalSystem(f"Cell block is not positive definite: {exc}") from exc
        return lambda b: cho_solve(fact, b)
    if method == "lu":
        lu, piv = lu_factor(A_TT, check_finite=True)
        pivots = np.abs(np.diag(lu))
        if pivots.size and pivots.min() <= np.finfo(float).eps * pivots.max() * len(pivots):
            raise SingularLocalSystem("Cell block is singular (zero pivot in LU factorization).")
        return lambda b: lu_solve((lu, piv), b)
    raise ValueError(f"Unknown factorization {method!r}; expected one of {_METHODS}")


def _split(lhs: np.ndarray, rhs: np.ndarray, num_cell_dofs: int):
    n = lhs.shape[0]
    if lhs.shape != (n, n):
        raise ValueError(f"Local matrix must be square, got {lhs.shape}.")
    if not 0 < num_cell_dofs <= n:
        raise ValueError(f"Invalid number of cell dofs {num_cell_dofs} for size {n}.")
    rhs = np.asarray(rhs, dtype=float)
    if rhs.shape[0] == num_cell_dofs:
        rhs = np.concatenate([rhs, np.zeros(n - num_cell_dofs)])
    elif rhs.shape[0] != n:
        raise ValueError(f"Local rhs has size {rhs.shape[0]}, expected {num_cell_dofs} or {n}.")
    t = num_cell_dofs
    return lhs[:t, :t], lhs[:t, t:], lhs[t:, :t], lhs[t:, t:], rhs[:t], rhs[t:]


def static_condensation_compute(lhs: np.ndarray, rhs: np.ndarray, num_cell_dofs: int,
                                method: str = "cholesky") -> Tuple[np.ndarray, np.ndarray]:
    """
    Reduce a local system to its face unknowns.

    ``rhs`` may hold only the cell part (faces then get a zero load).
    Returns ``(S, r)`` with ``r = L_F - A_FT A_TT^-1 L_T``.
    """
    A_TT, A_TF, A_FT, A_FF, L_T, L_F = _split(lhs, rhs, num_cell_dofs)
    solve_TT = _factorize(A_TT, method)
    AL = solve_TT(A_TF)
    bL = solve_TT(L_T)
    return A_FF - A_FT @ AL, L_F - A_FT @ bL


def static_condensation_recover(lhs: np.ndarray, rhs: np.ndarray, num_cell_dofs: int,
                                face_solution: np.ndarray, method: str = "cholesky") -> np.ndarray:
    """Full local solution ``[u_T; u_F]`` from the face unknowns ``u_F``."""
    A_TT, A_TF, _, _, L_T, _ = _split(lhs, rhs, num_cell_dofs)
    face_solution = np.asarray(face_solution, dtype=float)
    if face_solution.shape != (A_TF.shape[1],):
        raise ValueError(f"Face solution has shape {face_solution.shape}, expected ({A_TF.shape[1]},).")
    u_T = _factorize(A_TT, method)(L_T - A_TF @ face_solution)
    return np.concatenate([u_T, face_solution])
