"""pyhho.utils.conditioning
Conditioning of local basis matrices and of assembled systems.
"""
import logging
from typing import Dict, Iterable, Tuple

import numpy as np

from pyhho.bases import make_scalar_monomial_basis
from pyhho.hho.operators import make_mass_matrix, make_stiffness_matrix
from pyhho.solvers import extreme_eigenvalues

logger = logging.getLogger(__name__)


def basis_conditioning(mesh, cell, degree: int) -> Tuple[float, float]:
    """
    2-norm condition numbers of the cell mass matrix and of the stiffness
    matrix restricted to the non-constant functions.
    """
    basis = make_scalar_monomial_basis(mesh, cell, degree)
    mass = make_mass_matrix(mesh, cell, basis)
    stiff = make_stiffness_matrix(mesh, cell, basis)[1:, 1:]
    return float(np.linalg.cond(mass)), float(np.linalg.cond(stiff))


def conditioning_study(mesh, degrees: Iterable[int] = range(1, 6)) -> Dict[int, np.ndarray]:
    """Per degree, an ``(n_cells, 2)`` array of (mass, stiffness) condition numbers."""
    out = {}
    for k in degrees:
        out[k] = np.array([basis_conditioning(mesh, cl, k) for cl in mesh])
        logger.info("Degree %d: max mass cond %.3e, max stiff cond %.3e",
                    k, out[k][:, 0].max(), out[k][:, 1].max())
    return out


def spectral_condition_number(A) -> float:
    """``lambda_max / lambda_min`` of a symmetric positive definite sparse matrix."""
    lmin, lmax = extreme_eigenvalues(A)
    return lmax / lmin
