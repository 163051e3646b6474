"""pyhho.hho.operators
Local HHO operators for the scalar Laplacian.

Local unknowns of a cell are ordered as the cell basis coefficients
followed by one block of face basis coefficients per face, in the order
of :meth:`Mesh.faces_of`.  Every function here is pure: it builds bases
and quadrature on the fly and returns dense numpy arrays.
"""
import logging
from typing import Callable, Tuple

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve

from pyhho.bases import face_basis_size, make_scalar_monomial_basis, scalar_basis_size
from pyhho.core.errors import SingularLocalSystem
from pyhho.core.geometry import diameter, normal
from pyhho.hho.degree_info import DegreeInfo
from pyhho.integration import integrate, values_at

logger = logging.getLogger(__name__)


def _cho_factor(A: np.ndarray, what: str):
    try:
        return cho_factor(A)
    except LinAlgError as exc:
        raise SingularLocalSystem(f"Cholesky factorization of the {what} failed: {exc}") from exc


def local_dofs(mesh, cell, di: DegreeInfo) -> Tuple[int, int, int]:
    """``(cell block size, face block size, total local size)``."""
    cbs = scalar_basis_size(di.cell, mesh.dim)
    fbs = face_basis_size(di.face, mesh.dim)
    return cbs, fbs, cbs + len(cell.faces) * fbs


def face_scale(mesh, cell, face) -> float:
    """Length scale used by the face penalties; point faces use the cell size."""
    hf = diameter(mesh, face)
    return hf if hf > 0.0 else diameter(mesh, cell)


# -------------------------------------------------------------------------
# Mass, stiffness and load
# -------------------------------------------------------------------------
def make_mass_matrix(mesh, elem, basis, degree_extra: int = 0) -> np.ndarray:
    """``M_ij = int phi_i phi_j`` on a cell or a face."""
    pts, wts = integrate(mesh, elem, 2 * basis.degree + degree_extra)
    phi = basis.eval_functions(pts)
    return (phi * wts[:, None]).T @ phi


def make_stiffness_matrix(mesh, cell, basis) -> np.ndarray:
    """``K_ij = int grad phi_i . grad phi_j`` on a cell."""
    pts, wts = integrate(mesh, cell, max(2 * basis.degree - 2, 0))
    dphi = basis.eval_gradients(pts)
    return np.einsum("q,qid,qjd->ij", wts, dphi, dphi)


def make_rhs(mesh, elem, basis, f: Callable, degree_extra: int = 2) -> np.ndarray:
    """``b_i = int f phi_i``; ``f`` is called as ``f(x[, y[, z]])``."""
    pts, wts = integrate(mesh, elem, 2 * basis.degree + degree_extra)
    phi = basis.eval_functions(pts)
    return phi.T @ (wts * values_at(f, pts))


def project_function(mesh, cell, di: DegreeInfo, f: Callable, degree_extra: int = 2) -> np.ndarray:
    """L2 projections of ``f`` on the cell and on each of its faces, concatenated."""
    cb = make_scalar_monomial_basis(mesh, cell, di.cell)
    parts = [cho_solve(_cho_factor(make_mass_matrix(mesh, cell, cb), "cell mass matrix"),
                       make_rhs(mesh, cell, cb, f, degree_extra))]
    for fc in mesh.faces_of(cell):
        parts.append(project_on_face(mesh, fc, di, f, degree_extra))
    return np.concatenate(parts)


def project_on_face(mesh, face, di: DegreeInfo, f: Callable, degree_extra: int = 2) -> np.ndarray:
    fb = make_scalar_monomial_basis(mesh, face, di.face)
    mass = make_mass_matrix(mesh, face, fb)
    return cho_solve(_cho_factor(mass, "face mass matrix"), make_rhs(mesh, face, fb, f, degree_extra))


# -------------------------------------------------------------------------
# Reconstruction and stabilization
# -------------------------------------------------------------------------
def make_scalar_hho_laplacian(mesh, cell, di: DegreeInfo) -> Tuple[np.ndarray, np.ndarray]:
    """
    Potential reconstruction of degree ``di.reconstruction``.

    Returns ``(R, A)``: ``R`` maps local unknowns to the coefficients of the
    reconstruction on the non-constant functions of the degree ``k+1``
    basis (the constant is fixed separately), and ``A = G^T R`` is the
    consistent part of the local Laplacian, with ``G`` the right-hand side
    of the reconstruction problem

        (grad r, grad w)_T = (grad v_T, grad w)_T + sum_F (v_F - v_T, grad w . n_F)_F
    """
    cb = make_scalar_monomial_basis(mesh, cell, di.reconstruction)
    rbs = cb.size
    cbs, fbs, num_dofs = local_dofs(mesh, cell, di)

    stiff = make_stiffness_matrix(mesh, cell, cb)
    gr_lhs = stiff[1:, 1:]
    gr_rhs = np.zeros((rbs - 1, num_dofs))
    gr_rhs[:, :cbs] = stiff[1:, :cbs]

    for i, fc in enumerate(mesh.faces_of(cell)):
        n = normal(mesh, cell, fc)
        fb = make_scalar_monomial_basis(mesh, fc, di.face)
        pts, wts = integrate(mesh, fc, di.reconstruction - 1 + max(di.cell, di.face))
        c_phi = cb.eval_functions(pts)[:, :cbs]
        c_dphi_n = cb.eval_gradients(pts)[:, 1:, :] @ n
        f_phi = fb.eval_functions(pts)
        w_dphi_n = c_dphi_n * wts[:, None]
        gr_rhs[:, :cbs] -= w_dphi_n.T @ c_phi
        gr_rhs[:, cbs + i * fbs:cbs + (i + 1) * fbs] += w_dphi_n.T @ f_phi

    R = cho_solve(_cho_factor(gr_lhs, "reconstruction matrix"), gr_rhs)
    A = gr_rhs.T @ R
    return R, A


def make_scalar_hho_stabilization(mesh, cell, R: np.ndarray, di: DegreeInfo) -> np.ndarray:
    """
    Lehrenfeld-Schoeberl style HHO stabilization

        s(u, v) = sum_F h_F^-1 (Pi_F(u_F - r_T u) - Pi_F(u_T - Pi_T r_T u), ...)_F

    which vanishes when the local unknowns interpolate a polynomial of
    degree ``k+1``.
    """
    cb = make_scalar_monomial_basis(mesh, cell, di.reconstruction)
    cbs, fbs, num_dofs = local_dofs(mesh, cell, di)

    mass = make_mass_matrix(mesh, cell, cb)
    M1 = mass[:cbs, :cbs]
    M2 = mass[:cbs, 1:]
    # difference between the cell unknowns and the cell projection of r_T
    proj1 = -cho_solve(_cho_factor(M1, "cell mass matrix"), M2 @ R)
    proj1[:, :cbs] += np.eye(cbs)

    data = np.zeros((num_dofs, num_dofs))
    for i, fc in enumerate(mesh.faces_of(cell)):
        hf = face_scale(mesh, cell, fc)
        fb = make_scalar_monomial_basis(mesh, fc, di.face)
        face_mass = make_mass_matrix(mesh, fc, fb)
        pts, wts = integrate(mesh, fc, di.reconstruction + di.face)
        trace = (fb.eval_functions(pts) * wts[:, None]).T @ cb.eval_functions(pts)
        piKF = _cho_factor(face_mass, "face mass matrix")

        # difference between r_T and the face unknowns
        proj2 = cho_solve(piKF, trace[:, 1:] @ R)
        proj2[:, cbs + i * fbs:cbs + (i + 1) * fbs] -= np.eye(fbs)
        proj3 = cho_solve(piKF, trace[:, :cbs] @ proj1)
        BRF = proj2 + proj3
        data += BRF.T @ face_mass @ BRF / hf
    return data


def make_scalar_hdg_stabilization(mesh, cell, di: DegreeInfo) -> np.ndarray:
    """Plain jump penalty ``sum_F h_F^-1 (Pi_F u_T - u_F, Pi_F v_T - v_F)_F``."""
    cb = make_scalar_monomial_basis(mesh, cell, di.cell)
    cbs, fbs, num_dofs = local_dofs(mesh, cell, di)

    data = np.zeros((num_dofs, num_dofs))
    for i, fc in enumerate(mesh.faces_of(cell)):
        hf = face_scale(mesh, cell, fc)
        fb = make_scalar_monomial_basis(mesh, fc, di.face)
        face_mass = make_mass_matrix(mesh, fc, fb)
        pts, wts = integrate(mesh, fc, di.cell + di.face)
        trace = (fb.eval_functions(pts) * wts[:, None]).T @ cb.eval_functions(pts)

        oper = np.zeros((fbs, num_dofs))
        oper[:, :cbs] = cho_solve(_cho_factor(face_mass, "face mass matrix"), trace)
        oper[:, cbs + i * fbs:cbs + (i + 1) * fbs] = -np.eye(fbs)
        data += oper.T @ face_mass @ oper / hf
    return data
