"""pyhho.hho.nitsche
Weak imposition of Dirichlet conditions on the face unknowns.

With ``dn_R v`` the normal derivative of the reconstruction of ``v``, a
cell touching Dirichlet faces contributes

    - (dn_R u, v_F)_F                          consistency
    - theta (dn_R v, u_F)_F + gamma_0/h_F (u_F, v_F)_F
    = - theta (dn_R v, g)_F + gamma_0/h_F (g, v_F)_F

``theta = 1`` gives the symmetric variant, ``theta = -1`` the
skew-symmetric one (stable for any ``gamma_0 > 0``), ``theta = 0`` the
incomplete one.
"""
from typing import Callable, Iterable, Tuple

import numpy as np

from pyhho.bases import make_scalar_monomial_basis
from pyhho.core.geometry import normal
from pyhho.hho.degree_info import DegreeInfo
from pyhho.hho.operators import face_scale, local_dofs
from pyhho.integration import integrate, values_at


def make_hho_nitsche_terms(mesh, cell, di: DegreeInfo, R: np.ndarray,
                           dirichlet_faces: Iterable[Tuple[int, Callable]],
                           gamma_0: float, theta: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Nitsche terms of ``cell`` for its Dirichlet faces.

    ``dirichlet_faces`` yields ``(local face index, g)`` pairs.  Returns
    ``(A_consist, A_nitsche, B_nitsche)``; the local system becomes
    ``A - A_nitsche - A_consist`` with right-hand side ``rhs - B_nitsche``.
    """
    if gamma_0 <= 0.0:
        raise ValueError(f"Nitsche penalty must be positive, got {gamma_0}.")
    cb = make_scalar_monomial_basis(mesh, cell, di.reconstruction)
    cbs, fbs, num_dofs = local_dofs(mesh, cell, di)
    faces = mesh.faces_of(cell)

    A_consist = np.zeros((num_dofs, num_dofs))
    A_nitsche = np.zeros((num_dofs, num_dofs))
    B_nitsche = np.zeros(num_dofs)
    for i, g in dirichlet_faces:
        fc = faces[i]
        hf = face_scale(mesh, cell, fc)
        n = normal(mesh, cell, fc)
        fb = make_scalar_monomial_basis(mesh, fc, di.face)
        pts, wts = integrate(mesh, fc, di.reconstruction + di.face + 2)

        dn_R = (cb.eval_gradients(pts)[:, 1:, :] @ n) @ R
        f_phi = np.zeros((len(wts), num_dofs))
        f_phi[:, cbs + i * fbs:cbs + (i + 1) * fbs] = fb.eval_functions(pts)
        g_w = values_at(g, pts) * wts

        A_consist += (f_phi * wts[:, None]).T @ dn_R
        A_nitsche += theta * (dn_R * wts[:, None]).T @ f_phi
        A_nitsche -= (gamma_0 / hf) * (f_phi * wts[:, None]).T @ f_phi
        B_nitsche += theta * dn_R.T @ g_w
        B_nitsche -= (gamma_0 / hf) * f_phi.T @ g_w
    return A_consist, A_nitsche, B_nitsche
