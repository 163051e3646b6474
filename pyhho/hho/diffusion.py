"""pyhho.hho.diffusion
HHO solver for the Poisson problem ``-lap u = f``.

Pipeline per cell: reconstruction + stabilization -> optional Nitsche
terms -> static condensation -> scatter into :class:`HHOAssembler`; then
one global solve and the cell-by-cell recovery of the cell unknowns.
"""
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, List, NamedTuple, Optional

import numpy as np

from pyhho.assembly import HHOAssembler
from pyhho.bases import make_scalar_monomial_basis
from pyhho.core.boundary import BoundaryConditions
from pyhho.hho.condensation import static_condensation_compute, static_condensation_recover
from pyhho.hho.degree_info import DegreeInfo
from pyhho.hho.nitsche import make_hho_nitsche_terms
from pyhho.hho.operators import (local_dofs, make_mass_matrix, make_rhs,
                                 make_scalar_hdg_stabilization, make_scalar_hho_laplacian,
                                 make_scalar_hho_stabilization, project_function)
from pyhho.hho.parameters import HHOParameters
from pyhho.integration import integrate, values_at
from pyhho.solvers import LinearSolverParameters, solve

logger = logging.getLogger(__name__)


class LocalSystem(NamedTuple):
    lhs: np.ndarray             # matrix that is condensed (Nitsche terms included)
    rhs: np.ndarray
    energy: np.ndarray          # reconstruction + stabilization only
    num_cell_dofs: int


@dataclass
class ErrorReport:
    h1: float                   # discrete energy norm of I_h u - u_h
    l2: float                   # L2 norm of the cell part of I_h u - u_h
    linf: float                 # max |u - u_T| over cell quadrature points


@dataclass
class DiffusionResult:
    cell_solutions: List[np.ndarray]        # full local vectors [u_T; u_F], one per cell
    face_solution: np.ndarray               # all face unknowns, face id order
    system_size: int
    nnz: int
    timings: dict = field(default_factory=dict)
    errors: Optional[ErrorReport] = None

    def cell_values(self) -> np.ndarray:
        """Coefficient of the constant cell function on each cell."""
        return np.array([u[0] for u in self.cell_solutions])


def make_local_system(mesh, cell, params: HHOParameters, source: Callable,
                      bnd: BoundaryConditions) -> LocalSystem:
    di = params.degree_info()
    R, A = make_scalar_hho_laplacian(mesh, cell, di)
    if params.stabilization == "hho":
        S = make_scalar_hho_stabilization(mesh, cell, R, di)
    else:
        S = make_scalar_hdg_stabilization(mesh, cell, di)
    energy = A + S

    cbs, _, num_dofs = local_dofs(mesh, cell, di)
    cb = make_scalar_monomial_basis(mesh, cell, di.cell)
    rhs = np.zeros(num_dofs)
    rhs[:cbs] = make_rhs(mesh, cell, cb, source)
    lhs = energy

    if params.dirichlet_mode == "nitsche":
        dirichlet = [(i, bnd.condition(fc.gid).value)
                     for i, fc in enumerate(mesh.faces_of(cell)) if bnd.is_dirichlet_face(fc.gid)]
        if dirichlet:
            A_consist, A_nitsche, B_nitsche = make_hho_nitsche_terms(
                mesh, cell, di, R, dirichlet, params.gamma_0, params.theta)
            lhs = energy - A_nitsche - A_consist
            rhs = rhs - B_nitsche
    return LocalSystem(lhs, rhs, energy, cbs)


def compute_errors(mesh, di: DegreeInfo, systems: List[LocalSystem],
                   cell_solutions: List[np.ndarray], solution: Callable) -> ErrorReport:
    h1 = l2 = linf = 0.0
    for cell, loc, fullsol in zip(mesh, systems, cell_solutions):
        diff = project_function(mesh, cell, di, solution) - fullsol
        h1 += diff @ loc.energy @ diff

        cb = make_scalar_monomial_basis(mesh, cell, di.cell)
        u_diff = diff[:loc.num_cell_dofs]
        l2 += u_diff @ make_mass_matrix(mesh, cell, cb) @ u_diff

        pts, _ = integrate(mesh, cell, max(4 * di.cell, 2))
        u_h = cb.eval_functions(pts) @ fullsol[:loc.num_cell_dofs]
        linf = max(linf, float(np.abs(u_h - values_at(solution, pts)).max()))
    return ErrorReport(h1=float(np.sqrt(max(h1, 0.0))), l2=float(np.sqrt(max(l2, 0.0))), linf=linf)


def solve_diffusion(mesh, params: HHOParameters, source: Callable,
                    bnd: BoundaryConditions, solution: Optional[Callable] = None,
                    solver: Optional[LinearSolverParameters] = None) -> DiffusionResult:
    """
    Solve ``-lap u = source`` with the boundary conditions in ``bnd``.

    When the exact ``solution`` is known, the result carries an
    :class:`ErrorReport`.
    """
    di = params.degree_info()
    assembler = HHOAssembler(mesh, di, bnd, dirichlet_mode=params.dirichlet_mode)
    timings = {}

    def _condense(cell) -> LocalSystem:
        loc = make_local_system(mesh, cell, params, source, bnd)
        S, r = static_condensation_compute(loc.lhs, loc.rhs, loc.num_cell_dofs)
        assembler.assemble(cell, S, r)
        return loc

    t0 = time.perf_counter()
    if params.workers > 1:
        with ThreadPoolExecutor(max_workers=params.workers) as pool:
            systems = list(pool.map(_condense, mesh.cells_list))
    else:
        systems = [_condense(cell) for cell in mesh]
    LHS, RHS = assembler.finalize()
    timings["assembly"] = time.perf_counter() - t0
    logger.info("Assembled %d cells on %d worker(s): %d unknowns, %d nonzeros (%.3f s)",
                mesh.num_cells, params.workers, assembler.system_size, LHS.nnz, timings["assembly"])

    t0 = time.perf_counter()
    sol = solve(LHS, RHS, solver)
    timings["solve"] = time.perf_counter() - t0

    t0 = time.perf_counter()
    cell_solutions = []
    for cell, loc in zip(mesh, systems):
        locsol = assembler.take_local_data(cell, sol)
        cell_solutions.append(static_condensation_recover(loc.lhs, loc.rhs, loc.num_cell_dofs,
                                                          locsol))
    timings["recovery"] = time.perf_counter() - t0

    result = DiffusionResult(cell_solutions=cell_solutions,
                             face_solution=assembler.expand_solution(sol),
                             system_size=assembler.system_size, nnz=LHS.nnz, timings=timings)
    if solution is not None:
        result.errors = compute_errors(mesh, di, systems, cell_solutions, solution)
        logger.info("Errors: H1 %.4e, L2 %.4e, Linf %.4e",
                    result.errors.h1, result.errors.l2, result.errors.linf)
    return result
