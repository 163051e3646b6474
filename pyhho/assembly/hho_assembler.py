"""pyhho.assembly.hho_assembler
Global assembly of statically condensed HHO blocks.

Only face unknowns are global.  Each kept face owns one contiguous block
of ``face_basis_size`` dofs; faces carrying a Dirichlet condition are
either eliminated (their values are known) or kept and constrained
weakly by Nitsche terms in the local systems.
"""
import enum
import logging
import threading
import time
from typing import Optional

import numpy as np
import scipy.sparse as sp

from pyhho.bases import face_basis_size, make_scalar_monomial_basis
from pyhho.core.boundary import BoundaryConditions
from pyhho.core.errors import AssemblyStateError
from pyhho.hho.degree_info import DegreeInfo
from pyhho.hho.parameters import DIRICHLET_MODES
from pyhho.hho.operators import make_mass_matrix, make_rhs, project_on_face

logger = logging.getLogger(__name__)


class AssemblyState(enum.Enum):
    EMPTY = "empty"
    ASSEMBLING = "assembling"
    FINALIZED = "finalized"
    CONSUMED = "consumed"


class HHOAssembler:
    """
    Scatter condensed local blocks into a global sparse system.

    Life cycle: ``EMPTY -> ASSEMBLING -> FINALIZED -> CONSUMED``.
    :meth:`assemble` may be called from several threads; the local-to-global
    mapping is computed outside the lock and only the merge into the
    triplet lists is serialized.  :meth:`finalize` builds the CSR matrix
    once, after which ``LHS``/``RHS`` are read-only inputs for the solver.
    """
    def __init__(self, mesh, degree_info: DegreeInfo,
                 bnd: Optional[BoundaryConditions] = None, *,
                 dirichlet_mode: str = "eliminate"):
        mode = dirichlet_mode.lower()
        if mode not in DIRICHLET_MODES:
            raise ValueError(f"dirichlet_mode must be one of {DIRICHLET_MODES}, got {dirichlet_mode!r}")
        self.mesh = mesh
        self.di = degree_info
        self.bnd = bnd if bnd is not None else BoundaryConditions(mesh)
        self.dirichlet_mode = mode
        self.fbs = face_basis_size(degree_info.face, mesh.dim)

        n_faces = mesh.num_faces
        eliminated = np.zeros(n_faces, dtype=bool)
        if mode == "eliminate":
            for gid in self.bnd.faces_of_kind("dirichlet"):
                eliminated[gid] = True
        self.compress_table = np.full(n_faces, -1, dtype=np.int64)
        self.expand_table = np.flatnonzero(~eliminated)
        self.compress_table[self.expand_table] = np.arange(len(self.expand_table))
        self.system_size = len(self.expand_table) * self.fbs

        self._dirichlet_data = {
            int(gid): project_on_face(mesh, mesh.face(int(gid)), degree_info,
                                      self.bnd.condition(int(gid)).value)
            for gid in np.flatnonzero(eliminated)
        }

        self._rows, self._cols, self._vals = [], [], []
        self._rhs = np.zeros(self.system_size)
        self._lhs: Optional[sp.csr_matrix] = None
        self._lock = threading.Lock()
        self._state = AssemblyState.EMPTY
        self._neumann_done = False
        self._robin_done = False

        logger.debug("Assembler: %d faces, %d kept, %d dofs per face, system size %d",
                     n_faces, len(self.expand_table), self.fbs, self.system_size)

    # ------------------------------------------------------------------
    # state
    # ------------------------------------------------------------------
    @property
    def state(self) -> AssemblyState:
        return self._state

    def _require(self, *states: AssemblyState, action: str):
        if self._state not in states:
            raise AssemblyStateError(f"Cannot {action} while the assembler is {self._state.value}.")

    @property
    def LHS(self) -> sp.csr_matrix:
        self._require(AssemblyState.FINALIZED, AssemblyState.CONSUMED, action="read the matrix")
        return self._lhs

    @property
    def RHS(self) -> np.ndarray:
        self._require(AssemblyState.FINALIZED, AssemblyState.CONSUMED, action="read the rhs")
        return self._rhs

    # ------------------------------------------------------------------
    # dof maps
    # ------------------------------------------------------------------
    def _face_block(self, gid: int) -> np.ndarray:
        ci = self.compress_table[gid]
        if ci < 0:
            return np.full(self.fbs, -1, dtype=np.int64)
        return np.arange(ci * self.fbs, (ci + 1) * self.fbs, dtype=np.int64)

    def local_to_global(self, cell):
        """Global dof of each local face dof (-1 where eliminated) and the known values there."""
        asm_map = np.concatenate([self._face_block(gid) for gid in cell.faces])
        known = np.zeros(len(asm_map))
        for i, gid in enumerate(cell.faces):
            data = self._dirichlet_data.get(gid)
            if data is not None:
                known[i * self.fbs:(i + 1) * self.fbs] = data
        return asm_map, known

    # ------------------------------------------------------------------
    # assembly
    # ------------------------------------------------------------------
    def assemble(self, cell, lhs: np.ndarray, rhs: np.ndarray):
        """Scatter-add the condensed block ``(lhs, rhs)`` of ``cell``."""
        self._require(AssemblyState.EMPTY, AssemblyState.ASSEMBLING, action="assemble")
        asm_map, known = self.local_to_global(cell)
        n = len(asm_map)
        if lhs.shape != (n, n) or rhs.shape != (n,):
            raise ValueError(f"Cell {cell.id}: expected a ({n}, {n}) block, got {lhs.shape} and {rhs.shape}.")

        keep = asm_map >= 0
        dofs = asm_map[keep]
        rr, cc = np.meshgrid(dofs, dofs, indexing='ij')
        vals = lhs[np.ix_(keep, keep)]
        rhs_loc = rhs[keep] - lhs[np.ix_(keep, ~keep)] @ known[~keep]

        with self._lock:
            self._require(AssemblyState.EMPTY, AssemblyState.ASSEMBLING, action="assemble")
            self._rows.append(rr.ravel())
            self._cols.append(cc.ravel())
            self._vals.append(vals.ravel())
            np.add.at(self._rhs, dofs, rhs_loc)
            self._state = AssemblyState.ASSEMBLING

    def _boundary_load(self, gid: int, bc) -> np.ndarray:
        fc = self.mesh.face(gid)
        fb = make_scalar_monomial_basis(self.mesh, fc, self.di.face)
        return make_rhs(self.mesh, fc, fb, bc.value)

    def impose_neumann_boundary_conditions(self):
        """Add ``int_F g_N v_F`` on every Neumann face."""
        self._require(AssemblyState.EMPTY, AssemblyState.ASSEMBLING, action="impose Neumann data")
        if self._neumann_done:
            return
        with self._lock:
            for gid in self.bnd.faces_of_kind("neumann"):
                self._rhs[self._face_block(gid)] += self._boundary_load(gid, self.bnd.condition(gid))
            self._neumann_done = True

    def impose_robin_boundary_conditions(self):
        """Add ``alpha (u_F, v_F)_F`` to the matrix and ``int_F g_R v_F`` to the rhs on Robin faces."""
        self._require(AssemblyState.EMPTY, AssemblyState.ASSEMBLING, action="impose Robin data")
        if self._robin_done:
            return
        with self._lock:
            for gid in self.bnd.faces_of_kind("robin"):
                bc = self.bnd.condition(gid)
                fc = self.mesh.face(gid)
                fb = make_scalar_monomial_basis(self.mesh, fc, self.di.face)
                dofs = self._face_block(gid)
                rr, cc = np.meshgrid(dofs, dofs, indexing='ij')
                self._rows.append(rr.ravel())
                self._cols.append(cc.ravel())
                self._vals.append((bc.alpha * make_mass_matrix(self.mesh, fc, fb)).ravel())
                self._rhs[dofs] += make_rhs(self.mesh, fc, fb, bc.value)
            self._robin_done = True

    def finalize(self):
        """Apply pending Neumann/Robin data and compress the triplets into CSR."""
        self._require(AssemblyState.ASSEMBLING, action="finalize")
        self.impose_neumann_boundary_conditions()
        self.impose_robin_boundary_conditions()
        t0 = time.perf_counter()
        with self._lock:
            rows = np.concatenate(self._rows) if self._rows else np.zeros(0, dtype=np.int64)
            cols = np.concatenate(self._cols) if self._cols else np.zeros(0, dtype=np.int64)
            vals = np.concatenate(self._vals) if self._vals else np.zeros(0)
            # duplicate (row, col) pairs are summed
            self._lhs = sp.csr_matrix((vals, (rows, cols)), shape=(self.system_size, self.system_size))
            self._rows, self._cols, self._vals = [], [], []
            self._rhs.setflags(write=False)
            self._state = AssemblyState.FINALIZED
        logger.info("Global system finalized: %d unknowns, %d nonzeros (%.3f s)",
                    self.system_size, self._lhs.nnz, time.perf_counter() - t0)
        return self._lhs, self._rhs

    # ------------------------------------------------------------------
    # solution extraction
    # ------------------------------------------------------------------
    def _check_solution(self, solution: np.ndarray) -> np.ndarray:
        self._require(AssemblyState.FINALIZED, AssemblyState.CONSUMED, action="extract a solution")
        solution = np.asarray(solution, dtype=float)
        if solution.shape != (self.system_size,):
            raise ValueError(f"Solution has shape {solution.shape}, expected ({self.system_size},).")
        self._state = AssemblyState.CONSUMED
        return solution

    def take_local_data(self, cell, solution: np.ndarray) -> np.ndarray:
        """Face unknowns of ``cell`` (eliminated faces get their Dirichlet values)."""
        solution = self._check_solution(solution)
        asm_map, known = self.local_to_global(cell)
        out = known.copy()
        keep = asm_map >= 0
        out[keep] = solution[asm_map[keep]]
        return out

    def expand_solution(self, solution: np.ndarray) -> np.ndarray:
        """Face unknowns of every face, ``(num_faces * fbs,)`` in face id order."""
        solution = self._check_solution(solution)
        out = np.zeros(self.mesh.num_faces * self.fbs)
        for gid in range(self.mesh.num_faces):
            block = slice(gid * self.fbs, (gid + 1) * self.fbs)
            ci = self.compress_table[gid]
            if ci >= 0:
                out[block] = solution[ci * self.fbs:(ci + 1) * self.fbs]
            else:
                out[block] = self._dirichlet_data[gid]
        return out
