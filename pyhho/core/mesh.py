import logging
from typing import Callable, Dict, Iterator, List, Sequence, Tuple

import numpy as np

from pyhho.core.geometry import diameter
from pyhho.core.topology import Cell, Face

logger = logging.getLogger(__name__)


class Mesh:
    """
    Polytopal mesh in one, two or three space dimensions.

    Only topology is stored here: vertex coordinates, cells, and the faces
    shared between them. Geometric quantities live in
    :mod:`pyhho.core.geometry` as functions of ``(mesh, element)``.

    Cell input per dimension:

    * 1D: ``(i, j)`` vertex pairs (segments).
    * 2D: polygon vertex lists, any orientation.
    * 3D: either 4-tuples (tetrahedra) or a list of faces, each face a
      vertex list (general polyhedra).

    Faces are numbered in order of first appearance while the cells are
    walked in order, so the numbering is deterministic for a given input.
    """
    _TET_FACES = ((0, 1, 2), (0, 1, 3), (0, 2, 3), (1, 2, 3))

    def __init__(self, points, cells: Sequence):
        pts = np.asarray(points, dtype=float)
        if pts.ndim == 1:
            pts = pts[:, None]
        if pts.ndim != 2 or pts.shape[1] not in (1, 2, 3):
            raise ValueError(f"Points must have shape (n, d) with d in 1..3, got {pts.shape}.")
        self.points: np.ndarray = pts
        self.dim: int = pts.shape[1]
        self.cells_list: List[Cell] = []
        self.faces_list: List[Face] = []
        self._face_dict: Dict[Tuple[int, ...], Face] = {}
        self._neighbors: List[List[int]] = [[] for _ in range(len(cells))]
        self._build_topology(cells)

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------
    def _local_faces(self, cell) -> List[Tuple[int, ...]]:
        if self.dim == 1:
            a, b = (int(v) for v in cell)
            return [(a,), (b,)]
        if self.dim == 2:
            verts = [int(v) for v in cell]
            n = len(verts)
            if n < 3:
                raise ValueError(f"A 2D cell needs at least 3 vertices, got {n}.")
            return [(verts[i], verts[(i + 1) % n]) for i in range(n)]
        if all(np.isscalar(v) or np.ndim(v) == 0 for v in cell):
            verts = [int(v) for v in cell]
            if len(verts) != 4:
                raise ValueError("3D cells given as vertex lists must be tetrahedra.")
            return [tuple(verts[i] for i in f) for f in self._TET_FACES]
        return [tuple(int(v) for v in face) for face in cell]

    def _build_topology(self, cells: Sequence):
        # Step 1: map every face to the cells that share it
        face_incidences: Dict[Tuple[int, ...], List[int]] = {}
        first_seen: Dict[Tuple[int, ...], Tuple[int, ...]] = {}
        local_keys: List[List[Tuple[int, ...]]] = []
        cell_vertices: List[Tuple[int, ...]] = []
        for cid, cell in enumerate(cells):
            keys = []
            local = self._local_faces(cell)
            cell_vertices.append(tuple(dict.fromkeys(v for fverts in local for v in fverts)))
            for fverts in local:
                key = tuple(sorted(fverts))
                face_incidences.setdefault(key, []).append(cid)
                first_seen.setdefault(key, fverts)
                keys.append(key)
            local_keys.append(keys)

        # Step 2: unique Face objects
        for gid, (key, shared) in enumerate(face_incidences.items()):
            if len(shared) > 2:
                raise ValueError(f"Face {key} is shared by {len(shared)} cells.")
            right = shared[1] if len(shared) > 1 else None
            face = Face(gid=gid, vertices=first_seen[key], left=shared[0], right=right)
            self.faces_list.append(face)
            self._face_dict[key] = face
            if right is not None:
                self._neighbors[shared[0]].append(right)
                self._neighbors[right].append(shared[0])

        # Step 3: cells with their ordered face ids
        for cid, keys in enumerate(local_keys):
            self.cells_list.append(Cell(id=cid, vertices=cell_vertices[cid],
                                        faces=tuple(self._face_dict[k].gid for k in keys)))

        logger.debug("Mesh built: dim=%d, %d points, %d cells, %d faces (%d boundary)",
                     self.dim, len(self.points), len(self.cells_list), len(self.faces_list),
                     sum(f.is_boundary for f in self.faces_list))

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells_list)

    def __len__(self) -> int:
        return len(self.cells_list)

    @property
    def num_cells(self) -> int:
        return len(self.cells_list)

    @property
    def num_faces(self) -> int:
        return len(self.faces_list)

    def cell(self, cell_id: int) -> Cell:
        if not 0 <= cell_id < len(self.cells_list):
            raise IndexError(f"Cell ID {cell_id} out of range.")
        return self.cells_list[cell_id]

    def face(self, face_id: int) -> Face:
        if not 0 <= face_id < len(self.faces_list):
            raise IndexError(f"Face ID {face_id} out of range.")
        return self.faces_list[face_id]

    def faces_of(self, cell: Cell) -> List[Face]:
        """Faces of ``cell`` in its local order."""
        return [self.faces_list[gid] for gid in cell.faces]

    def is_boundary(self, face: Face) -> bool:
        return face.right is None

    def boundary_faces(self) -> List[Face]:
        return [f for f in self.faces_list if f.right is None]

    def neighbors(self) -> List[List[int]]:
        return self._neighbors

    def tag_boundary_faces(self, tag_functions: Dict[str, Callable[..., bool]]):
        """Tag boundary faces by testing their vertex mean with ``func(*xyz)``."""
        for face in self.boundary_faces():
            midpoint = self.points[list(face.vertices)].mean(axis=0)
            for tag_name, func in tag_functions.items():
                if func(*midpoint):
                    face.tag = tag_name
                    break

    def faces_with_tag(self, tag: str) -> List[int]:
        return [f.gid for f in self.faces_list if f.tag == tag]

    def h_max(self) -> float:
        return max(diameter(self, c) for c in self.cells_list)
