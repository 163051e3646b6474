import logging
from typing import Callable, Dict, Iterable, List, Optional, Union

logger = logging.getLogger(__name__)

_METHODS = ("dirichlet", "neumann", "robin")


class BoundaryCondition:
    """
    A boundary condition attached to a set of boundary faces.

    Attributes:
        method (str): 'dirichlet', 'neumann' or 'robin'.
        value (Callable): boundary data, called as ``value(x)``,
            ``value(x, y)`` or ``value(x, y, z)``.
        alpha (float): Robin coefficient in ``du/dn + alpha*u = value``.
    """
    def __init__(self, method: str, value: Callable, alpha: float = 0.0):
        m = method.lower()
        if m not in _METHODS:
            raise ValueError("BC method must be 'dirichlet', 'neumann' or 'robin'")
        if m == "robin" and alpha < 0.0:
            raise ValueError(f"Robin coefficient must be non-negative, got {alpha}.")
        self.method = m
        self.value = value
        self.alpha = float(alpha)

    def __repr__(self):
        return f"BoundaryCondition(method={self.method!r}, alpha={self.alpha})"


class BoundaryConditions:
    """
    Map from boundary face id to :class:`BoundaryCondition`.

    Faces are selected either by tag (see :meth:`Mesh.tag_boundary_faces`)
    or by an explicit iterable of face ids. Boundary faces left without a
    condition behave as homogeneous Neumann faces.
    """
    def __init__(self, mesh):
        self.mesh = mesh
        self._conditions: Dict[int, BoundaryCondition] = {}

    def _select(self, faces: Union[str, Iterable[int], None]) -> List[int]:
        if faces is None:
            return [f.gid for f in self.mesh.boundary_faces()]
        if isinstance(faces, str):
            ids = self.mesh.faces_with_tag(faces)
            if not ids:
                logger.warning("No face carries the tag '%s'.", faces)
            return ids
        return [int(f) for f in faces]

    def add(self, faces: Union[str, Iterable[int], None], bc: BoundaryCondition):
        for gid in self._select(faces):
            if not self.mesh.face(gid).is_boundary:
                raise ValueError(f"Face {gid} is an interior face.")
            self._conditions[gid] = bc
        return self

    def add_dirichlet(self, faces, value: Callable):
        return self.add(faces, BoundaryCondition("dirichlet", value))

    def add_neumann(self, faces, value: Callable):
        return self.add(faces, BoundaryCondition("neumann", value))

    def add_robin(self, faces, value: Callable, alpha: float):
        return self.add(faces, BoundaryCondition("robin", value, alpha))

    def add_dirichlet_everywhere(self, value: Callable):
        return self.add(None, BoundaryCondition("dirichlet", value))

    def condition(self, face_id: int) -> Optional[BoundaryCondition]:
        return self._conditions.get(face_id)

    def kind(self, face_id: int) -> Optional[str]:
        bc = self._conditions.get(face_id)
        return bc.method if bc is not None else None

    def is_dirichlet_face(self, face_id: int) -> bool:
        return self.kind(face_id) == "dirichlet"

    def is_neumann_face(self, face_id: int) -> bool:
        return self.kind(face_id) == "neumann"

    def is_robin_face(self, face_id: int) -> bool:
        return self.kind(face_id) == "robin"

    def faces_of_kind(self, method: str) -> List[int]:
        return sorted(gid for gid, bc in self._conditions.items() if bc.method == method)

    def __len__(self):
        return len(self._conditions)
