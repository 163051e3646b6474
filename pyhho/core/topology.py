from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(slots=True)
class Face:
    gid: int
    vertices: Tuple[int, ...]       # vertex ids, in the order the first cell lists them
    left: int                       # id of the first cell that owns the face
    right: Optional[int] = None     # id of the second cell, None on the boundary
    tag: str = ""

    @property
    def is_boundary(self) -> bool:
        return self.right is None

    @property
    def cells(self) -> Tuple[int, ...]:
        return (self.left,) if self.right is None else (self.left, self.right)

    def other(self, cell_id: int) -> Optional[int]:
        """The cell across the face from ``cell_id``."""
        if cell_id == self.left:
            return self.right
        if cell_id == self.right:
            return self.left
        raise ValueError(f"Cell {cell_id} does not own face {self.gid}.")


@dataclass(slots=True)
class Cell:
    id: int
    vertices: Tuple[int, ...]               # unique vertex ids
    faces: Tuple[int, ...] = field(default_factory=tuple)
    tag: str = ""

    def contains_face(self, face_id: int) -> bool:
        return face_id in self.faces
