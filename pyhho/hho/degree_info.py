from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class DegreeInfo:
    """
    Polynomial degrees of an HHO discretization.

    ``face`` is the degree of the skeletal unknowns; ``cell`` may be one
    below, equal to, or one above it (defaults to ``face``). The potential
    reconstruction is always of degree ``face + 1``.
    """
    face: int
    cell: Optional[int] = None

    def __post_init__(self):
        if self.face < 0:
            raise ValueError(f"Face degree must be non-negative, got {self.face}.")
        if self.cell is None:
            object.__setattr__(self, "cell", self.face)
        if self.cell < 0 or abs(self.cell - self.face) > 1:
            raise ValueError(f"Cell degree {self.cell} incompatible with face degree {self.face}.")

    @property
    def reconstruction(self) -> int:
        return self.face + 1
