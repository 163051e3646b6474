import os
from dataclasses import dataclass, field

from pyhho.hho.degree_info import DegreeInfo

STABILIZATIONS = ("hho", "hdg")
DIRICHLET_MODES = ("eliminate", "nitsche")


def _default_workers() -> int:
    return max(int(os.getenv("PYHHO_NUM_WORKERS", "1")), 1)


@dataclass
class HHOParameters:
    """Settings of an HHO diffusion solve."""

    degree: int = 1                     # face degree k
    cell_degree_offset: int = 0         # cell degree is k + offset, offset in {-1, 0, 1}
    stabilization: str = "hho"          # "hho" (k+1 consistent) or "hdg" (plain jump)
    dirichlet_mode: str = "eliminate"   # "eliminate" or "nitsche"
    gamma_0: float = 10.0               # Nitsche penalty
    theta: float = 1.0                  # Nitsche symmetry: 1, 0 or -1
    workers: int = field(default_factory=_default_workers)

    def __post_init__(self):
        self.stabilization = self.stabilization.lower()
        self.dirichlet_mode = self.dirichlet_mode.lower()
        if self.stabilization not in STABILIZATIONS:
            raise ValueError(f"stabilization must be one of {STABILIZATIONS}, got {self.stabilization!r}")
        if self.dirichlet_mode not in DIRICHLET_MODES:
            raise ValueError(f"dirichlet_mode must be one of {DIRICHLET_MODES}, got {self.dirichlet_mode!r}")
        if self.theta not in (-1, 0, 1):
            raise ValueError(f"theta must be -1, 0 or 1, got {self.theta}")
        if self.gamma_0 <= 0.0:
            raise ValueError(f"gamma_0 must be positive, got {self.gamma_0}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        self.degree_info()

    def degree_info(self) -> DegreeInfo:
        return DegreeInfo(face=self.degree, cell=self.degree + self.cell_degree_offset)
