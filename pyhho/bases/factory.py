"""pyhho.bases.factory
Basis construction dispatched on (element kind, intrinsic dimension).
"""
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from pyhho.bases.frame import ReferenceFrame
from pyhho.bases.legendre import LegendreFaceBasis
from pyhho.bases.monomial import (EdgeMonomialBasis, FaceMonomialBasis3D,
                                  PointFaceBasis, ScaledMonomialBasis,
                                  scalar_basis_size)
from pyhho.core.geometry import barycenter, diameter, diameter_boundingbox, points
from pyhho.core.topology import Cell, Face

_FACE_FAMILIES = ("legendre", "monomial")


@dataclass(frozen=True)
class BasisConfig:
    """
    What to build: ``kind`` is ``"cell"`` or ``"face"``; ``family`` is only
    meaningful for faces of 2D meshes (``"legendre"`` by default, or
    ``"monomial"``).  ``dtype`` is the real floating type of the values
    returned by the basis; evaluation itself runs in double precision.
    """
    kind: str
    degree: int
    dtype: type = np.float64
    family: Optional[str] = None

    def __post_init__(self):
        if self.kind not in ("cell", "face"):
            raise ValueError(f"Basis kind must be 'cell' or 'face', got {self.kind!r}")
        if self.family is not None and self.family not in _FACE_FAMILIES:
            raise ValueError(f"Unknown basis family {self.family!r}")
        if not np.issubdtype(np.dtype(self.dtype), np.floating):
            raise ValueError(f"Unsupported scalar type {self.dtype!r}")


def _config_for(elem, config: Union[int, BasisConfig], family: Optional[str]) -> BasisConfig:
    kind = "cell" if isinstance(elem, Cell) else "face"
    if isinstance(config, BasisConfig):
        if config.kind != kind:
            raise ValueError(f"Config asks for a {config.kind} basis but got a {kind}.")
        return config
    return BasisConfig(kind=kind, degree=config, family=family)


def make_scalar_monomial_basis(mesh, elem: Union[Cell, Face],
                               config: Union[int, BasisConfig],
                               family: Optional[str] = None):
    """
    Build the scalar basis of ``elem`` described by ``config`` (a degree or a
    :class:`BasisConfig`).

    ==========  ==========  ===========================================
    element     dimension   basis
    ==========  ==========  ===========================================
    cell        1, 2, 3     :class:`ScaledMonomialBasis`
    face        0           :class:`PointFaceBasis`
    face        1           :class:`LegendreFaceBasis` or
                            :class:`EdgeMonomialBasis`
    face        2           :class:`FaceMonomialBasis3D`
    ==========  ==========  ===========================================
    """
    cfg = _config_for(elem, config, family)
    if cfg.kind == "cell":
        return ScaledMonomialBasis(barycenter(mesh, elem), diameter_boundingbox(mesh, elem),
                                   cfg.degree, dtype=cfg.dtype)

    fdim = mesh.dim - 1
    if fdim == 0:
        return PointFaceBasis(cfg.degree, dtype=cfg.dtype)
    if fdim == 1:
        pts = points(mesh, elem)
        args = (barycenter(mesh, elem), pts[0], diameter(mesh, elem), cfg.degree)
        if cfg.family in (None, "legendre"):
            return LegendreFaceBasis(*args, dtype=cfg.dtype)
        return EdgeMonomialBasis(*args, dtype=cfg.dtype)
    if fdim == 2:
        if cfg.family == "legendre":
            raise ValueError("No Legendre family on faces of 3D meshes.")
        frame = ReferenceFrame.from_points(points(mesh, elem), barycenter(mesh, elem),
                                           diameter(mesh, elem))
        return FaceMonomialBasis3D(frame, cfg.degree, dtype=cfg.dtype)
    raise ValueError(f"Unsupported mesh dimension {mesh.dim}.")


def face_basis_size(degree: int, mesh_dim: int) -> int:
    """Size of a face basis of ``degree`` on a mesh of dimension ``mesh_dim``."""
    return scalar_basis_size(degree, mesh_dim - 1)
