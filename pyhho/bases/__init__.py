from .factory import BasisConfig, face_basis_size, make_scalar_monomial_basis
from .frame import ReferenceFrame
from .legendre import LegendreFaceBasis
from .monomial import (EdgeMonomialBasis, FaceMonomialBasis3D, PointFaceBasis,
                       ScaledMonomialBasis, iexp_pow, monomial_powers, scalar_basis_size)

__all__ = [
    "BasisConfig", "make_scalar_monomial_basis", "face_basis_size",
    "ReferenceFrame", "LegendreFaceBasis", "EdgeMonomialBasis",
    "FaceMonomialBasis3D", "PointFaceBasis", "ScaledMonomialBasis",
    "iexp_pow", "monomial_powers", "scalar_basis_size",
]
