from .condensation import static_condensation_compute, static_condensation_recover
from .degree_info import DegreeInfo
from .nitsche import make_hho_nitsche_terms
from .operators import (make_mass_matrix, make_rhs, make_scalar_hdg_stabilization,
                        make_scalar_hho_laplacian, make_scalar_hho_stabilization,
                        make_stiffness_matrix, project_function)
from .parameters import HHOParameters

__all__ = [
    'DegreeInfo', 'HHOParameters',
    'make_mass_matrix', 'make_stiffness_matrix', 'make_rhs', 'project_function',
    'make_scalar_hho_laplacian', 'make_scalar_hho_stabilization',
    'make_scalar_hdg_stabilization', 'make_hho_nitsche_terms',
    'static_condensation_compute', 'static_condensation_recover',
]
