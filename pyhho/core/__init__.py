from .boundary import BoundaryCondition, BoundaryConditions
from .errors import (AssemblyStateError, DegenerateElementError, PyHHOError,
                     SingularLocalSystem, SolverFailure, UnsupportedDegree)
from .mesh import Mesh
from .topology import Cell, Face

__all__ = ['Mesh', 'Cell', 'Face', 'BoundaryCondition', 'BoundaryConditions',
           'PyHHOError', 'UnsupportedDegree', 'DegenerateElementError',
           'SingularLocalSystem', 'SolverFailure', 'AssemblyStateError']
