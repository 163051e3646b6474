"""pyhho: Hybrid High-Order discretizations on polytopal meshes."""
from pyhho.core import BoundaryConditions, Mesh
from pyhho.hho import DegreeInfo, HHOParameters
from pyhho.hho.diffusion import DiffusionResult, ErrorReport, solve_diffusion
from pyhho.solvers import LinearSolverParameters

__version__ = "0.1.0"

__all__ = ['Mesh', 'BoundaryConditions', 'DegreeInfo', 'HHOParameters',
           'LinearSolverParameters', 'solve_diffusion', 'DiffusionResult', 'ErrorReport']
