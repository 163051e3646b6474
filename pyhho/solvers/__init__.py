from .linear import LinearSolverParameters, extreme_eigenvalues, solve

__all__ = ['LinearSolverParameters', 'solve', 'extreme_eigenvalues']
