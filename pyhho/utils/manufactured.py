"""pyhho.utils.manufactured
Manufactured solutions of the Poisson problem built with sympy.
"""
from dataclasses import dataclass
from typing import Callable, Tuple, Union

import numpy as np
import sympy as sp

_SYMBOLS = sp.symbols("x y z")


@dataclass(frozen=True)
class ManufacturedSolution:
    """Exact solution, source ``-lap u`` and gradient, all called as ``f(x[, y[, z]])``."""
    expr: sp.Expr
    dim: int
    u: Callable
    source: Callable
    grad: Tuple[Callable, ...]

    def normal_derivative(self, n) -> Callable:
        """``grad u . n`` for a fixed normal, e.g. Neumann data on a flat boundary."""
        n = np.asarray(n, dtype=float)
        return lambda *x: float(sum(n[i] * g(*x) for i, g in enumerate(self.grad)))

    def robin_data(self, n, alpha: float) -> Callable:
        """``grad u . n + alpha u`` for a fixed normal."""
        dn = self.normal_derivative(n)
        return lambda *x: dn(*x) + alpha * float(self.u(*x))


def manufactured_poisson(expr: Union[str, sp.Expr], dim: int) -> ManufacturedSolution:
    """Lambdify ``u``, ``-lap u`` and ``grad u`` for an expression in x, y, z."""
    if dim not in (1, 2, 3):
        raise ValueError(f"Unsupported dimension {dim}.")
    syms = _SYMBOLS[:dim]
    u_sym = sp.sympify(expr, locals={s.name: s for s in _SYMBOLS})
    f_sym = -sum(sp.diff(u_sym, s, 2) for s in syms)
    return ManufacturedSolution(
        expr=u_sym, dim=dim,
        u=sp.lambdify(syms, u_sym, "numpy"),
        source=sp.lambdify(syms, sp.simplify(f_sym), "numpy"),
        grad=tuple(sp.lambdify(syms, sp.diff(u_sym, s), "numpy") for s in syms),
    )


def sine_solution(dim: int) -> ManufacturedSolution:
    """``prod_i sin(pi x_i)``, zero on the boundary of the unit box."""
    return manufactured_poisson(sp.Mul(*[sp.sin(sp.pi * s) for s in _SYMBOLS[:dim]]), dim)
