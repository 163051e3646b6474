"""Example: convergence study of the HHO Poisson solver on structured meshes"""
import argparse
import logging

import numpy as np

from pyhho import BoundaryConditions, HHOParameters, Mesh, solve_diffusion
from pyhho.utils.manufactured import sine_solution
from pyhho.utils.meshgen import structured_tetrahedra, structured_triangles, uniform_interval


def build_mesh(dim: int, n: int) -> Mesh:
    if dim == 1:
        return Mesh(*uniform_interval(0.0, 1.0, n))
    if dim == 2:
        return Mesh(*structured_triangles(1.0, 1.0, nx_quads=n, ny_quads=n))
    return Mesh(*structured_tetrahedra(1.0, 1.0, 1.0, nx=n, ny=n, nz=n))


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--dim", type=int, default=2, choices=(1, 2, 3))
    parser.add_argument("--degree", type=int, default=1)
    parser.add_argument("--refinements", type=int, default=4)
    parser.add_argument("--start", type=int, default=2, help="cells per direction on the coarsest mesh")
    parser.add_argument("--dirichlet", default="eliminate", choices=("eliminate", "nitsche"))
    parser.add_argument("--stabilization", default="hho", choices=("hho", "hdg"))
    parser.add_argument("--workers", type=int, default=1)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    ms = sine_solution(args.dim)
    params = HHOParameters(degree=args.degree, stabilization=args.stabilization,
                           dirichlet_mode=args.dirichlet, workers=args.workers)

    print(f"{'h':>10} {'dofs':>8} {'H1':>12} {'rate':>6} {'L2':>12} {'rate':>6} {'Linf':>12}")
    prev = None
    for r in range(args.refinements):
        n = args.start * 2 ** r
        mesh = build_mesh(args.dim, n)
        bnd = BoundaryConditions(mesh).add_dirichlet_everywhere(ms.u)
        res = solve_diffusion(mesh, params, ms.source, bnd, solution=ms.u)
        h, e = mesh.h_max(), res.errors
        if prev is None:
            rates = ("", "")
        else:
            rates = tuple(f"{np.log(p / c) / np.log(prev[0] / h):6.2f}"
                          for p, c in ((prev[1], e.h1), (prev[2], e.l2)))
        print(f"{h:10.4e} {res.system_size:8d} {e.h1:12.4e} {rates[0]:>6} "
              f"{e.l2:12.4e} {rates[1]:>6} {e.linf:12.4e}")
        prev = (h, e.h1, e.l2)


if __name__ == "__main__":
    main()
