"""pyhho.utils.meshgen
Mesh generators for quick tests.

Every generator returns raw ``(points, cells)`` data in the input format
of :class:`pyhho.core.mesh.Mesh`.
"""
from itertools import permutations
from typing import List, Tuple

import numpy as np
from scipy.spatial import Delaunay

__all__ = ["uniform_interval", "delaunay_rectangle", "structured_triangles",
           "structured_quads", "structured_tetrahedra", "structured_hexahedra",
           "single_polygon"]


def uniform_interval(a: float, b: float, n: int):
    """``n`` equal segments on ``[a, b]``."""
    pts = np.linspace(a, b, n + 1)[:, None]
    cells = [(i, i + 1) for i in range(n)]
    return pts, cells


def delaunay_rectangle(length: float, height: float, nx: int = 10, ny: int = 10):
    x = np.linspace(0.0, length, nx)
    y = np.linspace(0.0, height, ny)
    X, Y = np.meshgrid(x, y)
    pts = np.column_stack([X.ravel(), Y.ravel()])
    elems = Delaunay(pts).simplices.copy()

    # make triangles CCW
    def signed_area(a, b, c):
        return (b[0]-a[0])*(c[1]-a[1]) - (b[1]-a[1])*(c[0]-a[0])
    for t in elems:
        a, b, c = pts[t]
        if signed_area(a, b, c) < 0:
            t[1], t[2] = t[2], t[1]
    return pts, [tuple(int(v) for v in t) for t in elems]


def _grid_2d(Lx, Ly, nx, ny):
    x = np.linspace(0.0, Lx, nx + 1)
    y = np.linspace(0.0, Ly, ny + 1)
    X, Y = np.meshgrid(x, y, indexing='xy')
    pts = np.column_stack([X.ravel(), Y.ravel()])

    def vid(i, j):
        return j * (nx + 1) + i
    return pts, vid


def structured_quads(Lx: float, Ly: float, *, nx: int, ny: int):
    """``nx * ny`` rectangles on ``[0, Lx] x [0, Ly]``, CCW vertex order."""
    pts, vid = _grid_2d(Lx, Ly, nx, ny)
    cells = [(vid(i, j), vid(i + 1, j), vid(i + 1, j + 1), vid(i, j + 1))
             for j in range(ny) for i in range(nx)]
    return pts, cells


def structured_triangles(Lx: float, Ly: float, *, nx_quads: int, ny_quads: int):
    """Every rectangle of a ``nx_quads * ny_quads`` grid split along its diagonal."""
    pts, vid = _grid_2d(Lx, Ly, nx_quads, ny_quads)
    cells = []
    for j in range(ny_quads):
        for i in range(nx_quads):
            v00, v10, v11, v01 = vid(i, j), vid(i + 1, j), vid(i + 1, j + 1), vid(i, j + 1)
            cells.append((v00, v10, v11))
            cells.append((v00, v11, v01))
    return pts, cells


def _grid_3d(Lx, Ly, Lz, nx, ny, nz):
    x = np.linspace(0.0, Lx, nx + 1)
    y = np.linspace(0.0, Ly, ny + 1)
    z = np.linspace(0.0, Lz, nz + 1)
    Z, Y, X = np.meshgrid(z, y, x, indexing='ij')
    pts = np.column_stack([X.ravel(), Y.ravel(), Z.ravel()])

    def vid(i, j, k):
        return (k * (ny + 1) + j) * (nx + 1) + i
    return pts, vid


def structured_tetrahedra(Lx: float, Ly: float, Lz: float, *, nx: int, ny: int, nz: int):
    """
    Kuhn subdivision: each box is cut into six tetrahedra sharing the
    diagonal from its lowest to its highest corner.  The subdivision is
    conforming because every box is cut the same way.
    """
    pts, vid = _grid_3d(Lx, Ly, Lz, nx, ny, nz)
    cells = []
    unit = np.eye(3, dtype=int)
    for k in range(nz):
        for j in range(ny):
            for i in range(nx):
                base = np.array([i, j, k])
                for perm in permutations(range(3)):
                    path = [base.copy()]
                    for axis in perm:
                        path.append(path[-1] + unit[axis])
                    cells.append(tuple(vid(*p) for p in path))
    return pts, cells


def structured_hexahedra(Lx: float, Ly: float, Lz: float, *, nx: int, ny: int, nz: int):
    """Boxes given as general polyhedra (six quadrilateral faces each)."""
    pts, vid = _grid_3d(Lx, Ly, Lz, nx, ny, nz)
    cells: List[List[Tuple[int, ...]]] = []
    for k in range(nz):
        for j in range(ny):
            for i in range(nx):
                c = {(a, b, d): vid(i + a, j + b, k + d)
                     for a in (0, 1) for b in (0, 1) for d in (0, 1)}
                cells.append([
                    (c[0, 0, 0], c[0, 1, 0], c[1, 1, 0], c[1, 0, 0]),   # z = min
                    (c[0, 0, 1], c[1, 0, 1], c[1, 1, 1], c[0, 1, 1]),   # z = max
                    (c[0, 0, 0], c[1, 0, 0], c[1, 0, 1], c[0, 0, 1]),   # y = min
                    (c[0, 1, 0], c[0, 1, 1], c[1, 1, 1], c[1, 1, 0]),   # y = max
                    (c[0, 0, 0], c[0, 0, 1], c[0, 1, 1], c[0, 1, 0]),   # x = min
                    (c[1, 0, 0], c[1, 1, 0], c[1, 1, 1], c[1, 0, 1]),   # x = max
                ])
    return pts, cells


def single_polygon(num_faces: int, radius: float = 1.0):
    """One regular polygon cell centred at the origin."""
    if num_faces < 3:
        raise ValueError(f"A polygon needs at least 3 faces, got {num_faces}.")
    angles = 2.0 * np.pi * np.arange(num_faces) / num_faces
    pts = radius * np.column_stack([np.cos(angles), np.sin(angles)])
    return pts, [tuple(range(num_faces))]
