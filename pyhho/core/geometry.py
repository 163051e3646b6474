"""pyhho.core.geometry
Geometric queries on mesh elements.

Every function takes ``(mesh, element)`` where ``element`` is a
:class:`~pyhho.core.topology.Cell` or a :class:`~pyhho.core.topology.Face`.
Curved or non-star-shaped elements are not supported: polygons and
polyhedra are split into simplices around their vertex mean.
"""
from math import factorial
from typing import List, Union

import numpy as np

from pyhho.core.topology import Cell, Face

Element = Union[Cell, Face]


def element_dim(mesh, elem: Element) -> int:
    """Intrinsic dimension: ``mesh.dim`` for cells, one less for faces."""
    if isinstance(elem, Cell):
        return mesh.dim
    if isinstance(elem, Face):
        return mesh.dim - 1
    raise TypeError(f"Expected a Cell or a Face, got {type(elem).__name__}.")


def points(mesh, elem: Element) -> np.ndarray:
    """Vertex coordinates of ``elem``, shape ``(n, mesh.dim)``."""
    return mesh.points[list(elem.vertices)]


def _fan(pts: np.ndarray) -> List[np.ndarray]:
    if len(pts) == 3:
        return [pts]
    c = pts.mean(axis=0)
    n = len(pts)
    return [np.array([c, pts[i], pts[(i + 1) % n]]) for i in range(n)]


def simplices(mesh, elem: Element) -> List[np.ndarray]:
    """Split ``elem`` into simplices, each an array of ``dim + 1`` vertices."""
    pts = points(mesh, elem)
    edim = element_dim(mesh, elem)
    if edim <= 1:
        return [pts]
    if edim == 2:
        return _fan(pts)
    faces = mesh.faces_of(elem)
    if len(pts) == 4 and len(faces) == 4:
        return [pts]
    apex = pts.mean(axis=0)
    tets = []
    for fc in faces:
        for tri in _fan(points(mesh, fc)):
            tets.append(np.vstack([tri, apex]))
    return tets


def simplex_measure(s: np.ndarray) -> float:
    """Unsigned k-volume of the simplex with vertex rows ``s``."""
    k = len(s) - 1
    if k == 0:
        return 1.0
    edges = s[1:] - s[0]
    gram = edges @ edges.T
    return float(np.sqrt(max(np.linalg.det(gram), 0.0)) / factorial(k))


def measure(mesh, elem: Element) -> float:
    """Length, area or volume of ``elem`` (1 for point faces)."""
    return float(sum(simplex_measure(s) for s in simplices(mesh, elem)))


def barycenter(mesh, elem: Element) -> np.ndarray:
    """Measure-weighted centroid of ``elem``."""
    parts = simplices(mesh, elem)
    if len(parts) == 1:
        return parts[0].mean(axis=0)
    w = np.array([simplex_measure(s) for s in parts])
    c = np.array([s.mean(axis=0) for s in parts])
    return (w[:, None] * c).sum(axis=0) / w.sum()


def diameter(mesh, elem: Element) -> float:
    """Largest distance between two vertices; 0 for a point face."""
    pts = points(mesh, elem)
    diff = pts[:, None, :] - pts[None, :, :]
    return float(np.sqrt((diff ** 2).sum(axis=-1)).max())


def diameter_boundingbox(mesh, elem: Element) -> np.ndarray:
    """Extents of the axis-aligned bounding box, one entry per coordinate."""
    pts = points(mesh, elem)
    return pts.max(axis=0) - pts.min(axis=0)


def normal(mesh, cell: Cell, face: Face) -> np.ndarray:
    """Unit normal to ``face`` pointing out of ``cell``."""
    fpts = points(mesh, face)
    if mesh.dim == 1:
        n = np.array([1.0])
    elif mesh.dim == 2:
        t = fpts[1] - fpts[0]
        n = np.array([t[1], -t[0]])
    else:
        # Newell's method
        n = np.zeros(3)
        for i in range(len(fpts)):
            n += np.cross(fpts[i], fpts[(i + 1) % len(fpts)])
    length = np.linalg.norm(n)
    if length <= 0.0:
        raise ValueError(f"Face {face.gid} has a zero normal.")
    n = n / length
    if np.dot(barycenter(mesh, face) - barycenter(mesh, cell), n) < 0.0:
        n = -n
    return n
