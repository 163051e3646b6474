import logging
from dataclasses import dataclass

import numpy as np

from pyhho.core.errors import DegenerateElementError

logger = logging.getLogger(__name__)

# edge pairs whose cosine reaches this value are rejected
COLLINEARITY_THRESHOLD = 0.99


@dataclass(frozen=True)
class ReferenceFrame:
    """
    Orthonormal tangent frame of a planar face in 3D.

    ``e0`` follows the first admissible face edge and ``e1`` is the
    Gram-Schmidt complement of the adjacent edge, so the frame depends on
    the vertex order of the face.
    """
    barycenter: np.ndarray
    diameter: float
    e0: np.ndarray
    e1: np.ndarray

    @classmethod
    def from_points(cls, pts, barycenter, diameter: float,
                    threshold: float = COLLINEARITY_THRESHOLD) -> "ReferenceFrame":
        """
        Scan the vertices in order (starting at the second one and wrapping
        around) and keep the first vertex whose outgoing edge to the next
        vertex and incoming edge from the previous vertex have a cosine below
        ``threshold``.  A straight angle passes that test and leaves no
        tangent after Gram-Schmidt, which is reported as degenerate.
        """
        pts = np.asarray(pts, dtype=float)
        npts = len(pts)
        if npts < 3:
            raise DegenerateElementError(f"A face needs at least 3 vertices, got {npts}.")
        if diameter <= 0.0:
            raise DegenerateElementError("Face has zero diameter.")
        for i in range(1, npts + 1):
            i_c, i_0, i_1 = i % npts, (i + 1) % npts, (i - 1) % npts
            v0 = pts[i_0] - pts[i_c]
            v1 = pts[i_1] - pts[i_c]
            n0, n1 = np.linalg.norm(v0), np.linalg.norm(v1)
            if n0 <= 0.0 or n1 <= 0.0:
                continue
            if np.dot(v0 / n0, v1 / n1) >= threshold:
                continue
            e1 = v1 - (np.dot(v1, v0) / np.dot(v0, v0)) * v0
            n_e1 = np.linalg.norm(e1)
            if n_e1 <= 1e-12 * n1:
                raise DegenerateElementError(
                    f"Edges at vertex {i_c} of this {npts}-vertex face are collinear.")
            logger.debug("Face frame built at vertex %d of %d", i_c, npts)
            return cls(barycenter=np.array(barycenter, dtype=float), diameter=float(diameter),
                       e0=v0 / n0, e1=e1 / n_e1)
        raise DegenerateElementError(
            f"No pair of edges of this {npts}-vertex face spans a plane "
            f"(cosine threshold {threshold}).")

    @property
    def normal(self) -> np.ndarray:
        return np.cross(self.e0, self.e1)

    def map_to_face(self, pts) -> np.ndarray:
        """Face coordinates of 3D points, scaled by half the face diameter."""
        # same space as unscaled raw edge vectors, different coefficients
        v = np.atleast_2d(np.asarray(pts, dtype=float)) - self.barycenter
        return np.column_stack([v @ self.e0, v @ self.e1]) / (0.5 * self.diameter)
