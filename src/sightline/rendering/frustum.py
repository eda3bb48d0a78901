"""View frustum built from a view-projection matrix."""

from typing import Sequence

import numpy as np

from sightline.models import CameraView


class Frustum:
    """Six clip planes (left, right, bottom, top, near, far) facing inwards.

    Planes are extracted from the rows of the view-projection matrix
    (Gribb/Hartmann) and normalized, so plane @ [x, y, z, 1] is a signed
    distance.
    """

    def __init__(self, view_projection: np.ndarray) -> None:
        m = np.asarray(view_projection, dtype=float)
        rows = [m[0], m[1], m[2], m[3]]
        planes = np.array(
            [
                rows[3] + rows[0],
                rows[3] - rows[0],
                rows[3] + rows[1],
                rows[3] - rows[1],
                rows[3] + rows[2],
                rows[3] - rows[2],
            ]
        )
        norms = np.linalg.norm(planes[:, :3], axis=1, keepdims=True)
        norms[norms == 0] = 1.0
        self.planes = planes / norms

    @classmethod
    def from_camera(cls, camera: CameraView) -> "Frustum":
        return cls(camera.view_projection)

    def contains_point(self, point: Sequence[float]) -> bool:
        p = np.asarray(point, dtype=float)
        distances = self.planes[:, :3] @ p + self.planes[:, 3]
        return bool(np.all(distances >= 0))

    def contains_points(self, points: np.ndarray) -> np.ndarray:
        """Vectorized containment for an (N, 3) array; returns an (N,) bool mask."""
        pts = np.asarray(points, dtype=float).reshape(-1, 3)
        distances = pts @ self.planes[:, :3].T + self.planes[:, 3]
        return np.all(distances >= 0, axis=1)

    def intersects_box(self, box_min: Sequence[float], box_max: Sequence[float]) -> bool:
        """Conservative AABB test: False only if the box is fully outside one plane."""
        lo = np.asarray(box_min, dtype=float)
        hi = np.asarray(box_max, dtype=float)
        normals = self.planes[:, :3]
        # Corner furthest along each plane normal
        corners = np.where(normals > 0, hi, lo)
        distances = np.einsum("ij,ij->i", normals, corners) + self.planes[:, 3]
        return bool(np.all(distances >= 0))

    def intersects_boxes(self, box_min: np.ndarray, box_max: np.ndarray) -> np.ndarray:
        """Vectorized intersects_box for (N, 3) corner arrays; returns an (N,) bool mask."""
        lo = np.asarray(box_min, dtype=float).reshape(-1, 3)
        hi = np.asarray(box_max, dtype=float).reshape(-1, 3)
        normals = self.planes[:, :3]
        positive = normals[np.newaxis, :, :] > 0
        corners = np.where(positive, hi[:, np.newaxis, :], lo[:, np.newaxis, :])
        distances = np.einsum("npk,pk->np", corners, normals) + self.planes[:, 3]
        return np.all(distances >= 0, axis=1)
