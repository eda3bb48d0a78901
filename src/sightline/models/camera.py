"""Camera view model - the slice of camera state the resolvers need.

Matrices use the column-vector convention (clip = projection @ view @ world)
and OpenGL clip space, so NDC x, y, z all span [-1, 1] inside the view volume.
"""

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np


def look_at(
    eye: Sequence[float],
    target: Sequence[float],
    up: Sequence[float] = (0.0, 1.0, 0.0),
) -> np.ndarray:
    """Build a world-to-camera matrix for a camera at eye looking at target."""
    eye_v = np.asarray(eye, dtype=float)
    forward = np.asarray(target, dtype=float) - eye_v
    norm = np.linalg.norm(forward)
    if norm == 0:
        raise ValueError("Camera target coincides with camera position")
    forward /= norm

    side = np.cross(forward, np.asarray(up, dtype=float))
    side_norm = np.linalg.norm(side)
    if side_norm == 0:
        raise ValueError("Camera up vector is parallel to view direction")
    side /= side_norm
    true_up = np.cross(side, forward)

    view = np.identity(4)
    view[0, :3] = side
    view[1, :3] = true_up
    view[2, :3] = -forward
    view[0, 3] = -side @ eye_v
    view[1, 3] = -true_up @ eye_v
    view[2, 3] = forward @ eye_v
    return view


def perspective_matrix(
    fov: float, aspect: float, near: float, far: float, zoom: float = 1.0
) -> np.ndarray:
    """Perspective projection; fov is the vertical field of view in degrees."""
    top = near * math.tan(math.radians(fov) / 2) / zoom
    right = top * aspect
    proj = np.zeros((4, 4))
    proj[0, 0] = near / right
    proj[1, 1] = near / top
    proj[2, 2] = -(far + near) / (far - near)
    proj[2, 3] = -2 * far * near / (far - near)
    proj[3, 2] = -1.0
    return proj


def orthographic_matrix(
    left: float,
    right: float,
    top: float,
    bottom: float,
    near: float,
    far: float,
    zoom: float = 1.0,
) -> np.ndarray:
    """Orthographic projection; zoom shrinks the visible box around its centre."""
    cx = (right + left) / 2
    cy = (top + bottom) / 2
    dx = (right - left) / (2 * zoom)
    dy = (top - bottom) / (2 * zoom)
    left, right, top, bottom = cx - dx, cx + dx, cy + dy, cy - dy

    proj = np.identity(4)
    proj[0, 0] = 2 / (right - left)
    proj[1, 1] = 2 / (top - bottom)
    proj[2, 2] = -2 / (far - near)
    proj[0, 3] = -(right + left) / (right - left)
    proj[1, 3] = -(top + bottom) / (top - bottom)
    proj[2, 3] = -(far + near) / (far - near)
    return proj


@dataclass(eq=False)
class CameraView:
    """
    Camera state handed to the spatial resolvers each frame.

    Perspective cameras carry a vertical fov (degrees); orthographic
    cameras leave fov as None and rely on zoom.
    """

    position: np.ndarray
    view_matrix: np.ndarray
    projection_matrix: np.ndarray
    fov: float | None = None
    zoom: float = 1.0

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=float)
        self.view_matrix = np.asarray(self.view_matrix, dtype=float)
        self.projection_matrix = np.asarray(self.projection_matrix, dtype=float)
        if self.position.shape != (3,):
            raise ValueError(f"Camera position must be a 3-vector, got shape {self.position.shape}")
        for name in ("view_matrix", "projection_matrix"):
            if getattr(self, name).shape != (4, 4):
                raise ValueError(f"Camera {name} must be 4x4")
        self._view_projection = self.projection_matrix @ self.view_matrix

    @property
    def is_perspective(self) -> bool:
        return self.fov is not None

    @property
    def view_projection(self) -> np.ndarray:
        return self._view_projection

    def position_tuple(self) -> tuple[float, float, float]:
        return (float(self.position[0]), float(self.position[1]), float(self.position[2]))

    def distance_to(self, point: Sequence[float]) -> float:
        """Euclidean distance from the camera to a world point."""
        return float(np.linalg.norm(np.asarray(point, dtype=float) - self.position))

    def project(self, point: Sequence[float]) -> np.ndarray:
        """Project a world point to normalized device coordinates.

        Points on the camera plane (w == 0) project to infinity.
        """
        homogeneous = self._view_projection @ np.append(np.asarray(point, dtype=float), 1.0)
        w = homogeneous[3]
        if w == 0:
            return np.full(3, np.inf)
        return homogeneous[:3] / w

    @classmethod
    def perspective(
        cls,
        position: Sequence[float],
        target: Sequence[float] = (0.0, 0.0, 0.0),
        up: Sequence[float] = (0.0, 1.0, 0.0),
        fov: float = 50.0,
        aspect: float = 1.0,
        near: float = 0.1,
        far: float = 50000.0,
        zoom: float = 1.0,
    ) -> "CameraView":
        """Create a perspective camera looking at target."""
        return cls(
            position=np.asarray(position, dtype=float),
            view_matrix=look_at(position, target, up),
            projection_matrix=perspective_matrix(fov, aspect, near, far, zoom),
            fov=fov,
            zoom=zoom,
        )

    @classmethod
    def orthographic(
        cls,
        position: Sequence[float],
        target: Sequence[float] = (0.0, 0.0, 0.0),
        up: Sequence[float] = (0.0, 1.0, 0.0),
        width: float = 1000.0,
        height: float = 1000.0,
        near: float = 0.1,
        far: float = 50000.0,
        zoom: float = 1.0,
    ) -> "CameraView":
        """Create an orthographic camera with a width x height view box."""
        return cls(
            position=np.asarray(position, dtype=float),
            view_matrix=look_at(position, target, up),
            projection_matrix=orthographic_matrix(
                -width / 2, width / 2, height / 2, -height / 2, near, far, zoom
            ),
            fov=None,
            zoom=zoom,
        )
