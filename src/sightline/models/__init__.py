"""Sightline data models."""

from sightline.models.camera import CameraView, look_at, orthographic_matrix, perspective_matrix
from sightline.models.graph import AdjacentSet, Edge, Node, Vec3, VisibleSet, parse_position

__all__ = [
    "Node",
    "Edge",
    "Vec3",
    "VisibleSet",
    "AdjacentSet",
    "parse_position",
    "CameraView",
    "look_at",
    "perspective_matrix",
    "orthographic_matrix",
]
