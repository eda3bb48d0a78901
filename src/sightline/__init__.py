"""Sightline - visibility resolution for interactive 3D graph views.

Decides which nodes, edges and labels belong in the rendered scene:
collapse/expand resolution, selection halos, viewport culling and label
level of detail.
"""

__version__ = "0.1.0"

from sightline.graph import (
    AdjacencyIndex,
    CollapseResolver,
    CollapseState,
    PathSelectionType,
    resolve_adjacents,
    resolve_expand_path,
    resolve_visibility,
)
from sightline.models import AdjacentSet, CameraView, Edge, Node, VisibleSet
from sightline.rendering import (
    CullingConfig,
    CullingStats,
    LabelLODConfig,
    LODPrioritizer,
    Viewport,
    ViewportCuller,
)

__all__ = [
    "AdjacencyIndex",
    "CollapseResolver",
    "CollapseState",
    "PathSelectionType",
    "resolve_adjacents",
    "resolve_expand_path",
    "resolve_visibility",
    "AdjacentSet",
    "CameraView",
    "Edge",
    "Node",
    "VisibleSet",
    "CullingConfig",
    "CullingStats",
    "LabelLODConfig",
    "LODPrioritizer",
    "Viewport",
    "ViewportCuller",
]
