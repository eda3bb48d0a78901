"""Spatial resolvers for the render loop.

Provides:
- Frustum tests built from a camera's view-projection matrix
- Multi-stage edge culling with adaptive tuning
- Label level-of-detail filtering, ranking and capping
- Distance-banded edge LOD planning
"""

from sightline.rendering.culling import (
    CullingConfig,
    CullingEfficiency,
    CullingStats,
    Occluder,
    Viewport,
    ViewportCuller,
)
from sightline.rendering.edge_lod import EdgeLODConfig, EdgeLODPlanner, EdgeQuality, LODLevel
from sightline.rendering.frustum import Frustum
from sightline.rendering.geometry import PositionLookup, positions_from_nodes
from sightline.rendering.labels import (
    LabelLODConfig,
    LabelVisibilityType,
    LODPrioritizer,
    RankedLabel,
    content_hash,
    label_priority,
    label_visibility,
    rank_label_candidates,
)

__all__ = [
    # Geometry
    "Frustum",
    "PositionLookup",
    "positions_from_nodes",
    # Culling
    "ViewportCuller",
    "CullingConfig",
    "CullingStats",
    "CullingEfficiency",
    "Viewport",
    "Occluder",
    # Labels
    "LODPrioritizer",
    "LabelLODConfig",
    "RankedLabel",
    "LabelVisibilityType",
    "content_hash",
    "label_priority",
    "label_visibility",
    "rank_label_candidates",
    # Edge LOD
    "EdgeLODPlanner",
    "EdgeLODConfig",
    "EdgeQuality",
    "LODLevel",
]
