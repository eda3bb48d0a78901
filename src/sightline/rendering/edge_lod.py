"""Distance-banded level of detail for edges.

Picks a tessellation level per edge and groups renderable edges by level
so the renderer can batch them. Building the actual geometry is the
renderer's job.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

import numpy as np

from sightline.config import Settings, settings
from sightline.models import CameraView, Edge
from sightline.rendering.geometry import PositionLookup, as_point, lookup_position

logger = logging.getLogger(__name__)

SCREEN_BOUNDS_MARGIN = 1.1


class EdgeQuality(str, Enum):
    """Named LOD quality tiers."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    MINIMAL = "minimal"


@dataclass
class LODLevel:
    """One distance band: edges at least `distance` away use this tessellation."""

    distance: float
    segments: int
    radial_segments: int
    use_simplified_geometry: bool
    quality: EdgeQuality

    @property
    def key(self) -> str:
        return f"{self.quality.value}_{self.segments}_{self.radial_segments}"


def default_lod_levels() -> list[LODLevel]:
    return [
        LODLevel(0.0, 20, 8, False, EdgeQuality.HIGH),
        LODLevel(50.0, 12, 6, False, EdgeQuality.MEDIUM),
        LODLevel(200.0, 6, 4, False, EdgeQuality.LOW),
        LODLevel(500.0, 2, 3, True, EdgeQuality.MINIMAL),
    ]


BATCH_SIZES = {
    EdgeQuality.HIGH: 500,
    EdgeQuality.MEDIUM: 1000,
    EdgeQuality.LOW: 2000,
    EdgeQuality.MINIMAL: 5000,
}


@dataclass
class EdgeLODConfig:
    """Tunables for EdgeLODPlanner."""

    levels: list[LODLevel] = field(default_factory=default_lod_levels)
    enable_frustum_culling: bool = True
    enable_distance_culling: bool = True
    max_render_distance: float = 2000.0
    adaptive_quality: bool = True
    performance_target: float = 60.0

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> "EdgeLODConfig":
        s = s or settings
        return cls(
            max_render_distance=s.edge_lod_max_render_distance,
            adaptive_quality=s.edge_lod_adaptive,
            performance_target=s.culling_performance_target,
        )


class EdgeLODPlanner:
    """Assigns LOD levels to edges and adapts the bands to performance."""

    def __init__(self, config: EdgeLODConfig | None = None, positions: PositionLookup | None = None) -> None:
        self.config = config or EdgeLODConfig.from_settings()
        self.positions = positions
        self.levels = sorted(self.config.levels, key=lambda level: level.distance)

    def level_for_distance(self, distance: float) -> LODLevel:
        """Furthest band whose threshold the distance has reached."""
        for level in reversed(self.levels):
            if distance >= level.distance:
                return level
        return self.levels[0]

    def edge_distance(self, edge: Edge, camera: CameraView, positions: PositionLookup | None = None) -> float:
        """Camera distance to the edge midpoint; max render distance if unplaced."""
        endpoints = self._endpoints(edge, positions)
        if endpoints is None:
            return self.config.max_render_distance
        source, target = endpoints
        return camera.distance_to((source + target) / 2)

    def should_render_edge(self, edge: Edge, camera: CameraView, positions: PositionLookup | None = None) -> bool:
        distance = self.edge_distance(edge, camera, positions)
        if self.config.enable_distance_culling and distance > self.config.max_render_distance:
            return False
        if self.config.enable_frustum_culling:
            return self._on_screen(edge, camera, positions)
        return True

    def organize_by_lod(
        self,
        edges: Sequence[Edge],
        camera: CameraView,
        positions: PositionLookup | None = None,
    ) -> dict[str, list[Edge]]:
        """Group renderable edges by LOD level key, preserving edge order within a group."""
        groups: dict[str, list[Edge]] = {}
        for edge in edges:
            if not self.should_render_edge(edge, camera, positions):
                continue
            level = self.level_for_distance(self.edge_distance(edge, camera, positions))
            groups.setdefault(level.key, []).append(edge)
        logger.debug(
            f"Edge LOD groups: {', '.join(f'{k}={len(v)}' for k, v in groups.items()) or 'none'}"
        )
        return groups

    def update_levels(self, frame_rate: float, edge_count: int, render_time: float) -> None:
        """Scale LOD bands from performance metrics (render_time in ms)."""
        if not self.config.adaptive_quality:
            return

        if frame_rate < 30 and edge_count > 1000:
            self.levels = [
                dataclasses.replace(
                    level,
                    segments=max(2, int(level.segments * 0.8)),
                    radial_segments=max(3, int(level.radial_segments * 0.8)),
                    distance=level.distance * 0.8,
                )
                for level in self.levels
            ]
            logger.debug(f"Edge LOD reduced at {frame_rate:.1f} fps with {edge_count} edges")
        elif frame_rate > 55 and render_time < 8:
            self.levels = [
                dataclasses.replace(
                    level,
                    segments=min(20, int(level.segments * 1.1)),
                    radial_segments=min(8, int(level.radial_segments * 1.1)),
                    distance=level.distance * 1.1,
                )
                for level in self.levels
            ]
            logger.debug(f"Edge LOD raised at {frame_rate:.1f} fps")

    @staticmethod
    def recommended_batch_size(level: LODLevel) -> int:
        return BATCH_SIZES.get(level.quality, 1000)

    def optimal_quality(self, edge_count: int, frame_rate: float) -> EdgeQuality:
        target = self.config.performance_target or 60.0
        if frame_rate >= target * 0.9:
            return EdgeQuality.HIGH if edge_count < 5000 else EdgeQuality.MEDIUM
        if frame_rate >= target * 0.7:
            return EdgeQuality.MEDIUM if edge_count < 2000 else EdgeQuality.LOW
        return EdgeQuality.LOW if edge_count < 1000 else EdgeQuality.MINIMAL

    def _endpoints(
        self, edge: Edge, positions: PositionLookup | None
    ) -> tuple[np.ndarray, np.ndarray] | None:
        lookup = positions or self.positions
        source = lookup_position(lookup, edge.source)
        target = lookup_position(lookup, edge.target)
        if source is None or target is None:
            return None
        return np.array(as_point(source)), np.array(as_point(target))

    def _on_screen(self, edge: Edge, camera: CameraView, positions: PositionLookup | None) -> bool:
        endpoints = self._endpoints(edge, positions)
        if endpoints is None:
            return False
        for point in endpoints:
            ndc = camera.project(point)
            if (
                abs(ndc[0]) <= SCREEN_BOUNDS_MARGIN
                and abs(ndc[1]) <= SCREEN_BOUNDS_MARGIN
                and -1.0 <= ndc[2] <= 1.0
            ):
                return True
        return False
