"""Viewport-based edge culling.

Filters logically-visible edges down to the ones worth drawing this
frame. Stages run in order of increasing cost, each on the survivors of
the previous one:

1. Viewport bounds (2D rectangle plus buffer zone)
2. Camera frustum
3. Distance from camera to edge midpoint
4. Sphere occlusion (optional, most expensive)

With adaptive culling on, the render distance and buffer zone are nudged
after every call to hold the frame-rate target.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from sightline.config import Settings, settings
from sightline.models import CameraView, Edge
from sightline.rendering.frustum import Frustum
from sightline.rendering.geometry import PositionLookup, edge_endpoints

logger = logging.getLogger(__name__)

# Proportional controller thresholds, as fractions of the frame-rate target
SLOW_FRACTION = 0.8
FAST_FRACTION = 1.1
SHRINK_FACTOR = 0.9
GROW_FACTOR = 1.1


@dataclass
class Viewport:
    """Axis-aligned view rectangle in layout coordinates, optionally with a depth range."""

    x: float
    y: float
    width: float
    height: float
    z: float | None = None  # Depth centre; None means unbounded depth
    depth: float | None = None


@dataclass
class Occluder:
    """Opaque sphere that can hide edges behind it."""

    position: tuple[float, float, float]
    radius: float


@dataclass
class CullingConfig:
    """Tunables for ViewportCuller."""

    enable_frustum_culling: bool = True
    enable_viewport_culling: bool = True
    enable_distance_culling: bool = True
    buffer_zone: float = 100.0  # Margin added to each side of the viewport
    max_render_distance: float = 2000.0
    enable_occlusion_culling: bool = False
    occlusion_samples: int = 8  # Segments per edge; samples + 1 points are tested
    adaptive_culling: bool = True
    performance_target: float = 60.0  # Target frames per second

    # Adaptive clamps
    render_distance_floor: float = 500.0
    render_distance_ceiling: float = 3000.0
    buffer_zone_floor: float = 50.0
    buffer_zone_ceiling: float = 200.0

    viewport_depth: float = 1000.0

    def __post_init__(self) -> None:
        if self.max_render_distance < 0:
            logger.warning(
                f"max_render_distance {self.max_render_distance} is negative, "
                f"clamping to {self.render_distance_floor}"
            )
            self.max_render_distance = self.render_distance_floor
        if self.buffer_zone < 0:
            self.buffer_zone = 0.0
        if self.occlusion_samples < 1:
            self.occlusion_samples = 1
        if self.performance_target <= 0:
            self.performance_target = 60.0

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> "CullingConfig":
        s = s or settings
        return cls(
            enable_frustum_culling=s.culling_enable_frustum,
            enable_viewport_culling=s.culling_enable_viewport,
            enable_distance_culling=s.culling_enable_distance,
            buffer_zone=s.culling_buffer_zone,
            max_render_distance=s.culling_max_render_distance,
            enable_occlusion_culling=s.culling_enable_occlusion,
            occlusion_samples=s.culling_occlusion_samples,
            adaptive_culling=s.culling_adaptive,
            performance_target=s.culling_performance_target,
            render_distance_floor=s.culling_render_distance_floor,
            render_distance_ceiling=s.culling_render_distance_ceiling,
            buffer_zone_floor=s.culling_buffer_zone_floor,
            buffer_zone_ceiling=s.culling_buffer_zone_ceiling,
            viewport_depth=s.culling_viewport_depth,
        )


@dataclass
class CullingStats:
    """Counters from the most recent cull_edges call."""

    total_edges: int = 0
    culled_by_viewport: int = 0
    culled_by_frustum: int = 0
    culled_by_distance: int = 0
    culled_by_occlusion: int = 0
    visible_edges: int = 0
    culling_time: float = 0.0  # Milliseconds
    frame_rate: float = 60.0


@dataclass(frozen=True)
class CullingEfficiency:
    """Culling ratios derived from CullingStats."""

    overall_culling_ratio: float
    viewport_culling_ratio: float
    frustum_culling_ratio: float
    distance_culling_ratio: float
    occlusion_culling_ratio: float
    performance_gain: float


class ViewportCuller:
    """
    Multi-stage edge culler with runtime statistics.

    Holds its own config (mutated by adaptive tuning) and the stats of
    the last call; nothing is shared between instances.
    """

    def __init__(
        self,
        config: CullingConfig | None = None,
        positions: PositionLookup | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.config = config or CullingConfig.from_settings()
        self.positions = positions
        self._clock = clock
        self._stats = CullingStats(frame_rate=self.config.performance_target)
        self._last_frame_time: float | None = None

    def cull_edges(
        self,
        edges: Sequence[Edge],
        camera: CameraView,
        viewport: Viewport | None = None,
        occluders: Sequence[Occluder] | None = None,
        positions: PositionLookup | None = None,
    ) -> list[Edge]:
        """
        Cull edges for the current camera.

        Args:
            edges: Candidate edges (normally the collapse-visible set)
            camera: Current camera view
            viewport: Optional 2D view rectangle for the viewport stage
            occluders: Optional spheres for the occlusion stage
            positions: Node id -> position lookup; overrides the one given
                to the constructor

        Returns:
            Surviving edges in input order
        """
        start = self._clock()
        stats = CullingStats(total_edges=len(edges), frame_rate=self._stats.frame_rate)
        cfg = self.config

        stages: list[tuple[str, Callable[..., np.ndarray]]] = []
        if cfg.enable_viewport_culling and viewport is not None:
            stages.append(("viewport", lambda s, t: self._viewport_mask(s, t, viewport)))
        if cfg.enable_frustum_culling:
            stages.append(("frustum", lambda s, t: self._frustum_mask(s, t, camera)))
        if cfg.enable_distance_culling:
            stages.append(("distance", lambda s, t: self._distance_mask(s, t, camera)))
        if cfg.enable_occlusion_culling and occluders:
            stages.append(("occlusion", lambda s, t: self._occlusion_mask(s, t, camera, occluders)))

        if not stages or not edges:
            visible = list(edges)
        else:
            sources, targets, valid = edge_endpoints(edges, positions or self.positions)
            alive = np.ones(len(edges), dtype=bool)
            for name, mask_fn in stages:
                idx = np.flatnonzero(alive)
                if idx.size == 0:
                    break
                survive = valid[idx] & mask_fn(sources[idx], targets[idx])
                culled = int(idx.size - survive.sum())
                setattr(stats, f"culled_by_{name}", culled)
                alive[idx[~survive]] = False
            visible = [edges[i] for i in np.flatnonzero(alive)]

        stats.visible_edges = len(visible)
        stats.culling_time = (self._clock() - start) * 1000
        self._stats = stats
        self._update_frame_rate()

        if cfg.adaptive_culling:
            self._adjust_parameters()

        logger.debug(
            f"Culled {stats.total_edges - stats.visible_edges}/{stats.total_edges} edges "
            f"(viewport={stats.culled_by_viewport}, frustum={stats.culled_by_frustum}, "
            f"distance={stats.culled_by_distance}, occlusion={stats.culled_by_occlusion}) "
            f"in {stats.culling_time:.2f}ms"
        )
        return visible

    # ------------------------------------------------------------------ #
    # Stages
    # ------------------------------------------------------------------ #

    def _viewport_mask(self, sources: np.ndarray, targets: np.ndarray, viewport: Viewport) -> np.ndarray:
        buffer = self.config.buffer_zone
        lo = np.array([viewport.x - buffer, viewport.y - buffer, -np.inf])
        hi = np.array([viewport.x + viewport.width + buffer, viewport.y + viewport.height + buffer, np.inf])
        if viewport.z is not None:
            depth = viewport.depth if viewport.depth is not None else self.config.viewport_depth
            lo[2] = viewport.z - depth - buffer
            hi[2] = viewport.z + depth + buffer

        source_in = np.all((sources >= lo) & (sources <= hi), axis=1)
        target_in = np.all((targets >= lo) & (targets <= hi), axis=1)

        # Segment crosses the box: overlap of the segment's bounding box
        seg_lo = np.minimum(sources, targets)
        seg_hi = np.maximum(sources, targets)
        crosses = np.all((seg_hi >= lo) & (seg_lo <= hi), axis=1)

        return source_in | target_in | crosses

    def _frustum_mask(self, sources: np.ndarray, targets: np.ndarray, camera: CameraView) -> np.ndarray:
        frustum = Frustum.from_camera(camera)
        inside = frustum.contains_points(sources) | frustum.contains_points(targets)
        if inside.all():
            return inside
        boxes = frustum.intersects_boxes(np.minimum(sources, targets), np.maximum(sources, targets))
        return inside | boxes

    def _distance_mask(self, sources: np.ndarray, targets: np.ndarray, camera: CameraView) -> np.ndarray:
        midpoints = (sources + targets) / 2
        distances = np.linalg.norm(midpoints - camera.position, axis=1)
        return distances <= self.config.max_render_distance

    def _occlusion_mask(
        self,
        sources: np.ndarray,
        targets: np.ndarray,
        camera: CameraView,
        occluders: Sequence[Occluder],
    ) -> np.ndarray:
        steps = np.linspace(0.0, 1.0, self.config.occlusion_samples + 1)
        # (N, S, 3) sample points along each edge
        samples = sources[:, np.newaxis, :] + steps[np.newaxis, :, np.newaxis] * (targets - sources)[:, np.newaxis, :]
        rays = samples - camera.position
        lengths = np.linalg.norm(rays, axis=2)
        safe = np.where(lengths > 0, lengths, 1.0)
        directions = rays / safe[:, :, np.newaxis]

        occluded = np.zeros(len(sources), dtype=bool)
        for occluder in occluders:
            to_center = np.asarray(occluder.position, dtype=float) - camera.position
            along = directions @ to_center
            nearest = camera.position + directions * along[:, :, np.newaxis]
            miss = np.linalg.norm(nearest - np.asarray(occluder.position, dtype=float), axis=2)
            hit = (lengths > 0) & (along > 0) & (along < lengths) & (miss < occluder.radius)
            occluded |= hit.any(axis=1)
        return ~occluded

    # ------------------------------------------------------------------ #
    # Adaptive tuning
    # ------------------------------------------------------------------ #

    def _update_frame_rate(self) -> None:
        now = self._clock()
        if self._last_frame_time is not None:
            delta = now - self._last_frame_time
            if delta > 0:
                self._stats.frame_rate = 1.0 / delta
        self._last_frame_time = now

    def _adjust_parameters(self) -> None:
        cfg = self.config
        target = cfg.performance_target
        current = self._stats.frame_rate

        if current < target * SLOW_FRACTION:
            # Never raise a value that already sits below its floor
            cfg.max_render_distance = min(
                cfg.max_render_distance,
                max(cfg.render_distance_floor, cfg.max_render_distance * SHRINK_FACTOR),
            )
            cfg.buffer_zone = min(cfg.buffer_zone, max(cfg.buffer_zone_floor, cfg.buffer_zone * SHRINK_FACTOR))
            logger.debug(
                f"Frame rate {current:.1f} below target {target:.0f}: "
                f"distance={cfg.max_render_distance:.0f}, buffer={cfg.buffer_zone:.0f}"
            )
        elif current > target * FAST_FRACTION and self._stats.visible_edges < self._stats.total_edges * 0.5:
            # Never lower a value that already sits above its ceiling
            cfg.max_render_distance = max(
                cfg.max_render_distance,
                min(cfg.render_distance_ceiling, cfg.max_render_distance * GROW_FACTOR),
            )
            cfg.buffer_zone = max(cfg.buffer_zone, min(cfg.buffer_zone_ceiling, cfg.buffer_zone * GROW_FACTOR))
            logger.debug(
                f"Frame rate {current:.1f} above target {target:.0f}: "
                f"distance={cfg.max_render_distance:.0f}, buffer={cfg.buffer_zone:.0f}"
            )

    # ------------------------------------------------------------------ #
    # Diagnostics and configuration
    # ------------------------------------------------------------------ #

    @property
    def stats(self) -> CullingStats:
        """Snapshot of the last call's statistics."""
        return dataclasses.replace(self._stats)

    def efficiency(self) -> CullingEfficiency:
        s = self._stats
        total = s.total_edges

        def ratio(count: int) -> float:
            return count / total if total > 0 else 0.0

        return CullingEfficiency(
            overall_culling_ratio=ratio(total - s.visible_edges),
            viewport_culling_ratio=ratio(s.culled_by_viewport),
            frustum_culling_ratio=ratio(s.culled_by_frustum),
            distance_culling_ratio=ratio(s.culled_by_distance),
            occlusion_culling_ratio=ratio(s.culled_by_occlusion),
            performance_gain=total / max(1, s.visible_edges) if total > 0 else 1.0,
        )

    def update_config(self, **changes) -> None:
        """Replace config fields; unknown names raise ValueError."""
        known = {f.name for f in dataclasses.fields(CullingConfig)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown culling config fields: {sorted(unknown)}")
        self.config = dataclasses.replace(self.config, **changes)

    def set_culling_method(self, method: str, enabled: bool) -> None:
        """Enable or disable one stage (or adaptive tuning) by config field name."""
        toggles = {
            f.name
            for f in dataclasses.fields(CullingConfig)
            if f.name.startswith("enable_") or f.name == "adaptive_culling"
        }
        if method not in toggles:
            raise ValueError(f"{method!r} is not a culling toggle; expected one of {sorted(toggles)}")
        setattr(self.config, method, bool(enabled))

    def reset_stats(self) -> None:
        self._stats = CullingStats(frame_rate=self.config.performance_target)
        self._last_frame_time = None

    @staticmethod
    def optimal_settings(edge_count: int, target_frame_rate: float = 60.0) -> dict:
        """Recommended config overrides for a graph of edge_count edges."""
        if edge_count < 1000:
            return {
                "enable_viewport_culling": False,
                "enable_frustum_culling": True,
                "enable_distance_culling": False,
                "buffer_zone": 200.0,
                "performance_target": target_frame_rate,
            }
        if edge_count < 5000:
            return {
                "enable_viewport_culling": True,
                "enable_frustum_culling": True,
                "enable_distance_culling": True,
                "buffer_zone": 150.0,
                "max_render_distance": 1500.0,
                "performance_target": target_frame_rate,
            }
        return {
            "enable_viewport_culling": True,
            "enable_frustum_culling": True,
            "enable_distance_culling": True,
            "enable_occlusion_culling": True,
            "buffer_zone": 100.0,
            "max_render_distance": 1000.0,
            "occlusion_samples": 4,
            "performance_target": target_frame_rate,
        }
