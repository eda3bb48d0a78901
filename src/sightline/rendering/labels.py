"""Label level-of-detail: which node labels to draw this frame.

Every label-rendering path goes through LODPrioritizer so the frustum,
distance, on-screen and legibility filters and the priority ranking are
defined once.
"""

from __future__ import annotations

import hashlib
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Sequence

import numpy as np

from sightline.config import Settings, settings
from sightline.models import CameraView, Node
from sightline.rendering.frustum import Frustum

logger = logging.getLogger(__name__)

ACTIVE_BOOST = 500.0
SELECTED_BOOST = 1000.0
BASE_PRIORITY = 1000.0


def label_priority(distance: float, is_active: bool = False, is_selected: bool = False) -> float:
    """Ranking score: nearer is better, highlighted nodes jump the queue."""
    priority = BASE_PRIORITY - distance
    if is_active:
        priority += ACTIVE_BOOST
    if is_selected:
        priority += SELECTED_BOOST
    return priority


@dataclass
class LabelLODConfig:
    """Tunables for LODPrioritizer."""

    max_distance: float = 8000.0
    ndc_margin: float = 1.2
    min_projected_size: float = 10.0  # Pixels
    ortho_size_multiplier: float = 2.0
    cap: int = 500
    refresh_interval: int = 30  # Frames

    def __post_init__(self) -> None:
        if self.max_distance < 0:
            self.max_distance = 0.0
        if self.cap < 0:
            self.cap = 0
        if self.refresh_interval < 1:
            self.refresh_interval = 1

    @classmethod
    def from_settings(cls, s: Settings | None = None) -> "LabelLODConfig":
        s = s or settings
        return cls(
            max_distance=s.label_max_distance,
            ndc_margin=s.label_ndc_margin,
            min_projected_size=s.label_min_projected_size,
            ortho_size_multiplier=s.label_ortho_size_multiplier,
            cap=s.label_cap,
            refresh_interval=s.label_refresh_interval,
        )


@dataclass
class RankedLabel:
    """A label candidate with its ranking inputs."""

    node: Node
    distance: float
    priority: float


class LODPrioritizer:
    """
    Per-frame label candidate filter, ranking and cap.

    Algorithm:
    1. Filter: inside frustum, within max distance, projected anchor
       inside the (margin-widened) NDC box, projected size legible
    2. Rank by priority = 1000 - distance (+500 active, +1000 selected)
    3. Keep the top `cap`; selected and active nodes are always kept

    rank_label_candidates() is meant to be called every frame and only
    recomputes when node positions, the camera position or the
    highlight inputs change, or every `refresh_interval` frames.
    The memo lives on the instance, one per graph view.
    """

    def __init__(self, config: LabelLODConfig | None = None) -> None:
        self.config = config or LabelLODConfig.from_settings()
        self.frame_count = 0
        self.recompute_count = 0
        self._last_hash: str | None = None
        self._last_camera: tuple[float, float, float] | None = None
        self._last_inputs: tuple | None = None
        self._last_result: list[Node] = []

    def rank_label_candidates(
        self,
        nodes: Sequence[Node],
        camera: CameraView,
        screen_size: tuple[float, float],
        active_ids: Iterable[str] = (),
        selected_ids: Iterable[str] = (),
        cap: int | None = None,
    ) -> list[Node]:
        """Throttled ranking; returns the nodes whose labels should be drawn."""
        self.frame_count += 1
        active = frozenset(active_ids)
        selected = frozenset(selected_ids)
        cap = self.config.cap if cap is None else cap

        digest = content_hash(nodes)
        camera_pos = camera.position_tuple()
        inputs = (active, selected, tuple(screen_size), cap)

        first = self._last_hash is None
        changed = digest != self._last_hash or inputs != self._last_inputs
        moved = camera_pos != self._last_camera
        periodic = self.frame_count % self.config.refresh_interval == 0

        if not (first or changed or moved or periodic):
            return list(self._last_result)

        self._last_hash = digest
        self._last_camera = camera_pos
        self._last_inputs = inputs
        self._last_result = [r.node for r in self.rank(nodes, camera, screen_size, active, selected, cap)]
        self.recompute_count += 1
        return list(self._last_result)

    def rank(
        self,
        nodes: Sequence[Node],
        camera: CameraView,
        screen_size: tuple[float, float],
        active_ids: Iterable[str] = (),
        selected_ids: Iterable[str] = (),
        cap: int | None = None,
    ) -> list[RankedLabel]:
        """Unthrottled filter + rank + cap, highest priority first."""
        if not nodes:
            return []
        active = set(active_ids)
        selected = set(selected_ids)
        cap = self.config.cap if cap is None else max(0, cap)

        positions = np.array(
            [n.position if n.position is not None else (0.0, 0.0, 0.0) for n in nodes], dtype=float
        )
        distances = np.linalg.norm(positions - camera.position, axis=1)
        mask = self.candidate_mask(nodes, positions, distances, camera, screen_size)

        priorities = BASE_PRIORITY - distances
        for i, node in enumerate(nodes):
            if node.id in active:
                priorities[i] += ACTIVE_BOOST
            if node.id in selected:
                priorities[i] += SELECTED_BOOST

        def entry(i: int) -> RankedLabel:
            return RankedLabel(node=nodes[i], distance=float(distances[i]), priority=float(priorities[i]))

        candidates = np.flatnonzero(mask)
        order = candidates[np.argsort(-priorities[candidates], kind="stable")]
        kept = [entry(i) for i in order[:cap]]

        highlighted = active | selected
        if highlighted:
            kept_ids = {r.node.id for r in kept}
            forced = [
                entry(i) for i, node in enumerate(nodes)
                if node.id in highlighted and node.id not in kept_ids
            ]
            if forced:
                kept_ids.update(r.node.id for r in forced)
                overflow = len(kept) + len(forced) - cap
                # Make room by dropping the weakest non-highlighted labels
                while overflow > 0:
                    drop = next(
                        (j for j in range(len(kept) - 1, -1, -1) if kept[j].node.id not in highlighted),
                        None,
                    )
                    if drop is None:
                        break
                    del kept[drop]
                    overflow -= 1
                kept = sorted(kept + forced, key=lambda r: -r.priority)

        logger.debug(
            f"Label LOD: {len(candidates)}/{len(nodes)} candidates, {len(kept)} kept (cap={cap})"
        )
        return kept

    def candidate_mask(
        self,
        nodes: Sequence[Node],
        positions: np.ndarray,
        distances: np.ndarray,
        camera: CameraView,
        screen_size: tuple[float, float],
    ) -> np.ndarray:
        """Boolean mask of nodes passing the spatial label filters."""
        cfg = self.config
        frustum = Frustum.from_camera(camera)
        mask = frustum.contains_points(positions)
        mask &= distances <= cfg.max_distance

        homogeneous = np.hstack([positions, np.ones((len(positions), 1))]) @ camera.view_projection.T
        w = homogeneous[:, 3]
        safe_w = np.where(w != 0, w, np.nan)
        ndc = homogeneous[:, :3] / safe_w[:, np.newaxis]
        with np.errstate(invalid="ignore"):
            on_screen = (
                (np.abs(ndc[:, 0]) <= cfg.ndc_margin)
                & (np.abs(ndc[:, 1]) <= cfg.ndc_margin)
                & (ndc[:, 2] >= -1.0)
                & (ndc[:, 2] <= 1.0)
            )
        mask &= on_screen

        sizes = np.array([n.size or 1.0 for n in nodes], dtype=float)
        if camera.is_perspective:
            half_fov = math.tan(math.radians(camera.fov) / 2)
            screen_height = float(screen_size[1])
            with np.errstate(divide="ignore"):
                projected = np.where(
                    distances > 0,
                    sizes * screen_height / (np.maximum(distances, 1e-12) * half_fov),
                    np.inf,
                )
        else:
            projected = sizes * cfg.ortho_size_multiplier
        mask &= projected >= cfg.min_projected_size
        return mask


def content_hash(nodes: Iterable[Node]) -> str:
    """Digest of (id, position) for every node, order-sensitive."""
    h = hashlib.blake2b(digest_size=16)
    for node in nodes:
        x, y, z = node.position if node.position is not None else (0.0, 0.0, 0.0)
        h.update(f"{node.id}:{x},{y},{z}|".encode())
    return h.hexdigest()


def rank_label_candidates(
    nodes: Sequence[Node],
    camera: CameraView,
    screen_size: tuple[float, float],
    active_ids: Iterable[str] = (),
    selected_ids: Iterable[str] = (),
    cap: int | None = None,
    config: LabelLODConfig | None = None,
) -> list[Node]:
    """
    Convenience function for one-off label ranking (no throttling).

    Returns the ranked, capped nodes.
    """
    prioritizer = LODPrioritizer(config)
    return [r.node for r in prioritizer.rank(nodes, camera, screen_size, active_ids, selected_ids, cap)]


class LabelVisibilityType(str, Enum):
    """Global label display policy."""

    ALL = "all"
    AUTO = "auto"
    NONE = "none"
    NODES = "nodes"
    EDGES = "edges"


def label_visibility(
    label_type: LabelVisibilityType | str,
    camera: CameraView | None = None,
    node_position: Sequence[float] | None = None,
    far_cutoff: float = 6000.0,
    near_threshold: float = 3000.0,
    auto_min_size: float = 7.0,
) -> Callable[[str, float], bool]:
    """
    Build a predicate deciding whether a label of a given shape/size shows.

    The predicate takes (shape, size) where shape is "node" or "edge".
    Depth is measured as camera.z / zoom - node.z.
    """
    label_type = LabelVisibilityType(label_type)

    depth: float | None = None
    if camera is not None and node_position is not None:
        node_z = float(node_position[2]) if len(node_position) > 2 else 0.0
        depth = float(camera.position[2]) / camera.zoom - node_z

    def is_visible(shape: str, size: float) -> bool:
        always = (
            label_type is LabelVisibilityType.ALL
            or (label_type is LabelVisibilityType.NODES and shape == "node")
            or (label_type is LabelVisibilityType.EDGES and shape == "edge")
        )
        if always:
            return True
        if depth is not None and depth > far_cutoff:
            return False
        if label_type is LabelVisibilityType.AUTO and shape == "node":
            if size > auto_min_size:
                return True
            if depth is not None and depth < near_threshold:
                return True
        return False

    return is_visible
