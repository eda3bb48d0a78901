"""Position lookup helpers shared by the spatial resolvers."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Sequence, Union

import numpy as np

from sightline.models import Edge, Node

logger = logging.getLogger(__name__)

PositionLookup = Union[Mapping[str, Sequence[float]], Callable[[str], Union[Sequence[float], None]]]


def positions_from_nodes(nodes: Sequence[Node]) -> dict[str, tuple[float, float, float]]:
    """Map node id -> position for nodes that have been laid out."""
    return {n.id: n.position for n in nodes if n.position is not None}


def lookup_position(positions: PositionLookup | None, node_id: str) -> Sequence[float] | None:
    if positions is None:
        return None
    if callable(positions):
        return positions(node_id)
    return positions.get(node_id)


def as_point(value: Sequence[float]) -> tuple[float, float, float]:
    """Coerce a 2D or 3D coordinate to a 3-tuple (z defaults to 0)."""
    if len(value) == 2:
        return (float(value[0]), float(value[1]), 0.0)
    return (float(value[0]), float(value[1]), float(value[2] or 0.0))


def edge_endpoints(
    edges: Sequence[Edge], positions: PositionLookup | None
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Resolve endpoint coordinates for a batch of edges.

    Returns:
        (sources, targets, valid): two (N, 3) float arrays and an (N,) bool
        mask that is False where either endpoint has no position. Invalid
        rows hold zeros.
    """
    count = len(edges)
    sources = np.zeros((count, 3))
    targets = np.zeros((count, 3))
    valid = np.ones(count, dtype=bool)

    for i, edge in enumerate(edges):
        src = lookup_position(positions, edge.source)
        dst = lookup_position(positions, edge.target)
        if src is None or dst is None:
            valid[i] = False
            continue
        sources[i] = as_point(src)
        targets[i] = as_point(dst)

    missing = count - int(valid.sum())
    if missing:
        logger.warning(f"{missing} of {count} edges reference nodes without a position")
    return sources, targets, valid
