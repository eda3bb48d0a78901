"""Adjacency expansion around a selection (active halo)."""

import logging
from enum import Enum
from typing import Iterable

from sightline.graph.index import AdjacencyIndex
from sightline.models import AdjacentSet

logger = logging.getLogger(__name__)


class PathSelectionType(str, Enum):
    """Which neighbours of a selected node become active."""

    DIRECT = "direct"  # Incident edges only, no extra nodes
    OUT = "out"  # Outbound edges and their targets
    IN = "in"  # Inbound edges and their sources
    ALL = "all"  # Every incident edge and both endpoints


def resolve_adjacents(
    index: AdjacencyIndex,
    selected_ids: str | Iterable[str],
    mode: PathSelectionType | str = PathSelectionType.DIRECT,
) -> AdjacentSet:
    """
    Compute the active nodes/edges around the selected node ids.

    Args:
        index: Adjacency index for the current graph snapshot
        selected_ids: One selected id or an iterable of them
        mode: Traversal mode (direct, out, in, all)

    Returns:
        AdjacentSet with node ids and edge ids, each deduplicated across
        all selected ids and kept in discovery order
    """
    mode = PathSelectionType(mode)
    if isinstance(selected_ids, str):
        selected_ids = [selected_ids]

    nodes: dict[str, None] = {}
    edges: dict[str, None] = {}

    for node_id in selected_ids:
        incident = index.incident(node_id)
        if not incident:
            logger.debug(f"Selected node {node_id!r} has no incident edges")
            continue

        for edge in incident:
            if mode is PathSelectionType.IN:
                if edge.target != node_id:
                    continue
                edges.setdefault(edge.id)
                nodes.setdefault(edge.source)
            elif mode is PathSelectionType.OUT:
                if edge.source != node_id:
                    continue
                edges.setdefault(edge.id)
                nodes.setdefault(edge.target)
            elif mode is PathSelectionType.ALL:
                edges.setdefault(edge.id)
                nodes.setdefault(edge.source)
                nodes.setdefault(edge.target)
            else:
                edges.setdefault(edge.id)

    return AdjacentSet(nodes=list(nodes), edges=list(edges))
