"""Adjacency index over an edge list.

Built once per graph snapshot by the caller and shared by the collapse
and adjacency resolvers so per-node lookups avoid scanning every edge.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Iterable

from sightline.models import Edge, Node

logger = logging.getLogger(__name__)


class AdjacencyIndex:
    """Inbound/outbound edge lookups keyed by node id.

    Every lookup returns edges in their original list order, which the
    expand-path resolver relies on ("first inbound edge").
    """

    def __init__(self, edges: Iterable[Edge], nodes: Iterable[Node] | None = None) -> None:
        self._edges: list[Edge] = []
        self._edge_by_id: dict[str, Edge] = {}
        self._order: dict[str, int] = {}
        self._inbound: dict[str, list[Edge]] = defaultdict(list)
        self._outbound: dict[str, list[Edge]] = defaultdict(list)

        for edge in edges:
            if edge.id in self._edge_by_id:
                logger.debug(f"Duplicate edge id {edge.id!r} ignored")
                continue
            self._order[edge.id] = len(self._edges)
            self._edges.append(edge)
            self._edge_by_id[edge.id] = edge
            self._outbound[edge.source].append(edge)
            self._inbound[edge.target].append(edge)

        self._node_by_id: dict[str, Node] = {}
        if nodes is not None:
            for node in nodes:
                self._node_by_id.setdefault(node.id, node)

    def __len__(self) -> int:
        return len(self._edges)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._inbound or node_id in self._outbound or node_id in self._node_by_id

    @property
    def edges(self) -> list[Edge]:
        return list(self._edges)

    def edge(self, edge_id: str) -> Edge | None:
        return self._edge_by_id.get(edge_id)

    def has_node(self, node_id: str) -> bool:
        """True when the node was supplied to the index (not merely referenced by an edge)."""
        return node_id in self._node_by_id

    def inbound(self, node_id: str) -> list[Edge]:
        """Edges whose target is node_id."""
        return self._inbound.get(node_id, [])

    def outbound(self, node_id: str) -> list[Edge]:
        """Edges whose source is node_id."""
        return self._outbound.get(node_id, [])

    def incident(self, node_id: str) -> list[Edge]:
        """All edges touching node_id in either direction, each once, in edge order."""
        inbound = self._inbound.get(node_id, [])
        outbound = self._outbound.get(node_id, [])
        if not inbound:
            return list(outbound)
        if not outbound:
            return list(inbound)

        seen: set[str] = set()
        incident: list[Edge] = []
        for edge in inbound + outbound:
            if edge.id not in seen:
                seen.add(edge.id)
                incident.append(edge)
        incident.sort(key=lambda e: self._order[e.id])
        return incident

    def degree(self, node_id: str) -> int:
        return len(self.incident(node_id))
