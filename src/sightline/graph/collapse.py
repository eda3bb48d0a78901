"""Collapse/expand resolution.

Collapsing a node hides its outbound edges and, transitively, every
descendant that has no other surviving way in. A node reached by the
collapse stays visible as long as any inbound edge from outside the
hidden region remains.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from sightline.config import settings
from sightline.graph.index import AdjacencyIndex
from sightline.models import Edge, Node, VisibleSet

logger = logging.getLogger(__name__)


@dataclass
class HiddenSet:
    """Ids hidden by a collapse resolve."""

    nodes: set[str] = field(default_factory=set)
    edges: set[str] = field(default_factory=set)

    def update(self, other: "HiddenSet") -> None:
        self.nodes |= other.nodes
        self.edges |= other.edges


class CollapseResolver:
    """
    Computes hidden/visible sets for a graph snapshot and a collapsed-id set.

    Algorithm, per collapsed id c:
    1. Hide every outbound edge of c
    2. For each target t of those edges, look at t's inbound edges not
       coming from c. t is hidden if there are none, or if all of them
       are already hidden
    3. Hidden targets repeat the procedure rooted at themselves
    4. A node is never revisited within one resolve, so cycles and
       self-loops terminate

    With accumulate=True later collapsed ids see what earlier ones hid,
    so overlapping collapse regions depend on collapsed-id order. With
    accumulate=False each closure is computed on its own and the results
    are unioned.
    """

    def __init__(
        self,
        nodes: Iterable[Node],
        edges: Iterable[Edge],
        index: AdjacencyIndex | None = None,
        accumulate: bool | None = None,
    ) -> None:
        self.nodes = list(nodes)
        self.edges = list(edges)
        self.index = index or AdjacencyIndex(self.edges, self.nodes)
        self.accumulate = settings.collapse_accumulate if accumulate is None else accumulate
        self._node_ids = {n.id for n in self.nodes}

    def hidden(self, collapsed_ids: Iterable[str]) -> HiddenSet:
        """Resolve the hidden node/edge ids for a collapsed-id set."""
        total = HiddenSet()
        for collapsed_id in _unique(collapsed_ids):
            if self.accumulate:
                self._hide_below(collapsed_id, total)
            else:
                closure = HiddenSet()
                self._hide_below(collapsed_id, closure)
                total.update(closure)
        return total

    def resolve(self, collapsed_ids: Iterable[str]) -> VisibleSet:
        """Resolve the visible nodes and edges, preserving input order."""
        hidden = self.hidden(collapsed_ids)
        visible = VisibleSet(
            nodes=[n for n in self.nodes if n.id not in hidden.nodes],
            edges=[e for e in self.edges if e.id not in hidden.edges],
        )
        logger.debug(
            f"Collapse resolve: {len(hidden.nodes)} nodes, {len(hidden.edges)} edges hidden; "
            f"{len(visible.nodes)}/{len(self.nodes)} nodes visible"
        )
        return visible

    def _hide_below(self, root_id: str, hidden: HiddenSet) -> None:
        """Hide the closure below root_id, accumulating into hidden.

        Depth-first with an explicit stack so long chains do not hit the
        recursion limit. Each frame iterates the outbound edges of one
        hidden (or root) node; a target is fully explored before the
        next sibling is examined.
        """
        visited = set(hidden.nodes)
        visited.add(root_id)

        stack: list[tuple[str, Iterator[Edge]]] = [(root_id, self._enter(root_id, hidden))]
        while stack:
            parent_id, outbound = stack[-1]
            edge = next(outbound, None)
            if edge is None:
                stack.pop()
                continue

            target_id = edge.target
            if target_id in visited:
                continue

            others = [e for e in self.index.inbound(target_id) if e.source != parent_id]
            if others and not all(e.id in hidden.edges for e in others):
                continue

            visited.add(target_id)
            if target_id in self._node_ids:
                hidden.nodes.add(target_id)
            else:
                logger.debug(f"Edge {edge.id!r} targets unknown node {target_id!r}, skipping node")
            stack.append((target_id, self._enter(target_id, hidden)))

    def _enter(self, node_id: str, hidden: HiddenSet) -> Iterator[Edge]:
        outbound = self.index.outbound(node_id)
        hidden.edges.update(e.id for e in outbound)
        return iter(outbound)


def resolve_visibility(
    nodes: Iterable[Node],
    edges: Iterable[Edge],
    collapsed_ids: Iterable[str],
    index: AdjacencyIndex | None = None,
    accumulate: bool | None = None,
) -> VisibleSet:
    """
    Convenience function for collapse resolution.

    Returns the visible nodes and edges for the given collapsed ids.
    """
    resolver = CollapseResolver(nodes, edges, index=index, accumulate=accumulate)
    return resolver.resolve(collapsed_ids)


def resolve_expand_path(
    node_id: str,
    edges: Iterable[Edge],
    visible_edge_ids: Iterable[str],
    index: AdjacencyIndex | None = None,
) -> list[str]:
    """Ancestor ids that must be expanded to reveal node_id.

    Walks backwards along the first inbound edge of each hop until a node
    with a visible inbound edge is reached. Only one ancestor chain is
    expanded even when several collapsed ancestors exist. The result is
    nearest ancestor first.

    Returns an empty list when the node already has a visible inbound
    edge or has no inbound edges at all.
    """
    index = index or AdjacencyIndex(edges)
    visible = set(visible_edge_ids)

    path: list[str] = []
    seen = {node_id}
    current = node_id
    while True:
        inbound = index.inbound(current)
        if not inbound or any(e.id in visible for e in inbound):
            break
        parent_id = inbound[0].source
        if parent_id in seen:
            logger.debug(f"Expand path for {node_id!r} loops back at {parent_id!r}")
            break
        path.append(parent_id)
        seen.add(parent_id)
        current = parent_id
    return path


@dataclass
class CollapseState:
    """
    Collapse helpers over one caller-owned snapshot.

    The collapsed ids are never mutated; expand() returns a new list for
    the caller to store.
    """

    nodes: list[Node]
    edges: list[Edge]
    collapsed_ids: list[str] = field(default_factory=list)
    accumulate: bool | None = None

    def __post_init__(self) -> None:
        self._index = AdjacencyIndex(self.edges, self.nodes)
        self._visible: VisibleSet | None = None

    @property
    def visible(self) -> VisibleSet:
        if self._visible is None:
            self._visible = resolve_visibility(
                self.nodes, self.edges, self.collapsed_ids, index=self._index, accumulate=self.accumulate
            )
        return self._visible

    def is_collapsed(self, node_id: str) -> bool:
        """True when node_id is hidden by the current collapsed set."""
        if not self._index.has_node(node_id):
            return False
        return node_id not in set(self.visible.node_ids)

    def expand_path_ids(self, node_id: str) -> list[str]:
        """Ids to un-collapse so node_id becomes visible."""
        return resolve_expand_path(node_id, self.edges, self.visible.edge_ids, index=self._index)

    def expand(self, node_id: str) -> list[str]:
        """New collapsed-id list with the expand path for node_id removed."""
        path = set(self.expand_path_ids(node_id))
        return [cid for cid in self.collapsed_ids if cid not in path]


def _unique(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered
