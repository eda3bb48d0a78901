"""Graph-structure resolvers.

Provides:
- Adjacency index (inbound/outbound lookups by node id)
- Collapse resolution (hidden/visible sets from collapsed ids)
- Expand-path reconstruction (ancestor chain to reveal a hidden node)
- Adjacency expansion (active halo around a selection)
"""

from sightline.graph.adjacency import PathSelectionType, resolve_adjacents
from sightline.graph.collapse import (
    CollapseResolver,
    CollapseState,
    HiddenSet,
    resolve_expand_path,
    resolve_visibility,
)
from sightline.graph.index import AdjacencyIndex

__all__ = [
    # Index
    "AdjacencyIndex",
    # Collapse
    "CollapseResolver",
    "CollapseState",
    "HiddenSet",
    "resolve_visibility",
    "resolve_expand_path",
    # Adjacency
    "PathSelectionType",
    "resolve_adjacents",
]
