"""Graph element models - nodes, edges and resolved id sets."""

from dataclasses import dataclass, field
from typing import Any

Vec3 = tuple[float, float, float]


def parse_position(value: Any) -> Vec3 | None:
    """Parse a position from a dict ({x, y, z}), a sequence, or None.

    A missing z component defaults to 0 so 2D layouts can share the 3D code path.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        return (
            float(value.get("x", 0.0)),
            float(value.get("y", 0.0)),
            float(value.get("z") or 0.0),
        )
    coords = list(value)
    if len(coords) == 2:
        coords.append(0.0)
    return (float(coords[0]), float(coords[1]), float(coords[2]))


@dataclass(eq=False)
class Node:
    """
    A graph node. Identity is the id; everything else is payload.

    Position and size are filled in by the layout collaborator and are
    only needed by the spatial resolvers.
    """

    id: str
    parents: list[str] | None = None
    label: str | None = None

    # Layout output
    position: Vec3 | None = None
    size: float = 1.0

    # Opaque caller payload
    data: dict[str, Any] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.id == other.id

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "parents": self.parents,
            "label": self.label,
            "position": [float(c) for c in self.position] if self.position is not None else None,
            "size": self.size,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Node":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            parents=data.get("parents"),
            label=data.get("label"),
            position=parse_position(data.get("position")),
            size=data.get("size") or 1.0,
            data=data.get("data") or {},
        )


@dataclass(eq=False)
class Edge:
    """
    A directed edge between two nodes.

    Parallel edges are allowed: identity is the edge's own id, never
    derived from (source, target).
    """

    id: str
    source: str
    target: str
    label: str | None = None
    size: float = 1.0
    data: dict[str, Any] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Edge):
            return NotImplemented
        return self.id == other.id

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "label": self.label,
            "size": self.size,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Edge":
        """Create from dictionary."""
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            label=data.get("label"),
            size=data.get("size") or 1.0,
            data=data.get("data") or {},
        )


@dataclass
class VisibleSet:
    """Nodes and edges that survive collapse resolution, in input order."""

    nodes: list[Node] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    @property
    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    @property
    def edge_ids(self) -> list[str]:
        return [e.id for e in self.edges]


@dataclass
class AdjacentSet:
    """Active halo around a selection: node ids and edge ids, deduplicated."""

    nodes: list[str] = field(default_factory=list)
    edges: list[str] = field(default_factory=list)

    def ids(self) -> list[str]:
        """All active ids, nodes first."""
        return [*self.nodes, *self.edges]
