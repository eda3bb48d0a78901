"""Pytest configuration and fixtures."""

import pytest

from sightline.config import Settings
from sightline.graph import AdjacencyIndex
from sightline.models import CameraView, Edge, Node


class FakeClock:
    """Manually advanced clock (seconds) for frame-rate dependent tests."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_edge(source: str, target: str, edge_id: str | None = None) -> Edge:
    return Edge(id=edge_id or f"{source}->{target}", source=source, target=target)


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with defaults."""
    return Settings(
        culling_adaptive=False,
        collapse_accumulate=True,
    )


@pytest.fixture
def chain_nodes() -> list[Node]:
    """Nodes A..E."""
    return [Node(id=i) for i in "ABCDE"]


@pytest.fixture
def chain_edges() -> list[Edge]:
    """A->B, B->C, B->D, C->E."""
    return [
        make_edge("A", "B"),
        make_edge("B", "C"),
        make_edge("B", "D"),
        make_edge("C", "E"),
    ]


@pytest.fixture
def chain_index(chain_nodes: list[Node], chain_edges: list[Edge]) -> AdjacencyIndex:
    return AdjacencyIndex(chain_edges, chain_nodes)


@pytest.fixture
def diamond_nodes() -> list[Node]:
    """Nodes R, L, M, X, Y."""
    return [Node(id=i) for i in ("R", "L", "M", "X", "Y")]


@pytest.fixture
def diamond_edges() -> list[Edge]:
    """R->L, R->M, L->X, M->X, X->Y: X has two inbound paths."""
    return [
        make_edge("R", "L"),
        make_edge("R", "M"),
        make_edge("L", "X"),
        make_edge("M", "X"),
        make_edge("X", "Y"),
    ]


@pytest.fixture
def camera() -> CameraView:
    """Perspective camera on +z looking at the origin."""
    return CameraView.perspective(position=(0.0, 0.0, 1000.0), fov=60.0, aspect=1.0, near=1.0, far=20000.0)


@pytest.fixture
def ortho_camera() -> CameraView:
    """Orthographic camera on +z with a 2000x2000 view box."""
    return CameraView.orthographic(position=(0.0, 0.0, 1000.0), width=2000.0, height=2000.0, near=1.0, far=20000.0)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
