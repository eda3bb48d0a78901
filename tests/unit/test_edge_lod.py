"""Unit tests for edge LOD planning."""

import pytest

from sightline.models import CameraView, Edge
from sightline.rendering import EdgeLODConfig, EdgeLODPlanner, EdgeQuality


@pytest.fixture
def close_camera() -> CameraView:
    return CameraView.perspective(position=(0.0, 0.0, 100.0), fov=60.0, near=1.0, far=20000.0)


@pytest.fixture
def banded() -> tuple[list[Edge], dict]:
    """One short edge per distance band, plus one beyond the render distance."""
    depths = {"high": 70.0, "medium": -50.0, "low": -300.0, "minimal": -900.0, "gone": -2500.0}
    positions = {}
    edges = []
    for name, z in depths.items():
        positions[f"{name}.s"] = (-1.0, 0.0, z)
        positions[f"{name}.t"] = (1.0, 0.0, z)
        edges.append(Edge(id=name, source=f"{name}.s", target=f"{name}.t"))
    return edges, positions


class TestLevelSelection:
    """Tests for distance banding."""

    def test_level_for_distance(self) -> None:
        """Distances pick the furthest band they have reached."""
        planner = EdgeLODPlanner(EdgeLODConfig())

        assert planner.level_for_distance(-5.0).quality is EdgeQuality.HIGH
        assert planner.level_for_distance(49.9).quality is EdgeQuality.HIGH
        assert planner.level_for_distance(50.0).quality is EdgeQuality.MEDIUM
        assert planner.level_for_distance(499.0).quality is EdgeQuality.LOW
        assert planner.level_for_distance(10_000.0).quality is EdgeQuality.MINIMAL

    def test_organize_by_lod(self, close_camera: CameraView, banded) -> None:
        """Renderable edges are grouped by level key; far edges are dropped."""
        edges, positions = banded
        planner = EdgeLODPlanner(EdgeLODConfig(), positions=positions)

        groups = planner.organize_by_lod(edges, close_camera)

        assert {k: [e.id for e in v] for k, v in groups.items()} == {
            "high_20_8": ["high"],
            "medium_12_6": ["medium"],
            "low_6_4": ["low"],
            "minimal_2_3": ["minimal"],
        }

    def test_edge_behind_camera_not_rendered(self, close_camera: CameraView) -> None:
        positions = {"a": (-1.0, 0.0, 200.0), "b": (1.0, 0.0, 200.0)}
        planner = EdgeLODPlanner(EdgeLODConfig(), positions=positions)

        assert planner.should_render_edge(Edge(id="e", source="a", target="b"), close_camera) is False

    def test_unplaced_edge(self, close_camera: CameraView) -> None:
        """Edges without positions sit at the render distance and are not drawn."""
        planner = EdgeLODPlanner(EdgeLODConfig(), positions={})
        edge = Edge(id="e", source="a", target="b")

        assert planner.edge_distance(edge, close_camera) == 2000.0
        assert planner.should_render_edge(edge, close_camera) is False

    def test_culling_disabled_renders_everything(self, close_camera: CameraView, banded) -> None:
        edges, positions = banded
        planner = EdgeLODPlanner(
            EdgeLODConfig(enable_frustum_culling=False, enable_distance_culling=False),
            positions=positions,
        )

        groups = planner.organize_by_lod(edges, close_camera)

        assert [e.id for e in groups["minimal_2_3"]] == ["minimal", "gone"]


class TestAdaptiveLevels:
    """Tests for performance-driven band scaling."""

    def test_reduce_when_slow(self) -> None:
        """Slow frames with many edges shrink segments and bands by 20%."""
        planner = EdgeLODPlanner(EdgeLODConfig())
        planner.update_levels(frame_rate=20.0, edge_count=2000, render_time=30.0)

        high, medium, low, minimal = planner.levels
        assert (high.segments, high.radial_segments, high.distance) == (16, 6, 0.0)
        assert (medium.segments, medium.radial_segments) == (9, 4)
        assert medium.distance == pytest.approx(40.0)
        assert (low.segments, low.radial_segments) == (4, 3)
        assert (minimal.segments, minimal.radial_segments) == (2, 3)

    def test_raise_when_fast(self) -> None:
        """Fast frames raise quality up to the caps."""
        planner = EdgeLODPlanner(EdgeLODConfig())
        planner.update_levels(frame_rate=60.0, edge_count=100, render_time=5.0)

        high, medium = planner.levels[:2]
        assert (high.segments, high.radial_segments) == (20, 8)
        assert (medium.segments, medium.radial_segments) == (13, 6)
        assert medium.distance == pytest.approx(55.0)

    def test_no_change_when_disabled(self) -> None:
        planner = EdgeLODPlanner(EdgeLODConfig(adaptive_quality=False))
        before = [level.key for level in planner.levels]
        planner.update_levels(frame_rate=10.0, edge_count=10_000, render_time=50.0)

        assert [level.key for level in planner.levels] == before

    @pytest.mark.parametrize(
        "edge_count,frame_rate,expected",
        [
            (1000, 58.0, EdgeQuality.HIGH),
            (6000, 58.0, EdgeQuality.MEDIUM),
            (1000, 45.0, EdgeQuality.MEDIUM),
            (3000, 45.0, EdgeQuality.LOW),
            (500, 20.0, EdgeQuality.LOW),
            (5000, 20.0, EdgeQuality.MINIMAL),
        ],
    )
    def test_optimal_quality(self, edge_count: int, frame_rate: float, expected: EdgeQuality) -> None:
        planner = EdgeLODPlanner(EdgeLODConfig())

        assert planner.optimal_quality(edge_count, frame_rate) is expected

    def test_batch_sizes(self) -> None:
        """Cheaper levels batch more edges."""
        planner = EdgeLODPlanner(EdgeLODConfig())
        sizes = [planner.recommended_batch_size(level) for level in planner.levels]

        assert sizes == [500, 1000, 2000, 5000]

    def test_from_settings(self, test_settings) -> None:
        config = EdgeLODConfig.from_settings(test_settings)

        assert config.max_render_distance == test_settings.edge_lod_max_render_distance
