"""Unit tests for label LOD ranking and label visibility policy."""

import numpy as np
import pytest

from sightline.models import CameraView, Node
from sightline.rendering import (
    LabelLODConfig,
    LabelVisibilityType,
    LODPrioritizer,
    content_hash,
    label_priority,
    label_visibility,
    rank_label_candidates,
)

SCREEN = (1000, 1000)


def ids(nodes) -> list[str]:
    return [n.id for n in nodes]


@pytest.fixture
def prioritizer() -> LODPrioritizer:
    return LODPrioritizer(LabelLODConfig())


class TestLabelPriority:
    """Tests for the priority formula."""

    def test_boosts(self) -> None:
        """Active adds 500, selected adds 1000."""
        assert label_priority(200.0) == 800.0
        assert label_priority(200.0, is_active=True) == 1300.0
        assert label_priority(200.0, is_selected=True) == 1800.0
        assert label_priority(200.0, is_active=True, is_selected=True) == 2300.0


class TestRank:
    """Tests for unthrottled ranking."""

    def test_selected_wins_tie(self, prioritizer: LODPrioritizer, camera: CameraView) -> None:
        """Equal distance: the selected node ranks first."""
        nodes = [
            Node(id="A", position=(100.0, 0.0, 0.0), size=10.0),
            Node(id="B", position=(-100.0, 0.0, 0.0), size=10.0),
        ]

        plain = prioritizer.rank(nodes, camera, SCREEN)
        boosted = prioritizer.rank(nodes, camera, SCREEN, selected_ids=["B"])

        assert [r.node.id for r in plain] == ["A", "B"]
        assert [r.node.id for r in boosted] == ["B", "A"]
        assert boosted[0].priority - boosted[1].priority == pytest.approx(1000.0)

    def test_cap_keeps_highest_priority(self, prioritizer: LODPrioritizer, camera: CameraView) -> None:
        """1000 candidates with cap 500 keeps the 500 nearest."""
        nodes = [Node(id=f"n{i}", position=(0.0, 0.0, -float(i)), size=20.0) for i in range(1000)]

        ranked = prioritizer.rank(nodes, camera, SCREEN, cap=500)

        assert len(ranked) == 500
        assert [r.node.id for r in ranked] == [f"n{i}" for i in range(500)]

    def test_cap_zero(self, prioritizer: LODPrioritizer, camera: CameraView) -> None:
        """Cap 0 keeps nothing when nothing is highlighted."""
        nodes = [Node(id="A", position=(0.0, 0.0, 0.0), size=10.0)]

        assert prioritizer.rank(nodes, camera, SCREEN, cap=0) == []

    def test_empty_nodes(self, prioritizer: LODPrioritizer, camera: CameraView) -> None:
        assert prioritizer.rank([], camera, SCREEN) == []

    def test_selected_outside_frustum_is_forced(self, prioritizer: LODPrioritizer, camera: CameraView) -> None:
        """A selected node behind the camera is kept and displaces the weakest label."""
        nodes = [
            Node(id="n0", position=(0.0, 0.0, 0.0), size=20.0),
            Node(id="n1", position=(0.0, 0.0, -100.0), size=20.0),
            Node(id="n2", position=(0.0, 0.0, -200.0), size=20.0),
            Node(id="behind", position=(0.0, 0.0, 2000.0), size=20.0),
        ]

        ranked = prioritizer.rank(nodes, camera, SCREEN, selected_ids=["behind"], cap=2)

        assert [r.node.id for r in ranked] == ["behind", "n0"]

    def test_active_node_forced_without_cap_pressure(self, prioritizer: LODPrioritizer, camera: CameraView) -> None:
        """Active nodes that fail the filters are still kept."""
        nodes = [
            Node(id="near", position=(0.0, 0.0, 0.0), size=20.0),
            Node(id="tiny", position=(0.0, 0.0, 0.0), size=0.1),
        ]

        ranked = prioritizer.rank(nodes, camera, SCREEN, active_ids=["tiny"])

        assert {r.node.id for r in ranked} == {"near", "tiny"}

    def test_filters(self, camera: CameraView) -> None:
        """Out of view, too far and too small nodes are dropped."""
        prioritizer = LODPrioritizer(LabelLODConfig(max_distance=1500.0))
        nodes = [
            Node(id="ok", position=(0.0, 0.0, 0.0), size=10.0),
            Node(id="offscreen", position=(900.0, 0.0, 0.0), size=10.0),
            Node(id="far", position=(0.0, 0.0, -1000.0), size=50.0),
            Node(id="small", position=(0.0, 0.0, 0.0), size=1.0),
            Node(id="behind", position=(0.0, 0.0, 1500.0), size=10.0),
        ]

        ranked = prioritizer.rank(nodes, camera, SCREEN)

        assert [r.node.id for r in ranked] == ["ok"]

    def test_missing_position_treated_as_origin(self, prioritizer: LODPrioritizer, camera: CameraView) -> None:
        """Nodes without a position rank as if at the origin."""
        ranked = prioritizer.rank([Node(id="floating", size=10.0)], camera, SCREEN)

        assert len(ranked) == 1
        assert ranked[0].distance == pytest.approx(1000.0)

    def test_numpy_positions(self, prioritizer: LODPrioritizer, camera: CameraView) -> None:
        """Positions stored as numpy arrays rank and hash like tuples."""
        nodes = [Node(id="arr", position=np.array([0.0, 0.0, 0.0]), size=10.0)]

        ranked = prioritizer.rank(nodes, camera, SCREEN)

        assert [r.node.id for r in ranked] == ["arr"]
        assert ids(prioritizer.rank_label_candidates(nodes, camera, SCREEN)) == ["arr"]
        assert content_hash(nodes) == content_hash([Node(id="arr", position=(0.0, 0.0, 0.0))])

    def test_orthographic_size_rule(self, prioritizer: LODPrioritizer, ortho_camera: CameraView) -> None:
        """Orthographic cameras use size * multiplier for legibility."""
        nodes = [
            Node(id="legible", position=(0.0, 0.0, 0.0), size=5.0),
            Node(id="illegible", position=(10.0, 0.0, 0.0), size=4.0),
        ]

        ranked = prioritizer.rank(nodes, ortho_camera, SCREEN)

        assert [r.node.id for r in ranked] == ["legible"]

    def test_module_function(self, camera: CameraView) -> None:
        """rank_label_candidates returns ranked nodes."""
        nodes = [
            Node(id="far", position=(0.0, 0.0, -300.0), size=20.0),
            Node(id="near", position=(0.0, 0.0, 0.0), size=20.0),
        ]

        assert ids(rank_label_candidates(nodes, camera, SCREEN)) == ["near", "far"]


class TestThrottling:
    """Tests for memoized per-frame ranking."""

    @pytest.fixture
    def nodes(self) -> list[Node]:
        return [Node(id=f"n{i}", position=(float(i * 10), 0.0, 0.0), size=10.0) for i in range(5)]

    def test_unchanged_inputs_reuse_result(self, prioritizer, camera, nodes) -> None:
        """Repeated calls with the same inputs recompute once."""
        first = prioritizer.rank_label_candidates(nodes, camera, SCREEN)
        second = prioritizer.rank_label_candidates(nodes, camera, SCREEN)
        third = prioritizer.rank_label_candidates(nodes, camera, SCREEN)

        assert ids(first) == ids(second) == ids(third)
        assert prioritizer.recompute_count == 1
        assert prioritizer.frame_count == 3

    def test_camera_move_recomputes(self, prioritizer, camera, nodes) -> None:
        """Moving the camera triggers a recompute."""
        prioritizer.rank_label_candidates(nodes, camera, SCREEN)
        moved = CameraView.perspective(position=(0.0, 0.0, 900.0), fov=60.0, aspect=1.0, near=1.0, far=20000.0)
        prioritizer.rank_label_candidates(nodes, moved, SCREEN)

        assert prioritizer.recompute_count == 2

    def test_node_move_recomputes(self, prioritizer, camera, nodes) -> None:
        """Moving a node changes the content hash."""
        prioritizer.rank_label_candidates(nodes, camera, SCREEN)
        nodes[0].position = (1.0, 2.0, 3.0)
        prioritizer.rank_label_candidates(nodes, camera, SCREEN)

        assert prioritizer.recompute_count == 2

    def test_selection_change_recomputes(self, prioritizer, camera, nodes) -> None:
        """Changing the selection invalidates the memo."""
        prioritizer.rank_label_candidates(nodes, camera, SCREEN)
        prioritizer.rank_label_candidates(nodes, camera, SCREEN, selected_ids=["n4"])

        assert prioritizer.recompute_count == 2

    def test_periodic_refresh(self, prioritizer, camera, nodes) -> None:
        """Every 30th frame recomputes even when nothing changed."""
        for _ in range(30):
            prioritizer.rank_label_candidates(nodes, camera, SCREEN)

        assert prioritizer.recompute_count == 2

    def test_result_is_a_copy(self, prioritizer, camera, nodes) -> None:
        """Mutating the returned list does not corrupt the memo."""
        result = prioritizer.rank_label_candidates(nodes, camera, SCREEN)
        result.clear()

        assert len(prioritizer.rank_label_candidates(nodes, camera, SCREEN)) == 5


class TestContentHash:
    """Tests for content_hash."""

    def test_sensitive_to_position(self) -> None:
        a = [Node(id="A", position=(0.0, 0.0, 0.0))]
        b = [Node(id="A", position=(0.0, 0.0, 1.0))]

        assert content_hash(a) != content_hash(b)
        assert content_hash(a) == content_hash([Node(id="A", position=(0.0, 0.0, 0.0))])


class TestLabelVisibility:
    """Tests for the global label visibility policy."""

    @pytest.fixture
    def view(self) -> CameraView:
        return CameraView.perspective(position=(0.0, 0.0, 1000.0))

    def test_all_and_none(self) -> None:
        """'all' shows everything, 'none' hides everything."""
        show_all = label_visibility("all")
        show_none = label_visibility(LabelVisibilityType.NONE)

        assert show_all("node", 1.0) and show_all("edge", 1.0)
        assert not show_none("node", 100.0)
        assert not show_none("edge", 100.0)

    def test_nodes_and_edges_only(self) -> None:
        """'nodes' and 'edges' show only their shape."""
        nodes_only = label_visibility("nodes")
        edges_only = label_visibility("edges")

        assert nodes_only("node", 1.0) and not nodes_only("edge", 1.0)
        assert edges_only("edge", 1.0) and not edges_only("node", 1.0)

    def test_auto_by_size(self, view: CameraView) -> None:
        """Auto shows large node labels at mid depth but not small ones."""
        visible = label_visibility("auto", view, (0.0, 0.0, -3000.0))

        assert visible("node", 8.0)
        assert not visible("node", 5.0)
        assert not visible("edge", 50.0)

    def test_auto_near_shows_small(self, view: CameraView) -> None:
        """Auto shows small node labels when the node is near."""
        visible = label_visibility("auto", view, (0.0, 0.0, 0.0))

        assert visible("node", 1.0)

    def test_far_hides_unless_always(self, view: CameraView) -> None:
        """Beyond the far cutoff only 'always' policies show labels."""
        far = (0.0, 0.0, -6000.0)

        assert not label_visibility("auto", view, far)("node", 50.0)
        assert label_visibility("all", view, far)("node", 1.0)
        assert label_visibility("nodes", view, far)("node", 1.0)

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(ValueError):
            label_visibility("sometimes")
