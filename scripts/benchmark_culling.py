#!/usr/bin/env python3
"""Sightline benchmark CLI.

Generates a random 3D graph and times the visibility resolvers on it:
- Collapse resolution for a handful of collapsed roots
- Viewport/frustum/distance/occlusion culling with per-stage counts
- Label LOD ranking, throttled and unthrottled

Usage:
    python scripts/benchmark_culling.py --help
    python scripts/benchmark_culling.py config
    python scripts/benchmark_culling.py cull --edges 20000
    python scripts/benchmark_culling.py labels --nodes 10000
    python scripts/benchmark_culling.py collapse --nodes 5000
"""

import argparse
import logging
import random
import sys
import time
from pathlib import Path

import numpy as np

# Add src to path for local imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sightline.config import Environment, Settings, get_settings, settings
from sightline.graph import AdjacencyIndex, CollapseResolver
from sightline.models import CameraView, Edge, Node
from sightline.rendering import (
    CullingConfig,
    LabelLODConfig,
    LODPrioritizer,
    Occluder,
    Viewport,
    ViewportCuller,
    positions_from_nodes,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def generate_graph(node_count: int, edge_count: int, spread: float, seed: int) -> tuple[list[Node], list[Edge]]:
    """Random tree backbone plus extra cross edges, positions in a cube."""
    rng = random.Random(seed)
    coords = np.random.default_rng(seed).uniform(-spread, spread, size=(node_count, 3))
    nodes = [
        Node(id=f"n{i}", position=tuple(float(c) for c in coords[i]), size=rng.uniform(1.0, 12.0))
        for i in range(node_count)
    ]

    edges: list[Edge] = []
    for i in range(1, node_count):
        parent = rng.randrange(0, i)
        edges.append(Edge(id=f"e{len(edges)}", source=f"n{parent}", target=f"n{i}"))
    while len(edges) < edge_count:
        a, b = rng.randrange(node_count), rng.randrange(node_count)
        edges.append(Edge(id=f"e{len(edges)}", source=f"n{a}", target=f"n{b}"))
    return nodes, edges


def default_camera(spread: float) -> CameraView:
    return CameraView.perspective(position=(0.0, 0.0, spread * 1.5), fov=60.0, aspect=16 / 9)


def run_collapse(args: argparse.Namespace, s: Settings) -> None:
    """Time collapse resolution."""
    print("\n=== Collapse Resolution ===\n")
    nodes, edges = generate_graph(args.nodes, args.edges, args.spread, args.seed)
    index = AdjacencyIndex(edges, nodes)
    resolver = CollapseResolver(nodes, edges, index=index, accumulate=s.collapse_accumulate)

    collapsed = [f"n{i}" for i in range(min(args.collapsed, args.nodes))]
    start = time.perf_counter()
    visible = resolver.resolve(collapsed)
    elapsed = (time.perf_counter() - start) * 1000

    print(f"   Collapsed ids: {len(collapsed)}")
    print(f"   Visible nodes: {len(visible.nodes)}/{len(nodes)}")
    print(f"   Visible edges: {len(visible.edges)}/{len(edges)}")
    print(f"   Time: {elapsed:.2f}ms")


def run_cull(args: argparse.Namespace, s: Settings) -> None:
    """Time edge culling and print per-stage statistics."""
    print("\n=== Viewport Culling ===\n")
    nodes, edges = generate_graph(args.nodes, args.edges, args.spread, args.seed)
    positions = positions_from_nodes(nodes)
    camera = default_camera(args.spread)

    config = CullingConfig.from_settings(s)
    config.enable_occlusion_culling = args.occlusion
    config.adaptive_culling = False
    culler = ViewportCuller(config, positions=positions)

    viewport = Viewport(x=-args.spread / 2, y=-args.spread / 2, width=args.spread, height=args.spread)
    occluders = [Occluder(position=(0.0, 0.0, 0.0), radius=args.spread / 10)] if args.occlusion else None

    for _ in range(args.frames):
        visible = culler.cull_edges(edges, camera, viewport=viewport, occluders=occluders)

    stats = culler.stats
    efficiency = culler.efficiency()
    print(f"   Total edges: {stats.total_edges}")
    print(f"   Culled by viewport: {stats.culled_by_viewport}")
    print(f"   Culled by frustum: {stats.culled_by_frustum}")
    print(f"   Culled by distance: {stats.culled_by_distance}")
    print(f"   Culled by occlusion: {stats.culled_by_occlusion}")
    print(f"   Visible edges: {len(visible)}")
    print(f"   Overall culling ratio: {efficiency.overall_culling_ratio:.1%}")
    print(f"   Culling time: {stats.culling_time:.2f}ms")


def run_labels(args: argparse.Namespace, s: Settings) -> None:
    """Time label ranking with and without throttling."""
    print("\n=== Label LOD ===\n")
    nodes, _ = generate_graph(args.nodes, args.nodes - 1, args.spread, args.seed)
    camera = default_camera(args.spread)
    prioritizer = LODPrioritizer(LabelLODConfig.from_settings(s))
    selected = [nodes[0].id]

    start = time.perf_counter()
    ranked = prioritizer.rank(nodes, camera, (1920, 1080), selected_ids=selected)
    unthrottled = (time.perf_counter() - start) * 1000

    start = time.perf_counter()
    for _ in range(args.frames):
        prioritizer.rank_label_candidates(nodes, camera, (1920, 1080), selected_ids=selected)
    throttled = (time.perf_counter() - start) * 1000 / max(1, args.frames)

    print(f"   Nodes: {len(nodes)}")
    print(f"   Labels kept: {len(ranked)} (cap {prioritizer.config.cap})")
    print(f"   Single rank: {unthrottled:.2f}ms")
    print(f"   Throttled per frame: {throttled:.2f}ms over {args.frames} frames")
    print(f"   Recomputes: {prioritizer.recompute_count}")


def show_config(s: Settings) -> None:
    """Show current configuration."""
    print("\n=== Sightline Configuration ===\n")

    sections = [
        ("Collapse", [
            ("collapse_accumulate", s.collapse_accumulate),
        ]),
        ("Culling", [
            ("culling_enable_viewport", s.culling_enable_viewport),
            ("culling_enable_frustum", s.culling_enable_frustum),
            ("culling_enable_distance", s.culling_enable_distance),
            ("culling_enable_occlusion", s.culling_enable_occlusion),
            ("culling_buffer_zone", s.culling_buffer_zone),
            ("culling_max_render_distance", s.culling_max_render_distance),
            ("culling_occlusion_samples", s.culling_occlusion_samples),
        ]),
        ("Adaptive Culling", [
            ("culling_adaptive", s.culling_adaptive),
            ("culling_performance_target", s.culling_performance_target),
            ("culling_render_distance_floor", s.culling_render_distance_floor),
            ("culling_render_distance_ceiling", s.culling_render_distance_ceiling),
        ]),
        ("Label LOD", [
            ("label_max_distance", s.label_max_distance),
            ("label_min_projected_size", s.label_min_projected_size),
            ("label_cap", s.label_cap),
            ("label_refresh_interval", s.label_refresh_interval),
        ]),
    ]

    for section_name, params in sections:
        print(f"{section_name}:")
        for name, value in params:
            print(f"  {name}: {value}")
        print()


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Sightline benchmark CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s config                     Show current configuration
  %(prog)s collapse --nodes 5000      Time collapse resolution
  %(prog)s cull --edges 20000         Time edge culling
  %(prog)s labels --nodes 10000       Time label ranking
        """,
    )

    parser.add_argument(
        "command",
        choices=["config", "collapse", "cull", "labels"],
        help="Benchmark to run",
    )
    parser.add_argument("--nodes", type=int, default=5000, help="Number of nodes")
    parser.add_argument("--edges", type=int, default=10000, help="Number of edges")
    parser.add_argument("--spread", type=float, default=2000.0, help="Half-width of the layout cube")
    parser.add_argument("--frames", type=int, default=60, help="Frames to simulate")
    parser.add_argument("--collapsed", type=int, default=10, help="Collapsed roots for the collapse benchmark")
    parser.add_argument("--occlusion", action="store_true", help="Enable occlusion culling")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument(
        "--env",
        choices=[e.value for e in Environment],
        default=None,
        help="Settings preset (default: environment variables only)",
    )

    args = parser.parse_args()
    s = get_settings(args.env) if args.env else settings

    if args.command == "config":
        show_config(s)
    elif args.command == "collapse":
        run_collapse(args, s)
    elif args.command == "cull":
        run_cull(args, s)
    elif args.command == "labels":
        run_labels(args, s)


if __name__ == "__main__":
    main()
