"""Layout facade — the public entry point.

Pipeline run by ``Gansner.layout``:
  1. Normalize    (acyclic.py — boundary correction + greedy-FAS)
  2. Rank         (ranking/ — pluggable, longest-path by default)
  3. Write back   (ranks stacked into y coordinates)
  4. Restore      (acyclic.py — undo the normalization log)

The result is cached: calling ``layout`` again without an intervening
mutation does nothing.

References:
  - A Technique for Drawing Directed Graphs (Gansner, Koutsofios, North, Vo)
  - Handbook of Graph Drawing and Visualization (ed. Tamassia)
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Generic, TypeVar

from gansner_layout.acyclic import (
    check_normalized,
    check_restored,
    prepare_rank_assignment,
    undo_rank_assignment,
)
from gansner_layout.config import LayoutConfig
from gansner_layout.errors import LayoutNotReady
from gansner_layout.graph import EdgeData, LayoutGraph, Node, Point, Size
from gansner_layout.rank_hints import RankHints, RankIdx
from gansner_layout.ranking import LongestPathRanker, RankAssigner

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Gansner(Generic[T]):
    """Layered layout of a directed graph of sized nodes.

    ``T`` is the type of the payload the caller attaches to each node; it is
    handed back untouched by ``iter_nodes``.
    """

    def __init__(
        self,
        config: LayoutConfig | None = None,
        ranker: RankAssigner | None = None,
        *,
        node_capacity: int = 0,
        edge_capacity: int = 0,
    ) -> None:
        self.config = config if config is not None else LayoutConfig()
        self.ranker: RankAssigner = ranker if ranker is not None else LongestPathRanker()
        self.graph: LayoutGraph[T] = LayoutGraph(node_capacity, edge_capacity)
        # User-supplied hints that certain nodes should share a rank.
        self.rank_hints = RankHints()
        # True while nothing has changed since the last successful layout.
        self.fresh = False

    @classmethod
    def with_capacity(cls, nodes: int, edges: int, **kwargs) -> Gansner[T]:
        """Create an empty layout sized for ``nodes`` nodes and ``edges`` edges."""
        return cls(node_capacity=nodes, edge_capacity=edges, **kwargs)

    # ─── Building the Graph ──────────────────────────────────────────────────

    def add_node(self, payload: T, size: Size) -> Node:
        """Add a node and return its handle.

        Insertion order matters: when breaking cycles, edges from later nodes
        to earlier ones are the ones that tend to get reversed.
        """
        self.fresh = False
        return self.graph.add_node(payload, size)

    def add_edge(self, source: Node, target: Node) -> None:
        self.fresh = False
        self.graph.add_edge(source, target)

    def add_edge_with_options(
        self,
        source: Node,
        target: Node,
        min_rank_len: RankIdx = 1,
        weight: float = 1.0,
    ) -> None:
        """Add an edge that must span at least ``min_rank_len`` ranks.

        Raises:
            InvalidEdge: ``weight`` is negative or NaN, or ``min_rank_len``
                is negative.
        """
        self.fresh = False
        self.graph.add_edge(source, target, EdgeData(min_rank_len=min_rank_len, weight=weight))

    def set_rank_min(self, node: Node) -> None:
        self.fresh = False
        self.graph.check_node(node)
        self.rank_hints.set_rank_min(node)

    def set_rank_max(self, node: Node) -> None:
        self.fresh = False
        self.graph.check_node(node)
        self.rank_hints.set_rank_max(node)

    def set_rank_same(self, a: Node, b: Node) -> None:
        self.fresh = False
        self.graph.check_node(a)
        self.graph.check_node(b)
        self.rank_hints.set_rank(a, b)

    # ─── Running the Layout ──────────────────────────────────────────────────

    def layout(self) -> None:
        """Run the layout algorithm; a no-op when the current layout is fresh."""
        if self.fresh:
            return
        self._layout_impl(debug=False)
        self.fresh = True

    def layout_debug(self) -> None:
        """Like ``layout``, but always verifies and logs each step at INFO."""
        if self.fresh:
            return
        self._layout_impl(debug=True)
        self.fresh = True

    def iter_nodes(self) -> Iterator[tuple[T, Point]]:
        """Iterate ``(payload, position)`` for each node, in insertion order.

        The freshness check happens on the call itself, not on first use of
        the returned iterator.

        Raises:
            LayoutNotReady: ``layout`` has not run since the last change.
        """
        if not self.fresh:
            raise LayoutNotReady("must call `layout` before iterating over nodes")
        return self._iter_nodes()

    def _iter_nodes(self) -> Iterator[tuple[T, Point]]:
        for node in self.graph.nodes():
            data = self.graph.node_data(node)
            yield data.payload, data.position

    def _layout_impl(self, debug: bool) -> None:
        verify = self.config.verify or debug
        before = self.graph.snapshot() if verify else None

        log = prepare_rank_assignment(self.graph, self.rank_hints)
        if debug:
            logger.info("reversed edges: %s", log.reversed)
            logger.info("removed self-loops: %s", [r.edge_id for r in log.removed])
        try:
            if verify:
                check_normalized(self.graph, self.rank_hints)
            ranks = self.ranker.assign(self.graph, self.rank_hints)
        finally:
            # Leave the caller's graph intact even when ranking fails.
            undo_rank_assignment(self.graph, log)

        if before is not None:
            check_restored(self.graph, before)

        if debug:
            for node, rank in ranks.items():
                logger.info("node %d -> rank %d", node.index, rank)
        self._write_positions(ranks)

    def _write_positions(self, ranks: dict[Node, int]) -> None:
        """Stack ranks top to bottom, each as tall as its tallest node."""
        if not ranks:
            return
        heights: dict[int, float] = {}
        for node, rank in ranks.items():
            height = self.graph.node_data(node).size.height
            heights[rank] = max(heights.get(rank, 0.0), height)

        # Empty ranks in between still cost one separation each.
        rank_y: dict[int, float] = {}
        y = 0.0
        prev: int | None = None
        for rank in sorted(heights):
            if prev is not None:
                y += heights[prev] + (rank - prev) * self.config.rank_separation
            rank_y[rank] = y
            prev = rank

        for node, rank in ranks.items():
            self.graph.set_position(node, Point(0.0, rank_y[rank]))
