"""Rank hints — disjoint groups of nodes that should share a rank.

Two group ids are reserved: ``MIN_RANK`` (the topmost layer) and
``MAX_RANK`` (the bottommost layer). Every other id is allocated fresh by
``set_rank_same`` and only says "these nodes share a layer", without saying
which one.

A node belongs to at most one group. Merging two groups rewrites every entry
of the absorbed group, which is linear in the number of hinted nodes; hinted
nodes are usually few compared to the whole graph.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator

from gansner_layout.errors import RankHintConflict
from gansner_layout.graph import Node

logger = logging.getLogger(__name__)

RankIdx = int


class RankHints:
    """A set of disjoint subsets of nodes, each indicating a preferred rank."""

    MIN_RANK: RankIdx = 0
    MAX_RANK: RankIdx = sys.maxsize

    def __init__(self) -> None:
        self.ranks: dict[Node, RankIdx] = {}
        self.next_rank_idx: RankIdx = 1

    def __len__(self) -> int:
        return len(self.ranks)

    def set_rank_min(self, node: Node) -> None:
        """Request that ``node`` is given the minimum rank."""
        self._set_boundary(node, self.MIN_RANK)

    def set_rank_max(self, node: Node) -> None:
        """Request that ``node`` is given the maximum rank."""
        self._set_boundary(node, self.MAX_RANK)

    def set_rank(self, a: Node, b: Node) -> None:
        """Indicate that ``a`` and ``b`` should be ranked together.

        If both nodes already have hints, their groups are merged. A plain
        group merged with the min (or max) group becomes part of it.

        Raises:
            RankHintConflict: one node is in the min group and the other in
                the max group.
        """
        rank_a = self.node_rank(a)
        rank_b = self.node_rank(b)

        if rank_a is None and rank_b is None:
            rank = self._new_rank()
            self.ranks[a] = rank
            self.ranks[b] = rank
        elif rank_a is None:
            self.ranks[a] = rank_b
        elif rank_b is None:
            self.ranks[b] = rank_a
        elif rank_a != rank_b:
            low, high = sorted((rank_a, rank_b))
            if low == self.MIN_RANK and high == self.MAX_RANK:
                raise RankHintConflict(f"attempted to merge min and max ranks ({a!r}, {b!r})")
            if low == self.MIN_RANK:
                self._merge_ranks(high, low)
            else:
                # Covers `high == MAX_RANK` too; for two plain groups either
                # direction would do.
                self._merge_ranks(low, high)

    def rank_min(self) -> Iterator[Node]:
        """Yield all nodes with the minimum rank, in no particular order."""
        return self.rank(self.MIN_RANK)

    def rank_max(self) -> Iterator[Node]:
        """Yield all nodes with the maximum rank, in no particular order."""
        return self.rank(self.MAX_RANK)

    def rank(self, idx: RankIdx) -> Iterator[Node]:
        """Yield all nodes in group ``idx``."""
        return (node for node, rank_idx in self.ranks.items() if rank_idx == idx)

    def node_rank(self, node: Node) -> RankIdx | None:
        """Group id of ``node``, or ``None`` when it has no hint."""
        return self.ranks.get(node)

    def groups(self) -> dict[RankIdx, list[Node]]:
        """All non-empty groups, keyed by group id."""
        out: dict[RankIdx, list[Node]] = {}
        for node, rank_idx in self.ranks.items():
            out.setdefault(rank_idx, []).append(node)
        return out

    def _set_boundary(self, node: Node, rank: RankIdx) -> None:
        if self.node_rank(node) is not None:
            raise RankHintConflict(f"node {node!r} already has a rank hint")
        self.ranks[node] = rank

    def _merge_ranks(self, from_rank: RankIdx, to_rank: RankIdx) -> None:
        logger.debug("merging rank group %d into %d", from_rank, to_rank)
        for node, rank in self.ranks.items():
            if rank == from_rank:
                self.ranks[node] = to_rank

    def _new_rank(self) -> RankIdx:
        if self.next_rank_idx == self.MAX_RANK:
            raise RankHintConflict("number of rank groups overflowed the index space")
        rank = self.next_rank_idx
        self.next_rank_idx += 1
        return rank
