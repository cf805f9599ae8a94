"""Base rank assigner protocol."""

from __future__ import annotations

from typing import Protocol

from gansner_layout.graph import LayoutGraph, Node
from gansner_layout.rank_hints import RankHints


class RankAssigner(Protocol):
    """Protocol that all rank-assignment engines must implement."""

    def assign(self, graph: LayoutGraph, hints: RankHints) -> dict[Node, int]:
        """Return an integer rank for every node of the normalized DAG ``graph``.

        For every edge ``u → v`` the result must satisfy
        ``rank[v] - rank[u] >= min_rank_len``; nodes sharing a hint group
        share a rank, min-group nodes get the smallest rank and max-group
        nodes the largest. Raises ``RankAssignmentError`` if no such
        assignment exists.
        """
        ...
