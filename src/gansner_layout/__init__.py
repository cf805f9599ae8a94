"""Layered (Sugiyama-style) layout of directed graphs.

Takes nodes with bounding-box sizes and directed edges, and computes a
drawing position for each node. Rendering is left to the caller.
"""

from gansner_layout.config import DEFAULT_RANK_SEPARATION, LayoutConfig
from gansner_layout.errors import (
    ContractViolation,
    InvalidEdge,
    InvariantViolation,
    LayoutError,
    LayoutNotReady,
    RankAssignmentError,
    RankHintConflict,
)
from gansner_layout.graph import Node, Point, Size
from gansner_layout.layout import Gansner
from gansner_layout.rank_hints import RankIdx
from gansner_layout.ranking import LongestPathRanker, RankAssigner

__all__ = [
    "DEFAULT_RANK_SEPARATION",
    "ContractViolation",
    "Gansner",
    "InvalidEdge",
    "InvariantViolation",
    "LayoutConfig",
    "LayoutError",
    "LayoutNotReady",
    "LongestPathRanker",
    "Node",
    "Point",
    "RankAssigner",
    "RankAssignmentError",
    "RankHintConflict",
    "RankIdx",
    "Size",
]
