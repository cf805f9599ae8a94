"""Rank assignment engines consuming the normalized DAG and rank hints."""

from gansner_layout.ranking.base import RankAssigner
from gansner_layout.ranking.longest_path import LongestPathRanker

__all__ = ["LongestPathRanker", "RankAssigner"]
