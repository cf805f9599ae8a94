"""Exceptions raised by the layout engine.

Every error here is fatal: the engine performs no I/O, so there is no
transient failure to retry. ``ContractViolation`` and its subclasses mean
the caller misused the API; ``InvariantViolation`` means the engine itself
is wrong.
"""

from __future__ import annotations


class LayoutError(Exception):
    """Base class for all layout engine errors."""


class ContractViolation(LayoutError):
    """The caller broke a documented precondition."""


class InvalidEdge(ContractViolation):
    """An edge was created with an out-of-range weight or min rank length."""


class RankHintConflict(ContractViolation):
    """Rank hints contradict each other (double min/max, min merged with max)."""


class LayoutNotReady(ContractViolation):
    """Results were requested while the layout is stale."""


class InvariantViolation(LayoutError):
    """A post-condition of graph normalization did not hold."""


class RankAssignmentError(LayoutError):
    """The rank engine could not satisfy edge lengths and rank hints."""
