"""Layout configuration."""

from __future__ import annotations

from dataclasses import dataclass

# Gap between the bottom of one rank and the top of the next, in the same
# units as node sizes.
DEFAULT_RANK_SEPARATION: float = 20.0


@dataclass(frozen=True)
class LayoutConfig:
    """Tunables for a layout run.

    Attributes:
        rank_separation: Vertical gap between consecutive ranks.
        verify: Check normalization post-conditions and exact restoration on
            every run. Defaults to on unless Python runs with ``-O``.
    """

    rank_separation: float = DEFAULT_RANK_SEPARATION
    verify: bool = __debug__
