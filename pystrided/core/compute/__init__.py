"""
Shared compute utilities.

Submodules:
    timing: Execution timing with optional device synchronization
    tolerances: Tolerance tiers per kernel precision
"""

from pystrided.core.compute.timing import Timer
from pystrided.core.compute.tolerances import ToleranceTier, select_tolerance

__all__ = [
    # Timing
    "Timer",
    # Tolerances
    "ToleranceTier",
    "select_tolerance",
]
