"""
Tracker systems.

Pure domain logic that operates on roster snapshots and never holds state.
"""

from .turns import TurnOrderEngine, compute_turn_order, next_active

__all__ = [
    "TurnOrderEngine",
    "compute_turn_order",
    "next_active",
]
