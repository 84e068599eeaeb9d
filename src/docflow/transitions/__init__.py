"""Per-doctype transition tables"""

from .service import TransitionTable, TransitionTarget

__all__ = [
    "TransitionTable",
    "TransitionTarget",
]
