"""Combinators - task construction and composition primitives."""

from lazytask.combinators import laws
from lazytask.combinators.ops import (
    all_of,
    ap,
    concat,
    create,
    empty,
    of,
    race,
    rejected,
)

__all__ = [
    "create",
    "of",
    "rejected",
    "empty",
    "all_of",
    "race",
    "ap",
    "concat",
    "laws",
]
