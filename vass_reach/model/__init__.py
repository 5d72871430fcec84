"""VASS model: guards, guarded transitions, immutable instances and paths."""

from .guards import Comparison, LinearConstraint, Guard
from .vass import VASS, Transition, StateId, CounterVector
from .path import Path, add_vectors, scale_vector, sum_effects

__all__ = [
    'Comparison',
    'LinearConstraint',
    'Guard',
    'VASS',
    'Transition',
    'StateId',
    'CounterVector',
    'Path',
    'add_vectors',
    'scale_vector',
    'sum_effects',
]
