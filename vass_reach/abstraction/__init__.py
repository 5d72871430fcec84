"""Finite-state abstractions: the modulo automaton and recorded exclusions."""

from .modulo import ModuloAbstraction, Residues
from .exclusions import ExclusionSet, ExclusionState, LoopPattern, PrefixTrie

__all__ = [
    'ModuloAbstraction',
    'Residues',
    'ExclusionSet',
    'ExclusionState',
    'LoopPattern',
    'PrefixTrie',
]
