"""Language layer: grammar engine and the reachability language of a VASS."""

from .grammar import (
    Symbol,
    SymbolKind,
    Production,
    ProductionKind,
    Grammar,
    DerivationState,
    terminal,
    nonterminal,
)
from .builder import ReachabilityLanguage, walk_nonterminal

__all__ = [
    'Symbol',
    'SymbolKind',
    'Production',
    'ProductionKind',
    'Grammar',
    'DerivationState',
    'terminal',
    'nonterminal',
    'ReachabilityLanguage',
    'walk_nonterminal',
]
