"""
Reachability language of a VASS.

The control graph alone (counters ignored) defines which transition
sequences are walks from ``initial`` to ``final``. We encode that set as a
right-linear grammar over transition indices:

    W[q]      -> t W[r]      for every live transition t: q -> r
    W[final]  -> ε

and trim it to useful nonterminals. A label word belongs to the reachability
language iff some walk carries it; whether the walk also keeps every counter
non-negative and returns them to zero is decided later, by the modulo
abstraction (necessary condition) and the path validator (exact check).

Because every derivation state is a single pending nonterminal, the product
with any finite automaton is finite, which is what makes an exhausted
candidate search a proof of non-reachability.

Only EDGE and EPSILON productions are emitted here. The grammar engine also
supports nested excursions (EXCURSION and CONCAT productions), but walks of
a VASS control graph never need them.
"""

from __future__ import annotations

import logging
from typing import Hashable, Iterator, List, Optional, Set, Tuple

from ..model.path import Path
from ..model.vass import VASS, StateId
from .grammar import DerivationState, Grammar

logger = logging.getLogger(__name__)


def walk_nonterminal(state: StateId) -> Tuple[str, StateId]:
    return ("W", state)


class ReachabilityLanguage:
    """
    Read-only reachability language derived once per VASS.

    Terminals of the underlying grammar are transition indices; label words
    are obtained by mapping each index to its transition's label.
    """

    def __init__(self, vass: VASS, grammar: Grammar):
        self.vass = vass
        self.grammar = grammar

    @classmethod
    def build(cls, vass: VASS) -> "ReachabilityLanguage":
        grammar = Grammar(name="reachability")
        for state in sorted(vass.states, key=repr):
            grammar.add_nonterminal(walk_nonterminal(state))
        grammar.add_epsilon(walk_nonterminal(vass.final))
        for index, transition in enumerate(vass.transitions):
            if not vass.is_live(index):
                continue
            grammar.add_edge(walk_nonterminal(transition.source), index,
                             walk_nonterminal(transition.target))
        grammar.set_start(walk_nonterminal(vass.initial))

        trimmed = grammar.trim()
        logger.debug(
            f"Reachability grammar: {len(grammar.nonterminals)} nonterminals, "
            f"{len(trimmed.nonterminals)} after trimming, empty={trimmed.is_empty()}"
        )
        return cls(vass, trimmed)

    # -------------------------------------------------------------------------
    # Derivation-step capability used by the candidate search
    # -------------------------------------------------------------------------

    def is_empty(self) -> bool:
        return self.grammar.is_empty()

    def initial_state(self) -> Optional[DerivationState]:
        return self.grammar.initial_state()

    def expand(self, state: DerivationState) -> List[Tuple[int, DerivationState]]:
        return self.grammar.expand(state)

    def is_complete(self, state: DerivationState) -> bool:
        return self.grammar.is_complete(state)

    def state_min_yield(self, state: DerivationState) -> float:
        return self.grammar.state_min_yield(state)

    # -------------------------------------------------------------------------
    # Enumeration
    # -------------------------------------------------------------------------

    def derive_paths(self, word_budget: int) -> Iterator[Path]:
        """Walks from initial to final of length <= word_budget, shortest first."""
        for word in self.grammar.derive(word_budget):
            yield Path(self.vass, word)

    def derive(self, word_budget: int) -> Iterator[Tuple[Hashable, ...]]:
        """Distinct label words of length <= word_budget, shortest first."""
        emitted: Set[Tuple[Hashable, ...]] = set()
        length = -1
        for path in self.derive_paths(word_budget):
            if len(path) != length:
                length = len(path)
                emitted = set()
            word = path.label_word()
            if word not in emitted:
                emitted.add(word)
                yield word

    def contains(self, word: Tuple[Hashable, ...]) -> bool:
        """Is ``word`` the label word of some walk from initial to final?"""
        start = self.initial_state()
        if start is None:
            return False
        current = {start}
        for label in word:
            current = {
                successor
                for state in current
                for index, successor in self.expand(state)
                if self.vass.label(index) == label
            }
            if not current:
                return False
        return any(self.is_complete(state) for state in current)
