"""
Context-free grammars with a breadth-first derivation engine.

KEY INSIGHT
===========

Instead of modeling a grammar as a hierarchy of nonterminal classes, every
production is one of finitely many structural cases and a *derivation state*
is just the tuple of symbols still to be derived (leftmost first):

    EDGE       A -> t B     (or A -> t)    emit t, continue with B
    EXCURSION  A -> ( B )                  emit (, derive B, emit )
    CONCAT     A -> B C                    derive B, then C
    EPSILON    A -> ε

``expand(state)`` returns every ``(terminal, next_state)`` step reachable from
``state`` after closing over the non-emitting productions (CONCAT, EPSILON,
unfolding of the leftmost nonterminal). The closure is finite as long as no
nonterminal can re-appear in leftmost position without a terminal being
emitted first; left-recursive grammars are therefore rejected.

ENUMERATION
===========

``derive(word_budget)`` is a resumable breadth-first frontier of partial
derivations. Layer ``k`` holds every pending derivation that has emitted
``k`` terminals, so words come out in non-decreasing length, and nothing is
skipped: a partial derivation is only dropped when even its minimal
completion would exceed the budget.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, FrozenSet, Hashable, Iterator, List, Optional, Set, Tuple


# =============================================================================
# SYMBOLS AND PRODUCTIONS
# =============================================================================

class SymbolKind(Enum):
    """Kind of grammar symbol."""
    TERMINAL = auto()
    NONTERMINAL = auto()


@dataclass(frozen=True)
class Symbol:
    """Grammar symbol (terminal or nonterminal)."""
    name: Hashable
    kind: SymbolKind

    def is_terminal(self) -> bool:
        return self.kind == SymbolKind.TERMINAL

    def is_nonterminal(self) -> bool:
        return self.kind == SymbolKind.NONTERMINAL

    def __str__(self) -> str:
        return str(self.name)


def terminal(name: Hashable) -> Symbol:
    return Symbol(name, SymbolKind.TERMINAL)


def nonterminal(name: Hashable) -> Symbol:
    return Symbol(name, SymbolKind.NONTERMINAL)


DerivationState = Tuple[Symbol, ...]


class ProductionKind(Enum):
    """Structural case of a production."""
    EDGE = auto()        # A -> t B | A -> t
    EXCURSION = auto()   # A -> open B close
    CONCAT = auto()      # A -> B C
    EPSILON = auto()     # A -> ε


_ARITY = {
    ProductionKind.EDGE: ((1,), (0, 1)),
    ProductionKind.EXCURSION: ((2,), (1,)),
    ProductionKind.CONCAT: ((0,), (2,)),
    ProductionKind.EPSILON: ((0,), (0,)),
}


@dataclass(frozen=True)
class Production:
    """
    Grammar production ``lhs -> rhs``.

    ``terminals`` and ``nonterminals`` hold the operands of the structural
    case; ``rhs()`` lays them out in derivation order.
    """
    lhs: Hashable
    kind: ProductionKind
    terminals: Tuple[Hashable, ...] = ()
    nonterminals: Tuple[Hashable, ...] = ()

    def __post_init__(self):
        n_terms, n_nonterms = _ARITY[self.kind]
        if len(self.terminals) not in n_terms or len(self.nonterminals) not in n_nonterms:
            raise ValueError(
                f"{self.kind.name} production for {self.lhs!r} has "
                f"{len(self.terminals)} terminals and {len(self.nonterminals)} nonterminals"
            )

    def rhs(self) -> DerivationState:
        if self.kind == ProductionKind.EDGE:
            return (terminal(self.terminals[0]),) + tuple(nonterminal(n) for n in self.nonterminals)
        if self.kind == ProductionKind.EXCURSION:
            return (terminal(self.terminals[0]), nonterminal(self.nonterminals[0]),
                    terminal(self.terminals[1]))
        if self.kind == ProductionKind.CONCAT:
            return tuple(nonterminal(n) for n in self.nonterminals)
        return ()

    def __str__(self) -> str:
        body = " ".join(str(s) for s in self.rhs()) or "ε"
        return f"{self.lhs} -> {body}"


# =============================================================================
# GRAMMAR
# =============================================================================

class Grammar:
    """
    Context-free grammar with a leftmost-derivation step function.

    Terminal order (used for deterministic tie-breaking in ``expand``) is the
    order in which terminals first appear in added productions.
    """

    def __init__(self, name: str = "grammar"):
        self.name = name
        self._productions: Dict[Hashable, List[Production]] = {}
        self._terminal_order: Dict[Hashable, int] = {}
        self._start: Optional[Hashable] = None
        self._invalidate()

    def _invalidate(self) -> None:
        self._min_yield: Optional[Dict[Hashable, float]] = None
        self._expand_cache: Dict[DerivationState, Tuple[List[Tuple[Hashable, DerivationState]], bool]] = {}
        self._checked = False

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def add_nonterminal(self, name: Hashable) -> Symbol:
        self._productions.setdefault(name, [])
        self._invalidate()
        return nonterminal(name)

    def add_production(self, production: Production) -> Production:
        if production.lhs not in self._productions:
            raise ValueError(f"Unknown nonterminal: {production.lhs!r}")
        for name in production.nonterminals:
            if name not in self._productions:
                raise ValueError(f"Unknown nonterminal: {name!r}")
        for name in production.terminals:
            self._terminal_order.setdefault(name, len(self._terminal_order))
        self._productions[production.lhs].append(production)
        self._invalidate()
        return production

    def add_edge(self, lhs: Hashable, term: Hashable, target: Optional[Hashable] = None) -> Production:
        targets = () if target is None else (target,)
        return self.add_production(Production(lhs, ProductionKind.EDGE, (term,), targets))

    def add_excursion(self, lhs: Hashable, open_term: Hashable, inner: Hashable,
                      close_term: Hashable) -> Production:
        return self.add_production(
            Production(lhs, ProductionKind.EXCURSION, (open_term, close_term), (inner,))
        )

    def add_concat(self, lhs: Hashable, left: Hashable, right: Hashable) -> Production:
        return self.add_production(Production(lhs, ProductionKind.CONCAT, (), (left, right)))

    def add_epsilon(self, lhs: Hashable) -> Production:
        return self.add_production(Production(lhs, ProductionKind.EPSILON))

    def set_start(self, name: Optional[Hashable]) -> None:
        if name is not None and name not in self._productions:
            raise ValueError(f"Unknown nonterminal: {name!r}")
        self._start = name
        self._invalidate()

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    @property
    def start(self) -> Optional[Hashable]:
        return self._start

    @property
    def nonterminals(self) -> Tuple[Hashable, ...]:
        return tuple(self._productions)

    @property
    def terminals(self) -> Tuple[Hashable, ...]:
        return tuple(self._terminal_order)

    def productions(self, name: Hashable) -> Tuple[Production, ...]:
        return tuple(self._productions.get(name, ()))

    def all_productions(self) -> List[Production]:
        return [p for prods in self._productions.values() for p in prods]

    def min_yield(self) -> Dict[Hashable, float]:
        """Length of the shortest terminal word per nonterminal (inf if unproductive)."""
        if self._min_yield is not None:
            return self._min_yield

        best: Dict[Hashable, float] = {name: math.inf for name in self._productions}
        changed = True
        while changed:
            changed = False
            for production in self.all_productions():
                length = len(production.terminals) + sum(best[n] for n in production.nonterminals)
                if length < best[production.lhs]:
                    best[production.lhs] = length
                    changed = True

        self._min_yield = best
        return best

    def productive(self) -> FrozenSet[Hashable]:
        return frozenset(n for n, length in self.min_yield().items() if length < math.inf)

    def nullable(self) -> FrozenSet[Hashable]:
        return frozenset(n for n, length in self.min_yield().items() if length == 0)

    def reachable(self) -> FrozenSet[Hashable]:
        """Nonterminals reachable from the start symbol."""
        if self._start is None:
            return frozenset()
        seen = {self._start}
        worklist = [self._start]
        while worklist:
            name = worklist.pop()
            for production in self._productions[name]:
                for target in production.nonterminals:
                    if target not in seen:
                        seen.add(target)
                        worklist.append(target)
        return frozenset(seen)

    def trim(self) -> "Grammar":
        """
        Copy restricted to useful nonterminals (productive, then reachable).

        If the start symbol is unproductive the result has no start symbol
        and denotes the empty language.
        """
        productive = self.productive()

        pruned = Grammar(self.name)
        pruned._terminal_order = dict(self._terminal_order)
        for name in self._productions:
            if name in productive:
                pruned._productions[name] = [
                    p for p in self._productions[name]
                    if all(n in productive for n in p.nonterminals)
                ]
        if self._start not in productive:
            return Grammar(self.name)
        pruned._start = self._start

        reachable = pruned.reachable()
        trimmed = Grammar(self.name)
        trimmed._terminal_order = dict(self._terminal_order)
        for name, prods in pruned._productions.items():
            if name in reachable:
                trimmed._productions[name] = list(prods)
        trimmed._start = self._start
        return trimmed

    def is_empty(self) -> bool:
        return self._start is None or self.min_yield()[self._start] == math.inf

    def _check_left_recursion(self) -> None:
        if self._checked:
            return
        nullable = self.nullable()
        left_corner: Dict[Hashable, Set[Hashable]] = {name: set() for name in self._productions}
        for production in self.all_productions():
            for symbol in production.rhs():
                if symbol.is_terminal():
                    break
                left_corner[production.lhs].add(symbol.name)
                if symbol.name not in nullable:
                    break

        # Depth-first cycle detection over the left-corner relation
        WHITE, GREY, BLACK = 0, 1, 2
        color = {name: WHITE for name in left_corner}
        for root in left_corner:
            if color[root] != WHITE:
                continue
            stack = [(root, iter(left_corner[root]))]
            color[root] = GREY
            while stack:
                name, successors = stack[-1]
                advanced = False
                for succ in successors:
                    if color[succ] == GREY:
                        raise ValueError(f"Grammar {self.name!r} is left-recursive at {succ!r}")
                    if color[succ] == WHITE:
                        color[succ] = GREY
                        stack.append((succ, iter(left_corner[succ])))
                        advanced = True
                        break
                if not advanced:
                    color[name] = BLACK
                    stack.pop()
        self._checked = True

    # -------------------------------------------------------------------------
    # Derivation steps
    # -------------------------------------------------------------------------

    def initial_state(self) -> Optional[DerivationState]:
        if self.is_empty():
            return None
        self._check_left_recursion()
        return (nonterminal(self._start),)

    def _close(self, state: DerivationState) -> Tuple[List[Tuple[Hashable, DerivationState]], bool]:
        cached = self._expand_cache.get(state)
        if cached is not None:
            return cached

        self._check_left_recursion()
        ready: List[Tuple[Hashable, DerivationState]] = []
        complete = False
        seen = {state}
        queue = [state]
        position = 0
        while position < len(queue):
            current = queue[position]
            position += 1
            if not current:
                complete = True
                continue
            head, rest = current[0], current[1:]
            if head.is_terminal():
                ready.append((head.name, rest))
                continue
            for production in self._productions.get(head.name, ()):
                successor = production.rhs() + rest
                if successor not in seen:
                    seen.add(successor)
                    queue.append(successor)

        order = self._terminal_order
        ready.sort(key=lambda step: order.get(step[0], len(order)))
        result = (ready, complete)
        self._expand_cache[state] = result
        return result

    def expand(self, state: DerivationState) -> List[Tuple[Hashable, DerivationState]]:
        """Terminal steps ``(terminal, next_state)`` available from ``state``."""
        return self._close(state)[0]

    def is_complete(self, state: DerivationState) -> bool:
        """Can ``state`` derive the empty word?"""
        return self._close(state)[1]

    def state_min_yield(self, state: DerivationState) -> float:
        lengths = self.min_yield()
        return sum(1 if s.is_terminal() else lengths.get(s.name, math.inf) for s in state)

    # -------------------------------------------------------------------------
    # Enumeration
    # -------------------------------------------------------------------------

    def derive(self, word_budget: int) -> Iterator[Tuple[Hashable, ...]]:
        """
        Words of the language of length <= ``word_budget``, by increasing length.

        Each call starts a fresh derivation.
        """
        start = self.initial_state()
        if start is None or word_budget < 0:
            return

        layer: List[Tuple[DerivationState, Tuple[Hashable, ...]]] = [(start, ())]
        for length in range(word_budget + 1):
            emitted: Set[Tuple[Hashable, ...]] = set()
            next_layer: List[Tuple[DerivationState, Tuple[Hashable, ...]]] = []
            queued: Set[Tuple[DerivationState, Tuple[Hashable, ...]]] = set()

            for state, word in layer:
                if self.is_complete(state) and word not in emitted:
                    emitted.add(word)
                    yield word
                if length == word_budget:
                    continue
                for term, successor in self.expand(state):
                    if length + 1 + self.state_min_yield(successor) > word_budget:
                        continue
                    item = (successor, word + (term,))
                    if item not in queued:
                        queued.add(item)
                        next_layer.append(item)

            if not next_layer:
                return
            layer = next_layer

    def __str__(self) -> str:
        lines = [f"Grammar: {self.name}", f"  Start: {self._start}"]
        for production in self.all_productions():
            lines.append(f"  {production}")
        return "\n".join(lines)
