"""
Exclusion set: certified-spurious structure recorded by the refinement loop.

Two kinds of refinement automata are kept, both over transition indices:

1. **Blocked prefixes** (negative excursions and guard violations). The
   counter trace of a fixed transition prefix is fully determined, so once a
   prefix is seen to drive a counter negative (or fire a transition whose
   guard fails) every word starting with that prefix is spurious. Stored as
   a trie; reaching a marked node prunes the search branch immediately.

2. **Wrap-only loops**. A pattern ``P · C* · S`` whose net effect
   ``e(P) + e(S) + n·e(C)`` is non-zero for every ``n >= 0``. Words matching
   the pattern as a whole are excluded as candidates; prefixes are not
   pruned because a longer word may leave the pattern again. Stored as a
   small NFA per pattern, simulated by position sets.

The exclusion set is owned by the refinement controller and mutated only
between searches. Its automaton state is a plain hashable tuple so it can
be part of the candidate-search product state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

# Trie node meaning "the word already left every recorded prefix"
FREE = -1

Position = Tuple[int, int]  # (segment, offset): 0 = prefix, 1 = cycle, 2 = suffix
ExclusionState = Tuple[int, Tuple[FrozenSet[Position], ...]]


# =============================================================================
# BLOCKED PREFIXES
# =============================================================================

class PrefixTrie:
    """Deterministic automaton rejecting every word with a recorded prefix."""

    ROOT = 0

    def __init__(self):
        self._children: List[Dict[int, int]] = [{}]
        self._blocked: Set[int] = set()
        self._prefixes: List[Tuple[int, ...]] = []

    def __len__(self) -> int:
        return len(self._prefixes)

    @property
    def prefixes(self) -> Tuple[Tuple[int, ...], ...]:
        return tuple(self._prefixes)

    def add(self, prefix: Sequence[int]) -> bool:
        """Record ``prefix``; returns False if it was already covered."""
        if not prefix:
            raise ValueError("Cannot block the empty prefix")
        node = self.ROOT
        for index in prefix:
            if node in self._blocked:
                return False
            child = self._children[node].get(index)
            if child is None:
                child = len(self._children)
                self._children.append({})
                self._children[node][index] = child
            node = child
        if node in self._blocked:
            return False
        self._blocked.add(node)
        self._prefixes.append(tuple(prefix))
        return True

    def step(self, node: int, index: int) -> Optional[int]:
        """Next node, ``FREE`` once off the trie, or None if blocked."""
        if node == FREE:
            return FREE
        child = self._children[node].get(index)
        if child is None:
            return FREE
        if child in self._blocked:
            return None
        return child

    def blocks(self, word: Sequence[int]) -> bool:
        node = self.ROOT
        for index in word:
            node = self.step(node, index)
            if node is None:
                return True
        return False


# =============================================================================
# WRAP-ONLY LOOP PATTERNS
# =============================================================================

@dataclass(frozen=True)
class LoopPattern:
    """The regular set ``prefix · cycle* · suffix`` of transition sequences."""
    prefix: Tuple[int, ...]
    cycle: Tuple[int, ...]
    suffix: Tuple[int, ...]

    def __post_init__(self):
        if not self.cycle:
            raise ValueError("Loop pattern needs a non-empty cycle")

    def _segment(self, segment: int) -> Tuple[int, ...]:
        return (self.prefix, self.cycle, self.suffix)[segment]

    def _close(self, positions: Set[Position]) -> FrozenSet[Position]:
        closed = set(positions)
        worklist = list(positions)
        while worklist:
            segment, offset = worklist.pop()
            moves: List[Position] = []
            if segment == 0 and offset == len(self.prefix):
                moves.append((1, 0))
            elif segment == 1 and offset == len(self.cycle):
                moves.append((1, 0))
            if segment == 1 and offset == 0:
                moves.append((2, 0))
            for move in moves:
                if move not in closed:
                    closed.add(move)
                    worklist.append(move)
        return frozenset(closed)

    def start(self) -> FrozenSet[Position]:
        return self._close({(0, 0)})

    def step(self, positions: FrozenSet[Position], index: int) -> FrozenSet[Position]:
        advanced = set()
        for segment, offset in positions:
            word = self._segment(segment)
            if offset < len(word) and word[offset] == index:
                advanced.add((segment, offset + 1))
        if not advanced:
            return frozenset()
        return self._close(advanced)

    def is_match(self, positions: FrozenSet[Position]) -> bool:
        return (2, len(self.suffix)) in positions

    def matches(self, word: Sequence[int]) -> bool:
        positions = self.start()
        for index in word:
            positions = self.step(positions, index)
            if not positions:
                return False
        return self.is_match(positions)

    def __str__(self) -> str:
        return f"{list(self.prefix)} ({list(self.cycle)})* {list(self.suffix)}"


# =============================================================================
# COMBINED EXCLUSION SET
# =============================================================================

class ExclusionSet:
    """
    Product of the prefix trie and every loop-pattern automaton.

    State layout: ``(trie_node, (pattern_positions, ...))``.
    """

    def __init__(self):
        self.trie = PrefixTrie()
        self._patterns: List[LoopPattern] = []

    @property
    def prefix_count(self) -> int:
        return len(self.trie)

    @property
    def loop_count(self) -> int:
        return len(self._patterns)

    @property
    def patterns(self) -> Tuple[LoopPattern, ...]:
        return tuple(self._patterns)

    def __len__(self) -> int:
        return self.prefix_count + self.loop_count

    def record_prefix(self, prefix: Sequence[int]) -> bool:
        return self.trie.add(prefix)

    def record_loop(self, pattern: LoopPattern) -> bool:
        if pattern in self._patterns:
            return False
        self._patterns.append(pattern)
        return True

    def start(self) -> ExclusionState:
        return (PrefixTrie.ROOT, tuple(p.start() for p in self._patterns))

    def step(self, state: ExclusionState, index: int) -> Optional[ExclusionState]:
        """Successor state, or None if a blocked prefix was completed."""
        node, loops = state
        node = self.trie.step(node, index)
        if node is None:
            return None
        return (node, tuple(p.step(pos, index) for p, pos in zip(self._patterns, loops)))

    def excludes_word(self, state: ExclusionState) -> bool:
        """Does a loop pattern match the whole word that led to ``state``?"""
        _, loops = state
        return any(p.is_match(pos) for p, pos in zip(self._patterns, loops))

    def excludes(self, word: Sequence[int]) -> bool:
        state: Optional[ExclusionState] = self.start()
        for index in word:
            state = self.step(state, index)
            if state is None:
                return True
        return self.excludes_word(state)

    def describe(self) -> List[str]:
        lines = [f"blocked prefix {list(p)}" for p in self.trie.prefixes]
        lines += [f"wrap-only loop {p}" for p in self._patterns]
        return lines
