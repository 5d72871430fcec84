"""
Modulo abstraction MDFA_μ.

Tracks every counter modulo μ. States are residue vectors in (Z/μZ)^d, the
start state is the all-zero vector and a state is *accepting* iff it differs
from the start state: acceptance certifies that the word cannot be
balanced, because a zero net effect is zero modulo every μ.

The automaton is defined analytically; nothing is tabulated up front. Step
results are memoized per instance, so rebuilding for a new μ (a fresh
instance) never reuses stale residues.

Residue vectors can also be packed into a single integer in mixed radix
(``encode``/``decode``), which keeps visited sets compact during search.
"""

from __future__ import annotations

from typing import Dict, Iterable, Sequence, Tuple

Residues = Tuple[int, ...]


class ModuloAbstraction:
    """
    Finite automaton over effect vectors tracking counters modulo ``modulus``.

    Args:
        modulus: μ >= 2
        dimension: number of counters
    """

    def __init__(self, modulus: int, dimension: int):
        if modulus < 2:
            raise ValueError(f"Modulus must be at least 2, got {modulus}")
        if dimension < 0:
            raise ValueError(f"Dimension must be non-negative, got {dimension}")
        self.modulus = modulus
        self.dimension = dimension
        self._start: Residues = (0,) * dimension
        self._memo: Dict[Tuple[Residues, Tuple[int, ...]], Residues] = {}

    @property
    def start(self) -> Residues:
        return self._start

    @property
    def state_count(self) -> int:
        return self.modulus ** self.dimension

    def residue(self, vector: Sequence[int]) -> Residues:
        return tuple(x % self.modulus for x in vector)

    def step(self, state: Residues, effect: Sequence[int]) -> Residues:
        key = (state, tuple(effect))
        successor = self._memo.get(key)
        if successor is None:
            successor = tuple((s + e) % self.modulus for s, e in zip(state, effect))
            self._memo[key] = successor
        return successor

    def run(self, effects: Iterable[Sequence[int]]) -> Residues:
        state = self._start
        for effect in effects:
            state = self.step(state, effect)
        return state

    def is_accepting(self, state: Residues) -> bool:
        return state != self._start

    def accepts(self, effects: Iterable[Sequence[int]]) -> bool:
        return self.is_accepting(self.run(effects))

    def encode(self, state: Residues) -> int:
        index = 0
        for value in reversed(state):
            if not 0 <= value < self.modulus:
                raise ValueError(f"Residue {value} outside [0, {self.modulus})")
            index = index * self.modulus + value
        return index

    def decode(self, index: int) -> Residues:
        values = []
        for _ in range(self.dimension):
            values.append(index % self.modulus)
            index //= self.modulus
        return tuple(values)

    def __repr__(self) -> str:
        return f"ModuloAbstraction(modulus={self.modulus}, dimension={self.dimension})"
