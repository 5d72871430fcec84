"""
Paths through a VASS.

A path is a sequence of transition indices forming a walk from the initial
state. Everything about its exact integer behaviour (net effect, prefix
trace, peaks) is derived on demand from the VASS; paths hold no counters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, Iterator, List, Sequence, Tuple

from .vass import VASS, CounterVector, StateId


def add_vectors(a: Sequence[int], b: Sequence[int]) -> CounterVector:
    return tuple(x + y for x, y in zip(a, b))


def scale_vector(a: Sequence[int], k: int) -> CounterVector:
    return tuple(k * x for x in a)


def sum_effects(vass: VASS, transitions: Sequence[int]) -> CounterVector:
    total = vass.zero()
    for index in transitions:
        total = add_vectors(total, vass.effect(index))
    return total


@dataclass(frozen=True)
class Path:
    """
    Walk from ``vass.initial`` given as transition indices.

    Equality and hashing only look at the transition sequence.
    """
    vass: VASS = field(compare=False, repr=False)
    transitions: Tuple[int, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "transitions", tuple(self.transitions))
        current = self.vass.initial
        for position, index in enumerate(self.transitions):
            if not 0 <= index < self.vass.transition_count:
                raise ValueError(f"Unknown transition index {index} at position {position}")
            transition = self.vass.transition(index)
            if transition.source != current:
                raise ValueError(
                    f"Transition {index} at position {position} leaves {transition.source!r}, "
                    f"but the walk is in {current!r}"
                )
            current = transition.target

    def __len__(self) -> int:
        return len(self.transitions)

    def __iter__(self) -> Iterator[int]:
        return iter(self.transitions)

    def label_word(self) -> Tuple[Hashable, ...]:
        return tuple(self.vass.label(i) for i in self.transitions)

    def net_effect(self) -> CounterVector:
        return sum_effects(self.vass, self.transitions)

    def trace(self) -> List[CounterVector]:
        """Counter vectors after every prefix, starting with the zero vector."""
        current = self.vass.zero()
        vectors = [current]
        for index in self.transitions:
            current = add_vectors(current, self.vass.effect(index))
            vectors.append(current)
        return vectors

    def states(self) -> List[StateId]:
        visited = [self.vass.initial]
        for index in self.transitions:
            visited.append(self.vass.transition(index).target)
        return visited

    def end(self) -> StateId:
        if not self.transitions:
            return self.vass.initial
        return self.vass.transition(self.transitions[-1]).target

    def ends_in_final(self) -> bool:
        return self.end() == self.vass.final

    def cycles(self) -> Iterator[Tuple[int, int]]:
        """Yield ``(i, j)`` with ``i < j`` where the walk is in the same state."""
        visited = self.states()
        for i in range(len(visited)):
            for j in range(i + 1, len(visited)):
                if visited[i] == visited[j]:
                    yield i, j

    def max_counter_value(self, counter: int) -> int:
        return max(vector[counter] for vector in self.trace())

    def peak_magnitude(self) -> int:
        """Largest absolute counter value along the trace."""
        return max((abs(x) for vector in self.trace() for x in vector), default=0)

    def prefix(self, length: int) -> Tuple[int, ...]:
        return self.transitions[:length]

    def to_fancy_string(self) -> str:
        parts = [str(self.vass.initial)]
        for index in self.transitions:
            t = self.vass.transition(index)
            parts.append(f"-{t.label}{list(t.effect)}-> {t.target}")
        return " ".join(parts)
