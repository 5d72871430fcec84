"""
Vector Addition System with States.

An initialized VASS is a finite control graph whose edges carry an integer
effect vector (one entry per counter), a guard over the counter vector, and
a label. A run starts in ``initial`` with all counters zero and must keep
every counter non-negative; the zero-reachability question asks for a run
ending in ``final`` with all counters zero again.

The model is immutable once constructed. Construction validates the whole
instance eagerly and raises ``MalformedInstance`` on any structural problem,
so that nothing downstream ever sees a dangling state or a mis-sized vector.

DEAD TRANSITIONS
================

A transition can only ever fire from a counter vector ``c`` with ``c >= 0``
and ``c + effect >= 0``. If its guard is unsatisfiable on that region the
transition is structurally dead; we detect this with z3 at construction time
and keep the transition (indices are stable identifiers) while excluding it
from the reachability language.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Hashable, Iterable, List, Optional, Sequence, Tuple, Union

import z3

from ..errors import MalformedInstance
from .guards import Guard

logger = logging.getLogger(__name__)

StateId = Hashable
CounterVector = Tuple[int, ...]


def _effect_vector(index: int, effect: Iterable[Any]) -> CounterVector:
    try:
        entries = tuple(effect)
    except TypeError:
        raise MalformedInstance(f"Transition {index} has a non-sequence effect {effect!r}") from None
    for entry in entries:
        if isinstance(entry, bool) or not isinstance(entry, numbers.Integral):
            raise MalformedInstance(f"Transition {index} has a non-integer effect entry {entry!r}")
    return tuple(int(entry) for entry in entries)


@dataclass(frozen=True)
class Transition:
    """A guarded, labeled edge ``source -> target`` adding ``effect`` to the counters."""
    source: StateId
    target: StateId
    effect: CounterVector
    label: Optional[Hashable] = None
    guard: Guard = field(default_factory=Guard)

    def __str__(self) -> str:
        guard = "" if self.guard.is_trivial() else f" [{self.guard}]"
        return f"{self.source} --{self.label}:{list(self.effect)}{guard}--> {self.target}"


class VASS:
    """
    Immutable initialized VASS.

    Args:
        states: Declared control states
        dimension: Number of counters (d >= 0)
        transitions: Ordered transitions; the position is the transition index
        initial: Initial control state
        final: Final control state

    Raises:
        MalformedInstance: on undeclared states or inconsistent dimensions
    """

    def __init__(self, states: Iterable[StateId], dimension: int,
                 transitions: Sequence[Transition],
                 initial: StateId, final: StateId):
        self._states: FrozenSet[StateId] = frozenset(states)
        self._dimension = dimension
        self._initial = initial
        self._final = final

        self._validate_header()
        self._transitions: Tuple[Transition, ...] = tuple(
            self._normalize(i, t) for i, t in enumerate(transitions)
        )

        alphabet: List[Hashable] = []
        seen = set()
        for t in self._transitions:
            if t.label not in seen:
                seen.add(t.label)
                alphabet.append(t.label)
        self._alphabet: Tuple[Hashable, ...] = tuple(alphabet)

        self._dead: FrozenSet[int] = frozenset(
            i for i, t in enumerate(self._transitions) if not self._guard_satisfiable(t)
        )
        if self._dead:
            logger.debug(f"Pre-filtered dead transitions: {sorted(self._dead)}")

        outgoing: Dict[StateId, List[int]] = {s: [] for s in self._states}
        for i, t in enumerate(self._transitions):
            if i not in self._dead:
                outgoing[t.source].append(i)
        self._outgoing: Dict[StateId, Tuple[int, ...]] = {
            s: tuple(indices) for s, indices in outgoing.items()
        }

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_header(self) -> None:
        if not isinstance(self._dimension, int) or self._dimension < 0:
            raise MalformedInstance(f"Counter dimension must be a non-negative integer, got {self._dimension!r}")
        if self._initial not in self._states:
            raise MalformedInstance(f"Initial state {self._initial!r} is not a declared state")
        if self._final not in self._states:
            raise MalformedInstance(f"Final state {self._final!r} is not a declared state")

    def _normalize(self, index: int, transition: Transition) -> Transition:
        if transition.source not in self._states:
            raise MalformedInstance(f"Transition {index} references undeclared source {transition.source!r}")
        if transition.target not in self._states:
            raise MalformedInstance(f"Transition {index} references undeclared target {transition.target!r}")
        effect = _effect_vector(index, transition.effect)
        if len(effect) != self._dimension:
            raise MalformedInstance(
                f"Transition {index} has effect of length {len(effect)}, "
                f"expected dimension {self._dimension}"
            )
        for constraint in transition.guard.constraints:
            if constraint.dimension != self._dimension:
                raise MalformedInstance(
                    f"Guard of transition {index} has a constraint of dimension "
                    f"{constraint.dimension}, expected {self._dimension}"
                )
        label = f"t{index}" if transition.label is None else transition.label
        return Transition(transition.source, transition.target, effect, label, transition.guard)

    def _guard_satisfiable(self, transition: Transition) -> bool:
        """Is the guard satisfiable by some c >= 0 with c + effect >= 0?"""
        if transition.guard.is_trivial():
            return True
        counters = [z3.Int(f"c_{i}") for i in range(self._dimension)]
        solver = z3.Solver()
        for var, delta in zip(counters, transition.effect):
            solver.add(var >= 0)
            solver.add(var + delta >= 0)
        solver.add(transition.guard.to_z3(counters))
        return solver.check() != z3.unsat

    # -------------------------------------------------------------------------
    # Read API
    # -------------------------------------------------------------------------

    @property
    def states(self) -> FrozenSet[StateId]:
        return self._states

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def initial(self) -> StateId:
        return self._initial

    @property
    def final(self) -> StateId:
        return self._final

    @property
    def transitions(self) -> Tuple[Transition, ...]:
        return self._transitions

    @property
    def alphabet(self) -> Tuple[Hashable, ...]:
        """Distinct transition labels in order of first appearance."""
        return self._alphabet

    @property
    def dead_transitions(self) -> FrozenSet[int]:
        return self._dead

    @property
    def state_count(self) -> int:
        return len(self._states)

    @property
    def transition_count(self) -> int:
        return len(self._transitions)

    def transition(self, index: int) -> Transition:
        return self._transitions[index]

    def effect(self, index: int) -> CounterVector:
        return self._transitions[index].effect

    def label(self, index: int) -> Hashable:
        return self._transitions[index].label

    def outgoing(self, state: StateId) -> Tuple[int, ...]:
        """Indices of live transitions leaving ``state``, ascending."""
        return self._outgoing.get(state, ())

    def is_live(self, index: int) -> bool:
        return index not in self._dead

    def zero(self) -> CounterVector:
        return (0,) * self._dimension

    def guard_holds(self, transition: Union[int, Transition], counters: Sequence[int]) -> bool:
        if isinstance(transition, int):
            transition = self._transitions[transition]
        return transition.guard.holds(counters)

    def __repr__(self) -> str:
        return (f"VASS(states={self.state_count}, dimension={self._dimension}, "
                f"transitions={self.transition_count}, initial={self._initial!r}, "
                f"final={self._final!r})")
