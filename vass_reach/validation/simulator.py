"""
Path validator / counter simulator.

Replays a candidate path with exact integer counters and classifies it.
Priority order:

1. GENUINE            every prefix is non-negative, every guard holds and
                      the net effect is zero: a real run.
2. NEGATIVE_EXCURSION the trace dips below zero, and no counter value along
                      the trace ever reaches magnitude μ. The prefix up to
                      the first negative point is certified spurious.
   GUARD_VIOLATION    a transition fires on a counter vector its guard
                      rejects. The prefix up to that transition is certified
                      spurious.
3. WRAP_ONLY_LOOP     the path factors as P · C^k · S with C a cycle and the
                      net effect e(P) + e(S) + n·e(C) is non-zero for every
                      n >= 0 (decided by z3). Every word of P · C* · S is
                      spurious.
4. INCONCLUSIVE       none of the above; the controller raises μ.

Counter values are private to each call: the trace is recomputed per
validation and never shared.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Sequence, Tuple

import z3

from ..abstraction.exclusions import LoopPattern
from ..errors import InternalInconsistency
from ..model.path import Path, add_vectors, sum_effects
from ..model.vass import VASS, CounterVector

logger = logging.getLogger(__name__)


class Classification(Enum):
    """Outcome of validating one candidate path."""
    GENUINE = auto()
    NEGATIVE_EXCURSION = auto()
    GUARD_VIOLATION = auto()
    WRAP_ONLY_LOOP = auto()
    INCONCLUSIVE = auto()

    @property
    def is_spurious(self) -> bool:
        return self in (Classification.NEGATIVE_EXCURSION,
                        Classification.GUARD_VIOLATION,
                        Classification.WRAP_ONLY_LOOP)


@dataclass
class CounterTrace:
    """
    Exact replay of a path.

    ``first_negative`` and ``first_guard_failure`` are step numbers (1-based:
    step ``i`` is the configuration after the i-th transition, guard failures
    name the transition that could not fire) or None.
    """
    vectors: List[CounterVector]
    first_negative: Optional[int] = None
    negative_counter: Optional[int] = None
    first_guard_failure: Optional[int] = None

    @property
    def net_effect(self) -> CounterVector:
        return self.vectors[-1]

    @property
    def peak_magnitude(self) -> int:
        return max((abs(x) for vector in self.vectors for x in vector), default=0)

    @property
    def non_negative(self) -> bool:
        return self.first_negative is None

    def first_block(self) -> Optional[int]:
        """Step of the earliest negative configuration or failed guard."""
        steps = [s for s in (self.first_negative, self.first_guard_failure) if s is not None]
        return min(steps) if steps else None


@dataclass
class ValidationResult:
    """Classification together with the exclusion it certifies (if any)."""
    classification: Classification
    path: Path
    trace: CounterTrace
    blocked_prefix: Optional[Tuple[int, ...]] = None
    loop: Optional[LoopPattern] = None

    @property
    def is_genuine(self) -> bool:
        return self.classification == Classification.GENUINE


def simulate(vass: VASS, transitions: Sequence[int]) -> CounterTrace:
    """Replay ``transitions`` from the zero vector with exact integers."""
    current = vass.zero()
    trace = CounterTrace(vectors=[current])
    for step, index in enumerate(transitions, start=1):
        if trace.first_guard_failure is None and not vass.guard_holds(index, current):
            trace.first_guard_failure = step
        current = add_vectors(current, vass.effect(index))
        trace.vectors.append(current)
        if trace.first_negative is None:
            for counter, value in enumerate(current):
                if value < 0:
                    trace.first_negative = step
                    trace.negative_counter = counter
                    break
    return trace


class PathValidator:
    """
    Classifies candidate paths for a fixed modulus.

    Args:
        vass: The instance being decided
        modulus: Current μ of the refinement loop
    """

    def __init__(self, vass: VASS, modulus: int):
        self.vass = vass
        self.modulus = modulus

    def classify(self, path: Path) -> ValidationResult:
        trace = simulate(self.vass, path.transitions)

        if any(x % self.modulus for x in trace.net_effect):
            raise InternalInconsistency(
                f"Candidate {list(path.transitions)} has net effect {trace.net_effect}, "
                f"which is not zero modulo {self.modulus}"
            )

        block = trace.first_block()
        if block is None and all(x == 0 for x in trace.net_effect):
            return ValidationResult(Classification.GENUINE, path, trace)

        if block is not None:
            prefix = path.transitions[:block]
            if trace.first_guard_failure == block:
                return ValidationResult(Classification.GUARD_VIOLATION, path, trace,
                                        blocked_prefix=prefix)
            if trace.peak_magnitude < self.modulus:
                return ValidationResult(Classification.NEGATIVE_EXCURSION, path, trace,
                                        blocked_prefix=prefix)

        if any(x != 0 for x in trace.net_effect):
            loop = self.find_wrap_only_loop(path)
            if loop is not None:
                return ValidationResult(Classification.WRAP_ONLY_LOOP, path, trace, loop=loop)

        return ValidationResult(Classification.INCONCLUSIVE, path, trace)

    # -------------------------------------------------------------------------
    # Wrap-only loops
    # -------------------------------------------------------------------------

    def factorizations(self, path: Path) -> List[LoopPattern]:
        """
        Every ``P · C^k · S`` factorization with C a control cycle and k maximal.

        Ordered by the start of the cycle, then by cycle length.
        """
        transitions = path.transitions
        patterns: List[LoopPattern] = []
        seen = set()
        for i, j in path.cycles():
            cycle = transitions[i:j]
            end = j
            while transitions[end:end + len(cycle)] == cycle:
                end += len(cycle)
            pattern = LoopPattern(transitions[:i], cycle, transitions[end:])
            if pattern not in seen:
                seen.add(pattern)
                patterns.append(pattern)
        patterns.sort(key=lambda p: (len(p.prefix), len(p.cycle)))
        return patterns

    def can_balance(self, pattern: LoopPattern) -> bool:
        """Is e(P) + e(S) + n·e(C) = 0 for some integer n >= 0?"""
        base = add_vectors(sum_effects(self.vass, pattern.prefix),
                           sum_effects(self.vass, pattern.suffix))
        cycle = sum_effects(self.vass, pattern.cycle)

        n = z3.Int("n")
        solver = z3.Solver()
        solver.add(n >= 0)
        for b, c in zip(base, cycle):
            solver.add(b + c * n == 0)
        result = solver.check()
        if result == z3.unknown:
            # Without a proof of imbalance the pattern must not be excluded
            logger.debug(f"z3 returned unknown for loop pattern {pattern}")
            return True
        return result == z3.sat

    def find_wrap_only_loop(self, path: Path) -> Optional[LoopPattern]:
        for pattern in self.factorizations(path):
            if not self.can_balance(pattern):
                return pattern
        return None
