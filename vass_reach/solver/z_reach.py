"""
Integer relaxation of zero-reachability (Z-reachability).

Allowing counters to go negative turns the question into one about
transition counts alone. We look for a Parikh image (a count per live
transition) such that:

- the control graph's flow equations hold, with one extra unit of inflow at
  ``initial`` and one unit of outflow at ``final``;
- the total effect on every counter is zero;
- at least one transition is taken;
- every taken transition is reachable from ``initial`` through taken ones.

Every run of the VASS has such a Parikh image, so an unsatisfiable system
refutes reachability before any modulo search. Guards are ignored here and
dead transitions are left out.

Connectivity is not linear. It is enforced lazily: when a model's support
falls apart into components that cannot be reached from ``initial``, each
component is forbidden unless some transition entering it is also taken,
and z3 is asked again. Each added constraint cuts off the current model and
there are finitely many components, so the loop ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence, Set

import z3

from ..model.vass import VASS, StateId

logger = logging.getLogger(__name__)


class ZReachStatus(Enum):
    REACHABLE = "reachable"      # A connected Parikh image exists
    UNREACHABLE = "unreachable"  # No Z-run, hence no run of the VASS
    UNKNOWN = "unknown"          # z3 gave up or the step limit was hit


@dataclass
class ZReachResult:
    status: ZReachStatus
    parikh_image: Dict[int, int] = field(default_factory=dict)
    steps: int = 0

    @property
    def refutes(self) -> bool:
        return self.status == ZReachStatus.UNREACHABLE


def _total(terms: Sequence[z3.ArithRef]) -> z3.ArithRef:
    return z3.Sum(list(terms)) if terms else z3.IntVal(0)


class ZReachChecker:
    """
    Decides Z-reachability of a VASS with z3.

    Args:
        vass: Instance to check
        max_steps: Limit on connectivity rounds (None = unbounded)
        timeout_ms: z3 timeout per check (None = no timeout)
    """

    def __init__(self, vass: VASS, max_steps: Optional[int] = None,
                 timeout_ms: Optional[int] = None):
        self.vass = vass
        self.max_steps = max_steps
        self.timeout_ms = timeout_ms
        self.live: List[int] = [i for i in range(vass.transition_count) if vass.is_live(i)]
        self.counts: Dict[int, z3.ArithRef] = {i: z3.Int(f"count_t{i}") for i in self.live}

    def _build_solver(self) -> z3.Solver:
        vass = self.vass
        solver = z3.Solver()
        if self.timeout_ms is not None:
            solver.set("timeout", self.timeout_ms)

        for var in self.counts.values():
            solver.add(var >= 0)
        solver.add(_total(list(self.counts.values())) >= 1)

        for state in sorted(vass.states, key=repr):
            inflow = [self.counts[i] for i in self.live if vass.transition(i).target == state]
            outflow = [self.counts[i] for i in self.live if vass.transition(i).source == state]
            source = 1 if state == vass.initial else 0
            sink = 1 if state == vass.final else 0
            solver.add(_total(inflow) + source == _total(outflow) + sink)

        for counter in range(vass.dimension):
            solver.add(_total([self.counts[i] * vass.effect(i)[counter] for i in self.live]) == 0)
        return solver

    def detached_components(self, image: Dict[int, int]) -> List[FrozenSet[int]]:
        """
        Taken transitions not reachable from ``initial`` through taken
        transitions, grouped into weakly connected components.
        """
        vass = self.vass
        support = sorted(i for i, n in image.items() if n > 0)

        reached: Set[StateId] = {vass.initial}
        worklist = [vass.initial]
        while worklist:
            state = worklist.pop()
            for i in support:
                transition = vass.transition(i)
                if transition.source == state and transition.target not in reached:
                    reached.add(transition.target)
                    worklist.append(transition.target)

        detached = [i for i in support if vass.transition(i).source not in reached]
        components: List[FrozenSet[int]] = []
        remaining = list(detached)
        while remaining:
            first = remaining.pop(0)
            component = {first}
            states = {vass.transition(first).source, vass.transition(first).target}
            grew = True
            while grew:
                grew = False
                for i in list(remaining):
                    transition = vass.transition(i)
                    if transition.source in states or transition.target in states:
                        component.add(i)
                        states.update((transition.source, transition.target))
                        remaining.remove(i)
                        grew = True
            components.append(frozenset(component))
        return components

    def _connection_constraint(self, component: FrozenSet[int]) -> z3.BoolRef:
        # Sources of a detached component never include ``initial``, so a
        # real run taking the whole component must enter them from outside
        vass = self.vass
        sources = {vass.transition(i).source for i in component}
        entries = [
            i for i in self.live
            if vass.transition(i).target in sources and vass.transition(i).source not in sources
        ]
        taken = z3.And([self.counts[i] >= 1 for i in sorted(component)])
        entered = z3.Or([self.counts[i] >= 1 for i in entries]) if entries else z3.BoolVal(False)
        return z3.Implies(taken, entered)

    def check(self) -> ZReachResult:
        if not self.live:
            logger.debug("Z-reachability: no live transitions")
            return ZReachResult(ZReachStatus.UNREACHABLE)

        solver = self._build_solver()
        steps = 0
        while True:
            steps += 1
            answer = solver.check()
            if answer == z3.unsat:
                logger.debug(f"Z-reachability refuted after {steps} steps")
                return ZReachResult(ZReachStatus.UNREACHABLE, steps=steps)
            if answer != z3.sat:
                logger.debug(f"Z-reachability unknown: {solver.reason_unknown()}")
                return ZReachResult(ZReachStatus.UNKNOWN, steps=steps)

            model = solver.model()
            image = {
                i: model.eval(self.counts[i], model_completion=True).as_long()
                for i in self.live
            }
            image = {i: n for i, n in image.items() if n > 0}
            components = self.detached_components(image)
            if not components:
                logger.debug(f"Z-reachability: connected Parikh image {image} after {steps} steps")
                return ZReachResult(ZReachStatus.REACHABLE, image, steps)
            if self.max_steps is not None and steps >= self.max_steps:
                logger.debug(f"Z-reachability: step limit {self.max_steps} reached")
                return ZReachResult(ZReachStatus.UNKNOWN, steps=steps)

            logger.debug(f"Z-reachability: forbidding {len(components)} detached components")
            for component in components:
                solver.add(self._connection_constraint(component))


def check_z_reachability(vass: VASS, max_steps: Optional[int] = None,
                         timeout_ms: Optional[int] = None) -> ZReachResult:
    """Convenience wrapper running a single ``ZReachChecker``."""
    return ZReachChecker(vass, max_steps=max_steps, timeout_ms=timeout_ms).check()
