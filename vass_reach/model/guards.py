"""
Transition guards.

A guard is a conjunction of linear integer constraints over the counter
vector. Guards are evaluated concretely by the path validator and rendered
as z3 formulas when the VASS pre-filters structurally dead transitions.

    Guard.at_least(2, 0, 3)      # c0 >= 3
    Guard.at_most(2, 1, 5)       # c1 <= 5
    Guard.at_least(2, 0, 3).conjoin(Guard.at_most(2, 1, 5))
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Tuple

import z3


class Comparison(Enum):
    """Relational operator of a linear constraint."""
    LE = "<="
    GE = ">="
    EQ = "=="


@dataclass(frozen=True)
class LinearConstraint:
    """
    ``sum(coefficients[i] * c[i])  comparison  bound``
    """
    coefficients: Tuple[int, ...]
    comparison: Comparison
    bound: int

    @property
    def dimension(self) -> int:
        return len(self.coefficients)

    def evaluate(self, counters: Sequence[int]) -> int:
        return sum(a * c for a, c in zip(self.coefficients, counters))

    def holds(self, counters: Sequence[int]) -> bool:
        value = self.evaluate(counters)
        if self.comparison == Comparison.LE:
            return value <= self.bound
        if self.comparison == Comparison.GE:
            return value >= self.bound
        return value == self.bound

    def to_z3(self, counter_vars: Sequence[z3.ArithRef]) -> z3.BoolRef:
        lhs = z3.Sum([z3.IntVal(0)] + [a * v for a, v in zip(self.coefficients, counter_vars) if a != 0])
        if self.comparison == Comparison.LE:
            return lhs <= self.bound
        if self.comparison == Comparison.GE:
            return lhs >= self.bound
        return lhs == self.bound

    def __str__(self) -> str:
        terms = [f"{a}*c{i}" for i, a in enumerate(self.coefficients) if a != 0]
        return f"{' + '.join(terms) or '0'} {self.comparison.value} {self.bound}"


@dataclass(frozen=True)
class Guard:
    """Conjunction of linear constraints; the empty conjunction is ``true``."""
    constraints: Tuple[LinearConstraint, ...] = ()

    @classmethod
    def true(cls) -> "Guard":
        return cls()

    @classmethod
    def _unit(cls, dimension: int, counter: int, comparison: Comparison, value: int) -> "Guard":
        if not 0 <= counter < dimension:
            raise ValueError(f"Counter {counter} out of range for dimension {dimension}")
        coefficients = tuple(1 if i == counter else 0 for i in range(dimension))
        return cls((LinearConstraint(coefficients, comparison, value),))

    @classmethod
    def at_least(cls, dimension: int, counter: int, value: int) -> "Guard":
        return cls._unit(dimension, counter, Comparison.GE, value)

    @classmethod
    def at_most(cls, dimension: int, counter: int, value: int) -> "Guard":
        return cls._unit(dimension, counter, Comparison.LE, value)

    @classmethod
    def equals(cls, dimension: int, counter: int, value: int) -> "Guard":
        return cls._unit(dimension, counter, Comparison.EQ, value)

    def conjoin(self, other: "Guard") -> "Guard":
        return Guard(self.constraints + other.constraints)

    def is_trivial(self) -> bool:
        return not self.constraints

    def holds(self, counters: Sequence[int]) -> bool:
        return all(c.holds(counters) for c in self.constraints)

    def to_z3(self, counter_vars: Sequence[z3.ArithRef]) -> z3.BoolRef:
        if not self.constraints:
            return z3.BoolVal(True)
        return z3.And([c.to_z3(counter_vars) for c in self.constraints])

    def __str__(self) -> str:
        if not self.constraints:
            return "true"
        return " && ".join(str(c) for c in self.constraints)
