"""
Tests for transition guards: concrete evaluation and z3 rendering.
"""

import pytest
import z3

from vass_reach.model.guards import Comparison, Guard, LinearConstraint


def test_true_guard_holds_everywhere():
    guard = Guard.true()
    assert guard.is_trivial()
    assert guard.holds((0, 0))
    assert guard.holds((-5, 7))
    assert str(guard) == "true"


def test_unit_guards():
    assert Guard.at_least(2, 0, 3).holds((3, 0))
    assert not Guard.at_least(2, 0, 3).holds((2, 9))
    assert Guard.at_most(2, 1, 5).holds((100, 5))
    assert not Guard.at_most(2, 1, 5).holds((0, 6))
    assert Guard.equals(1, 0, 4).holds((4,))
    assert not Guard.equals(1, 0, 4).holds((3,))


def test_unit_guard_rejects_out_of_range_counter():
    with pytest.raises(ValueError):
        Guard.at_least(2, 2, 1)


def test_conjoin():
    guard = Guard.at_least(2, 0, 3).conjoin(Guard.at_most(2, 1, 5))
    assert len(guard.constraints) == 2
    assert guard.holds((3, 5))
    assert not guard.holds((3, 6))
    assert not guard.holds((2, 0))


def test_linear_constraint_evaluation():
    """2*c0 - c1 <= 1"""
    constraint = LinearConstraint((2, -1), Comparison.LE, 1)
    assert constraint.dimension == 2
    assert constraint.evaluate((3, 4)) == 2
    assert not constraint.holds((3, 4))
    assert constraint.holds((2, 4))
    assert str(constraint) == "2*c0 + -1*c1 <= 1"


def test_guard_to_z3_satisfiability():
    """Contradictory bounds are unsat; compatible bounds are sat."""
    c = [z3.Int("c0")]

    contradictory = Guard.at_least(1, 0, 3).conjoin(Guard.at_most(1, 0, 2))
    solver = z3.Solver()
    solver.add(contradictory.to_z3(c))
    assert solver.check() == z3.unsat

    compatible = Guard.at_least(1, 0, 3).conjoin(Guard.at_most(1, 0, 3))
    solver = z3.Solver()
    solver.add(compatible.to_z3(c))
    assert solver.check() == z3.sat
    assert solver.model().eval(c[0]).as_long() == 3


def test_trivial_guard_to_z3_is_true():
    solver = z3.Solver()
    solver.add(z3.Not(Guard.true().to_z3([])))
    assert solver.check() == z3.unsat
