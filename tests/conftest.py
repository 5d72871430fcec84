"""
Shared VASS instances.

All single-counter instances use states ``q0``, ``q1``, ... with ``q0``
initial; the final state is named per fixture.
"""

import pytest

from vass_reach.model.guards import Guard
from vass_reach.model.vass import VASS, Transition


@pytest.fixture
def trivial_vass():
    """+1 then -1: reachable with a witness of length 2."""
    return VASS(
        states={"q0", "q1", "q2"},
        dimension=1,
        transitions=[
            Transition("q0", "q1", (1,)),
            Transition("q1", "q2", (-1,)),
        ],
        initial="q0",
        final="q2",
    )


@pytest.fixture
def single_decrement_vass():
    """A single -1 edge from initial to final."""
    return VASS(
        states={"q0", "q1"},
        dimension=1,
        transitions=[Transition("q0", "q1", (-1,))],
        initial="q0",
        final="q1",
    )


@pytest.fixture
def dip_vass():
    """-1 then +1: balanced but drops below zero first."""
    return VASS(
        states={"q0", "q1", "q2"},
        dimension=1,
        transitions=[
            Transition("q0", "q1", (-1,)),
            Transition("q1", "q2", (1,)),
        ],
        initial="q0",
        final="q2",
    )


@pytest.fixture
def disconnected_vass():
    """The final state has no incoming edge."""
    return VASS(
        states={"q0", "q1", "q2"},
        dimension=1,
        transitions=[
            Transition("q0", "q1", (1,)),
            Transition("q1", "q0", (-1,)),
        ],
        initial="q0",
        final="q2",
    )


@pytest.fixture
def wrap_vass():
    """+2, a +4 self-loop, then +2: every word is positive, some are 0 mod 2^k."""
    return VASS(
        states={"q0", "q1", "q2"},
        dimension=1,
        transitions=[
            Transition("q0", "q1", (2,)),
            Transition("q1", "q1", (4,)),
            Transition("q1", "q2", (2,)),
        ],
        initial="q0",
        final="q2",
    )


@pytest.fixture
def unit_wrap_vass():
    """+1, a +2 self-loop, then +1."""
    return VASS(
        states={"q0", "q1", "q2"},
        dimension=1,
        transitions=[
            Transition("q0", "q1", (1,)),
            Transition("q1", "q1", (2,)),
            Transition("q1", "q2", (1,)),
        ],
        initial="q0",
        final="q2",
    )


@pytest.fixture
def deep_decrement_vass():
    """A single -8 edge: residue zero for every μ dividing 8."""
    return VASS(
        states={"q0", "q1"},
        dimension=1,
        transitions=[Transition("q0", "q1", (-8,))],
        initial="q0",
        final="q1",
    )


@pytest.fixture
def drain_loop_vass():
    """+2, a -1 self-loop, then a zero edge: reachable by looping twice."""
    return VASS(
        states={"q0", "q1", "q2"},
        dimension=1,
        transitions=[
            Transition("q0", "q1", (2,)),
            Transition("q1", "q1", (-1,)),
            Transition("q1", "q2", (0,)),
        ],
        initial="q0",
        final="q2",
    )


@pytest.fixture
def guarded_vass():
    """+1 then -1 guarded by c0 >= 2: the guard can never hold on this path."""
    return VASS(
        states={"q0", "q1", "q2"},
        dimension=1,
        transitions=[
            Transition("q0", "q1", (1,)),
            Transition("q1", "q2", (-1,), guard=Guard.at_least(1, 0, 2)),
        ],
        initial="q0",
        final="q2",
    )


@pytest.fixture
def transfer_vass():
    """Two counters: move a token from c0 to c1, then consume it."""
    return VASS(
        states={"q0", "q1", "q2", "q3"},
        dimension=2,
        transitions=[
            Transition("q0", "q1", (1, 0), label="inc"),
            Transition("q1", "q2", (-1, 1), label="move"),
            Transition("q2", "q3", (0, -1), label="dec"),
        ],
        initial="q0",
        final="q3",
    )
