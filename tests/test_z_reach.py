"""
Tests for the integer relaxation (Z-reachability) pre-check.
"""

from vass_reach.model.vass import VASS, Transition
from vass_reach.solver.z_reach import ZReachChecker, ZReachStatus, check_z_reachability


def detached_cycle_vass(bridged):
    """+1 to the final state; a -1 self-loop on ``c`` balances it only over Z."""
    transitions = [
        Transition("i", "f", (1,)),
        Transition("c", "c", (-1,)),
    ]
    if bridged:
        transitions += [
            Transition("f", "c", (0,)),
            Transition("c", "f", (0,)),
        ]
    return VASS({"i", "f", "c"}, 1, transitions, "i", "f")


class TestRefutation:

    def test_single_decrement(self, single_decrement_vass):
        result = check_z_reachability(single_decrement_vass)
        assert result.status == ZReachStatus.UNREACHABLE
        assert result.refutes
        assert result.steps == 1

    def test_positive_loop(self, wrap_vass):
        assert check_z_reachability(wrap_vass).refutes

    def test_disconnected_final(self, disconnected_vass):
        assert check_z_reachability(disconnected_vass).refutes

    def test_no_live_transitions(self):
        vass = VASS({"a", "b"}, 1, [], "a", "b")
        result = check_z_reachability(vass)
        assert result.refutes
        assert result.steps == 0

    def test_empty_run_does_not_count(self):
        vass = VASS({"a", "b"}, 1, [Transition("a", "b", (-1,))], "a", "a")
        assert check_z_reachability(vass).refutes


class TestSolutions:

    def test_trivial(self, trivial_vass):
        result = check_z_reachability(trivial_vass)
        assert result.status == ZReachStatus.REACHABLE
        assert result.parikh_image == {0: 1, 1: 1}

    def test_negativity_is_ignored(self, dip_vass):
        # -1 then +1 is a Z-run even though it is no run of the VASS
        assert check_z_reachability(dip_vass).status == ZReachStatus.REACHABLE

    def test_loop_counts(self, drain_loop_vass):
        result = check_z_reachability(drain_loop_vass)
        assert result.status == ZReachStatus.REACHABLE
        assert result.parikh_image == {0: 1, 1: 2, 2: 1}

    def test_back_to_initial(self):
        vass = VASS({"init", "mid"}, 1,
                    [Transition("init", "mid", (1,)), Transition("mid", "init", (-1,))],
                    "init", "init")
        result = check_z_reachability(vass)
        assert result.status == ZReachStatus.REACHABLE
        # Any number of round trips balances
        assert result.parikh_image[0] == result.parikh_image[1] >= 1


class TestConnectivity:

    def test_detached_components(self):
        checker = ZReachChecker(detached_cycle_vass(bridged=False))
        assert checker.detached_components({0: 1, 1: 1}) == [frozenset({1})]
        assert checker.detached_components({0: 1}) == []

    def test_detached_cycle_is_rejected(self):
        result = check_z_reachability(detached_cycle_vass(bridged=False))
        assert result.status == ZReachStatus.UNREACHABLE
        assert result.steps == 2

    def test_bridged_cycle_is_connected(self):
        checker = ZReachChecker(detached_cycle_vass(bridged=True))
        result = checker.check()
        assert result.status == ZReachStatus.REACHABLE
        assert result.parikh_image[1] >= 1
        assert result.parikh_image[2] >= 1
        assert checker.detached_components(result.parikh_image) == []

    def test_step_limit(self):
        result = check_z_reachability(detached_cycle_vass(bridged=False), max_steps=1)
        assert result.status == ZReachStatus.UNKNOWN
        assert not result.refutes
        assert result.steps == 1
