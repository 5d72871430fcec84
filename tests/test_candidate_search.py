"""
Tests for the breadth-first candidate search over language × MDFA_μ × exclusions.
"""

from vass_reach.abstraction.exclusions import ExclusionSet, LoopPattern
from vass_reach.abstraction.modulo import ModuloAbstraction
from vass_reach.language.builder import ReachabilityLanguage
from vass_reach.model.vass import VASS, Transition
from vass_reach.search.candidate import CandidateSearch, SearchStatus, find_candidate


def search(vass, modulus, exclusions=None, **kwargs):
    language = ReachabilityLanguage.build(vass)
    return find_candidate(language, ModuloAbstraction(modulus, vass.dimension),
                          exclusions, **kwargs)


def test_finds_balanced_path(trivial_vass):
    outcome = search(trivial_vass, 2)
    assert outcome.status == SearchStatus.FOUND
    assert outcome.found
    assert outcome.path.transitions == (0, 1)
    assert outcome.layers == 2


def test_exhausts_when_every_word_is_rejected(single_decrement_vass):
    outcome = search(single_decrement_vass, 2)
    assert outcome.status == SearchStatus.EXHAUSTED
    assert outcome.path is None


def test_empty_language_is_exhausted_immediately(disconnected_vass):
    outcome = search(disconnected_vass, 2)
    assert outcome.status == SearchStatus.EXHAUSTED
    assert outcome.visited == 0


def test_root_is_never_a_candidate_when_initial_is_final():
    vass = VASS({"a"}, 1, [Transition("a", "a", (1,))], "a", "a")
    outcome = search(vass, 2)
    assert outcome.found
    # Returning to the root product state takes two +1 steps modulo 2
    assert outcome.path.transitions == (0, 0)
    assert outcome.layers == 2


def test_walk_back_to_initial_is_a_candidate():
    vass = VASS({"a", "b"}, 1,
                [Transition("a", "b", (1,)), Transition("b", "a", (-1,))], "a", "a")
    outcome = search(vass, 2)
    assert outcome.path.transitions == (0, 1)
    assert outcome.visited == 2


def test_shortest_candidate_depends_on_modulus(wrap_vass):
    # 2 + 2 = 4 is zero modulo 2 and 4, but not modulo 8
    assert search(wrap_vass, 2).path.transitions == (0, 2)
    assert search(wrap_vass, 4).path.transitions == (0, 2)
    assert search(wrap_vass, 8).path.transitions == (0, 1, 2)


def test_lowest_index_tie_break():
    vass = VASS(
        states={"a", "b", "c"},
        dimension=1,
        transitions=[
            Transition("a", "b", (1,)),
            Transition("a", "b", (0,)),
            Transition("a", "b", (2,)),
            Transition("b", "c", (0,)),
        ],
        initial="a",
        final="c",
    )
    # Both t1 and t2 close to residue 0 modulo 2; t1 has the lower index
    assert search(vass, 2).path.transitions == (1, 3)


def test_prefix_exclusion_prunes_branch(trivial_vass):
    exclusions = ExclusionSet()
    exclusions.record_prefix((0,))
    assert search(trivial_vass, 2, exclusions).status == SearchStatus.EXHAUSTED


def test_loop_exclusion_removes_whole_family(wrap_vass):
    exclusions = ExclusionSet()
    exclusions.record_loop(LoopPattern((0,), (1,), (2,)))
    assert search(wrap_vass, 8, exclusions).status == SearchStatus.EXHAUSTED


def test_truncation_by_path_length(wrap_vass):
    outcome = search(wrap_vass, 8, max_path_length=2)
    assert outcome.status == SearchStatus.TRUNCATED
    assert outcome.path is None


def test_no_truncation_when_nothing_is_left(single_decrement_vass):
    outcome = search(single_decrement_vass, 2, max_path_length=1)
    assert outcome.status == SearchStatus.EXHAUSTED


def test_parallel_expansion_matches_sequential(transfer_vass, wrap_vass):
    for vass, modulus in ((transfer_vass, 2), (wrap_vass, 8), (wrap_vass, 2)):
        sequential = search(vass, modulus)
        parallel = search(vass, modulus, workers=4)
        assert parallel.status == sequential.status
        assert parallel.path == sequential.path
        assert parallel.visited == sequential.visited


def test_search_object_is_reusable(wrap_vass):
    language = ReachabilityLanguage.build(wrap_vass)
    searcher = CandidateSearch(language, ModuloAbstraction(8, 1), ExclusionSet())
    first = searcher.run()
    second = searcher.run()
    assert first.path == second.path
