"""
Candidate search.

Breadth-first exploration of the product

    (derivation state of the reachability language)
  x (residue vector of the modulo abstraction)
  x (state of the exclusion automata)

looking for the shortest walk from ``initial`` to ``final`` that the modulo
abstraction does *not* reject (all residues zero) and that no recorded
exclusion matches. Such a walk is a candidate witness; the path validator
decides whether it is genuine.

Only non-empty walks are candidates: the root of the search is never a goal,
and a walk that comes back to the root product state is a fresh node with its
own back-pointer. When ``initial == final`` the empty run is therefore not a
witness; a witness has to take at least one transition.

If the frontier runs dry, every word of the reachability language is either
rejected by MDFA_μ or excluded as certified spurious, so no run can exist:
the search reports ``EXHAUSTED``.

DETERMINISM
===========

Expansions are ordered by transition index and each product state keeps the
first back-pointer it was reached with. Layer by layer, the frontier is
therefore sorted lexicographically, and the first goal found is the shortest
candidate with the lowest transition index at every choice point.

With ``workers > 1`` each layer is expanded on a thread pool. Workers never
mutate search state (only the deterministic step memos of the language and
the abstraction); the visited set and the next frontier are built on the
calling thread in frontier order, so the result never depends on thread
completion order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List, Optional, Tuple

from ..abstraction.exclusions import ExclusionSet, ExclusionState
from ..abstraction.modulo import ModuloAbstraction, Residues
from ..language.builder import ReachabilityLanguage
from ..language.grammar import DerivationState
from ..model.path import Path

logger = logging.getLogger(__name__)

ProductState = Tuple[DerivationState, Residues, ExclusionState]
Link = Tuple[Optional[ProductState], int]


class SearchStatus(Enum):
    """Outcome of one candidate search."""
    FOUND = auto()       # Candidate path returned
    EXHAUSTED = auto()   # Language exhausted, no candidate exists at this μ
    TRUNCATED = auto()   # Stopped by the path-length budget


@dataclass
class SearchOutcome:
    """Result of ``CandidateSearch.run``."""
    status: SearchStatus
    path: Optional[Path] = None
    visited: int = 0
    layers: int = 0

    @property
    def found(self) -> bool:
        return self.status == SearchStatus.FOUND


class CandidateSearch:
    """
    One breadth-first search over the product automaton.

    Args:
        language: Reachability language of the VASS
        abstraction: Modulo abstraction for the current μ
        exclusions: Certified-spurious structure recorded so far
        max_path_length: Longest path explored (None = unbounded)
        workers: Thread-pool size for layer expansion
    """

    def __init__(self, language: ReachabilityLanguage,
                 abstraction: ModuloAbstraction,
                 exclusions: ExclusionSet,
                 max_path_length: Optional[int] = None,
                 workers: int = 1):
        self.language = language
        self.vass = language.vass
        self.abstraction = abstraction
        self.exclusions = exclusions
        self.max_path_length = max_path_length
        self.workers = max(1, workers)

    def _is_goal(self, state: ProductState) -> bool:
        derivation, residues, exclusion = state
        return (
            self.language.is_complete(derivation)
            and not self.abstraction.is_accepting(residues)
            and not self.exclusions.excludes_word(exclusion)
        )

    def _successors(self, state: ProductState) -> List[Tuple[int, ProductState]]:
        derivation, residues, exclusion = state
        successors = []
        for index, next_derivation in self.language.expand(derivation):
            next_exclusion = self.exclusions.step(exclusion, index)
            if next_exclusion is None:
                continue
            next_residues = self.abstraction.step(residues, self.vass.effect(index))
            successors.append((index, (next_derivation, next_residues, next_exclusion)))
        return successors

    def _expand_layer(self, frontier: List[ProductState],
                      executor: Optional[ThreadPoolExecutor]) -> List[List[Tuple[int, ProductState]]]:
        if executor is None:
            return [self._successors(state) for state in frontier]
        return list(executor.map(self._successors, frontier))

    def _reconstruct(self, goal: ProductState, parents: Dict[ProductState, Link]) -> Path:
        transitions: List[int] = []
        current: Optional[ProductState] = goal
        while current is not None:
            current, index = parents[current]
            transitions.append(index)
        transitions.reverse()
        return Path(self.vass, tuple(transitions))

    def run(self) -> SearchOutcome:
        start_derivation = self.language.initial_state()
        if start_derivation is None:
            logger.debug("Reachability language is empty")
            return SearchOutcome(SearchStatus.EXHAUSTED)

        start: ProductState = (start_derivation, self.abstraction.start, self.exclusions.start())
        executor = ThreadPoolExecutor(max_workers=self.workers) if self.workers > 1 else None
        try:
            return self._bfs(start, executor)
        finally:
            if executor is not None:
                executor.shutdown(wait=True)

    def _bfs(self, start: ProductState,
             executor: Optional[ThreadPoolExecutor]) -> SearchOutcome:
        # None stands for the root, which is never a key of ``parents``
        parents: Dict[ProductState, Link] = {}
        frontier: List[Optional[ProductState]] = [None]
        length = 0
        while frontier:
            expansions = self._expand_layer(
                [start if node is None else node for node in frontier], executor)
            if self.max_path_length is not None and length >= self.max_path_length:
                if any(child not in parents for successors in expansions for _, child in successors):
                    logger.debug(f"Search truncated at path length {length}")
                    return SearchOutcome(SearchStatus.TRUNCATED, visited=len(parents), layers=length)
                break

            length += 1
            next_frontier: List[Optional[ProductState]] = []
            for node, successors in zip(frontier, expansions):
                for index, child in successors:
                    if child in parents:
                        continue
                    parents[child] = (node, index)
                    if self._is_goal(child):
                        path = self._reconstruct(child, parents)
                        logger.debug(
                            f"Candidate of length {len(path)} after visiting {len(parents)} states"
                        )
                        return SearchOutcome(SearchStatus.FOUND, path,
                                             visited=len(parents), layers=length)
                    next_frontier.append(child)
            frontier = next_frontier

        logger.debug(f"Search exhausted after visiting {len(parents)} states")
        return SearchOutcome(SearchStatus.EXHAUSTED, visited=len(parents), layers=length)


def find_candidate(language: ReachabilityLanguage, abstraction: ModuloAbstraction,
                   exclusions: Optional[ExclusionSet] = None,
                   max_path_length: Optional[int] = None,
                   workers: int = 1) -> SearchOutcome:
    """Convenience wrapper running a single ``CandidateSearch``."""
    return CandidateSearch(
        language, abstraction, exclusions or ExclusionSet(),
        max_path_length=max_path_length, workers=workers,
    ).run()
