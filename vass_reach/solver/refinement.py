"""
Refinement controller: the CEGAR loop deciding zero-reachability.

State machine::

    INIT ──▶ SEARCHING(μ0)
    INIT ──no Z-run───────▶ DONE(False)     only with the pre-check enabled
    SEARCHING(μ) ──exhausted──▶ DONE(False)
    SEARCHING(μ) ──candidate──▶ VALIDATING(path)
    VALIDATING ──genuine──────▶ DONE(True)
    VALIDATING ──spurious─────▶ SEARCHING(μ)     exclusion recorded
    VALIDATING ──inconclusive─▶ SEARCHING(μ')    μ' > μ

Every terminal answer is backed by evidence: ``True`` by a witness path the
validator replayed exactly, ``False`` by a candidate search that exhausted
the reachability language at the current μ, or by the optional
integer-relaxation pre-check having no solution at all. Hitting any budget
ceiling ends the query with ``Unknown(BUDGET_EXHAUSTED)``; it is never
reported as ``False``.

Termination is not guaranteed for every instance: whether wrap-only loops
can keep appearing without bound is an open question, so callers should
always pass a budget when the input is not trusted.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from ..abstraction.exclusions import ExclusionSet
from ..abstraction.modulo import ModuloAbstraction
from ..config import SearchBudget, SolverConfig
from ..errors import InternalInconsistency
from ..language.builder import ReachabilityLanguage
from ..model.path import Path
from ..model.vass import VASS
from ..search.candidate import CandidateSearch, SearchStatus
from ..validation.simulator import Classification, PathValidator, ValidationResult
from .diagnostics import IterationRecord, RunSummary, SolverStatistics
from .z_reach import ZReachChecker, ZReachResult

logger = logging.getLogger(__name__)


# =============================================================================
# VERDICTS
# =============================================================================

class VerdictStatus(Enum):
    TRUE = "true"
    FALSE = "false"
    UNKNOWN = "unknown"


class UnknownReason(Enum):
    BUDGET_EXHAUSTED = "budget_exhausted"


@dataclass(frozen=True)
class Verdict:
    """
    Final answer of a reachability query.

    ``UNKNOWN`` always carries ``reason`` and the ``limit`` that was hit
    (``"iterations"``, ``"modulus"``, ``"path_length"`` or ``"time"``);
    ``TRUE`` always carries the witness path.
    """
    status: VerdictStatus
    reason: Optional[UnknownReason] = None
    limit: Optional[str] = None
    witness: Optional[Path] = None

    @classmethod
    def true(cls, witness: Path) -> "Verdict":
        return cls(VerdictStatus.TRUE, witness=witness)

    @classmethod
    def false(cls) -> "Verdict":
        return cls(VerdictStatus.FALSE)

    @classmethod
    def unknown(cls, limit: str) -> "Verdict":
        return cls(VerdictStatus.UNKNOWN, reason=UnknownReason.BUDGET_EXHAUSTED, limit=limit)

    @property
    def is_true(self) -> bool:
        return self.status == VerdictStatus.TRUE

    @property
    def is_false(self) -> bool:
        return self.status == VerdictStatus.FALSE

    @property
    def is_unknown(self) -> bool:
        return self.status == VerdictStatus.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "limit": self.limit,
            "witness": list(self.witness.transitions) if self.witness is not None else None,
        }

    def __str__(self) -> str:
        if self.is_unknown:
            return f"unknown ({self.limit} budget exhausted)"
        return self.status.value


@dataclass
class ReachabilityResult:
    """Verdict plus everything recorded while reaching it."""
    verdict: Verdict
    iterations: List[IterationRecord]
    summary: RunSummary
    statistics: SolverStatistics


# =============================================================================
# SESSION
# =============================================================================

class ControllerState(Enum):
    INIT = auto()
    SEARCHING = auto()
    VALIDATING = auto()
    DONE = auto()


@dataclass
class RefinementSession:
    """Mutable state of one query, owned by the controller."""
    modulus: int
    iteration: int = 0
    state: ControllerState = ControllerState.INIT
    verdict: Optional[Verdict] = None
    exclusions: ExclusionSet = field(default_factory=ExclusionSet)
    peak_modulus: int = 0
    visited_states: int = 0
    z_reach: Optional[ZReachResult] = None

    def finish(self, verdict: Verdict) -> None:
        self.verdict = verdict
        self.state = ControllerState.DONE


# =============================================================================
# CONTROLLER
# =============================================================================

class RefinementController:
    """
    Drives candidate search and validation until a verdict is certified.

    Args:
        vass: Instance to decide
        budget: Resource ceilings; overrides ``config.budget`` when given
        config: Solver configuration (modulus policy, workers)
    """

    def __init__(self, vass: VASS, budget: Optional[SearchBudget] = None,
                 config: Optional[SolverConfig] = None):
        self.vass = vass
        self.config = config or SolverConfig()
        self.budget = budget if budget is not None else self.config.budget
        self.language: Optional[ReachabilityLanguage] = None
        self.records: List[IterationRecord] = []

    def _exceeded_limit(self, session: RefinementSession, start_time: float) -> Optional[str]:
        budget = self.budget
        if budget.max_iterations is not None and session.iteration >= budget.max_iterations:
            return "iterations"
        if budget.max_modulus is not None and session.modulus > budget.max_modulus:
            return "modulus"
        if budget.max_time is not None and time.time() - start_time > budget.max_time:
            return "time"
        return None

    def run(self) -> ReachabilityResult:
        start_time = time.time()
        vass = self.vass
        logger.info(
            f"Solving zero-reachability: dimension={vass.dimension}, states={vass.state_count}, "
            f"transitions={vass.transition_count}, dead={len(vass.dead_transitions)}"
        )

        self.language = ReachabilityLanguage.build(vass)
        self.records = []
        session = RefinementSession(modulus=self.config.modulo.initial)
        session.state = ControllerState.SEARCHING
        if self.config.z_reach.enabled:
            self._precheck(session)

        while session.state != ControllerState.DONE:
            limit = self._exceeded_limit(session, start_time)
            if limit is not None:
                logger.warning(f"Budget exhausted ({limit}) after {session.iteration} iterations")
                session.finish(Verdict.unknown(limit))
                break
            self._iterate(session)

        wall_time = time.time() - start_time
        verdict = session.verdict
        summary = RunSummary(
            verdict=verdict.status.value,
            total_iterations=session.iteration,
            wall_time=wall_time,
            peak_modulus=session.peak_modulus,
        )
        statistics = SolverStatistics(
            step_count=session.iteration,
            modulus=session.modulus,
            prefix_exclusions=session.exclusions.prefix_count,
            loop_exclusions=session.exclusions.loop_count,
            visited_states=session.visited_states,
            z_reach_steps=session.z_reach.steps if session.z_reach is not None else 0,
            time=wall_time,
        )
        logger.info(
            f"Result: {verdict} after {session.iteration} iterations, "
            f"peak modulus {session.peak_modulus}, {wall_time:.3f}s"
        )
        return ReachabilityResult(verdict, list(self.records), summary, statistics)

    def _precheck(self, session: RefinementSession) -> None:
        settings = self.config.z_reach
        result = ZReachChecker(self.vass, max_steps=settings.max_steps,
                               timeout_ms=settings.timeout_ms).check()
        session.z_reach = result
        logger.info(f"Z-reachability pre-check: {result.status.value} after {result.steps} steps")
        if result.refutes:
            session.finish(Verdict.false())

    def _iterate(self, session: RefinementSession) -> None:
        session.iteration += 1
        session.peak_modulus = max(session.peak_modulus, session.modulus)
        iteration_start = time.time()
        logger.debug(
            f"Iteration {session.iteration}: modulus={session.modulus}, "
            f"exclusions={len(session.exclusions)}"
        )

        # A fresh abstraction per iteration: memoized residues never outlive a μ
        abstraction = ModuloAbstraction(session.modulus, self.vass.dimension)
        search = CandidateSearch(
            self.language, abstraction, session.exclusions,
            max_path_length=self.budget.max_path_length,
            workers=self.config.search.workers,
        )
        outcome = search.run()
        session.visited_states += outcome.visited
        logger.debug(f"Search: {outcome.status.name}, layers={outcome.layers}, visited={outcome.visited}")

        if outcome.status == SearchStatus.EXHAUSTED:
            self._record(session, None, "EXHAUSTED", iteration_start)
            session.finish(Verdict.false())
            return
        if outcome.status == SearchStatus.TRUNCATED:
            self._record(session, None, "TRUNCATED", iteration_start)
            logger.warning(f"Budget exhausted (path_length) at modulus {session.modulus}")
            session.finish(Verdict.unknown("path_length"))
            return

        session.state = ControllerState.VALIDATING
        result = PathValidator(self.vass, session.modulus).classify(outcome.path)
        self._record(session, len(outcome.path), result.classification.name, iteration_start)
        logger.debug(f"Candidate {list(outcome.path.transitions)} classified {result.classification.name}")
        self._dispatch(session, result)

    def _dispatch(self, session: RefinementSession, result: ValidationResult) -> None:
        classification = result.classification

        if classification == Classification.GENUINE:
            session.finish(Verdict.true(result.path))
            return

        if classification in (Classification.NEGATIVE_EXCURSION, Classification.GUARD_VIOLATION):
            if not session.exclusions.record_prefix(result.blocked_prefix):
                raise InternalInconsistency(
                    f"Candidate {list(result.path.transitions)} starts with prefix "
                    f"{list(result.blocked_prefix)} that was already excluded"
                )
            logger.debug(f"Excluded prefix {list(result.blocked_prefix)}")
        elif classification == Classification.WRAP_ONLY_LOOP:
            if not session.exclusions.record_loop(result.loop):
                raise InternalInconsistency(
                    f"Candidate {list(result.path.transitions)} matches loop pattern "
                    f"{result.loop} that was already excluded"
                )
            logger.debug(f"Excluded wrap-only loop {result.loop}")
        elif classification == Classification.INCONCLUSIVE:
            session.modulus = self.config.modulo.policy.next(
                session.modulus, result.path.peak_magnitude())
            logger.debug(f"Raising modulus to {session.modulus}")
        else:
            raise InternalInconsistency(f"Unhandled classification {classification}")

        session.state = ControllerState.SEARCHING

    def _record(self, session: RefinementSession, length: Optional[int],
                classification: str, iteration_start: float) -> None:
        self.records.append(IterationRecord(
            iteration=session.iteration,
            modulus=session.modulus,
            candidate_word_length=length,
            classification=classification,
            elapsed_time=time.time() - iteration_start,
        ))


# =============================================================================
# PUBLIC ENTRY POINTS
# =============================================================================

def solve(vass: VASS, budget: Optional[SearchBudget] = None,
          config: Optional[SolverConfig] = None) -> ReachabilityResult:
    """Decide zero-reachability and return the verdict with diagnostics."""
    return RefinementController(vass, budget=budget, config=config).run()


def decide_reachability(vass: VASS, budget: Optional[SearchBudget] = None,
                        config: Optional[SolverConfig] = None) -> Verdict:
    """Decide zero-reachability of ``vass``: True, False or Unknown."""
    return solve(vass, budget=budget, config=config).verdict
