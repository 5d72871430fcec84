"""
vass_reach: zero-reachability for Vector Addition Systems with States.

Decides whether an initialized VASS can run from its initial state with all
counters zero to its final state with all counters zero again, using a
counterexample-guided refinement loop:

1. **Reachability language**: walks of the control graph, counters ignored
2. **Modulo abstraction**: counters tracked modulo μ
3. **Candidate search**: shortest walk the abstraction cannot reject
4. **Validation**: exact replay; spurious candidates are excluded or μ grows

Every answer is certified: ``True`` by a replayed witness, ``False`` by an
exhausted search. Budget exhaustion yields ``Unknown``.
"""

__version__ = "0.1.0"

from .errors import VassReachError, MalformedInstance, InternalInconsistency, ConfigError
from .model import VASS, Transition, Guard, LinearConstraint, Comparison, Path
from .config import (
    SearchBudget,
    ModulusPolicy,
    ModuloConfig,
    SearchConfig,
    ZReachConfig,
    SolverConfig,
    configure_logging,
)
from .validation import Classification
from .solver import (
    Verdict,
    VerdictStatus,
    UnknownReason,
    ReachabilityResult,
    IterationRecord,
    RunSummary,
    SolverStatistics,
    RefinementController,
    decide_reachability,
    solve,
    check_z_reachability,
)

__all__ = [
    'VassReachError',
    'MalformedInstance',
    'InternalInconsistency',
    'ConfigError',
    'VASS',
    'Transition',
    'Guard',
    'LinearConstraint',
    'Comparison',
    'Path',
    'SearchBudget',
    'ModulusPolicy',
    'ModuloConfig',
    'SearchConfig',
    'ZReachConfig',
    'SolverConfig',
    'configure_logging',
    'Classification',
    'Verdict',
    'VerdictStatus',
    'UnknownReason',
    'ReachabilityResult',
    'IterationRecord',
    'RunSummary',
    'SolverStatistics',
    'RefinementController',
    'decide_reachability',
    'solve',
    'check_z_reachability',
]
