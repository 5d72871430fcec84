"""Refinement loop and the diagnostics it records."""

from .diagnostics import IterationRecord, RunSummary, SolverStatistics
from .refinement import (
    ControllerState,
    ReachabilityResult,
    RefinementController,
    RefinementSession,
    UnknownReason,
    Verdict,
    VerdictStatus,
    decide_reachability,
    solve,
)
from .z_reach import ZReachChecker, ZReachResult, ZReachStatus, check_z_reachability

__all__ = [
    'IterationRecord',
    'RunSummary',
    'SolverStatistics',
    'ControllerState',
    'ReachabilityResult',
    'RefinementController',
    'RefinementSession',
    'UnknownReason',
    'Verdict',
    'VerdictStatus',
    'decide_reachability',
    'solve',
    'ZReachChecker',
    'ZReachResult',
    'ZReachStatus',
    'check_z_reachability',
]
