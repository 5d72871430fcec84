"""
Diagnostics records produced alongside a verdict.

These are for benchmarking and inspection only; correctness never depends
on them. ``RunSummary.to_dict`` is the stable four-key record consumed by
external result-comparison tooling.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class IterationRecord:
    """One refinement iteration: search at ``modulus`` then (maybe) validation."""
    iteration: int
    modulus: int
    candidate_word_length: Optional[int]
    classification: str
    elapsed_time: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RunSummary:
    verdict: str
    total_iterations: int
    wall_time: float
    peak_modulus: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verdict": self.verdict,
            "total_iterations": self.total_iterations,
            "wall_time": self.wall_time,
            "peak_modulus": self.peak_modulus,
        }

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class SolverStatistics:
    """Aggregate counters over a whole query."""
    step_count: int = 0
    modulus: int = 0
    prefix_exclusions: int = 0
    loop_exclusions: int = 0
    visited_states: int = 0
    z_reach_steps: int = 0
    time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
