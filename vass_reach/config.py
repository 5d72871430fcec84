"""
Configuration file loader for ``.vass-reach.yml``.

Provides defaults so the solver works out of the box without a config
file, while allowing the search budget, the modulus policy, the search
parallelism and the integer-relaxation pre-check to be tuned per project.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigError

CONFIG_FILENAMES = (".vass-reach.yml", ".vass-reach.yaml")


class ModulusPolicy(Enum):
    """
    How μ grows after an inconclusive candidate.

    ``LCM`` takes the least common multiple of μ and ``peak + 1``, where
    ``peak`` is the largest counter magnitude along the candidate, so that
    the next abstraction tells apart every value the candidate reached. When
    ``peak + 1`` already divides μ it falls back to doubling.
    """
    DOUBLE = "double"
    INCREMENT = "increment"
    LCM = "lcm"

    def next(self, modulus: int, peak: int = 0) -> int:
        if self == ModulusPolicy.DOUBLE:
            return modulus * 2
        if self == ModulusPolicy.INCREMENT:
            return modulus + 1
        grown = math.lcm(modulus, peak + 1)
        return grown if grown > modulus else modulus * 2


@dataclass
class SearchBudget:
    """Resource ceilings for one query; ``None`` means unlimited."""
    max_iterations: Optional[int] = None
    max_modulus: Optional[int] = None
    max_path_length: Optional[int] = None
    max_time: Optional[float] = None

    def __post_init__(self):
        for name in ("max_iterations", "max_modulus", "max_path_length", "max_time"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ConfigError(f"{name} must be non-negative, got {value}")


@dataclass
class ModuloConfig:
    initial: int = 2
    policy: ModulusPolicy = ModulusPolicy.DOUBLE

    def __post_init__(self):
        if self.initial < 2:
            raise ConfigError(f"Initial modulus must be at least 2, got {self.initial}")


@dataclass
class SearchConfig:
    workers: int = 1

    def __post_init__(self):
        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")


@dataclass
class ZReachConfig:
    """Integer-relaxation pre-check run before the first modulo search."""
    enabled: bool = False
    max_steps: Optional[int] = 64
    timeout_ms: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.enabled, bool):
            raise ConfigError(f"z-reach enabled must be true or false, got {self.enabled!r}")
        if self.max_steps is not None and self.max_steps < 1:
            raise ConfigError(f"z-reach max_steps must be at least 1, got {self.max_steps}")
        if self.timeout_ms is not None and self.timeout_ms < 1:
            raise ConfigError(f"z-reach timeout_ms must be positive, got {self.timeout_ms}")


def _get(raw: Dict[str, Any], key: str, default: Any) -> Any:
    """Look up ``key`` in kebab-case first, then snake_case."""
    kebab = key.replace("_", "-")
    if kebab in raw:
        return raw[kebab]
    return raw.get(key, default)


def _optional(value: Any, convert) -> Any:
    if value is None:
        return None
    return convert(value)


@dataclass
class SolverConfig:
    """Top-level configuration for vass_reach."""
    budget: SearchBudget = field(default_factory=SearchBudget)
    modulo: ModuloConfig = field(default_factory=ModuloConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    z_reach: ZReachConfig = field(default_factory=ZReachConfig)

    @classmethod
    def load(cls, directory: Path) -> "SolverConfig":
        """Load config from .vass-reach.yml, falling back to defaults."""
        for name in CONFIG_FILENAMES:
            config_path = Path(directory) / name
            if config_path.exists():
                return cls.from_file(config_path)
        return cls()

    @classmethod
    def from_file(cls, path: Path) -> "SolverConfig":
        try:
            with open(path) as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "SolverConfig":
        if not isinstance(raw, dict):
            raise ConfigError(f"Config document must be a mapping, got {type(raw).__name__}")
        budget_raw = raw.get("budget") or {}
        modulo_raw = raw.get("modulo") or {}
        search_raw = raw.get("search") or {}
        z_reach_raw = _get(raw, "z_reach", None) or {}
        for section, value in (("budget", budget_raw), ("modulo", modulo_raw),
                               ("search", search_raw), ("z-reach", z_reach_raw)):
            if not isinstance(value, dict):
                raise ConfigError(f"Config section '{section}' must be a mapping")

        try:
            budget = SearchBudget(
                max_iterations=_optional(_get(budget_raw, "max_iterations", None), int),
                max_modulus=_optional(_get(budget_raw, "max_modulus", None), int),
                max_path_length=_optional(_get(budget_raw, "max_path_length", None), int),
                max_time=_optional(_get(budget_raw, "max_time", None), float),
            )
            policy_name = str(_get(modulo_raw, "policy", ModulusPolicy.DOUBLE.value)).lower()
            try:
                policy = ModulusPolicy(policy_name)
            except ValueError:
                raise ConfigError(f"Unknown modulus policy '{policy_name}'") from None
            modulo = ModuloConfig(
                initial=int(_get(modulo_raw, "initial", 2)),
                policy=policy,
            )
            search = SearchConfig(workers=int(_get(search_raw, "workers", 1)))
            z_reach = ZReachConfig(
                enabled=_get(z_reach_raw, "enabled", False),
                max_steps=_optional(_get(z_reach_raw, "max_steps", 64), int),
                timeout_ms=_optional(_get(z_reach_raw, "timeout_ms", None), int),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid config value: {e}") from e

        return cls(budget=budget, modulo=modulo, search=search, z_reach=z_reach)

    def to_yaml(self) -> str:
        """Serialise to YAML string."""
        def fmt(value: Any) -> str:
            return "null" if value is None else str(value)

        lines = [
            "# .vass-reach.yml: vass-reach solver configuration",
            "",
            "budget:",
            f"  max-iterations: {fmt(self.budget.max_iterations)}",
            f"  max-modulus: {fmt(self.budget.max_modulus)}",
            f"  max-path-length: {fmt(self.budget.max_path_length)}",
            f"  max-time: {fmt(self.budget.max_time)}",
            "",
            "modulo:",
            f"  initial: {self.modulo.initial}",
            f"  policy: {self.modulo.policy.value}",
            "",
            "search:",
            f"  workers: {self.search.workers}",
            "",
            "z-reach:",
            f"  enabled: {str(self.z_reach.enabled).lower()}",
            f"  max-steps: {fmt(self.z_reach.max_steps)}",
            f"  timeout-ms: {fmt(self.z_reach.timeout_ms)}",
            "",
        ]
        return "\n".join(lines)


def configure_logging(verbose: bool = False) -> None:
    """Root logging setup for embedding applications: DEBUG when verbose, else WARNING."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format='%(levelname)s: %(message)s')
    else:
        logging.basicConfig(level=logging.WARNING)
