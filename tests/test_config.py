"""
Tests for the .vass-reach.yml configuration loader.
"""

import pytest
import yaml

from vass_reach.config import (
    ModuloConfig,
    ModulusPolicy,
    SearchBudget,
    SearchConfig,
    SolverConfig,
    ZReachConfig,
)
from vass_reach.errors import ConfigError


def test_defaults():
    config = SolverConfig()
    assert config.budget == SearchBudget()
    assert config.budget.max_iterations is None
    assert config.modulo.initial == 2
    assert config.modulo.policy == ModulusPolicy.DOUBLE
    assert config.search.workers == 1
    assert config.z_reach == ZReachConfig(enabled=False, max_steps=64, timeout_ms=None)


def test_missing_file_gives_defaults(tmp_path):
    assert SolverConfig.load(tmp_path) == SolverConfig()


def test_load_kebab_case(tmp_path):
    (tmp_path / ".vass-reach.yml").write_text(
        "budget:\n"
        "  max-iterations: 50\n"
        "  max-modulus: 1024\n"
        "  max-path-length: 30\n"
        "  max-time: 2.5\n"
        "modulo:\n"
        "  initial: 3\n"
        "  policy: increment\n"
        "search:\n"
        "  workers: 4\n"
    )
    config = SolverConfig.load(tmp_path)
    assert config.budget == SearchBudget(50, 1024, 30, 2.5)
    assert config.modulo == ModuloConfig(initial=3, policy=ModulusPolicy.INCREMENT)
    assert config.search == SearchConfig(workers=4)


def test_load_snake_case_yaml_extension(tmp_path):
    (tmp_path / ".vass-reach.yaml").write_text(
        "budget:\n"
        "  max_iterations: 7\n"
        "  max_modulus: null\n"
    )
    config = SolverConfig.load(tmp_path)
    assert config.budget.max_iterations == 7
    assert config.budget.max_modulus is None
    assert config.modulo == ModuloConfig()


def test_empty_file(tmp_path):
    (tmp_path / ".vass-reach.yml").write_text("")
    assert SolverConfig.load(tmp_path) == SolverConfig()


def test_to_yaml_round_trip():
    config = SolverConfig(
        budget=SearchBudget(max_iterations=10, max_time=60.0),
        modulo=ModuloConfig(initial=4, policy=ModulusPolicy.INCREMENT),
        search=SearchConfig(workers=2),
        z_reach=ZReachConfig(enabled=True, max_steps=None, timeout_ms=500),
    )
    assert SolverConfig.from_dict(yaml.safe_load(config.to_yaml())) == config


@pytest.mark.parametrize("raw", [
    {"budget": {"max-iterations": -1}},
    {"modulo": {"initial": 1}},
    {"modulo": {"policy": "triple"}},
    {"search": {"workers": 0}},
    {"search": {"workers": "many"}},
    {"z-reach": {"enabled": "yes"}},
    {"z-reach": {"max-steps": 0}},
    {"z_reach": [1]},
    {"budget": [1, 2]},
])
def test_invalid_values(raw):
    with pytest.raises(ConfigError):
        SolverConfig.from_dict(raw)


def test_non_mapping_document(tmp_path):
    path = tmp_path / ".vass-reach.yml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        SolverConfig.from_file(path)


def test_malformed_yaml(tmp_path):
    path = tmp_path / ".vass-reach.yml"
    path.write_text("budget: [1, 2\n")
    with pytest.raises(ConfigError, match="Cannot read"):
        SolverConfig.from_file(path)


def test_modulus_policy():
    assert ModulusPolicy.DOUBLE.next(4) == 8
    assert ModulusPolicy.INCREMENT.next(4) == 5
    assert ModulusPolicy.DOUBLE.next(4, peak=9) == 8


def test_lcm_policy():
    assert ModulusPolicy.LCM.next(2, peak=8) == 18
    assert ModulusPolicy.LCM.next(6, peak=3) == 12
    # peak + 1 already divides the modulus
    assert ModulusPolicy.LCM.next(4, peak=3) == 8
    assert ModulusPolicy.LCM.next(6, peak=2) == 12


def test_load_lcm_policy_and_z_reach(tmp_path):
    (tmp_path / ".vass-reach.yml").write_text(
        "modulo:\n"
        "  policy: LCM\n"
        "z-reach:\n"
        "  enabled: true\n"
        "  max-steps: 10\n"
        "  timeout-ms: 2000\n"
    )
    config = SolverConfig.load(tmp_path)
    assert config.modulo.policy == ModulusPolicy.LCM
    assert config.z_reach == ZReachConfig(enabled=True, max_steps=10, timeout_ms=2000)
