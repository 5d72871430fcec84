"""
Error taxonomy for the reachability engine.

- ``MalformedInstance``: structural inconsistency in a supplied VASS. Raised
  before any search begins and never retried.
- ``InternalInconsistency``: a programming-logic fault (e.g. a candidate whose
  classification falls through every documented case). Always fatal.
- ``ConfigError``: invalid configuration values or an unreadable config file.

Budget exhaustion is *not* an exception: it surfaces as
``Verdict(UNKNOWN, reason=BUDGET_EXHAUSTED)``.
"""

from __future__ import annotations


class VassReachError(Exception):
    """Base class for all errors raised by vass_reach."""


class MalformedInstance(VassReachError):
    """The VASS is structurally inconsistent (dangling states, bad dimensions)."""


class InternalInconsistency(VassReachError):
    """An invariant of the engine itself was violated."""


class ConfigError(VassReachError):
    """Configuration could not be loaded or holds invalid values."""
