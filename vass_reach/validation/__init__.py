"""Exact replay and classification of candidate paths."""

from .simulator import (
    Classification,
    CounterTrace,
    ValidationResult,
    PathValidator,
    simulate,
)

__all__ = [
    'Classification',
    'CounterTrace',
    'ValidationResult',
    'PathValidator',
    'simulate',
]
