"""Breadth-first candidate search over the language × abstraction product."""

from .candidate import CandidateSearch, SearchOutcome, SearchStatus, ProductState, find_candidate

__all__ = ['CandidateSearch', 'SearchOutcome', 'SearchStatus', 'ProductState', 'find_candidate']
