"""Fuzzy matching and alias resolution."""

from .fuzzy_matcher import FuzzyMatcher, best_match, edit_ratio, token_overlap
from .alias_resolver import AliasIndex, resolve

__all__ = ["FuzzyMatcher", "best_match", "edit_ratio", "token_overlap", "AliasIndex", "resolve"]
