"""Reconciler engine: compare resolved versions with declared dependencies."""

from depsync.engines.reconciler.matchers import ExactMatcher, RangeMatcher, VersionMatcher
from depsync.engines.reconciler.reconciler import merge, reconcile

__all__ = ["ExactMatcher", "RangeMatcher", "VersionMatcher", "merge", "reconcile"]
