"""Clause search: states, actions, featurizer and the best-first searcher."""

from .state import Detach, Graft, SearchState, apply_plan
from .actions import DEFAULT_ACTIONS, Action
from .featurizer import FEATURIZERS, default_featurizer, featurizer_name, get_featurizer
from .fragment import SentenceFragment
from .searcher import ClauseModel, ClauseSearcher, dot_product, searcher_factory

__all__ = [
    "Detach",
    "Graft",
    "SearchState",
    "apply_plan",
    "DEFAULT_ACTIONS",
    "Action",
    "FEATURIZERS",
    "default_featurizer",
    "featurizer_name",
    "get_featurizer",
    "SentenceFragment",
    "ClauseModel",
    "ClauseSearcher",
    "dot_product",
    "searcher_factory",
]
