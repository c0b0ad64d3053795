"""Split dependency-parsed sentences into scored, standalone clauses."""

__version__ = "0.1.0"

from .exceptions import (
    ClauseSplitterError,
    ModelLoadError,
    TrainingError,
    TreeInvariantError,
    UnsupportedScorerError,
)
from .trees import DependencyTree, Edge, Word, canonicalize_tree
from .search import ClauseModel, ClauseSearcher, SentenceFragment
from .training import ClauseSearcherTrainer, TrainingOptions, factory, train_factory

__all__ = [
    "ClauseSplitterError",
    "ModelLoadError",
    "TrainingError",
    "TreeInvariantError",
    "UnsupportedScorerError",
    "DependencyTree",
    "Edge",
    "Word",
    "canonicalize_tree",
    "ClauseModel",
    "ClauseSearcher",
    "SentenceFragment",
    "ClauseSearcherTrainer",
    "TrainingOptions",
    "factory",
    "train_factory",
]
