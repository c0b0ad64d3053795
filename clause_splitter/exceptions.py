"""Exception hierarchy for the clause splitter."""


class ClauseSplitterError(Exception):
    """Base class for every error raised by this package."""


class TreeInvariantError(ClauseSplitterError, AssertionError):
    """A dependency graph that should be a tree is not one.

    This is an internal bug (or badly broken parser output), never a
    recoverable condition.
    """


class UnsupportedScorerError(ClauseSplitterError, ValueError):
    """The searcher was asked to run with a missing or non-linear scorer."""


class ModelLoadError(ClauseSplitterError):
    """A serialized clause searcher model could not be loaded."""


class TrainingError(ClauseSplitterError):
    """The training pipeline cannot produce a classifier."""
