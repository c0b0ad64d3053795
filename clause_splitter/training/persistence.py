"""Saving and loading trained clause searcher models."""

import logging
import pickle
from pathlib import Path
from typing import Callable

from ..config import MODEL_FORMAT
from ..exceptions import ModelLoadError
from ..search.featurizer import get_featurizer
from ..search.searcher import ClauseModel, ClauseSearcher, searcher_factory
from ..trees.structures import DependencyTree
from .classifier import ClauseClassifier

logger = logging.getLogger(__name__)


def save_model(model: ClauseModel, path: str) -> None:
    """Pickle the classifier together with the featurizer name."""
    get_featurizer(model.featurizer_name)
    data = {
        "format": MODEL_FORMAT,
        "classifier": model.classifier,
        "featurizer": model.featurizer_name,
    }
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wb") as f:
        pickle.dump(data, f)


def load_model(path: str) -> ClauseModel:
    """Load a model written by :func:`save_model`.

    Raises
    ------
    ModelLoadError
        If the file is missing, unreadable, or does not hold a model
    """
    try:
        with open(path, "rb") as f:
            data = pickle.load(f)
    except FileNotFoundError as e:
        raise ModelLoadError(f"No model at path: {path}") from e
    except (OSError, pickle.UnpicklingError, EOFError, AttributeError, ImportError,
            ValueError, TypeError, KeyError, IndexError) as e:
        raise ModelLoadError(f"Invalid model at path: {path}: {e}") from e

    if not isinstance(data, dict) or data.get("format") != MODEL_FORMAT:
        raise ModelLoadError(f"Invalid model at path: {path}: unrecognized format")
    if "classifier" not in data or "featurizer" not in data:
        raise ModelLoadError(f"Invalid model at path: {path}: missing fields")
    if not isinstance(data["classifier"], ClauseClassifier):
        raise ModelLoadError(
            f"Invalid model at path: {path}: "
            f"expected a ClauseClassifier, got {type(data['classifier']).__name__}"
        )

    get_featurizer(data["featurizer"])
    return ClauseModel(classifier=data["classifier"], featurizer_name=data["featurizer"])


def factory(path: str) -> Callable[[DependencyTree], ClauseSearcher]:
    """Load a model and return a function making searchers for trees."""
    logger.info("Loading clause searcher from %s ...", path)
    return searcher_factory(load_model(path))
