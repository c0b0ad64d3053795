"""Clause boundary classifier on top of scikit-learn estimators."""

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union

import numpy as np
from sklearn.ensemble import RandomForestClassifier
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import precision_recall_fscore_support
from sklearn.svm import LinearSVC

from ..exceptions import TrainingError, UnsupportedScorerError
from .dataset import WeightedDataset
from .features import FeatureVocab, to_matrix

# seed -> unfitted estimator
EstimatorFactory = Callable[[int], Any]
ClassifierFactory = Union[str, EstimatorFactory]

SUPPORTED_MODELS = {"logistic", "linear_svc", "random_forest"}


def create_estimator(model_type: str, seed: int) -> Any:
    """Create an unfitted estimator of a supported type."""
    if model_type not in SUPPORTED_MODELS:
        raise ValueError(f"Model type must be one of {SUPPORTED_MODELS}")

    if model_type == "logistic":
        return LogisticRegression(
            solver="lbfgs",
            max_iter=1000,
            random_state=seed,
        )
    elif model_type == "linear_svc":
        return LinearSVC(
            max_iter=5000,
            random_state=seed,
        )
    else:  # random_forest
        return RandomForestClassifier(
            n_estimators=100,
            max_depth=20,
            random_state=seed,
            n_jobs=-1,
        )


def resolve_classifier_factory(factory: ClassifierFactory) -> EstimatorFactory:
    """Turn a model type name or a callable into a ``seed -> estimator`` callable."""
    if isinstance(factory, str):
        if factory not in SUPPORTED_MODELS:
            raise ValueError(f"Model type must be one of {SUPPORTED_MODELS}")
        return lambda seed: create_estimator(factory, seed)
    if callable(factory):
        return factory
    raise ValueError(f"Not a classifier factory: {factory!r}")


@dataclass
class ClassifierMetrics:
    """Accuracy of a classifier on a dataset (positive class: is a clause)."""

    size: int
    true_count: int
    precision: float
    recall: float
    f1: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


class ClauseClassifier:
    """A fitted estimator plus the feature vocabulary it was fitted on.

    Parameters
    ----------
    estimator : Any
        Fitted scikit-learn binary classifier with boolean labels
    vocab : FeatureVocab
        Feature name to column mapping
    """

    def __init__(self, estimator: Any, vocab: FeatureVocab):
        self.estimator = estimator
        self.vocab = vocab
        self._weights: Optional[Dict[str, float]] = None

    @classmethod
    def train(cls, dataset: WeightedDataset, estimator: Any) -> "ClauseClassifier":
        """Fit ``estimator`` on ``dataset`` using the datum weights.

        Raises
        ------
        TrainingError
            If the dataset does not contain both labels
        """
        labels = dataset.labels
        if len(np.unique(labels)) < 2:
            raise TrainingError(
                f"Need both clause and non-clause datums to train, got {len(dataset)} "
                f"datums with {int(labels.sum())} positives"
            )

        vocab = FeatureVocab.build(dataset.features)
        X = to_matrix(dataset.features, vocab)
        estimator.fit(X, labels, sample_weight=dataset.weights)
        return cls(estimator, vocab)

    @property
    def is_linear(self) -> bool:
        coef = getattr(self.estimator, "coef_", None)
        return coef is not None and np.ndim(coef) == 2 and coef.shape[0] == 1

    @property
    def weights(self) -> Dict[str, float]:
        """Feature weights towards the "is a clause" label."""
        if not self.is_linear:
            raise UnsupportedScorerError(
                f"only linear scorers are supported, got {type(self.estimator).__name__}"
            )
        if self._weights is None:
            coef = np.asarray(self.estimator.coef_).ravel()
            self._weights = {
                self.vocab.names[idx]: float(value)
                for idx, value in enumerate(coef)
                if value != 0.0
            }
        return self._weights

    @property
    def bias(self) -> float:
        intercept = getattr(self.estimator, "intercept_", 0.0)
        return float(np.ravel(intercept)[0]) if np.size(intercept) else 0.0

    def predict(self, feature_dicts: Iterable[Mapping[str, float]]) -> np.ndarray:
        X = to_matrix(list(feature_dicts), self.vocab)
        if X.shape[0] == 0:
            return np.zeros(0, dtype=bool)
        return np.asarray(self.estimator.predict(X), dtype=bool)

    def evaluate(self, dataset: WeightedDataset) -> ClassifierMetrics:
        """Precision, recall and F1 of the positive label on ``dataset``."""
        y_true = dataset.labels
        y_pred = self.predict(dataset.features)
        if len(y_true) == 0:
            precision = recall = f1 = 0.0
        else:
            precision, recall, f1, _ = precision_recall_fscore_support(
                y_true, y_pred, average="binary", pos_label=True, zero_division=0,
            )
        return ClassifierMetrics(
            size=len(dataset),
            true_count=dataset.true_count,
            precision=float(precision),
            recall=float(recall),
            f1=float(f1),
        )

    def __getstate__(self):
        state = self.__dict__.copy()
        state["_weights"] = None
        return state
