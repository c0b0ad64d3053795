"""Weighted datasets of clause boundary decisions."""

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from sklearn.model_selection import KFold, StratifiedKFold

from ..trees.structures import DependencyTree
from .oracle import Span


@dataclass
class TrainingExample:
    """A sentence with the gold arguments of one known relation.

    Attributes
    ----------
    tree : DependencyTree
        Dependency graph of the sentence (as produced by the parser)
    subject_span : Span
        Token span of the relation's subject
    object_span : Span
        Token span of the relation's object
    sentence_id : Optional[str]
        Identifier of the sentence in its corpus
    text : str
        Sentence text
    """

    tree: DependencyTree
    subject_span: Span
    object_span: Span
    sentence_id: Optional[str] = None
    text: str = ""


@dataclass
class WeightedDatum:
    """One featurized search step.

    Attributes
    ----------
    features : Counter
        Feature name to count
    label : bool
        Whether the step led to a correct clause
    weight : float
        Importance weight used when fitting
    """

    features: Counter
    label: bool
    weight: float = 1.0


class WeightedDataset:
    """An append-only list of :class:`WeightedDatum`."""

    def __init__(self, datums: Iterable[WeightedDatum] = ()):
        self._datums: List[WeightedDatum] = list(datums)

    def add(self, features: Counter, label: bool, weight: float = 1.0) -> None:
        self._datums.append(WeightedDatum(features=features, label=label, weight=weight))

    def extend(self, other: "WeightedDataset") -> None:
        self._datums.extend(other._datums)

    def __len__(self) -> int:
        return len(self._datums)

    def __iter__(self) -> Iterator[WeightedDatum]:
        return iter(self._datums)

    def __getitem__(self, idx: int) -> WeightedDatum:
        return self._datums[idx]

    @property
    def features(self) -> List[Counter]:
        return [d.features for d in self._datums]

    @property
    def labels(self) -> np.ndarray:
        return np.array([d.label for d in self._datums], dtype=bool)

    @property
    def weights(self) -> np.ndarray:
        return np.array([d.weight for d in self._datums], dtype=np.float64)

    @property
    def true_count(self) -> int:
        return sum(1 for d in self._datums if d.label)

    def subset(self, indices: Sequence[int]) -> "WeightedDataset":
        return WeightedDataset(self._datums[i] for i in indices)

    def folds(
        self, num_folds: int, seed: int
    ) -> Iterator[Tuple["WeightedDataset", "WeightedDataset"]]:
        """Yield (train, test) splits for k-fold cross-validation.

        The split is shuffled with ``seed``, so the same dataset and seed always
        produce the same folds. Folds are stratified by label when every label
        has at least ``num_folds`` members.

        Parameters
        ----------
        num_folds : int
            Number of folds
        seed : int
            Random seed for shuffling

        Yields
        ------
        Tuple[WeightedDataset, WeightedDataset]
            Training and held-out data of one fold
        """
        labels = self.labels
        counts = np.bincount(labels.astype(int), minlength=2)
        if counts.min() >= num_folds:
            splitter = StratifiedKFold(n_splits=num_folds, shuffle=True, random_state=seed)
        else:
            splitter = KFold(n_splits=num_folds, shuffle=True, random_state=seed)

        for train_idx, test_idx in splitter.split(np.zeros(len(labels)), labels):
            yield self.subset(train_idx), self.subset(test_idx)
