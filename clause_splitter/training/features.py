"""Sparse feature matrices for the clause boundary classifier.

The featurizer produces one ``Counter`` of named features per search step;
this module maps those names to column indices and stacks the counters into a
scipy CSR matrix that scikit-learn estimators accept.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

import numpy as np
from scipy.sparse import csr_matrix


@dataclass
class FeatureVocab:
    """Column layout of the datum matrix.

    Attributes
    ----------
    columns : Dict[str, int]
        Feature name to column
    names : List[str]
        Feature names in column order
    """

    columns: Dict[str, int] = field(default_factory=dict)
    names: List[str] = field(default_factory=list)

    def column(self, name: str, grow: bool = False) -> Optional[int]:
        """Column of ``name``; unseen names get a new column when ``grow`` is set."""
        col = self.columns.get(name)
        if col is None and grow:
            col = len(self.names)
            self.columns[name] = col
            self.names.append(name)
        return col

    def __contains__(self, name: str) -> bool:
        return name in self.columns

    def __len__(self) -> int:
        return len(self.names)

    @classmethod
    def build(cls, feature_dicts: Iterable[Mapping[str, float]]) -> "FeatureVocab":
        """Vocabulary of every feature name in ``feature_dicts``, in first-seen order."""
        vocab = cls()
        for features in feature_dicts:
            for name in features:
                vocab.column(name, grow=True)
        return vocab


def to_matrix(
    feature_dicts: Iterable[Mapping[str, float]], vocab: FeatureVocab
) -> csr_matrix:
    """Stack feature counters into a CSR matrix, dropping names outside ``vocab``.

    Parameters
    ----------
    feature_dicts : Iterable[Mapping[str, float]]
        One counter per datum
    vocab : FeatureVocab
        Column layout

    Returns
    -------
    csr_matrix
        Matrix of shape (n_datums, len(vocab))
    """
    indptr = [0]
    indices: List[int] = []
    values: List[float] = []

    for features in feature_dicts:
        for name, count in features.items():
            col = vocab.column(name)
            if col is not None:
                indices.append(col)
                values.append(count)
        indptr.append(len(indices))

    return csr_matrix(
        (np.asarray(values, dtype=np.float64), indices, indptr),
        shape=(len(indptr) - 1, len(vocab)),
    )
