"""Training the clause boundary classifier.

The pipeline:
1. Search every training sentence exhaustively
2. Label the resulting fragments with a relation oracle
3. Build a weighted dataset of featurized search steps
4. Train a linear classifier and cross-validate it
"""

from .oracle import DependencyTripleOracle, RelationOracle, Span, extract_ner, is_correct_extraction
from .dataset import TrainingExample, WeightedDataset, WeightedDatum
from .features import FeatureVocab, to_matrix
from .classifier import ClassifierMetrics, ClauseClassifier, SUPPORTED_MODELS, create_estimator
from .persistence import factory, load_model, save_model
from .trainer import ClauseSearcherTrainer, ClauseTrainingResult, TrainingOptions, train_factory

__all__ = [
    "DependencyTripleOracle",
    "RelationOracle",
    "Span",
    "extract_ner",
    "is_correct_extraction",
    "TrainingExample",
    "WeightedDataset",
    "WeightedDatum",
    "FeatureVocab",
    "to_matrix",
    "ClassifierMetrics",
    "ClauseClassifier",
    "SUPPORTED_MODELS",
    "create_estimator",
    "factory",
    "load_model",
    "save_model",
    "ClauseSearcherTrainer",
    "ClauseTrainingResult",
    "TrainingOptions",
    "train_factory",
]
