"""Training pipeline for the clause searcher.

The pipeline:
1. Run an exhaustive search (no classifier, every step equally likely) over
   every training sentence
2. Label every fragment with the relation oracle against the gold spans
3. Turn every step on the path to a labeled fragment into a weighted datum
4. Train the clause boundary classifier, save it, and report training set
   and k-fold cross-validation accuracy
"""

import gzip
import logging
import pickle
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, TextIO

import numpy as np
from tqdm import tqdm

from ..config import DEFAULT_MAX_TICKS, DEFAULT_NUM_FOLDS, LOG_EVERY_N_EXAMPLES, load_yaml_config
from ..exceptions import TrainingError
from ..search.featurizer import get_featurizer
from ..search.searcher import ClauseModel, ClauseSearcher, searcher_factory
from ..trees.structures import DependencyTree
from .classifier import (
    ClassifierFactory,
    ClassifierMetrics,
    ClauseClassifier,
    resolve_classifier_factory,
)
from .dataset import TrainingExample, WeightedDataset
from .oracle import DependencyTripleOracle, RelationOracle, label_extractions, token_offsets
from .persistence import save_model

logger = logging.getLogger(__name__)


@dataclass
class TrainingOptions:
    """Options for training the clause searcher.

    Attributes
    ----------
    negative_subsample_ratio : float
        Fraction of negative datums to keep, in [0, 1]
    positive_datum_weight : float
        Weight of every positive datum
    seed : int
        Random seed for subsampling and cross-validation
    classifier_factory : ClassifierFactory
        Model type name ("logistic", "linear_svc", "random_forest") or a
        callable taking the seed and returning an unfitted estimator
    num_folds : int
        Number of cross-validation folds
    max_ticks : int
        Search budget per sentence root
    """

    negative_subsample_ratio: float = 0.10
    positive_datum_weight: float = 50.0
    seed: int = 42
    classifier_factory: ClassifierFactory = "logistic"
    num_folds: int = DEFAULT_NUM_FOLDS
    max_ticks: int = DEFAULT_MAX_TICKS

    def __post_init__(self):
        if not 0.0 <= self.negative_subsample_ratio <= 1.0:
            raise ValueError(
                f"negative_subsample_ratio must be in [0, 1], got {self.negative_subsample_ratio}"
            )
        if self.positive_datum_weight <= 0:
            raise ValueError(
                f"positive_datum_weight must be positive, got {self.positive_datum_weight}"
            )
        if self.num_folds < 2:
            raise ValueError(f"num_folds must be at least 2, got {self.num_folds}")
        if self.max_ticks < 1:
            raise ValueError(f"max_ticks must be at least 1, got {self.max_ticks}")
        resolve_classifier_factory(self.classifier_factory)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "TrainingOptions":
        known = set(cls.__dataclass_fields__)
        unknown = set(config) - known
        if unknown:
            raise ValueError(f"Unknown training options: {sorted(unknown)}")
        return cls(**config)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "TrainingOptions":
        """Load options from the ``training`` section of a YAML file (or its top level)."""
        config = load_yaml_config(yaml_path)
        if "training" in config:
            config = config["training"] or {}
        if not isinstance(config, dict):
            raise ValueError(f"Expected a mapping of training options in {yaml_path}")
        return cls.from_dict(config)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "negative_subsample_ratio": self.negative_subsample_ratio,
            "positive_datum_weight": self.positive_datum_weight,
            "seed": self.seed,
            "classifier_factory": (
                self.classifier_factory
                if isinstance(self.classifier_factory, str)
                else repr(self.classifier_factory)
            ),
            "num_folds": self.num_folds,
            "max_ticks": self.max_ticks,
        }


@dataclass
class ClauseTrainingResult:
    """Results from training the clause searcher.

    Attributes
    ----------
    model : ClauseModel
        Trained classifier and featurizer name
    dataset : WeightedDataset
        Weighted datums the classifier was trained on
    train_metrics : ClassifierMetrics
        Accuracy on the training set
    fold_metrics : List[ClassifierMetrics]
        Held-out accuracy of every cross-validation fold
    num_examples : int
        Number of training sentences processed
    """

    model: ClauseModel
    dataset: WeightedDataset
    train_metrics: ClassifierMetrics
    fold_metrics: List[ClassifierMetrics] = field(default_factory=list)
    num_examples: int = 0

    @property
    def factory(self) -> Callable[[DependencyTree], ClauseSearcher]:
        return searcher_factory(self.model)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def format_dump_line(label: bool, is_final: bool, features: Counter) -> str:
    """One line of the training data dump: label, final-step flag, features."""
    feature_str = ";".join(f"{name}->{float(count)}" for name, count in features.items())
    return f"{_flag(label)}\t{_flag(is_final)}\t{feature_str}"


def log_metrics(title: str, metrics: ClassifierMetrics) -> None:
    logger.info("%s", title)
    logger.info("  size:       %d", metrics.size)
    logger.info("  true count: %d", metrics.true_count)
    logger.info("  precision:  %.3f", metrics.precision)
    logger.info("  recall:     %.3f", metrics.recall)
    logger.info("  f1:         %.3f", metrics.f1)


class ClauseSearcherTrainer:
    """Train the clause boundary classifier from (sentence, subject, object) examples.

    Parameters
    ----------
    oracle : Optional[RelationOracle]
        Relation extractor used to label fragments; defaults to
        :class:`DependencyTripleOracle`
    featurizer_name : str
        Registered featurizer to train with
    options : Optional[TrainingOptions]
        Training options
    """

    def __init__(
        self,
        oracle: Optional[RelationOracle] = None,
        featurizer_name: str = "default",
        options: Optional[TrainingOptions] = None,
    ):
        self.oracle = oracle or DependencyTripleOracle()
        self.featurizer_name = featurizer_name
        self.featurizer = get_featurizer(featurizer_name)
        self.options = options or TrainingOptions()
        self._estimator_factory = resolve_classifier_factory(self.options.classifier_factory)
        self._num_examples = 0

    def featurize_example(
        self,
        example: TrainingExample,
        rng: np.random.Generator,
        dump: Optional[TextIO] = None,
    ) -> WeightedDataset:
        """Search one sentence exhaustively and label every step.

        Parameters
        ----------
        example : TrainingExample
            Sentence with gold spans
        rng : np.random.Generator
            Random source for negative subsampling
        dump : Optional[TextIO]
            Stream receiving one line per labeled datum

        Returns
        -------
        WeightedDataset
            Datums from this sentence
        """
        tokens = token_offsets(example.tree)
        datums = WeightedDataset()
        options = self.options

        def on_fragment(log_prob, features, fragment_supplier):
            if not features:
                return True
            fragment = fragment_supplier()
            extractions = self.oracle(fragment.tree)
            if not extractions and len(fragment) != 1:
                return True

            correct = label_extractions(
                extractions, tokens, example.subject_span, example.object_span
            )
            last = len(features) - 1
            for position, decision in enumerate(features):
                if dump is not None:
                    dump.write(format_dump_line(correct, position == last, decision) + "\n")
                if correct or rng.random() > (1.0 - options.negative_subsample_ratio):
                    datums.add(
                        decision,
                        correct,
                        options.positive_datum_weight if correct else 1.0,
                    )
            return True

        searcher = ClauseSearcher(example.tree)
        searcher.search_with_weights(
            on_fragment, {}, self.featurizer, max_ticks=options.max_ticks
        )
        return datums

    def build_dataset(
        self,
        examples: Iterable[TrainingExample],
        dump_path: Optional[str] = None,
    ) -> WeightedDataset:
        """Featurize every training example into one weighted dataset."""
        rng = np.random.default_rng(self.options.seed)
        dataset = WeightedDataset()
        dump = gzip.open(dump_path, "wt", encoding="utf-8") if dump_path else None

        try:
            n_processed = 0
            for example in tqdm(examples, desc="Training inference"):
                dataset.extend(self.featurize_example(example, rng, dump))
                n_processed += 1
                if n_processed % LOG_EVERY_N_EXAMPLES == 0:
                    logger.info(
                        "processed %d training sentences: %d datums",
                        n_processed, len(dataset),
                    )
        finally:
            if dump is not None:
                dump.close()

        self._num_examples = n_processed
        return dataset

    def train_classifier(self, dataset: WeightedDataset) -> ClauseClassifier:
        estimator = self._estimator_factory(self.options.seed)
        return ClauseClassifier.train(dataset, estimator)

    def cross_validate(self, dataset: WeightedDataset) -> List[ClassifierMetrics]:
        """Train and evaluate a fresh classifier on every fold."""
        num_folds = self.options.num_folds
        if len(dataset) < num_folds:
            logger.warning(
                "Skipping cross-validation: %d datums for %d folds", len(dataset), num_folds
            )
            return []

        logger.info("%d fold cross-validation", num_folds)
        fold_metrics = []
        for fold, (train_data, test_data) in enumerate(
            dataset.folds(num_folds, self.options.seed), start=1
        ):
            try:
                classifier = self.train_classifier(train_data)
            except TrainingError as e:
                logger.warning("Fold %d: %s", fold, e)
                continue
            metrics = classifier.evaluate(test_data)
            log_metrics(f"Fold {fold}", metrics)
            fold_metrics.append(metrics)
        return fold_metrics

    def train(
        self,
        examples: Iterable[TrainingExample],
        model_path: Optional[str] = None,
        dump_path: Optional[str] = None,
    ) -> ClauseTrainingResult:
        """Run the full training pipeline.

        Parameters
        ----------
        examples : Iterable[TrainingExample]
            Training sentences with gold spans
        model_path : Optional[str]
            Where to save the trained model
        dump_path : Optional[str]
            Where to write the gzipped training data dump

        Returns
        -------
        ClauseTrainingResult
            Trained model, dataset and accuracy figures
        """
        # Step 1: Inference over training sentences
        logger.info("Training inference")
        dataset = self.build_dataset(examples, dump_path)
        logger.info(
            "Built %d datums (%d positive) from %d sentences",
            len(dataset), dataset.true_count, self._num_examples,
        )

        # Step 2: Train classifier
        logger.info("Training")
        classifier = self.train_classifier(dataset)
        model = ClauseModel(classifier=classifier, featurizer_name=self.featurizer_name)

        if model_path:
            try:
                save_model(model, model_path)
                logger.info("SUCCESS: wrote model to %s", model_path)
            except (OSError, pickle.PicklingError):
                logger.exception("ERROR: failed to save model to path: %s", model_path)

        # Step 3: Check accuracy of classifier
        train_metrics = classifier.evaluate(dataset)
        log_metrics("Training accuracy", train_metrics)

        # Step 4: Cross-validation
        fold_metrics = self.cross_validate(dataset)

        return ClauseTrainingResult(
            model=model,
            dataset=dataset,
            train_metrics=train_metrics,
            fold_metrics=fold_metrics,
            num_examples=self._num_examples,
        )


def train_factory(
    examples: Iterable[TrainingExample],
    oracle: Optional[RelationOracle] = None,
    featurizer_name: str = "default",
    options: Optional[TrainingOptions] = None,
    model_path: Optional[str] = None,
    dump_path: Optional[str] = None,
) -> Callable[[DependencyTree], ClauseSearcher]:
    """Train a clause searcher and return a ``tree -> ClauseSearcher`` factory.

    See :meth:`ClauseSearcherTrainer.train` for the parameters.
    """
    trainer = ClauseSearcherTrainer(
        oracle=oracle, featurizer_name=featurizer_name, options=options
    )
    result = trainer.train(examples, model_path=model_path, dump_path=dump_path)
    return result.factory
