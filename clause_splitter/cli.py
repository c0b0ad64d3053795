"""Command line interface.

Usage
-----
  # Train a clause searcher from CoNLL-U with subject/object span metadata
  clause-splitter train --input data/train.conllu --model data/models/clause_searcher.pkl

  # Split the sentences of a parsed CoNLL-U file into clauses
  clause-splitter split --input data/dev.conllu --format json --output clauses.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import (
    DEFAULT_DUMP_PATH,
    DEFAULT_MAX_TICKS,
    DEFAULT_MODEL_PATH,
    DEFAULT_OPTIONS_PATH,
    DEFAULT_THRESHOLD,
    save_yaml_config,
)
from .exceptions import ClauseSplitterError
from .preprocessing.format_converters import FormatConverter
from .preprocessing.loaders import iter_conllu, load_training_examples, tree_from_conllu
from .training.persistence import factory
from .training.trainer import ClauseSearcherTrainer, TrainingOptions
from .utils.statistics import DatasetStatistics

logger = logging.getLogger(__name__)


def run_train(args: argparse.Namespace) -> None:
    print("\n" + "=" * 60)
    print("Clause Searcher Training")
    print("=" * 60)

    config_path = args.config or (DEFAULT_OPTIONS_PATH if DEFAULT_OPTIONS_PATH.exists() else None)
    options = TrainingOptions.from_yaml(str(config_path)) if config_path else TrainingOptions()
    logger.info("Training options from %s", config_path or "built-in defaults")
    if args.seed is not None:
        options.seed = args.seed

    examples = load_training_examples(args.input)
    print(f"  Loaded {len(examples)} training examples from {args.input}")

    trainer = ClauseSearcherTrainer(options=options)
    result = trainer.train(examples, model_path=args.model, dump_path=args.dump)

    save_yaml_config({"training": options.to_dict()}, str(Path(args.model).with_suffix(".yaml")))

    if args.stats_output:
        stats_calculator = DatasetStatistics()
        stats = stats_calculator.compute_statistics(result.dataset, examples)
        stats_calculator.save_statistics(stats, args.stats_output)
        print(f"  Saved statistics to {args.stats_output}")
        stats_calculator.print_summary(stats)

    print("\n" + "=" * 60)
    print("TRAINING COMPLETE!")
    print("=" * 60)
    print(f"  Datums: {len(result.dataset)} ({result.dataset.true_count} positive)")
    print(f"  Training F1: {result.train_metrics.f1:.3f}")
    if result.fold_metrics:
        mean_f1 = sum(m.f1 for m in result.fold_metrics) / len(result.fold_metrics)
        print(f"  Cross-validation F1: {mean_f1:.3f} over {len(result.fold_metrics)} folds")
    print(f"  Model: {args.model}")
    print("\n")


def run_split(args: argparse.Namespace) -> None:
    make_searcher = factory(args.model)
    converter = FormatConverter()
    fragments = []
    metadata = []

    for n, sentence in enumerate(iter_conllu(args.input), start=1):
        sent_id = sentence.metadata.get("sent_id", str(n))
        searcher = make_searcher(tree_from_conllu(sentence))
        clauses = searcher.top_clauses(args.threshold, max_ticks=args.max_ticks)
        logger.info("Sentence %s: %d clauses", sent_id, len(clauses))

        for i, fragment in enumerate(clauses, start=1):
            fragments.append(fragment)
            metadata.append({"sent_id": f"{sent_id}-{i}", "source_sent_id": sent_id})

    if args.output:
        if args.format == "json":
            converter.to_json_file(fragments, args.output, [m["sent_id"] for m in metadata])
        else:
            converter.to_conllu(fragments, args.output, metadata)
        print(f"Wrote {len(fragments)} clauses to {args.output}")
    elif args.format == "json":
        records = converter.to_json_records(fragments, [m["sent_id"] for m in metadata])
        sys.stdout.write(json.dumps(records, indent=2, ensure_ascii=False) + "\n")
    else:
        sys.stdout.write(converter.serialize_conllu(fragments, metadata))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Split dependency-parsed sentences into scored clauses"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    train = subparsers.add_parser("train", help="Train the clause boundary classifier")
    train.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Training CoNLL-U file with '# subject' and '# object' span metadata",
    )
    train.add_argument(
        "--model", "-m",
        type=str,
        default=str(DEFAULT_MODEL_PATH),
        help="Where to save the trained model",
    )
    train.add_argument(
        "--dump",
        type=str,
        default=str(DEFAULT_DUMP_PATH),
        help="Where to write the gzipped training datums",
    )
    train.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help=f"YAML file with training options (default: {DEFAULT_OPTIONS_PATH} if present)",
    )
    train.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the random seed from the config",
    )
    train.add_argument(
        "--stats-output",
        type=str,
        default=None,
        help="Where to save training data statistics as JSON",
    )
    train.set_defaults(func=run_train)

    split = subparsers.add_parser("split", help="Split parsed sentences into clauses")
    split.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="CoNLL-U file of parsed sentences",
    )
    split.add_argument(
        "--model", "-m",
        type=str,
        default=str(DEFAULT_MODEL_PATH),
        help="Trained model",
    )
    split.add_argument(
        "--threshold", "-t",
        type=float,
        default=DEFAULT_THRESHOLD,
        help="Minimum clause score",
    )
    split.add_argument(
        "--max-ticks",
        type=int,
        default=DEFAULT_MAX_TICKS,
        help="Search budget per sentence root",
    )
    split.add_argument(
        "--format", "-f",
        choices=["conllu", "json"],
        default="conllu",
        help="Output format",
    )
    split.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Output file (default: stdout)",
    )
    split.set_defaults(func=run_split)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)

    try:
        args.func(args)
    except (ClauseSplitterError, ValueError, OSError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
