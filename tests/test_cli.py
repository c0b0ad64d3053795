import json

import conllu
import yaml

from clause_splitter import cli
from clause_splitter.cli import build_parser, main

from test_loaders import SENTENCE


def _write_corpus(path, n=3):
    path.write_text(
        "".join(SENTENCE.replace("# sent_id = s1", f"# sent_id = s{i}") for i in range(n)),
        encoding="utf-8",
    )


def test_parser_requires_command():
    args = build_parser().parse_args(["split", "--input", "x.conllu", "--format", "json"])
    assert args.format == "json"
    assert args.threshold == 0.5


def test_train_then_split(tmp_path, capsys):
    corpus = tmp_path / "train.conllu"
    _write_corpus(corpus)
    config = tmp_path / "training.yaml"
    config.write_text(yaml.dump({"training": {"negative_subsample_ratio": 1.0, "num_folds": 2}}))
    model = tmp_path / "models" / "clause_searcher.pkl"
    stats = tmp_path / "stats.json"

    assert main([
        "train",
        "--input", str(corpus),
        "--model", str(model),
        "--dump", str(tmp_path / "datums.tsv.gz"),
        "--config", str(config),
        "--stats-output", str(stats),
    ]) == 0
    assert model.exists()
    assert json.loads(stats.read_text())["total_examples"] == 3
    saved = yaml.safe_load(model.with_suffix(".yaml").read_text())
    assert saved["training"]["num_folds"] == 2

    output = tmp_path / "clauses.json"
    assert main([
        "split",
        "--input", str(corpus),
        "--model", str(model),
        "--threshold", "0.0",
        "--format", "json",
        "--output", str(output),
    ]) == 0
    records = json.loads(output.read_text())
    assert records and records[0]["id"] == "s0-1"
    assert records[0]["text"] == "John said Mary likes cats"

    conllu_output = tmp_path / "clauses.conllu"
    assert main([
        "split",
        "--input", str(corpus),
        "--model", str(model),
        "--threshold", "0.0",
        "--output", str(conllu_output),
    ]) == 0
    sentences = conllu.parse(conllu_output.read_text(encoding="utf-8"))
    assert len(sentences) == len(records)
    assert sentences[0].metadata["sent_id"] == "s0-1"
    assert sentences[0].metadata["source_sent_id"] == "s0"

    capsys.readouterr()
    assert main([
        "split",
        "--input", str(corpus),
        "--model", str(model),
        "--threshold", "0.0",
        "--format", "json",
    ]) == 0
    assert json.loads(capsys.readouterr().out) == records


def test_split_with_missing_model_fails(tmp_path):
    corpus = tmp_path / "dev.conllu"
    _write_corpus(corpus, 1)
    assert main(["split", "--input", str(corpus), "--model", str(tmp_path / "none.pkl")]) == 1


def test_train_reads_default_options_file(tmp_path, monkeypatch):
    corpus = tmp_path / "train.conllu"
    _write_corpus(corpus)
    defaults = tmp_path / "configs" / "training.yaml"
    defaults.parent.mkdir()
    defaults.write_text("training:\n  negative_subsample_ratio: 1.0\n  num_folds: 2\n  seed: 7\n")
    monkeypatch.setattr(cli, "DEFAULT_OPTIONS_PATH", defaults)
    model = tmp_path / "model.pkl"

    assert main([
        "train",
        "--input", str(corpus),
        "--model", str(model),
        "--dump", str(tmp_path / "datums.tsv.gz"),
    ]) == 0
    saved = yaml.safe_load(model.with_suffix(".yaml").read_text())
    assert (saved["training"]["num_folds"], saved["training"]["seed"]) == (2, 7)
