"""Configuration for the clause splitter."""

from pathlib import Path
from typing import Any, Dict

import yaml


# Base directories
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"
MODELS_DIR = DATA_DIR / "models"

# Default artifact paths
DEFAULT_MODEL_PATH = MODELS_DIR / "clause_searcher.pkl"
DEFAULT_DUMP_PATH = MODELS_DIR / "clause_searcher_datums.tsv.gz"
DEFAULT_OPTIONS_PATH = BASE_DIR / "configs" / "training.yaml"

# Search
DEFAULT_MAX_TICKS = 10000
DEFAULT_THRESHOLD = 0.5

# Tree cleaning. A word whose tag starts with one of these is punctuation.
PUNCTUATION_TAG_PREFIXES = (".", ",", "(", ")", ":")
PUNCT_RELATION = "punct"
APPOS_RELATION = "appos"

# Relations the search treats specially
PREPOSITION_RELATION_PREFIX = "prep"
SUBJECT_RELATION_MARKER = "subj"
OBJECT_RELATION_MARKER = "obj"
CLONED_SUBJECT_RELATION = "nsubj"

# Training
DEFAULT_NUM_FOLDS = 5
LOG_EVERY_N_EXAMPLES = 100

# Version tag written into serialized models
MODEL_FORMAT = "clause-searcher/1"


def load_yaml_config(yaml_path: str) -> Dict[str, Any]:
    """Load a YAML mapping, returning an empty dict for an empty file."""
    with open(yaml_path, "r", encoding="utf-8") as f:
        config = yaml.safe_load(f)

    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"Expected a mapping at the top of {yaml_path}")
    return config


def save_yaml_config(config: Dict[str, Any], output_path: str) -> None:
    """Write a mapping to a YAML file, creating parent directories."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
