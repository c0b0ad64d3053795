"""Reading parser output and writing clause fragments."""

from .loaders import (
    example_from_conllu,
    iter_conllu,
    load_conllu_trees,
    load_training_examples,
    tree_from_conllu,
    tree_from_spacy,
)
from .format_converters import FormatConverter

__all__ = [
    "example_from_conllu",
    "iter_conllu",
    "load_conllu_trees",
    "load_training_examples",
    "tree_from_conllu",
    "tree_from_spacy",
    "FormatConverter",
]
