from __future__ import annotations

import pytest
from hypothesis import HealthCheck, settings

from clause_splitter.trees.structures import DependencyTree, Word

settings.register_profile(
    "ci",
    suppress_health_check=[HealthCheck.function_scoped_fixture],
    deadline=None,
)
settings.load_profile("ci")


def _build(words, arcs, roots):
    """words: [(form, tag)] or [(form, tag, ner)]; arcs: [(gov, dep, rel)] or with is_extra."""
    tree = DependencyTree(
        words=[
            Word(index=i, word=w[0], lemma=w[0].lower(), tag=w[1], ner=w[2] if len(w) > 2 else "O")
            for i, w in enumerate(words, start=1)
        ]
    )
    for arc in arcs:
        gov, dep, rel = arc[:3]
        tree.connect(gov, dep, rel, is_extra=arc[3] if len(arc) > 3 else False)
    for root in roots:
        tree.add_root(root)
    return tree


@pytest.fixture
def make_tree():
    return _build


@pytest.fixture
def signed_tree():
    """John signed, Mary left: signed -nsubj-> John, signed -ccomp-> left -nsubj-> Mary."""
    return _build(
        [("John", "NNP"), ("signed", "VBD"), ("Mary", "NNP"), ("left", "VBD")],
        [(2, 1, "nsubj"), (2, 4, "ccomp"), (4, 3, "nsubj")],
        [2],
    )


@pytest.fixture
def said_tree():
    """John said Mary likes cats."""
    return _build(
        [
            ("John", "NNP", "PERSON"),
            ("said", "VBD"),
            ("Mary", "NNP", "PERSON"),
            ("likes", "VBZ"),
            ("cats", "NNS"),
        ],
        [(2, 1, "nsubj"), (2, 4, "ccomp"), (4, 3, "nsubj"), (4, 5, "dobj")],
        [2],
    )
