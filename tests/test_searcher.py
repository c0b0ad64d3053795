import logging
import math

import pytest

from clause_splitter.exceptions import UnsupportedScorerError
from clause_splitter.search.featurizer import default_featurizer
from clause_splitter.search.fragment import SentenceFragment
from clause_splitter.search.searcher import ClauseModel, ClauseSearcher, dot_product
from clause_splitter.trees.primitives import add_word


class FixedLinearClassifier:
    is_linear = True

    def __init__(self, weights, bias=0.0):
        self.weights = weights
        self.bias = bias


class NonLinearClassifier:
    is_linear = False


def _collect(searcher, weights=None, max_ticks=10000, stop_after=None, bias=0.0):
    emitted = []

    def callback(log_prob, features, supplier):
        emitted.append((log_prob, features, supplier()))
        return stop_after is None or len(emitted) < stop_after

    searcher.search_with_weights(
        callback, weights or {}, default_featurizer, max_ticks=max_ticks, bias=bias
    )
    return emitted


def _is_clone(features):
    return bool(features) and any(name.startswith("clone_nsubj&") for name in features[-1])


def test_dot_product():
    assert dot_product({"a": 2, "b": 1}, {"a": 0.5, "c": 3.0}) == 1.0


def test_searcher_does_not_modify_input(signed_tree):
    before = signed_tree.copy()
    _collect(ClauseSearcher(signed_tree))
    assert signed_tree == before


def test_exhaustive_search_on_signed_tree(signed_tree):
    emitted = _collect(ClauseSearcher(signed_tree))
    texts = [fragment.text for _, _, fragment in emitted]
    assert texts == [
        "John signed Mary left",
        "John",
        "Mary left",
        "John Mary left",
        "Mary",
    ]
    log_probs = [log_prob for log_prob, _, _ in emitted]
    assert log_probs[0] == 0.0
    assert log_probs[1:4] == [math.log(0.5)] * 3
    assert log_probs[4] == pytest.approx(2 * math.log(0.5))


def test_simple_split_on_ccomp(signed_tree):
    emitted = _collect(ClauseSearcher(signed_tree))
    fragment = next(
        fragment
        for _, features, fragment in emitted
        if len(features) == 1 and "simple&edge:ccomp" in features[-1]
    )
    tree = fragment.tree
    assert fragment.root.word == "left"
    assert {w.word for w in tree.words} == {"left", "Mary"}
    assert tree.parent_edge(3).relation == "nsubj"
    assert not any(e.dependent == 1 for e in tree.edges)
    assert fragment.score == pytest.approx(0.5)


def test_clone_subject_copies_governing_subject(signed_tree):
    emitted = _collect(ClauseSearcher(signed_tree))
    clones = [fragment for _, features, fragment in emitted if _is_clone(features)]
    assert len(clones) == 1
    tree = clones[0].tree
    assert tree.roots == (4,)
    assert sorted((e.governor, e.dependent, e.relation) for e in tree.edges) == [
        (4, 1, "nsubj"),
        (4, 3, "nsubj"),
    ]


def test_emission_order_is_non_increasing(said_tree):
    weights = {
        "simple&edge:ccomp": 2.0,
        "clone_nsubj&edge:ccomp": -1.0,
        "simple&edge_type:dobj": 0.7,
        "simple&child_pos:NNP": -0.3,
    }
    log_probs = [log_prob for log_prob, _, _ in _collect(ClauseSearcher(said_tree), weights)]
    assert len(log_probs) > 3
    assert all(a >= b for a, b in zip(log_probs, log_probs[1:]))


def test_bias_shifts_probabilities(signed_tree):
    emitted = _collect(ClauseSearcher(signed_tree), bias=1.0)
    assert emitted[1][2].score == pytest.approx(1 / (1 + math.exp(-1.0)))


def test_false_return_stops_search(said_tree):
    built = []

    def callback(log_prob, features, supplier):
        built.append(supplier())
        return len(built) < 3

    ClauseSearcher(said_tree).search_with_weights(callback, {}, default_featurizer)
    assert len(built) == 3


@pytest.fixture
def two_root_tree(make_tree):
    """John left Mary stayed: two unconnected clauses."""
    return make_tree(
        [("John", "NNP"), ("left", "VBD"), ("Mary", "NNP"), ("stayed", "VBD")],
        [(2, 1, "nsubj"), (4, 3, "nsubj")],
        [2, 4],
    )


def test_each_root_is_searched(two_root_tree):
    emitted = _collect(ClauseSearcher(two_root_tree))
    texts = [fragment.text for _, _, fragment in emitted]
    assert texts == ["John left Mary stayed", "John", "John left Mary stayed", "Mary"]
    assert [fragment.root.word for _, _, fragment in emitted[1::2]] == ["John", "Mary"]


def test_false_return_stops_search_across_roots(two_root_tree):
    emitted = _collect(ClauseSearcher(two_root_tree), stop_after=1)
    assert len(emitted) == 1
    assert emitted[0][0] == 0.0


def test_callback_runs_once_per_emitted_state(signed_tree):
    calls = []
    ClauseSearcher(signed_tree).search_with_weights(
        lambda log_prob, features, supplier: calls.append(features) or True,
        {},
        default_featurizer,
    )
    assert len(calls) == 5


def test_frontier_words_are_not_revisited(make_tree):
    # 4 hangs from both 2 and 3; only one parent survives canonicalization
    tree = make_tree(
        [("a", "NN"), ("b", "VB"), ("c", "VB"), ("d", "NN"), ("e", "NN")],
        [(2, 1, "nsubj"), (2, 3, "conj"), (2, 4, "dobj"), (3, 4, "dobj", True), (4, 5, "amod")],
        [2],
    )
    emitted = _collect(ClauseSearcher(tree))
    roots = [fragment.root.index for _, features, fragment in emitted if not _is_clone(features)]
    assert len(roots) == len(set(roots))
    # a clone state ends its path
    for _, features, _ in emitted:
        assert not any(_is_clone(features[:i]) for i in range(1, len(features)))


def test_tick_budget_is_a_soft_limit(said_tree, caplog):
    with caplog.at_level(logging.WARNING):
        emitted = _collect(ClauseSearcher(said_tree), max_ticks=2)
    assert len(emitted) == 2
    assert all(isinstance(fragment, SentenceFragment) for _, _, fragment in emitted)
    assert "Timed out on search" in caplog.text


def test_extra_edges_are_reattached(make_tree):
    tree = make_tree(
        [("Mary", "NNP"), ("wants", "VBZ"), ("to", "TO"), ("leave", "VB")],
        [(2, 1, "nsubj"), (2, 4, "xcomp"), (4, 3, "aux"), (4, 1, "nsubj:xsubj", True)],
        [2],
    )
    emitted = _collect(ClauseSearcher(tree))
    xcomp = next(
        fragment
        for _, features, fragment in emitted
        if len(features) == 1 and "simple&edge:xcomp" in features[-1]
    )
    assert xcomp.text == "Mary to leave"
    assert xcomp.tree.parent_edge(1).relation == "nsubj:xsubj"


def test_search_requires_linear_model(signed_tree):
    with pytest.raises(UnsupportedScorerError):
        ClauseSearcher(signed_tree).search(lambda *args: True)
    model = ClauseModel(NonLinearClassifier())
    with pytest.raises(UnsupportedScorerError):
        ClauseSearcher(signed_tree, model).search(lambda *args: True)


def test_top_clauses_stops_below_threshold(signed_tree):
    model = ClauseModel(FixedLinearClassifier({}))
    fragments = ClauseSearcher(signed_tree, model).top_clauses(0.3)
    assert [f.text for f in fragments] == [
        "John signed Mary left",
        "John",
        "Mary left",
        "John Mary left",
    ]
    assert fragments[0].score == 1.0


def test_mock_word_is_placed_past_the_sentence(signed_tree):
    searcher = ClauseSearcher(signed_tree)
    assert searcher.sentence_length == 4
    word = searcher.mock_word(4, "he", "PRP")
    assert (word.index, word.word, word.lemma, word.tag, word.ner) == (9, "he", "he", "PRP", "O")
    assert word.is_synthetic

    fragment = searcher.tree.copy()
    add_word(fragment, 4, "nsubj", word)
    assert fragment.is_tree()
    assert fragment.text == "John signed Mary left he"
