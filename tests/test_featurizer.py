from collections import Counter

import pytest

from clause_splitter.exceptions import ModelLoadError
from clause_splitter.search.actions import DEFAULT_ACTIONS, Action
from clause_splitter.search.featurizer import default_featurizer, featurizer_name, get_featurizer
from clause_splitter.search.state import Detach, Graft, SearchState


@pytest.fixture
def steps(signed_tree):
    tree = signed_tree
    edge_index = {edge.edge_id: i for i, edge in enumerate(tree.edges)}
    nsubj, ccomp = tree.outgoing(2)
    mary = tree.outgoing(4)[0]
    initial = SearchState.initial(tree)
    to_left = Action.SIMPLE.apply_to(tree, initial, ccomp, nsubj, None, edge_index)
    to_mary = Action.SIMPLE.apply_to(tree, to_left, mary, mary, None, edge_index)
    return tree, edge_index, initial, to_left, to_mary


def test_features_of_first_split(steps):
    tree, _, initial, to_left, _ = steps
    features = default_featurizer(initial, Action.SIMPLE, to_left)
    assert isinstance(features, Counter)
    assert set(features) == {
        "simple&edge:ccomp",
        "simple&edge_type:ccomp",
        "simple&at_root",
        "simple&at_root&root_pos:VBD",
        "simple&parent_neighbor:nsubj",
        "simple&edge_type:ccomp&parent_neighbor:nsubj",
        "simple&child_neighbor:nsubj",
        "simple&edge_type:ccomp&child_neighbor:nsubj",
        "simple&parent_neighbor_subj:true",
        "simple&parent_neighbor_obj:false",
        "simple&child_neighbor_subj:true",
        "simple&child_neighbor_obj:false",
        "simple&parent_pos:VBD",
        "simple&child_pos:VBD",
        "simple&pos_signature:VBD->VBD",
        "simple&edge_type:ccomp&pos_signature:VBD->VBD",
    }
    assert set(features.values()) == {1}


def test_features_of_nested_split(steps):
    _, _, _, to_left, to_mary = steps
    features = default_featurizer(to_left, Action.SIMPLE, to_mary)
    assert features["simple&not_root"] == 1
    assert features["simple&last_edge:ccomp"] == 1
    assert features["simple&parent_neighbor_subj:false"] == 1
    assert features["simple&child_neighbor_subj:false"] == 1
    assert "simple&at_root" not in features


def test_features_use_short_relations(make_tree):
    tree = make_tree(
        [("went", "VBD"), ("store", "NN")],
        [(1, 2, "prep_to")],
        [1],
    )
    edge = tree.outgoing(1)[0]
    initial = SearchState.initial(tree)
    to_store = Action.SIMPLE.apply_to(tree, initial, edge, None, None, {edge.edge_id: 0})
    features = default_featurizer(initial, Action.SIMPLE, to_store)
    assert features["simple&edge:prep_to"] == 1
    assert features["simple&edge_type:prep"] == 1


def test_simple_carries_subject(steps):
    _, _, _, to_left, to_mary = steps
    assert to_left.subject.relation == "nsubj" and to_left.subject.dependent == 1
    assert to_left.distance_from_subject == 0
    assert to_left.plan == (Detach(to_left.edge.edge_id),)
    assert not to_left.is_done
    assert to_mary.plan[:1] == to_left.plan


def test_simple_without_subject_counts_distance(steps):
    tree, edge_index, _, to_left, _ = steps
    mary = tree.outgoing(4)[0]
    state = Action.SIMPLE.apply_to(tree, to_left, mary, None, None, edge_index)
    assert state.subject == to_left.subject
    assert state.distance_from_subject == 1


def test_clone_subject(steps):
    tree, edge_index, initial, _, _ = steps
    nsubj, ccomp = tree.outgoing(2)
    state = Action.CLONE_NSUBJ.apply_to(tree, initial, ccomp, nsubj, None, edge_index)
    assert state.is_done
    assert state.plan == (
        Detach(ccomp.edge_id),
        Graft(4, "nsubj", 1, (ccomp.edge_id,)),
    )
    # cannot clone a subject onto itself, nor clone without any subject
    assert Action.CLONE_NSUBJ.apply_to(tree, initial, nsubj, nsubj, None, edge_index) is None
    assert Action.CLONE_NSUBJ.apply_to(tree, initial, ccomp, None, None, edge_index) is None


def test_materialize_replays_plan(steps):
    tree, edge_index, initial, _, _ = steps
    nsubj, ccomp = tree.outgoing(2)
    state = Action.CLONE_NSUBJ.apply_to(tree, initial, ccomp, nsubj, None, edge_index)
    clause = state.materialize()
    assert clause.roots == (4,)
    assert sorted(w.index for w in clause.words) == [1, 3, 4]
    assert sorted(w.index for w in tree.words) == [1, 2, 3, 4]


def test_action_signatures():
    assert [a.signature for a in DEFAULT_ACTIONS] == ["simple", "clone_nsubj"]


def test_featurizer_registry():
    assert get_featurizer("default") is default_featurizer
    assert featurizer_name(default_featurizer) == "default"
    with pytest.raises(ModelLoadError):
        get_featurizer("nope")
    with pytest.raises(ValueError):
        featurizer_name(lambda a, b, c: Counter())
