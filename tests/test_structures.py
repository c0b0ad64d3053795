import pytest

from clause_splitter.trees.structures import DependencyTree, Edge, Word, short_relation


def test_short_relation_strips_subtype():
    assert short_relation("prep_for") == "prep"
    assert short_relation("obl:tmod") == "obl"
    assert short_relation("nsubj") == "nsubj"
    assert Edge(0, 1, 2, "nmod:poss").short_relation == "nmod"


def test_word_str():
    assert str(Word(3, "Mary")) == "Mary-3"


def test_connect_assigns_increasing_ids(signed_tree):
    ids = [edge.edge_id for edge in signed_tree.edges]
    assert ids == sorted(ids)
    assert len(set(ids)) == 3
    new = signed_tree.connect(4, 1, "dep")
    assert new.edge_id > max(ids)


def test_outgoing_and_incoming_keep_insertion_order(signed_tree):
    assert [e.relation for e in signed_tree.outgoing(2)] == ["nsubj", "ccomp"]
    assert [e.governor for e in signed_tree.incoming(3)] == [4]
    assert signed_tree.parent_edge(2) is None


def test_remove_word_removes_incident_edges_and_roots(signed_tree):
    signed_tree.remove_word(2)
    assert 2 not in signed_tree
    assert signed_tree.roots == ()
    assert [e.relation for e in signed_tree.edges] == ["nsubj"]


def test_add_word_conflict_raises():
    tree = DependencyTree(words=[Word(1, "a")])
    tree.add_word(Word(1, "a"))
    with pytest.raises(ValueError):
        tree.add_word(Word(1, "b"))


def test_add_edge_requires_words():
    tree = DependencyTree(words=[Word(1, "a")])
    with pytest.raises(ValueError):
        tree.add_edge(Edge(0, 1, 2, "dep"))


def test_add_root_requires_word():
    with pytest.raises(ValueError):
        DependencyTree().add_root(1)


def test_descendants_breadth_first(signed_tree):
    assert signed_tree.descendants(2) == [2, 1, 4, 3]
    ccomp = signed_tree.outgoing(2)[1]
    assert signed_tree.descendants(2, ignored_edges=[ccomp.edge_id]) == [2, 1]


def test_is_tree(signed_tree):
    assert signed_tree.is_tree()
    signed_tree.connect(1, 3, "dep")
    assert not signed_tree.is_tree()


def test_is_tree_detects_unreachable_words(signed_tree):
    signed_tree.add_word(Word(5, "orphan"))
    assert not signed_tree.is_tree()


def test_copy_is_independent(signed_tree):
    clone = signed_tree.copy()
    assert clone == signed_tree
    clone.remove_word(3)
    assert 3 in signed_tree
    assert clone != signed_tree
    assert clone.new_edge_id() == signed_tree.new_edge_id()


def test_text_and_first_root(signed_tree):
    assert signed_tree.text == "John signed Mary left"
    assert signed_tree.first_root().word == "signed"
    assert [w.index for w in signed_tree] == [1, 2, 3, 4]


def test_first_root_without_roots():
    with pytest.raises(ValueError):
        DependencyTree(words=[Word(1, "a")]).first_root()
