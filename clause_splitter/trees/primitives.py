"""Structural edits used to carve clauses out of a dependency tree.

Both primitives either keep the tree a tree or do nothing at all.
"""

from collections import deque
from dataclasses import replace
from typing import Iterable, List

from .structures import DependencyTree, Edge, Word

GRAFT_WEIGHT = float("-inf")


def detach_as_root(tree: DependencyTree, keep_edge: Edge) -> None:
    """Keep only the subtree under ``keep_edge`` and make its dependent the root.

    Every word reachable from a root without going through ``keep_edge`` is
    removed, in place.

    Parameters
    ----------
    tree : DependencyTree
        Tree to split a clause from
    keep_edge : Edge
        Edge whose dependent heads the clause to keep
    """
    if not tree.has_edge(keep_edge):
        raise ValueError(f"Edge {keep_edge} is not part of the tree")

    to_remove: List[int] = []
    fringe = deque()
    for root in tree.roots:
        to_remove.append(root)
        fringe.extend(
            edge.dependent
            for edge in tree.outgoing(root)
            if edge.edge_id != keep_edge.edge_id
        )
    while fringe:
        node = fringe.popleft()
        to_remove.append(node)
        fringe.extend(
            edge.dependent
            for edge in tree.outgoing(node)
            if edge.edge_id != keep_edge.edge_id
        )

    for index in to_remove:
        tree.remove_word(index)
    tree.set_root(keep_edge.dependent)


def graft_disjoint_subtree(
    dest: DependencyTree,
    attach_point: int,
    relation: str,
    source: DependencyTree,
    subtree_root: int,
    ignored_edges: Iterable[int] = (),
) -> bool:
    """Copy a subtree of ``source`` into ``dest`` under ``attach_point``.

    The whole subtree is scanned first. If any of its words is already in
    ``dest`` nothing is changed, which keeps re-grafting (say, of a cloned
    subject) from creating cycles or second parents.

    Parameters
    ----------
    dest : DependencyTree
        Tree to add the subtree to
    attach_point : int
        Word of ``dest`` the subtree hangs from
    relation : str
        Label of the new arc into ``subtree_root``
    source : DependencyTree
        Tree to copy words and arcs from
    subtree_root : int
        Root of the subtree in ``source``
    ignored_edges : Iterable[int]
        Ids of ``source`` edges not to follow

    Returns
    -------
    bool
        True if the subtree was added
    """
    if not dest.contains_word(attach_point):
        raise ValueError(f"Attach point {attach_point} is not in the destination tree")
    if dest.contains_word(subtree_root) or not source.contains_word(subtree_root):
        return False

    ignored = set(ignored_edges)
    words_to_add: List[Word] = []
    edges_to_add: List[Edge] = []
    fringe = deque([subtree_root])
    while fringe:
        node = fringe.popleft()
        for edge in source.outgoing(node):
            if edge.edge_id in ignored:
                continue
            if dest.contains_word(edge.dependent):
                return False
            edges_to_add.append(edge)
            words_to_add.append(source.word(edge.dependent))
            fringe.append(edge.dependent)

    dest.add_word(source.word(subtree_root))
    dest.connect(attach_point, subtree_root, relation, weight=GRAFT_WEIGHT)
    for word in words_to_add:
        dest.add_word(word)
    for edge in edges_to_add:
        dest.add_edge(edge)
    return True


def add_word(dest: DependencyTree, attach_point: int, relation: str, word: Word) -> Edge:
    """Attach a word that is not part of the original sentence."""
    if dest.contains_word(word.index):
        raise ValueError(f"Word index {word.index} is already used")
    if not word.is_synthetic:
        word = replace(word, is_synthetic=True)
    dest.add_word(word)
    return dest.connect(attach_point, word.index, relation, weight=GRAFT_WEIGHT)
