"""Dependency tree model, canonicalization and clause-carving primitives."""

from .structures import DependencyTree, Edge, Word, short_relation
from .canonicalize import ExtraEdgeIndex, canonicalize_tree, index_extra_edges
from .primitives import add_word, detach_as_root, graft_disjoint_subtree

__all__ = [
    "DependencyTree",
    "Edge",
    "Word",
    "short_relation",
    "canonicalize_tree",
    "ExtraEdgeIndex",
    "index_extra_edges",
    "add_word",
    "detach_as_root",
    "graft_disjoint_subtree",
]
