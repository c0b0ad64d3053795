"""Search states and the deferred edits they carry.

A state does not hold a tree of its own. It holds a plan: the ordered list of
edits that turn a fresh copy of the canonical tree into the state's clause.
Plans only grow by appending, so a successor shares its parent's prefix.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from ..trees.primitives import detach_as_root, graft_disjoint_subtree
from ..trees.structures import DependencyTree, Edge


@dataclass(frozen=True)
class Detach:
    """Split off the clause under ``edge_id`` (see :func:`detach_as_root`)."""

    edge_id: int

    def apply(self, tree: DependencyTree, source: DependencyTree) -> None:
        detach_as_root(tree, source.edge(self.edge_id))


@dataclass(frozen=True)
class Graft:
    """Copy the subtree of ``subtree_root`` under ``attach_point``."""

    attach_point: int
    relation: str
    subtree_root: int
    ignored_edges: Tuple[int, ...] = ()

    def apply(self, tree: DependencyTree, source: DependencyTree) -> None:
        graft_disjoint_subtree(
            tree,
            self.attach_point,
            self.relation,
            source,
            self.subtree_root,
            self.ignored_edges,
        )


Mutation = Union[Detach, Graft]


def apply_plan(
    plan: Tuple[Mutation, ...], tree: DependencyTree, source: DependencyTree
) -> DependencyTree:
    """Replay ``plan`` on ``tree`` (in place), reading subtrees from ``source``."""
    for mutation in plan:
        mutation.apply(tree, source)
    return tree


@dataclass(frozen=True)
class SearchState:
    """A node of the clause search.

    Attributes
    ----------
    edge : Optional[Edge]
        Edge most recently taken into the clause; None at the virtual root
    edge_index : int
        Position of ``edge`` in the searcher's edge index, -1 at the root
    subject : Optional[Edge]
        Subject edge carried from the nearest clause boundary above
    distance_from_subject : int
        Number of edges taken since ``subject`` was last reset
    preposition : Optional[Edge]
        Preposition attachment considered when taking ``edge``
    plan : Tuple[Mutation, ...]
        Edits that produce this state's clause from the canonical tree
    is_done : bool
        Terminal states are emitted but not expanded
    tree : DependencyTree
        The canonical tree being searched (never modified)
    """

    edge: Optional[Edge]
    edge_index: int
    subject: Optional[Edge]
    distance_from_subject: int
    preposition: Optional[Edge]
    plan: Tuple[Mutation, ...]
    is_done: bool
    tree: DependencyTree = field(repr=False, compare=False)

    @classmethod
    def initial(cls, tree: DependencyTree) -> "SearchState":
        return cls(
            edge=None,
            edge_index=-1,
            subject=None,
            distance_from_subject=0,
            preposition=None,
            plan=(),
            is_done=False,
            tree=tree,
        )

    def frontier(self, search_root: int) -> int:
        """Word the search continues from after reaching this state."""
        return search_root if self.edge is None else self.edge.dependent

    def materialize(self) -> DependencyTree:
        """Apply the plan to a fresh copy of the canonical tree."""
        return apply_plan(self.plan, self.tree.copy(), self.tree)
