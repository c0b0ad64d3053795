"""The ways a clause can be split off at a dependency edge."""

from enum import Enum
from typing import Dict, Optional

from ..config import CLONED_SUBJECT_RELATION
from ..trees.structures import DependencyTree, Edge
from .state import Detach, Graft, SearchState


class Action(Enum):
    """Clause splitting actions.

    SIMPLE detaches the subtree under an edge as a clause of its own.
    CLONE_NSUBJ does the same and then copies the nearest subject into the new
    clause as its ``nsubj``; a clause with a borrowed subject is final.
    """

    SIMPLE = "simple"
    CLONE_NSUBJ = "clone_nsubj"

    @property
    def signature(self) -> str:
        return self.value

    def prerequisites_met(self, tree: DependencyTree, edge: Edge) -> bool:
        """Whether the action may be tried on ``edge`` of the original tree."""
        return True

    def apply_to(
        self,
        tree: DependencyTree,
        source: SearchState,
        outgoing_edge: Edge,
        subject: Optional[Edge],
        preposition: Optional[Edge],
        edge_index: Dict[int, int],
    ) -> Optional[SearchState]:
        """Derive the successor of ``source`` when splitting at ``outgoing_edge``.

        Parameters
        ----------
        tree : DependencyTree
            The canonical tree (before any clause is split off)
        source : SearchState
            State being expanded
        outgoing_edge : Edge
            Edge leaving the frontier word of ``source``
        subject : Optional[Edge]
            Subject edge at the frontier word, if it has one
        preposition : Optional[Edge]
            Preposition attachment at the frontier word to carry along
        edge_index : Dict[int, int]
            Edge id to position in the searcher's edge index

        Returns
        -------
        Optional[SearchState]
            The new state, or None if the action does not apply
        """
        position = edge_index[outgoing_edge.edge_id]

        if self is Action.SIMPLE:
            if subject is not None:
                carried, distance = subject, 0
            else:
                carried, distance = source.subject, source.distance_from_subject + 1
            return SearchState(
                edge=outgoing_edge,
                edge_index=position,
                subject=carried,
                distance_from_subject=distance,
                preposition=preposition,
                plan=source.plan + (Detach(outgoing_edge.edge_id),),
                is_done=False,
                tree=tree,
            )

        # CLONE_NSUBJ
        borrowed = subject if subject is not None else source.subject
        if borrowed is None or borrowed.edge_id == outgoing_edge.edge_id:
            return None
        return SearchState(
            edge=outgoing_edge,
            edge_index=position,
            subject=borrowed,
            distance_from_subject=0,
            preposition=preposition,
            plan=source.plan + (
                Detach(outgoing_edge.edge_id),
                Graft(
                    attach_point=outgoing_edge.dependent,
                    relation=CLONED_SUBJECT_RELATION,
                    subtree_root=borrowed.dependent,
                    ignored_edges=(outgoing_edge.edge_id,),
                ),
            ),
            is_done=True,
            tree=tree,
        )


DEFAULT_ACTIONS = (Action.SIMPLE, Action.CLONE_NSUBJ)
