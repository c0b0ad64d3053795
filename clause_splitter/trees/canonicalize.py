"""Turn raw parser output into a strict dependency tree.

Parsers (and enhanced/collapsed dependency conversions in particular) hand us
graphs with self loops, dangling punctuation, words with several heads and
arcs pointing back into the root. The search needs a proper tree, so
:func:`canonicalize_tree` cleans the graph in place and returns the secondary
arcs it had to drop, so they can be put back into fragments later.
"""

import logging
from collections import defaultdict, deque
from typing import Dict, List

from ..config import APPOS_RELATION, PUNCT_RELATION, PUNCTUATION_TAG_PREFIXES
from ..exceptions import TreeInvariantError
from .structures import DependencyTree, Edge

logger = logging.getLogger(__name__)

# Governor index -> extra edges dropped while canonicalizing
ExtraEdgeIndex = Dict[int, List[Edge]]


def is_punctuation_tag(tag: str) -> bool:
    return tag.startswith(PUNCTUATION_TAG_PREFIXES)


def _remove_dangling_punctuation(tree: DependencyTree) -> bool:
    to_delete = [
        word.index
        for word in tree.words
        if is_punctuation_tag(word.tag)
        and not tree.outgoing(word.index)
        and word.index not in tree.roots
    ]
    for index in to_delete:
        tree.remove_word(index)
    return bool(to_delete)


def _remove_bad_edges(tree: DependencyTree) -> bool:
    to_delete = []
    for edge in tree.edges:
        if edge.governor == edge.dependent:
            to_delete.append(edge)
        elif edge.relation == PUNCT_RELATION and not tree.outgoing(edge.dependent):
            to_delete.append(edge)
    for edge in to_delete:
        tree.remove_edge(edge)
    return bool(to_delete)


def _extract_extra_edges(tree: DependencyTree) -> List[Edge]:
    extra_edges = [
        edge
        for edge in tree.edges
        if edge.is_extra and len(tree.incoming(edge.dependent)) > 1
    ]
    for edge in extra_edges:
        tree.remove_edge(edge)
    return extra_edges


def _add_apposition_edges(tree: DependencyTree, extra_edges: List[Edge]) -> List[Edge]:
    """Let "X's dependent, also known as Y" point the governor at Y as well.

    A cheap stand-in for coreference: every extra edge into a word that takes
    part in an apposition is copied onto the other side of the apposition.
    """
    augmented = list(extra_edges)
    for extra in extra_edges:
        apposed = [
            edge.governor
            for edge in tree.incoming(extra.dependent)
            if edge.relation == APPOS_RELATION
        ]
        apposed += [
            edge.dependent
            for edge in tree.outgoing(extra.dependent)
            if edge.relation == APPOS_RELATION
        ]
        for target in apposed:
            augmented.append(Edge(
                edge_id=tree.new_edge_id(),
                governor=extra.governor,
                dependent=target,
                relation=extra.relation,
                weight=extra.weight,
                is_extra=extra.is_extra,
            ))
    return augmented


def _remove_root_parents(tree: DependencyTree) -> None:
    for root in tree.roots:
        for edge in tree.incoming(root):
            tree.remove_edge(edge)


def _depths(tree: DependencyTree) -> Dict[int, int]:
    """Breadth-first distance of every reachable word from the nearest root."""
    depths = {root: 0 for root in tree.roots}
    fringe = deque(tree.roots)
    while fringe:
        node = fringe.popleft()
        for edge in tree.outgoing(node):
            if edge.dependent not in depths:
                depths[edge.dependent] = depths[node] + 1
                fringe.append(edge.dependent)
    return depths


def _edge_to_keep(incoming: List[Edge], depths: Dict[int, int]) -> Edge:
    # Only arcs from a shallower governor can never close a cycle
    dependent_depth = depths.get(incoming[0].dependent)
    if dependent_depth is not None:
        forward = [e for e in incoming if depths.get(e.governor, dependent_depth) < dependent_depth]
        incoming = forward or incoming
    # Prefer a real tree arc; otherwise the first one the parser gave us.
    for edge in incoming:
        if not edge.is_extra:
            return edge
    return incoming[0]


def _force_tree(tree: DependencyTree) -> None:
    max_rounds = 2 * len(tree) + 2
    for _ in range(max_rounds):
        changed = False

        depths = _depths(tree)
        for word in tree.words:
            incoming = tree.incoming(word.index)
            if len(incoming) > 1:
                keep = _edge_to_keep(incoming, depths)
                for edge in incoming:
                    if edge.edge_id != keep.edge_id:
                        tree.remove_edge(edge)
                        changed = True

        reachable = tree.reachable_from_roots()
        for word in tree.words:
            if word.index not in reachable:
                tree.remove_word(word.index)
                changed = True

        # Trimming may leave new punctuation leaves behind
        changed |= _remove_dangling_punctuation(tree)
        changed |= _remove_bad_edges(tree)

        if not changed:
            return

    raise TreeInvariantError(
        f"Could not turn the graph into a tree after {max_rounds} rounds: {tree!r}"
    )


def canonicalize_tree(tree: DependencyTree) -> List[Edge]:
    """Clean ``tree`` in place so that it satisfies the tree invariant.

    The steps run in order, each on the output of the previous one:

    1. Drop punctuation words (other than roots) that govern nothing.
    2. Drop self loops and ``punct`` arcs into leaves.
    3. Pull out extra arcs into words that have more than one head.
    4. Add apposition copies of those extra arcs.
    5. Drop arcs into the roots.
    6. Until nothing changes, keep one head per word (one closer to a root
       than the word itself if there is one), delete every word that is no
       longer reachable from a root and repeat steps 1 and 2.

    Parameters
    ----------
    tree : DependencyTree
        Graph to clean; modified in place

    Returns
    -------
    List[Edge]
        The extra arcs removed in step 3 plus the apposition arcs from step 4

    Raises
    ------
    TreeInvariantError
        If the result is still not a tree
    """
    if not tree.roots:
        raise TreeInvariantError("Cannot canonicalize a graph without roots")

    _remove_dangling_punctuation(tree)
    _remove_bad_edges(tree)
    extra_edges = _extract_extra_edges(tree)
    extra_edges = _add_apposition_edges(tree, extra_edges)
    _remove_root_parents(tree)
    _force_tree(tree)

    if not tree.is_tree():
        raise TreeInvariantError(f"Canonicalization produced a non-tree: {tree!r}")

    logger.debug(
        "Canonicalized tree with %d words, %d extra edges",
        len(tree), len(extra_edges),
    )
    return extra_edges


def index_extra_edges(extra_edges: List[Edge]) -> ExtraEdgeIndex:
    """Group extra edges by the index of their governor."""
    by_governor: Dict[int, List[Edge]] = defaultdict(list)
    for edge in extra_edges:
        by_governor[edge.governor].append(edge)
    return dict(by_governor)
