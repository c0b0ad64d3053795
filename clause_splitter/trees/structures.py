"""Dependency tree data structures.

Words and edges are identified by stable integers: a word by its token index
in the sentence (1-based, as in CoNLL-U) and an edge by an id handed out by the
tree it was created in. Copies of a tree keep those ids, so a search state can
refer to "edge 7" and find the same edge in every copy.
"""

import re
from collections import deque
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple


_RELATION_SUBTYPE = re.compile(r"[_:]")


def short_relation(relation: str) -> str:
    """Return the relation without its subtype ("prep_for" -> "prep")."""
    return _RELATION_SUBTYPE.split(relation, maxsplit=1)[0]


@dataclass(frozen=True)
class Word:
    """A token of the sentence.

    Attributes
    ----------
    index : int
        Position of the token in the sentence (1-based)
    word : str
        Surface form
    lemma : str
        Lemma
    tag : str
        Part-of-speech tag
    ner : str
        Named entity tag, "O" outside of entities
    is_synthetic : bool
        True for words that were not in the original sentence
    """

    index: int
    word: str
    lemma: str = ""
    tag: str = ""
    ner: str = "O"
    is_synthetic: bool = False

    def __str__(self) -> str:
        return f"{self.word}-{self.index}"


@dataclass(frozen=True)
class Edge:
    """A dependency arc from ``governor`` to ``dependent``.

    Attributes
    ----------
    edge_id : int
        Stable id, unique within the tree (and its copies)
    governor : int
        Index of the head word
    dependent : int
        Index of the dependent word
    relation : str
        Dependency label (e.g., "nsubj", "prep_for")
    weight : float
        Arc weight; grafted arcs carry -inf
    is_extra : bool
        True for secondary (non tree-defining) arcs
    """

    edge_id: int
    governor: int
    dependent: int
    relation: str
    weight: float = 1.0
    is_extra: bool = False

    @property
    def short_relation(self) -> str:
        return short_relation(self.relation)

    def __str__(self) -> str:
        return f"{self.governor} --({self.relation})--> {self.dependent}"


class DependencyTree:
    """A mutable dependency graph with designated roots.

    Despite the name, nothing stops an arbitrary graph from being stored here;
    :meth:`is_tree` checks the tree invariant and
    :func:`clause_splitter.trees.canonicalize.canonicalize_tree` enforces it.

    Parameters
    ----------
    words : Iterable[Word]
        Words of the graph
    edges : Iterable[Edge]
        Edges between those words
    roots : Iterable[int]
        Indices of the root words
    """

    def __init__(
        self,
        words: Iterable[Word] = (),
        edges: Iterable[Edge] = (),
        roots: Iterable[int] = (),
    ):
        self._words: Dict[int, Word] = {}
        self._edges: Dict[int, Edge] = {}
        self._outgoing: Dict[int, List[int]] = {}
        self._incoming: Dict[int, List[int]] = {}
        self._roots: List[int] = []
        self._next_edge_id = 0

        for word in words:
            self.add_word(word)
        for edge in edges:
            self.add_edge(edge)
        for root in roots:
            self.add_root(root)

    # -- words -------------------------------------------------------------

    def add_word(self, word: Word) -> None:
        """Add a word; adding the same word twice is a no-op."""
        existing = self._words.get(word.index)
        if existing is not None:
            if existing != word:
                raise ValueError(f"Word index {word.index} already holds {existing}")
            return
        self._words[word.index] = word
        self._outgoing[word.index] = []
        self._incoming[word.index] = []

    def remove_word(self, index: int) -> None:
        """Remove a word together with every edge touching it."""
        if index not in self._words:
            return
        for edge_id in self._outgoing[index] + self._incoming[index]:
            if edge_id in self._edges:
                self.remove_edge(edge_id)
        del self._words[index]
        del self._outgoing[index]
        del self._incoming[index]
        if index in self._roots:
            self._roots.remove(index)

    def word(self, index: int) -> Word:
        return self._words[index]

    def contains_word(self, index: int) -> bool:
        return index in self._words

    def __contains__(self, index: object) -> bool:
        return index in self._words

    @property
    def words(self) -> List[Word]:
        return list(self._words.values())

    def sorted_words(self) -> List[Word]:
        return sorted(self._words.values(), key=lambda w: w.index)

    def __len__(self) -> int:
        return len(self._words)

    def __iter__(self) -> Iterator[Word]:
        return iter(self.sorted_words())

    # -- edges -------------------------------------------------------------

    def new_edge_id(self) -> int:
        """Reserve an edge id that is unused in this tree and its ancestors."""
        edge_id = self._next_edge_id
        self._next_edge_id += 1
        return edge_id

    def add_edge(self, edge: Edge) -> Edge:
        """Add an existing edge, keeping its id."""
        existing = self._edges.get(edge.edge_id)
        if existing is not None:
            if existing != edge:
                raise ValueError(f"Edge id {edge.edge_id} already holds {existing}")
            return existing
        for index in (edge.governor, edge.dependent):
            if index not in self._words:
                raise ValueError(f"Edge {edge} refers to missing word {index}")

        self._edges[edge.edge_id] = edge
        self._outgoing[edge.governor].append(edge.edge_id)
        self._incoming[edge.dependent].append(edge.edge_id)
        self._next_edge_id = max(self._next_edge_id, edge.edge_id + 1)
        return edge

    def connect(
        self,
        governor: int,
        dependent: int,
        relation: str,
        weight: float = 1.0,
        is_extra: bool = False,
    ) -> Edge:
        """Create a new edge with a fresh id and add it."""
        edge = Edge(
            edge_id=self.new_edge_id(),
            governor=governor,
            dependent=dependent,
            relation=relation,
            weight=weight,
            is_extra=is_extra,
        )
        return self.add_edge(edge)

    def remove_edge(self, edge: "Edge | int") -> None:
        edge_id = edge.edge_id if isinstance(edge, Edge) else edge
        removed = self._edges.pop(edge_id, None)
        if removed is None:
            return
        self._outgoing[removed.governor].remove(edge_id)
        self._incoming[removed.dependent].remove(edge_id)

    def edge(self, edge_id: int) -> Edge:
        return self._edges[edge_id]

    def has_edge(self, edge: "Edge | int") -> bool:
        edge_id = edge.edge_id if isinstance(edge, Edge) else edge
        return edge_id in self._edges

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges.values())

    def outgoing(self, index: int) -> List[Edge]:
        """Edges leaving ``index``, in insertion order."""
        return [self._edges[i] for i in self._outgoing.get(index, ())]

    def incoming(self, index: int) -> List[Edge]:
        """Edges entering ``index``, in insertion order."""
        return [self._edges[i] for i in self._incoming.get(index, ())]

    def parent_edge(self, index: int) -> Optional[Edge]:
        incoming = self.incoming(index)
        return incoming[0] if incoming else None

    # -- roots -------------------------------------------------------------

    @property
    def roots(self) -> Tuple[int, ...]:
        return tuple(self._roots)

    def add_root(self, index: int) -> None:
        if index not in self._words:
            raise ValueError(f"Root {index} is not a word of the tree")
        if index not in self._roots:
            self._roots.append(index)

    def set_root(self, index: int) -> None:
        """Make ``index`` the one and only root."""
        if index not in self._words:
            raise ValueError(f"Root {index} is not a word of the tree")
        self._roots = [index]

    def first_root(self) -> Word:
        if not self._roots:
            raise ValueError("Tree has no root")
        return self._words[self._roots[0]]

    # -- traversal ---------------------------------------------------------

    def descendants(self, index: int, ignored_edges: Iterable[int] = ()) -> List[int]:
        """Breadth-first list of ``index`` and every word below it."""
        ignored = set(ignored_edges)
        seen = {index}
        order = [index]
        fringe = deque([index])
        while fringe:
            node = fringe.popleft()
            for edge in self.outgoing(node):
                if edge.edge_id in ignored or edge.dependent in seen:
                    continue
                seen.add(edge.dependent)
                order.append(edge.dependent)
                fringe.append(edge.dependent)
        return order

    def reachable_from_roots(self) -> Set[int]:
        reachable: Set[int] = set()
        for root in self._roots:
            reachable.update(self.descendants(root))
        return reachable

    def is_tree(self) -> bool:
        """Check the tree invariant.

        Every root has no incoming edge, every other word exactly one, and
        every word hangs off some root.
        """
        for index in self._words:
            n_incoming = len(self._incoming[index])
            if index in self._roots:
                if n_incoming != 0:
                    return False
            elif n_incoming != 1:
                return False
        return len(self.reachable_from_roots()) == len(self._words)

    # -- misc --------------------------------------------------------------

    def copy(self) -> "DependencyTree":
        """Return an independent copy sharing the (immutable) words and edges."""
        clone = DependencyTree.__new__(DependencyTree)
        clone._words = dict(self._words)
        clone._edges = dict(self._edges)
        clone._outgoing = {k: list(v) for k, v in self._outgoing.items()}
        clone._incoming = {k: list(v) for k, v in self._incoming.items()}
        clone._roots = list(self._roots)
        clone._next_edge_id = self._next_edge_id
        return clone

    @property
    def text(self) -> str:
        return " ".join(w.word for w in self.sorted_words())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DependencyTree):
            return NotImplemented
        return (
            self._words == other._words
            and self._edges == other._edges
            and self._roots == other._roots
        )

    __hash__ = None

    def __repr__(self) -> str:
        edges = ", ".join(str(e) for e in self._edges.values())
        return f"DependencyTree(roots={self._roots}, edges=[{edges}])"
