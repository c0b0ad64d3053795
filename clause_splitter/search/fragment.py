"""Sentence fragments: the clauses the searcher hands out."""

from dataclasses import dataclass
from typing import List, Optional

from ..trees.structures import DependencyTree, Word


@dataclass
class SentenceFragment:
    """A clause of a sentence, as a standalone dependency tree.

    Attributes
    ----------
    tree : DependencyTree
        Detached copy of part of the sentence, rooted at the clause head
    score : float
        Plausibility of the clause, between 0 and 1
    """

    tree: DependencyTree
    score: float = 1.0

    @property
    def words(self) -> List[Word]:
        return self.tree.sorted_words()

    @property
    def root(self) -> Optional[Word]:
        return self.tree.first_root() if self.tree.roots else None

    @property
    def text(self) -> str:
        return self.tree.text

    def __len__(self) -> int:
        return len(self.tree)

    def __str__(self) -> str:
        return self.text
