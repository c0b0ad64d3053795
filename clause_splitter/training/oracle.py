"""Labeling search output against gold (subject, object) spans.

At training time a relation extractor runs over every candidate clause. A
clause is a good one when some extraction from it recovers the gold subject
and object of the training sentence.
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence, Tuple

from ..config import OBJECT_RELATION_MARKER, PREPOSITION_RELATION_PREFIX, SUBJECT_RELATION_MARKER
from ..trees.structures import DependencyTree, Word

_SPAN_PATTERN = re.compile(r"^\s*(-?\d+)\s*[:,]\s*(-?\d+)\s*$")


@dataclass(frozen=True)
class Span:
    """Token span ``[start, end)`` with 0-based offsets."""

    start: int
    end: int

    def contains(self, other: "Span") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __len__(self) -> int:
        return max(0, self.end - self.start)

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"

    @classmethod
    def from_words(cls, indices: Iterable[int]) -> "Span":
        """Smallest span covering the given 1-based word indices."""
        indices = list(indices)
        if not indices:
            raise ValueError("Cannot build a span from no words")
        return cls(min(indices) - 1, max(indices))

    @classmethod
    def parse(cls, text: str) -> "Span":
        """Parse ``"start:end"`` (or ``"start,end"``)."""
        match = _SPAN_PATTERN.match(text)
        if not match:
            raise ValueError(f"Not a token span: '{text}'")
        return cls(int(match.group(1)), int(match.group(2)))


# tree -> [(subject span, object span), ...]
RelationOracle = Callable[[DependencyTree], List[Tuple[Span, Span]]]


def extract_ner(tokens: Dict[int, Word], span: Span) -> Span:
    """Grow ``span`` to cover the named entity it is part of.

    The most frequent non-"O" NER tag inside the span decides the entity; the
    span is extended left and right over neighbouring tokens with that tag.
    Spans without any entity token are returned unchanged.

    Parameters
    ----------
    tokens : Dict[int, Word]
        Sentence tokens keyed by 0-based offset
    span : Span
        Span to grow

    Returns
    -------
    Span
        The (possibly) enlarged span
    """
    tags = Counter(
        tokens[i].ner
        for i in range(span.start, span.end)
        if i in tokens and tokens[i].ner != "O"
    )
    if not tags:
        return span
    entity_tag = tags.most_common(1)[0][0]

    start, end = span.start, span.end
    while start - 1 in tokens and tokens[start - 1].ner == entity_tag:
        start -= 1
    while end in tokens and tokens[end].ner == entity_tag:
        end += 1
    return Span(start, end)


def token_offsets(tree: DependencyTree) -> Dict[int, Word]:
    """Map 0-based token offsets to the words of ``tree``."""
    return {word.index - 1: word for word in tree.sorted_words() if not word.is_synthetic}


def is_correct_extraction(
    subject_guess: Span, object_guess: Span, subject_gold: Span, object_gold: Span
) -> bool:
    """Whether a guessed (subject, object) pair recovers the gold pair.

    An exact match or a guess containing the gold span both count, and the
    roles may be swapped.
    """
    return (
        (subject_guess.contains(subject_gold) and object_guess.contains(object_gold))
        or (subject_guess.contains(object_gold) and object_guess.contains(subject_gold))
    )


def label_extractions(
    extractions: Sequence[Tuple[Span, Span]],
    tokens: Dict[int, Word],
    subject_gold: Span,
    object_gold: Span,
) -> bool:
    """True if any extraction is correct once every span is grown to its entity."""
    subject_gold = extract_ner(tokens, subject_gold)
    object_gold = extract_ner(tokens, object_gold)
    return any(
        is_correct_extraction(
            extract_ner(tokens, subject_guess),
            extract_ner(tokens, object_guess),
            subject_gold,
            object_gold,
        )
        for subject_guess, object_guess in extractions
    )


class DependencyTripleOracle:
    """Minimal relation extractor reading arguments off the clause root.

    Every subject dependent of the root is paired with every object or
    prepositional dependent; each argument spans its whole subtree.

    Parameters
    ----------
    object_prefixes : Tuple[str, ...]
        Relation prefixes (besides relations containing "obj") that count as objects
    """

    DEFAULT_OBJECT_PREFIXES = (PREPOSITION_RELATION_PREFIX, "obl", "nmod", "attr")

    def __init__(self, object_prefixes: Tuple[str, ...] = DEFAULT_OBJECT_PREFIXES):
        self.object_prefixes = object_prefixes

    def _is_object(self, relation: str) -> bool:
        return OBJECT_RELATION_MARKER in relation or relation.startswith(self.object_prefixes)

    def __call__(self, tree: DependencyTree) -> List[Tuple[Span, Span]]:
        extractions = []
        for root in tree.roots:
            subjects, objects = [], []
            for edge in tree.outgoing(root):
                if SUBJECT_RELATION_MARKER in edge.relation:
                    subjects.append(edge.dependent)
                elif self._is_object(edge.relation):
                    objects.append(edge.dependent)

            for subj in subjects:
                subject_span = Span.from_words(tree.descendants(subj))
                for obj in objects:
                    extractions.append((subject_span, Span.from_words(tree.descendants(obj))))
        return extractions
