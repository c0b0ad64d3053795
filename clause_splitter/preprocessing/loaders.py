"""Build dependency trees from parser output.

Two sources are supported: CoNLL-U files (basic dependencies in HEAD/DEPREL,
enhanced dependencies in DEPS) and already parsed spaCy documents. Enhanced
arcs from a different head become extra edges; an enhanced arc from the basic
head refines the basic relation (e.g. "obl" becomes "obl:for").
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import conllu
from spacy.tokens import Doc, Span as SpacySpan

from ..training.dataset import TrainingExample
from ..training.oracle import Span
from ..trees.structures import DependencyTree, Word
from ..utils.validators import TrainingExampleValidator

logger = logging.getLogger(__name__)


def _enhanced_arcs(token: Dict[str, Any]) -> List[Tuple[str, int]]:
    """(relation, head) pairs from the DEPS column, skipping empty nodes."""
    deps = token.get("deps")
    if not isinstance(deps, list):
        return []
    arcs = []
    for relation, head in deps:
        if isinstance(head, int):
            arcs.append((relation, head))
    return arcs


def tree_from_conllu(sentence: conllu.TokenList) -> DependencyTree:
    """Convert one CoNLL-U sentence to a (not yet canonical) dependency graph.

    Parameters
    ----------
    sentence : conllu.TokenList
        Parsed sentence

    Returns
    -------
    DependencyTree
        Graph with basic arcs, extra arcs and the HEAD=0 tokens as roots
    """
    tokens = [t for t in sentence if isinstance(t["id"], int)]
    tree = DependencyTree()

    for t in tokens:
        misc = t.get("misc") or {}
        tree.add_word(Word(
            index=t["id"],
            word=t["form"],
            lemma=t.get("lemma") or t["form"],
            tag=t.get("xpos") or t.get("upos") or "",
            ner=misc.get("NER") or misc.get("Entity") or "O",
        ))

    # Basic dependencies
    for t in tokens:
        head = t.get("head")
        if head is None:
            continue
        if head == 0:
            tree.add_root(t["id"])
            continue
        relation = t["deprel"]
        for enhanced_rel, enhanced_head in _enhanced_arcs(t):
            if enhanced_head == head and enhanced_rel.startswith(relation):
                relation = enhanced_rel
                break
        tree.connect(head, t["id"], relation)

    # Enhanced dependencies from other heads
    for t in tokens:
        for relation, head in _enhanced_arcs(t):
            if head == 0 or head == t.get("head") or head not in tree:
                continue
            tree.connect(head, t["id"], relation, is_extra=True)

    return tree


def tree_from_spacy(sent: Union[Doc, SpacySpan]) -> DependencyTree:
    """Convert a parsed spaCy sentence (or single-sentence Doc) to a graph."""
    offset = sent.start if isinstance(sent, SpacySpan) else 0
    tree = DependencyTree()

    for token in sent:
        tree.add_word(Word(
            index=token.i - offset + 1,
            word=token.text,
            lemma=token.lemma_ or token.text,
            tag=token.tag_ or token.pos_,
            ner=token.ent_type_ or "O",
        ))

    for token in sent:
        index = token.i - offset + 1
        if token.head.i == token.i:
            tree.add_root(index)
        else:
            tree.connect(token.head.i - offset + 1, index, token.dep_)

    return tree


def iter_conllu(filepath: str) -> Iterator[conllu.TokenList]:
    """Lazily parse the sentences of a CoNLL-U file."""
    with open(filepath, "r", encoding="utf-8") as f:
        yield from conllu.parse_incr(f)


def load_conllu_trees(filepath: str) -> List[Tuple[DependencyTree, Dict[str, str]]]:
    """Load every sentence of a CoNLL-U file with its metadata."""
    return [(tree_from_conllu(sent), dict(sent.metadata)) for sent in iter_conllu(filepath)]


def example_from_conllu(sentence: conllu.TokenList) -> Optional[TrainingExample]:
    """Read a training example from ``# subject = s:e`` / ``# object = s:e`` metadata."""
    metadata = sentence.metadata
    if "subject" not in metadata or "object" not in metadata:
        return None
    try:
        subject_span = Span.parse(metadata["subject"])
        object_span = Span.parse(metadata["object"])
    except ValueError as e:
        logger.warning("Sentence %s: %s", metadata.get("sent_id"), e)
        return None

    return TrainingExample(
        tree=tree_from_conllu(sentence),
        subject_span=subject_span,
        object_span=object_span,
        sentence_id=metadata.get("sent_id"),
        text=metadata.get("text", ""),
    )


def load_training_examples(
    filepath: Union[str, Path],
    validator: Optional[TrainingExampleValidator] = None,
) -> List[TrainingExample]:
    """Load training examples from a CoNLL-U file.

    Sentences without usable span metadata are skipped. Examples whose spans
    do not fit the sentence are kept (they simply produce no positive datums)
    but reported.

    Parameters
    ----------
    filepath : Union[str, Path]
        CoNLL-U file with ``subject`` and ``object`` metadata
    validator : Optional[TrainingExampleValidator]
        Validator to report suspicious examples with

    Returns
    -------
    List[TrainingExample]
        Parsed examples
    """
    validator = validator or TrainingExampleValidator()
    examples = []
    n_skipped = 0

    for sentence in iter_conllu(str(filepath)):
        example = example_from_conllu(sentence)
        if example is None:
            n_skipped += 1
            continue
        examples.append(example)

    if n_skipped:
        logger.warning("Skipped %d sentences without subject/object spans", n_skipped)

    report = validator.validate_dataset(examples)
    for invalid in report["issues"]:
        logger.warning("Example %s: %s", invalid["id"], "; ".join(invalid["issues"]))
    logger.info(
        "Loaded %d training examples (%d valid) from %s",
        report["total_examples"], report["valid_examples"], filepath,
    )
    return examples
