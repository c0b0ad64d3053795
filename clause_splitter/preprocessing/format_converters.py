"""Format converter module for exporting clause fragments."""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from conllu import TokenList, parse

from ..search.fragment import SentenceFragment

logger = logging.getLogger(__name__)


class FormatConverter:
    """Convert sentence fragments to CoNLL-U and JSON."""

    def to_json(self, fragment: SentenceFragment, fragment_id: Optional[str] = None) -> Dict:
        """
        Convert a fragment to a JSON-serializable dictionary.

        Token ids are the word indices of the original sentence, so a fragment
        can be lined up with the sentence it came from.

        Args:
            fragment: Clause fragment from the searcher
            fragment_id: Optional identifier to store with the fragment

        Returns:
            Dictionary with text, score, root and tokens
        """
        tree = fragment.tree
        root = fragment.root
        json_data = {
            'id': fragment_id,
            'text': fragment.text,
            'score': fragment.score,
            'root': root.index if root is not None else None,
            'tokens': []
        }

        for word in fragment.words:
            parent = tree.parent_edge(word.index)
            json_data['tokens'].append({
                'id': word.index,
                'text': word.word,
                'lemma': word.lemma,
                'tag': word.tag,
                'ner': word.ner,
                'head': parent.governor if parent is not None else 0,
                'dep': parent.relation if parent is not None else 'root',
                'synthetic': word.is_synthetic
            })

        return json_data

    def to_conllu_tokenlist(
        self,
        fragment: SentenceFragment,
        metadata: Optional[Dict[str, str]] = None
    ) -> TokenList:
        """
        Convert a fragment to a CoNLL-U TokenList.

        Words are renumbered 1..n in sentence order. The original index is kept
        in MISC as ``OrigId``, and cloned words are marked with ``Synthetic=Yes``.

        Args:
            fragment: Clause fragment from the searcher
            metadata: Extra sentence-level comments

        Returns:
            TokenList object from conllu library
        """
        words = fragment.words
        renumber = {word.index: position for position, word in enumerate(words, start=1)}
        tree = fragment.tree

        token_metadata = {'text': fragment.text, 'score': f"{fragment.score:.6f}"}
        token_metadata.update(metadata or {})

        tokens = []
        for word in words:
            parent = tree.parent_edge(word.index)
            misc = {'OrigId': str(word.index)}
            if word.ner != 'O':
                misc['NER'] = word.ner
            if word.is_synthetic:
                misc['Synthetic'] = 'Yes'

            tokens.append({
                'id': renumber[word.index],
                'form': word.word,
                'lemma': word.lemma or None,
                'upos': None,
                'xpos': word.tag or None,
                'feats': None,
                'head': renumber[parent.governor] if parent is not None else 0,
                'deprel': parent.relation if parent is not None else 'root',
                'deps': None,
                'misc': misc
            })

        return TokenList(tokens, token_metadata)

    def serialize_conllu(
        self,
        fragments: Iterable[SentenceFragment],
        metadata: Optional[Sequence[Dict[str, str]]] = None,
        sent_id_prefix: str = "fragment"
    ) -> str:
        """
        Serialize fragments as CoNLL-U text, one sentence per fragment.

        Args:
            fragments: Fragments to export
            metadata: Per-fragment comments; defaults to ``sent_id = <prefix>-<n>``
            sent_id_prefix: Prefix of the generated ``sent_id`` comments

        Returns:
            CoNLL-U text
        """
        fragments = list(fragments)
        if metadata is None:
            metadata = [{'sent_id': f"{sent_id_prefix}-{i}"} for i in range(1, len(fragments) + 1)]
        if len(metadata) != len(fragments):
            raise ValueError(f"Got {len(metadata)} metadata entries for {len(fragments)} fragments")
        return "".join(
            self.to_conllu_tokenlist(fragment, comments).serialize()
            for fragment, comments in zip(fragments, metadata)
        )

    def to_conllu(
        self,
        fragments: Iterable[SentenceFragment],
        output_path: str,
        metadata: Optional[Sequence[Dict[str, str]]] = None,
        sent_id_prefix: str = "fragment",
        validate: bool = True
    ) -> None:
        """
        Write fragments to a CoNLL-U file.

        Args:
            fragments: Fragments to export
            output_path: Path to save CoNLL-U file
            metadata: Per-fragment comments, as for :meth:`serialize_conllu`
            sent_id_prefix: Prefix of the generated ``sent_id`` comments
            validate: If True, re-parse the written file with conllu.parse()
        """
        fragments = list(fragments)
        text = self.serialize_conllu(fragments, metadata, sent_id_prefix)

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(text)

        if validate:
            self._validate_conllu_output(output_path, len(fragments))

    def to_json_records(
        self,
        fragments: Iterable[SentenceFragment],
        fragment_ids: Optional[Sequence[str]] = None
    ) -> List[Dict]:
        """Convert fragments to dictionaries; ids default to "1", "2", ..."""
        fragments = list(fragments)
        if fragment_ids is None:
            fragment_ids = [str(i) for i in range(1, len(fragments) + 1)]
        return [self.to_json(fragment, fid) for fragment, fid in zip(fragments, fragment_ids)]

    def to_json_file(
        self,
        fragments: Iterable[SentenceFragment],
        output_path: str,
        fragment_ids: Optional[Sequence[str]] = None
    ) -> None:
        """Write fragments to a JSON file as a list of dictionaries."""
        data = self.to_json_records(fragments, fragment_ids)
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _validate_conllu_output(self, output_path: str, expected: int) -> None:
        """Parse the written file back and check the sentence count."""
        with open(output_path, 'r', encoding='utf-8') as f:
            sentences = parse(f.read())
        if len(sentences) != expected:
            logger.warning(
                "CoNLL-U validation: expected %d sentences, parsed %d from %s",
                expected, len(sentences), output_path
            )
        else:
            logger.info("CoNLL-U validation passed: %d sentences in %s", expected, output_path)
