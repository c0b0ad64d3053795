"""Best-first search for the clauses of a sentence.

Usage at inference time::

    factory = clause_splitter.training.persistence.factory("model.pkl")
    searcher = factory(tree)
    fragments = searcher.top_clauses(0.5)

For training, see :mod:`clause_splitter.training.trainer`.
"""

import heapq
import itertools
import logging
import math
from collections import Counter
from dataclasses import dataclass, replace
from functools import partial
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from scipy.special import expit

from ..config import (
    DEFAULT_MAX_TICKS,
    PREPOSITION_RELATION_PREFIX,
    SUBJECT_RELATION_MARKER,
)
from ..exceptions import TreeInvariantError, UnsupportedScorerError
from ..trees.canonicalize import canonicalize_tree, index_extra_edges
from ..trees.primitives import graft_disjoint_subtree
from ..trees.structures import DependencyTree, Edge, Word
from .actions import DEFAULT_ACTIONS, Action
from .featurizer import Featurizer, get_featurizer
from .fragment import SentenceFragment
from .state import SearchState

logger = logging.getLogger(__name__)

# (log probability, features along the path, lazy fragment) -> keep searching?
FragmentCallback = Callable[[float, List[Counter], Callable[[], SentenceFragment]], bool]


@dataclass
class ClauseModel:
    """A trained clause boundary classifier and the featurizer it was trained with.

    Attributes
    ----------
    classifier : Any
        Trained scorer; the search needs ``is_linear``, ``weights`` and ``bias``
    featurizer_name : str
        Key of the featurizer in :data:`clause_splitter.search.featurizer.FEATURIZERS`
    """

    classifier: Any
    featurizer_name: str = "default"

    @property
    def featurizer(self) -> Featurizer:
        return get_featurizer(self.featurizer_name)


def dot_product(features: Mapping[str, float], weights: Mapping[str, float]) -> float:
    return sum(count * weights.get(name, 0.0) for name, count in features.items())


def _log(probability: float) -> float:
    return math.log(probability) if probability > 0 else float("-inf")


class ClauseSearcher:
    """Search problem for finding the clauses of one sentence.

    The input tree is copied and canonicalized; the copy is never modified
    afterwards. Every fragment is built from a fresh copy of it.

    Parameters
    ----------
    tree : DependencyTree
        Dependency graph of the sentence
    model : Optional[ClauseModel]
        Trained classifier; without one only :meth:`search_with_weights` works
    """

    def __init__(self, tree: DependencyTree, model: Optional[ClauseModel] = None):
        self.sentence_length = max((w.index for w in tree.words), default=0)
        self.tree = tree.copy()
        self.model = model

        extra_edges = canonicalize_tree(self.tree)
        self.extra_edges_by_governor: Dict[int, List[Edge]] = index_extra_edges(extra_edges)
        self.edge_index: Dict[int, int] = {
            edge.edge_id: position for position, edge in enumerate(self.tree.edges)
        }

    def mock_word(self, template: int, word: str, tag: str) -> Word:
        """A synthetic word modelled on ``template``, to be attached with :func:`add_word`.

        Its index lies past the end of the sentence, so it never collides with
        a real word.
        """
        return replace(
            self.tree.word(template),
            index=self.sentence_length + 5,
            word=word,
            lemma=word,
            tag=tag,
            ner="O",
            is_synthetic=True,
        )

    def top_clauses(
        self, threshold: float, max_ticks: int = DEFAULT_MAX_TICKS
    ) -> List[SentenceFragment]:
        """Collect clauses until the first one scoring below ``threshold``."""
        results: List[SentenceFragment] = []

        def collect(log_prob, features, fragment_supplier):
            if math.exp(log_prob) < threshold:
                return False
            results.append(fragment_supplier())
            return True

        self.search(collect, max_ticks=max_ticks)
        return results

    def search(self, callback: FragmentCallback, max_ticks: int = DEFAULT_MAX_TICKS) -> None:
        """Search with the model's weights and featurizer.

        Raises
        ------
        UnsupportedScorerError
            If there is no model or its classifier is not linear
        """
        if self.model is None:
            raise UnsupportedScorerError(
                "only linear scorers are supported, and this searcher has no scorer"
            )
        classifier = self.model.classifier
        if not getattr(classifier, "is_linear", False):
            raise UnsupportedScorerError(
                f"only linear scorers are supported, got {type(classifier).__name__}"
            )
        self.search_with_weights(
            callback,
            classifier.weights,
            self.model.featurizer,
            max_ticks=max_ticks,
            bias=classifier.bias,
        )

    def search_with_weights(
        self,
        callback: FragmentCallback,
        weights: Mapping[str, float],
        featurizer: Featurizer,
        max_ticks: int = DEFAULT_MAX_TICKS,
        actions: Iterable[Action] = DEFAULT_ACTIONS,
        bias: float = 0.0,
    ) -> None:
        """Search every root of the tree with explicit weights.

        With empty ``weights`` every step has probability 0.5, which makes the
        search exhaustive (up to ``max_ticks``); training relies on that.

        Parameters
        ----------
        callback : FragmentCallback
            Called once per fragment with the cumulative log probability, the
            features of every step on the path (the last one is the most
            recent) and a zero-argument function building the fragment.
            Returning False stops the whole search.
        weights : Mapping[str, float]
            Feature weights of the clause boundary classifier
        featurizer : Featurizer
            Featurizer matching ``weights``
        max_ticks : int
            Maximum number of queue pops per root
        actions : Iterable[Action]
            Action space
        bias : float
            Intercept added to every dot product
        """
        actions = tuple(actions)
        for root in self.tree.roots:
            if not self._search_from(root, callback, weights, featurizer, actions, max_ticks, bias):
                return

    def _search_from(
        self,
        root: int,
        callback: FragmentCallback,
        weights: Mapping[str, float],
        featurizer: Featurizer,
        actions: Tuple[Action, ...],
        max_ticks: int,
        bias: float,
    ) -> bool:
        """Run the best-first search from ``root``; False if the callback stopped it."""
        # (negated priority, insertion order, state, features so far)
        fringe: List[Tuple[float, int, SearchState, Tuple[Counter, ...]]] = []
        order = itertools.count()
        seen_words: Set[int] = set()

        heapq.heappush(fringe, (-0.0, next(order), SearchState.initial(self.tree), ()))
        ticks = 0

        while fringe:
            ticks += 1
            if ticks > max_ticks:
                logger.warning("Timed out on search with %d ticks", ticks)
                return True

            neg_log_prob, _, state, features_so_far = heapq.heappop(fringe)
            log_prob = -neg_log_prob
            frontier = state.frontier(root)
            if not state.is_done and frontier in seen_words:
                continue

            fragment_supplier = partial(self._materialize, state, log_prob)
            if not callback(log_prob, list(features_so_far), fragment_supplier):
                return False
            if state.is_done:
                continue

            # Auxiliary context at the frontier word
            pp_edges: List[Optional[Edge]] = [None]
            subject: Optional[Edge] = None
            for aux_edge in self.tree.outgoing(frontier):
                if aux_edge.relation.startswith(PREPOSITION_RELATION_PREFIX):
                    pp_edges.append(aux_edge)
                elif subject is None and SUBJECT_RELATION_MARKER in aux_edge.relation:
                    subject = aux_edge

            for action in actions:
                for outgoing_edge in self.tree.outgoing(frontier):
                    if not action.prerequisites_met(self.tree, outgoing_edge):
                        continue

                    # Keep only the best preposition attachment to carry along
                    best_probability = -1.0
                    best: Optional[Tuple[SearchState, Counter]] = None
                    for pp_edge in pp_edges:
                        candidate = action.apply_to(
                            self.tree, state, outgoing_edge, subject, pp_edge, self.edge_index
                        )
                        if candidate is None:
                            continue
                        step_features = featurizer(state, action, candidate)
                        probability = float(expit(dot_product(step_features, weights) + bias))
                        if probability > best_probability:
                            best_probability = probability
                            best = (candidate, step_features)

                    if best is not None and best[0].edge.dependent not in seen_words:
                        heapq.heappush(fringe, (
                            -(log_prob + _log(best_probability)),
                            next(order),
                            best[0],
                            features_so_far + (best[1],),
                        ))

            seen_words.add(frontier)

        return True

    def _materialize(self, state: SearchState, log_prob: float) -> SentenceFragment:
        tree = state.materialize()
        # Put the extra edges back, wherever that keeps the fragment a tree
        for new_root in tree.roots:
            ignored = [edge.edge_id for edge in self.tree.incoming(new_root)]
            for extra_edge in self.extra_edges_by_governor.get(new_root, ()):
                graft_disjoint_subtree(
                    tree, new_root, extra_edge.relation, self.tree, extra_edge.dependent, ignored
                )
        if not tree.is_tree():
            raise TreeInvariantError(f"Fragment is not a tree: {tree!r}")
        return SentenceFragment(tree=tree, score=math.exp(log_prob))


def searcher_factory(model: ClauseModel) -> Callable[[DependencyTree], ClauseSearcher]:
    """Bind ``model`` so that a searcher can be made from just a tree."""
    return partial(ClauseSearcher, model=model)
