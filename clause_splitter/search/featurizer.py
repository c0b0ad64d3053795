"""Features of a single search step.

The feature names are the interface to trained weights: changing a format
string silently invalidates every model trained before the change.
"""

from collections import Counter
from typing import Callable, Dict

from ..config import OBJECT_RELATION_MARKER, SUBJECT_RELATION_MARKER
from ..exceptions import ModelLoadError
from .actions import Action
from .state import SearchState

Featurizer = Callable[[SearchState, Action, SearchState], Counter]


def _flag(value: bool) -> str:
    return "true" if value else "false"


def default_featurizer(
    from_state: SearchState, action: Action, to_state: SearchState
) -> Counter:
    """Featurize the step ``from_state`` --``action``--> ``to_state``.

    Parameters
    ----------
    from_state : SearchState
        State being expanded
    action : Action
        Action taken
    to_state : SearchState
        Resulting state

    Returns
    -------
    Counter
        Feature name to count
    """
    signature = action.signature
    tree = to_state.tree
    edge = to_state.edge
    edge_rel = "root" if edge is None else edge.relation
    edge_rel_short = "root" if edge is None else edge.short_relation

    feats: Counter = Counter()

    # 1. edge taken
    feats[f"{signature}&edge:{edge_rel}"] += 1
    feats[f"{signature}&edge_type:{edge_rel_short}"] += 1

    # 2. last edge taken
    if from_state.edge is None:
        feats[f"{signature}&at_root"] += 1
        feats[f"{signature}&at_root&root_pos:{tree.first_root().tag}"] += 1
    else:
        feats[f"{signature}&not_root"] += 1
        feats[f"{signature}&last_edge:{from_state.edge.short_relation}"] += 1

    if edge is None:
        return feats

    parent_has_subj = parent_has_obj = False
    child_has_subj = child_has_obj = False

    # 3. other edges at the parent
    for neighbor in tree.outgoing(edge.governor):
        if neighbor.edge_id == edge.edge_id:
            continue
        rel = neighbor.relation
        parent_has_subj |= SUBJECT_RELATION_MARKER in rel
        parent_has_obj |= OBJECT_RELATION_MARKER in rel
        feats[f"{signature}&parent_neighbor:{rel}"] += 1
        feats[f"{signature}&edge_type:{edge_rel_short}&parent_neighbor:{rel}"] += 1

    # 4. edges at the child
    for neighbor in tree.outgoing(edge.dependent):
        rel = neighbor.relation
        child_has_subj |= SUBJECT_RELATION_MARKER in rel
        child_has_obj |= OBJECT_RELATION_MARKER in rel
        feats[f"{signature}&child_neighbor:{rel}"] += 1
        feats[f"{signature}&edge_type:{edge_rel_short}&child_neighbor:{rel}"] += 1

    # 5. subject / object summary
    feats[f"{signature}&parent_neighbor_subj:{_flag(parent_has_subj)}"] += 1
    feats[f"{signature}&parent_neighbor_obj:{_flag(parent_has_obj)}"] += 1
    feats[f"{signature}&child_neighbor_subj:{_flag(child_has_subj)}"] += 1
    feats[f"{signature}&child_neighbor_obj:{_flag(child_has_obj)}"] += 1

    # 6. POS tags
    parent_pos = tree.word(edge.governor).tag
    child_pos = tree.word(edge.dependent).tag
    feats[f"{signature}&parent_pos:{parent_pos}"] += 1
    feats[f"{signature}&child_pos:{child_pos}"] += 1
    feats[f"{signature}&pos_signature:{parent_pos}->{child_pos}"] += 1
    feats[f"{signature}&edge_type:{edge_rel_short}&pos_signature:{parent_pos}->{child_pos}"] += 1

    return feats


# Featurizers that can be named in a serialized model
FEATURIZERS: Dict[str, Featurizer] = {
    "default": default_featurizer,
}


def get_featurizer(name: str) -> Featurizer:
    try:
        return FEATURIZERS[name]
    except KeyError:
        raise ModelLoadError(
            f"Unknown featurizer '{name}', expected one of {sorted(FEATURIZERS)}"
        ) from None


def featurizer_name(featurizer: Featurizer) -> str:
    """Registry name of ``featurizer``; it must be registered to be saved."""
    for name, candidate in FEATURIZERS.items():
        if candidate is featurizer:
            return name
    raise ValueError(f"Featurizer {featurizer!r} is not registered in FEATURIZERS")
