"""
Matching of input entities against reference entities.

Plain identifiers (proteins, genes, Ensembl ids, variants) match by
exact key lookup in a static relation. Proteoforms match under a
configurable policy that tolerates uncertainty in PTM site coordinates:

- EXACT: the two modification sets correspond one-to-one
- ONE: at least one modification is shared
- SUPERSET: the input carries every modification of the reference

Two coordinates correspond when either is unknown or they differ by at
most ``margin`` residues.
"""

from collections import defaultdict
from dataclasses import dataclass
from typing import Hashable, Iterable, Mapping, TypeVar

import numpy as np
from scipy import sparse
from scipy.sparse.csgraph import maximum_bipartite_matching

from pathway_matcher.config import EntityKind, MatchType, validate_margin
from pathway_matcher.proteoform import Modification, Proteoform

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class MatchConfig:
    """Proteoform matching settings.

    Attributes:
        match_type: Matching policy
        margin: Maximum distance between two PTM sites considered equal
        use_subsequence_ranges: Also compare start/end coordinates
        strict_isoforms: Treat isoform suffixes as part of the accession
            (otherwise ``P08235-2`` and ``P08235`` are the same protein)
    """

    match_type: MatchType = MatchType.SUPERSET
    margin: int = 0
    use_subsequence_ranges: bool = False
    strict_isoforms: bool = False

    def __post_init__(self):
        object.__setattr__(self, "match_type", MatchType.parse(self.match_type))
        object.__setattr__(self, "margin", validate_margin(self.margin))


def coordinates_match(a: int | None, b: int | None, margin: int) -> bool:
    """Unknown coordinates match anything; known ones must be within margin."""
    if a is None or b is None:
        return True
    return abs(a - b) <= margin


def modifications_match(a: Modification, b: Modification, margin: int) -> bool:
    return a.type == b.type and coordinates_match(a.coordinate, b.coordinate, margin)


def _has_counterpart(mod: Modification, others: Iterable[Modification], margin: int) -> bool:
    return any(modifications_match(mod, other, margin) for other in others)


def _compatibility_matrix(
    rows: tuple[Modification, ...], cols: tuple[Modification, ...], margin: int
) -> sparse.csr_matrix:
    """Sparse bipartite graph: entry (i, j) set when rows[i] matches cols[j]."""
    pairs = [
        (i, j)
        for i, a in enumerate(rows)
        for j, b in enumerate(cols)
        if modifications_match(a, b, margin)
    ]
    data = np.ones(len(pairs), dtype=np.int8)
    row_idx = [i for i, _ in pairs]
    col_idx = [j for _, j in pairs]
    return sparse.csr_matrix((data, (row_idx, col_idx)), shape=(len(rows), len(cols)))


def _exact_correspondence(
    a: tuple[Modification, ...], b: tuple[Modification, ...], margin: int
) -> bool:
    """True if a perfect one-to-one pairing between a and b exists."""
    if len(a) != len(b):
        return False
    if not a:
        return True
    graph = _compatibility_matrix(a, b, margin)
    if np.any(np.diff(graph.indptr) == 0):
        return False
    assignment = maximum_bipartite_matching(graph, perm_type="column")
    return bool(np.all(assignment >= 0))


def proteoforms_match(iP: Proteoform, rP: Proteoform, config: MatchConfig) -> bool:
    """
    Decide whether input proteoform iP is equivalent to reference rP.

    Args:
        iP: Input proteoform
        rP: Reference proteoform
        config: Matching settings

    Returns:
        True if the proteoforms are equivalent under config.match_type
    """
    if config.strict_isoforms:
        if iP.accession != rP.accession:
            return False
    elif iP.base_accession != rP.base_accession:
        return False

    if config.use_subsequence_ranges:
        if not coordinates_match(iP.start, rP.start, config.margin):
            return False
        if not coordinates_match(iP.end, rP.end, config.margin):
            return False

    margin = config.margin
    if config.match_type is MatchType.EXACT:
        return _exact_correspondence(iP.modifications, rP.modifications, margin)

    if config.match_type is MatchType.ONE:
        return any(_has_counterpart(m, rP.modifications, margin) for m in iP.modifications)

    # SUPERSET: an input without modification annotation constrains nothing
    if not iP.modifications:
        return True
    return all(_has_counterpart(m, iP.modifications, margin) for m in rP.modifications)


class ProteoformIndex:
    """Reference proteoforms bucketed by base accession."""

    def __init__(self, proteoforms: Iterable[Proteoform]):
        buckets: dict[str, set[Proteoform]] = defaultdict(set)
        for proteoform in proteoforms:
            buckets[proteoform.base_accession].add(proteoform)
        self._buckets = {acc: sorted(members) for acc, members in buckets.items()}

    def __len__(self) -> int:
        return sum(len(b) for b in self._buckets.values())

    def __contains__(self, proteoform: Proteoform) -> bool:
        return proteoform in self._buckets.get(proteoform.base_accession, ())

    @property
    def accessions(self) -> list[str]:
        return sorted(self._buckets)

    def candidates(self, proteoform: Proteoform) -> list[Proteoform]:
        """Reference proteoforms of the same protein."""
        return self._buckets.get(proteoform.base_accession, [])


def match_proteoforms(
    inputs: Iterable[tuple[str, Proteoform]],
    index: ProteoformIndex,
    config: MatchConfig,
) -> dict[Proteoform, set[str]]:
    """Map each matched reference proteoform to the labels of the inputs matching it."""
    mapping: dict[Proteoform, set[str]] = {}
    for label, iP in inputs:
        for rP in index.candidates(iP):
            if proteoforms_match(iP, rP, config):
                mapping.setdefault(rP, set()).add(label)
    return mapping


def match_identifiers(
    inputs: Iterable[tuple[str, str]],
    relation: Mapping[str, Iterable[str]],
) -> dict[str, set[str]]:
    """Map each reference key reached through relation to the input labels reaching it."""
    mapping: dict[str, set[str]] = {}
    for label, identifier in inputs:
        for reference in relation.get(identifier, ()):
            mapping.setdefault(reference, set()).add(label)
    return mapping


def match(
    inputs: Iterable[tuple[str, Hashable]],
    kind: EntityKind,
    reference: ProteoformIndex | Mapping[str, Iterable[str]],
    config: MatchConfig | None = None,
) -> dict:
    """
    Find every reference entity equivalent to at least one input entity.

    Args:
        inputs: (label, entity) pairs; entities are identifiers or Proteoforms
        kind: Which comparison to apply
        reference: ProteoformIndex for proteoforms, otherwise a relation from
            input identifier to reference keys
        config: Matching settings (proteoforms only)

    Returns:
        Dict mapping matched reference entity -> set of input labels.
        Inputs without any match are absent.
    """
    if kind is EntityKind.PROTEOFORM:
        if not isinstance(reference, ProteoformIndex):
            raise TypeError("Proteoform matching needs a ProteoformIndex")
        return match_proteoforms(inputs, reference, config or MatchConfig())
    return match_identifiers(inputs, reference)


def merge_matches(*mappings: Mapping[K, Iterable[str]]) -> dict[K, set[str]]:
    """Union partial match results key by key."""
    merged: dict[K, set[str]] = {}
    for mapping in mappings:
        for key, labels in mapping.items():
            merged.setdefault(key, set()).update(labels)
    return merged
