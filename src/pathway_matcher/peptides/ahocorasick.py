"""
Multi-pattern search of peptides in protein sequences.

Wraps two Aho-Corasick implementations behind one interface:
- ahocorapy: pure Python, always installed
- ahocorasick_rs: Rust-based, used when installed

Usage:
    from pathway_matcher.peptides.ahocorasick import build_automaton

    automaton = build_automaton(peptides)
    for hit in automaton.search(sequence):
        print(f"{hit.peptide} at {hit.start}-{hit.end}")
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Protocol

BACKENDS = ("ahocorasick_rs", "ahocorapy")


@dataclass(frozen=True, slots=True)
class Hit:
    """One occurrence of a peptide in a sequence (0-based, end exclusive)."""

    peptide: str
    start: int
    end: int


class PeptideAutomaton(Protocol):
    backend: str

    def search(self, sequence: str) -> Iterator[Hit]: ...


class _PurePythonAutomaton:
    backend = "ahocorapy"

    def __init__(self, peptides: list[str]):
        from ahocorapy.keywordtree import KeywordTree

        self._tree = KeywordTree(case_insensitive=False)
        for peptide in peptides:
            self._tree.add(peptide)
        self._tree.finalize()

    def search(self, sequence: str) -> Iterator[Hit]:
        for peptide, start in self._tree.search_all(sequence):
            yield Hit(peptide=peptide, start=start, end=start + len(peptide))


class _RustAutomaton:
    backend = "ahocorasick_rs"

    def __init__(self, peptides: list[str]):
        import ahocorasick_rs

        self._peptides = peptides
        # Overlapping matches are needed: one peptide may contain another
        self._ac = ahocorasick_rs.AhoCorasick(peptides)

    def search(self, sequence: str) -> Iterator[Hit]:
        for idx, start, end in self._ac.find_matches_as_indexes(sequence, overlapping=True):
            yield Hit(peptide=self._peptides[idx], start=start, end=end)


def available_backends() -> list[str]:
    """Installed backends, fastest first."""
    backends = []
    try:
        import ahocorasick_rs  # noqa: F401

        backends.append("ahocorasick_rs")
    except ImportError:
        pass
    backends.append("ahocorapy")
    return backends


def build_automaton(peptides: Iterable[str], backend: str = "auto") -> PeptideAutomaton:
    """
    Build an automaton searching all peptides at once.

    Args:
        peptides: Peptide sequences (deduplicated here)
        backend: "auto" (fastest installed), "ahocorapy" or "ahocorasick_rs"

    Returns:
        Automaton with a ``search(sequence)`` method

    Raises:
        ValueError: On an unknown backend name
        ImportError: If the requested backend is not installed
    """
    peptides = sorted(set(peptides))
    if backend == "auto":
        backend = available_backends()[0]
    if backend == "ahocorasick_rs":
        return _RustAutomaton(peptides)
    if backend == "ahocorapy":
        return _PurePythonAutomaton(peptides)
    raise ValueError(f"Unknown Aho-Corasick backend: {backend!r}. Expected one of {BACKENDS}")
