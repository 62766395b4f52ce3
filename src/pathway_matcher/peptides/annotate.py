"""
Peptide to protein annotation.

Peptides are located in the protein sequences with a single
Aho-Corasick pass per protein. Modified peptides are turned into
proteoforms by shifting their peptide-relative PTM sites onto the
protein coordinates of every occurrence.
"""

import gzip
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from pathway_matcher.peptides.ahocorasick import build_automaton
from pathway_matcher.proteoform import Modification, Proteoform


@dataclass(frozen=True, slots=True)
class PeptideAnnotation:
    """A peptide occurrence in a protein (0-based start, end exclusive)."""

    peptide: str
    protein_id: str
    start: int
    end: int


@dataclass
class AnnotationResult:
    """Collection of peptide-protein annotations."""

    annotations: list[PeptideAnnotation]

    def __len__(self) -> int:
        return len(self.annotations)

    def __iter__(self):
        return iter(self.annotations)

    @property
    def peptides(self) -> set[str]:
        return {a.peptide for a in self.annotations}

    @property
    def proteins(self) -> set[str]:
        return {a.protein_id for a in self.annotations}

    def proteins_by_peptide(self) -> dict[str, tuple[str, ...]]:
        """Peptide -> sorted proteins containing it."""
        mapping: dict[str, set[str]] = {}
        for a in self.annotations:
            mapping.setdefault(a.peptide, set()).add(a.protein_id)
        return {pep: tuple(sorted(prots)) for pep, prots in mapping.items()}


def annotate_peptides(
    peptides: Iterable[str],
    proteins: dict[str, str],
    backend: str = "auto",
) -> AnnotationResult:
    """
    Find every occurrence of every peptide in the protein sequences.

    Args:
        peptides: Peptide sequences
        proteins: Dict mapping protein accession to sequence
        backend: Aho-Corasick backend ("auto", "ahocorapy", "ahocorasick_rs")

    Returns:
        AnnotationResult, ordered by protein then position

    Example:
        >>> proteins = {"P12345": "MKWVTFISLLFSSAYSRGVFRRDTHK", "P67890": "MRGVFRRDTHKSEQ"}
        >>> result = annotate_peptides(["GVFRR", "DTHK"], proteins)
        >>> len(result)
        4
    """
    peptide_list = sorted(set(peptides))
    if not peptide_list:
        return AnnotationResult(annotations=[])

    automaton = build_automaton(peptide_list, backend=backend)

    annotations = []
    for protein_id in sorted(proteins):
        hits = sorted(automaton.search(proteins[protein_id]), key=lambda h: (h.start, h.peptide))
        annotations.extend(
            PeptideAnnotation(peptide=h.peptide, protein_id=protein_id, start=h.start, end=h.end)
            for h in hits
        )
    return AnnotationResult(annotations=annotations)


def modified_peptide_proteoforms(
    peptide: str,
    modifications: Iterable[Modification],
    annotations: AnnotationResult,
) -> list[Proteoform]:
    """
    Build one proteoform per occurrence of a modified peptide.

    Modification sites are 1-based positions within the peptide; they
    are shifted to 1-based protein coordinates. Unknown sites stay
    unknown.
    """
    modifications = list(modifications)
    proteoforms = set()
    for a in annotations:
        if a.peptide != peptide:
            continue
        shifted = tuple(
            Modification(m.type, None if m.coordinate is None else a.start + m.coordinate)
            for m in modifications
        )
        proteoforms.add(Proteoform(accession=a.protein_id, modifications=shifted))
    return sorted(proteoforms)


def extract_protein_id(header: str) -> str:
    """Extract the accession from a FASTA header.

    Handles formats like:
    - sp|P12345|NAME_SPECIES -> P12345
    - tr|Q12345|NAME_SPECIES -> Q12345
    - P12345 description -> P12345
    """
    header = header.lstrip(">")
    parts = header.split("|")
    if len(parts) >= 2:
        return parts[1]
    return header.split()[0]


def read_fasta(filepath: str | Path) -> dict[str, str]:
    """Read a FASTA file into a dict of accession -> sequence.

    Args:
        filepath: Path to FASTA file (can be gzipped)

    Returns:
        Dict mapping protein accessions to sequences
    """
    proteins = {}
    current_id = None
    current_seq: list[str] = []

    path = Path(filepath)
    opener = gzip.open if path.suffix == ".gz" else open

    with opener(path, "rt") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            if line.startswith(">"):
                if current_id is not None:
                    proteins[current_id] = "".join(current_seq)
                current_id = extract_protein_id(line)
                current_seq = []
            else:
                current_seq.append(line.upper())

        if current_id is not None:
            proteins[current_id] = "".join(current_seq)

    return proteins
