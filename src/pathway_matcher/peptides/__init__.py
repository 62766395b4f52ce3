"""
Peptide to protein mapping.

Example:
    >>> from pathway_matcher.peptides import annotate_peptides
    >>>
    >>> proteins = {"P12345": "MKWVTFISLLLLFSSAYSRGVFRR"}
    >>> result = annotate_peptides(["VFRR", "SAYSR"], proteins)
    >>> result.proteins_by_peptide()
    {'SAYSR': ('P12345',), 'VFRR': ('P12345',)}
"""

from pathway_matcher.peptides.annotate import (
    AnnotationResult,
    PeptideAnnotation,
    annotate_peptides,
    modified_peptide_proteoforms,
    read_fasta,
)

__all__ = [
    "AnnotationResult",
    "PeptideAnnotation",
    "annotate_peptides",
    "modified_peptide_proteoforms",
    "read_fasta",
]
