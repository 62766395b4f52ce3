"""
Input preprocessing: validate raw input lines and convert them to entities.

Empty and malformed rows are dropped with a warning; they never abort
the run.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable

from loguru import logger

from pathway_matcher.config import InputType
from pathway_matcher.proteoform import Modification, Proteoform, parse_modifications, parse_proteoform

UNIPROT_PATTERN = re.compile(
    r"^(?:[OPQ][0-9][A-Z0-9]{3}[0-9]|[A-NR-Z][0-9](?:[A-Z][A-Z0-9]{2}[0-9]){1,2})(?:-\d+)?$"
)
ENSEMBL_PATTERN = re.compile(r"^ENS[A-Z]*[GTPE]\d{11}(?:\.\d+)?$")
GENE_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9\-_.@/]*$")
PEPTIDE_PATTERN = re.compile(r"^[ACDEFGHIKLMNPQRSTVWY]+$")
RSID_PATTERN = re.compile(r"^rs\d+$")
CHRBP_PATTERN = re.compile(r"^(?:chr)?(\d{1,2})\s+(\d+)$", re.IGNORECASE)

CHROMOSOMES = range(1, 23)


@dataclass(frozen=True, slots=True)
class ModifiedPeptide:
    """A peptide with PTM sites given relative to the peptide (1-based)."""

    sequence: str
    modifications: tuple[Modification, ...] = ()


@dataclass(frozen=True, slots=True)
class InputEntity:
    """A validated input row.

    Attributes:
        label: The input as reported back in the search results
        entity: Identifier string, Proteoform or ModifiedPeptide
        chromosome: Chromosome of a genomic variant, else None
    """

    label: str
    entity: str | Proteoform | ModifiedPeptide
    chromosome: int | None = None


def _parse_identifier(pattern: re.Pattern, transform: Callable[[str], str] = str) -> Callable:
    def parse(line: str) -> InputEntity:
        value = transform(line)
        if not pattern.match(value):
            raise ValueError(f"Invalid identifier: {line!r}")
        return InputEntity(label=value, entity=value)

    return parse


def _parse_proteoform(line: str) -> InputEntity:
    return InputEntity(label=line, entity=parse_proteoform(line))


def _parse_modified_peptide(line: str) -> InputEntity:
    sequence, _, mods = line.partition(";")
    sequence = sequence.strip().upper()
    if not PEPTIDE_PATTERN.match(sequence):
        raise ValueError(f"Invalid peptide: {sequence!r}")
    modifications = tuple(parse_modifications(mods))
    for m in modifications:
        if m.coordinate is not None and not 1 <= m.coordinate <= len(sequence):
            raise ValueError(f"Site {m.coordinate} outside peptide {sequence}")
    return InputEntity(label=line, entity=ModifiedPeptide(sequence, modifications))


def _variant(chromosome: str, position: str, label: str) -> InputEntity:
    chrom = int(chromosome)
    if chrom not in CHROMOSOMES:
        raise ValueError(f"Unsupported chromosome: {chromosome}")
    return InputEntity(label=label, entity=str(int(position)), chromosome=chrom)


def _parse_chrbp(line: str) -> InputEntity:
    m = CHRBP_PATTERN.match(line)
    if not m:
        raise ValueError(f"Invalid chromosome/base-pair row: {line!r}")
    return _variant(m.group(1), m.group(2), f"{int(m.group(1))} {int(m.group(2))}")


def _parse_vcf(line: str) -> InputEntity:
    fields = line.split()
    if len(fields) < 2 or not fields[1].isdigit():
        raise ValueError(f"Invalid VCF row: {line!r}")
    chrom = fields[0].lower().removeprefix("chr")
    if not chrom.isdigit():
        raise ValueError(f"Unsupported chromosome: {fields[0]}")
    return _variant(chrom, fields[1], f"{int(chrom)} {int(fields[1])}")


_PARSERS: dict[InputType, Callable[[str], InputEntity]] = {
    InputType.UNIPROT: _parse_identifier(UNIPROT_PATTERN, str.upper),
    InputType.ENSEMBL: _parse_identifier(ENSEMBL_PATTERN, str.upper),
    InputType.GENE: _parse_identifier(GENE_PATTERN),
    InputType.PEPTIDE: _parse_identifier(PEPTIDE_PATTERN, str.upper),
    InputType.RSID: _parse_identifier(RSID_PATTERN, str.lower),
    InputType.PROTEOFORM: _parse_proteoform,
    InputType.MODIFIEDPEPTIDE: _parse_modified_peptide,
    InputType.CHRBP: _parse_chrbp,
    InputType.VCF: _parse_vcf,
}


def preprocess(lines: Iterable[str], input_type: InputType) -> list[InputEntity]:
    """
    Validate input lines and convert them to entities.

    Args:
        lines: Raw input lines
        input_type: How to interpret the lines

    Returns:
        Unique valid entities in input order
    """
    parse = _PARSERS[input_type]
    entities: dict[InputEntity, None] = {}
    n_dropped = 0

    for row, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line:
            logger.warning(f"Row {row} is empty")
            n_dropped += 1
            continue
        if input_type is InputType.VCF and line.startswith("#"):
            continue
        try:
            entities.setdefault(parse(line), None)
        except ValueError as e:
            logger.warning(f"Row {row} with wrong format: {e}")
            n_dropped += 1

    logger.info(f"Valid {input_type.value.lower()} entries: {len(entities):,} (dropped rows: {n_dropped})")
    return list(entities)
