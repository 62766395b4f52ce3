"""
Loading of the static lookup tables.

Tables are tab-separated files with a header row, stored in one
directory::

    reactions.tsv                         stid, name
    reaction_participants.tsv (optional)  reaction, participant, role
    protein_names.tsv (optional)          protein, name
    pathways.tsv                          stid, name, num_entities_total, num_reactions_total
    proteins_to_reactions.tsv             protein, reaction
    proteoforms_to_reactions.tsv          proteoform, reaction
    reactions_to_pathways.tsv             reaction, pathway
    pathways_to_top_level_pathways.tsv    pathway, top_level_pathway
    genes_to_proteins.tsv                 gene, protein
    ensembl_to_proteins.tsv               ensembl, protein
    rsids_to_proteins/chr{N}.tsv          rsid, protein
    chrbp_to_proteins/chr{N}.tsv          bp, protein
    proteins.fasta                        protein sequences

Only the tables needed for the requested input type are loaded. Any
missing or malformed table is fatal. The participants table is required
when a connection graph is requested; protein names only label its
vertices.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

import pandas as pd
from loguru import logger

from pathway_matcher.config import EntityKind, InputType
from pathway_matcher.model import Pathway, Reaction, Role
from pathway_matcher.peptides import read_fasta
from pathway_matcher.proteoform import Proteoform, parse_proteoform

Relation = dict[str, tuple[str, ...]]

_CHROMOSOME_FILE = re.compile(r"^chr(\d+)\.tsv$")


class TableLoadError(RuntimeError):
    """A static table is missing or corrupt. Fatal for the run."""


def _read_table(path: Path, columns: list[str], nrows: int | None = None) -> pd.DataFrame:
    if not path.exists():
        raise TableLoadError(f"Static table not found: {path}")
    try:
        df = pd.read_csv(path, sep="\t", dtype=str, keep_default_na=False, nrows=nrows)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise TableLoadError(f"Could not parse {path}: {e}") from e
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise TableLoadError(f"{path.name} is missing columns: {missing}")
    return df[columns]



def load_relation(path: Path, key_col: str, value_col: str) -> Relation:
    """Load a many-to-many relation as key -> sorted tuple of values."""
    df = _read_table(path, [key_col, value_col]).drop_duplicates()
    relation = {
        key: tuple(sorted(group[value_col]))
        for key, group in df.groupby(key_col, sort=True)
    }
    logger.debug(f"Loaded {path.name}: {len(df)} pairs, {len(relation)} keys")
    return relation


def load_reactions(path: Path, participants_path: Path | None = None) -> dict[str, Reaction]:
    df = _read_table(path, ["stid", "name"])
    participants: dict[str, dict[str, Role]] = {}
    if participants_path is not None and participants_path.exists():
        pdf = _read_table(participants_path, ["reaction", "participant", "role"])
        try:
            for row in pdf.itertuples(index=False):
                participants.setdefault(row.reaction, {})[row.participant] = Role.parse(row.role)
        except ValueError as e:
            raise TableLoadError(f"Invalid role in {participants_path.name}: {e}") from e
    return {
        row.stid: Reaction(stid=row.stid, name=row.name, participants=participants.get(row.stid, {}))
        for row in df.itertuples(index=False)
    }


def load_pathways(path: Path) -> dict[str, Pathway]:
    df = _read_table(path, ["stid", "name", "num_entities_total", "num_reactions_total"])
    try:
        return {
            row.stid: Pathway(
                stid=row.stid,
                name=row.name,
                num_entities_total=int(row.num_entities_total),
                num_reactions_total=int(row.num_reactions_total),
            )
            for row in df.itertuples(index=False)
        }
    except ValueError as e:
        raise TableLoadError(f"Invalid count in {path.name}: {e}") from e


def load_proteoform_reactions(path: Path) -> dict[Proteoform, tuple[str, ...]]:
    relation = load_relation(path, "proteoform", "reaction")
    mapping: dict[Proteoform, set[str]] = {}
    for notation, reactions in relation.items():
        try:
            proteoform = parse_proteoform(notation)
        except ValueError as e:
            raise TableLoadError(f"Invalid proteoform in {path.name}: {e}") from e
        # differently written notations may denote the same proteoform
        mapping.setdefault(proteoform, set()).update(reactions)
    return {proteoform: tuple(sorted(reactions)) for proteoform, reactions in mapping.items()}


@dataclass
class StaticTables:
    """Read-only reference data for one run."""

    directory: Path
    reactions: dict[str, Reaction]
    pathways: dict[str, Pathway]
    reactions_to_pathways: Relation
    proteins_to_reactions: Relation = field(default_factory=dict)
    proteoforms_to_reactions: dict[Proteoform, tuple[str, ...]] = field(default_factory=dict)
    pathways_to_top_level_pathways: Relation | None = None
    identifiers_to_proteins: Relation = field(default_factory=dict)
    protein_sequences: dict[str, str] = field(default_factory=dict)
    protein_names: dict[str, str] = field(default_factory=dict)
    variant_tables: list[tuple[int, Path]] = field(default_factory=list)

    @classmethod
    def load(
        cls,
        directory: Path,
        input_type: InputType,
        top_level_pathways: bool = False,
        connection_graph: bool = False,
    ) -> "StaticTables":
        """
        Load the tables needed for input_type from directory.

        Args:
            directory: Directory holding the TSV tables
            input_type: Type of the input entities
            top_level_pathways: Also load the top-level pathway relation
            connection_graph: Require reaction participants and load protein names

        Returns:
            StaticTables

        Raises:
            TableLoadError: If a required table is missing or corrupt
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise TableLoadError(f"Tables directory not found: {directory}")
        logger.info(f"Loading static tables from {directory}")

        participants = directory / "reaction_participants.tsv"
        if connection_graph and not participants.exists():
            raise TableLoadError(f"Connection graph needs reaction participants: {participants}")

        tables = cls(
            directory=directory,
            reactions=load_reactions(directory / "reactions.tsv", participants),
            pathways=load_pathways(directory / "pathways.tsv"),
            reactions_to_pathways=load_relation(directory / "reactions_to_pathways.tsv", "reaction", "pathway"),
        )
        if top_level_pathways:
            tables.pathways_to_top_level_pathways = load_relation(
                directory / "pathways_to_top_level_pathways.tsv", "pathway", "top_level_pathway"
            )

        if input_type.entity_kind is EntityKind.PROTEOFORM:
            tables.proteoforms_to_reactions = load_proteoform_reactions(
                directory / "proteoforms_to_reactions.tsv"
            )
        else:
            tables.proteins_to_reactions = load_relation(
                directory / "proteins_to_reactions.tsv", "protein", "reaction"
            )

        if input_type is InputType.GENE:
            tables.identifiers_to_proteins = load_relation(directory / "genes_to_proteins.tsv", "gene", "protein")
        elif input_type is InputType.ENSEMBL:
            tables.identifiers_to_proteins = load_relation(
                directory / "ensembl_to_proteins.tsv", "ensembl", "protein"
            )
        elif input_type in (InputType.PEPTIDE, InputType.MODIFIEDPEPTIDE):
            fasta = directory / "proteins.fasta"
            if not fasta.exists():
                raise TableLoadError(f"Protein sequence file not found: {fasta}")
            tables.protein_sequences = read_fasta(fasta)
        elif input_type.is_variant:
            tables.variant_tables = check_variant_tables(directory, input_type)

        names = directory / "protein_names.tsv"
        if connection_graph and names.exists():
            tables.protein_names = {
                protein: values[0] for protein, values in load_relation(names, "protein", "name").items()
            }

        logger.info(
            f"Loaded {len(tables.reactions):,} reactions and {len(tables.pathways):,} pathways"
        )
        return tables

    @property
    def protein_universe_size(self) -> int:
        """Distinct proteins with at least one reaction."""
        return len(self.proteins_to_reactions)

    @property
    def proteoform_universe_size(self) -> int:
        """Distinct reference proteoforms with at least one reaction."""
        return len(self.proteoforms_to_reactions)


def _variant_layout(directory: Path, input_type: InputType) -> tuple[Path, str]:
    """Subdirectory and key column of the per-chromosome tables for input_type."""
    if input_type is InputType.RSID:
        return directory / "rsids_to_proteins", "rsid"
    if input_type in (InputType.CHRBP, InputType.VCF):
        return directory / "chrbp_to_proteins", "bp"
    raise ValueError(f"Not a variant input type: {input_type}")


def _chromosome_files(directory: Path) -> list[tuple[int, Path]]:
    if not directory.is_dir():
        raise TableLoadError(f"Variant table directory not found: {directory}")
    files = []
    for path in directory.iterdir():
        m = _CHROMOSOME_FILE.match(path.name)
        if m:
            files.append((int(m.group(1)), path))
    if not files:
        raise TableLoadError(f"No per-chromosome tables in {directory}")
    return sorted(files)


def check_variant_tables(directory: Path, input_type: InputType) -> list[tuple[int, Path]]:
    """
    Check every per-chromosome table (presence and header) without loading it.

    Returns:
        Sorted (chromosome, path) pairs

    Raises:
        TableLoadError: If the directory, a file or a column is missing
    """
    subdir, key_col = _variant_layout(Path(directory), input_type)
    files = _chromosome_files(subdir)
    for _, path in files:
        _read_table(path, [key_col, "protein"], nrows=0)
    return files


def iter_variant_tables(
    directory: Path,
    input_type: InputType,
    files: list[tuple[int, Path]] | None = None,
) -> Iterator[tuple[int, Relation]]:
    """
    Yield (chromosome, variant -> proteins relation) one chromosome at a time.

    rsId tables are keyed by rsId; chromosome/base-pair and VCF inputs use
    tables keyed by base-pair position. files are the (chromosome, path)
    pairs from check_variant_tables; they are discovered when omitted.
    """
    subdir, key_col = _variant_layout(Path(directory), input_type)
    if files is None:
        files = _chromosome_files(subdir)
    for chromosome, path in files:
        logger.info(f"Loading data for chromosome {chromosome}")
        yield chromosome, load_relation(path, key_col, "protein")
