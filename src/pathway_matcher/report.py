"""Writing of the search, analysis and connection graph result files."""

from itertools import combinations
from pathlib import Path
from typing import Iterable

import pandas as pd
from loguru import logger

from pathway_matcher.analysis import PathwayStatistics, statistics_to_dataframe
from pathway_matcher.model import Reaction
from pathway_matcher.search import SearchRow, rows_to_dataframe

SEARCH_FILE = "search.tsv"
ANALYSIS_FILE = "analysis.tsv"
VERTICES_FILE = "vertices.tsv"
INTERNAL_EDGES_FILE = "internalEdges.tsv"
EXTERNAL_EDGES_FILE = "externalEdges.tsv"

EDGE_COLUMNS = ["from", "to", "type", "container_stId", "role_from", "role_to"]


def write_search_results(rows: Iterable[SearchRow], output_dir: Path, top_level_pathways: bool = False) -> Path:
    path = Path(output_dir) / SEARCH_FILE
    df = rows_to_dataframe(rows, top_level_pathways=top_level_pathways)
    df.to_csv(path, sep="\t", index=False, na_rep="")
    logger.info(f"Matching results written to: {path}")
    return path


def write_analysis_results(stats: Iterable[PathwayStatistics], output_dir: Path) -> Path:
    path = Path(output_dir) / ANALYSIS_FILE
    statistics_to_dataframe(stats).to_csv(path, sep="\t", index=False)
    logger.info(f"Analysis results written to: {path}")
    return path


def connection_graph(
    hit_proteins: Iterable[str],
    reactions: dict[str, Reaction],
    protein_names: dict[str, str] | None = None,
) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Build the protein connection graph of the hit proteins.

    Two participants of the same reaction are connected when at least one
    of them is a hit protein. Each pair appears once per reaction, ordered
    by accession.

    Args:
        hit_proteins: Accessions of the proteins found in the search
        reactions: Reaction catalog with participants
        protein_names: Optional accession -> display name

    Returns:
        (vertices, internal_edges, external_edges); internal edges join two
        hit proteins, external edges join a hit protein to another participant
    """
    hits = set(hit_proteins)
    names = protein_names or {}
    vertices = pd.DataFrame(
        [(protein, names.get(protein, "")) for protein in sorted(hits)],
        columns=["id", "name"],
    )

    internal, external = [], []
    for stid in sorted(reactions):
        participants = reactions[stid].participants
        if hits.isdisjoint(participants):
            continue
        for a, b in combinations(sorted(participants), 2):
            if a not in hits and b not in hits:
                continue
            edge = (a, b, "Reaction", stid, participants[a].value, participants[b].value)
            (internal if a in hits and b in hits else external).append(edge)

    return (
        vertices,
        pd.DataFrame(internal, columns=EDGE_COLUMNS),
        pd.DataFrame(external, columns=EDGE_COLUMNS),
    )


def write_connection_graph(
    hit_proteins: Iterable[str],
    reactions: dict[str, Reaction],
    output_dir: Path,
    protein_names: dict[str, str] | None = None,
) -> list[Path]:
    """Write vertices.tsv, internalEdges.tsv and externalEdges.tsv to output_dir."""
    vertices, internal, external = connection_graph(hit_proteins, reactions, protein_names)
    output_dir = Path(output_dir)
    paths = []
    for name, df in ((VERTICES_FILE, vertices), (INTERNAL_EDGES_FILE, internal), (EXTERNAL_EDGES_FILE, external)):
        path = output_dir / name
        df.to_csv(path, sep="\t", index=False)
        paths.append(path)
    logger.info(
        f"Connection graph written to: {output_dir} "
        f"({len(vertices):,} vertices, {len(internal):,} internal, {len(external):,} external edges)"
    )
    return paths
