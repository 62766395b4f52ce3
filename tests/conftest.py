"""Shared fixtures: a small reference table directory."""

from pathlib import Path

import pytest
from loguru import logger


def write_tsv(path: Path, header: list[str], rows: list[tuple]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["\t".join(header)] + ["\t".join(str(v) for v in row) for row in rows]
    path.write_text("\n".join(lines) + "\n")


def build_tables(d: Path) -> Path:
    """Write reference tables with 4 proteins, 4 proteoforms, 3 reactions, 2 pathways."""
    write_tsv(
        d / "reactions.tsv",
        ["stid", "name"],
        [("R-1", "Reaction one"), ("R-2", "Reaction two"), ("R-3", "Reaction three")],
    )
    write_tsv(
        d / "reaction_participants.tsv",
        ["reaction", "participant", "role"],
        [("R-1", "P11111", "input"), ("R-1", "P22222", "output"), ("R-2", "P22222", "catalyst")],
    )
    write_tsv(d / "protein_names.tsv", ["protein", "name"], [("P11111", "Protein one"), ("P22222", "Protein two")])
    write_tsv(
        d / "pathways.tsv",
        ["stid", "name", "num_entities_total", "num_reactions_total"],
        [("PW-1", "Pathway one", 2, 2), ("PW-2", "Pathway two", 3, 2), ("TLP-1", "Top level", 4, 3)],
    )
    write_tsv(
        d / "proteins_to_reactions.tsv",
        ["protein", "reaction"],
        [
            ("P11111", "R-1"),
            ("P22222", "R-1"),
            ("P22222", "R-2"),
            ("P33333", "R-3"),
            ("P44444", "R-3"),
        ],
    )
    write_tsv(
        d / "proteoforms_to_reactions.tsv",
        ["proteoform", "reaction"],
        [
            ("P08235;00046:395", "R-1"),
            ("P08235;", "R-2"),
            ("P02545;00046:395,00047:22", "R-3"),
            ("P02545;00046:200", "R-3"),
        ],
    )
    write_tsv(
        d / "reactions_to_pathways.tsv",
        ["reaction", "pathway"],
        [("R-1", "PW-1"), ("R-2", "PW-1"), ("R-2", "PW-2"), ("R-3", "PW-2")],
    )
    write_tsv(
        d / "pathways_to_top_level_pathways.tsv",
        ["pathway", "top_level_pathway"],
        [("PW-1", "TLP-1"), ("PW-2", "TLP-1")],
    )
    write_tsv(
        d / "genes_to_proteins.tsv",
        ["gene", "protein"],
        [("TP53", "P11111"), ("EGFR", "P22222"), ("EGFR", "P33333")],
    )
    write_tsv(d / "ensembl_to_proteins.tsv", ["ensembl", "protein"], [("ENSG00000141510", "P11111")])
    write_tsv(d / "rsids_to_proteins" / "chr1.tsv", ["rsid", "protein"], [("rs123", "P11111")])
    write_tsv(d / "rsids_to_proteins" / "chr2.tsv", ["rsid", "protein"], [("rs456", "P33333")])
    write_tsv(d / "chrbp_to_proteins" / "chr1.tsv", ["bp", "protein"], [(1000, "P11111")])
    write_tsv(d / "chrbp_to_proteins" / "chr2.tsv", ["bp", "protein"], [(2000, "P22222")])
    (d / "proteins.fasta").write_text(
        ">sp|P11111|PROT1_HUMAN\nMKWVTFISLLFSSAYSRGVFRR\n"
        ">sp|P22222|PROT2_HUMAN\nMRGVFRRDTHKSEQ\n"
        ">sp|P08235|MCR_HUMAN\nMAAAKSPEPTIDEKAAA\n"
    )
    return d


@pytest.fixture
def tables_dir(tmp_path):
    return build_tables(tmp_path / "tables")


@pytest.fixture
def caplog(caplog):
    """Route loguru records into pytest's caplog."""
    handler_id = logger.add(caplog.handler, format="{message}", level="DEBUG")
    yield caplog
    logger.remove(handler_id)


@pytest.fixture
def write_input(tmp_path):
    """Write input lines to a file and return its path."""

    def _write(lines: list[str], name: str = "input.txt") -> Path:
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n")
        return path

    return _write
