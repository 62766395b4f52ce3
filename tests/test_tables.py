"""Tests for static table loading."""

import pytest

from pathway_matcher.config import InputType
from pathway_matcher.model import Role
from pathway_matcher.proteoform import parse_proteoform
from pathway_matcher.tables import (
    StaticTables,
    TableLoadError,
    check_variant_tables,
    iter_variant_tables,
    load_proteoform_reactions,
    load_relation,
)

from conftest import write_tsv


class TestLoad:
    def test_protein_tables(self, tables_dir):
        tables = StaticTables.load(tables_dir, InputType.GENE)
        assert tables.proteins_to_reactions["P22222"] == ("R-1", "R-2")
        assert tables.identifiers_to_proteins["EGFR"] == ("P22222", "P33333")
        assert tables.protein_universe_size == 4
        assert tables.proteoforms_to_reactions == {}
        assert tables.pathways_to_top_level_pathways is None

    def test_catalogs(self, tables_dir):
        tables = StaticTables.load(tables_dir, InputType.UNIPROT)
        assert tables.reactions["R-1"].name == "Reaction one"
        assert tables.reactions["R-1"].participants_with_role(Role.INPUT) == ["P11111"]
        assert tables.reactions["R-3"].participants == {}
        assert tables.pathways["PW-2"].num_entities_total == 3
        assert tables.reactions_to_pathways["R-2"] == ("PW-1", "PW-2")

    def test_proteoform_tables(self, tables_dir):
        tables = StaticTables.load(tables_dir, InputType.PROTEOFORM, top_level_pathways=True)
        assert tables.proteoform_universe_size == 4
        assert tables.proteoforms_to_reactions[parse_proteoform("P08235;")] == ("R-2",)
        assert tables.pathways_to_top_level_pathways == {"PW-1": ("TLP-1",), "PW-2": ("TLP-1",)}
        assert tables.proteins_to_reactions == {}

    def test_peptide_tables(self, tables_dir):
        tables = StaticTables.load(tables_dir, InputType.PEPTIDE)
        assert tables.protein_sequences["P22222"] == "MRGVFRRDTHKSEQ"

    def test_connection_graph_needs_participants(self, tables_dir):
        (tables_dir / "reaction_participants.tsv").unlink()
        assert StaticTables.load(tables_dir, InputType.GENE).reactions["R-1"].participants == {}
        with pytest.raises(TableLoadError, match="participants"):
            StaticTables.load(tables_dir, InputType.GENE, connection_graph=True)

    def test_protein_names_only_for_graph(self, tables_dir):
        assert StaticTables.load(tables_dir, InputType.GENE).protein_names == {}
        tables = StaticTables.load(tables_dir, InputType.GENE, connection_graph=True)
        assert tables.protein_names == {"P11111": "Protein one", "P22222": "Protein two"}

    def test_missing_directory(self, tmp_path):
        with pytest.raises(TableLoadError):
            StaticTables.load(tmp_path / "nope", InputType.GENE)

    def test_missing_table(self, tables_dir):
        (tables_dir / "genes_to_proteins.tsv").unlink()
        with pytest.raises(TableLoadError, match="not found"):
            StaticTables.load(tables_dir, InputType.GENE)

    def test_missing_column(self, tables_dir):
        write_tsv(tables_dir / "reactions.tsv", ["id", "name"], [("R-1", "x")])
        with pytest.raises(TableLoadError, match="missing columns"):
            StaticTables.load(tables_dir, InputType.GENE)

    def test_bad_count(self, tables_dir):
        write_tsv(tables_dir / "pathways.tsv", ["stid", "name", "num_entities_total", "num_reactions_total"], [("PW-1", "x", "many", 1)])
        with pytest.raises(TableLoadError, match="Invalid count"):
            StaticTables.load(tables_dir, InputType.GENE)


class TestRelations:
    def test_duplicates_removed(self, tmp_path):
        path = tmp_path / "rel.tsv"
        write_tsv(path, ["a", "b"], [("x", "2"), ("x", "1"), ("x", "2"), ("y", "3")])
        assert load_relation(path, "a", "b") == {"x": ("1", "2"), "y": ("3",)}

    def test_equivalent_notations_merged(self, tmp_path):
        path = tmp_path / "pf.tsv"
        write_tsv(
            path,
            ["proteoform", "reaction"],
            [("P02545;00046:395,00047:22", "R-1"), ("P02545;00047:22,00046:395", "R-2")],
        )
        mapping = load_proteoform_reactions(path)
        assert mapping == {parse_proteoform("P02545;00046:395,00047:22"): ("R-1", "R-2")}

    def test_invalid_proteoform(self, tmp_path):
        path = tmp_path / "pf.tsv"
        write_tsv(path, ["proteoform", "reaction"], [("P02545", "R-1")])
        with pytest.raises(TableLoadError):
            load_proteoform_reactions(path)


class TestVariantTables:
    def test_rsid_per_chromosome(self, tables_dir):
        batches = list(iter_variant_tables(tables_dir, InputType.RSID))
        assert batches == [(1, {"rs123": ("P11111",)}), (2, {"rs456": ("P33333",)})]

    def test_chrbp_numeric_order(self, tables_dir):
        write_tsv(tables_dir / "chrbp_to_proteins" / "chr10.tsv", ["bp", "protein"], [(5, "P44444")])
        chromosomes = [c for c, _ in iter_variant_tables(tables_dir, InputType.VCF)]
        assert chromosomes == [1, 2, 10]

    def test_not_a_variant_type(self, tables_dir):
        with pytest.raises(ValueError):
            list(iter_variant_tables(tables_dir, InputType.GENE))

    def test_missing_variant_directory(self, tmp_path):
        with pytest.raises(TableLoadError):
            list(iter_variant_tables(tmp_path, InputType.RSID))

    def test_checked_on_load(self, tables_dir):
        tables = StaticTables.load(tables_dir, InputType.RSID)
        assert [c for c, _ in tables.variant_tables] == [1, 2]
        assert tables.variant_tables[1][1] == tables_dir / "rsids_to_proteins" / "chr2.tsv"

    def test_corrupt_chromosome_fails_load(self, tables_dir):
        """A bad header in a later chromosome is caught before any matching."""
        write_tsv(tables_dir / "rsids_to_proteins" / "chr2.tsv", ["id", "protein"], [("rs456", "P33333")])
        with pytest.raises(TableLoadError, match="chr2.tsv"):
            StaticTables.load(tables_dir, InputType.RSID)

    def test_check_ignores_other_layout(self, tables_dir):
        """Only the tables for the requested input type are checked."""
        write_tsv(tables_dir / "chrbp_to_proteins" / "chr2.tsv", ["id", "protein"], [(1, "P1")])
        assert [c for c, _ in check_variant_tables(tables_dir, InputType.RSID)] == [1, 2]
        with pytest.raises(TableLoadError):
            check_variant_tables(tables_dir, InputType.CHRBP)
