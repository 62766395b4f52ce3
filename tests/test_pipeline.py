"""End-to-end tests of a pathway-matcher run."""

import pandas as pd
import pytest

from pathway_matcher.analysis import ANALYSIS_COLUMNS
from pathway_matcher.config import ConfigurationError, RunConfig
from pathway_matcher.pipeline import run_pathway_matcher
from pathway_matcher.proteoform import parse_proteoform
from pathway_matcher.search import SEARCH_COLUMNS
from pathway_matcher.tables import TableLoadError

from conftest import write_tsv


@pytest.fixture
def run(tables_dir, write_input, tmp_path):
    def _run(input_type, lines, **kwargs):
        config = RunConfig(
            input_path=write_input(lines),
            input_type=input_type,
            tables_dir=tables_dir,
            output_dir=tmp_path / "out",
            **kwargs,
        )
        return run_pathway_matcher(config)

    return _run


class TestProteoformRun:
    INPUT = ["P08235-2;", "P02545;00046:394,00047:22,00048:5", "not a proteoform"]

    def test_superset(self, run):
        result = run("PROTEOFORM", self.INPUT, match_type="SUPERSET", margin=1)
        acc = result.accumulator
        assert result.n_inputs == 2
        assert len(result.rows) == 4
        assert acc.hit_proteoforms == {
            parse_proteoform("P08235;00046:395"),
            parse_proteoform("P08235;"),
            parse_proteoform("P02545;00046:395,00047:22"),
        }
        assert acc.hit_pathways == {"PW-1", "PW-2"}
        assert result.population_size == 4
        assert acc.sample_size(proteoform_level=True) == 3

    def test_exact(self, run):
        result = run("PROTEOFORM", self.INPUT, match_type="EXACT", margin=1)
        assert {r.proteoform for r in result.rows} == {"P08235;"}
        assert [(r.input, r.pathway_stid) for r in result.rows] == [
            ("P08235-2;", "PW-1"),
            ("P08235-2;", "PW-2"),
        ]

    def test_one(self, run):
        result = run("PROTEOFORM", ["P02545;00046:200,00047:1"], match_type="ONE", margin=0)
        assert {r.proteoform for r in result.rows} == {"P02545;00046:200"}

    def test_margin_zero_excludes_shifted_site(self, run):
        result = run("PROTEOFORM", ["P02545;00046:394,00047:22"], match_type="SUPERSET", margin=0)
        assert result.rows == []
        assert result.statistics == []

    def test_modified_peptide(self, run):
        """SPEPTIDEK site 1 lies at residue 6 of P08235; only the unmodified reference matches."""
        result = run("MODIFIEDPEPTIDE", ["SPEPTIDEK;00046:1"])
        assert {r.proteoform for r in result.rows} == {"P08235;"}
        assert len(result.rows) == 2


class TestIdentifierRuns:
    def test_genes(self, run):
        result = run("GENE", ["TP53", "EGFR", "UNKNOWN1"])
        assert len(result.rows) == 5
        assert result.accumulator.hit_proteins == {"P11111", "P22222", "P33333"}
        assert result.population_size == 4

    def test_ensembl(self, run):
        result = run("ENSEMBL", ["ENSG00000141510"])
        assert [(r.input, r.protein, r.pathway_stid) for r in result.rows] == [
            ("ENSG00000141510", "P11111", "PW-1")
        ]

    def test_uniprot_isoform_fallback(self, run):
        result = run("UNIPROT", ["P11111", "P22222-3", "P99999"])
        assert len(result.rows) == 4
        assert {(r.input, r.protein) for r in result.rows} == {("P11111", "P11111"), ("P22222-3", "P22222")}

    def test_peptides(self, run):
        result = run("PEPTIDE", ["GVFRR", "DTHK", "NOT-A-PEPTIDE"])
        assert len(result.rows) == 7
        assert result.accumulator.hit_proteins == {"P11111", "P22222"}

    def test_top_level_pathways(self, run):
        result = run("GENE", ["TP53", "EGFR"], top_level_pathways=True)
        assert len(result.rows) == 5
        assert {r.top_level_pathway_stid for r in result.rows} == {"TLP-1"}


class TestVariantRuns:
    def test_rsids(self, run):
        result = run("RSID", ["rs123", "rs456", "rs999"])
        assert {(r.input, r.protein) for r in result.rows} == {("rs123", "P11111"), ("rs456", "P33333")}
        assert len(result.rows) == 2

    def test_chrbp_uses_chromosome(self, run):
        """Base-pair 1000 is only annotated on chromosome 1."""
        result = run("CHRBP", ["1 1000", "2 2000", "2 1000"])
        assert len(result.rows) == 4
        assert {r.input for r in result.rows} == {"1 1000", "2 2000"}

    def test_hit_sets_accumulate_over_chromosomes(self, run):
        result = run("RSID", ["rs123", "rs456"])
        assert result.accumulator.hit_proteins == {"P11111", "P33333"}
        assert {s.stid for s in result.statistics} == {"PW-1", "PW-2"}


class TestReports:
    def test_files_written(self, run, tmp_path):
        run("GENE", ["TP53", "EGFR"])
        search = pd.read_csv(tmp_path / "out" / "search.tsv", sep="\t", dtype=str)
        analysis = pd.read_csv(tmp_path / "out" / "analysis.tsv", sep="\t")
        assert list(search.columns) == SEARCH_COLUMNS[:-2]
        assert len(search) == 5
        assert list(analysis.columns) == ANALYSIS_COLUMNS
        assert set(analysis["Pathway StId"]) == {"PW-1", "PW-2"}

    def test_analysis_values(self, run):
        result = run("GENE", ["TP53", "EGFR"])
        stats = {s.stid: s for s in result.statistics}
        # N = 4 proteins, n = 3 hits, PW-1 has K = 2 and both were found
        assert stats["PW-1"].entities_found == 2
        assert stats["PW-1"].entities_pvalue == pytest.approx(0.5)
        assert stats["PW-1"].entities_ratio == pytest.approx(0.5)
        assert stats["PW-2"].entities_pvalue == pytest.approx(1.0)
        assert stats["PW-1"].reactions_found == 2
        assert stats["PW-1"].reactions_ratio == pytest.approx(2 / 3)


class TestConnectionGraph:
    def read(self, tmp_path, name):
        return pd.read_csv(tmp_path / "out" / name, sep="\t", dtype=str, keep_default_na=False)

    def test_not_written_by_default(self, run, tmp_path):
        run("GENE", ["TP53"])
        assert not (tmp_path / "out" / "vertices.tsv").exists()

    def test_external_edge(self, run, tmp_path):
        """P22222 is not a hit, so its edge to P11111 is external."""
        run("GENE", ["TP53"], graph=True)
        vertices = self.read(tmp_path, "vertices.tsv")
        assert vertices.values.tolist() == [["P11111", "Protein one"]]
        assert self.read(tmp_path, "internalEdges.tsv").empty
        external = self.read(tmp_path, "externalEdges.tsv")
        assert list(external.columns) == ["from", "to", "type", "container_stId", "role_from", "role_to"]
        assert external.values.tolist() == [["P11111", "P22222", "Reaction", "R-1", "input", "output"]]

    def test_internal_edge(self, run, tmp_path):
        run("GENE", ["TP53", "EGFR"], graph=True)
        vertices = self.read(tmp_path, "vertices.tsv")
        assert vertices.values.tolist() == [["P11111", "Protein one"], ["P22222", "Protein two"], ["P33333", ""]]
        internal = self.read(tmp_path, "internalEdges.tsv")
        assert internal.values.tolist() == [["P11111", "P22222", "Reaction", "R-1", "input", "output"]]
        assert self.read(tmp_path, "externalEdges.tsv").empty

    def test_needs_participants(self, run, tables_dir):
        (tables_dir / "reaction_participants.tsv").unlink()
        with pytest.raises(TableLoadError):
            run("GENE", ["TP53"], graph=True)


class TestErrors:
    def test_missing_input(self, tables_dir, tmp_path):
        config = RunConfig(input_path=tmp_path / "missing.txt", input_type="GENE", tables_dir=tables_dir)
        with pytest.raises(ConfigurationError):
            run_pathway_matcher(config, write_reports=False)

    def test_missing_table(self, run, tables_dir):
        (tables_dir / "proteoforms_to_reactions.tsv").unlink()
        with pytest.raises(TableLoadError):
            run("PROTEOFORM", ["P08235;"])

    def test_corrupt_variant_table_before_matching(self, run, tables_dir, caplog):
        write_tsv(tables_dir / "rsids_to_proteins" / "chr2.tsv", ["id", "protein"], [("rs456", "P33333")])
        with pytest.raises(TableLoadError):
            run("RSID", ["rs123"])
        assert "Loading data for chromosome" not in caplog.text

    def test_empty_input(self, run):
        result = run("GENE", [""])
        assert result.rows == []
        assert result.statistics == []
