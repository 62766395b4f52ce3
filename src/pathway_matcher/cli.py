"""
Command-line interface for pathway-matcher using cyclopts.

Example:
    pathway-matcher --input proteoforms.txt --input-type proteoform \\
        --tables-dir reference/ --output-dir out/ --matching superset --margin 5
"""

from pathlib import Path

import cyclopts
from loguru import logger

from pathway_matcher.config import ConfigurationError, build_config
from pathway_matcher.pipeline import run_pathway_matcher
from pathway_matcher.tables import TableLoadError

app = cyclopts.App(
    name="pathway-matcher",
    help="Map proteins, genes, peptides, proteoforms and variants to pathways and run ORA",
)

EXIT_CONFIGURATION_ERROR = 2
EXIT_TABLE_LOAD_ERROR = 3


def _setup_file_logging(log_path: Path) -> int:
    """Configure loguru to also log to a file. Returns the handler id."""
    return logger.add(
        log_path,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}",
        level="INFO",
        mode="w",
    )


@app.default
def main(
    input: Path | None = None,
    input_type: str | None = None,
    tables_dir: Path | None = None,
    output_dir: Path | None = None,
    matching: str | None = None,
    margin: int | None = None,
    top_level_pathways: bool | None = None,
    subsequence_ranges: bool | None = None,
    strict_isoforms: bool | None = None,
    graph: bool | None = None,
    config: Path | None = None,
    log: Path | None = None,
) -> None:
    """Search pathways for the input entities and score them.

    Args:
        input: Input file, one entity per line
        input_type: GENE|ENSEMBL|UNIPROT|PEPTIDE|MODIFIEDPEPTIDE|PROTEOFORM|RSID|CHRBP|VCF
        tables_dir: Directory with the static lookup tables
        output_dir: Directory for search.tsv and analysis.tsv (default: current directory)
        matching: Proteoform match criteria: EXACT|ONE|SUPERSET (default SUPERSET)
        margin: PTM site margin of error in residues (default 0)
        top_level_pathways: Add top-level pathway columns to the search results
        subsequence_ranges: Compare proteoform start/end coordinates
        strict_isoforms: Treat isoform suffixes as distinct proteins when matching proteoforms
        graph: Write the connection graph: vertices.tsv, internalEdges.tsv, externalEdges.tsv
        config: Optional YAML file with default values for the options above
        log: Log file path (default: pathway-matcher.log in the output directory)
    """
    try:
        run_config = build_config(
            config,
            input_path=input,
            input_type=input_type,
            tables_dir=tables_dir,
            output_dir=output_dir,
            match_type=matching,
            margin=margin,
            top_level_pathways=top_level_pathways,
            use_subsequence_ranges=subsequence_ranges,
            strict_isoforms=strict_isoforms,
            graph=graph,
        )
        run_config.validate_paths()
    except ConfigurationError as e:
        logger.error(str(e))
        raise SystemExit(EXIT_CONFIGURATION_ERROR) from e

    if log is None:
        log = run_config.output_dir / "pathway-matcher.log"
    run_config.output_dir.mkdir(parents=True, exist_ok=True)
    handler_id = _setup_file_logging(log)
    logger.info(f"Logging to {log}")

    try:
        run_pathway_matcher(run_config)
    except TableLoadError as e:
        logger.error(f"FATAL: {e}")
        raise SystemExit(EXIT_TABLE_LOAD_ERROR) from e
    finally:
        logger.remove(handler_id)
    logger.info("Done!")


if __name__ == "__main__":
    app()
