"""
The pathway-matcher run: preprocess, match, search, analyse, report.

Stages run strictly in sequence; variant inputs are matched and searched
one chromosome at a time against a shared accumulator.
"""

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from pathway_matcher.analysis import PathwayStatistics, analyse
from pathway_matcher.config import EntityKind, InputType, RunConfig
from pathway_matcher.matching import MatchConfig, ProteoformIndex, match
from pathway_matcher.peptides import annotate_peptides, modified_peptide_proteoforms
from pathway_matcher.preprocess import InputEntity, ModifiedPeptide, preprocess
from pathway_matcher.report import write_analysis_results, write_connection_graph, write_search_results
from pathway_matcher.search import SearchAccumulator, SearchRow, search
from pathway_matcher.tables import Relation, StaticTables, iter_variant_tables


@dataclass
class RunResult:
    """Everything a run produced."""

    rows: list[SearchRow]
    statistics: list[PathwayStatistics]
    accumulator: SearchAccumulator
    n_inputs: int
    population_size: int


def read_input(path: Path) -> list[str]:
    logger.info(f"Reading input from {path}")
    with open(path) as f:
        return f.read().splitlines()


def protein_relation(entities: list[InputEntity], universe: Relation) -> Relation:
    """Identity relation onto the protein universe.

    An isoform accession missing from the universe falls back to its
    canonical accession.
    """
    relation = {}
    for e in entities:
        accession = e.entity
        if accession in universe:
            relation[accession] = (accession,)
        elif accession.split("-", 1)[0] in universe:
            relation[accession] = (accession.split("-", 1)[0],)
    return relation


def peptide_relation(entities: list[InputEntity], sequences: dict[str, str]) -> Relation:
    annotations = annotate_peptides((e.entity for e in entities), sequences)
    logger.info(f"Peptide-protein matches: {len(annotations):,}")
    return annotations.proteins_by_peptide()


def modified_peptide_inputs(entities: list[InputEntity], sequences: dict[str, str]) -> list[tuple]:
    """Expand modified peptides into (label, proteoform) pairs."""
    peptides = [e.entity for e in entities if isinstance(e.entity, ModifiedPeptide)]
    annotations = annotate_peptides((p.sequence for p in peptides), sequences)
    logger.info(f"Peptide-protein matches: {len(annotations):,}")
    pairs = []
    for e in entities:
        for proteoform in modified_peptide_proteoforms(e.entity.sequence, e.entity.modifications, annotations):
            pairs.append((e.label, proteoform))
    return pairs


def _search_batch(
    matches: dict,
    entity_reactions,
    tables: StaticTables,
    accumulator: SearchAccumulator,
) -> list[SearchRow]:
    return search(
        matches,
        entity_reactions,
        tables.reactions,
        tables.pathways,
        tables.reactions_to_pathways,
        accumulator,
        top_level_pathways=tables.pathways_to_top_level_pathways,
    )


def _run_proteoforms(
    entities: list[InputEntity], config: RunConfig, tables: StaticTables, accumulator: SearchAccumulator
) -> list[SearchRow]:
    if config.input_type is InputType.MODIFIEDPEPTIDE:
        pairs = modified_peptide_inputs(entities, tables.protein_sequences)
    else:
        pairs = [(e.label, e.entity) for e in entities]

    index = ProteoformIndex(tables.proteoforms_to_reactions)
    match_config = MatchConfig(
        match_type=config.match_type,
        margin=config.margin,
        use_subsequence_ranges=config.use_subsequence_ranges,
        strict_isoforms=config.strict_isoforms,
    )
    logger.info(
        f"Matching {len(pairs):,} proteoforms against {len(index):,} references "
        f"({config.match_type.value}, margin {config.margin})"
    )
    matches = match(pairs, EntityKind.PROTEOFORM, index, match_config)
    logger.info(f"Matched reference proteoforms: {len(matches):,}")
    return _search_batch(matches, tables.proteoforms_to_reactions, tables, accumulator)


def _run_identifiers(
    entities: list[InputEntity], config: RunConfig, tables: StaticTables, accumulator: SearchAccumulator
) -> list[SearchRow]:
    if config.input_type is InputType.UNIPROT:
        relation = protein_relation(entities, tables.proteins_to_reactions)
    elif config.input_type is InputType.PEPTIDE:
        relation = peptide_relation(entities, tables.protein_sequences)
    else:
        relation = tables.identifiers_to_proteins

    pairs = [(e.label, e.entity) for e in entities]
    matches = match(pairs, EntityKind.IDENTIFIER, relation)
    logger.info(f"Matched proteins: {len(matches):,}")
    return _search_batch(matches, tables.proteins_to_reactions, tables, accumulator)


def _run_variants(
    entities: list[InputEntity], config: RunConfig, tables: StaticTables, accumulator: SearchAccumulator
) -> list[SearchRow]:
    rows = []
    for chromosome, relation in iter_variant_tables(
        tables.directory, config.input_type, tables.variant_tables
    ):
        pairs = [
            (e.label, e.entity)
            for e in entities
            if e.chromosome is None or e.chromosome == chromosome
        ]
        matches = match(pairs, EntityKind.IDENTIFIER, relation)
        logger.info(f"Chromosome {chromosome}: matched proteins: {len(matches):,}")
        rows.extend(_search_batch(matches, tables.proteins_to_reactions, tables, accumulator))
    return rows


def run_pathway_matcher(config: RunConfig, write_reports: bool = True) -> RunResult:
    """
    Run the full pipeline for one input file.

    Args:
        config: Validated run configuration
        write_reports: Write search.tsv and analysis.tsv (and the connection
            graph when config.graph is set) to config.output_dir

    Returns:
        RunResult with search rows and pathway statistics

    Raises:
        ConfigurationError: If the input file or tables directory is missing
        TableLoadError: If a static table is missing or corrupt
    """
    config.validate_paths()

    # Step 1: Preprocess
    entities = preprocess(read_input(config.input_path), config.input_type)

    # Step 2: Load reference data
    tables = StaticTables.load(
        config.tables_dir, config.input_type, config.top_level_pathways, connection_graph=config.graph
    )

    # Step 3: Match and search
    accumulator = SearchAccumulator()
    proteoform_level = config.input_type.entity_kind is EntityKind.PROTEOFORM
    if proteoform_level:
        rows = _run_proteoforms(entities, config, tables, accumulator)
    elif config.input_type.is_variant:
        rows = _run_variants(entities, config, tables, accumulator)
    else:
        rows = _run_identifiers(entities, config, tables, accumulator)

    # Step 4: Analyse
    logger.info("Starting ORA analysis...")
    population = tables.proteoform_universe_size if proteoform_level else tables.protein_universe_size
    statistics = analyse(
        accumulator,
        tables.pathways,
        population_size=population,
        sample_size=accumulator.sample_size(proteoform_level),
        reaction_universe=len(tables.reactions),
    )

    result = RunResult(
        rows=rows,
        statistics=statistics,
        accumulator=accumulator,
        n_inputs=len(entities),
        population_size=population,
    )
    _log_summary(result, config)

    # Step 5: Report
    if write_reports:
        config.output_dir.mkdir(parents=True, exist_ok=True)
        write_search_results(rows, config.output_dir, top_level_pathways=config.top_level_pathways)
        write_analysis_results(statistics, config.output_dir)
        if config.graph:
            write_connection_graph(
                accumulator.hit_proteins, tables.reactions, config.output_dir, tables.protein_names
            )

    return result


def _log_summary(result: RunResult, config: RunConfig) -> None:
    acc = result.accumulator
    logger.info("=" * 60)
    logger.info("PATHWAY MATCHER SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Input file:          {config.input_path}")
    logger.info(f"Input type:          {config.input_type.value}")
    if config.input_type.entity_kind is EntityKind.PROTEOFORM:
        logger.info(f"Matching:            {config.match_type.value} (margin {config.margin})")
    logger.info("-" * 60)
    logger.info(f"Valid inputs:        {result.n_inputs:,}")
    logger.info(f"Hit proteins:        {len(acc.hit_proteins):,}")
    if acc.hit_proteoforms:
        logger.info(f"Hit proteoforms:     {len(acc.hit_proteoforms):,}")
    logger.info(f"Hit pathways:        {len(acc.hit_pathways):,}")
    logger.info(f"Search rows:         {len(result.rows):,}")
    logger.info(f"Significant (p<0.05): {sum(s.significant for s in result.statistics):,}")
    logger.info("=" * 60)
