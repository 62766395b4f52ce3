"""
Search: expand matched reference entities into reactions and pathways.

Each matched entity is followed through entity -> reaction -> pathway
(-> top-level pathway). Every combination reached becomes one row, and
the run-wide hit sets used by the analysis are updated.
"""

from dataclasses import dataclass, field
from typing import Hashable, Iterable, Mapping

import pandas as pd
from loguru import logger

from pathway_matcher.model import Pathway, Reaction
from pathway_matcher.proteoform import Proteoform

SEARCH_COLUMNS = [
    "INPUT",
    "UNIPROT",
    "PROTEOFORM",
    "REACTION_STID",
    "REACTION_DISPLAY_NAME",
    "PATHWAY_STID",
    "PATHWAY_DISPLAY_NAME",
    "TOP_LEVEL_PATHWAY_STID",
    "TOP_LEVEL_PATHWAY_DISPLAY_NAME",
]


@dataclass(frozen=True, slots=True)
class SearchRow:
    """One (input, entity, reaction, pathway[, top-level pathway]) combination."""

    input: str
    protein: str
    proteoform: str | None
    reaction_stid: str
    reaction_name: str
    pathway_stid: str
    pathway_name: str
    top_level_pathway_stid: str | None = None
    top_level_pathway_name: str | None = None


@dataclass
class SearchAccumulator:
    """
    Hit sets accumulated over every search call of one run.

    Batches (e.g. one per chromosome) add to the same accumulator; the
    sets are never reset mid-run.

    Attributes:
        hit_proteins: Proteins that produced at least one row
        hit_proteoforms: Reference proteoforms that produced at least one row
        hit_pathways: Pathways reached by any entity
        pathway_entities: Pathway -> entities found in it
        pathway_reactions: Pathway -> reactions found in it
    """

    hit_proteins: set[str] = field(default_factory=set)
    hit_proteoforms: set[Proteoform] = field(default_factory=set)
    hit_pathways: set[str] = field(default_factory=set)
    pathway_entities: dict[str, set[Hashable]] = field(default_factory=dict)
    pathway_reactions: dict[str, set[str]] = field(default_factory=dict)

    def record(self, entity: Hashable, reaction: str, pathway: str) -> None:
        if isinstance(entity, Proteoform):
            self.hit_proteoforms.add(entity)
            self.hit_proteins.add(entity.accession)
        else:
            self.hit_proteins.add(entity)
        self.hit_pathways.add(pathway)
        self.pathway_entities.setdefault(pathway, set()).add(entity)
        self.pathway_reactions.setdefault(pathway, set()).add(reaction)

    def sample_size(self, proteoform_level: bool = False) -> int:
        """Number of distinct hit entities (n in the enrichment test)."""
        return len(self.hit_proteoforms) if proteoform_level else len(self.hit_proteins)


def _entity_sort_key(entity: Hashable):
    if isinstance(entity, Proteoform):
        return entity.sort_key
    return (entity,)


def search(
    matches: Mapping[Hashable, Iterable[str]],
    entity_reactions: Mapping[Hashable, Iterable[str]],
    reactions: Mapping[str, Reaction],
    pathways: Mapping[str, Pathway],
    reactions_to_pathways: Mapping[str, Iterable[str]],
    accumulator: SearchAccumulator,
    top_level_pathways: Mapping[str, Iterable[str]] | None = None,
) -> list[SearchRow]:
    """
    Expand matched entities into reaction/pathway rows.

    Args:
        matches: Matched reference entity -> input labels (from matching)
        entity_reactions: Reference entity -> reactions
        reactions: Reaction catalog
        pathways: Pathway catalog
        reactions_to_pathways: Reaction -> pathways
        accumulator: Run-wide hit sets, updated in place
        top_level_pathways: Pathway -> top-level pathways; None disables
            the top-level columns

    Returns:
        Rows in deterministic order (entity, input, reaction, pathway,
        top-level pathway)
    """
    rows = []
    for entity in sorted(matches, key=_entity_sort_key):
        entity_rxns = sorted(entity_reactions.get(entity, ()))
        if not entity_rxns:
            continue

        if isinstance(entity, Proteoform):
            protein, proteoform = entity.accession, entity.notation
        else:
            protein, proteoform = entity, None

        for label in sorted(matches[entity]):
            for reaction_stid in entity_rxns:
                reaction = reactions.get(reaction_stid)
                reaction_name = reaction.name if reaction else ""
                for pathway_stid in sorted(reactions_to_pathways.get(reaction_stid, ())):
                    pathway = pathways.get(pathway_stid)
                    pathway_name = pathway.name if pathway else ""
                    accumulator.record(entity, reaction_stid, pathway_stid)

                    base = dict(
                        input=label,
                        protein=protein,
                        proteoform=proteoform,
                        reaction_stid=reaction_stid,
                        reaction_name=reaction_name,
                        pathway_stid=pathway_stid,
                        pathway_name=pathway_name,
                    )
                    if top_level_pathways is None:
                        rows.append(SearchRow(**base))
                        continue

                    tlps = sorted(top_level_pathways.get(pathway_stid, ()))
                    if not tlps:
                        rows.append(SearchRow(**base))
                    for tlp in tlps:
                        tlp_entry = pathways.get(tlp)
                        rows.append(
                            SearchRow(
                                **base,
                                top_level_pathway_stid=tlp,
                                top_level_pathway_name=tlp_entry.name if tlp_entry else "",
                            )
                        )

    logger.info(f"Search rows: {len(rows):,}; pathways hit so far: {len(accumulator.hit_pathways):,}")
    return rows


def rows_to_dataframe(rows: Iterable[SearchRow], top_level_pathways: bool = False) -> pd.DataFrame:
    """Convert search rows to a DataFrame with the report column names."""
    columns = SEARCH_COLUMNS if top_level_pathways else SEARCH_COLUMNS[:-2]
    records = [
        (
            r.input,
            r.protein,
            r.proteoform,
            r.reaction_stid,
            r.reaction_name,
            r.pathway_stid,
            r.pathway_name,
            r.top_level_pathway_stid,
            r.top_level_pathway_name,
        )[: len(columns)]
        for r in rows
    ]
    return pd.DataFrame.from_records(records, columns=columns)
