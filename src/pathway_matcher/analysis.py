"""
Over-representation analysis (ORA) of the pathways hit by a search.

For each hit pathway p with K_p annotated entities, of which k_p were
found, the enrichment p-value is the hypergeometric upper tail
P(X >= k_p) for a sample of n hit entities drawn from a universe of N.
P-values are corrected across all hit pathways with Benjamini-Hochberg.
"""

from dataclasses import dataclass, field
from typing import Hashable, Iterable, Mapping, Sequence

import numpy as np
import pandas as pd
from loguru import logger
from scipy.stats import hypergeom

from pathway_matcher.model import Pathway
from pathway_matcher.proteoform import Proteoform
from pathway_matcher.search import SearchAccumulator

SIGNIFICANCE_THRESHOLD = 0.05

ANALYSIS_COLUMNS = [
    "Pathway StId",
    "Pathway Name",
    "# Entities Found",
    "# Entities Total",
    "Entities Ratio",
    "Entities P-Value",
    "Significant",
    "Entities FDR",
    "# Reactions Found",
    "# Reactions Total",
    "Reactions Ratio",
    "Entities Found",
    "Reactions Found",
]


def hypergeometric_pvalue(population: int, successes: int, draws: int, observed: int) -> float:
    """
    Upper-tail hypergeometric probability P(X >= observed).

    Args:
        population: Universe size N
        successes: Entities annotated to the pathway K
        draws: Sample size n (hit entities)
        observed: Entities found in the pathway k

    Returns:
        P-value in [0, 1]; 1.0 when the test is undefined (N, n or K is
        zero) or nothing was observed
    """
    if population <= 0 or draws <= 0 or successes <= 0 or observed <= 0:
        return 1.0
    if successes > population or draws > population:
        logger.warning(
            f"Pathway or sample larger than the universe (N={population}, K={successes}, n={draws}); "
            "clamping to N"
        )
        successes = min(successes, population)
        draws = min(draws, population)
    # sf(k - 1) = P(X > k - 1) = P(X >= k)
    p = float(hypergeom.sf(observed - 1, population, successes, draws))
    if np.isnan(p):
        return 1.0
    return min(max(p, 0.0), 1.0)


def benjamini_hochberg(pvalues: Sequence[float]) -> np.ndarray:
    """
    Benjamini-Hochberg adjusted p-values (FDR), in input order.

    Sorted ascending, rank i of m gets p_i * m / i; a running minimum from
    the largest rank down keeps the result monotone, then it is clipped to
    [0, 1].
    """
    p = np.asarray(pvalues, dtype=np.float64)
    m = p.size
    if m == 0:
        return np.empty(0, dtype=np.float64)

    order = np.argsort(p, kind="mergesort")
    ranks = np.arange(1, m + 1, dtype=np.float64)
    adjusted = p[order] * m / ranks
    adjusted = np.minimum.accumulate(adjusted[::-1])[::-1]

    fdr = np.empty(m, dtype=np.float64)
    fdr[order] = np.clip(adjusted, 0.0, 1.0)
    return fdr


def coverage_ratio(total: int, universe: int, found: int) -> float:
    """Fraction of the universe annotated to a pathway; 0 when nothing was found."""
    if universe <= 0 or total <= 0 or found <= 0:
        return 0.0
    return total / universe


def _label(entity: Hashable) -> str:
    return entity.notation if isinstance(entity, Proteoform) else str(entity)


@dataclass
class PathwayStatistics:
    """ORA result for one hit pathway."""

    stid: str
    name: str
    entities_found: int
    entities_total: int
    entities_ratio: float
    entities_pvalue: float
    entities_fdr: float
    reactions_found: int
    reactions_total: int
    reactions_ratio: float
    found_entities: list[str] = field(default_factory=list)
    found_reactions: list[str] = field(default_factory=list)

    @property
    def significant(self) -> bool:
        return self.entities_pvalue < SIGNIFICANCE_THRESHOLD


def analyse(
    accumulator: SearchAccumulator,
    pathways: Mapping[str, Pathway],
    population_size: int,
    sample_size: int,
    reaction_universe: int,
) -> list[PathwayStatistics]:
    """
    Score every hit pathway.

    Args:
        accumulator: Hit sets from the search stage
        pathways: Pathway catalog (totals)
        population_size: Distinct entities in the reference universe (N)
        sample_size: Distinct hit entities (n)
        reaction_universe: Distinct reactions in the reference data

    Returns:
        Statistics for the hit pathways, sorted by p-value then pathway id
    """
    stats = []
    for stid in sorted(accumulator.hit_pathways):
        pathway = pathways.get(stid, Pathway(stid=stid, name=""))
        entities = accumulator.pathway_entities.get(stid, set())
        reactions = accumulator.pathway_reactions.get(stid, set())
        k = len(entities)
        stats.append(
            PathwayStatistics(
                stid=stid,
                name=pathway.name,
                entities_found=k,
                entities_total=pathway.num_entities_total,
                entities_ratio=coverage_ratio(pathway.num_entities_total, population_size, k),
                entities_pvalue=hypergeometric_pvalue(
                    population_size, pathway.num_entities_total, sample_size, k
                ),
                entities_fdr=1.0,
                reactions_found=len(reactions),
                reactions_total=pathway.num_reactions_total,
                reactions_ratio=coverage_ratio(
                    pathway.num_reactions_total, reaction_universe, len(reactions)
                ),
                found_entities=sorted(_label(e) for e in entities),
                found_reactions=sorted(reactions),
            )
        )

    fdr = benjamini_hochberg([s.entities_pvalue for s in stats])
    for s, value in zip(stats, fdr):
        s.entities_fdr = float(value)

    stats.sort(key=lambda s: (s.entities_pvalue, s.stid))
    n_significant = sum(s.significant for s in stats)
    logger.info(
        f"Analysed {len(stats):,} pathways (N={population_size:,}, n={sample_size:,}); "
        f"significant: {n_significant:,}"
    )
    return stats


def statistics_to_dataframe(stats: Iterable[PathwayStatistics]) -> pd.DataFrame:
    """Convert pathway statistics to a DataFrame with the report column names."""
    records = [
        (
            s.stid,
            s.name,
            s.entities_found,
            s.entities_total,
            s.entities_ratio,
            s.entities_pvalue,
            "Yes" if s.significant else "No",
            s.entities_fdr,
            s.reactions_found,
            s.reactions_total,
            s.reactions_ratio,
            ";".join(s.found_entities),
            ";".join(s.found_reactions),
        )
        for s in stats
    ]
    return pd.DataFrame.from_records(records, columns=ANALYSIS_COLUMNS)
