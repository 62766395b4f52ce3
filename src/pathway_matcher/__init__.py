"""
pathway-matcher: map biological entities to pathways and score enrichment.

Example:
    >>> from pathway_matcher import MatchConfig, MatchType, parse_proteoform, proteoforms_match
    >>>
    >>> iP = parse_proteoform("P08235-2;")
    >>> rP = parse_proteoform("P08235;00046:395")
    >>> proteoforms_match(iP, rP, MatchConfig(MatchType.SUPERSET))
    True
    >>> proteoforms_match(iP, rP, MatchConfig(MatchType.EXACT))
    False
"""

from pathway_matcher.analysis import PathwayStatistics, analyse, benjamini_hochberg, hypergeometric_pvalue
from pathway_matcher.config import ConfigurationError, EntityKind, InputType, MatchType, RunConfig
from pathway_matcher.matching import MatchConfig, ProteoformIndex, match, proteoforms_match
from pathway_matcher.proteoform import Modification, Proteoform, parse_proteoform
from pathway_matcher.search import SearchAccumulator, SearchRow, search
from pathway_matcher.tables import StaticTables, TableLoadError

__all__ = [
    "ConfigurationError",
    "EntityKind",
    "InputType",
    "MatchConfig",
    "MatchType",
    "Modification",
    "PathwayStatistics",
    "Proteoform",
    "ProteoformIndex",
    "RunConfig",
    "SearchAccumulator",
    "SearchRow",
    "StaticTables",
    "TableLoadError",
    "analyse",
    "benjamini_hochberg",
    "hypergeometric_pvalue",
    "match",
    "parse_proteoform",
    "proteoforms_match",
    "search",
]

__version__ = "0.1.0"
