"""
Run configuration.

Settings come from an optional YAML defaults file, with explicit
arguments (usually from the command line) taking precedence. All
validation happens here, before any table is loaded or any matching
work starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import yaml
from loguru import logger


class ConfigurationError(ValueError):
    """Invalid run configuration. Fatal, raised before any matching."""


class EntityKind(str, Enum):
    IDENTIFIER = "identifier"
    PROTEOFORM = "proteoform"


class MatchType(str, Enum):
    """Criteria deciding when an input proteoform equals a reference one."""

    EXACT = "EXACT"
    ONE = "ONE"
    SUPERSET = "SUPERSET"

    @classmethod
    def parse(cls, value: str | MatchType) -> MatchType:
        if isinstance(value, MatchType):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            choices = "|".join(m.value for m in cls)
            raise ConfigurationError(f"Invalid match type: {value!r}. Expected one of {choices}") from None


class InputType(str, Enum):
    GENE = "GENE"
    ENSEMBL = "ENSEMBL"
    UNIPROT = "UNIPROT"
    PEPTIDE = "PEPTIDE"
    MODIFIEDPEPTIDE = "MODIFIEDPEPTIDE"
    PROTEOFORM = "PROTEOFORM"
    RSID = "RSID"
    CHRBP = "CHRBP"
    VCF = "VCF"

    @classmethod
    def parse(cls, value: str | InputType) -> InputType:
        """Parse an input type name; plural forms (``GENES``) are accepted."""
        if isinstance(value, InputType):
            return value
        name = str(value).strip().upper()
        if name not in cls.__members__ and name.endswith("S"):
            name = name[:-1]
        if name not in cls.__members__:
            choices = "|".join(t.value for t in cls)
            raise ConfigurationError(f"Invalid input type: {value!r}. Expected one of {choices}")
        return cls[name]

    @property
    def entity_kind(self) -> EntityKind:
        if self in (InputType.PROTEOFORM, InputType.MODIFIEDPEPTIDE):
            return EntityKind.PROTEOFORM
        return EntityKind.IDENTIFIER

    @property
    def is_variant(self) -> bool:
        return self in (InputType.RSID, InputType.CHRBP, InputType.VCF)


@dataclass
class RunConfig:
    """Validated settings for one pathway-matcher run."""

    input_path: Path
    input_type: InputType
    tables_dir: Path
    output_dir: Path = Path(".")
    match_type: MatchType = MatchType.SUPERSET
    margin: int = 0
    top_level_pathways: bool = False
    use_subsequence_ranges: bool = False
    strict_isoforms: bool = False
    graph: bool = False

    def __post_init__(self):
        self.input_path = Path(self.input_path)
        self.tables_dir = Path(self.tables_dir)
        self.output_dir = Path(self.output_dir)
        self.input_type = InputType.parse(self.input_type)
        self.match_type = MatchType.parse(self.match_type)
        self.margin = validate_margin(self.margin)

    def validate_paths(self) -> None:
        """Check that the input file and tables directory exist."""
        if not self.input_path.is_file():
            raise ConfigurationError(f"Input file not found: {self.input_path}")
        if not self.tables_dir.is_dir():
            raise ConfigurationError(f"Tables directory not found: {self.tables_dir}")


def validate_margin(value) -> int:
    try:
        margin = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid PTM site margin: {value!r}") from None
    if margin < 0 or margin != float(value):
        raise ConfigurationError(f"PTM site margin must be a non-negative integer, got {value!r}")
    return margin


def load_defaults(config_path: Path | None) -> dict:
    """Load a YAML defaults file; an absent path gives no defaults."""
    if config_path is None:
        return {}
    if not config_path.exists():
        raise ConfigurationError(f"Config defaults file not found: {config_path}")
    with open(config_path) as f:
        try:
            defaults = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Could not parse {config_path}: {e}") from e
    if not isinstance(defaults, dict):
        raise ConfigurationError(f"Config defaults must be a mapping: {config_path}")
    logger.info(f"Loaded config defaults from {config_path}")
    return defaults


def build_config(config_path: Path | None = None, **overrides) -> RunConfig:
    """
    Build a RunConfig from YAML defaults and explicit overrides.

    Overrides set to None fall back to the defaults file, then to the
    RunConfig defaults.

    Args:
        config_path: Optional YAML file with default parameters
        **overrides: RunConfig fields (None means "not given")

    Returns:
        Validated RunConfig

    Raises:
        ConfigurationError: On unknown keys, missing required values or
            invalid values
    """
    defaults = load_defaults(config_path)
    known = set(RunConfig.__dataclass_fields__)
    unknown = set(defaults) - known
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {sorted(unknown)}")

    values = dict(defaults)
    values.update({k: v for k, v in overrides.items() if v is not None})

    for required in ("input_path", "input_type", "tables_dir"):
        if values.get(required) is None:
            raise ConfigurationError(f"{required} is required (either as an argument or in the config file)")

    return RunConfig(**values)
