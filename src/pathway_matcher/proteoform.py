"""
Proteoform representation and notation parsing.

A proteoform is a protein accession (optionally with an isoform suffix)
plus a set of post-translational modifications and an optional
subsequence range. The textual notation is::

    ACCESSION[:START-END];TYPE:SITE,TYPE:SITE

Unknown modification types are written ``00000`` and unknown sites
``null`` (``?`` is accepted on input).
"""

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Iterable

UNKNOWN_TYPE = "00000"
UNKNOWN_COORDINATE = "null"

_MOD_TYPE = re.compile(r"^\d{5}$")
_ACCESSION = re.compile(r"^[A-Za-z0-9_]+(-\d+)?$")


def parse_coordinate(text: str) -> int | None:
    """Parse a residue coordinate, returning None for unknown sites."""
    text = text.strip()
    if text.lower() in ("null", "?", ""):
        return None
    value = int(text)
    if value < 0:
        raise ValueError(f"Negative coordinate: {text}")
    return value


def format_coordinate(value: int | None) -> str:
    return UNKNOWN_COORDINATE if value is None else str(value)


@total_ordering
@dataclass(frozen=True, slots=True)
class Modification:
    """A PTM: a PSI-MOD type code at a residue coordinate.

    Either part may be None when unknown.
    """

    type: str | None
    coordinate: int | None = None

    @property
    def sort_key(self) -> tuple[int, str]:
        coordinate = -1 if self.coordinate is None else self.coordinate
        return (coordinate, self.type or UNKNOWN_TYPE)

    def __lt__(self, other: "Modification") -> bool:
        if not isinstance(other, Modification):
            return NotImplemented
        return self.sort_key < other.sort_key

    @property
    def notation(self) -> str:
        return f"{self.type or UNKNOWN_TYPE}:{format_coordinate(self.coordinate)}"

    @classmethod
    def parse(cls, text: str) -> "Modification":
        """Parse ``TYPE:SITE``."""
        parts = text.strip().split(":")
        if len(parts) != 2:
            raise ValueError(f"Invalid modification: {text!r}")
        mod_type, site = parts
        if not _MOD_TYPE.match(mod_type):
            raise ValueError(f"Invalid modification type: {mod_type!r}")
        return cls(
            type=None if mod_type == UNKNOWN_TYPE else mod_type,
            coordinate=parse_coordinate(site),
        )


@total_ordering
@dataclass(frozen=True, slots=True)
class Proteoform:
    """A protein with an optional subsequence range and a set of PTMs.

    Modifications are deduplicated and stored sorted by coordinate then
    type, so two proteoforms built from the same PTMs in any order are
    equal and hash alike.

    Attributes:
        accession: UniProt accession, possibly with an isoform suffix
        start: First residue of the subsequence, None for the whole protein
        end: Last residue of the subsequence, None for the whole protein
        modifications: Sorted tuple of unique modifications
    """

    accession: str
    start: int | None = None
    end: int | None = None
    modifications: tuple[Modification, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, "modifications", tuple(sorted(set(self.modifications))))

    @property
    def base_accession(self) -> str:
        """Accession without the isoform suffix."""
        return self.accession.split("-", 1)[0]

    @property
    def isoform(self) -> int | None:
        if "-" not in self.accession:
            return None
        return int(self.accession.split("-", 1)[1])

    @property
    def sort_key(self) -> tuple:
        return (
            self.accession,
            -1 if self.start is None else self.start,
            -1 if self.end is None else self.end,
            tuple(m.sort_key for m in self.modifications),
        )

    def __lt__(self, other: "Proteoform") -> bool:
        if not isinstance(other, Proteoform):
            return NotImplemented
        return self.sort_key < other.sort_key

    @property
    def notation(self) -> str:
        head = self.accession
        if self.start is not None or self.end is not None:
            head += f":{format_coordinate(self.start)}-{format_coordinate(self.end)}"
        return head + ";" + ",".join(m.notation for m in self.modifications)

    def __str__(self) -> str:
        return self.notation


def parse_modifications(text: str) -> list[Modification]:
    """Parse a comma separated modification list (may be empty)."""
    text = text.strip()
    if not text:
        return []
    return [Modification.parse(part) for part in text.split(",")]


def parse_proteoform(text: str) -> Proteoform:
    """Parse proteoform notation.

    Args:
        text: e.g. ``P08235-2;`` or ``P02545:10-200;00046:395,00047:null``

    Returns:
        Proteoform

    Raises:
        ValueError: If the notation is malformed
    """
    text = text.strip()
    if ";" not in text:
        raise ValueError(f"Missing ';' in proteoform: {text!r}")
    head, mods = text.split(";", 1)

    start = end = None
    if ":" in head:
        head, span = head.split(":", 1)
        bounds = span.split("-")
        if len(bounds) != 2:
            raise ValueError(f"Invalid subsequence range: {span!r}")
        start, end = parse_coordinate(bounds[0]), parse_coordinate(bounds[1])
        if start is not None and end is not None and start > end:
            raise ValueError(f"Range start after end: {span!r}")

    if not _ACCESSION.match(head):
        raise ValueError(f"Invalid accession: {head!r}")

    return Proteoform(
        accession=head,
        start=start,
        end=end,
        modifications=tuple(parse_modifications(mods)),
    )


def make_proteoform(
    accession: str,
    modifications: Iterable[tuple[str | None, int | None]] = (),
    start: int | None = None,
    end: int | None = None,
) -> Proteoform:
    """Build a proteoform from (type, coordinate) pairs."""
    mods = tuple(
        Modification(None if t == UNKNOWN_TYPE else t, c) for t, c in modifications
    )
    return Proteoform(accession=accession, start=start, end=end, modifications=mods)
