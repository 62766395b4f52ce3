"""Static catalog entities: reactions and pathways."""

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """Structural role of a participant in a reaction."""

    INPUT = "input"
    OUTPUT = "output"
    CATALYST = "catalyst"
    REGULATOR = "regulator"

    @classmethod
    def parse(cls, value: str) -> "Role":
        return cls(value.strip().lower())


@dataclass(frozen=True, slots=True)
class Reaction:
    """A reaction with its participants."""

    stid: str
    name: str
    participants: dict[str, Role] = field(default_factory=dict, hash=False, compare=False)

    def participants_with_role(self, role: Role) -> list[str]:
        return sorted(p for p, r in self.participants.items() if r == role)


@dataclass(frozen=True, slots=True)
class Pathway:
    """A pathway catalog entry.

    Attributes:
        stid: Stable identifier
        name: Display name
        num_entities_total: Entities annotated to the pathway (K)
        num_reactions_total: Reactions contained in the pathway
    """

    stid: str
    name: str
    num_entities_total: int = 0
    num_reactions_total: int = 0
