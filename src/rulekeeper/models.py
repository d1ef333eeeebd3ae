"""
Data models for the character rules engine.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field
from shortuuid import random


def new_id() -> str:
    """Generate a new random 8-character id."""
    return random(length=8)


class CharacterClassName(str, Enum):
    """Closed set of playable classes."""
    FIGHTER = "Fighter"
    WIZARD = "Wizard"
    ROGUE = "Rogue"
    CLERIC = "Cleric"
    BARBARIAN = "Barbarian"
    RANGER = "Ranger"
    PALADIN = "Paladin"
    DRUID = "Druid"
    MONK = "Monk"
    WARLOCK = "Warlock"


class RaceName(str, Enum):
    """Closed set of playable races."""
    HUMAN = "Human"
    ELF = "Elf"
    DWARF = "Dwarf"
    HALFLING = "Halfling"
    GNOME = "Gnome"


class Ability(str, Enum):
    """The six ability scores, in canonical order."""
    STRENGTH = "strength"
    DEXTERITY = "dexterity"
    CONSTITUTION = "constitution"
    INTELLIGENCE = "intelligence"
    WISDOM = "wisdom"
    CHARISMA = "charisma"


ALL_ABILITIES = [a.value for a in Ability]


class CharacterStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    DECEASED = "Deceased"
    RETIRED = "Retired"


def ability_modifier(score: int) -> int:
    """Calculate the modifier for an ability score."""
    return (score - 10) // 2


class Spell(BaseModel):
    """A learned spell."""
    name: str
    level: int = Field(ge=0, le=9, description="Spell level, 0 for cantrips")
    school: str = ""
    prepared: bool = False


class InventoryItem(BaseModel):
    """An item carried by a character."""
    id: str = Field(default_factory=new_id)
    name: str
    weight: float = Field(default=0.0, ge=0, description="Weight in pounds")
    quantity: int = Field(default=1, ge=1)
    description: str | None = None


class MulticlassEntry(BaseModel):
    """One class and the levels taken in it."""
    class_name: str
    level: int = Field(default=1, ge=1)


class Alignment(BaseModel):
    """Moral and ethical alignment axes, e.g. moral='Good', ethical='Lawful'."""
    moral: str
    ethical: str

    @property
    def name(self) -> str:
        if self.moral == "Neutral" and self.ethical == "Neutral":
            return "True Neutral"
        return f"{self.ethical} {self.moral}"


class CharacterTraits(BaseModel):
    """Roleplaying traits, one list per category."""
    personality: list[str] = Field(default_factory=list)
    ideals: list[str] = Field(default_factory=list)
    bonds: list[str] = Field(default_factory=list)
    flaws: list[str] = Field(default_factory=list)

    def categories(self) -> dict[str, list[str]]:
        """Return every trait category keyed by its name."""
        return {
            "personality": self.personality,
            "ideals": self.ideals,
            "bonds": self.bonds,
            "flaws": self.flaws,
        }


class Character(BaseModel):
    """Complete character record.

    Race, class, level and ability scores are stored as given, without range
    checks, so that out-of-range records can be loaded and reported by the
    validation pipeline instead of failing at construction time.
    """
    # Basic Info
    id: str = Field(default_factory=new_id)
    name: str
    race: str = RaceName.HUMAN.value
    character_class: str = CharacterClassName.FIGHTER.value
    level: int = 1
    experience: int = Field(default=0, ge=0)
    status: CharacterStatus = CharacterStatus.ACTIVE
    campaign_id: str | None = None  # Reference only, the campaign owns the link

    # Core Stats
    ability_scores: dict[str, int] = Field(
        default_factory=lambda: {name: 10 for name in ALL_ABILITIES}
    )
    hit_points: int = Field(default=1, ge=1)
    armor_class: int = 10
    skills: dict[str, int] = Field(default_factory=dict)

    # Equipment & Magic
    inventory: list[InventoryItem] = Field(default_factory=list)
    spells: list[Spell] = Field(default_factory=list)  # Learn order

    # Progression
    multiclass: list[MulticlassEntry] | None = None
    archetype_features: list[str] | None = None

    # Roleplay
    alignment: Alignment | None = None
    traits: CharacterTraits = Field(default_factory=CharacterTraits)
    backstory: str | None = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    def score(self, ability: str | Ability) -> int:
        """Return an ability score, 10 when the ability is missing."""
        key = ability.value if isinstance(ability, Ability) else ability
        return self.ability_scores.get(key, 10)

    def modifier(self, ability: str | Ability) -> int:
        return ability_modifier(self.score(ability))

    @property
    def secondary_classes(self) -> list[MulticlassEntry]:
        """Multiclass entries other than the leading primary-class record.

        perform_multiclass converts a single-class character into a list that
        starts with the primary class itself; that record mirrors ``level``
        and must not be counted twice.
        """
        entries = list(self.multiclass or [])
        if entries and entries[0].class_name == self.character_class:
            entries = entries[1:]
        return entries

    @property
    def total_level(self) -> int:
        """Primary level plus every secondary class level."""
        return self.level + sum(e.level for e in self.secondary_classes)

    @property
    def is_multiclass(self) -> bool:
        return bool(self.secondary_classes)

    @property
    def selected_archetype(self) -> str | None:
        """The first archetype feature, which is the selected archetype."""
        if self.archetype_features:
            return self.archetype_features[0]
        return None

    def class_string(self) -> str:
        """Human-readable class string, e.g. 'Fighter 5 / Wizard 1'."""
        parts = [f"{self.character_class} {self.level}"]
        parts.extend(f"{e.class_name} {e.level}" for e in self.secondary_classes)
        return " / ".join(parts)

    def touch(self) -> None:
        """Update the last modified timestamp."""
        self.updated_at = datetime.now()


__all__ = [
    "new_id",
    "ability_modifier",
    "CharacterClassName",
    "RaceName",
    "Ability",
    "ALL_ABILITIES",
    "CharacterStatus",
    "Spell",
    "InventoryItem",
    "MulticlassEntry",
    "Alignment",
    "CharacterTraits",
    "Character",
]
