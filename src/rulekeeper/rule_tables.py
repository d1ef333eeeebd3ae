"""
Rule tables — immutable, class-keyed and race-keyed configuration.

Every table is keyed by the closed CharacterClassName / RaceName enums and is
checked at import time to cover each member, so a lookup for a canonical
class never falls back silently. Names outside the canonical sets resolve to
``None`` through the lookup helpers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel, ConfigDict

from .errors import RuleTableError
from .models import Ability, CharacterClassName, RaceName, Spell


# =============================================================================
# Global constants
# =============================================================================

MIN_ABILITY_SCORE = 3
MAX_ABILITY_SCORE = 20
MIN_LEVEL = 1
MAX_LEVEL = 20
HIGH_LEVEL_WARNING = 10
HIGH_TOTAL_LEVEL_WARNING = 15
MIN_SKILL_LEVEL = 0
MAX_SKILL_LEVEL = 20
SKILL_POINTS_PER_LEVEL = 2
CARRY_CAPACITY_FACTOR = 15
NEAR_LIMIT_RATIO = 0.8
MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 50
MAX_BACKSTORY_LENGTH = 1000
MAX_TRAITS_PER_CATEGORY = 3
DEFAULT_HIT_DIE = 8
EXPERIENCE_PER_LEVEL = 300
ASI_INTERVAL = 4
ASI_BONUS = 2


# =============================================================================
# Rule records
# =============================================================================

class SpellSlots(BaseModel):
    """Daily spell slots by tier."""
    model_config = ConfigDict(frozen=True)

    cantrips: int
    level_1: int
    level_2: int | None = None
    level_3: int | None = None


DEFAULT_SPELL_SLOTS = SpellSlots(cantrips=2, level_1=2)


@dataclass(frozen=True)
class SpellLearningRules:
    """When a class learns spells and which ones."""
    max_spells_per_level: int
    learning_levels: tuple[int, ...]
    # Keyed by floor(character level / 2)
    spells_by_level: Mapping[int, tuple[Spell, ...]]


@dataclass(frozen=True)
class ClassRules:
    """Everything the engine needs to know about one class."""
    name: CharacterClassName
    hit_die: int
    minimum_scores: Mapping[str, int] = field(default_factory=dict)
    multiclass_prerequisites: Mapping[str, int] = field(default_factory=dict)
    spellcaster: bool = False
    starting_spells: tuple[Spell, ...] = ()
    spell_learning: SpellLearningRules | None = None
    spell_slots: Mapping[int, SpellSlots] = field(default_factory=dict)
    archetypes: tuple[str, ...] = ()
    # Order in which generated scores are assigned, best first
    ability_priority: tuple[str, ...] = ()


@dataclass(frozen=True)
class RaceRules:
    """Racial ability-score bands.

    ``hard_minimums`` block validation; the other bands only warn.
    """
    name: RaceName
    min_total_score: int | None = None
    max_total_score: int | None = None
    hard_minimums: Mapping[str, int] = field(default_factory=dict)
    soft_minimums: Mapping[str, int] = field(default_factory=dict)
    soft_maximums: Mapping[str, int] = field(default_factory=dict)


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(mapping)


def _spells(*entries: tuple[str, int, str]) -> tuple[Spell, ...]:
    return tuple(Spell(name=name, level=level, school=school) for name, level, school in entries)


STR, DEX, CON, INT, WIS, CHA = (a.value for a in Ability)


# =============================================================================
# Spell data
# =============================================================================

_FULL_CASTER_SLOTS = _frozen({
    1: SpellSlots(cantrips=3, level_1=2),
    2: SpellSlots(cantrips=3, level_1=3),
    3: SpellSlots(cantrips=3, level_1=4, level_2=2),
})

WIZARD_SPELL_LEARNING = SpellLearningRules(
    max_spells_per_level=6,
    learning_levels=(1, 2, 4, 8, 12, 16, 19),
    spells_by_level=_frozen({
        1: _spells(
            ("Magic Missile", 1, "Evocation"),
            ("Shield", 1, "Abjuration"),
            ("Mage Armor", 1, "Abjuration"),
        ),
        2: _spells(
            ("Misty Step", 2, "Conjuration"),
            ("Scorching Ray", 2, "Evocation"),
        ),
    }),
)

CLERIC_SPELL_LEARNING = SpellLearningRules(
    max_spells_per_level=5,
    learning_levels=(1, 3, 5, 7, 9, 11, 13, 15, 17, 19),
    spells_by_level=_frozen({
        1: _spells(
            ("Cure Wounds", 1, "Healing"),
            ("Bless", 1, "Support"),
        ),
        2: _spells(
            ("Spiritual Weapon", 2, "Evocation"),
        ),
    }),
)


# =============================================================================
# Class table
# =============================================================================

CLASS_RULES: Mapping[CharacterClassName, ClassRules] = _frozen({
    CharacterClassName.FIGHTER: ClassRules(
        name=CharacterClassName.FIGHTER,
        hit_die=10,
        minimum_scores=_frozen({STR: 13, CON: 12}),
        multiclass_prerequisites=_frozen({STR: 13, DEX: 13}),
        archetypes=("Champion", "Battle Master", "Eldritch Knight"),
        ability_priority=(STR, CON, DEX, WIS, CHA, INT),
    ),
    CharacterClassName.WIZARD: ClassRules(
        name=CharacterClassName.WIZARD,
        hit_die=6,
        minimum_scores=_frozen({INT: 14, DEX: 10}),
        multiclass_prerequisites=_frozen({INT: 13}),
        spellcaster=True,
        starting_spells=_spells(
            ("Mage Hand", 0, "Conjuration"),
            ("Prestidigitation", 0, "Transmutation"),
        ),
        spell_learning=WIZARD_SPELL_LEARNING,
        spell_slots=_FULL_CASTER_SLOTS,
        archetypes=("Abjuration", "Divination", "Evocation", "Illusion", "Necromancy"),
        ability_priority=(INT, DEX, CON, WIS, CHA, STR),
    ),
    CharacterClassName.ROGUE: ClassRules(
        name=CharacterClassName.ROGUE,
        hit_die=8,
        minimum_scores=_frozen({DEX: 13, INT: 10}),
        multiclass_prerequisites=_frozen({DEX: 13}),
        archetypes=("Thief", "Assassin", "Arcane Trickster"),
        ability_priority=(DEX, INT, CON, CHA, WIS, STR),
    ),
    CharacterClassName.CLERIC: ClassRules(
        name=CharacterClassName.CLERIC,
        hit_die=8,
        minimum_scores=_frozen({WIS: 13, CON: 10}),
        spellcaster=True,
        starting_spells=_spells(
            ("Guidance", 0, "Divination"),
            ("Light", 0, "Evocation"),
        ),
        spell_learning=CLERIC_SPELL_LEARNING,
        spell_slots=_FULL_CASTER_SLOTS,
        archetypes=("Life Domain", "Light Domain", "War Domain", "Knowledge Domain"),
        ability_priority=(WIS, CON, STR, DEX, CHA, INT),
    ),
    CharacterClassName.BARBARIAN: ClassRules(
        name=CharacterClassName.BARBARIAN,
        hit_die=12,
        archetypes=("Path of the Berserker", "Path of the Totem Warrior"),
        ability_priority=(STR, CON, DEX, WIS, CHA, INT),
    ),
    CharacterClassName.RANGER: ClassRules(
        name=CharacterClassName.RANGER,
        hit_die=10,
        spellcaster=True,
        archetypes=("Hunter", "Beast Master"),
        ability_priority=(DEX, WIS, CON, STR, INT, CHA),
    ),
    CharacterClassName.PALADIN: ClassRules(
        name=CharacterClassName.PALADIN,
        hit_die=10,
        multiclass_prerequisites=_frozen({STR: 13, CHA: 13}),
        spellcaster=True,
        archetypes=("Oath of Devotion", "Oath of the Ancients", "Oath of Vengeance"),
        ability_priority=(STR, CHA, CON, DEX, WIS, INT),
    ),
    CharacterClassName.DRUID: ClassRules(
        name=CharacterClassName.DRUID,
        hit_die=8,
        spellcaster=True,
        archetypes=("Circle of the Land", "Circle of the Moon"),
        ability_priority=(WIS, CON, DEX, INT, CHA, STR),
    ),
    CharacterClassName.MONK: ClassRules(
        name=CharacterClassName.MONK,
        hit_die=DEFAULT_HIT_DIE,
        archetypes=("Way of the Open Hand", "Way of Shadow", "Way of the Four Elements"),
        ability_priority=(DEX, WIS, CON, STR, INT, CHA),
    ),
    CharacterClassName.WARLOCK: ClassRules(
        name=CharacterClassName.WARLOCK,
        hit_die=DEFAULT_HIT_DIE,
        archetypes=("The Archfey", "The Fiend", "The Great Old One"),
        ability_priority=(CHA, CON, DEX, WIS, INT, STR),
    ),
})


# =============================================================================
# Race table
# =============================================================================

RACE_RULES: Mapping[RaceName, RaceRules] = _frozen({
    RaceName.HUMAN: RaceRules(
        name=RaceName.HUMAN,
        min_total_score=60,
        max_total_score=80,
    ),
    RaceName.ELF: RaceRules(
        name=RaceName.ELF,
        hard_minimums=_frozen({DEX: 12}),
        soft_maximums=_frozen({INT: 18}),
    ),
    RaceName.DWARF: RaceRules(
        name=RaceName.DWARF,
        soft_minimums=_frozen({CON: 12}),
        soft_maximums=_frozen({STR: 18}),
    ),
    RaceName.HALFLING: RaceRules(name=RaceName.HALFLING),
    RaceName.GNOME: RaceRules(name=RaceName.GNOME),
})


# =============================================================================
# Alignments
# =============================================================================

# Canonical name -> (moral, ethical)
ALIGNMENTS: Mapping[str, tuple[str, str]] = _frozen({
    "Lawful Good": ("Good", "Lawful"),
    "Neutral Good": ("Good", "Neutral"),
    "Chaotic Good": ("Good", "Chaotic"),
    "Lawful Neutral": ("Neutral", "Lawful"),
    "True Neutral": ("Neutral", "Neutral"),
    "Chaotic Neutral": ("Neutral", "Chaotic"),
    "Lawful Evil": ("Evil", "Lawful"),
    "Neutral Evil": ("Evil", "Neutral"),
    "Chaotic Evil": ("Evil", "Chaotic"),
})


# =============================================================================
# Load-time checks
# =============================================================================

def check_rule_tables(
    class_rules: Mapping[CharacterClassName, ClassRules] = CLASS_RULES,
    race_rules: Mapping[RaceName, RaceRules] = RACE_RULES,
) -> None:
    """Verify that the tables cover every class and race.

    Raises:
        RuleTableError: If an enum member has no rule record, or a record is
            filed under the wrong key.
    """
    missing_classes = [c.value for c in CharacterClassName if c not in class_rules]
    if missing_classes:
        raise RuleTableError(f"Class rules missing for: {', '.join(missing_classes)}")
    missing_races = [r.value for r in RaceName if r not in race_rules]
    if missing_races:
        raise RuleTableError(f"Race rules missing for: {', '.join(missing_races)}")

    for key, rules in class_rules.items():
        if rules.name != key:
            raise RuleTableError(f"Class rules for {key.value} are filed as {rules.name.value}")
        if rules.hit_die <= 0:
            raise RuleTableError(f"Hit die for {key.value} must be positive")
        if sorted(rules.ability_priority) != sorted(a.value for a in Ability):
            raise RuleTableError(f"Ability priority for {key.value} must list all six abilities")
    for key, rules in race_rules.items():
        if rules.name != key:
            raise RuleTableError(f"Race rules for {key.value} are filed as {rules.name.value}")


check_rule_tables()


# =============================================================================
# Lookups
# =============================================================================

def get_class_rules(name: str | CharacterClassName) -> ClassRules | None:
    """Return the rules for a class, or None if it is not a canonical class."""
    try:
        return CLASS_RULES[CharacterClassName(name)]
    except ValueError:
        return None


def get_race_rules(name: str | RaceName) -> RaceRules | None:
    """Return the rules for a race, or None if it is not a canonical race."""
    try:
        return RACE_RULES[RaceName(name)]
    except ValueError:
        return None


def hit_die_for(name: str | CharacterClassName) -> int:
    """Hit die size for a class, DEFAULT_HIT_DIE for unknown classes."""
    rules = get_class_rules(name)
    return rules.hit_die if rules else DEFAULT_HIT_DIE


def is_canonical_alignment(moral: str, ethical: str) -> bool:
    return (moral, ethical) in ALIGNMENTS.values()


VALID_CLASSES = [c.value for c in CharacterClassName]
VALID_RACES = [r.value for r in RaceName]
