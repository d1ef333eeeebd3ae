"""Character Builder — starting stats for new characters.

Default implementations of the two collaborators the lifecycle consumes:
the character-build step (ability scores, hit points and armor class for a
class/race/generation method) and the per-level hit-point calculation.
Callers may substitute their own objects with the same methods.
"""

from __future__ import annotations

import random
from typing import Literal, Protocol

from pydantic import BaseModel

from .errors import CharacterBuilderError
from .models import ALL_ABILITIES, Character, ability_modifier
from .rule_tables import DEFAULT_HIT_DIE, get_class_rules, hit_die_for


GenerationMethod = Literal["standard", "heroic", "elite"]

# Score arrays per generation method, best first
STANDARD_ARRAY = [15, 14, 13, 12, 10, 8]
HEROIC_ARRAY = [17, 16, 15, 14, 12, 10]
ELITE_ARRAY = [18, 17, 16, 15, 14, 12]

GENERATION_ARRAYS: dict[str, list[int]] = {
    "standard": STANDARD_ARRAY,
    "heroic": HEROIC_ARRAY,
    "elite": ELITE_ARRAY,
}

BASE_ARMOR_CLASS = 10


class StartingStats(BaseModel):
    """Stats produced by a character builder."""
    ability_scores: dict[str, int]
    hit_points: int
    armor_class: int


class CharacterBuildCollaborator(Protocol):
    def build(self, class_name: str, race_name: str, generation_method: str) -> StartingStats: ...


class HitPointCollaborator(Protocol):
    def hit_points_for_level(self, character: Character) -> int: ...


class CharacterBuilder:
    """Generate starting stats from the class table."""

    def build(
        self,
        class_name: str,
        race_name: str,
        generation_method: str = "standard",
    ) -> StartingStats:
        """Build starting stats for a level 1 character.

        Args:
            class_name: Primary class (e.g., "Fighter").
            race_name: Race (e.g., "Elf"). Racial bands are enforced by the
                validation pipeline, not here.
            generation_method: "standard", "heroic" or "elite".

        Returns:
            StartingStats with ability scores, hit points and armor class.

        Raises:
            CharacterBuilderError: If the generation method is unknown.
        """
        array = GENERATION_ARRAYS.get(generation_method)
        if array is None:
            raise CharacterBuilderError(
                f"Unknown generation method: '{generation_method}'. "
                f"Use one of: {', '.join(GENERATION_ARRAYS)}."
            )

        rules = get_class_rules(class_name)
        # Unknown classes still get stats; the validation pipeline reports them
        priority = rules.ability_priority if rules else tuple(ALL_ABILITIES)
        hit_die = rules.hit_die if rules else DEFAULT_HIT_DIE

        scores = dict(zip(priority, array))
        abilities = {name: scores[name] for name in ALL_ABILITIES}

        return StartingStats(
            ability_scores=abilities,
            hit_points=self._calculate_hp(hit_die, ability_modifier(abilities["constitution"])),
            armor_class=BASE_ARMOR_CLASS + ability_modifier(abilities["dexterity"]),
        )

    @staticmethod
    def _calculate_hp(hit_die: int, con_mod: int) -> int:
        """Level 1 HP: max hit die + CON modifier, minimum 1."""
        return max(hit_die + con_mod, 1)


class HitPointCalculator:
    """Hit points gained on level-up.

    Average: hit_die // 2 + 1 + CON mod (minimum 1).
    Roll: random 1-hit_die + CON mod (minimum 1).
    """

    def __init__(self, method: str = "average", rng: random.Random | None = None) -> None:
        if method not in ("average", "roll"):
            raise CharacterBuilderError(
                f"Unknown hp_method: '{method}'. Use 'average' or 'roll'."
            )
        self.method = method
        self.rng = rng or random.Random()

    def hit_points_for_level(self, character: Character) -> int:
        hit_die = hit_die_for(character.character_class)
        con_mod = character.modifier("constitution")
        if self.method == "average":
            return max(hit_die // 2 + 1 + con_mod, 1)
        return max(self.rng.randint(1, hit_die) + con_mod, 1)
