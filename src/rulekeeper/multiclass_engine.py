"""Multiclass Engine — eligibility, hit points and class merging.

Determines whether a character may add a class, how many hit points the new
class grants, and produces the updated character with the merged multiclass
list and spell list. Nothing here persists: callers validate and store the
returned character themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import EligibilityError
from .models import Character, CharacterClassName, MulticlassEntry, Spell
from .rule_tables import get_class_rules, hit_die_for

logger = logging.getLogger("rulekeeper")


def _class_value(name: str | CharacterClassName) -> str:
    return name.value if isinstance(name, CharacterClassName) else name


@dataclass
class MulticlassCheck:
    """Outcome of a multiclass eligibility check."""
    is_valid: bool
    errors: list[str] = field(default_factory=list)


class MulticlassEngine:
    """Decide and apply multiclassing using the class rule table."""

    def can_multiclass(self, character: Character, target_class: str | CharacterClassName) -> bool:
        """Whether ``character`` may add ``target_class``.

        False for the character's own primary class. Classes without
        prerequisites are always allowed; otherwise every prerequisite score
        must be met.
        """
        target = _class_value(target_class)
        if target == character.character_class:
            return False

        rules = get_class_rules(target)
        if rules is None or not rules.multiclass_prerequisites:
            return True

        return all(
            character.score(ability) >= minimum
            for ability, minimum in rules.multiclass_prerequisites.items()
        )

    def validate_multiclassing(
        self, character: Character, target_class: str | CharacterClassName
    ) -> MulticlassCheck:
        """Explain why ``target_class`` is or is not a legal multiclass.

        Uses the same rule as can_multiclass, but reports each problem as a
        message. Unlike can_multiclass, a class outside the canonical set is
        reported as an error.
        """
        target = _class_value(target_class)
        errors: list[str] = []

        if target == character.character_class:
            errors.append(
                f"Cannot multiclass into {target}: it is already the primary class"
            )

        rules = get_class_rules(target)
        if rules is None:
            errors.append(f"Cannot multiclass into unknown class '{target}'")
        else:
            for ability, minimum in rules.multiclass_prerequisites.items():
                score = character.score(ability)
                if score < minimum:
                    errors.append(
                        f"{ability.capitalize()} must be at least {minimum} "
                        f"to multiclass into {target} (has {score})"
                    )

        return MulticlassCheck(is_valid=not errors, errors=errors)

    @staticmethod
    def calculate_multiclass_hit_points(
        character: Character, new_class: str | CharacterClassName
    ) -> int:
        """Hit points gained from the first level of ``new_class``.

        half the hit die + CON modifier, minimum 1. Unknown classes use a d8.
        """
        hit_die = hit_die_for(_class_value(new_class))
        return max(1, hit_die // 2 + character.modifier("constitution"))

    def perform_multiclass(
        self, character: Character, new_class: str | CharacterClassName
    ) -> Character:
        """Return a copy of ``character`` with ``new_class`` added at level 1.

        A character without multiclass entries gets a list that starts with a
        record of its primary class, followed by the new class.

        Raises:
            EligibilityError: If can_multiclass is False.
        """
        target = _class_value(new_class)
        if not self.can_multiclass(character, target):
            raise EligibilityError(f"Cannot multiclass into {target}")

        updated = character.model_copy(deep=True)

        if updated.multiclass:
            entries = list(updated.multiclass)
        else:
            entries = [MulticlassEntry(class_name=updated.character_class, level=updated.level)]
        entries.append(MulticlassEntry(class_name=target, level=1))
        updated.multiclass = entries

        hp_gained = self.calculate_multiclass_hit_points(character, target)
        updated.hit_points += hp_gained
        updated.spells = updated.spells + self._starting_spells(target)
        updated.touch()

        logger.debug(
            f"🧬 {character.name} multiclassed into {target} (+{hp_gained} HP, "
            f"now {updated.class_string()})"
        )
        return updated

    @staticmethod
    def _starting_spells(class_name: str) -> list[Spell]:
        """Starting spell set for a spellcasting class, empty otherwise."""
        rules = get_class_rules(class_name)
        if rules is None or not rules.spellcaster:
            return []
        return [spell.model_copy() for spell in rules.starting_spells]
