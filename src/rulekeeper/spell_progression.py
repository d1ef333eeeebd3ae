"""Spell Progression Engine — learnable spells, slots and daily preparation."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import Character, Spell
from .rule_tables import DEFAULT_SPELL_SLOTS, SpellSlots, get_class_rules


@dataclass
class SpellLearningCheck:
    """Whether a spell may be learned, and why not."""
    can_learn: bool
    errors: list[str] = field(default_factory=list)


class SpellProgressionEngine:
    """Spell rules driven by the class table. Holds no state."""

    @staticmethod
    def available_spell_level(character: Character) -> int:
        """Highest spell level the character can learn: level // 2."""
        return character.level // 2

    def get_new_spells_for_level(self, character: Character) -> list[Spell]:
        """Spells learned on reaching the character's current level.

        Empty when the class has no learning table or the current level is
        not one of its learning levels. Otherwise the list for ``level // 2``,
        truncated to the class cap.
        """
        rules = get_class_rules(character.character_class)
        learning = rules.spell_learning if rules else None
        if learning is None or character.level not in learning.learning_levels:
            return []

        spells = learning.spells_by_level.get(self.available_spell_level(character), ())
        return [spell.model_copy() for spell in spells[: learning.max_spells_per_level]]

    @staticmethod
    def calculate_spell_slots(character: Character) -> SpellSlots:
        """Spell slots for the character's class and level.

        Classes or levels missing from the table get DEFAULT_SPELL_SLOTS.
        """
        rules = get_class_rules(character.character_class)
        if rules is None:
            return DEFAULT_SPELL_SLOTS
        return rules.spell_slots.get(character.level, DEFAULT_SPELL_SLOTS)

    def validate_spell_learning(self, character: Character, spell: Spell) -> SpellLearningCheck:
        """Check whether ``character`` may learn ``spell`` now."""
        errors: list[str] = []
        rules = get_class_rules(character.character_class)
        learning = rules.spell_learning if rules else None

        if learning is None:
            errors.append(f"Spell learning not supported for {character.character_class}")
            return SpellLearningCheck(can_learn=False, errors=errors)

        if len(character.spells) >= learning.max_spells_per_level:
            errors.append(
                f"Maximum spell limit reached ({learning.max_spells_per_level} "
                f"for {character.character_class})"
            )

        available = self.available_spell_level(character)
        if spell.level > available:
            errors.append(
                f"Spell level {spell.level} too high for character level "
                f"{character.level} (max spell level {available})"
            )

        return SpellLearningCheck(can_learn=not errors, errors=errors)

    def prepare_daily_spells(self, character: Character) -> list[Spell]:
        """First N known spells, marked prepared.

        N = max(1, level // 2 + WIS modifier). Returns copies; the character's
        permanent spell list is left untouched.
        """
        count = max(1, self.available_spell_level(character) + character.modifier("wisdom"))
        return [
            spell.model_copy(update={"prepared": True})
            for spell in character.spells[:count]
        ]
