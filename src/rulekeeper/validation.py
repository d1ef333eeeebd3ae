"""
Character validation pipeline.

Runs a fixed set of independent checks over a character snapshot and
collects every error (blocking) and warning (advisory) in a single
ValidationResult. No check assumes another has already run, and the
pipeline never stops at the first problem, so callers see the complete
picture in one pass.
"""

from __future__ import annotations

import logging
from typing import Callable

from pydantic import BaseModel, Field, computed_field

from .archetypes import validate_archetype_selection
from .models import ALL_ABILITIES, Character
from .multiclass_engine import MulticlassEngine
from .rule_tables import (
    CARRY_CAPACITY_FACTOR,
    HIGH_LEVEL_WARNING,
    HIGH_TOTAL_LEVEL_WARNING,
    MAX_ABILITY_SCORE,
    MAX_BACKSTORY_LENGTH,
    MAX_LEVEL,
    MAX_NAME_LENGTH,
    MAX_SKILL_LEVEL,
    MAX_TRAITS_PER_CATEGORY,
    MIN_ABILITY_SCORE,
    MIN_LEVEL,
    MIN_NAME_LENGTH,
    MIN_SKILL_LEVEL,
    NEAR_LIMIT_RATIO,
    SKILL_POINTS_PER_LEVEL,
    VALID_CLASSES,
    VALID_RACES,
    get_class_rules,
    get_race_rules,
    is_canonical_alignment,
)

logger = logging.getLogger("rulekeeper")


def _fmt(value: float) -> str:
    """Render a number without a trailing '.0'."""
    return f"{value:g}"


# =============================================================================
# Validation Models
# =============================================================================

class ValidationResult(BaseModel):
    """Aggregated outcome of the validation pipeline.

    ``is_valid`` is derived from ``errors``; warnings never affect it.
    """
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def summary(self) -> str:
        """Return a formatted, human-readable summary."""
        lines = [f"Status: {'✓ VALID' if self.is_valid else '✗ INVALID'}"]
        lines.append(f"Issues: {len(self.errors)} errors, {len(self.warnings)} warnings")
        if self.errors:
            lines.append("\nErrors:")
            lines.extend(f"  - {e}" for e in self.errors)
        if self.warnings:
            lines.append("\nWarnings:")
            lines.extend(f"  - {w}" for w in self.warnings)
        return "\n".join(lines)


class LifecycleResult(BaseModel):
    """Outcome of a validated mutation (create, level-up, import, ...).

    ``character`` is the persisted character on success, or the rejected
    candidate on failure so callers can inspect what was refused.
    """
    success: bool
    character: Character | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_validation(cls, character: Character, validation: ValidationResult) -> LifecycleResult:
        return cls(
            success=validation.is_valid,
            character=character,
            errors=list(validation.errors),
            warnings=list(validation.warnings),
        )


# =============================================================================
# Validation Engine
# =============================================================================

class ValidationEngine:
    """
    Validates characters against the rule tables.

    Each check appends to a shared ValidationResult:
    - errors block persistence (the lifecycle discards the candidate)
    - warnings are informational guidance only
    """

    def __init__(self, multiclass_engine: MulticlassEngine | None = None) -> None:
        self.multiclass = multiclass_engine or MulticlassEngine()
        self.checks: list[Callable[[Character, ValidationResult], None]] = [
            self._check_basic_info,
            self._check_ability_scores,
            self._check_class_requirements,
            self._check_multiclassing,
            self._check_archetype,
            self._check_alignment,
            self._check_skills,
            self._check_inventory,
            self._check_backstory,
        ]

    def validate_character(self, character: Character) -> ValidationResult:
        """
        Run every check against a character.

        Args:
            character: The character snapshot to validate (never modified)

        Returns:
            ValidationResult with all errors and warnings found
        """
        result = ValidationResult()
        for check in self.checks:
            check(character, result)

        logger.debug(
            f"🔍 Validated {character.name!r} ({character.id}): "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    # ------------------------------------------------------------------
    # 1. Basic info
    # ------------------------------------------------------------------

    @staticmethod
    def _check_basic_info(character: Character, result: ValidationResult) -> None:
        name = character.name or ""
        if len(name.strip()) < MIN_NAME_LENGTH:
            result.error(f"Character name must be at least {MIN_NAME_LENGTH} characters long")
        if len(name) > MAX_NAME_LENGTH:
            result.warn(f"Character name is unusually long ({len(name)} characters)")

        if get_race_rules(character.race) is None:
            result.error(
                f"Invalid race '{character.race}'. Must be one of: {', '.join(VALID_RACES)}"
            )
        if get_class_rules(character.character_class) is None:
            result.error(
                f"Invalid class '{character.character_class}'. "
                f"Must be one of: {', '.join(VALID_CLASSES)}"
            )

        if character.level < MIN_LEVEL:
            result.error(f"Character level must be at least {MIN_LEVEL}")
        if character.level > MAX_LEVEL:
            result.error(f"Character level cannot exceed {MAX_LEVEL}")
        if character.level > HIGH_LEVEL_WARNING:
            result.warn(f"High-level character detected (level {character.level})")

    # ------------------------------------------------------------------
    # 2. Ability scores
    # ------------------------------------------------------------------

    @staticmethod
    def _check_ability_scores(character: Character, result: ValidationResult) -> None:
        scores = character.ability_scores

        for ability in ALL_ABILITIES:
            if ability not in scores:
                result.error(f"{ability.capitalize()} score is missing")
                continue
            score = scores[ability]
            if not MIN_ABILITY_SCORE <= score <= MAX_ABILITY_SCORE:
                result.error(
                    f"{ability.capitalize()} score must be between {MIN_ABILITY_SCORE} "
                    f"and {MAX_ABILITY_SCORE} (got {score})"
                )

        for key in scores:
            if key not in ALL_ABILITIES:
                result.warn(f"Unknown ability '{key}' is ignored")

        race_rules = get_race_rules(character.race)
        if race_rules is None:
            return

        total = sum(scores[a] for a in ALL_ABILITIES if a in scores)
        if race_rules.min_total_score is not None and total < race_rules.min_total_score:
            result.warn(
                f"Total ability scores ({total}) are low for {character.race} "
                f"(expected at least {race_rules.min_total_score})"
            )
        if race_rules.max_total_score is not None and total > race_rules.max_total_score:
            result.warn(
                f"Total ability scores ({total}) are high for {character.race} "
                f"(expected at most {race_rules.max_total_score})"
            )

        for ability, minimum in race_rules.hard_minimums.items():
            if ability in scores and scores[ability] < minimum:
                result.error(f"{ability.capitalize()} must be at least {minimum} for {character.race}")
        for ability, minimum in race_rules.soft_minimums.items():
            if ability in scores and scores[ability] < minimum:
                result.warn(f"{ability.capitalize()} below {minimum} is unusual for {character.race}")
        for ability, maximum in race_rules.soft_maximums.items():
            if ability in scores and scores[ability] > maximum:
                result.warn(f"{ability.capitalize()} above {maximum} is unusual for {character.race}")

    # ------------------------------------------------------------------
    # 3. Class requirements
    # ------------------------------------------------------------------

    @staticmethod
    def _check_class_requirements(character: Character, result: ValidationResult) -> None:
        rules = get_class_rules(character.character_class)
        if rules is None:
            return
        for ability, minimum in rules.minimum_scores.items():
            if character.score(ability) < minimum:
                result.error(
                    f"{ability.capitalize()} must be at least {minimum} for {character.character_class}"
                )

    # ------------------------------------------------------------------
    # 4. Multiclassing
    # ------------------------------------------------------------------

    def _check_multiclassing(self, character: Character, result: ValidationResult) -> None:
        if not character.multiclass:
            return

        seen: set[str] = set()
        for index, entry in enumerate(character.multiclass):
            # Leading record of the primary class, written by perform_multiclass
            if index == 0 and entry.class_name == character.character_class:
                continue
            check = self.multiclass.validate_multiclassing(character, entry.class_name)
            result.errors.extend(check.errors)
            if entry.class_name in seen:
                result.error(f"Duplicate multiclass entry for {entry.class_name}")
            seen.add(entry.class_name)

        total = character.total_level
        if total > MAX_LEVEL:
            result.error(f"Total character levels ({total}) cannot exceed {MAX_LEVEL}")
        if total > HIGH_TOTAL_LEVEL_WARNING:
            result.warn(f"High total character level detected ({total})")

    # ------------------------------------------------------------------
    # 5. Archetype
    # ------------------------------------------------------------------

    @staticmethod
    def _check_archetype(character: Character, result: ValidationResult) -> None:
        archetype = character.selected_archetype
        if archetype is None:
            result.warn(f"No archetype selected for {character.character_class}")
            return
        check = validate_archetype_selection(character, archetype)
        result.errors.extend(check.errors)

    # ------------------------------------------------------------------
    # 6. Alignment
    # ------------------------------------------------------------------

    @staticmethod
    def _check_alignment(character: Character, result: ValidationResult) -> None:
        alignment = character.alignment
        if alignment is None:
            result.warn("No alignment specified")
            return
        if not is_canonical_alignment(alignment.moral, alignment.ethical):
            result.error(
                f"Invalid character alignment '{alignment.name}' (moral={alignment.moral!r}, "
                f"ethical={alignment.ethical!r})"
            )

    # ------------------------------------------------------------------
    # 7. Skills
    # ------------------------------------------------------------------

    @staticmethod
    def _check_skills(character: Character, result: ValidationResult) -> None:
        if not character.skills:
            return

        for skill, level in character.skills.items():
            if not MIN_SKILL_LEVEL <= level <= MAX_SKILL_LEVEL:
                result.error(
                    f"Skill {skill} level must be between {MIN_SKILL_LEVEL} "
                    f"and {MAX_SKILL_LEVEL} (got {level})"
                )

        budget = character.level * SKILL_POINTS_PER_LEVEL
        total = sum(character.skills.values())
        if total > budget:
            result.error(f"Total skill points ({total}) cannot exceed {budget}")
        if total >= budget * NEAR_LIMIT_RATIO:
            result.warn(f"Skill points are near maximum allocation ({total}/{budget})")

    # ------------------------------------------------------------------
    # 8. Inventory
    # ------------------------------------------------------------------

    @staticmethod
    def _check_inventory(character: Character, result: ValidationResult) -> None:
        if not character.inventory:
            return

        capacity = CARRY_CAPACITY_FACTOR * character.score("strength")
        total = sum(item.weight * item.quantity for item in character.inventory)
        if total > capacity:
            result.error(
                f"Inventory weight ({_fmt(total)}) exceeds carrying capacity of {_fmt(capacity)}"
            )
        if total >= capacity * NEAR_LIMIT_RATIO:
            result.warn(
                f"Inventory is near maximum carrying capacity ({_fmt(total)}/{_fmt(capacity)})"
            )

        seen: set[str] = set()
        for item in character.inventory:
            if item.id in seen:
                result.error(f"Duplicate inventory item id '{item.id}' ({item.name})")
            seen.add(item.id)

    # ------------------------------------------------------------------
    # 9. Backstory & traits
    # ------------------------------------------------------------------

    @staticmethod
    def _check_backstory(character: Character, result: ValidationResult) -> None:
        if character.backstory:
            if len(character.backstory) > MAX_BACKSTORY_LENGTH:
                result.warn(f"Backstory is unusually long ({len(character.backstory)} characters)")
        else:
            result.warn("No backstory provided")

        for category, entries in character.traits.categories().items():
            if not entries:
                result.warn(f"No {category} traits specified")
            elif len(entries) > MAX_TRAITS_PER_CATEGORY:
                result.warn(f"Excessive number of {category} traits ({len(entries)})")


_default_engine = ValidationEngine()


def validate_character(character: Character) -> ValidationResult:
    """Validate a character with the default engine."""
    return _default_engine.validate_character(character)
