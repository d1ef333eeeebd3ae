"""Archetype legality checks used by the validation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field

from .models import Character
from .rule_tables import get_class_rules


@dataclass
class ArchetypeCheck:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def _normalize(name: str) -> str:
    return name.strip().lower().replace("-", " ").replace("_", " ")


def available_archetypes(class_name: str) -> tuple[str, ...]:
    """Archetypes a class may select, empty for unknown classes."""
    rules = get_class_rules(class_name)
    return rules.archetypes if rules else ()


def validate_archetype_selection(character: Character, archetype: str | None) -> ArchetypeCheck:
    """Check that ``archetype`` is legal for the character's primary class.

    Matching ignores case and treats hyphens/underscores as spaces, so
    "battle-master" selects "Battle Master".
    """
    if not archetype or not archetype.strip():
        return ArchetypeCheck(is_valid=False, errors=["Archetype name cannot be empty"])

    options = available_archetypes(character.character_class)
    if not options:
        return ArchetypeCheck(
            is_valid=False,
            errors=[f"No archetypes are defined for class {character.character_class}"],
        )

    if _normalize(archetype) not in {_normalize(o) for o in options}:
        return ArchetypeCheck(
            is_valid=False,
            errors=[
                f"Archetype '{archetype}' is not available for {character.character_class}. "
                f"Available: {', '.join(options)}"
            ],
        )
    return ArchetypeCheck(is_valid=True)
