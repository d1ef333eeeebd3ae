"""Character Lifecycle — create, level up, update and import characters.

Every mutation builds a candidate from a deep copy of the stored character,
runs it through the validation pipeline and persists it only when no
blocking errors were found. A rejected candidate is returned to the caller
and the stored version stays untouched.

Requests that cannot proceed at all (unknown id, ineligible level-up or
multiclass, incompatible export) raise OperationError subclasses instead.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict

from .character_builder import (
    CharacterBuildCollaborator,
    CharacterBuilder,
    HitPointCalculator,
    HitPointCollaborator,
)
from .config import EngineSettings
from .errors import EligibilityError, NotFoundError
from .export import CharacterExporter, ExportEnvelope, ExportResult
from .models import (
    ALL_ABILITIES,
    Character,
    CharacterClassName,
    CharacterStatus,
    CharacterTraits,
    RaceName,
    new_id,
)
from .multiclass_engine import MulticlassEngine
from .rule_tables import ASI_BONUS, ASI_INTERVAL, EXPERIENCE_PER_LEVEL, MAX_ABILITY_SCORE, MAX_LEVEL
from .spell_progression import SpellProgressionEngine
from .storage import CharacterStore, JsonCharacterStore
from .validation import LifecycleResult, ValidationEngine

logger = logging.getLogger("rulekeeper")

DEFAULT_CHARACTER_NAME = "Unnamed Character"


class CharacterDraft(BaseModel):
    """Caller-supplied fields for a new character. Everything is optional."""
    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    race: str | None = None
    character_class: str | None = None
    campaign_id: str | None = None
    backstory: str | None = None


class BackgroundPatch(BaseModel):
    """Partial update of a character's background.

    Only fields that were explicitly supplied are applied, so
    ``BackgroundPatch(bonds=[])`` clears the bonds and leaves everything
    else as it was.
    """
    model_config = ConfigDict(extra="forbid")

    backstory: str | None = None
    personality: list[str] | None = None
    ideals: list[str] | None = None
    bonds: list[str] | None = None
    flaws: list[str] | None = None

    def apply(self, character: Character) -> None:
        """Apply the supplied fields to ``character`` in place."""
        supplied = self.model_dump(exclude_unset=True)
        if "backstory" in supplied:
            character.backstory = supplied.pop("backstory")

        trait_updates = {k: v for k, v in supplied.items() if v is not None}
        if trait_updates:
            character.traits = character.traits.model_copy(update=trait_updates)


class CharacterLifecycle:
    """Orchestrates character mutations with validation gating and persistence."""

    def __init__(
        self,
        store: CharacterStore,
        builder: CharacterBuildCollaborator | None = None,
        hp_calculator: HitPointCollaborator | None = None,
        validator: ValidationEngine | None = None,
        spells: SpellProgressionEngine | None = None,
        multiclass: MulticlassEngine | None = None,
        exporter: CharacterExporter | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or EngineSettings()
        self.builder = builder or CharacterBuilder()
        self.hp_calculator = hp_calculator or HitPointCalculator(self.settings.hp_method)
        self.multiclass = multiclass or MulticlassEngine()
        self.validator = validator or ValidationEngine(self.multiclass)
        self.spells = spells or SpellProgressionEngine()
        self.exporter = exporter or CharacterExporter(
            self.validator,
            version=self.settings.export_version,
            max_age_ms=self.settings.max_export_age_ms,
        )

    @classmethod
    def from_settings(cls, settings: EngineSettings | None = None) -> CharacterLifecycle:
        """Lifecycle backed by a JSON store under ``settings.storage_dir``."""
        settings = settings or EngineSettings.from_env()
        return cls(JsonCharacterStore(settings.storage_dir), settings=settings)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_character(self, character_id: str) -> Character | None:
        return self.store.get(character_id)

    def list_characters(self) -> list[Character]:
        return self.store.list()

    def _require(self, character_id: str) -> Character:
        character = self.store.get(character_id)
        if character is None:
            raise NotFoundError(character_id)
        return character.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_character(
        self,
        draft: CharacterDraft | dict[str, Any] | None = None,
        generation_method: str = "standard",
    ) -> LifecycleResult:
        """Create, validate and persist a new level 1 character.

        Args:
            draft: Name, race, class, campaign and backstory. Missing values
                default to "Unnamed Character", Human and Fighter.
            generation_method: "standard", "heroic" or "elite".

        Returns:
            LifecycleResult with the new character. The caller links the id
            to its campaign.

        Raises:
            CharacterBuilderError: If the generation method is unknown.
        """
        if draft is None:
            draft = CharacterDraft()
        elif not isinstance(draft, CharacterDraft):
            draft = CharacterDraft.model_validate(draft)

        character_class = draft.character_class or CharacterClassName.FIGHTER.value
        race = draft.race or RaceName.HUMAN.value
        stats = self.builder.build(character_class, race, generation_method)

        candidate = Character(
            id=new_id(),
            name=draft.name or DEFAULT_CHARACTER_NAME,
            race=race,
            character_class=character_class,
            level=1,
            experience=0,
            status=CharacterStatus.ACTIVE,
            campaign_id=draft.campaign_id,
            ability_scores=stats.ability_scores,
            hit_points=stats.hit_points,
            armor_class=stats.armor_class,
            inventory=[],
            spells=[],
            traits=CharacterTraits(),
            backstory=draft.backstory,
        )
        logger.debug(f"🛠️ Built {candidate.name!r} ({race} {character_class}, {generation_method})")
        return self._persist(candidate, "create")

    # ------------------------------------------------------------------
    # Level-up
    # ------------------------------------------------------------------

    def level_up_character(self, character_id: str) -> LifecycleResult:
        """Advance the character's primary class by one level.

        Adds hit points, applies a +2 ability score improvement on every
        fourth level, appends newly learnable spells and updates experience
        according to the configured policy.

        Raises:
            NotFoundError: If no character has this id.
            EligibilityError: If the character is already at level 20 or its
                combined level is 20.
        """
        candidate = self._require(character_id)
        if candidate.level >= MAX_LEVEL or candidate.total_level >= MAX_LEVEL:
            raise EligibilityError(
                f"{candidate.name} is already at maximum level ({candidate.class_string()})"
            )

        old_level = candidate.level
        candidate.level += 1

        hp_gained = self.hp_calculator.hit_points_for_level(candidate)
        candidate.hit_points += hp_gained

        improved = None
        if candidate.level % ASI_INTERVAL == 0:
            improved = self._apply_ability_score_improvement(candidate)

        learned = self._learn_new_spells(candidate)

        if self.settings.experience_policy == "accumulate":
            candidate.experience += EXPERIENCE_PER_LEVEL
        else:
            candidate.experience = candidate.level * EXPERIENCE_PER_LEVEL

        if candidate.multiclass and candidate.multiclass[0].class_name == candidate.character_class:
            candidate.multiclass[0].level = candidate.level

        candidate.touch()
        logger.debug(
            f"⬆️ {candidate.name} level {old_level} -> {candidate.level}: +{hp_gained} HP"
            + (f", {improved} +{ASI_BONUS}" if improved else "")
            + (f", learned {', '.join(learned)}" if learned else "")
        )
        return self._persist(candidate, "level-up", validate=self.settings.validate_level_up)

    @staticmethod
    def _apply_ability_score_improvement(character: Character) -> str | None:
        """Raise the first ability below the maximum, in canonical order."""
        for ability in ALL_ABILITIES:
            score = character.score(ability)
            if score < MAX_ABILITY_SCORE:
                character.ability_scores[ability] = min(score + ASI_BONUS, MAX_ABILITY_SCORE)
                return ability
        return None

    def _learn_new_spells(self, character: Character) -> list[str]:
        known = {spell.name for spell in character.spells}
        new_spells = [
            spell for spell in self.spells.get_new_spells_for_level(character)
            if spell.name not in known
        ]
        character.spells = character.spells + new_spells
        return [spell.name for spell in new_spells]

    # ------------------------------------------------------------------
    # Background & multiclass
    # ------------------------------------------------------------------

    def update_character_background(
        self, character_id: str, patch: BackgroundPatch | dict[str, Any]
    ) -> LifecycleResult:
        """Replace only the supplied background fields.

        Raises:
            NotFoundError: If no character has this id.
        """
        candidate = self._require(character_id)
        if not isinstance(patch, BackgroundPatch):
            patch = BackgroundPatch.model_validate(patch)

        patch.apply(candidate)
        candidate.touch()
        logger.debug(
            f"📝 Background update for {candidate.name}: {sorted(patch.model_fields_set)}"
        )
        return self._persist(candidate, "background update")

    def multiclass_character(
        self, character_id: str, new_class: str | CharacterClassName
    ) -> LifecycleResult:
        """Add ``new_class`` at level 1.

        Raises:
            NotFoundError: If no character has this id.
            EligibilityError: If the character cannot multiclass into it.
        """
        character = self._require(character_id)
        candidate = self.multiclass.perform_multiclass(character, new_class)
        return self._persist(candidate, "multiclass")

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_character(self, character_id: str) -> ExportResult:
        """Export a stored character.

        Raises:
            NotFoundError: If no character has this id.
        """
        return self.exporter.export_character(self._require(character_id))

    def backup_character(self, character_id: str) -> ExportResult:
        """Export a stored character as a full backup.

        Raises:
            NotFoundError: If no character has this id.
        """
        return self.exporter.create_backup(self._require(character_id))

    def import_character(self, envelope: ExportEnvelope | dict[str, Any]) -> LifecycleResult:
        """Import an envelope and persist it under a fresh id.

        Raises:
            VersionMismatchError: If the envelope version differs.
            StaleExportError: If the envelope is too old.
        """
        return self._persist_imported(self.exporter.import_character(envelope), "import")

    def restore_character(self, envelope: ExportEnvelope | dict[str, Any]) -> LifecycleResult:
        """Restore a full backup and persist it under a fresh id.

        Raises:
            BackupTypeError: If the envelope is not a full backup.
            VersionMismatchError: If the envelope version differs.
            StaleExportError: If the envelope is too old.
        """
        return self._persist_imported(self.exporter.restore_from_backup(envelope), "restore")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, candidate: Character, action: str, validate: bool = True) -> LifecycleResult:
        """Validate ``candidate`` and save it when no blocking errors were found."""
        validation = self.validator.validate_character(candidate)
        result = LifecycleResult.from_validation(candidate, validation)
        if not validate:
            result.success = True

        if not result.success:
            logger.warning(
                f"⚠️ {action.capitalize()} of {candidate.name!r} ({candidate.id}) rejected: "
                f"{'; '.join(result.errors)}"
            )
            logger.debug(f"🔍 Rejected {action} report:\n{validation.summary()}")
            return result

        self.store.save(candidate)
        logger.info(f"✅ {action.capitalize()} persisted for {candidate.name!r} ({candidate.id})")
        return result

    def _persist_imported(self, result: LifecycleResult, action: str) -> LifecycleResult:
        if not result.success or result.character is None:
            logger.warning(f"⚠️ {action.capitalize()} rejected: {'; '.join(result.errors)}")
            return result
        self.store.save(result.character)
        logger.info(
            f"✅ {action.capitalize()} persisted for {result.character.name!r} ({result.character.id})"
        )
        return result
