"""Tests for CharacterLifecycle — creation, level-up and updates."""

from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from rulekeeper.character_builder import StartingStats
from rulekeeper.config import EngineSettings
from rulekeeper.errors import CharacterBuilderError, EligibilityError, NotFoundError
from rulekeeper.lifecycle import BackgroundPatch, CharacterDraft, CharacterLifecycle
from rulekeeper.models import Alignment, Character, CharacterStatus, CharacterTraits, MulticlassEntry
from rulekeeper.storage import InMemoryCharacterStore


# ─── Helpers ───────────────────────────────────────────────────────────


class FixedHitPoints:
    """Hit-point collaborator that always grants the same amount."""

    def __init__(self, amount: int = 5) -> None:
        self.amount = amount
        self.calls: list[int] = []

    def hit_points_for_level(self, character: Character) -> int:
        self.calls.append(character.level)
        return self.amount


class WeakBuilder:
    """Builder collaborator whose stats fail the Fighter minimums."""

    def build(self, class_name, race_name, generation_method):
        return StartingStats(
            ability_scores={"strength": 8, "dexterity": 10, "constitution": 10,
                            "intelligence": 10, "wisdom": 10, "charisma": 10},
            hit_points=8,
            armor_class=10,
        )


def make_lifecycle(**kwargs) -> CharacterLifecycle:
    kwargs.setdefault("store", InMemoryCharacterStore())
    kwargs.setdefault("hp_calculator", FixedHitPoints())
    return CharacterLifecycle(**kwargs)


def make_stored_character(lifecycle: CharacterLifecycle, **overrides) -> Character:
    """Save a valid character directly in the lifecycle's store."""
    data = dict(
        name="Stored Hero",
        race="Human",
        character_class="Fighter",
        level=1,
        ability_scores={"strength": 15, "dexterity": 13, "constitution": 14,
                        "intelligence": 8, "wisdom": 12, "charisma": 10},
        hit_points=12,
        alignment=Alignment(moral="Good", ethical="Lawful"),
        archetype_features=["Champion"],
        backstory="A soldier.",
    )
    data.update(overrides)
    character = Character(**data)
    lifecycle.store.save(character)
    return character


# ─── Creation ─────────────────────────────────────────────────────────


class TestCreateCharacter:

    def test_defaults(self):
        lifecycle = make_lifecycle()
        result = lifecycle.create_character()
        char = result.character
        assert result.success
        assert char.name == "Unnamed Character"
        assert char.race == "Human"
        assert char.character_class == "Fighter"
        assert char.level == 1
        assert char.experience == 0
        assert char.status == CharacterStatus.ACTIVE
        assert char.inventory == [] and char.spells == []
        assert char.traits == CharacterTraits()
        assert len(char.id) == 8

    def test_persists(self):
        lifecycle = make_lifecycle()
        result = lifecycle.create_character(CharacterDraft(name="Aria", campaign_id="camp0001"))
        stored = lifecycle.get_character(result.character.id)
        assert stored == result.character
        assert stored.campaign_id == "camp0001"

    def test_accepts_dict_draft(self):
        lifecycle = make_lifecycle()
        result = lifecycle.create_character(
            {"name": "Merlin", "character_class": "Wizard", "race": "Elf", "backstory": "Bookish."},
            generation_method="heroic",
        )
        assert result.success
        assert result.character.ability_scores["intelligence"] == 17
        assert result.character.backstory == "Bookish."

    def test_builder_stats_are_merged(self):
        lifecycle = make_lifecycle()
        char = lifecycle.create_character(CharacterDraft(name="Aria")).character
        assert char.ability_scores["strength"] == 15
        assert char.hit_points == 12
        assert char.armor_class == 11

    def test_warnings_do_not_block(self):
        result = make_lifecycle().create_character(CharacterDraft(name="Aria"))
        assert result.success
        assert "No backstory provided" in result.warnings

    def test_invalid_candidate_is_not_persisted(self):
        lifecycle = make_lifecycle(builder=WeakBuilder())
        result = lifecycle.create_character(CharacterDraft(name="Weakling"))
        assert not result.success
        assert any("Strength must be at least 13 for Fighter" in e for e in result.errors)
        assert lifecycle.list_characters() == []

    def test_rejection_logs_validation_report(self, caplog):
        lifecycle = make_lifecycle(builder=WeakBuilder())
        with caplog.at_level(logging.DEBUG, logger="rulekeeper"):
            lifecycle.create_character(CharacterDraft(name="Weakling"))
        assert "✗ INVALID" in caplog.text
        assert "Strength must be at least 13 for Fighter" in caplog.text

    def test_invalid_race_is_reported(self):
        lifecycle = make_lifecycle()
        result = lifecycle.create_character(CharacterDraft(name="Grok", race="Orc"))
        assert not result.success
        assert lifecycle.list_characters() == []

    def test_draft_rejects_unknown_fields(self):
        lifecycle = make_lifecycle()
        with pytest.raises(ValidationError, match="klass"):
            lifecycle.create_character({"name": "Aria", "klass": "Wizard"})
        assert lifecycle.list_characters() == []

    def test_unknown_generation_method(self):
        with pytest.raises(CharacterBuilderError):
            make_lifecycle().create_character(CharacterDraft(name="Aria"), generation_method="dice")


# ─── Level-up ─────────────────────────────────────────────────────────


class TestLevelUpCharacter:

    def test_missing_character(self):
        with pytest.raises(NotFoundError, match="nope1234"):
            make_lifecycle().level_up_character("nope1234")

    def test_basic_level_up(self):
        hp = FixedHitPoints(6)
        lifecycle = make_lifecycle(hp_calculator=hp)
        char = make_stored_character(lifecycle)
        result = lifecycle.level_up_character(char.id)
        assert result.success
        assert result.character.level == 2
        assert result.character.hit_points == 18
        assert result.character.experience == 600
        assert hp.calls == [2]
        assert lifecycle.get_character(char.id).level == 2

    def test_level_three_to_four_applies_improvement(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, level=3)
        updated = lifecycle.level_up_character(char.id).character
        assert updated.ability_scores["strength"] == 17
        assert sum(updated.ability_scores.values()) == sum(char.ability_scores.values()) + 2

    def test_level_four_to_five_has_no_improvement(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, level=4)
        updated = lifecycle.level_up_character(char.id).character
        assert updated.ability_scores == char.ability_scores

    def test_improvement_skips_maxed_abilities(self):
        lifecycle = make_lifecycle()
        scores = {"strength": 20, "dexterity": 19, "constitution": 14,
                  "intelligence": 8, "wisdom": 12, "charisma": 10}
        char = make_stored_character(lifecycle, level=7, ability_scores=scores)
        updated = lifecycle.level_up_character(char.id).character
        assert updated.ability_scores["strength"] == 20
        assert updated.ability_scores["dexterity"] == 20

    def test_learns_new_spells(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(
            lifecycle, character_class="Wizard", archetype_features=["Evocation"],
            ability_scores={"strength": 8, "dexterity": 14, "constitution": 13,
                            "intelligence": 15, "wisdom": 12, "charisma": 10},
        )
        updated = lifecycle.level_up_character(char.id).character
        assert [s.name for s in updated.spells] == ["Magic Missile", "Shield", "Mage Armor"]

    def test_experience_is_recomputed_by_default(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, level=2, experience=5000)
        assert lifecycle.level_up_character(char.id).character.experience == 900

    def test_experience_accumulate_policy(self):
        lifecycle = make_lifecycle(settings=EngineSettings(experience_policy="accumulate"))
        char = make_stored_character(lifecycle, level=2, experience=5000)
        assert lifecycle.level_up_character(char.id).character.experience == 5300

    def test_max_level(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, level=20)
        with pytest.raises(EligibilityError):
            lifecycle.level_up_character(char.id)

    def test_max_combined_level(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, level=15, multiclass=[
            MulticlassEntry(class_name="Fighter", level=15),
            MulticlassEntry(class_name="Barbarian", level=5),
        ])
        with pytest.raises(EligibilityError):
            lifecycle.level_up_character(char.id)

    def test_syncs_leading_primary_record(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, level=3, multiclass=[
            MulticlassEntry(class_name="Fighter", level=3),
            MulticlassEntry(class_name="Barbarian", level=1),
        ])
        updated = lifecycle.level_up_character(char.id).character
        assert updated.multiclass[0].level == 4
        assert updated.total_level == 5

    def test_validation_blocks_invalid_level_up(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, skills={"athletics": 2, "stealth": 2, "history": 1})
        result = lifecycle.level_up_character(char.id)
        assert not result.success
        assert lifecycle.get_character(char.id).level == 1

    def test_validation_can_be_disabled(self):
        lifecycle = make_lifecycle(settings=EngineSettings(validate_level_up=False))
        char = make_stored_character(lifecycle, skills={"athletics": 2, "stealth": 2, "history": 1})
        result = lifecycle.level_up_character(char.id)
        assert result.success
        assert lifecycle.get_character(char.id).level == 2


# ─── Background & multiclass ──────────────────────────────────────────


class TestUpdateBackground:

    def test_missing_character(self):
        with pytest.raises(NotFoundError):
            make_lifecycle().update_character_background("nope1234", BackgroundPatch(backstory="x"))

    def test_missing_character_is_reported_before_patch_errors(self):
        with pytest.raises(NotFoundError):
            make_lifecycle().update_character_background("nope1234", {"backstroy": "x"})

    def test_misspelled_field_is_rejected(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, backstory="old")
        with pytest.raises(ValidationError, match="backstroy"):
            lifecycle.update_character_background(char.id, {"backstroy": "new"})
        assert lifecycle.get_character(char.id).backstory == "old"

    def test_only_supplied_fields_change(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(
            lifecycle, traits=CharacterTraits(personality=["Brave"], ideals=["Honor"], bonds=["Sister"]),
        )
        result = lifecycle.update_character_background(char.id, BackgroundPatch(flaws=["Reckless"]))
        updated = result.character
        assert result.success
        assert updated.traits.flaws == ["Reckless"]
        assert updated.traits.personality == ["Brave"]
        assert updated.backstory == "A soldier."
        assert lifecycle.get_character(char.id).traits.flaws == ["Reckless"]

    def test_dict_patch_and_empty_list(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, traits=CharacterTraits(bonds=["Sister"]))
        updated = lifecycle.update_character_background(
            char.id, {"backstory": "A sellsword.", "bonds": []},
        ).character
        assert updated.backstory == "A sellsword."
        assert updated.traits.bonds == []

    def test_identity_is_preserved(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle)
        updated = lifecycle.update_character_background(char.id, BackgroundPatch(ideals=["Freedom"])).character
        assert updated.id == char.id
        assert updated.level == char.level
        assert len(lifecycle.list_characters()) == 1


class TestMulticlassCharacter:

    def test_multiclass_persists(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, level=3)
        result = lifecycle.multiclass_character(char.id, "Barbarian")
        assert result.success
        stored = lifecycle.get_character(char.id)
        assert stored.class_string() == "Fighter 3 / Barbarian 1"
        assert stored.hit_points == 12 + 8

    def test_ineligible(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle)
        with pytest.raises(EligibilityError):
            lifecycle.multiclass_character(char.id, "Wizard")
        assert lifecycle.get_character(char.id).multiclass is None

    def test_missing_character(self):
        with pytest.raises(NotFoundError):
            make_lifecycle().multiclass_character("nope1234", "Rogue")

    def test_rejected_when_combined_level_exceeds_cap(self):
        lifecycle = make_lifecycle()
        char = make_stored_character(lifecycle, level=20)
        result = lifecycle.multiclass_character(char.id, "Barbarian")
        assert not result.success
        assert lifecycle.get_character(char.id).multiclass is None
