"""Tests for CharacterBuilder and HitPointCalculator."""

import random

import pytest

from rulekeeper.character_builder import (
    ELITE_ARRAY,
    HEROIC_ARRAY,
    STANDARD_ARRAY,
    CharacterBuilder,
    HitPointCalculator,
)
from rulekeeper.errors import CharacterBuilderError
from rulekeeper.models import ALL_ABILITIES, Character
from rulekeeper.rule_tables import VALID_CLASSES, get_class_rules


@pytest.fixture
def builder() -> CharacterBuilder:
    return CharacterBuilder()


class TestBuild:

    def test_fighter_standard(self, builder):
        stats = builder.build("Fighter", "Human", "standard")
        assert stats.ability_scores == {
            "strength": 15, "dexterity": 13, "constitution": 14,
            "intelligence": 8, "wisdom": 12, "charisma": 10,
        }
        # d10 + CON 14
        assert stats.hit_points == 12
        assert stats.armor_class == 11

    def test_wizard_puts_intelligence_first(self, builder):
        stats = builder.build("Wizard", "Elf", "standard")
        assert stats.ability_scores["intelligence"] == 15
        assert stats.ability_scores["strength"] == 8
        # d6 + CON 13
        assert stats.hit_points == 7

    @pytest.mark.parametrize("method,array", [
        ("standard", STANDARD_ARRAY), ("heroic", HEROIC_ARRAY), ("elite", ELITE_ARRAY),
    ])
    @pytest.mark.parametrize("class_name", VALID_CLASSES)
    def test_uses_whole_array(self, builder, method, array, class_name):
        stats = builder.build(class_name, "Human", method)
        assert sorted(stats.ability_scores.values(), reverse=True) == array
        assert list(stats.ability_scores) == ALL_ABILITIES

    @pytest.mark.parametrize("class_name", VALID_CLASSES)
    def test_built_scores_meet_class_minimums(self, builder, class_name):
        stats = builder.build(class_name, "Human")
        for ability, minimum in get_class_rules(class_name).minimum_scores.items():
            assert stats.ability_scores[ability] >= minimum

    def test_unknown_class_uses_canonical_order(self, builder):
        stats = builder.build("Bard", "Human")
        assert stats.ability_scores["strength"] == 15
        assert stats.hit_points == 9

    def test_unknown_method(self, builder):
        with pytest.raises(CharacterBuilderError, match="Unknown generation method"):
            builder.build("Fighter", "Human", "point-buy")


class TestHitPointCalculator:

    def make_character(self, character_class="Fighter", constitution=14):
        scores = {a: 10 for a in ALL_ABILITIES}
        scores["constitution"] = constitution
        return Character(name="HP", character_class=character_class, ability_scores=scores)

    def test_average(self):
        assert HitPointCalculator().hit_points_for_level(self.make_character()) == 5 + 1 + 2

    def test_average_minimum_one(self):
        calc = HitPointCalculator("average")
        assert calc.hit_points_for_level(self.make_character("Wizard", constitution=3)) == 1

    def test_roll_uses_injected_rng(self):
        calc_a = HitPointCalculator("roll", rng=random.Random(42))
        calc_b = HitPointCalculator("roll", rng=random.Random(42))
        char = self.make_character("Barbarian", constitution=10)
        rolls_a = [calc_a.hit_points_for_level(char) for _ in range(20)]
        rolls_b = [calc_b.hit_points_for_level(char) for _ in range(20)]
        assert rolls_a == rolls_b
        assert all(1 <= r <= 12 for r in rolls_a)

    def test_unknown_method(self):
        with pytest.raises(CharacterBuilderError):
            HitPointCalculator("max")
