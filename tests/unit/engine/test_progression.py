"""Tests for level, experience and class progression."""

from __future__ import annotations

import pytest

from trpg_rules.core.config import Settings
from trpg_rules.engine.progression import (
    cr_exp,
    level_exp,
    prepare_character_data,
    prepare_npc_data,
    primary_class,
    proficiency_bonus,
)
from trpg_rules.models.actor import Actor
from trpg_rules.models.items import Item


class TestTables:
    """Tests for progression lookups."""

    @pytest.mark.parametrize(
        ("level", "expected"),
        [(-1, 0), (0, 0), (1, 1000), (3, 6000), (19, 190000), (25, 190000)],
    )
    def test_level_exp(self, level: int, expected: int) -> None:
        """Test experience thresholds, clamped to the table."""
        assert level_exp(level) == expected

    @pytest.mark.parametrize(("cr", "expected"), [(0, 0), (0.5, 150), (5, 1500), (20, 6000)])
    def test_cr_exp(self, cr: float, expected: int) -> None:
        """Test experience granted by challenge rating."""
        assert cr_exp(cr) == expected

    @pytest.mark.parametrize(("level", "expected"), [(1, 2), (4, 2), (5, 3), (9, 4), (17, 6), (20, 6)])
    def test_proficiency_bonus(self, level: int, expected: int) -> None:
        """Test proficiency grows every four levels."""
        assert proficiency_bonus(level) == expected


class TestPrimaryClass:
    """Tests for picking the main class."""

    def test_most_levels(self) -> None:
        """Test the class with the most levels wins."""
        actor = Actor(
            name="X",
            items=[
                Item(_id="a", name="Ladino", type="class", levels=2),
                Item(_id="b", name="Mago", type="class", levels=4),
            ],
        )
        assert primary_class(actor).id == "b"

    def test_tie_keeps_first(self) -> None:
        """Test ties keep the class listed first."""
        actor = Actor(
            name="X",
            items=[
                Item(_id="a", name="Ladino", type="class", levels=2),
                Item(_id="b", name="Mago", type="class", levels=2),
            ],
        )
        assert primary_class(actor).id == "a"

    def test_no_class(self) -> None:
        """Test actors without classes have no primary class."""
        assert primary_class(Actor(name="X")) is None


class TestPrepareCharacterData:
    """Tests for character progression."""

    def test_single_class(self, character: Actor, settings: Settings) -> None:
        """Test level, hit dice, BAB, armor penalty and proficiency."""
        prepare_character_data(character, settings)

        assert character.details.level == 3
        assert character.details.half_level == 1
        assert character.attributes.hd == 2
        assert character.attributes.bab.total == 3
        assert character.attributes.armor_penalty == -2
        assert character.attributes.prof == 2
        assert character.details.original_class == "class-guerreiro"

    def test_original_class_kept(self, character: Actor, settings: Settings) -> None:
        """Test a stored original class survives a larger multiclass."""
        character.details.original_class = "class-guerreiro"
        character.items.append(Item(_id="class-mago", name="Mago", type="class", levels=5, hit_dice="d6"))

        prepare_character_data(character, settings)

        assert character.details.original_class == "class-guerreiro"

    def test_missing_original_class_replaced(self, character: Actor, settings: Settings) -> None:
        """Test a deleted original class is replaced by the largest class."""
        character.details.original_class = "class-removida"
        character.items.append(Item(_id="class-mago", name="Mago", type="class", levels=5, hit_dice="d6"))

        prepare_character_data(character, settings)

        assert character.details.original_class == "class-mago"

    def test_experience(self, character: Actor, settings: Settings) -> None:
        """Test experience progress towards the next level."""
        prepare_character_data(character, settings)

        assert character.details.xp.max == 6000
        assert character.details.xp.pct == 50

    def test_experience_clamped(self, character: Actor, settings: Settings) -> None:
        """Test progress is clamped to 100."""
        character.details.xp.value = 100000

        prepare_character_data(character, settings)

        assert character.details.xp.pct == 100

    def test_level_zero(self, settings: Settings) -> None:
        """Test an actor without classes progresses towards level 1."""
        actor = Actor(name="X")
        actor.details.xp.value = 250

        prepare_character_data(actor, settings)

        assert actor.details.level == 0
        assert actor.details.xp.max == 1000
        assert actor.details.xp.pct == 25

    def test_multiclass(self, character: Actor, settings: Settings) -> None:
        """Test levels and BAB add up across classes."""
        character.items.append(Item(_id="class-mago", name="Mago", type="class", levels=2, bab="low"))

        prepare_character_data(character, settings)

        assert character.details.level == 5
        assert character.attributes.bab.total == 4
        assert character.attributes.hd == 4
        assert character.attributes.prof == 3
        assert character.details.original_class == "class-guerreiro"

    def test_unequipped_armor_has_no_penalty(self, character: Actor, settings: Settings) -> None:
        """Test only equipped equipment counts towards the armor penalty."""
        character.get_item("armor-cota").equipped = False

        prepare_character_data(character, settings)

        assert character.attributes.armor_penalty == 0

    def test_experience_tracking_disabled(self, character: Actor, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test experience is left alone when tracking is off."""
        monkeypatch.setenv("TRPG_RULES_DISABLE_EXPERIENCE_TRACKING", "true")

        prepare_character_data(character, Settings())

        assert character.details.xp.max == 0
        assert character.details.level == 3


class TestPrepareNpcData:
    """Tests for NPC progression."""

    def test_from_challenge_rating(self, npc: Actor) -> None:
        """Test experience, proficiency and caster level from CR."""
        prepare_npc_data(npc)

        assert npc.details.xp.value == 1500
        assert npc.attributes.prof == 3
        assert npc.details.spell_level == 5

    def test_low_challenge_rating(self) -> None:
        """Test fractional CR uses a minimum of 1 for proficiency."""
        actor = Actor(name="Kobold", type="npc")
        actor.details.cr = 0.5

        prepare_npc_data(actor)

        assert actor.details.xp.value == 150
        assert actor.attributes.prof == 2
        assert actor.details.spell_level is None

    def test_explicit_spell_level_kept(self, npc: Actor) -> None:
        """Test a stored caster level is not replaced."""
        npc.details.spell_level = 9

        prepare_npc_data(npc)

        assert npc.details.spell_level == 9
