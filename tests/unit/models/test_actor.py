"""Tests for the actor document model."""

from __future__ import annotations

from typing import Any

from trpg_rules.models.actor import Actor, Details, Resource, SpellSlot
from trpg_rules.models.enums import SkillId
from trpg_rules.models.items import Item


class TestActorDefaults:
    """Tests for actors built without a document."""

    def test_default_blocks(self) -> None:
        """Test every ability, save, skill and slot level exists."""
        actor = Actor(name="Valeria")

        assert set(actor.abilities) == {"str", "dex", "con", "int", "wis", "cha", "hon"}
        assert set(actor.saves) == {"fortitude", "reflex", "will"}
        assert set(actor.skills) == {skill.value for skill in SkillId}
        assert set(actor.spells) == {f"spell{level}" for level in range(10)}
        assert set(actor.resources) == {"primary", "secondary", "tertiary"}

    def test_default_save_abilities(self) -> None:
        """Test saves are keyed to their usual abilities."""
        actor = Actor(name="Valeria")

        assert actor.saves["fortitude"].ability == "con"
        assert actor.saves["reflex"].ability == "dex"
        assert actor.saves["will"].ability == "wis"

    def test_armor_penalty_skills(self) -> None:
        """Test armor penalty applies to the physical skills only."""
        actor = Actor(name="Valeria")
        penalized = {key for key, skill in actor.skills.items() if skill.pda}

        assert penalized == {"acr", "ath", "fur", "lad"}

    def test_is_npc(self) -> None:
        """Test NPC detection."""
        assert Actor(name="Goblin", type="npc").is_npc is True
        assert Actor(name="Valeria").is_npc is False


class TestActorFromDocument:
    """Tests for building actors from host documents."""

    def test_partial_skills_are_completed(self, character: Actor) -> None:
        """Test skills missing from the document are added."""
        assert character.skills["ath"].value == 1
        assert character.skills["ath"].ability == "str"
        assert character.skills["ath"].pda is True
        assert character.skills["dip"].ability == "cha"

    def test_partial_saves_are_completed(self, character: Actor) -> None:
        """Test partial save entries keep their usual ability."""
        assert character.saves["fortitude"].proficient is True
        assert character.saves["fortitude"].ability == "con"
        assert character.saves["will"].proficient is False

    def test_partial_abilities_are_completed(self, npc: Actor) -> None:
        """Test abilities missing from the document default to 10."""
        assert npc.abilities["wis"].value == 14
        assert npc.abilities["str"].value == 10

    def test_items_and_flags(self, character_document: dict[str, Any]) -> None:
        """Test embedded items are parsed and flags read from the system scope."""
        character_document["flags"] = {"trpg": {"powerfulBuild": True}, "core": {"sheetClass": "x"}}
        actor = Actor.from_document(character_document)

        assert actor.id == "valeria"
        assert len(actor.items) == 7
        assert actor.get_item("weapon-espada").name == "Espada Longa"
        assert actor.flags == {"powerfulBuild": True}

    def test_blank_spell_level(self, npc: Actor) -> None:
        """Test a blank NPC spell level is read as unset."""
        assert npc.details.spell_level is None

    def test_armor_penalty_alias(self) -> None:
        """Test the armor penalty reads its stored key."""
        actor = Actor.from_document({"name": "X", "system": {"attributes": {"penalidadeArmadura": -3}}})
        assert actor.attributes.armor_penalty == -3


class TestActorBlocks:
    """Tests for actor sub-models."""

    def test_blank_details(self) -> None:
        """Test blank level and challenge rating are zero."""
        details = Details(level="", cr=None, spell_level="abc")

        assert details.level == 0
        assert details.cr == 0
        assert details.spell_level is None

    def test_resource_blank_values(self) -> None:
        """Test blank resource values are unset."""
        resource = Resource(value="", max="3")

        assert resource.value is None
        assert resource.max == 3.0

    def test_spell_slot_override(self) -> None:
        """Test a blank override is unset and a numeric one kept."""
        assert SpellSlot(override="").override is None
        assert SpellSlot(override="2").override == 2

    def test_bonus_strings(self) -> None:
        """Test numeric bonuses are stored as strings."""
        actor = Actor.from_document({"name": "X", "system": {"bonuses": {"abilities": {"check": 2}}}})
        assert actor.bonuses.abilities.check == "2"
        assert actor.bonuses.abilities.save == ""


class TestActorItems:
    """Tests for item lookup helpers."""

    def test_items_of_type(self, character: Actor) -> None:
        """Test items are filtered by type in document order."""
        weapons = character.items_of_type("weapon")
        assert [item.name for item in weapons] == ["Espada Longa", "Arco Curto"]

    def test_get_item_missing(self, character: Actor) -> None:
        """Test unknown and empty ids return None."""
        assert character.get_item("nope") is None
        assert character.get_item(None) is None

    def test_item_types_grouping(self, character: Actor) -> None:
        """Test items are grouped under every item type."""
        grouped = character.item_types

        assert len(grouped["equipment"]) == 2
        assert grouped["spell"] == []

    def test_classes(self, character: Actor) -> None:
        """Test classes are keyed by slug."""
        assert list(character.classes) == ["guerreiro"]


class TestActorFlagsAndRollData:
    """Tests for flags and roll data."""

    def test_flat_and_nested_flags(self) -> None:
        """Test both flag spellings resolve."""
        actor = Actor(name="X", flags={"acr.skill-bonus": 2, "ath": {"skill-bonus": 3}})

        assert actor.get_flag("acr.skill-bonus") == 2
        assert actor.get_flag("ath.skill-bonus") == 3
        assert actor.get_flag("missing", default=False) is False

    def test_roll_data(self, character: Actor) -> None:
        """Test roll data exposes system blocks, prof and classes."""
        character.attributes.prof = 3
        data = character.get_roll_data()

        assert data["abilities"]["str"].value == 14
        assert data["prof"] == 3
        assert isinstance(data["classes"]["guerreiro"], Item)
        assert "items" not in data
