"""Tests for the actor preparation pipeline."""

from __future__ import annotations

from typing import Any

from trpg_rules.engine.armor import WARN_MULTIPLE_ARMOR
from trpg_rules.engine.preparation import prepare_actor, prepare_unowned_item
from trpg_rules.models.actor import Actor
from trpg_rules.models.effects import ActiveEffect, EffectChange
from trpg_rules.models.enums import EffectMode
from trpg_rules.models.items import Item


def _armor_effect(actor: Actor) -> ActiveEffect:
    effect = ActiveEffect(
        label="Reforçada",
        changes=[EffectChange(key="system.attributes.ac.bonus", value="1")],
    )
    actor.get_item("armor-cota").effects.append(effect)
    return effect


class TestPrepareActor:
    """Tests for prepare_actor."""

    def test_character(self, character: Actor) -> None:
        """Test a clean preparation derives every value."""
        report = prepare_actor(character)

        assert report.warnings == []
        assert report.overrides == {}
        assert character.details.level == 3
        assert character.abilities["dex"].mod == 3
        assert character.attributes.ac.value == 20
        assert character.get_item("weapon-espada").labels["to_hit"] == "+ 6"

    def test_item_effect(self, character: Actor) -> None:
        """Test effects of equipped items apply before armor class."""
        _armor_effect(character)

        report = prepare_actor(character)

        assert report.overrides == {"system.attributes.ac.bonus": 1}
        assert character.attributes.ac.value == 21

    def test_unequipped_item_effect(self, character: Actor) -> None:
        """Test effects of unequipped items are suppressed."""
        effect = _armor_effect(character)
        character.get_item("armor-cota").equipped = False

        report = prepare_actor(character)

        assert effect.suppressed is True
        assert report.overrides == {}
        assert character.attributes.ac.value == 16

    def test_effects_before_derived_values(self, character: Actor) -> None:
        """Test ability changes reach modifiers and attack bonuses."""
        character.effects.append(
            ActiveEffect(label="Força do Touro", changes=[EffectChange(key="abilities.str.value", value="2")])
        )

        prepare_actor(character)

        assert character.abilities["str"].mod == 3
        assert character.get_item("weapon-espada").labels["to_hit"] == "+ 7"

    def test_custom_handlers(self, character: Actor) -> None:
        """Test custom changes use the handlers given."""
        character.effects.append(
            ActiveEffect(
                label="Vigor",
                changes=[EffectChange(key="attributes.hp.max", mode=EffectMode.CUSTOM, value="")],
            )
        )

        def double(actor: Actor, change: EffectChange, current: Any) -> Any:
            return current * 2

        prepare_actor(character, custom_handlers={"attributes.hp.max": double})

        assert character.attributes.hp.max == 60

    def test_warnings_stored(self, character: Actor) -> None:
        """Test warnings are reported and stored on the actor."""
        character.items.append(
            Item(name="Couro", type="equipment", equipped=True, armor={"type": "light", "value": 2})
        )

        report = prepare_actor(character)

        assert report.warnings == [WARN_MULTIPLE_ARMOR]
        assert character.preparation_warnings == [WARN_MULTIPLE_ARMOR]

    def test_warnings_cleared(self, character: Actor) -> None:
        """Test a clean pass clears warnings from the last one."""
        character.preparation_warnings = [WARN_MULTIPLE_ARMOR]

        prepare_actor(character)

        assert character.preparation_warnings == []

    def test_npc(self, npc: Actor) -> None:
        """Test NPCs derive spellcasting from their challenge rating."""
        report = prepare_actor(npc)

        assert report.warnings == []
        assert npc.details.spell_level == 5
        assert npc.attributes.spelldc == 12


class TestPrepareUnownedItem:
    """Tests for items without an owner."""

    def test_labels(self) -> None:
        """Test unowned items get labels from their own values."""
        item = Item(
            name="Adaga",
            type="weapon",
            action_type="mwak",
            attack_bonus="2",
            damage={"parts": [["1d4", "piercing"]]},
        )

        prepare_unowned_item(item)

        assert item.labels["to_hit"] == "2"
        assert "damage" in item.labels

    def test_class_levels_clamped(self) -> None:
        """Test class levels stay between 1 and 20."""
        item = Item(name="Guerreiro", type="class", levels=25)

        prepare_unowned_item(item)

        assert item.levels == 20
