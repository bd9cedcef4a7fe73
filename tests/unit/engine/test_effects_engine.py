"""Tests for active effect suppression and application."""

from __future__ import annotations

from typing import Any

import pytest

from trpg_rules.core.exceptions import FormulaError
from trpg_rules.engine.effects import actor_effects, apply_active_effects, apply_change, determine_suppression
from trpg_rules.models.actor import Actor
from trpg_rules.models.effects import ActiveEffect, EffectChange
from trpg_rules.models.enums import EffectMode


def _change(key: str, value: Any, mode: EffectMode = EffectMode.ADD, **kwargs: Any) -> EffectChange:
    return EffectChange(key=key, value=value, mode=mode, **kwargs)


class TestActorEffects:
    """Tests for gathering effects and their origins."""

    def test_actor_and_transferred_effects(self, character: Actor) -> None:
        """Test actor effects and transferred item effects are gathered."""
        character.effects.append(ActiveEffect(label="Bênção", origin="Actor.valeria.Item.weapon-arco"))
        armor = character.get_item("armor-cota")
        armor.effects.extend(
            [
                ActiveEffect(label="Reforçada", transfer=True),
                ActiveEffect(label="Só no item", transfer=False),
            ]
        )

        gathered = [(effect.label, origin.id if origin else None) for effect, origin in actor_effects(character)]

        assert gathered == [("Bênção", "weapon-arco"), ("Reforçada", "armor-cota")]

    def test_unknown_origin(self, character: Actor) -> None:
        """Test effects from items the actor does not own have no origin."""
        character.effects.append(ActiveEffect(label="Maldição", origin="Actor.other.Item.x"))

        assert list(actor_effects(character))[0][1] is None


class TestSuppression:
    """Tests for suppressing effects of unequipped items."""

    def test_unequipped_weapon(self, character: Actor) -> None:
        """Test effects from an unequipped weapon are suppressed."""
        effect = ActiveEffect(label="Bênção", origin="Item.weapon-arco")
        character.effects.append(effect)

        determine_suppression(character)
        assert effect.suppressed is False

        character.get_item("weapon-arco").equipped = False
        determine_suppression(character)
        assert effect.suppressed is True
        assert effect.is_active is False

    def test_transferred_equipment_effect(self, character: Actor) -> None:
        """Test transferred effects follow their item's equipped state."""
        armor = character.get_item("armor-cota")
        effect = ActiveEffect(label="Reforçada")
        armor.effects.append(effect)
        armor.equipped = False

        determine_suppression(character)

        assert effect.suppressed is True

    def test_feats_never_suppressed(self, character: Actor) -> None:
        """Test effects from items that are not equipped gear stay active."""
        effect = ActiveEffect(label="Fôlego")
        character.get_item("feat-folego").effects.append(effect)

        determine_suppression(character)

        assert effect.suppressed is False


class TestApplyChange:
    """Tests for applying single changes."""

    def test_add(self, character: Actor) -> None:
        """Test numeric values are added and kept as integers."""
        value = apply_change(character, _change("system.attributes.ac.bonus", "2"))

        assert value == 2
        assert isinstance(character.attributes.ac.bonus, int)
        assert character.attributes.ac.bonus == 2

    def test_override(self, character: Actor) -> None:
        """Test overrides replace the value."""
        apply_change(character, _change("attributes.hp.max", "50", EffectMode.OVERRIDE))
        assert character.attributes.hp.max == 50

    def test_multiply(self, character: Actor) -> None:
        """Test multiplication."""
        apply_change(character, _change("abilities.str.value", "2", EffectMode.MULTIPLY))
        assert character.abilities["str"].value == 28

    @pytest.mark.parametrize(
        ("mode", "value", "expected"),
        [
            (EffectMode.UPGRADE, "18", 18),
            (EffectMode.UPGRADE, "12", 16),
            (EffectMode.DOWNGRADE, "12", 12),
            (EffectMode.DOWNGRADE, "18", 16),
        ],
    )
    def test_upgrade_and_downgrade(self, character: Actor, mode: EffectMode, value: str, expected: int) -> None:
        """Test upgrades keep the higher value and downgrades the lower."""
        apply_change(character, _change("abilities.dex.value", value, mode))
        assert character.abilities["dex"].value == expected

    def test_formula_value(self, character: Actor) -> None:
        """Test formula values are evaluated against roll data."""
        character.abilities["dex"].mod = 3

        apply_change(character, _change("attributes.ac.bonus", "@abilities.dex.mod"))

        assert character.attributes.ac.bonus == 3

    def test_bad_formula(self, character: Actor) -> None:
        """Test unresolvable formulas raise."""
        with pytest.raises(FormulaError):
            apply_change(character, _change("attributes.ac.bonus", "@nothing"))

    def test_flag(self, character: Actor) -> None:
        """Test flags can be set even when not stored yet."""
        apply_change(character, _change("flags.trpg.diamondSoul", "true", EffectMode.OVERRIDE))

        assert character.get_flag("diamondSoul") is True

    def test_list_and_string(self, character: Actor) -> None:
        """Test adding to lists appends and adding to strings concatenates."""
        apply_change(character, _change("traits.armorProf.value", "hvy"))
        apply_change(character, _change("bonuses.mwak.damage", "1d4"))

        assert character.traits.armor_prof.value == ["lgt", "med", "shl", "hvy"]
        assert character.bonuses.mwak.damage == "1d4"

    def test_unknown_key(self, character: Actor) -> None:
        """Test changes to unknown keys are skipped."""
        assert apply_change(character, _change("attributes.nope", "1")) is None

    def test_custom(self, character: Actor) -> None:
        """Test custom changes go through their handler."""
        change = _change("attributes.hp.max", "", EffectMode.CUSTOM)
        handlers = {"attributes.hp.max": lambda actor, change, current: current * 2}

        assert apply_change(character, change) is None
        assert apply_change(character, change, handlers) == 60
        assert character.attributes.hp.max == 60


class TestApplyActiveEffects:
    """Tests for applying every active effect."""

    def test_priority_order(self, character: Actor) -> None:
        """Test changes apply in priority order."""
        character.effects.append(
            ActiveEffect(
                label="Escudo Arcano",
                changes=[
                    _change("attributes.ac.bonus", "5", EffectMode.OVERRIDE),
                    _change("attributes.ac.bonus", "2"),
                ],
            )
        )

        overrides = apply_active_effects(character)

        assert character.attributes.ac.bonus == 5
        assert overrides == {"attributes.ac.bonus": 5}

    def test_explicit_priority(self, character: Actor) -> None:
        """Test an explicit priority moves a change earlier."""
        character.effects.append(
            ActiveEffect(
                label="Escudo Arcano",
                changes=[
                    _change("attributes.ac.bonus", "5", EffectMode.OVERRIDE, priority=1),
                    _change("attributes.ac.bonus", "2"),
                ],
            )
        )

        apply_active_effects(character)

        assert character.attributes.ac.bonus == 7

    def test_inactive_effects_skipped(self, character: Actor) -> None:
        """Test disabled and suppressed effects do not apply."""
        character.effects.extend(
            [
                ActiveEffect(label="Off", disabled=True, changes=[_change("attributes.ac.bonus", "1")]),
                ActiveEffect(label="Supp", suppressed=True, changes=[_change("attributes.ac.bonus", "1")]),
            ]
        )

        assert apply_active_effects(character) == {}
        assert character.attributes.ac.bonus == 0

    def test_failed_change_skipped(self, character: Actor) -> None:
        """Test a failing change does not stop the others."""
        character.effects.append(
            ActiveEffect(
                label="Mista",
                changes=[
                    _change("attributes.ac.bonus", "@nothing"),
                    _change("attributes.hp.max", "5"),
                ],
            )
        )

        overrides = apply_active_effects(character)

        assert overrides == {"attributes.hp.max": 35}
        assert character.attributes.ac.bonus == 0
