"""Integration tests for a round of play.

Tests the complete flow: prepare, attack, spend resources, heal and rest.
"""

from __future__ import annotations

from typing import Any

import pytest

from trpg_rules.core.exceptions import ItemUsageError
from trpg_rules.engine.damage import apply_damage
from trpg_rules.engine.dice import ScriptedRoller
from trpg_rules.engine.items import roll_attack, roll_damage
from trpg_rules.engine.preparation import prepare_actor
from trpg_rules.engine.rest import long_rest, short_rest
from trpg_rules.engine.usage import NO_USES, apply_usage, get_usage_updates
from trpg_rules.models.actor import Actor


pytestmark = pytest.mark.integration


class TestCombatRound:
    """Test an archer fighting a goblin."""

    def test_shot_spends_ammunition(self, prepared_character: Actor, prepared_npc: Actor) -> None:
        """Fire the bow, hit and damage the goblin."""
        bow = prepared_character.get_item("weapon-arco")
        roller = ScriptedRoller([12, 4])

        updates = get_usage_updates(bow, prepared_character, consume_resource=True)
        apply_usage(bow, prepared_character, updates)
        attack = roll_attack(bow, prepared_character, roller=roller)
        damage = roll_damage(bow, prepared_character, roller=roller)
        apply_damage(prepared_npc, damage.total)

        assert prepared_character.get_item("ammo-flechas").quantity == 19
        assert attack.total == 19
        assert damage.total == 7
        assert roller.history[-1].expression == "1d6 + 3"
        assert prepared_npc.attributes.hp.value == 8

    def test_quiver_runs_out(self, prepared_character: Actor) -> None:
        """Fire until no arrows are left."""
        bow = prepared_character.get_item("weapon-arco")
        prepared_character.get_item("ammo-flechas").quantity = 1

        apply_usage(bow, prepared_character, get_usage_updates(bow, prepared_character, consume_resource=True))

        with pytest.raises(ItemUsageError):
            get_usage_updates(bow, prepared_character, consume_resource=True)


class TestRecoveryCycle:
    """Test healing with a feature and recovering it on rests."""

    def test_second_wind_and_rests(self, prepared_character: Actor) -> None:
        """Use Second Wind, then get it and hit points back by resting."""
        feature = prepared_character.get_item("feat-folego")

        apply_usage(feature, prepared_character, get_usage_updates(feature, prepared_character, consume_usage=True))
        healing = roll_damage(feature, prepared_character, roller=ScriptedRoller([6]))
        apply_damage(prepared_character, -healing.total)

        assert healing.total == 9
        assert prepared_character.attributes.hp.value == 29
        with pytest.raises(ItemUsageError) as exc_info:
            get_usage_updates(feature, prepared_character, consume_usage=True)
        assert exc_info.value.details["reason"] == NO_USES

        short = short_rest(prepared_character)
        assert short.dhp == 0
        assert feature.uses.value == 1

        result = long_rest(prepared_character)
        assert (result.dhp, result.dmp, result.dhd) == (1, 3, 1)
        assert prepared_character.attributes.hp.value == 30


class TestDocumentRoundTrip:
    """Test preparing actors built from stored documents."""

    def test_fresh_models_prepare_the_same(self, character_document: dict[str, Any]) -> None:
        """Preparing two fresh models from one document gives equal results."""
        character_document["effects"] = [
            {
                "_id": "bencao",
                "label": "Bênção",
                "changes": [{"key": "system.attributes.ac.bonus", "mode": 2, "value": "1"}],
            }
        ]
        first = Actor.from_document(character_document)
        second = Actor.from_document(character_document)

        prepare_actor(first)
        prepare_actor(second)

        assert first.attributes.ac.value == second.attributes.ac.value == 21

    def test_copy_prepares_like_the_original(self, prepared_character: Actor) -> None:
        """A deep copy of a prepared actor prepares to the same values."""
        copy = prepared_character.model_copy(deep=True)

        prepare_actor(copy)

        assert copy.attributes.ac.value == prepared_character.attributes.ac.value
        assert copy.details.level == prepared_character.details.level
