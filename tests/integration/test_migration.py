"""Integration tests for migrating stored worlds.

Tests the flow: check the stored version, compute update data, apply it
and prepare the migrated actors.
"""

from __future__ import annotations

from typing import Any

import pytest

from trpg_rules.core.exceptions import MigrationError
from trpg_rules.engine.preparation import prepare_actor
from trpg_rules.engine.rest import apply_item_updates
from trpg_rules.migration import (
    is_compatible,
    is_newer_version,
    migrate_actor_data,
    migrate_world,
    needs_migration,
)
from trpg_rules.models.actor import Actor
from trpg_rules.models.base import apply_update_data


pytestmark = pytest.mark.integration


class TestVersions:
    """Test the migration version gates."""

    @pytest.mark.parametrize(
        ("version", "than", "expected"),
        [
            ("1.0.11", "1.0.9", True),
            ("1.0.9", "1.0.11", False),
            ("1.0.11", "1.0.11", False),
            ("1.1", "1.0.11", True),
            ("1", "0.9.2", True),
        ],
    )
    def test_is_newer_version(self, version: str, than: str, expected: bool) -> None:
        """Compare versions part by part."""
        assert is_newer_version(version, than) is expected

    def test_needs_migration(self) -> None:
        """Older worlds migrate; new and current worlds do not."""
        assert needs_migration("1.0.5") is True
        assert needs_migration("1.0.11") is False
        assert needs_migration(None) is False

    def test_is_compatible(self) -> None:
        """Worlds from before the first release are too old."""
        assert is_compatible("0.9") is False
        assert is_compatible("1.0.2") is True
        assert is_compatible("") is True


class TestActorMigration:
    """Test migrating stored actors."""

    def test_electrum_removed(self, character_document: dict[str, Any]) -> None:
        """Drop electrum pieces from old purses."""
        character_document["system"]["currency"]["ep"] = 4

        assert migrate_actor_data(character_document) == {"system.currency.-=ep": None}

    def test_current_character_unchanged(self, character_document: dict[str, Any]) -> None:
        """Leave up-to-date characters alone, whatever their items store."""
        character_document["items"][3]["system"]["equipped"] = False

        assert migrate_actor_data(character_document) == {}

    def test_npc_items_switched_on(self, npc_document: dict[str, Any]) -> None:
        """Prepare, equip and train NPCs in what they carry, then use it."""
        npc_document["items"][1]["system"]["preparation"]["prepared"] = False
        npc_document["items"][2]["system"]["equipped"] = False
        npc_document["items"][2]["system"]["proficient"] = False

        update_data = migrate_actor_data(npc_document)

        assert update_data == {
            "items": [
                {"system.preparation.prepared": True, "_id": "spell-maos"},
                {"system.equipped": True, "system.proficient": True, "_id": "weapon-adaga"},
            ]
        }

        npc = Actor.from_document(npc_document)
        items = update_data.pop("items")
        apply_update_data(npc, update_data)
        apply_item_updates(npc, items)
        prepare_actor(npc)

        dagger = npc.get_item("weapon-adaga")
        assert dagger.equipped is True
        assert dagger.proficient is True
        assert npc.get_item("spell-maos").preparation.prepared is True

    def test_malformed_item(self, npc_document: dict[str, Any]) -> None:
        """Refuse actors whose items are not documents."""
        npc_document["items"].append("adaga")

        with pytest.raises(MigrationError) as exc_info:
            migrate_actor_data(npc_document)
        assert exc_info.value.details["document_id"] == "goblin-xama"


class TestWorldMigration:
    """Test migrating a whole world."""

    def test_failures_do_not_stop_the_rest(
        self, character_document: dict[str, Any], npc_document: dict[str, Any]
    ) -> None:
        """Record broken documents and keep migrating the others."""
        character_document["system"]["currency"]["ep"] = 1
        broken = {"_id": "quebrado", "name": "Quebrado", "system": ["not", "a", "mapping"]}

        report = migrate_world(
            actors=[character_document, broken, npc_document],
            items=[{"_id": "espada", "name": "Espada", "system": {}}],
        )

        assert report.actors == {"valeria": {"system.currency.-=ep": None}}
        assert report.items == {}
        assert len(report.failures) == 1
        assert report.failures[0].details["document_id"] == "quebrado"
        assert report.succeeded is False

    def test_empty_world(self) -> None:
        """Migrate nothing without failing."""
        report = migrate_world()

        assert report.succeeded is True
        assert report.actors == {}
