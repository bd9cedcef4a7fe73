"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the Tormenta RPG rules engine test suite. Actor fixtures are built
from host-shaped documents (camelCase keys, nested ``system`` blocks) so
every test also exercises document parsing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from trpg_rules.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "TRPG_RULES_CURRENCY_WEIGHT": "false",
        "TRPG_RULES_INITIATIVE_DEX_TIEBREAKER": "true",
        "TRPG_RULES_DEBUG": "true",
        "TRPG_RULES_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def settings() -> Any:
    """Create default settings.

    Returns:
        Settings instance.
    """
    from trpg_rules.core.config import Settings

    return Settings()


# =============================================================================
# Document Fixtures
# =============================================================================


@pytest.fixture
def character_document() -> dict[str, Any]:
    """Provide a level 3 fighter as the host stores it.

    Returns:
        Actor document with classes, armor, shield, weapons and ammunition.
    """
    return {
        "_id": "valeria",
        "name": "Valeria",
        "type": "character",
        "system": {
            "abilities": {
                "str": {"value": 14},
                "dex": {"value": 16},
                "con": {"value": 12},
                "int": {"value": 10},
                "wis": {"value": 13},
                "cha": {"value": 8},
            },
            "saves": {"fortitude": {"proficient": True}},
            "skills": {
                "ath": {"value": 1},
                "acr": {"value": 0.5},
                "init": {"value": 1},
                "prc": {"value": 0},
            },
            "attributes": {
                "hp": {"value": 20, "max": 30, "temp": 0, "tempmax": 0},
                "mp": {"value": 5, "max": 10},
                "ac": {"calc": "default"},
            },
            "details": {"xp": {"value": 4500}},
            "traits": {
                "size": "med",
                "armorProf": {"value": ["lgt", "med", "shl"]},
                "weaponProf": {"value": ["sim", "mar"]},
            },
            "currency": {"gp": 50, "sp": 30, "cp": 20},
            "resources": {
                "primary": {"label": "Fúria", "value": 0, "max": 2, "sr": False, "lr": True},
            },
        },
        "flags": {"trpg": {}},
        "items": [
            {
                "_id": "class-guerreiro",
                "name": "Guerreiro",
                "type": "class",
                "system": {
                    "levels": 3,
                    "hitDice": "d10",
                    "hitDiceUsed": 1,
                    "bab": "high",
                    "spellcasting": "none",
                },
            },
            {
                "_id": "armor-cota",
                "name": "Cota de Malha",
                "type": "equipment",
                "system": {
                    "armor": {"type": "medium", "value": 5, "dex": 2},
                    "equipped": True,
                    "proficient": True,
                    "stealth": -2,
                    "weight": 20,
                },
            },
            {
                "_id": "shield-escudo",
                "name": "Escudo Pesado",
                "type": "equipment",
                "system": {
                    "armor": {"type": "shield", "value": 2},
                    "equipped": True,
                    "proficient": True,
                    "weight": 7,
                },
            },
            {
                "_id": "weapon-espada",
                "name": "Espada Longa",
                "type": "weapon",
                "system": {
                    "weaponType": "martialM",
                    "actionType": "mwak",
                    "attackBonus": "1",
                    "damage": {
                        "parts": [["1d8 + @mod", "slashing"]],
                        "versatile": "1d10 + @mod",
                    },
                    "equipped": True,
                    "proficient": True,
                    "weight": 2,
                },
            },
            {
                "_id": "weapon-arco",
                "name": "Arco Curto",
                "type": "weapon",
                "system": {
                    "weaponType": "simpleR",
                    "actionType": "rwak",
                    "damage": {"parts": [["1d6 + @mod", "piercing"]]},
                    "consume": {"type": "ammo", "target": "ammo-flechas", "amount": 1},
                    "equipped": True,
                    "proficient": True,
                    "weight": 1,
                },
            },
            {
                "_id": "ammo-flechas",
                "name": "Flechas",
                "type": "consumable",
                "system": {
                    "consumableType": "ammo",
                    "quantity": 20,
                    "weight": 0.05,
                    "attackBonus": "1",
                },
            },
            {
                "_id": "feat-folego",
                "name": "Segundo Fôlego",
                "type": "feat",
                "system": {
                    "actionType": "heal",
                    "damage": {"parts": [["1d10 + @details.level", "healing"]]},
                    "uses": {"value": 1, "max": "1", "per": "sr"},
                },
            },
        ],
        "effects": [],
    }


@pytest.fixture
def npc_document() -> dict[str, Any]:
    """Provide a challenge rating 5 NPC spellcaster as the host stores it.

    Returns:
        Actor document with a cantrip, a leveled spell and a dagger.
    """
    return {
        "_id": "goblin-xama",
        "name": "Goblin Xamã",
        "type": "npc",
        "system": {
            "abilities": {
                "dex": {"value": 14},
                "wis": {"value": 14},
            },
            "attributes": {
                "hp": {"value": 15, "max": 15},
                "ac": {"calc": "natural", "flat": 13},
                "spellcasting": "wis",
            },
            "details": {"cr": 5, "spellLevel": ""},
        },
        "items": [
            {
                "_id": "spell-raio",
                "name": "Raio de Fogo",
                "type": "spell",
                "system": {
                    "level": 0,
                    "actionType": "rsak",
                    "damage": {"parts": [["1d10", "fire"]]},
                    "scaling": {"mode": "cantrip", "formula": "1d10"},
                    "preparation": {"mode": "atwill", "prepared": True},
                },
            },
            {
                "_id": "spell-maos",
                "name": "Mãos Flamejantes",
                "type": "spell",
                "system": {
                    "level": 1,
                    "actionType": "save",
                    "save": {"ability": "reflex", "scaling": "spell"},
                    "damage": {"parts": [["2d6", "fire"]]},
                    "scaling": {"mode": "level", "formula": "1d6"},
                    "preparation": {"mode": "prepared", "prepared": True},
                },
            },
            {
                "_id": "weapon-adaga",
                "name": "Adaga",
                "type": "weapon",
                "system": {
                    "weaponType": "simpleM",
                    "actionType": "mwak",
                    "properties": {"fin": True},
                    "damage": {"parts": [["1d4 + @mod", "piercing"]]},
                    "equipped": True,
                    "proficient": True,
                    "weight": 1,
                },
            },
        ],
    }


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def character(character_document: dict[str, Any]) -> Any:
    """Create an unprepared character.

    Args:
        character_document: Host document of the character.

    Returns:
        Actor instance.
    """
    from trpg_rules.models.actor import Actor

    return Actor.from_document(character_document)


@pytest.fixture
def prepared_character(character: Any) -> Any:
    """Create a character with every derived value computed.

    Args:
        character: Unprepared character.

    Returns:
        Prepared Actor instance.
    """
    from trpg_rules.engine.preparation import prepare_actor

    prepare_actor(character)
    return character


@pytest.fixture
def npc(npc_document: dict[str, Any]) -> Any:
    """Create an unprepared NPC.

    Args:
        npc_document: Host document of the NPC.

    Returns:
        Actor instance.
    """
    from trpg_rules.models.actor import Actor

    return Actor.from_document(npc_document)


@pytest.fixture
def prepared_npc(npc: Any) -> Any:
    """Create an NPC with every derived value computed.

    Args:
        npc: Unprepared NPC.

    Returns:
        Prepared Actor instance.
    """
    from trpg_rules.engine.preparation import prepare_actor

    prepare_actor(npc)
    return npc


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def dice_roller() -> Any:
    """Create a DiceRoller with a fixed seed for reproducible tests.

    Returns:
        DiceRoller instance with fixed seed.
    """
    from trpg_rules.engine.dice import DiceRoller

    return DiceRoller(seed=42)


@pytest.fixture
def scripted_roller() -> Any:
    """Create a roller with an empty script; tests queue natural results.

    Returns:
        ScriptedRoller instance.
    """
    from trpg_rules.engine.dice import ScriptedRoller

    return ScriptedRoller()
