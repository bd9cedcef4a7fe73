"""Ruleset constants for the Tormenta RPG rules engine.

This module holds the lookup tables of the ruleset: experience thresholds,
spell slot progression, base attack bonus factors, carrying capacity by
size, and the proficiency maps used when an item is added to an actor.
Keys are the short identifiers stored in actor and item documents.
"""

from __future__ import annotations

# =============================================================================
# Progression
# =============================================================================

MAX_LEVEL = 20
"""Highest character level supported by the ruleset."""

CHARACTER_EXP_LEVELS: tuple[int, ...] = (
    0,
    1000,
    3000,
    6000,
    10000,
    15000,
    21000,
    28000,
    36000,
    45000,
    55000,
    66000,
    78000,
    91000,
    105000,
    120000,
    136000,
    153000,
    171000,
    190000,
)
"""Experience at which each level is completed (index = level, level 0 = 0)."""

CR_EXP_MULTIPLIER = 300
"""Experience granted per point of challenge rating."""

BAB_FACTORS: dict[str, float] = {
    "low": 0.5,
    "med": 0.75,
    "high": 1.0,
}
"""Base attack bonus gained per class level, by progression."""

PROFICIENT_BASE_BONUS = 3
"""Flat bonus added to level for trained saves and skills."""

UNTRAINED_PENALTY = -4
"""Attack penalty for wielding an item without proficiency."""

# =============================================================================
# Spellcasting
# =============================================================================

SPELL_SLOT_LEVELS = 10
"""Spell slot keys run from spell0 to spell9."""

SPELL_SLOT_TABLE: tuple[tuple[int, ...], ...] = (
    (2,),
    (3,),
    (4, 2),
    (4, 3),
    (4, 3, 2),
    (4, 3, 3),
    (4, 3, 3, 1),
    (4, 3, 3, 2),
    (4, 3, 3, 3, 1),
    (4, 3, 3, 3, 2),
    (4, 3, 3, 3, 2, 1),
    (4, 3, 3, 3, 2, 1),
    (4, 3, 3, 3, 2, 1, 1),
    (4, 3, 3, 3, 2, 1, 1),
    (4, 3, 3, 3, 2, 1, 1, 1),
    (4, 3, 3, 3, 2, 1, 1, 1),
    (4, 3, 3, 3, 2, 1, 1, 1, 1),
    (4, 3, 3, 3, 3, 1, 1, 1, 1),
    (4, 3, 3, 3, 3, 2, 1, 1, 1),
    (4, 3, 3, 3, 3, 2, 2, 1, 1),
)
"""Spell slots per slot level 1-9 for each caster level 1-20."""

DEFAULT_SPELL_DC = 10
"""Spell save DC for actors without a spellcasting ability."""

CANTRIP_SCALING_STEP = 6
"""Cantrips gain one damage step every six levels (from level 5)."""

# =============================================================================
# Armor Class
# =============================================================================

BASE_ARMOR_CLASS = 10
"""Armor class before armor, dexterity and level."""

ARMOR_TYPES = frozenset({"light", "medium", "heavy", "natural", "shield"})
"""Equipment types that contribute to armor class."""

# =============================================================================
# Encumbrance
# =============================================================================

PHYSICAL_ITEM_TYPES = frozenset({"weapon", "equipment", "consumable", "tool", "backpack", "loot"})
"""Item types that have weight and quantity."""

SIZE_CARRY_MULTIPLIERS: dict[str, float] = {
    "tiny": 0.5,
    "sm": 1.0,
    "med": 1.0,
    "lg": 2.0,
    "huge": 4.0,
    "grg": 8.0,
}
"""Carrying capacity multiplier by creature size (other sizes use 1)."""

POWERFUL_BUILD_CAP = 8.0
"""Upper bound of the size multiplier once powerful build doubles it."""

# =============================================================================
# Currency
# =============================================================================

CURRENCY_CONVERSION: tuple[tuple[str, str, int], ...] = (
    ("cp", "sp", 10),
    ("sp", "gp", 10),
    ("gp", "pp", 10),
)
"""Ordered (from, into, each) steps for consolidating coins."""

# =============================================================================
# Death Saves and Rests
# =============================================================================

DEATH_SAVE_DC = 10
"""Target number for a death saving throw."""

DEATH_SAVE_LIMIT = 3
"""Successes or failures that end the death save sequence."""

REMARKABLE_ATHLETE_ABILITIES = frozenset({"str", "dex", "con"})
"""Abilities whose untrained skills remarkable athletes treat as half trained."""

INITIATIVE_FORMULA = "1d20 + @skills.init.mod + @skills.init.prof + @bonus"
"""Initiative roll before the optional DEX tiebreaker."""

# =============================================================================
# Proficiency Maps
# =============================================================================

ARMOR_PROFICIENCIES_MAP: dict[str, str | bool] = {
    "natural": True,
    "clothing": True,
    "light": "lgt",
    "medium": "med",
    "heavy": "hvy",
    "shield": "shl",
}
"""Armor type to the trait key that grants proficiency (True = always)."""

WEAPON_PROFICIENCIES_MAP: dict[str, str | bool] = {
    "natural": True,
    "simpleM": "sim",
    "simpleR": "sim",
    "martialM": "mar",
    "martialR": "mar",
    "exoM": "exo",
    "exoR": "exo",
}
"""Weapon type to the trait key that grants proficiency (True = always)."""


__all__ = [
    # Progression
    "MAX_LEVEL",
    "CHARACTER_EXP_LEVELS",
    "CR_EXP_MULTIPLIER",
    "BAB_FACTORS",
    "PROFICIENT_BASE_BONUS",
    "UNTRAINED_PENALTY",
    # Spellcasting
    "SPELL_SLOT_LEVELS",
    "SPELL_SLOT_TABLE",
    "DEFAULT_SPELL_DC",
    "CANTRIP_SCALING_STEP",
    # Armor Class
    "BASE_ARMOR_CLASS",
    "ARMOR_TYPES",
    # Encumbrance
    "PHYSICAL_ITEM_TYPES",
    "SIZE_CARRY_MULTIPLIERS",
    "POWERFUL_BUILD_CAP",
    # Currency
    "CURRENCY_CONVERSION",
    # Death Saves and Rests
    "DEATH_SAVE_DC",
    "DEATH_SAVE_LIMIT",
    "REMARKABLE_ATHLETE_ABILITIES",
    "INITIATIVE_FORMULA",
    # Proficiency Maps
    "ARMOR_PROFICIENCIES_MAP",
    "WEAPON_PROFICIENCIES_MAP",
]
