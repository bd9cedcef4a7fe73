"""Tormenta RPG rules engine.

Derives the computed values of Tormenta RPG actors and items (ability
modifiers, saves, skills, armor class, encumbrance, spell slots, attack
and damage formulas) and runs the workflows a virtual tabletop builds on
them: item usage, damage, death saves, rests and action points.

The host owns persistence, sheets and chat. The engine works on pydantic
models built from host documents and returns update data for the host to
store.

Example:
    >>> from trpg_rules import Actor, prepare_actor, roll_skill
    >>>
    >>> hero = Actor.from_document(document)
    >>> prepare_actor(hero)
    >>> hero.attributes.ac.value
    16
    >>> roll_skill(hero, "ath").total
    14

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 models for actor and item documents.
    engine: Derived data, rolls and gameplay workflows.
    migration: Update data for documents stored by older releases.
"""

from __future__ import annotations

# Core
from trpg_rules.core.config import Settings, get_settings
from trpg_rules.core.exceptions import TrpgRulesError
from trpg_rules.core.logging import configure_logging, get_logger

# Models
from trpg_rules.models import ActiveEffect, Actor, EffectChange, Item

# Engine
from trpg_rules.engine import (
    ActionPointLedger,
    apply_damage,
    convert_currency,
    get_usage_updates,
    long_rest,
    prepare_actor,
    roll_ability_save,
    roll_ability_test,
    roll_attack,
    roll_damage,
    roll_death_save,
    roll_initiative,
    roll_skill,
    short_rest,
)

# Migration
from trpg_rules.migration import migrate_actor_data, migrate_world


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "TrpgRulesError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "Actor",
    "Item",
    "ActiveEffect",
    "EffectChange",
    # Engine
    "prepare_actor",
    "roll_skill",
    "roll_ability_test",
    "roll_ability_save",
    "roll_initiative",
    "roll_attack",
    "roll_damage",
    "get_usage_updates",
    "apply_damage",
    "roll_death_save",
    "long_rest",
    "short_rest",
    "convert_currency",
    "ActionPointLedger",
    # Migration
    "migrate_actor_data",
    "migrate_world",
]
