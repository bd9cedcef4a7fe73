"""Pydantic V2 models for actor and item documents.

Modules:
    enums: Identifiers stored in documents (abilities, skills, item types).
    base: Shared base model and dotted-path helpers.
    effects: Active effects and their changes.
    items: The item model and its blocks.
    actor: The actor model and its blocks.
"""

from __future__ import annotations

from trpg_rules.models.actor import (
    AbilityScore,
    Actor,
    ArmorClass,
    Attributes,
    Bonuses,
    CurrencyPurse,
    Details,
    Encumbrance,
    Resource,
    ResourcePool,
    SaveData,
    SkillData,
    SpellSlot,
    Traits,
)
from trpg_rules.models.base import (
    RulesModel,
    apply_update_data,
    get_property,
    has_property,
    set_property,
)
from trpg_rules.models.effects import ActiveEffect, EffectChange
from trpg_rules.models.enums import (
    Ability,
    ActionType,
    ActorSize,
    ActorType,
    ArmorCalculation,
    ArmorType,
    BabProgression,
    ConsumeType,
    Currency,
    EffectMode,
    ItemType,
    RestType,
    SaveId,
    SkillId,
    SpellPreparationMode,
    SpellProgression,
    UsePeriod,
    WeaponType,
)
from trpg_rules.models.items import Item


__all__ = [
    # Base
    "RulesModel",
    "get_property",
    "has_property",
    "set_property",
    "apply_update_data",
    # Enums
    "Ability",
    "ActionType",
    "ActorSize",
    "ActorType",
    "ArmorCalculation",
    "ArmorType",
    "BabProgression",
    "ConsumeType",
    "Currency",
    "EffectMode",
    "ItemType",
    "RestType",
    "SaveId",
    "SkillId",
    "SpellPreparationMode",
    "SpellProgression",
    "UsePeriod",
    "WeaponType",
    # Documents
    "ActiveEffect",
    "EffectChange",
    "Item",
    "Actor",
    "AbilityScore",
    "SaveData",
    "SkillData",
    "ResourcePool",
    "ArmorClass",
    "Attributes",
    "Details",
    "Traits",
    "CurrencyPurse",
    "Resource",
    "SpellSlot",
    "Bonuses",
    "Encumbrance",
]
