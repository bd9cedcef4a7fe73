"""Rules engine for the Tormenta RPG system.

This module derives every computed value of actors and items and runs
the gameplay workflows built on them.

Submodules:
    formulas: ``@`` reference substitution and deterministic evaluation
    dice: Dice rolling (d20 library) and scripted rollers
    abilities: Ability modifiers, saves, skills and initiative
    progression: Level, experience and base attack bonus
    armor: Armor class strategies
    encumbrance: Carried weight and capacity
    spellcasting: Spell DC, slots and damage scaling
    items: Item values that depend on the owner, attack and damage rolls
    usage: Consumption of charges, resources, slots and uses
    damage: Damage, healing and death saves
    rest: Short and long rests
    currency: Coin consolidation
    effects: Active effect suppression and application
    preparation: The actor preparation pipeline
    bonus_dice: Action point counters

Example:
    >>> from trpg_rules.engine import prepare_actor, long_rest, summarize_rest
    >>>
    >>> report = prepare_actor(actor)
    >>> result = long_rest(actor)
    >>> summarize_rest(result, actor.name).message
    'TRPG.LongRestResultHitPoints'
"""

from __future__ import annotations

# =============================================================================
# Formulas and Dice
# =============================================================================
from trpg_rules.engine.formulas import (
    evaluate_formula,
    replace_formula_data,
    safe_eval,
    simplify_formula,
)
from trpg_rules.engine.dice import (
    D20Check,
    DiceExpression,
    DiceRoller,
    Roller,
    RollType,
    ScriptedRoller,
    roll,
    roll_d20,
)

# =============================================================================
# Derived Data
# =============================================================================
from trpg_rules.engine.abilities import (
    InitiativeResult,
    ability_modifier,
    ability_save,
    ability_test,
    initiative_formula,
    roll_ability_save,
    roll_ability_test,
    roll_initiative,
    roll_skill,
    skill_check,
)
from trpg_rules.engine.progression import cr_exp, level_exp, primary_class
from trpg_rules.engine.armor import ArmorClassResult, compute_armor_class, prepare_base_armor_class
from trpg_rules.engine.encumbrance import compute_encumbrance
from trpg_rules.engine.spellcasting import (
    consume_spell_slot,
    max_slot_level,
    prepared_spell_count,
    scale_cantrip_damage,
    scale_damage,
    scale_spell_damage,
)
from trpg_rules.engine.items import (
    AttackToHit,
    ability_mod,
    attack_to_hit,
    derived_damage,
    owned_item_defaults,
    prepare_final_attributes,
    prepare_max_uses,
    roll_attack,
    roll_damage,
    save_dc,
)
from trpg_rules.engine.effects import apply_active_effects, determine_suppression
from trpg_rules.engine.preparation import PreparationReport, prepare_actor, prepare_item

# =============================================================================
# Workflows
# =============================================================================
from trpg_rules.engine.usage import UsageUpdates, apply_usage, get_usage_updates, roll_recharge
from trpg_rules.engine.damage import (
    DeathSaveResult,
    apply_damage,
    modify_token_attribute,
    reduce_magic_points,
    roll_death_save,
)
from trpg_rules.engine.rest import (
    RestResult,
    RestSummary,
    auto_spend_hit_dice,
    long_rest,
    roll_hit_die,
    short_rest,
    summarize_rest,
)
from trpg_rules.engine.currency import convert_currency
from trpg_rules.engine.bonus_dice import ActionPointLedger


__all__ = [
    # Formulas and Dice
    "replace_formula_data",
    "safe_eval",
    "evaluate_formula",
    "simplify_formula",
    "D20Check",
    "DiceExpression",
    "DiceRoller",
    "Roller",
    "RollType",
    "ScriptedRoller",
    "roll",
    "roll_d20",
    # Abilities
    "ability_modifier",
    "skill_check",
    "ability_test",
    "ability_save",
    "roll_skill",
    "roll_ability_test",
    "roll_ability_save",
    "InitiativeResult",
    "initiative_formula",
    "roll_initiative",
    # Progression
    "level_exp",
    "cr_exp",
    "primary_class",
    # Armor and Encumbrance
    "ArmorClassResult",
    "prepare_base_armor_class",
    "compute_armor_class",
    "compute_encumbrance",
    # Spellcasting
    "max_slot_level",
    "consume_spell_slot",
    "prepared_spell_count",
    "scale_damage",
    "scale_cantrip_damage",
    "scale_spell_damage",
    # Items
    "ability_mod",
    "save_dc",
    "AttackToHit",
    "attack_to_hit",
    "prepare_max_uses",
    "derived_damage",
    "owned_item_defaults",
    "prepare_final_attributes",
    "roll_attack",
    "roll_damage",
    # Effects and Preparation
    "determine_suppression",
    "apply_active_effects",
    "PreparationReport",
    "prepare_actor",
    "prepare_item",
    # Usage
    "UsageUpdates",
    "get_usage_updates",
    "apply_usage",
    "roll_recharge",
    # Damage
    "apply_damage",
    "reduce_magic_points",
    "modify_token_attribute",
    "DeathSaveResult",
    "roll_death_save",
    # Rest
    "RestResult",
    "RestSummary",
    "roll_hit_die",
    "auto_spend_hit_dice",
    "long_rest",
    "short_rest",
    "summarize_rest",
    # Currency and Action Points
    "convert_currency",
    "ActionPointLedger",
]
