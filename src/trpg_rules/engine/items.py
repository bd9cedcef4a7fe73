"""Item values that depend on the owning actor.

Items are prepared after their actor, since save DCs, attack bonuses and
formula-based use limits all read the actor's derived data. Items with no
owner only get the values that do not need an actor.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from trpg_rules.core.constants import ARMOR_PROFICIENCIES_MAP, MAX_LEVEL, UNTRAINED_PENALTY, WEAPON_PROFICIENCIES_MAP
from trpg_rules.core.exceptions import FormulaError, ItemUsageError
from trpg_rules.core.logging import get_logger
from trpg_rules.engine.dice import D20Check, DiceExpression, Roller, RollType, get_default_roller, roll_d20
from trpg_rules.engine.formulas import evaluate_formula, replace_formula_data, simplify_formula
from trpg_rules.engine.spellcasting import scale_cantrip_damage, scale_spell_damage
from trpg_rules.models.actor import Actor
from trpg_rules.models.base import get_property, is_numeric
from trpg_rules.models.enums import ActionType, ConsumeType, ItemType, SpellPreparationMode, WeaponType
from trpg_rules.models.items import Item


logger = get_logger(__name__)

_ACTION_ITEM_TYPES: tuple[str, ...] = (
    ItemType.WEAPON,
    ItemType.EQUIPMENT,
    ItemType.CONSUMABLE,
    ItemType.TOOL,
    ItemType.FEAT,
    ItemType.SPELL,
)
_PROFICIENCY_ITEM_TYPES: tuple[str, ...] = (ItemType.WEAPON, ItemType.EQUIPMENT, ItemType.TOOL)
_SPELL_ATTACKS: tuple[str, ...] = (ActionType.MELEE_SPELL_ATTACK, ActionType.RANGED_SPELL_ATTACK)
_RANGED_WEAPONS: tuple[str, ...] = (WeaponType.SIMPLE_RANGED, WeaponType.MARTIAL_RANGED)


# =============================================================================
# Roll Data
# =============================================================================


def ability_mod(item: Item, actor: Actor | None) -> str | None:
    """Choose the ability an item rolls with.

    Args:
        item: The item.
        actor: The owner, if any.

    Returns:
        The item's own ability if set. Otherwise, for owned items: the
        spellcasting ability (default ``int``) for spells and spell
        attacks, ``int`` for tools, the better of DEX and STR for finesse
        weapons, DEX for ranged weapons and STR for everything else.
        None for items without an ability or without an owner.
    """
    if item.type not in _ACTION_ITEM_TYPES:
        return None
    if item.ability:
        return item.ability
    if actor is None:
        return None

    spellcasting = actor.attributes.spellcasting or "int"
    if item.type == ItemType.SPELL:
        return spellcasting
    if item.type == ItemType.TOOL:
        return "int"
    if item.type == ItemType.WEAPON:
        if item.action_type in _SPELL_ATTACKS:
            return spellcasting
        if item.properties.get("fin") is True:
            dex, strength = actor.abilities["dex"].mod, actor.abilities["str"].mod
            return "dex" if dex >= strength else "str"
        if item.weapon_type in _RANGED_WEAPONS:
            return "dex"
    return "str"


def item_roll_data(item: Item, actor: Actor, *, spell_level: int | None = None) -> dict[str, Any]:
    """Build roll data for formulas of an owned item.

    Adds ``item``, ``mod`` (the item's ability modifier) and ``prof``
    (scaled by the item's proficiency where the item type has one) to
    the actor's roll data.

    Args:
        item: The item.
        actor: Its owner.
        spell_level: Slot level the spell is cast with, if upcast.

    Returns:
        Roll data.
    """
    data = actor.get_roll_data()
    data["item"] = item if spell_level is None else item.model_copy(update={"level": spell_level})

    ability_id = ability_mod(item, actor)
    if ability_id:
        ability = actor.abilities.get(ability_id)
        if ability is None:
            logger.warning("Item has an invalid ability", item=item.name, actor=actor.name, ability=ability_id)
        data["mod"] = ability.mod if ability is not None else 0

    factor = float(item.proficient or 0) if item.type in _PROFICIENCY_ITEM_TYPES else 1.0
    data["prof"] = math.floor(factor * (actor.attributes.prof or 0))
    return data


# =============================================================================
# Derived Values
# =============================================================================


def save_dc(item: Item, actor: Actor | None) -> int | None:
    """Compute the DC of the save an item forces and store it on the item.

    Args:
        item: The item.
        actor: The owner, if any.

    Returns:
        The DC, or None when the item has no save or the DC needs an
        owner it does not have.
    """
    if not item.has_save:
        return None
    save = item.save
    if save.scaling == "spell":
        save.dc = actor.attributes.spelldc + (item.level or 0) if actor is not None else None
    elif save.scaling != "flat":
        ability = actor.abilities.get(save.scaling) if actor is not None else None
        save.dc = ability.dc + (item.level or 0) if ability is not None else None
    item.labels["save"] = {"dc": save.dc, "ability": save.ability}
    return save.dc


@dataclass
class AttackToHit:
    """An item's attack bonus.

    Attributes:
        parts: Formula parts added to the d20.
        data: Roll data the parts reference.
        label: Simplified bonus such as ``+ 7``.
    """

    parts: list[str]
    data: dict[str, Any]
    label: str = ""

    @property
    def total(self) -> int | None:
        """Get the bonus as a number, or None when it contains dice."""
        try:
            return int(evaluate_formula(" + ".join(self.parts) or "0", self.data, missing=0))
        except FormulaError:
            return None


def _ammunition(item: Item, actor: Actor) -> Item | None:
    """Find the ammunition an item consumes, if it can still be consumed."""
    if item.consume.type != ConsumeType.AMMO:
        return None
    ammo = actor.get_item(item.consume.target)
    if ammo is None or ammo.type != ItemType.CONSUMABLE or ammo.consumable_type != "ammo":
        return None
    if not ammo.quantity or ammo.quantity - (item.consume.amount or 0) < 0:
        return None
    return ammo


def attack_to_hit(item: Item, actor: Actor | None) -> AttackToHit | None:
    """Assemble an item's attack bonus and store its label.

    Parts, in order: the item's attack bonus, ``@mod``, the actor's BAB
    when non-zero, the untrained penalty when the item is explicitly not
    proficient, the actor's attack bonus for the action type and the
    bonus of consumed ammunition.

    Args:
        item: The item.
        actor: The owner, if any.

    Returns:
        The attack bonus, or None when the item makes no attack roll.
    """
    if not item.has_attack:
        return None

    parts: list[str] = []
    if item.attack_bonus:
        parts.append(item.attack_bonus)
        item.labels["to_hit"] = item.attack_bonus
    if actor is None:
        return AttackToHit(parts=parts, data={}, label=item.attack_bonus)

    data = item_roll_data(item, actor)
    parts.append("@mod")
    if actor.attributes.bab.total:
        parts.append("@attributes.bab.total")
    if item.proficient is False:
        parts.append(str(UNTRAINED_PENALTY))

    actor_bonus = get_property(actor.bonuses, f"{item.action_type}.attack")
    if actor_bonus:
        parts.append(actor_bonus)

    ammo = _ammunition(item, actor)
    if ammo is not None and ammo.attack_bonus:
        parts.append("@ammo")
        data["ammo"] = ammo.attack_bonus

    label = simplify_formula(" + ".join(parts), data).strip()
    if not label.startswith("-"):
        label = f"+ {label}"
    item.labels["to_hit"] = label
    return AttackToHit(parts=parts, data=data, label=label)


def prepare_max_uses(item: Item, actor: Actor | None) -> int | None:
    """Evaluate a formula maximum of limited uses.

    Unresolved references count as 0. A formula that fails to evaluate
    is logged and the maximum is left as it was.

    Args:
        item: The item; ``uses.max`` is updated in place.
        actor: The owner, if any.

    Returns:
        The numeric maximum, or None.
    """
    uses = item.uses
    formula = uses.max_formula or (uses.max if isinstance(uses.max, str) else None)
    if not formula:
        return uses.numeric_max
    if is_numeric(formula):
        uses.max = int(float(formula))
        return uses.max
    if actor is None:
        return uses.numeric_max

    try:
        value = int(evaluate_formula(formula, actor.get_roll_data(), missing=0))
    except FormulaError as exc:
        logger.error("Problem preparing max uses", item=item.name, formula=formula, error=str(exc))
        return uses.numeric_max
    uses.max_formula = formula
    uses.max = value
    return value


@dataclass(frozen=True)
class DerivedDamage:
    """A damage part with roll data substituted."""

    formula: str
    damage_type: str


def derived_damage(item: Item, actor: Actor | None) -> list[DerivedDamage]:
    """Simplify damage parts against the owner's roll data for display.

    Args:
        item: The item.
        actor: The owner, if any.

    Returns:
        One entry per damage part; empty for unowned items.
    """
    if not item.has_damage or actor is None:
        return []
    data = item_roll_data(item, actor)
    derived = [
        DerivedDamage(formula=simplify_formula(formula, data), damage_type=damage_type)
        for formula, damage_type in item.damage.parts
    ]
    item.labels["derived_damage"] = derived
    return derived


def damage_label(item: Item) -> str:
    """Join damage formulas into a display label."""
    return " + ".join(formula for formula, _ in item.damage.parts).replace("+ -", "- ")


# =============================================================================
# Preparation
# =============================================================================


def prepare_item(item: Item) -> None:
    """Prepare values that do not depend on an owner.

    Class levels are clamped to 1-20 and spells without a preparation
    mode default to ``prepared``.

    Args:
        item: The item; updated in place.
    """
    if item.type == ItemType.CLASS:
        item.levels = min(max(item.levels, 1), MAX_LEVEL)
    elif item.type == ItemType.SPELL and not item.preparation.mode:
        item.preparation.mode = SpellPreparationMode.PREPARED.value
    if item.action_type:
        item.labels["damage"] = damage_label(item)
    if item.armor.value:
        item.labels["armor"] = item.armor.value


def prepare_final_attributes(item: Item, actor: Actor | None) -> None:
    """Prepare save DC, attack bonus, use limits and damage of an action item.

    Args:
        item: The item; updated in place.
        actor: The owner, if any.
    """
    if not item.action_type:
        return
    save_dc(item, actor)
    attack_to_hit(item, actor)
    prepare_max_uses(item, actor)
    derived_damage(item, actor)


def _proficient_by_map(key: str | None, mapping: dict[str, str | bool], known: list[str]) -> bool:
    granted = mapping.get(key or "")
    return granted is True or (isinstance(granted, str) and granted in known)


def owned_item_defaults(item: Item, actor: Actor) -> dict[str, Any]:
    """Build update data for an item being added to an actor.

    NPCs equip their equipment and weapons, prepare their spells and are
    proficient with everything. Characters are proficient with armor and
    weapons their traits cover. Values stored on the item are kept.

    Args:
        item: The item being added.
        actor: The new owner.

    Returns:
        Update data keyed by item path.
    """
    explicit = item.model_fields_set
    updates: dict[str, Any] = {}

    if item.type == ItemType.EQUIPMENT:
        if "equipped" not in explicit:
            updates["equipped"] = actor.is_npc
        if "proficient" not in explicit:
            updates["proficient"] = actor.is_npc or _proficient_by_map(
                item.armor.type, ARMOR_PROFICIENCIES_MAP, actor.traits.armor_prof.value
            )
    elif item.type == ItemType.WEAPON:
        if actor.is_npc:
            if "equipped" not in explicit:
                updates["equipped"] = True
            if "proficient" not in explicit:
                updates["proficient"] = True
        elif "proficient" not in explicit:
            updates["proficient"] = _proficient_by_map(
                item.weapon_type, WEAPON_PROFICIENCIES_MAP, actor.traits.weapon_prof.value
            )
    elif item.type == ItemType.SPELL:
        if "prepared" not in item.preparation.model_fields_set:
            updates["preparation.prepared"] = actor.is_npc
    return updates


# =============================================================================
# Rolls
# =============================================================================


def attack_check(item: Item, actor: Actor) -> D20Check:
    """Build the attack roll of an owned item.

    Raises:
        ItemUsageError: If the item makes no attack roll.
    """
    to_hit = attack_to_hit(item, actor)
    if to_hit is None:
        raise ItemUsageError("Item makes no attack roll", item_name=item.name, reason="TRPG.ItemNoAttack")
    return D20Check(
        parts=to_hit.parts,
        data=to_hit.data,
        halfling_lucky=bool(actor.get_flag("halflingLucky")),
    )


def roll_attack(
    item: Item,
    actor: Actor,
    *,
    roller: Roller | None = None,
    roll_type: RollType = RollType.NORMAL,
) -> DiceExpression:
    """Roll an item's attack."""
    return roll_d20(attack_check(item, actor), roller=roller, roll_type=roll_type)


def damage_parts(
    item: Item,
    actor: Actor,
    *,
    spell_level: int | None = None,
    versatile: bool = False,
) -> tuple[list[str], dict[str, Any]]:
    """Assemble the damage formulas of an owned item.

    Applies versatile damage, cantrip and upcast scaling, the actor's
    damage bonus for the action type and the damage of consumed
    ammunition.

    Args:
        item: The item.
        actor: Its owner.
        spell_level: Slot level a spell is cast with.
        versatile: Use the versatile formula for the first part.

    Returns:
        Formula parts and the roll data they reference.

    Raises:
        ItemUsageError: If the item deals no damage.
    """
    if not item.has_damage:
        raise ItemUsageError("Item deals no damage", item_name=item.name, reason="TRPG.ItemNoDamage")

    data = item_roll_data(item, actor, spell_level=spell_level)
    parts = [formula for formula, _ in item.damage.parts]
    if versatile and item.damage.versatile:
        parts[0] = item.damage.versatile

    if item.type == ItemType.SPELL:
        if item.scaling.mode == "cantrip":
            if not actor.is_npc:
                level = actor.details.level
            elif item.preparation.mode == SpellPreparationMode.INNATE:
                level = math.ceil(actor.details.cr)
            else:
                level = actor.details.spell_level or 0
            parts = scale_cantrip_damage(parts, item.scaling.formula, level)
        elif spell_level and item.scaling.mode == "level" and item.scaling.formula:
            parts = scale_spell_damage(parts, item.level, spell_level, item.scaling.formula)

    actor_bonus = get_property(actor.bonuses, f"{item.action_type}.damage")
    if actor_bonus and not (is_numeric(actor_bonus) and float(actor_bonus) == 0):
        parts.append(actor_bonus)

    ammo = _ammunition(item, actor)
    if ammo is not None and ammo.has_damage:
        parts.append("@ammo")
        data["ammo"] = " + ".join(formula for formula, _ in ammo.damage.parts)
    return parts, data


def roll_damage(
    item: Item,
    actor: Actor,
    *,
    roller: Roller | None = None,
    spell_level: int | None = None,
    versatile: bool = False,
) -> DiceExpression:
    """Roll an item's damage (or healing)."""
    parts, data = damage_parts(item, actor, spell_level=spell_level, versatile=versatile)
    roller = roller or get_default_roller()
    return roller.roll(replace_formula_data(" + ".join(parts), data, missing=0))


def roll_formula(
    item: Item,
    actor: Actor,
    *,
    roller: Roller | None = None,
    spell_level: int | None = None,
) -> DiceExpression:
    """Roll an item's free-form formula.

    Raises:
        ItemUsageError: If the item has no formula.
    """
    if not item.formula:
        raise ItemUsageError("Item has no formula to roll", item_name=item.name, reason="TRPG.ItemNoFormula")
    data = item_roll_data(item, actor, spell_level=spell_level)
    roller = roller or get_default_roller()
    return roller.roll(replace_formula_data(item.formula, data, missing=0))


__all__ = [
    "ability_mod",
    "item_roll_data",
    "save_dc",
    "AttackToHit",
    "attack_to_hit",
    "prepare_max_uses",
    "DerivedDamage",
    "derived_damage",
    "damage_label",
    "prepare_item",
    "prepare_final_attributes",
    "owned_item_defaults",
    "attack_check",
    "roll_attack",
    "damage_parts",
    "roll_damage",
    "roll_formula",
]
