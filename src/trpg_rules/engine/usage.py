"""Consumption of charges, resources, spell slots and uses.

Using an item is computed as three sets of update data (for the item, its
owner and a consumed resource item) that the host applies together. A
refusal raises ``ItemUsageError`` carrying the localization key the host
shows to the user, and nothing is updated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from trpg_rules.core.exceptions import ItemUsageError
from trpg_rules.core.logging import get_logger
from trpg_rules.engine.dice import Roller, get_default_roller
from trpg_rules.models.actor import Actor
from trpg_rules.models.base import apply_update_data, get_property, is_numeric
from trpg_rules.models.enums import ConsumeType
from trpg_rules.models.items import Item


logger = get_logger(__name__)

NO_USES = "TRPG.ItemNoUses"
NO_SLOTS = "TRPG.SpellCastNoSlots"
NO_RESOURCE = "TRPG.ConsumeWarningNoResource"
NO_SOURCE = "TRPG.ConsumeWarningNoSource"
NO_QUANTITY = "TRPG.ConsumeWarningNoQuantity"


@dataclass
class UsageUpdates:
    """Update data produced by using an item.

    Attributes:
        item: Updates for the used item.
        actor: Updates for the owner.
        resource: Updates for the consumed resource item.
        resource_id: Id of the consumed resource item, if any.
        delete_item: Whether the used item ran out and leaves the inventory.
    """

    item: dict[str, Any] = field(default_factory=dict)
    actor: dict[str, Any] = field(default_factory=dict)
    resource: dict[str, Any] = field(default_factory=dict)
    resource_id: str | None = None
    delete_item: bool = False


def _refuse(item: Item, reason: str, message: str, **context: Any) -> ItemUsageError:
    logger.info("Item usage refused", item=item.name, reason=reason, **context)
    return ItemUsageError(message, item_name=item.name, reason=reason, details=context or None)


def _consume_resource(item: Item, actor: Actor, updates: UsageUpdates) -> None:
    consume = item.consume
    if not consume.type:
        return
    if not consume.target:
        raise _refuse(item, NO_RESOURCE, "Item has no resource to consume", consume_type=consume.type)

    amount = 1 if consume.amount is None else consume.amount
    resource: Any = None
    quantity: float = 0
    if consume.type == ConsumeType.ATTRIBUTE:
        resource = get_property(actor, consume.target)
        quantity = resource if is_numeric(resource) else 0
    elif consume.type in (ConsumeType.AMMO, ConsumeType.MATERIAL):
        resource = actor.get_item(consume.target)
        quantity = resource.quantity if resource is not None else 0
    elif consume.type == ConsumeType.CHARGES:
        resource = actor.get_item(consume.target)
        if resource is not None:
            if resource.uses.per and resource.uses.max:
                quantity = resource.uses.value or 0
            elif resource.recharge.value:
                quantity = 1 if resource.recharge.charged else 0
                amount = 1

    if resource is None:
        raise _refuse(item, NO_SOURCE, "Consumed resource not found", consume_type=consume.type)

    remaining = float(quantity) - amount
    if remaining < 0:
        raise _refuse(
            item,
            NO_QUANTITY,
            "Not enough of the consumed resource",
            consume_type=consume.type,
            available=quantity,
            amount=amount,
        )
    if remaining.is_integer():
        remaining = int(remaining)

    if consume.type == ConsumeType.ATTRIBUTE:
        updates.actor[consume.target] = remaining
    elif consume.type in (ConsumeType.AMMO, ConsumeType.MATERIAL):
        updates.resource["quantity"] = remaining
        updates.resource_id = resource.id
    elif consume.type == ConsumeType.CHARGES:
        updates.resource_id = resource.id
        if resource.uses.per and resource.uses.max:
            updates.resource["uses.value"] = remaining
        elif resource.recharge.value:
            updates.resource["recharge.charged"] = False


def get_usage_updates(
    item: Item,
    actor: Actor,
    *,
    consume_quantity: bool = False,
    consume_recharge: bool = False,
    consume_resource: bool = False,
    consume_spell_level: int | str | None = None,
    consume_usage: bool = False,
) -> UsageUpdates:
    """Compute the updates for using an item.

    Args:
        item: The item being used.
        actor: Its owner.
        consume_quantity: Spend one unit of the item when it has no uses
            left (or uses its last one).
        consume_recharge: Spend the recharge.
        consume_resource: Spend the resource named by ``item.consume``.
        consume_spell_level: Spell slot to spend, as a level or a
            ``spellN`` key.
        consume_usage: Spend one limited use.

    Returns:
        The updates to apply.

    Raises:
        ItemUsageError: If something required is not available.
    """
    updates = UsageUpdates()

    if consume_recharge:
        if not item.recharge.charged:
            raise _refuse(item, NO_USES, "Item is not charged")
        updates.item["recharge.charged"] = False

    if consume_resource:
        _consume_resource(item, actor, updates)

    if consume_spell_level is not None and consume_spell_level != "":
        key = str(consume_spell_level)
        if is_numeric(key):
            key = f"spell{int(float(key))}"
        slot = actor.spells.get(key)
        available = (slot.value or 0) if slot is not None else 0
        if available <= 0:
            raise _refuse(item, NO_SLOTS, "No spell slots left", slot=key, level=item.level)
        updates.actor[f"spells.{key}.value"] = max(available - 1, 0)

    if consume_usage:
        available = item.uses.value or 0
        used = False
        remaining = max(available - 1, 0)
        if available >= 1:
            used = True
            updates.item["uses.value"] = remaining

        if consume_quantity and (not used or remaining == 0):
            quantity = 1 if item.quantity is None else item.quantity
            if quantity >= 1:
                used = True
                updates.item["quantity"] = max(quantity - 1, 0)
                updates.item["uses.value"] = item.uses.numeric_max or 1
                updates.delete_item = updates.item["quantity"] == 0

        if not used:
            raise _refuse(item, NO_USES, "Item has no uses left")

    logger.debug(
        "Usage computed",
        item=item.name,
        item_updates=updates.item,
        actor_updates=updates.actor,
        resource_updates=updates.resource,
        delete_item=updates.delete_item,
    )
    return updates


def apply_usage(item: Item, actor: Actor, updates: UsageUpdates) -> None:
    """Write usage updates to the item, its owner and the consumed resource.

    An item whose last unit was spent is removed from the owner.

    Args:
        item: The used item.
        actor: Its owner.
        updates: Updates from ``get_usage_updates``.
    """
    apply_update_data(item, updates.item)
    apply_update_data(actor, updates.actor)
    if updates.resource:
        resource = actor.get_item(updates.resource_id)
        if resource is not None:
            apply_update_data(resource, updates.resource)
    if updates.delete_item:
        actor.items = [owned for owned in actor.items if owned.id != item.id]
        logger.info("Used up item removed", actor=actor.name, item=item.name)


def roll_recharge(item: Item, *, roller: Roller | None = None) -> bool | None:
    """Roll a d6 to recharge an item.

    Args:
        item: An item with a recharge value; recharged in place on success.
        roller: Dice service; defaults to the shared roller.

    Returns:
        Whether the item recharged, or None when it has no recharge.
    """
    if not item.recharge.value:
        return None
    roller = roller or get_default_roller()
    result = roller.roll("1d6")
    success = result.total >= item.recharge.value
    if success:
        item.recharge.charged = True
    logger.info("Recharge rolled", item=item.name, total=result.total, success=success)
    return success


__all__ = [
    "NO_USES",
    "NO_SLOTS",
    "NO_RESOURCE",
    "NO_SOURCE",
    "NO_QUANTITY",
    "UsageUpdates",
    "get_usage_updates",
    "apply_usage",
    "roll_recharge",
]
