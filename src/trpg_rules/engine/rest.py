"""Short and long rests.

A rest gathers every recovery into one ``RestResult``: actor update data,
item updates and the hit points, magic points and hit dice gained or
spent. The result is applied to the actor and returned so the host can
persist it and post a summary.

Long rests recover hit points and magic points (one per level), up to
half the character's hit dice, long-rest resources, spell slots, long-rest
and daily item uses and recharges. Short rests recover short-rest
resources and item uses, and may spend hit dice to heal.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any

from trpg_rules.core.config import get_settings
from trpg_rules.core.exceptions import RestError
from trpg_rules.core.logging import actor_context, get_logger
from trpg_rules.engine.dice import DiceExpression, Roller, get_default_roller
from trpg_rules.engine.formulas import replace_formula_data
from trpg_rules.models.actor import Actor
from trpg_rules.models.base import apply_update_data, is_numeric
from trpg_rules.models.enums import ItemType, UsePeriod
from trpg_rules.models.items import Item


logger = get_logger(__name__)

_DENOMINATION = re.compile(r"^d\d+$")


@dataclass
class RestResult:
    """Everything a rest changed.

    Attributes:
        dhd: Hit dice recovered (long rest) or gained back minus spent
            (short rest, negative when dice were spent).
        dhp: Hit points recovered.
        dmp: Magic points recovered.
        update_data: Actor update data.
        update_items: Item updates, each with the item ``_id``.
        long_rest: Whether this was a long rest.
        new_day: Whether a new day started during the rest.
    """

    dhd: int = 0
    dhp: int = 0
    dmp: int = 0
    update_data: dict[str, Any] = field(default_factory=dict)
    update_items: list[dict[str, Any]] = field(default_factory=list)
    long_rest: bool = False
    new_day: bool = False


# =============================================================================
# Recovery
# =============================================================================


def _pool_recovery(
    actor: Actor,
    pool_name: str,
    *,
    recover_temp: bool,
    recover_temp_max: bool,
) -> tuple[dict[str, Any], int]:
    pool = getattr(actor.attributes, pool_name)
    current = pool.value
    maximum = pool.max
    new_value = current + actor.details.level
    recovered = min(new_value, maximum) - current

    updates: dict[str, Any] = {}
    if recover_temp_max:
        updates[f"attributes.{pool_name}.tempmax"] = 0
    else:
        maximum += pool.tempmax
    updates[f"attributes.{pool_name}.value"] = min(new_value, maximum)
    if recover_temp:
        updates[f"attributes.{pool_name}.temp"] = 0
    return updates, recovered


def rest_hit_point_recovery(
    actor: Actor,
    *,
    recover_temp: bool = True,
    recover_temp_max: bool = True,
) -> tuple[dict[str, Any], int]:
    """Recover one hit point per level and clear temporary hit points.

    Args:
        actor: The resting actor.
        recover_temp: Reset temporary hit points to 0.
        recover_temp_max: Reset the temporary maximum to 0; when kept it
            raises the recovery cap.

    Returns:
        Actor update data and the hit points recovered.
    """
    return _pool_recovery(actor, "hp", recover_temp=recover_temp, recover_temp_max=recover_temp_max)


def rest_magic_point_recovery(
    actor: Actor,
    *,
    recover_temp: bool = True,
    recover_temp_max: bool = True,
) -> tuple[dict[str, Any], int]:
    """Recover one magic point per level, like ``rest_hit_point_recovery``."""
    return _pool_recovery(actor, "mp", recover_temp=recover_temp, recover_temp_max=recover_temp_max)


def rest_hit_dice_recovery(actor: Actor, *, max_hit_dice: int | None = None) -> tuple[list[dict[str, Any]], int]:
    """Recover spent hit dice, larger dice first.

    Args:
        actor: The resting actor.
        max_hit_dice: Most dice to recover; defaults to half the level
            (at least one).

    Returns:
        Item updates and the number of dice recovered.
    """
    if max_hit_dice is None:
        max_hit_dice = max(math.floor(actor.details.level / 2), 1)

    classes = sorted(actor.items_of_type(ItemType.CLASS), key=lambda item: item.hit_die_faces, reverse=True)
    updates: list[dict[str, Any]] = []
    recovered = 0
    for item in classes:
        if recovered >= max_hit_dice or item.hit_dice_used <= 0:
            continue
        delta = min(item.hit_dice_used, max_hit_dice - recovered)
        recovered += delta
        updates.append({"_id": item.id, "hit_dice_used": item.hit_dice_used - delta})
    return updates, recovered


def rest_resource_recovery(
    actor: Actor,
    *,
    recover_short_rest_resources: bool = True,
    recover_long_rest_resources: bool = True,
) -> dict[str, Any]:
    """Refill resources with a numeric maximum that recover on this rest."""
    updates: dict[str, Any] = {}
    for key, resource in actor.resources.items():
        if not is_numeric(resource.max):
            continue
        if (recover_short_rest_resources and resource.sr) or (recover_long_rest_resources and resource.lr):
            updates[f"resources.{key}.value"] = resource.max
    return updates


def rest_spell_recovery(actor: Actor, *, recover_spells: bool = True) -> dict[str, Any]:
    """Refill every spell slot to its override or its maximum."""
    if not recover_spells:
        return {}
    return {
        f"spells.{key}.value": slot.override if slot.override is not None else slot.max or 0
        for key, slot in actor.spells.items()
    }


def rest_item_uses_recovery(
    actor: Actor,
    *,
    recover_short_rest_uses: bool = True,
    recover_long_rest_uses: bool = True,
    recover_daily_uses: bool = True,
) -> list[dict[str, Any]]:
    """Refill item uses and recharges that recover on this rest.

    Args:
        actor: The resting actor.
        recover_short_rest_uses: Refill uses per short rest.
        recover_long_rest_uses: Refill uses per long rest and recharges.
        recover_daily_uses: Refill uses per day.

    Returns:
        Item updates.
    """
    periods: list[str] = []
    if recover_short_rest_uses:
        periods.append(UsePeriod.SHORT_REST)
    if recover_long_rest_uses:
        periods.append(UsePeriod.LONG_REST)
    if recover_daily_uses:
        periods.append(UsePeriod.DAY)

    updates: list[dict[str, Any]] = []
    for item in actor.items:
        if item.uses.per in periods and item.uses.numeric_max is not None:
            updates.append({"_id": item.id, "uses.value": item.uses.numeric_max})
        if recover_long_rest_uses and item.recharge.value:
            updates.append({"_id": item.id, "recharge.charged": True})
    return updates


def apply_item_updates(actor: Actor, updates: list[dict[str, Any]]) -> None:
    """Apply item updates keyed by ``_id`` to the actor's items."""
    for update in updates:
        data = dict(update)
        item = actor.get_item(data.pop("_id", None))
        if item is None:
            logger.warning("Update for missing item skipped", actor=actor.name, update=update)
            continue
        apply_update_data(item, data)


# =============================================================================
# Hit Dice
# =============================================================================


def available_hit_dice(actor: Actor) -> int:
    """Count unspent hit dice across class items."""
    return sum(max((item.levels or 1) - item.hit_dice_used, 0) for item in actor.items_of_type(ItemType.CLASS))


def _hit_die_class(actor: Actor, denomination: str | None) -> Item | None:
    for item in actor.items_of_type(ItemType.CLASS):
        if item.hit_dice_used >= (item.levels or 1):
            continue
        if denomination is None or item.hit_dice == denomination:
            return item
    return None


def roll_hit_die(
    actor: Actor,
    denomination: str | None = None,
    *,
    roller: Roller | None = None,
) -> DiceExpression | None:
    """Spend one hit die to heal.

    Rolls ``1dX + CON modifier`` and heals by the total, up to the
    maximum plus temporary maximum.

    Args:
        actor: The actor; it and its class are updated in place.
        denomination: Hit die to spend, such as ``d8``; defaults to the
            first class with dice left.
        roller: Dice service; defaults to the shared roller.

    Returns:
        The roll, or None when no matching hit die is left.

    Raises:
        RestError: If the denomination is not a die such as ``d8``.
    """
    if denomination is not None and not _DENOMINATION.match(denomination):
        raise RestError(
            f"Invalid hit die '{denomination}'",
            actor_name=actor.name,
            details={"denomination": denomination},
        )

    cls = _hit_die_class(actor, denomination)
    if cls is None:
        logger.warning("No hit die available", actor=actor.name, denomination=denomination)
        return None

    roller = roller or get_default_roller()
    formula = replace_formula_data(f"1{cls.hit_dice} + @abilities.con.mod", actor.get_roll_data(), missing=0)
    result = roller.roll(formula)

    cls.hit_dice_used += 1
    hp = actor.attributes.hp
    healed = min(hp.max + (hp.tempmax or 0) - hp.value, result.total)
    hp.value += healed
    logger.info("Hit die rolled", actor=actor.name, die=cls.hit_dice, total=result.total, healed=healed)
    return result


def auto_spend_hit_dice(actor: Actor, *, threshold: int | None = None, roller: Roller | None = None) -> int:
    """Roll hit dice while the actor misses at least ``threshold`` hit points.

    Args:
        actor: The actor; updated in place.
        threshold: Missing hit points that trigger a roll; defaults to the
            ``hit_dice_threshold`` setting.
        roller: Dice service; defaults to the shared roller.

    Returns:
        Number of hit dice spent.
    """
    if threshold is None:
        threshold = get_settings().rules.hit_dice_threshold
    hp = actor.attributes.hp
    cap = hp.max + hp.tempmax

    rolled = 0
    while hp.value + threshold <= cap:
        if roll_hit_die(actor, roller=roller) is None:
            break
        rolled += 1
    return rolled


# =============================================================================
# Rests
# =============================================================================


def _rest(
    actor: Actor,
    *,
    new_day: bool,
    long_rest: bool,
    dhd: int = 0,
    dhp: int = 0,
    dmp: int = 0,
) -> RestResult:
    hit_point_updates: dict[str, Any] = {}
    magic_point_updates: dict[str, Any] = {}
    hit_dice_updates: list[dict[str, Any]] = []
    hit_points = magic_points = hit_dice = 0

    if long_rest:
        hit_point_updates, hit_points = rest_hit_point_recovery(actor)
        magic_point_updates, magic_points = rest_magic_point_recovery(actor)
        hit_dice_updates, hit_dice = rest_hit_dice_recovery(actor)

    result = RestResult(
        dhd=dhd + hit_dice,
        dhp=dhp + hit_points,
        dmp=dmp + magic_points,
        update_data={
            **hit_point_updates,
            **magic_point_updates,
            **rest_resource_recovery(
                actor,
                recover_short_rest_resources=not long_rest,
                recover_long_rest_resources=long_rest,
            ),
            **rest_spell_recovery(actor, recover_spells=long_rest),
        },
        update_items=[
            *hit_dice_updates,
            *rest_item_uses_recovery(
                actor,
                recover_long_rest_uses=long_rest,
                recover_daily_uses=new_day,
            ),
        ],
        long_rest=long_rest,
        new_day=new_day,
    )

    apply_update_data(actor, result.update_data)
    apply_item_updates(actor, result.update_items)
    if hit_dice_updates:
        actor.attributes.hd = available_hit_dice(actor)
    logger.info(
        "Rest completed",
        actor=actor.name,
        long_rest=long_rest,
        new_day=new_day,
        dhd=result.dhd,
        dhp=result.dhp,
        dmp=result.dmp,
    )
    return result


def long_rest(actor: Actor, *, new_day: bool = True) -> RestResult:
    """Take a long rest.

    Args:
        actor: The resting actor; updated in place.
        new_day: Whether the rest carries over to a new day.

    Returns:
        The rest result.
    """
    with actor_context(actor_id=actor.id, actor_name=actor.name):
        return _rest(actor, new_day=new_day, long_rest=True)


def short_rest(
    actor: Actor,
    *,
    new_day: bool = False,
    auto_hit_dice: bool = False,
    roller: Roller | None = None,
) -> RestResult:
    """Take a short rest.

    Args:
        actor: The resting actor; updated in place.
        new_day: Whether the rest carries over to a new day.
        auto_hit_dice: Spend hit dice automatically while hit points are
            missing.
        roller: Dice service for hit dice.

    Returns:
        The rest result; ``dhd`` is negative when hit dice were spent.
    """
    with actor_context(actor_id=actor.id, actor_name=actor.name):
        hit_dice_before = available_hit_dice(actor)
        hit_points_before = actor.attributes.hp.value
        if auto_hit_dice:
            auto_spend_hit_dice(actor, roller=roller)
        dhd = available_hit_dice(actor) - hit_dice_before
        dhp = actor.attributes.hp.value - hit_points_before
        actor.attributes.hd = available_hit_dice(actor)
        return _rest(actor, new_day=new_day, long_rest=False, dhd=dhd, dhp=dhp)


@dataclass(frozen=True)
class RestSummary:
    """Chat summary of a rest.

    Attributes:
        flavor: Localization key describing the rest.
        message: Localization key of the result message.
        data: Format data for the message.
    """

    flavor: str
    message: str
    data: dict[str, Any]


def summarize_rest(result: RestResult, actor_name: str) -> RestSummary:
    """Pick the chat flavor and message for a rest.

    Args:
        result: The rest result.
        actor_name: Name shown in the message.

    Returns:
        The summary.
    """
    dice_restored = result.dhd != 0
    health_restored = result.dhp != 0
    magic_restored = result.dmp != 0
    length = "Long" if result.long_rest else "Short"

    flavor = "TRPG.LongRestOvernight" if result.long_rest and result.new_day else f"TRPG.{length}RestNormal"

    if dice_restored and health_restored:
        message = f"TRPG.{length}RestResult"
    elif result.long_rest and not dice_restored and health_restored and magic_restored:
        message = "TRPG.LongRestResultHitPointsMagicPoints"
    elif result.long_rest and not dice_restored and health_restored:
        message = "TRPG.LongRestResultHitPoints"
    elif result.long_rest and dice_restored and not health_restored:
        message = "TRPG.LongRestResultHitDice"
    else:
        message = f"TRPG.{length}RestResultShort"

    data = {
        "name": actor_name,
        "dice": result.dhd if result.long_rest else -result.dhd,
        "health": result.dhp,
        "magic": result.dmp,
    }
    return RestSummary(flavor=flavor, message=message, data=data)


__all__ = [
    "RestResult",
    "rest_hit_point_recovery",
    "rest_magic_point_recovery",
    "rest_hit_dice_recovery",
    "rest_resource_recovery",
    "rest_spell_recovery",
    "rest_item_uses_recovery",
    "apply_item_updates",
    "available_hit_dice",
    "roll_hit_die",
    "auto_spend_hit_dice",
    "long_rest",
    "short_rest",
    "RestSummary",
    "summarize_rest",
]
