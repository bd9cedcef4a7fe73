"""Damage, healing and death saving throws."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from trpg_rules.core.constants import DEATH_SAVE_DC, DEATH_SAVE_LIMIT
from trpg_rules.core.logging import get_logger
from trpg_rules.engine.dice import D20Check, DiceExpression, Roller, RollType, roll_d20
from trpg_rules.models.actor import Actor, ResourcePool
from trpg_rules.models.base import apply_update_data


logger = get_logger(__name__)

DEATH_SAVE_CRITICAL = "TRPG.DeathSaveCriticalSuccess"
DEATH_SAVE_SUCCESS = "TRPG.DeathSaveSuccess"
DEATH_SAVE_FAILURE = "TRPG.DeathSaveFailure"


def _reduce_pool(actor: Actor, pool_name: str, amount: float, multiplier: float) -> dict[str, Any]:
    pool: ResourcePool = getattr(actor.attributes, pool_name)
    amount = math.floor(int(amount) * multiplier)

    temp = pool.temp or 0
    from_temp = min(temp, amount) if amount > 0 else 0
    value = min(max(pool.value - (amount - from_temp), 0), pool.max + (pool.tempmax or 0))

    updates = {
        f"attributes.{pool_name}.temp": temp - from_temp,
        f"attributes.{pool_name}.value": value,
    }
    apply_update_data(actor, updates)
    logger.debug("Pool reduced", actor=actor.name, pool=pool_name, amount=amount, value=value)
    return updates


def apply_damage(actor: Actor, amount: float = 0, multiplier: float = 1) -> dict[str, Any]:
    """Apply damage (positive) or healing (negative) to hit points.

    Temporary hit points absorb damage first. Hit points stay between 0
    and the maximum plus temporary maximum.

    Args:
        actor: The actor; updated in place.
        amount: Damage taken, negative to heal.
        multiplier: Resistance, vulnerability or healing factor.

    Returns:
        The update data that was applied.

    Example:
        >>> hero.attributes.hp = ResourcePool(value=10, max=20, temp=3)
        >>> apply_damage(hero, 5)
        {'attributes.hp.temp': 0, 'attributes.hp.value': 8}
    """
    return _reduce_pool(actor, "hp", amount, multiplier)


def reduce_magic_points(actor: Actor, amount: float = 0, multiplier: float = 1) -> dict[str, Any]:
    """Spend (positive) or restore (negative) magic points, like ``apply_damage``."""
    return _reduce_pool(actor, "mp", amount, multiplier)


def modify_token_attribute(actor: Actor, attribute: str, value: float, is_delta: bool) -> dict[str, Any] | None:
    """Apply a change made on a token resource bar.

    Hit point and magic point bars go through damage so temporary points
    absorb the change; other attributes are left to the host.

    Args:
        actor: The actor; updated in place.
        attribute: Bar attribute such as ``attributes.hp``.
        value: New value, or the change when ``is_delta``.
        is_delta: Whether ``value`` is a change rather than a new value.

    Returns:
        Applied update data, or None for attributes handled by the host.
    """
    pool_name = attribute.removeprefix("system.").removeprefix("attributes.")
    if pool_name not in ("hp", "mp"):
        return None
    pool: ResourcePool = getattr(actor.attributes, pool_name)
    delta = -value if is_delta else pool.value + pool.temp - value
    return _reduce_pool(actor, pool_name, delta, 1)


@dataclass
class DeathSaveResult:
    """The outcome of a death saving throw.

    Attributes:
        roll: The dice result.
        success: Whether the total met the DC.
        updates: Update data that was applied.
        message: Localization key of the chat message to show, if any.
    """

    roll: DiceExpression
    success: bool
    updates: dict[str, Any] = field(default_factory=dict)
    message: str | None = None


def death_save_check(actor: Actor) -> D20Check:
    """Build a death saving throw: diamond soul adds proficiency."""
    parts: list[str] = []
    data: dict[str, Any] = {}
    if actor.get_flag("diamondSoul"):
        parts.append("@prof")
        data["prof"] = actor.attributes.prof
    if actor.bonuses.abilities.save:
        parts.append("@saveBonus")
        data["saveBonus"] = actor.bonuses.abilities.save
    return D20Check(
        parts=parts,
        data=data,
        halfling_lucky=bool(actor.get_flag("halflingLucky")),
        target_value=DEATH_SAVE_DC,
    )


def roll_death_save(
    actor: Actor,
    *,
    roller: Roller | None = None,
    roll_type: RollType = RollType.NORMAL,
) -> DeathSaveResult | None:
    """Roll a death saving throw and record the result.

    A natural 20 revives the actor at 1 hit point. Three successes
    stabilize it. A natural 1 counts as two failures.

    Args:
        actor: The actor; updated in place.
        roller: Dice service; defaults to the shared roller.
        roll_type: Normal, advantage or disadvantage.

    Returns:
        The result, or None when no death save is needed (the actor has
        hit points or the sequence is already over).
    """
    death = actor.attributes.death
    if actor.attributes.hp.value > 0 or death.failure >= DEATH_SAVE_LIMIT or death.success >= DEATH_SAVE_LIMIT:
        logger.info("Death save unnecessary", actor=actor.name)
        return None

    roll = roll_d20(death_save_check(actor), roller=roller, roll_type=roll_type)
    success = roll.total >= DEATH_SAVE_DC
    result = DeathSaveResult(roll=roll, success=success)

    if success:
        successes = (death.success or 0) + 1
        if roll.natural == 20:
            result.updates = {
                "attributes.death.success": 0,
                "attributes.death.failure": 0,
                "attributes.hp.value": 1,
            }
            result.message = DEATH_SAVE_CRITICAL
        elif successes == DEATH_SAVE_LIMIT:
            result.updates = {"attributes.death.success": 0, "attributes.death.failure": 0}
            result.message = DEATH_SAVE_SUCCESS
        else:
            result.updates = {"attributes.death.success": min(max(successes, 0), DEATH_SAVE_LIMIT)}
    else:
        failures = (death.failure or 0) + (2 if roll.natural == 1 else 1)
        result.updates = {"attributes.death.failure": min(max(failures, 0), DEATH_SAVE_LIMIT)}
        if failures >= DEATH_SAVE_LIMIT:
            result.message = DEATH_SAVE_FAILURE

    apply_update_data(actor, result.updates)
    logger.info("Death save rolled", actor=actor.name, total=roll.total, success=success, message=result.message)
    return result


__all__ = [
    "DEATH_SAVE_CRITICAL",
    "DEATH_SAVE_SUCCESS",
    "DEATH_SAVE_FAILURE",
    "apply_damage",
    "reduce_magic_points",
    "modify_token_attribute",
    "DeathSaveResult",
    "death_save_check",
    "roll_death_save",
]
