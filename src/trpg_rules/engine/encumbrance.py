"""Carried weight and carrying capacity."""

from __future__ import annotations

from trpg_rules.core.config import Settings, get_settings
from trpg_rules.core.constants import POWERFUL_BUILD_CAP, SIZE_CARRY_MULTIPLIERS
from trpg_rules.models.actor import Actor, Encumbrance


def _round_tenth(value: float) -> float:
    return round(value * 10) / 10


def carried_weight(actor: Actor, settings: Settings | None = None) -> float:
    """Sum the weight of physical items and, optionally, coins.

    Args:
        actor: The actor.
        settings: Settings; defaults to the cached settings.

    Returns:
        Total weight before rounding.
    """
    settings = settings or get_settings()
    weight = sum((item.quantity or 0) * (item.weight or 0) for item in actor.items if item.is_physical)

    if settings.rules.currency_weight:
        purse = actor.currency.model_dump()
        coins = sum(max(count, 0) for count in purse.values())
        weight += coins * settings.rules.currency_per_weight / 100
    return weight


def size_multiplier(actor: Actor) -> float:
    """Get the carrying capacity multiplier for the actor's size.

    Powerful build doubles the multiplier, up to the largest size's.
    """
    multiplier = SIZE_CARRY_MULTIPLIERS.get(actor.traits.size, 1.0)
    if actor.get_flag("powerfulBuild"):
        multiplier = min(multiplier * 2, POWERFUL_BUILD_CAP)
    return multiplier


def compute_encumbrance(actor: Actor, settings: Settings | None = None) -> Encumbrance:
    """Compute carried weight against carrying capacity.

    Args:
        actor: The actor.
        settings: Settings; defaults to the cached settings.

    Returns:
        Weight, capacity, percentage of capacity used (0-100) and whether
        the percentage is above the encumbrance threshold.
    """
    settings = settings or get_settings()
    weight = _round_tenth(carried_weight(actor, settings))
    capacity = actor.abilities["str"].value * settings.rules.encumbrance_str_multiplier * size_multiplier(actor)
    if capacity > 0:
        pct = min(max(weight * 100 / capacity, 0.0), 100.0)
    else:
        pct = 100.0 if weight > 0 else 0.0
    return Encumbrance(
        value=weight,
        max=capacity,
        pct=pct,
        encumbered=pct > settings.rules.encumbered_threshold_pct,
    )


__all__ = [
    "carried_weight",
    "size_multiplier",
    "compute_encumbrance",
]
