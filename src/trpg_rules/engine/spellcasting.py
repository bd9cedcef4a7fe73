"""Spellcasting: save DC, spell slots and damage scaling.

Caster level comes from class items (``full``, ``twoThirds`` and ``half``
progressions add up); NPCs use their own spell level. Slot maxima are
looked up in the slot table for that caster level.

Example:
    >>> scale_damage(["1d6"], "1d6", 2)
    ['3d6']
    >>> scale_damage(["1d8 + @mod"], "1d6", 1)
    ['1d8 + @mod', '1d6']
"""

from __future__ import annotations

import math
import re

from trpg_rules.core.constants import DEFAULT_SPELL_DC, SPELL_SLOT_LEVELS, SPELL_SLOT_TABLE
from trpg_rules.core.exceptions import ItemUsageError
from trpg_rules.core.logging import get_logger
from trpg_rules.models.actor import Actor
from trpg_rules.models.enums import ItemType, SpellPreparationMode, SpellProgression


logger = get_logger(__name__)

_SINGLE_DIE = re.compile(r"^\s*(\d*)[dD](\d+)\s*$")
_DICE_TERM = re.compile(r"(?<![a-zA-Z])(\d*)[dD](\d+)")


# =============================================================================
# Save DC and Slots
# =============================================================================


def spell_dc(actor: Actor) -> int:
    """Get the DC of the actor's spellcasting ability, or the default DC."""
    ability = actor.abilities.get(actor.attributes.spellcasting or "")
    return ability.dc if ability is not None else DEFAULT_SPELL_DC


def caster_level(actor: Actor) -> int:
    """Calculate the caster level used for the slot table.

    Args:
        actor: The actor.

    Returns:
        Caster level, 0 for actors that cast no spells.
    """
    if actor.is_npc:
        return max(actor.details.spell_level or 0, 0)

    total = 0
    for item in actor.items_of_type(ItemType.CLASS):
        levels = item.levels or 1
        if item.spellcasting == SpellProgression.FULL:
            total += levels
        elif item.spellcasting == SpellProgression.TWO_THIRDS:
            total += math.floor(levels * 2 / 3)
        elif item.spellcasting == SpellProgression.HALF:
            total += math.floor(levels / 2)
    return total


def slot_maxima(level: int) -> list[int]:
    """Get slot maxima for slot levels 0-9 at a caster level.

    Args:
        level: Caster level; values past the table are clamped.

    Returns:
        Ten maxima; slot level 0 is always 0.
    """
    maxima = [0] * SPELL_SLOT_LEVELS
    if level <= 0:
        return maxima
    row = SPELL_SLOT_TABLE[min(level, len(SPELL_SLOT_TABLE)) - 1]
    for index, count in enumerate(row, start=1):
        maxima[index] = count
    return maxima


def prepare_spellcasting(actor: Actor) -> None:
    """Compute the spell save DC and spell slot maxima.

    A numeric ``override`` replaces the table maximum. Slots without a
    stored value start full.

    Args:
        actor: The actor; attributes and spells are updated in place.
    """
    actor.attributes.spelldc = spell_dc(actor)
    maxima = slot_maxima(caster_level(actor))
    for level, maximum in enumerate(maxima):
        slot = actor.spells[f"spell{level}"]
        slot.max = slot.override if slot.override is not None else maximum
        if slot.value is None:
            slot.value = slot.max


def max_slot_level(actor: Actor) -> int:
    """Get the highest slot level with at least one slot, or 0."""
    levels = [
        level for level in range(1, SPELL_SLOT_LEVELS) if actor.spells[f"spell{level}"].max > 0
    ]
    return max(levels, default=0)


def consume_spell_slot(actor: Actor, level: int | str) -> int:
    """Spend one spell slot.

    Args:
        actor: The caster; the slot is updated in place.
        level: Slot level as a number or a ``spellN`` key.

    Returns:
        Slots remaining at that level.

    Raises:
        ItemUsageError: If no slot of that level is left.
    """
    key = level if isinstance(level, str) and level.startswith("spell") else f"spell{level}"
    slot = actor.spells.get(key)
    remaining = (slot.value or 0) if slot is not None else 0
    if remaining <= 0:
        raise ItemUsageError(
            f"No {key} slots left",
            reason="TRPG.SpellCastNoSlots",
            details={"actor": actor.name, "slot": key},
        )
    slot.value = remaining - 1
    logger.debug("Spell slot consumed", actor=actor.name, slot=key, remaining=slot.value)
    return slot.value


def prepared_spell_count(actor: Actor) -> int:
    """Count leveled spells prepared with the ``prepared`` mode."""
    return sum(
        1
        for spell in actor.items_of_type(ItemType.SPELL)
        if spell.level > 0
        and spell.preparation.mode == SpellPreparationMode.PREPARED
        and spell.preparation.prepared
    )


# =============================================================================
# Damage Scaling
# =============================================================================


def multiply_dice(formula: str, times: int) -> str:
    """Multiply the number of dice of every dice term in a formula.

    Example:
        >>> multiply_dice("1d6 + 2", 3)
        '3d6 + 2'
    """

    def multiply(match: re.Match[str]) -> str:
        count = int(match.group(1) or 1)
        return f"{count * times}d{match.group(2)}"

    return _DICE_TERM.sub(multiply, formula)


def scale_damage(parts: list[str], scaling: str, times: int) -> list[str]:
    """Add ``times`` steps of a scaling formula to damage parts.

    When the first part and the scaling formula are both a single die of
    the same size they merge (``1d6`` and ``2d6`` give ``3d6``); otherwise
    the scaled formula is appended as a new part.

    Args:
        parts: Damage formulas; the first is the base damage.
        scaling: Formula added per step.
        times: Number of steps.

    Returns:
        The scaled parts (a new list).
    """
    scaled = list(parts)
    if times <= 0 or not scaling.strip():
        return scaled

    step = multiply_dice(scaling.strip(), times)
    base = _SINGLE_DIE.match(scaled[0]) if scaled else None
    extra = _SINGLE_DIE.match(step)
    if base and extra and base.group(2) == extra.group(2):
        count = int(base.group(1) or 1) + int(extra.group(1) or 1)
        scaled[0] = f"{count}d{base.group(2)}"
    else:
        scaled.append(step)
    return scaled


def scale_cantrip_damage(parts: list[str], scaling: str, level: int) -> list[str]:
    """Scale cantrip damage with caster level.

    Cantrips gain a step at levels 5, 11 and 17. Without a scaling
    formula, the whole base damage is the step.

    Args:
        parts: Damage formulas.
        scaling: Formula added per step, possibly empty.
        level: Character level (or NPC spell level).

    Returns:
        The scaled parts.
    """
    times = math.floor((level + 1) / 6)
    if times == 0:
        return list(parts)
    return scale_damage(parts, scaling or " + ".join(parts), times)


def scale_spell_damage(parts: list[str], base_level: int, spell_level: int, scaling: str) -> list[str]:
    """Scale spell damage when cast with a higher slot.

    Args:
        parts: Damage formulas.
        base_level: Level of the spell.
        spell_level: Level of the slot used.
        scaling: Formula added per level above the spell's own.

    Returns:
        The scaled parts.
    """
    return scale_damage(parts, scaling, max(spell_level - base_level, 0))


__all__ = [
    "spell_dc",
    "caster_level",
    "slot_maxima",
    "prepare_spellcasting",
    "max_slot_level",
    "consume_spell_slot",
    "prepared_spell_count",
    "multiply_dice",
    "scale_damage",
    "scale_cantrip_damage",
    "scale_spell_damage",
]
