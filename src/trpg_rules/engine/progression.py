"""Level, experience and class progression.

Characters derive their level, hit dice, base attack bonus and armor
penalty from owned class and equipment items. NPCs derive experience and
proficiency from challenge rating.
"""

from __future__ import annotations

import math

from trpg_rules.core.config import Settings, get_settings
from trpg_rules.core.constants import BAB_FACTORS, CHARACTER_EXP_LEVELS, CR_EXP_MULTIPLIER
from trpg_rules.core.logging import get_logger
from trpg_rules.models.actor import Actor
from trpg_rules.models.enums import ItemType
from trpg_rules.models.items import Item


logger = get_logger(__name__)


def level_exp(level: int) -> int:
    """Get the experience total at which a level is completed.

    ``level_exp(0)`` is 0, ``level_exp(1)`` is the experience needed to
    reach level 2, and so on. Levels past the table use its last entry.

    Args:
        level: Character level.

    Returns:
        Experience threshold.
    """
    index = min(max(level, 0), len(CHARACTER_EXP_LEVELS) - 1)
    return CHARACTER_EXP_LEVELS[index]


def cr_exp(cr: float) -> int:
    """Get the experience granted for defeating a creature of a challenge rating."""
    return int(cr * CR_EXP_MULTIPLIER)


def proficiency_bonus(level: float) -> int:
    """Calculate the proficiency bonus for a level or challenge rating."""
    return math.floor((level + 7) / 4)


def class_levels(item: Item) -> int:
    """Get the levels of a class item; missing levels count as one."""
    return item.levels or 1


def primary_class(actor: Actor) -> Item | None:
    """Find the class with the most levels.

    Ties keep the class listed first.

    Args:
        actor: The actor.

    Returns:
        The class item, or None when the actor has no class.
    """
    best: Item | None = None
    for item in actor.items_of_type(ItemType.CLASS):
        if best is None or class_levels(item) > class_levels(best):
            best = item
    return best


def prepare_character_data(actor: Actor, settings: Settings | None = None) -> None:
    """Derive level, hit dice, BAB, armor penalty, proficiency and XP.

    Args:
        actor: A character; updated in place.
        settings: Settings; defaults to the cached settings.
    """
    settings = settings or get_settings()
    level = hit_dice = bab = armor_penalty = 0
    for item in actor.items:
        if item.type == ItemType.CLASS:
            levels = class_levels(item)
            level += levels
            hit_dice += levels - (item.hit_dice_used or 0)
            bab += math.floor(levels * BAB_FACTORS.get(item.bab, BAB_FACTORS["med"]))
        elif item.type == ItemType.EQUIPMENT and item.equipped:
            armor_penalty += item.stealth

    details = actor.details
    attributes = actor.attributes
    details.level = level
    details.half_level = level // 2
    attributes.hd = hit_dice
    attributes.bab.value = bab
    attributes.bab.total = bab
    attributes.armor_penalty = armor_penalty
    attributes.prof = proficiency_bonus(level)

    if actor.get_item(details.original_class) is None:
        primary = primary_class(actor)
        if primary is not None:
            details.original_class = primary.id

    if settings.rules.disable_experience_tracking:
        return

    xp = details.xp
    xp.max = level_exp(level or 1)
    prior = level_exp(level - 1 if level > 0 else 0)
    required = xp.max - prior
    if required <= 0:
        xp.pct = 100 if xp.value >= xp.max else 0
        return
    pct = math.floor((xp.value - prior) * 100 / required + 0.5)
    xp.pct = min(max(pct, 0), 100)


def prepare_npc_data(actor: Actor) -> None:
    """Derive NPC experience, proficiency and caster level.

    Args:
        actor: An NPC; updated in place.
    """
    details = actor.details
    details.xp.value = cr_exp(details.cr)
    details.level = max(0, details.level)
    details.half_level = details.level // 2
    actor.attributes.prof = proficiency_bonus(max(details.cr, 1))

    if actor.attributes.spellcasting and details.spell_level is None:
        details.spell_level = int(max(details.cr, 1))
        logger.debug("NPC caster level defaulted", actor=actor.name, spell_level=details.spell_level)


__all__ = [
    "level_exp",
    "cr_exp",
    "proficiency_bonus",
    "class_levels",
    "primary_class",
    "prepare_character_data",
    "prepare_npc_data",
]
