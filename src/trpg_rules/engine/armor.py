"""Armor class resolution.

The calculation strategy is stored on the actor (``attributes.ac.calc``):

* ``flat``: the stored value, nothing else applies.
* ``natural``: the stored value as base, plus shield and bonuses.
* ``default``: ``10 + half level`` plus equipped armor and DEX.
* ``custom``: a formula evaluated against the actor's roll data.

Unknown strategies are migrated to ``flat``. Problems found while
computing the value are reported as localization keys in ``warnings``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from trpg_rules.core.constants import ARMOR_TYPES, BASE_ARMOR_CLASS
from trpg_rules.core.exceptions import FormulaError
from trpg_rules.core.logging import get_logger
from trpg_rules.engine.formulas import evaluate_formula
from trpg_rules.models.actor import Actor
from trpg_rules.models.base import is_numeric
from trpg_rules.models.enums import ArmorCalculation, ItemType
from trpg_rules.models.items import Item


logger = get_logger(__name__)

WARN_MULTIPLE_ARMOR = "TRPG.WarnMultipleArmor"
WARN_MULTIPLE_SHIELDS = "TRPG.WarnMultipleShields"
WARN_BAD_FORMULA = "TRPG.WarnBadACFormula"

_CALCULATIONS: tuple[str, ...] = tuple(calc.value for calc in ArmorCalculation)


@dataclass
class ArmorClassResult:
    """The resolved armor class and its parts.

    Attributes:
        calc: Strategy used.
        value: Total armor class.
        base: Base before shield and bonuses.
        shield: Shield bonus.
        bonus: Miscellaneous bonus.
        cover: Cover bonus.
        dex: DEX contribution under the default strategy.
        equipped_armor: Armor that counted, if any.
        equipped_shield: Shield that counted, if any.
        warnings: Localization keys for problems found.
    """

    calc: str
    value: int
    base: int
    shield: int = 0
    bonus: int = 0
    cover: int = 0
    dex: int = 0
    equipped_armor: Item | None = None
    equipped_shield: Item | None = None
    warnings: list[str] = field(default_factory=list)


def prepare_base_armor_class(actor: Actor) -> None:
    """Reset the armor class parts active effects may target."""
    ac = actor.attributes.ac
    ac.base = BASE_ARMOR_CLASS
    ac.shield = 0
    ac.bonus = 0
    ac.cover = 0


def equipped_armor(actor: Actor) -> tuple[list[Item], list[Item]]:
    """Split equipped armor-class equipment into body armor and shields.

    Args:
        actor: The actor.

    Returns:
        Equipped armors and equipped shields, in item order.
    """
    armors: list[Item] = []
    shields: list[Item] = []
    for item in actor.items_of_type(ItemType.EQUIPMENT):
        if not item.equipped or item.armor.type not in ARMOR_TYPES:
            continue
        if item.armor.type == "shield":
            shields.append(item)
        else:
            armors.append(item)
    return armors, shields


def _equipment_base(actor: Actor, armors: list[Item], result: ArmorClassResult) -> int:
    dex_mod = actor.abilities["dex"].mod
    base = BASE_ARMOR_CLASS + math.floor(actor.details.level / 2)
    if not armors:
        result.dex = dex_mod
        return base + dex_mod

    if len(armors) > 1:
        result.warnings.append(WARN_MULTIPLE_ARMOR)
    armor = armors[0].armor
    result.dex = dex_mod if armor.dex is None else min(armor.dex, dex_mod)
    result.equipped_armor = armors[0]
    return base + (armor.value or 0) + result.dex


def compute_armor_class(actor: Actor) -> ArmorClassResult:
    """Resolve the actor's armor class and store it on the actor.

    Custom formulas may produce fractions; armor class is whole, so the
    result is rounded down.

    Args:
        actor: The actor; ``attributes.ac`` is updated in place.

    Returns:
        The resolved armor class.
    """
    ac = actor.attributes.ac
    if ac.calc not in _CALCULATIONS:
        logger.info("Unknown armor class calculation migrated to flat", actor=actor.name, calc=ac.calc)
        ac.calc = ArmorCalculation.FLAT.value
        if is_numeric(ac.value):
            ac.flat = int(ac.value)

    result = ArmorClassResult(calc=ac.calc, value=0, base=ac.base, bonus=ac.bonus, cover=ac.cover)
    armors, shields = equipped_armor(actor)

    if ac.calc == ArmorCalculation.FLAT:
        result.value = ac.flat or 0
        ac.value = result.value
        ac.warnings = result.warnings
        return result

    if ac.calc == ArmorCalculation.NATURAL:
        result.base = ac.flat or 0
    elif ac.calc == ArmorCalculation.DEFAULT:
        result.base = _equipment_base(actor, armors, result)
    else:
        try:
            result.base = math.floor(evaluate_formula(ac.formula, actor.get_roll_data()))
        except FormulaError as exc:
            logger.warning("Bad armor class formula", actor=actor.name, formula=ac.formula, error=str(exc))
            result.warnings.append(WARN_BAD_FORMULA)
            result.base = _equipment_base(actor, armors, result)

    if shields:
        if len(shields) > 1:
            result.warnings.append(WARN_MULTIPLE_SHIELDS)
        result.shield = shields[0].armor.value or 0
        result.equipped_shield = shields[0]

    result.value = result.base + result.shield + result.bonus + result.cover

    ac.base = result.base
    ac.shield = result.shield
    ac.dex = result.dex
    ac.value = result.value
    ac.warnings = result.warnings
    return result


__all__ = [
    "WARN_MULTIPLE_ARMOR",
    "WARN_MULTIPLE_SHIELDS",
    "WARN_BAD_FORMULA",
    "ArmorClassResult",
    "prepare_base_armor_class",
    "equipped_armor",
    "compute_armor_class",
]
