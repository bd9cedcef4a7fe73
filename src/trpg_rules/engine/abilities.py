"""Ability, save and skill calculations.

Derived values follow the ruleset's training scheme: a trained save or
skill adds ``3 + level``, an untrained one adds half the level (rounded
down). Global bonuses only count when they are plain numbers; formula
bonuses are left to the roll itself.

Example:
    >>> ability_modifier(15)
    2
    >>> ability_modifier(7)
    -2
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from trpg_rules.core.config import Settings, get_settings
from trpg_rules.core.constants import (
    INITIATIVE_FORMULA,
    PROFICIENT_BASE_BONUS,
    REMARKABLE_ATHLETE_ABILITIES,
)
from trpg_rules.core.exceptions import ValidationError
from trpg_rules.core.logging import get_logger
from trpg_rules.engine.dice import D20Check, DiceExpression, Roller, RollType, get_default_roller, roll_d20
from trpg_rules.engine.formulas import replace_formula_data
from trpg_rules.models.actor import Actor, numeric_bonus
from trpg_rules.models.base import is_numeric, to_int


logger = get_logger(__name__)


def ability_modifier(score: int) -> int:
    """Calculate the modifier of an ability score: floor((score - 10) / 2)."""
    return math.floor((score - 10) / 2)


def training_bonus(trained: bool | float, level: int) -> int:
    """Calculate the bonus a save or skill gets from training.

    Args:
        trained: Whether (or how much) the save or skill is trained.
        level: Character level.

    Returns:
        ``3 + level`` when trained, else ``floor(level / 2)``.
    """
    if trained:
        return PROFICIENT_BASE_BONUS + level
    return math.floor(level / 2)


def round_to_half(value: float) -> float:
    """Round to the nearest 0.5 and clamp to [0, 2]."""
    rounded = math.floor(float(value) * 2 + 0.5) / 2
    return min(max(rounded, 0.0), 2.0)


def flag_bonus(actor: Actor, key: str) -> int | None:
    """Read the ``<key>.skill-bonus`` flag as an integer.

    Args:
        actor: The actor.
        key: Skill or save id.

    Returns:
        The bonus truncated to an integer, or None when the flag holds
        something that is not a number.
    """
    bonus = actor.get_flag(f"{key}.skill-bonus") or 0
    if not is_numeric(bonus):
        return None
    return to_int(bonus)


# =============================================================================
# Derived Data
# =============================================================================


def prepare_abilities(actor: Actor) -> None:
    """Compute ability modifiers, check bonuses and ability DCs.

    Args:
        actor: The actor; abilities are updated in place.
    """
    check_bonus = numeric_bonus(actor.bonuses.abilities.check)
    dc_bonus = numeric_bonus(actor.bonuses.spell.dc)
    for ability in actor.abilities.values():
        ability.mod = ability_modifier(ability.value)
        ability.check_bonus = check_bonus
        ability.dc = 10 + ability.mod + dc_bonus


def prepare_saves(actor: Actor) -> None:
    """Compute saving throw totals.

    Diamond soul makes the actor trained in every save.

    Args:
        actor: The actor; saves are updated in place.

    Raises:
        ValidationError: If a save is keyed to an unknown ability.
    """
    diamond_soul = bool(actor.get_flag("diamondSoul"))
    save_bonus = numeric_bonus(actor.bonuses.abilities.save)
    level = actor.details.level
    for save_id, save in actor.saves.items():
        ability = actor.abilities.get(save.ability)
        if ability is None:
            raise ValidationError(
                f"Save '{save_id}' uses unknown ability",
                field_name=f"saves.{save_id}.ability",
                invalid_value=save.ability,
            )
        if diamond_soul:
            save.proficient = True
        save.mod = ability_modifier(ability.value)
        save.prof = training_bonus(save.proficient, level)
        save.save_bonus = save_bonus
        save.save = save.mod + save.prof + save.save_bonus


def prepare_skills(actor: Actor) -> None:
    """Compute skill totals.

    Training is rounded to the nearest half and clamped to [0, 2].
    Remarkable athletes count untrained STR, DEX and CON skills as half
    trained; jacks of all trades count every untrained skill as half
    trained.

    Args:
        actor: The actor; skills are updated in place.

    Raises:
        ValidationError: If a skill is keyed to an unknown ability.
    """
    athlete = bool(actor.get_flag("remarkableAthlete"))
    jack = bool(actor.get_flag("jackOfAllTrades"))
    check_bonus = numeric_bonus(actor.bonuses.abilities.check)
    skill_bonus = numeric_bonus(actor.bonuses.abilities.skill)
    level = actor.details.level

    for skill_id, skill in actor.skills.items():
        ability = actor.abilities.get(skill.ability)
        if ability is None:
            raise ValidationError(
                f"Skill '{skill_id}' uses unknown ability",
                field_name=f"skills.{skill_id}.ability",
                invalid_value=skill.ability,
            )
        skill.value = round_to_half(skill.value)
        if athlete and skill.value < 0.5 and skill.ability in REMARKABLE_ATHLETE_ABILITIES:
            skill.value = 0.5
        if jack and skill.value < 0.5:
            skill.value = 0.5

        skill.bonus = check_bonus + skill_bonus
        skill.mod = ability.mod
        skill.prof = training_bonus(skill.value, level)
        skill.total = skill.mod + skill.prof + skill.bonus


def apply_flag_bonuses(actor: Actor) -> None:
    """Add ``<key>.skill-bonus`` flags to skill and save totals.

    Skills subject to armor penalty also take the actor's armor penalty.
    Runs after every other derived value, so the bonuses are not
    overwritten.

    Args:
        actor: The actor; totals are updated in place.
    """
    armor_penalty = actor.attributes.armor_penalty
    for skill_id, skill in actor.skills.items():
        bonus = flag_bonus(actor, skill_id)
        if bonus is None:
            continue
        if skill.pda and armor_penalty:
            bonus += armor_penalty
        skill.total += bonus

    for save_id, save in actor.saves.items():
        bonus = flag_bonus(actor, save_id)
        if bonus is not None:
            save.save += bonus


# =============================================================================
# Checks
# =============================================================================


def skill_check(actor: Actor, skill_id: str, *, extra_parts: list[str] | None = None) -> D20Check:
    """Build a skill check.

    Args:
        actor: A prepared actor.
        skill_id: Skill id such as ``acr``.
        extra_parts: Situational bonuses.

    Returns:
        The check to roll.

    Raises:
        ValidationError: If the skill is unknown.
    """
    skill = actor.skills.get(skill_id)
    if skill is None:
        raise ValidationError("Unknown skill", field_name="skill_id", invalid_value=skill_id)

    bonuses = actor.bonuses.abilities
    parts = ["@mod"]
    data: dict[str, object] = {"mod": skill.mod + skill.prof}
    if bonuses.check:
        parts.append("@checkBonus")
        data["checkBonus"] = bonuses.check
    if bonuses.skill:
        parts.append("@skillBonus")
        data["skillBonus"] = bonuses.skill
    parts.extend(extra_parts or [])

    extra = actor.get_flag(f"{skill_id}.skill-bonus")
    if extra:
        parts.append("@extra")
        data["extra"] = extra

    return D20Check(
        parts=parts,
        data=data,
        halfling_lucky=bool(actor.get_flag("halflingLucky")),
        reliable_talent=skill.value >= 1 and bool(actor.get_flag("reliableTalent")),
    )


def ability_test(actor: Actor, ability_id: str, *, extra_parts: list[str] | None = None) -> D20Check:
    """Build a raw ability test.

    Remarkable athletes add half their proficiency (rounded up) to STR,
    DEX and CON tests; jacks of all trades add half (rounded down) to any
    other test.

    Args:
        actor: A prepared actor.
        ability_id: Ability id such as ``str``.
        extra_parts: Situational bonuses.

    Returns:
        The check to roll.

    Raises:
        ValidationError: If the ability is unknown.
    """
    ability = actor.abilities.get(ability_id)
    if ability is None:
        raise ValidationError("Unknown ability", field_name="ability_id", invalid_value=ability_id)

    parts = ["@mod"]
    data: dict[str, object] = {"mod": ability.mod}
    prof = actor.attributes.prof
    if actor.get_flag("remarkableAthlete") and ability_id in REMARKABLE_ATHLETE_ABILITIES:
        parts.append("@proficiency")
        data["proficiency"] = math.ceil(0.5 * prof)
    elif actor.get_flag("jackOfAllTrades"):
        parts.append("@proficiency")
        data["proficiency"] = math.floor(0.5 * prof)

    if actor.bonuses.abilities.check:
        parts.append("@checkBonus")
        data["checkBonus"] = actor.bonuses.abilities.check
    parts.extend(extra_parts or [])

    return D20Check(parts=parts, data=data, halfling_lucky=bool(actor.get_flag("halflingLucky")))


def ability_save(actor: Actor, save_id: str, *, extra_parts: list[str] | None = None) -> D20Check:
    """Build a saving throw.

    Args:
        actor: A prepared actor.
        save_id: Save id such as ``reflex``.
        extra_parts: Situational bonuses.

    Returns:
        The check to roll.

    Raises:
        ValidationError: If the save is unknown.
    """
    save = actor.saves.get(save_id)
    if save is None:
        raise ValidationError("Unknown save", field_name="save_id", invalid_value=save_id)

    parts = ["@mod"]
    data: dict[str, object] = {"mod": save.mod}
    if save.prof > 0:
        parts.append("@prof")
        data["prof"] = save.prof
    if actor.bonuses.abilities.save:
        parts.append("@saveBonus")
        data["saveBonus"] = actor.bonuses.abilities.save
    parts.extend(extra_parts or [])

    extra = actor.get_flag(f"{save_id}.skill-bonus")
    if extra:
        parts.append("@extra")
        data["extra"] = extra

    return D20Check(parts=parts, data=data, halfling_lucky=bool(actor.get_flag("halflingLucky")))


def roll_skill(
    actor: Actor,
    skill_id: str,
    *,
    roller: Roller | None = None,
    roll_type: RollType = RollType.NORMAL,
) -> DiceExpression:
    """Roll a skill check."""
    return roll_d20(skill_check(actor, skill_id), roller=roller, roll_type=roll_type)


def roll_ability_test(
    actor: Actor,
    ability_id: str,
    *,
    roller: Roller | None = None,
    roll_type: RollType = RollType.NORMAL,
) -> DiceExpression:
    """Roll a raw ability test."""
    return roll_d20(ability_test(actor, ability_id), roller=roller, roll_type=roll_type)


def roll_ability_save(
    actor: Actor,
    save_id: str,
    *,
    roller: Roller | None = None,
    roll_type: RollType = RollType.NORMAL,
) -> DiceExpression:
    """Roll a saving throw."""
    return roll_d20(ability_save(actor, save_id), roller=roller, roll_type=roll_type)


# =============================================================================
# Initiative
# =============================================================================


@dataclass(frozen=True)
class InitiativeResult:
    """An initiative roll and the value used for ordering.

    Attributes:
        roll: The dice result.
        value: Roll total plus the DEX tiebreaker, if enabled.
    """

    roll: DiceExpression
    value: float


def initiative_formula(actor: Actor, settings: Settings | None = None) -> str:
    """Build the initiative formula with references resolved.

    Args:
        actor: A prepared actor.
        settings: Settings; defaults to the cached settings.

    Returns:
        The rollable initiative formula.
    """
    settings = settings or get_settings()
    data = actor.get_roll_data()
    data["bonus"] = actor.attributes.init.bonus
    formula = replace_formula_data(INITIATIVE_FORMULA, data, missing=0)
    if settings.rules.initiative_dex_tiebreaker:
        formula = f"{formula} + {actor.abilities['dex'].value / 100}"
    return formula


def roll_initiative(
    actor: Actor,
    *,
    roller: Roller | None = None,
    settings: Settings | None = None,
) -> InitiativeResult:
    """Roll initiative.

    The DEX tiebreaker is added after the roll so the fractional part
    survives integer dice totals.

    Args:
        actor: A prepared actor.
        roller: Dice service; defaults to the shared roller.
        settings: Settings; defaults to the cached settings.

    Returns:
        The roll and the ordering value.
    """
    settings = settings or get_settings()
    roller = roller or get_default_roller()
    data = actor.get_roll_data()
    data["bonus"] = actor.attributes.init.bonus
    result = roller.roll(replace_formula_data(INITIATIVE_FORMULA, data, missing=0))
    value = float(result.total)
    if settings.rules.initiative_dex_tiebreaker:
        value += actor.abilities["dex"].value / 100
    logger.debug("Initiative rolled", actor=actor.name, total=result.total, value=value)
    return InitiativeResult(roll=result, value=value)


__all__ = [
    "ability_modifier",
    "training_bonus",
    "round_to_half",
    "flag_bonus",
    "prepare_abilities",
    "prepare_saves",
    "prepare_skills",
    "apply_flag_bonuses",
    "skill_check",
    "ability_test",
    "ability_save",
    "roll_skill",
    "roll_ability_test",
    "roll_ability_save",
    "InitiativeResult",
    "initiative_formula",
    "roll_initiative",
]
