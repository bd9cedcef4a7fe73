"""Dice rolling for the rules engine.

The host treats dice as an opaque service returning totals. ``DiceRoller``
is the default service, built on the d20 library, with advantage,
disadvantage and the two d20 feats of the ruleset (halfling luck rerolls a
natural 1, reliable talent raises low rolls to 10). ``ScriptedRoller``
returns predetermined natural results, for hosts that roll dice
elsewhere and for reproducible tests.
"""

from __future__ import annotations

import random
import re
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

import d20

from trpg_rules.core.config import get_settings
from trpg_rules.core.exceptions import DiceRollError, FormulaError
from trpg_rules.core.logging import get_logger
from trpg_rules.engine.formulas import replace_formula_data, safe_eval


logger = get_logger(__name__)

_FIRST_DIE_PATTERN = re.compile(r"(\d*)[dD](\d+)((?:[a-z]+\d+)*)")


class RollType(StrEnum):
    """Types of dice rolls."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


@dataclass(frozen=True)
class DiceExpression:
    """The outcome of a roll.

    Attributes:
        expression: The dice expression that was rolled.
        total: The total result of the roll.
        dice: Kept results of the individual dice.
        modifier: Static modifier applied (total minus dice).
        is_critical: Whether a natural 20 was rolled on a d20.
        is_fumble: Whether a natural 1 was rolled on a d20.
        roll_type: The type of roll performed.
    """

    expression: str
    total: int
    dice: list[int]
    modifier: int
    is_critical: bool
    is_fumble: bool
    roll_type: RollType

    @property
    def natural(self) -> int | None:
        """Get the first kept die, the natural result of a d20 roll."""
        return self.dice[0] if self.dice else None


class Roller(Protocol):
    """Anything that can roll a dice expression."""

    def roll(self, expression: str, *, roll_type: RollType = RollType.NORMAL) -> DiceExpression:
        """Roll the expression."""
        ...


def d20_term(
    *,
    roll_type: RollType = RollType.NORMAL,
    halfling_lucky: bool = False,
    reliable_talent: bool = False,
) -> str:
    """Build the d20 term of a check.

    Args:
        roll_type: Normal, advantage or disadvantage.
        halfling_lucky: Reroll a natural 1 once.
        reliable_talent: Treat rolls below the configured minimum as that
            minimum.

    Returns:
        A d20-notation term such as ``2d20ro1kh1``.
    """
    dice_settings = get_settings().dice
    count = 1 if roll_type == RollType.NORMAL else 2
    term = f"{count}d20"
    if halfling_lucky:
        term += f"ro{dice_settings.halfling_lucky_reroll}"
    if reliable_talent:
        term += f"mi{dice_settings.reliable_talent_minimum}"
    if roll_type == RollType.ADVANTAGE:
        term += "kh1"
    elif roll_type == RollType.DISADVANTAGE:
        term += "kl1"
    return term


def _is_d20_expression(expression: str) -> bool:
    return bool(re.search(r"\d*d20(?!\d)", expression.lower()))


def _apply_roll_type(expression: str, roll_type: RollType) -> str:
    if roll_type == RollType.NORMAL or not _is_d20_expression(expression):
        return expression
    keep = "kh1" if roll_type == RollType.ADVANTAGE else "kl1"
    return re.sub(r"\b1?d20((?:ro\d+|mi\d+)*)(?![\dk])", rf"2d20\1{keep}", expression, count=1)


class DiceRoller:
    """Dice rolling with d20 library mechanics.

    Example:
        >>> roller = DiceRoller()
        >>> result = roller.roll("1d20+5")
        >>> print(f"Total: {result.total}")
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Random seed for reproducible rolls; defaults to the
                ``dice.seed`` setting.
        """
        if seed is None:
            seed = get_settings().dice.seed
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll(
        self,
        expression: str,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> DiceExpression:
        """Roll dice according to the given expression.

        Args:
            expression: Dice expression (e.g., '1d20+5', '1d8 + 2').
            roll_type: Type of roll (normal, advantage, disadvantage).

        Returns:
            DiceExpression containing roll results.

        Raises:
            DiceRollError: If the expression is invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        modified_expression = _apply_roll_type(expression, roll_type)
        logger.debug("Rolling dice", expression=modified_expression, roll_type=roll_type)

        try:
            result: d20.RollResult = d20.roll(modified_expression)
        except (d20.RollError, ZeroDivisionError) as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc

        dice_values = self._extract_dice_values(result.expr)
        modifier = result.total - sum(dice_values)

        is_critical = False
        is_fumble = False
        if _is_d20_expression(modified_expression) and dice_values:
            is_critical = dice_values[0] == 20
            is_fumble = dice_values[0] == 1

        logger.debug(
            "Dice rolled",
            expression=modified_expression,
            total=result.total,
            is_critical=is_critical,
        )

        return DiceExpression(
            expression=modified_expression,
            total=result.total,
            dice=dice_values,
            modifier=modifier,
            is_critical=is_critical,
            is_fumble=is_fumble,
            roll_type=roll_type,
        )

    def _extract_dice_values(self, expr: Any) -> list[int]:
        """Extract kept dice values from a d20 expression tree.

        Args:
            expr: The d20 expression tree.

        Returns:
            List of individual dice values.
        """
        values: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if die.kept:
                        values.append(int(die.number))
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return values


@dataclass
class D20Check:
    """A d20 check: roll parts, the data they reference and the feats in play.

    Attributes:
        parts: Formula parts added to the d20 (``@mod``, ``@prof``).
        data: Values for the references in ``parts``.
        halfling_lucky: Reroll a natural 1 once.
        reliable_talent: Raise low rolls to the configured minimum.
        target_value: Total needed for success, if any.
    """

    parts: list[str]
    data: dict[str, Any]
    halfling_lucky: bool = False
    reliable_talent: bool = False
    target_value: int | None = None

    def formula(self, roll_type: RollType = RollType.NORMAL) -> str:
        """Build the formula with references resolved.

        Args:
            roll_type: Normal, advantage or disadvantage.

        Returns:
            A rollable expression such as ``1d20 + 3 + 2``.
        """
        term = d20_term(
            roll_type=roll_type,
            halfling_lucky=self.halfling_lucky,
            reliable_talent=self.reliable_talent,
        )
        formula = " + ".join([term, *self.parts])
        return replace_formula_data(formula, self.data, missing=0)


def roll_d20(
    check: D20Check,
    *,
    roller: Roller | None = None,
    roll_type: RollType = RollType.NORMAL,
) -> DiceExpression:
    """Roll a d20 check.

    Args:
        check: The check to roll.
        roller: Dice service; defaults to the shared roller.
        roll_type: Normal, advantage or disadvantage.

    Returns:
        DiceExpression containing roll results.
    """
    roller = roller or get_default_roller()
    return roller.roll(check.formula(roll_type), roll_type=roll_type)


class ScriptedRoller:
    """A roller that replays predetermined natural results.

    Each roll takes the next scripted value as the result of the first
    dice term of the expression and evaluates the rest as arithmetic.
    Advantage and disadvantage are ignored: the script already holds the
    die that was kept.

    Example:
        >>> roller = ScriptedRoller([20, 4])
        >>> roller.roll("1d20 + 3").total
        23
        >>> roller.roll("1d8 + 1").total
        5
    """

    def __init__(self, results: Iterable[int] = ()) -> None:
        """Initialize with the natural results to replay.

        Args:
            results: Natural results, consumed in order.
        """
        self._results: deque[int] = deque(results)
        self.history: list[DiceExpression] = []

    def queue(self, *results: int) -> None:
        """Append natural results to the script."""
        self._results.extend(results)

    @property
    def remaining(self) -> int:
        """Get the number of unused scripted results."""
        return len(self._results)

    def roll(
        self,
        expression: str,
        *,
        roll_type: RollType = RollType.NORMAL,
    ) -> DiceExpression:
        """Roll by substituting the next scripted result.

        Args:
            expression: Dice expression with at least one dice term.
            roll_type: Recorded on the result.

        Returns:
            DiceExpression containing the scripted roll.

        Raises:
            DiceRollError: If the script is exhausted or the expression has
                no dice.
        """
        match = _FIRST_DIE_PATTERN.search(expression)
        if match is None:
            raise DiceRollError("Expression has no dice to script", expression=expression)
        if not self._results:
            raise DiceRollError("No scripted results left", expression=expression)

        natural = self._results.popleft()
        rest = f"{expression[: match.start()]}{natural}{expression[match.end() :]}"
        try:
            total = int(safe_eval(rest))
        except FormulaError as exc:
            raise DiceRollError(f"Invalid dice expression: {exc}", expression=expression) from exc

        is_d20 = match.group(2) == "20"
        result = DiceExpression(
            expression=expression,
            total=total,
            dice=[natural],
            modifier=total - natural,
            is_critical=is_d20 and natural == 20,
            is_fumble=is_d20 and natural == 1,
            roll_type=roll_type,
        )
        self.history.append(result)
        return result


# Module-level convenience roller
_default_roller: DiceRoller | None = None


def get_default_roller() -> DiceRoller:
    """Get the shared roller used when callers do not supply one."""
    global _default_roller  # noqa: PLW0603
    if _default_roller is None:
        _default_roller = DiceRoller()
    return _default_roller


def roll(
    expression: str,
    *,
    roll_type: RollType = RollType.NORMAL,
) -> DiceExpression:
    """Convenience function to roll dice.

    Args:
        expression: Dice expression (e.g., '1d20+5').
        roll_type: Type of roll (normal, advantage, disadvantage).

    Returns:
        DiceExpression containing roll results.

    Example:
        >>> result = roll("1d20+5")
        >>> print(result.total)
    """
    return get_default_roller().roll(expression, roll_type=roll_type)


__all__ = [
    "RollType",
    "DiceExpression",
    "Roller",
    "D20Check",
    "roll_d20",
    "DiceRoller",
    "ScriptedRoller",
    "d20_term",
    "get_default_roller",
    "roll",
]
