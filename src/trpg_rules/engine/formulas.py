"""Formula resolution and deterministic evaluation.

Formulas reference actor data with ``@`` paths (``10 + @abilities.dex.mod``).
``replace_formula_data`` substitutes those references from roll data and
``safe_eval`` evaluates the resulting arithmetic. Evaluation goes through
the d20 parser, so only dice-notation arithmetic is accepted; the helper
functions ``floor``, ``ceil``, ``round``, ``abs``, ``min`` and ``max`` are
resolved before the expression reaches the parser.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from typing import Any

import d20

from trpg_rules.core.exceptions import FormulaError
from trpg_rules.models.base import get_property, is_numeric


_REFERENCE_PATTERN = re.compile(r"@([a-zA-Z0-9_.\-]+)")
_DICE_PATTERN = re.compile(r"(?<![a-zA-Z])\d*[dD]\d+")
_FUNCTION_PATTERN = re.compile(r"\b(floor|ceil|round|abs|min|max)\(([^()]*)\)")
_TERM_PATTERN = re.compile(r"([+-]?)\s*([^+-]+)")

_FUNCTIONS: dict[str, Callable[..., float]] = {
    "floor": math.floor,
    "ceil": math.ceil,
    "round": lambda value: math.floor(value + 0.5),
    "abs": abs,
    "min": min,
    "max": max,
}


def format_number(value: float) -> str:
    """Render a number for substitution into a formula."""
    if isinstance(value, bool):
        return "1" if value else "0"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def replace_formula_data(
    formula: str,
    data: Mapping[str, Any],
    *,
    missing: str | int | None = None,
) -> str:
    """Replace ``@`` references in a formula with values from roll data.

    Args:
        formula: Formula such as ``10 + @abilities.dex.mod``.
        data: Roll data (models and mappings are both traversed).
        missing: Replacement for unresolved references; when None an
            unresolved reference raises.

    Returns:
        The formula with references substituted.

    Raises:
        FormulaError: If a reference cannot be resolved and no
            replacement was given.

    Example:
        >>> replace_formula_data("@a.b + 1", {"a": {"b": 2}})
        '2 + 1'
    """

    def substitute(match: re.Match[str]) -> str:
        path = match.group(1).rstrip(".")
        value = get_property(data, path)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return format_number(value)
        if isinstance(value, bool):
            return format_number(value)
        if isinstance(value, str) and value.strip():
            return f"({value})" if not is_numeric(value) else value.strip()
        if missing is not None:
            return str(missing)
        raise FormulaError(f"Unresolved formula reference '@{path}'", formula=formula)

    return _REFERENCE_PATTERN.sub(substitute, formula)


def has_dice(expression: str) -> bool:
    """Check whether an expression contains dice terms."""
    return bool(_DICE_PATTERN.search(expression))


def _evaluate_arithmetic(expression: str, formula: str) -> float:
    if not expression.strip():
        raise FormulaError("Empty formula", formula=formula)
    try:
        result = d20.roll(expression)
    except (d20.RollError, ZeroDivisionError) as exc:
        raise FormulaError(f"Invalid formula: {exc}", formula=formula) from exc
    return result.expr.total


def safe_eval(expression: str) -> int | float:
    """Evaluate a deterministic arithmetic expression.

    Args:
        expression: Arithmetic with numbers, operators, parentheses and
            the helper functions floor, ceil, round, abs, min and max.

    Returns:
        The value, as int when it is a whole number.

    Raises:
        FormulaError: If the expression contains dice, unresolved
            references or anything that is not arithmetic.

    Example:
        >>> safe_eval("10 + floor(5 / 2)")
        12
    """
    if "@" in expression:
        raise FormulaError("Formula has unresolved references", formula=expression)
    if has_dice(expression):
        raise FormulaError("Dice are not allowed in a deterministic formula", formula=expression)

    current = expression
    while True:
        match = _FUNCTION_PATTERN.search(current)
        if match is None:
            break
        name, inner = match.group(1), match.group(2)
        arguments = [_evaluate_arithmetic(arg, expression) for arg in inner.split(",")]
        try:
            value = _FUNCTIONS[name](*arguments)
        except TypeError as exc:
            raise FormulaError(f"Bad arguments to {name}(): {exc}", formula=expression) from exc
        # negatives keep parentheses; bare values let an enclosing call match
        rendered = format_number(value) if value >= 0 else f"({format_number(value)})"
        current = f"{current[: match.start()]}{rendered}{current[match.end() :]}"

    if re.search(r"[a-zA-Z_]", current):
        raise FormulaError("Formula contains unknown terms", formula=expression)

    total = _evaluate_arithmetic(current, expression)
    if float(total).is_integer():
        return int(total)
    return total


def evaluate_formula(
    formula: str,
    data: Mapping[str, Any],
    *,
    missing: str | int | None = None,
) -> int | float:
    """Resolve references in a formula and evaluate it.

    Args:
        formula: Formula with ``@`` references.
        data: Roll data.
        missing: Replacement for unresolved references.

    Returns:
        The evaluated value.

    Raises:
        FormulaError: If resolution or evaluation fails.
    """
    return safe_eval(replace_formula_data(formula, data, missing=missing))


def simplify_formula(formula: str, data: Mapping[str, Any]) -> str:
    """Substitute roll data and fold constant terms.

    Dice terms are kept as written; numeric terms are summed into one
    trailing constant. Formulas with parentheses around dice are only
    substituted.

    Args:
        formula: Formula such as ``1d8 + @mod + 2``.
        data: Roll data; unresolved references count as 0.

    Returns:
        Simplified formula such as ``1d8 + 5``.
    """
    replaced = replace_formula_data(formula, data, missing=0)
    if not has_dice(replaced):
        try:
            return format_number(safe_eval(replaced))
        except FormulaError:
            return replaced
    if "(" in replaced:
        return replaced

    dice_terms: list[str] = []
    constant = 0.0
    for sign, term in _TERM_PATTERN.findall(replaced.replace(" ", "")):
        if has_dice(term):
            dice_terms.append(f"{sign or '+'} {term}")
            continue
        try:
            value = safe_eval(term)
        except FormulaError:
            dice_terms.append(f"{sign or '+'} {term}")
            continue
        constant += -value if sign == "-" else value

    simplified = " ".join(dice_terms).lstrip("+ ").strip()
    if constant > 0:
        simplified = f"{simplified} + {format_number(constant)}"
    elif constant < 0:
        simplified = f"{simplified} - {format_number(-constant)}"
    return simplified


__all__ = [
    "replace_formula_data",
    "safe_eval",
    "evaluate_formula",
    "simplify_formula",
    "has_dice",
    "format_number",
]
