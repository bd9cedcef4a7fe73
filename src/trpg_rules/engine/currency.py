"""Coin consolidation."""

from __future__ import annotations

from trpg_rules.core.constants import CURRENCY_CONVERSION
from trpg_rules.core.logging import get_logger
from trpg_rules.models.actor import Actor, CurrencyPurse


logger = get_logger(__name__)


def convert_currency(actor: Actor) -> CurrencyPurse:
    """Convert coins to the highest denomination possible.

    Conversion runs copper to silver, silver to gold and gold to platinum,
    ten coins each, so coins gained by one step can convert again in the
    next.

    Args:
        actor: The actor; its purse is replaced.

    Returns:
        The converted purse.

    Example:
        >>> hero.currency = CurrencyPurse(cp=1234)
        >>> convert_currency(hero)
        CurrencyPurse(pp=1, gp=2, sp=3, cp=4)
    """
    purse = actor.currency.model_dump()
    for source, target, each in CURRENCY_CONVERSION:
        change = purse[source] // each
        purse[source] -= change * each
        purse[target] += change

    actor.currency = CurrencyPurse(**purse)
    logger.debug("Currency converted", actor=actor.name, purse=purse)
    return actor.currency


__all__ = ["convert_currency"]
