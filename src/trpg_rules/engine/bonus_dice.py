"""Action points (pontos de ação).

Each player holds a non-negative number of action points. The game master
grants and removes them; players spend them and the table is told in
chat. Broadcasting the counter and checking who may change it are left to
the host.

Example:
    >>> ledger = ActionPointLedger()
    >>> ledger.increase("user1")
    1
    >>> ledger.use("user1", "Valeria")
    'Valeria usou um ponto de ação.'
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from trpg_rules.core.exceptions import ActionPointError, ValidationError
from trpg_rules.core.logging import get_logger


logger = get_logger(__name__)

USE_MESSAGE = "{player} usou um ponto de ação."


class ActionPointLedger:
    """Action point counters by player id."""

    def __init__(self, counter: Mapping[str, int] | None = None) -> None:
        """Initialize the ledger.

        Args:
            counter: Stored counters by player id; negative values are
                raised to 0.
        """
        self._counter: dict[str, int] = {
            player: max(int(value or 0), 0) for player, value in (counter or {}).items()
        }

    def get(self, player: str) -> int:
        """Get a player's action points (0 for unknown players)."""
        return self._counter.get(player, 0)

    def to_dict(self) -> dict[str, int]:
        """Get a copy of the counters for storage."""
        return dict(self._counter)

    def modify(self, players: Sequence[str], modifiers: Sequence[int]) -> dict[str, int]:
        """Change several counters at once.

        The change is refused as a whole when a player with no points
        would lose one.

        Args:
            players: Player ids.
            modifiers: Change for each player, in the same order.

        Returns:
            The new counters of the players involved.

        Raises:
            ValidationError: If players and modifiers differ in length.
            ActionPointError: If a player at 0 would go negative.
        """
        if len(players) != len(modifiers):
            raise ValidationError(
                "Each player needs one modifier",
                field_name="modifiers",
                invalid_value=list(modifiers),
            )

        blocked = [
            player for player, modifier in zip(players, modifiers) if self.get(player) == 0 and modifier < 0
        ]
        if blocked:
            logger.info("Action point change refused", players=blocked)
            raise ActionPointError("No action points left", players=blocked)

        for player, modifier in zip(players, modifiers):
            self._counter[player] = max(self.get(player) + modifier, 0)
        logger.debug("Action points changed", players=list(players), modifiers=list(modifiers))
        return {player: self._counter[player] for player in players}

    def increase(self, player: str) -> int:
        """Grant one action point and return the new total."""
        return self.modify([player], [1])[player]

    def decrease(self, player: str) -> int:
        """Remove one action point and return the new total."""
        return self.modify([player], [-1])[player]

    def use(self, player: str, name: str | None = None) -> str:
        """Spend one action point.

        Args:
            player: Player id.
            name: Player name for the chat message; defaults to the id.

        Returns:
            The chat message announcing the use.

        Raises:
            ActionPointError: If the player has no action points.
        """
        self.modify([player], [-1])
        return USE_MESSAGE.format(player=name or player)


__all__ = [
    "USE_MESSAGE",
    "ActionPointLedger",
]
