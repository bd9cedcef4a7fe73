"""Tests for the action point ledger."""

from __future__ import annotations

import pytest

from trpg_rules.core.exceptions import ActionPointError, ValidationError
from trpg_rules.engine.bonus_dice import USE_MESSAGE, ActionPointLedger


class TestActionPointLedger:
    """Tests for ActionPointLedger."""

    def test_stored_counters(self) -> None:
        """Test stored counters load with negatives raised to 0."""
        ledger = ActionPointLedger({"ana": 2, "bia": -1, "caio": None})

        assert ledger.to_dict() == {"ana": 2, "bia": 0, "caio": 0}
        assert ledger.get("desconhecido") == 0

    def test_increase_and_decrease(self) -> None:
        """Test granting and removing points."""
        ledger = ActionPointLedger()

        assert ledger.increase("ana") == 1
        assert ledger.increase("ana") == 2
        assert ledger.decrease("ana") == 1

    def test_modify_many(self) -> None:
        """Test several counters change together."""
        ledger = ActionPointLedger({"ana": 1})

        assert ledger.modify(["ana", "bia"], [2, 3]) == {"ana": 3, "bia": 3}

    def test_refused_as_a_whole(self) -> None:
        """Test nobody changes when one player would go negative."""
        ledger = ActionPointLedger({"ana": 1})

        with pytest.raises(ActionPointError) as exc_info:
            ledger.modify(["ana", "bia"], [-1, -1])

        assert exc_info.value.details["players"] == ["bia"]
        assert ledger.get("ana") == 1

    def test_large_decrease_floors_at_zero(self) -> None:
        """Test counters never go below zero."""
        ledger = ActionPointLedger({"ana": 1})

        assert ledger.modify(["ana"], [-5]) == {"ana": 0}

    def test_mismatched_lengths(self) -> None:
        """Test each player needs exactly one modifier."""
        with pytest.raises(ValidationError):
            ActionPointLedger().modify(["ana", "bia"], [1])

    def test_use(self) -> None:
        """Test spending a point announces it."""
        ledger = ActionPointLedger({"user1": 1})

        assert ledger.use("user1", "Valeria") == "Valeria usou um ponto de ação."
        assert ledger.get("user1") == 0

    def test_use_without_points(self) -> None:
        """Test a player without points cannot spend one."""
        with pytest.raises(ActionPointError):
            ActionPointLedger().use("user1")

    def test_use_defaults_to_id(self) -> None:
        """Test the message falls back to the player id."""
        ledger = ActionPointLedger({"user1": 1})
        assert ledger.use("user1") == USE_MESSAGE.format(player="user1")
