"""Custom exception hierarchy for the Tormenta RPG rules engine.

This module defines the exception hierarchy used across the rules engine.
All exceptions inherit from TrpgRulesError, enabling unified error handling
at the host boundary while preserving domain-specific context.

Example:
    >>> from trpg_rules.core.exceptions import ItemUsageError
    >>> raise ItemUsageError("No uses remaining", item_name="Varinha de Fogo")
"""

from __future__ import annotations

from typing import Any


class TrpgRulesError(Exception):
    """Base exception for all rules engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception."""
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration and Validation Exceptions
# =============================================================================


class ConfigurationError(TrpgRulesError):
    """Raised when rules settings are missing or invalid."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with the offending key.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(TrpgRulesError):
    """Raised when actor or item data fails a rules-level validation.

    Pydantic catches malformed documents; this covers values that are
    well-typed but meaningless for the ruleset (an unknown skill id, a
    spell slot level outside 0-9).
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


# =============================================================================
# Rules Engine Exceptions
# =============================================================================


class RulesEngineError(TrpgRulesError):
    """Base exception for errors raised while computing or applying rules."""


class FormulaError(RulesEngineError):
    """Raised when a formula cannot be resolved or evaluated.

    This covers unknown ``@`` references in roll data as well as
    expressions that are not plain arithmetic.
    """

    def __init__(
        self,
        message: str,
        *,
        formula: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize formula error with the offending formula.

        Args:
            message: Human-readable error description.
            formula: The formula that failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if formula is not None:
            combined_details["formula"] = formula
        super().__init__(message, details=combined_details)


class DiceRollError(RulesEngineError):
    """Raised when dice rolling operations fail.

    This typically occurs when parsing invalid dice notation.
    """

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that failed.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class ItemUsageError(RulesEngineError):
    """Raised when an item cannot be used.

    The item may be out of charges or uses, the actor may lack a spell
    slot, or a consumed resource may be missing or insufficient.
    """

    def __init__(
        self,
        message: str,
        *,
        item_name: str | None = None,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize item usage error with item context.

        Args:
            message: Human-readable error description.
            item_name: Name of the item being used.
            reason: Localization key describing the refusal.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if item_name:
            combined_details["item_name"] = item_name
        if reason:
            combined_details["reason"] = reason
        super().__init__(message, details=combined_details)


class RestError(RulesEngineError):
    """Raised when a rest workflow cannot be carried out."""

    def __init__(
        self,
        message: str,
        *,
        actor_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize rest error with actor context.

        Args:
            message: Human-readable error description.
            actor_name: Name of the resting actor.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if actor_name:
            combined_details["actor_name"] = actor_name
        super().__init__(message, details=combined_details)


class ActionPointError(RulesEngineError):
    """Raised when an action point change would leave a player below zero."""

    def __init__(
        self,
        message: str,
        *,
        players: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize action point error with the players involved.

        Args:
            message: Human-readable error description.
            players: Players whose counters blocked the change.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if players:
            combined_details["players"] = players
        super().__init__(message, details=combined_details)


# =============================================================================
# Migration Exceptions
# =============================================================================


class MigrationError(TrpgRulesError):
    """Raised when a stored document cannot be migrated."""

    def __init__(
        self,
        message: str,
        *,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize migration error with document context.

        Args:
            message: Human-readable error description.
            document_id: Identifier of the document being migrated.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if document_id:
            combined_details["document_id"] = document_id
        super().__init__(message, details=combined_details)


__all__ = [
    "TrpgRulesError",
    "ConfigurationError",
    "ValidationError",
    "RulesEngineError",
    "FormulaError",
    "DiceRollError",
    "ItemUsageError",
    "RestError",
    "ActionPointError",
    "MigrationError",
]
