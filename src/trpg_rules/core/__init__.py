"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        TrpgRulesError: Base exception for all rules engine errors.
        ConfigurationError: Configuration-related errors.
        ValidationError: Rules-level data validation errors.

    Configuration:
        Settings: Main settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up logging.
        get_logger: Get a configured logger instance.
        bind_context: Add context to log entries.
        clear_context: Clear logging context.
        actor_context: Bind an actor to log entries while a workflow runs.
"""

from __future__ import annotations

from trpg_rules.core.config import (
    DiceSettings,
    RulesSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from trpg_rules.core.exceptions import (
    ActionPointError,
    ConfigurationError,
    DiceRollError,
    FormulaError,
    ItemUsageError,
    MigrationError,
    RestError,
    RulesEngineError,
    TrpgRulesError,
    ValidationError,
)
from trpg_rules.core.logging import (
    actor_context,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Base exception
    "TrpgRulesError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Rules engine exceptions
    "RulesEngineError",
    "FormulaError",
    "DiceRollError",
    "ItemUsageError",
    "RestError",
    "ActionPointError",
    # Migration exceptions
    "MigrationError",
    # Configuration
    "Settings",
    "RulesSettings",
    "DiceSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
    "actor_context",
]
