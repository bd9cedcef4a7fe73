"""Configuration management for the Tormenta RPG rules engine.

This module provides centralized configuration using pydantic-settings,
supporting environment variables, .env files, and runtime overrides. The
rules settings mirror the world settings a game master toggles on the
virtual tabletop (currency weight, initiative tiebreaker, experience
tracking) plus the encumbrance constants of the ruleset.

Example:
    >>> from trpg_rules.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.rules.currency_weight
    True

Environment Variables:
    TRPG_RULES_CURRENCY_WEIGHT: Count carried coins towards encumbrance
    TRPG_RULES_INITIATIVE_DEX_TIEBREAKER: Append DEX/100 to initiative
    TRPG_RULES_DISABLE_EXPERIENCE_TRACKING: Skip XP bookkeeping
    TRPG_RULES_DICE_SEED: Seed for reproducible dice rolls
    TRPG_RULES_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trpg_rules.core.exceptions import ConfigurationError


class RulesSettings(BaseSettings):
    """Configuration for optional rules and ruleset constants.

    Attributes:
        currency_weight: Count carried coins towards encumbrance.
        initiative_dex_tiebreaker: Break initiative ties with DEX / 100.
        disable_experience_tracking: Skip XP progress bookkeeping.
        encumbrance_str_multiplier: Carrying capacity per point of STR.
        currency_per_weight: Weight of one hundred coins.
        encumbered_threshold_pct: Load percentage above which an actor
            counts as encumbered. A percentage (30 means 30%), not a
            fraction.
        hit_dice_threshold: Missing hit points that trigger an automatic
            hit die roll during a short rest.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRPG_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    currency_weight: bool = Field(
        default=True,
        description="Count carried coins towards encumbrance",
    )
    initiative_dex_tiebreaker: bool = Field(
        default=False,
        description="Append DEX / 100 to initiative rolls",
    )
    disable_experience_tracking: bool = Field(
        default=False,
        description="Skip XP progress bookkeeping",
    )
    encumbrance_str_multiplier: int = Field(
        default=10,
        gt=0,
        description="Carrying capacity per point of STR",
    )
    currency_per_weight: float = Field(
        default=1.0,
        ge=0,
        description="Weight of one hundred coins",
    )
    encumbered_threshold_pct: float = Field(
        default=30.0,
        ge=0,
        le=100,
        description="Load percentage (30 means 30%, not 0.3) above which an actor is encumbered",
    )
    hit_dice_threshold: int = Field(
        default=3,
        ge=1,
        description="Missing hit points that trigger an automatic hit die roll",
    )


class DiceSettings(BaseSettings):
    """Configuration for the dice service.

    Attributes:
        seed: Optional random seed for reproducible rolls.
        halfling_lucky_reroll: Natural roll rerolled once for lucky actors.
        reliable_talent_minimum: Lowest d20 result for reliable talent.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRPG_RULES_DICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    seed: int | None = Field(
        default=None,
        description="Random seed for reproducible rolls",
    )
    halfling_lucky_reroll: int = Field(
        default=1,
        ge=1,
        le=20,
        description="Natural roll rerolled once for lucky actors",
    )
    reliable_talent_minimum: int = Field(
        default=10,
        ge=1,
        le=20,
        description="Lowest d20 result for reliable talent",
    )

    @model_validator(mode="after")
    def validate_reroll_below_minimum(self) -> "DiceSettings":
        """Ensure the lucky reroll face sits below the reliable talent floor.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If the reroll face is not below the minimum.
        """
        if self.halfling_lucky_reroll >= self.reliable_talent_minimum:
            raise ConfigurationError(
                f"halfling_lucky_reroll ({self.halfling_lucky_reroll}) must be less than "
                f"reliable_talent_minimum ({self.reliable_talent_minimum})",
                config_key="halfling_lucky_reroll",
            )
        return self


class Settings(BaseSettings):
    """Main settings aggregating all configuration domains.

    Attributes:
        app_name: Library name reported in logs.
        app_version: Library version string.
        debug: Enable debug mode.
        log_level: Logging level.
        rules: Optional rules and ruleset constants.
        dice: Dice service settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="TRPG_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(
        default="Tormenta RPG Rules",
        description="Library name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Library version",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    rules: RulesSettings = Field(default_factory=RulesSettings)
    dice: DiceSettings = Field(default_factory=DiceSettings)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is invalid.

    Example:
        >>> settings = get_settings()
        >>> settings.rules.encumbrance_str_multiplier
        10
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load rules settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    Example:
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Reloads from environment
    """
    get_settings.cache_clear()


__all__ = [
    "RulesSettings",
    "DiceSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
