"""Tests for configuration management."""

from __future__ import annotations

import pytest

from trpg_rules.core.config import (
    DiceSettings,
    RulesSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from trpg_rules.core.exceptions import ConfigurationError


class TestRulesSettings:
    """Tests for RulesSettings configuration."""

    def test_default_values(self) -> None:
        """Test the default optional rules."""
        settings = RulesSettings()

        assert settings.currency_weight is True
        assert settings.initiative_dex_tiebreaker is False
        assert settings.disable_experience_tracking is False
        assert settings.encumbrance_str_multiplier == 10
        assert settings.currency_per_weight == 1.0
        assert settings.encumbered_threshold_pct == 30.0
        assert settings.hit_dice_threshold == 3

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test rules are read from prefixed environment variables."""
        monkeypatch.setenv("TRPG_RULES_CURRENCY_WEIGHT", "false")
        monkeypatch.setenv("TRPG_RULES_ENCUMBRANCE_STR_MULTIPLIER", "15")

        settings = RulesSettings()

        assert settings.currency_weight is False
        assert settings.encumbrance_str_multiplier == 15

    def test_threshold_bounds(self) -> None:
        """Test the encumbrance threshold must be a percentage."""
        with pytest.raises(ValueError):
            RulesSettings(encumbered_threshold_pct=150)

    def test_multiplier_must_be_positive(self) -> None:
        """Test the capacity multiplier must be positive."""
        with pytest.raises(ValueError):
            RulesSettings(encumbrance_str_multiplier=0)


class TestDiceSettings:
    """Tests for DiceSettings configuration."""

    def test_default_values(self) -> None:
        """Test default dice settings."""
        settings = DiceSettings()

        assert settings.seed is None
        assert settings.halfling_lucky_reroll == 1
        assert settings.reliable_talent_minimum == 10

    def test_seed_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the dice seed environment variable."""
        monkeypatch.setenv("TRPG_RULES_DICE_SEED", "7")

        assert DiceSettings().seed == 7

    def test_reroll_must_be_below_minimum(self) -> None:
        """Test the lucky reroll face must sit below the reliable minimum."""
        with pytest.raises(ConfigurationError) as exc_info:
            DiceSettings(halfling_lucky_reroll=10, reliable_talent_minimum=10)

        assert exc_info.value.details["config_key"] == "halfling_lucky_reroll"


class TestSettings:
    """Tests for the main Settings class."""

    def test_default_settings(self) -> None:
        """Test default settings values."""
        settings = Settings()

        assert settings.app_name == "Tormenta RPG Rules"
        assert settings.debug is False
        assert settings.log_level == "INFO"
        assert isinstance(settings.rules, RulesSettings)
        assert isinstance(settings.dice, DiceSettings)

    def test_env_vars(self, mock_env_vars: dict[str, str]) -> None:
        """Test settings from environment variables."""
        settings = Settings()

        assert settings.debug is True
        assert settings.log_level == "DEBUG"
        assert settings.rules.currency_weight is False
        assert settings.rules.initiative_dex_tiebreaker is True

    def test_invalid_log_level(self) -> None:
        """Test that an unknown log level is rejected."""
        with pytest.raises(ValueError):
            Settings(log_level="VERBOSE")


class TestSettingsCache:
    """Tests for the settings singleton."""

    def test_get_settings_is_cached(self) -> None:
        """Test get_settings returns the same instance."""
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test clearing the cache reloads from the environment."""
        first = get_settings()
        monkeypatch.setenv("TRPG_RULES_DISABLE_EXPERIENCE_TRACKING", "true")

        assert get_settings().rules.disable_experience_tracking is False

        clear_settings_cache()
        second = get_settings()

        assert second is not first
        assert second.rules.disable_experience_tracking is True

    def test_invalid_environment_raises_configuration_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test invalid environment values surface as ConfigurationError."""
        monkeypatch.setenv("TRPG_RULES_LOG_LEVEL", "LOUD")

        with pytest.raises(ConfigurationError):
            get_settings()
