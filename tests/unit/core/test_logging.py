"""Tests for logging configuration and context binding."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import structlog

from trpg_rules.core.config import Settings
from trpg_rules.core.logging import (
    actor_context,
    add_rules_context,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def clean_context() -> Generator[None, None, None]:
    """Start and end each test with no bound context."""
    clear_context()
    yield
    clear_context()
    structlog.reset_defaults()


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test JSON entries carry level, engine tag and bound context."""
        configure_logging(Settings(log_level="INFO"), json_format=True)
        bind_context(actor_id="valeria")

        get_logger("test").info("Rest completed", dhp=3)

        output = capsys.readouterr().out
        assert '"event": "Rest completed"' in output
        assert '"system": "trpg"' in output
        assert '"actor_id": "valeria"' in output
        assert '"dhp": 3' in output

    def test_level_filters(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test entries below the configured level are dropped."""
        configure_logging(Settings(log_level="WARNING"), json_format=True)

        get_logger("test").info("Hidden")
        get_logger("test").warning("Shown")

        output = capsys.readouterr().out
        assert "Hidden" not in output
        assert "Shown" in output

    def test_debug_forces_debug_level(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Test debug mode logs debug entries whatever the level."""
        configure_logging(Settings(log_level="ERROR", debug=True), json_format=True)

        get_logger("test").debug("Formula evaluated")

        assert "Formula evaluated" in capsys.readouterr().out


class TestContext:
    """Tests for context binding."""

    def test_add_rules_context(self) -> None:
        """Test the engine tag is added without overwriting a caller's value."""
        assert add_rules_context(None, "info", {"event": "x"})["system"] == "trpg"
        assert add_rules_context(None, "info", {"event": "x", "system": "host"})["system"] == "host"

    def test_actor_context(self) -> None:
        """Test the actor is bound only while the block runs."""
        with actor_context(actor_id="valeria", actor_name="Valeria"):
            assert structlog.contextvars.get_contextvars() == {"actor_id": "valeria", "actor_name": "Valeria"}

        assert structlog.contextvars.get_contextvars() == {}

    def test_nested_actor_context(self) -> None:
        """Test the outer actor is restored after a nested workflow."""
        with actor_context(actor_id="valeria", actor_name="Valeria"):
            with actor_context(actor_id="goblin", actor_name="Goblin"):
                assert structlog.contextvars.get_contextvars()["actor_id"] == "goblin"
            assert structlog.contextvars.get_contextvars()["actor_id"] == "valeria"

    def test_context_cleared_after_error(self) -> None:
        """Test the binding is removed even when the workflow raises."""
        with pytest.raises(RuntimeError), actor_context(actor_id="valeria", actor_name="Valeria"):
            raise RuntimeError("boom")

        assert structlog.contextvars.get_contextvars() == {}
