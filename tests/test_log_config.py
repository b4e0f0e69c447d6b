"""
Tests for backend logging setup.

Tests cover:
- Level filtering of stdlib records routed into loguru
- Level names are case-insensitive
"""

import logging

import pytest

import log_config


@pytest.fixture
def captured():
    """Fixture collecting formatted records; restores the default sink afterwards."""
    messages = []
    yield messages
    log_config.setup_logging("INFO")


class TestSetupLogging:
    """Test suite for setup_logging()."""

    def test_level_filters_core_records(self, captured):
        """Records from core modules below the configured level are dropped."""
        log_config.setup_logging("WARNING", sink=captured.append)
        core_logger = logging.getLogger("core.coldguard.state_store")

        core_logger.info("cache refreshed")
        core_logger.warning("KV write failed")

        assert len(captured) == 1
        assert "KV write failed" in captured[0]

    def test_lower_case_level(self, captured):
        log_config.setup_logging("debug", sink=captured.append)
        logging.getLogger("core.coldguard.chat").debug("routed")
        assert any("routed" in message for message in captured)
