"""Tests for structlog configuration."""

import json
import logging

import pytest
import structlog

from flashpay_core.config import Settings
from flashpay_core.infrastructure.logging import setup_logging


class TestSetupLogging:
    def test_events_are_rendered_as_json_with_app_context(
        self, capsys: pytest.CaptureFixture[str], restore_logging
    ) -> None:
        setup_logging(Settings(app_name="flashpay-test", log_json=True))

        structlog.get_logger("flashpay_core.test").info("payment_created", payment_id="pay-1")

        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        event = json.loads(record["message"])
        assert record["level"] == "INFO"
        assert event["event"] == "payment_created"
        assert event["payment_id"] == "pay-1"
        assert event["app_name"] == "flashpay-test"

    def test_level_filters_lower_events(
        self, capsys: pytest.CaptureFixture[str], restore_logging
    ) -> None:
        setup_logging(Settings(log_level="WARNING"))

        structlog.get_logger("flashpay_core.test").info("hidden_event")

        assert "hidden_event" not in capsys.readouterr().out
        assert logging.getLogger().level == logging.WARNING
