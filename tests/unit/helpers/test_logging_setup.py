"""Tests for structured logging setup."""

import json
import logging
import sys

import pytest

from osprov.helpers.logger import get_logger, setup_logging


@pytest.mark.unit
class TestSetupLogging:
    """Test log destinations and levels."""

    def test_file_destination(self, tmp_path):
        setup_logging(
            log_dir=str(tmp_path / "logs"),
            log_filename="driver.log",
            log_level="DEBUG",
            log_destination="file",
        )

        get_logger("osprov.test").info("OpenStack instance <%s> created.", "srv-1")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = (tmp_path / "logs" / "driver.log").read_text()
        assert "OpenStack instance <srv-1> created." in content

    def test_stdout_destination_creates_no_file(self, tmp_path):
        setup_logging(log_dir=str(tmp_path / "logs"), log_destination="stdout")

        assert not (tmp_path / "logs").exists()
        assert all(
            not isinstance(handler, logging.FileHandler) for handler in logging.getLogger().handlers
        )

    def test_level_applied(self, tmp_path):
        setup_logging(log_level="warning", log_destination="stdout")

        assert logging.getLogger().level == logging.WARNING

    def test_unknown_destination(self):
        with pytest.raises(ValueError, match="Unsupported log destination"):
            setup_logging(log_destination="syslog")

    def test_console_alias(self):
        setup_logging(log_destination="console")

        handlers = logging.getLogger().handlers
        assert [type(handler) for handler in handlers] == [logging.StreamHandler]
        assert handlers[0].stream is sys.stderr

    def test_settings_file_keys_used(self, tmp_path):
        settings_file = tmp_path / "custom.json"
        settings_file.write_text(
            json.dumps(
                {
                    "openstack_username": "tester",
                    "log_destination": "file",
                    "log_dir": str(tmp_path / "custom-logs"),
                    "log_level": "DEBUG",
                }
            )
        )

        setup_logging(settings_file=str(settings_file))

        assert (tmp_path / "custom-logs").is_dir()
        assert logging.getLogger().level == logging.DEBUG
        assert any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)

    def test_destination_from_environment(self, tmp_path, monkeypatch):
        settings_file = tmp_path / "custom.json"
        settings_file.write_text("{}")
        monkeypatch.setenv("OSPROV_LOG_DESTINATION", "stdout")

        setup_logging(settings_file=str(settings_file))

        assert all(
            not isinstance(handler, logging.FileHandler) for handler in logging.getLogger().handlers
        )
