"""
Unit tests for configuration module.

Tests configuration loading, path resolution, lifecycle settings and validation.
"""

import os
import logging
from pathlib import Path
from unittest.mock import patch
from zoneinfo import ZoneInfo

from config import Config


class TestConfig:
    """Test suite for Config class."""

    def test_default_configuration(self):
        """Test that default configuration values are set correctly."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

            assert config.log_level == "INFO"
            assert config.log_file is None
            assert config.server_name == "accessflow-mcp-server"
            assert config.timezone_name == "Europe/London"
            assert config.tombstone_retention_days == 30
            assert config.last_active_throttle_seconds == 60
            assert config.webhook_port == 8080

            assert config._repo_root.exists()
            assert config._repo_root.is_dir()

    def test_db_path_from_env_absolute(self):
        """Test database path resolution from ACCESSFLOW_DB (absolute)."""
        test_path = "/absolute/path/to/accessflow.db"
        with patch.dict(os.environ, {"ACCESSFLOW_DB": test_path}, clear=True):
            config = Config()
            assert str(config.db_path) == test_path

    def test_db_path_from_env_relative(self):
        """Test database path resolution from ACCESSFLOW_DB (relative)."""
        with patch.dict(os.environ, {"ACCESSFLOW_DB": "custom/jobs.db"}, clear=True):
            config = Config()
            assert config.db_path.name == "jobs.db"
            assert config.db_path.is_absolute()
            assert "custom" in str(config.db_path)

    def test_db_path_from_accessflow_root(self):
        """Test database path resolution from ACCESSFLOW_ROOT."""
        with patch.dict(os.environ, {"ACCESSFLOW_ROOT": "/opt/accessflow"}, clear=True):
            config = Config()
            assert config.db_path == Path("/opt/accessflow") / "data" / "accessflow.db"

    def test_db_path_default(self):
        """Test default database path resolution."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()
            assert config.db_path.name == "accessflow.db"
            assert config.db_path.parent.name == "data"

    def test_db_path_priority(self):
        """Test that ACCESSFLOW_DB takes priority over ACCESSFLOW_ROOT."""
        with patch.dict(
            os.environ,
            {"ACCESSFLOW_DB": "/custom/db.db", "ACCESSFLOW_ROOT": "/opt/accessflow"},
            clear=True,
        ):
            config = Config()
            assert str(config.db_path) == "/custom/db.db"

    def test_log_level_case_insensitive(self):
        """Test that log level is converted to uppercase."""
        with patch.dict(os.environ, {"ACCESSFLOW_LOG_LEVEL": "debug"}, clear=True):
            config = Config()
            assert config.log_level == "DEBUG"

    def test_log_file_from_env_relative(self):
        """Test log file path from environment (relative)."""
        with patch.dict(os.environ, {"ACCESSFLOW_LOG_FILE": "logs/server.log"}, clear=True):
            config = Config()
            assert config.log_file.name == "server.log"
            assert "logs" in str(config.log_file)

    def test_lifecycle_settings_from_env(self):
        """Test retention and throttle overrides."""
        with patch.dict(
            os.environ,
            {
                "ACCESSFLOW_TOMBSTONE_RETENTION_DAYS": "7",
                "ACCESSFLOW_LAST_ACTIVE_THROTTLE_SECONDS": "300",
                "ACCESSFLOW_WEBHOOK_PORT": "9000",
            },
            clear=True,
        ):
            config = Config()
            assert config.tombstone_retention_days == 7
            assert config.last_active_throttle_seconds == 300
            assert config.webhook_port == 9000

    def test_bad_integer_keeps_default_and_warns(self, tmp_path):
        """Test that an unparseable integer falls back and is reported by validate()."""
        db_file = tmp_path / "accessflow.db"
        db_file.touch()
        with patch.dict(
            os.environ,
            {"ACCESSFLOW_TOMBSTONE_RETENTION_DAYS": "a month", "ACCESSFLOW_DB": str(db_file)},
            clear=True,
        ):
            config = Config()
            assert config.tombstone_retention_days == 30

            warnings = config.validate()
            assert any("ACCESSFLOW_TOMBSTONE_RETENTION_DAYS" in w for w in warnings)

    def test_timezone(self):
        """Test the reference timezone and its fallback."""
        with patch.dict(os.environ, {"ACCESSFLOW_TIMEZONE": "America/New_York"}, clear=True):
            assert Config().tzinfo == ZoneInfo("America/New_York")

        with patch.dict(os.environ, {"ACCESSFLOW_TIMEZONE": "Mars/Olympus_Mons"}, clear=True):
            config = Config()
            assert config.tzinfo == ZoneInfo("Europe/London")
            assert any("Unknown timezone" in w for w in config.validate())

    def test_validate_missing_database(self, tmp_path):
        """Test validation warns when database doesn't exist."""
        non_existent = tmp_path / "missing.db"
        with patch.dict(os.environ, {"ACCESSFLOW_DB": str(non_existent)}, clear=True):
            warnings = Config().validate()

            db_warnings = [w for w in warnings if "Database file not found" in w]
            assert len(db_warnings) == 1
            assert str(non_existent) in db_warnings[0]

    def test_validate_negative_retention(self, tmp_path):
        """Test validation warns about a negative retention period."""
        db_file = tmp_path / "accessflow.db"
        db_file.touch()
        with patch.dict(
            os.environ,
            {"ACCESSFLOW_DB": str(db_file), "ACCESSFLOW_TOMBSTONE_RETENTION_DAYS": "-1"},
            clear=True,
        ):
            warnings = Config().validate()
            assert any("negative" in w for w in warnings)

    def test_setup_logging_with_file(self, tmp_path):
        """Test logging setup with file output."""
        log_file = tmp_path / "nested" / "test.log"

        with patch.dict(
            os.environ,
            {"ACCESSFLOW_LOG_FILE": str(log_file), "ACCESSFLOW_LOG_LEVEL": "DEBUG"},
            clear=True,
        ):
            config = Config()
            config.setup_logging()

            root_logger = logging.getLogger()
            assert root_logger.level == logging.DEBUG
            assert len(root_logger.handlers) >= 2
            assert log_file.parent.is_dir()

    def test_setup_logging_invalid_level(self):
        """Test logging setup with invalid log level falls back to INFO."""
        with patch.dict(os.environ, {"ACCESSFLOW_LOG_LEVEL": "INVALID"}, clear=True):
            Config().setup_logging()
            assert logging.getLogger().level == logging.INFO


class TestConfigIntegration:
    """Integration tests for configuration module."""

    def test_full_configuration_workflow(self, tmp_path):
        """Test complete configuration workflow."""
        db_file = tmp_path / "data" / "accessflow.db"
        db_file.parent.mkdir(parents=True)
        db_file.touch()

        log_file = tmp_path / "logs" / "server.log"

        with patch.dict(
            os.environ,
            {
                "ACCESSFLOW_DB": str(db_file),
                "ACCESSFLOW_LOG_LEVEL": "DEBUG",
                "ACCESSFLOW_LOG_FILE": str(log_file),
                "ACCESSFLOW_SERVER_NAME": "test-server",
            },
            clear=True,
        ):
            config = Config()

            assert config.validate() == []

            config.setup_logging()

            assert config.db_path == db_file
            assert config.log_file == log_file
            assert config.server_name == "test-server"

            logging.getLogger("test").info("Test message")
            assert "Test message" in log_file.read_text()
