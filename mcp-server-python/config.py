"""
Configuration module for the AccessFlow MCP server and webhook.

Provides centralized configuration management with support for:
- Environment variables
- Default values
- Path resolution
- Logging configuration
"""

import logging
import os
from pathlib import Path
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# Load environment variables from .env file at project root
# config.py is in mcp-server-python/, so .env is in parent directory
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=_env_path)

DEFAULT_TIMEZONE = "Europe/London"
DEFAULT_TOMBSTONE_RETENTION_DAYS = 30
DEFAULT_LAST_ACTIVE_THROTTLE_SECONDS = 60


def _parse_int(env_var: str, default: int, problems: List[str]) -> int:
    """Parse an integer from env, recording a warning and keeping the default on bad input."""
    value = os.getenv(env_var)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        problems.append(f"{env_var}={value!r} is not an integer; using default {default}")
        return default


class Config:
    """
    Configuration class for AccessFlow server settings.

    Supports configuration via environment variables (and .env file) with sensible defaults.
    All paths are resolved relative to the repository root.
    """

    def __init__(self):
        """Initialize configuration from environment variables and defaults."""
        self._parse_problems: List[str] = []

        # config.py lives in mcp-server-python/, one level below the repo root
        self._repo_root = Path(__file__).resolve().parent.parent

        # Database configuration
        self.db_path = self._resolve_db_path()

        # Logging configuration
        self.log_level = os.getenv("ACCESSFLOW_LOG_LEVEL", "INFO").upper()
        self.log_file = self._resolve_log_path()

        # Server configuration
        self.server_name = os.getenv("ACCESSFLOW_SERVER_NAME", "accessflow-mcp-server")

        # Calendar-day semantics for "today", "overdue" and date-range filters
        self.timezone_name = os.getenv("ACCESSFLOW_TIMEZONE", DEFAULT_TIMEZONE)

        # Lifecycle policy
        self.tombstone_retention_days = _parse_int(
            "ACCESSFLOW_TOMBSTONE_RETENTION_DAYS",
            DEFAULT_TOMBSTONE_RETENTION_DAYS,
            self._parse_problems,
        )
        self.last_active_throttle_seconds = _parse_int(
            "ACCESSFLOW_LAST_ACTIVE_THROTTLE_SECONDS",
            DEFAULT_LAST_ACTIVE_THROTTLE_SECONDS,
            self._parse_problems,
        )

        # Webhook configuration
        self.webhook_host = os.getenv("ACCESSFLOW_WEBHOOK_HOST", "0.0.0.0")
        self.webhook_port = _parse_int("ACCESSFLOW_WEBHOOK_PORT", 8080, self._parse_problems)

    def _from_repo_root(self, value: str) -> Path:
        path = Path(value)
        return path if path.is_absolute() else self._repo_root / path

    def _resolve_db_path(self) -> Path:
        """
        Resolve the database path.

        ACCESSFLOW_DB wins (relative values are taken from the repo root), then
        ACCESSFLOW_ROOT/data/accessflow.db, then <repo_root>/data/accessflow.db.
        """
        db_env = os.getenv("ACCESSFLOW_DB")
        if db_env:
            return self._from_repo_root(db_env)

        root_env = os.getenv("ACCESSFLOW_ROOT")
        base = Path(root_env) if root_env else self._repo_root
        return base / "data" / "accessflow.db"

    def _resolve_log_path(self) -> Optional[Path]:
        # Unset means stderr only
        log_env = os.getenv("ACCESSFLOW_LOG_FILE")
        return self._from_repo_root(log_env) if log_env else None

    @property
    def tzinfo(self) -> ZoneInfo:
        """Reference timezone; falls back to the default when the name is unknown."""
        try:
            return ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            return ZoneInfo(DEFAULT_TIMEZONE)

    def setup_logging(self):
        """
        Configure logging based on configuration settings.

        Sets up logging to stderr and optionally to a file. Stdout is left
        alone because the MCP stdio transport owns it.
        """
        numeric_level = getattr(logging, self.log_level, logging.INFO)

        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(numeric_level)

        # Remove existing handlers to avoid duplicates
        root_logger.handlers.clear()

        stderr_handler = logging.StreamHandler()
        stderr_handler.setLevel(numeric_level)
        stderr_handler.setFormatter(formatter)
        root_logger.addHandler(stderr_handler)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(self.log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

            logging.info(f"Logging to file: {self.log_file}")

        logging.info(f"Log level set to: {self.log_level}")
        logging.info(f"Repository root: {self._repo_root}")
        logging.info(f"Database path: {self.db_path}")
        logging.info(f"Reference timezone: {self.timezone_name}")

    def validate(self) -> list[str]:
        """
        Validate configuration and return any warnings.

        Returns:
            List of warning messages (empty if all valid)
        """
        warnings = list(self._parse_problems)

        try:
            ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            warnings.append(
                f"Unknown timezone '{self.timezone_name}'; falling back to {DEFAULT_TIMEZONE}"
            )

        if self.tombstone_retention_days < 0:
            warnings.append(
                f"Tombstone retention of {self.tombstone_retention_days} days is negative; "
                "every deleted job will be reported as eligible for purge"
            )

        if not self.db_path.exists():
            warnings.append(
                f"Database file not found: {self.db_path}. "
                "It will be created on first use."
            )

        if self.log_file:
            log_dir = self.log_file.parent
            if not log_dir.exists():
                try:
                    log_dir.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    warnings.append(f"Cannot create log directory {log_dir}: {e}")
            elif not os.access(log_dir, os.W_OK):
                warnings.append(f"Log directory not writable: {log_dir}")

        return warnings


# Global configuration instance
config = Config()


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Global Config instance
    """
    return config
