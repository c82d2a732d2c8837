# ============================================================================
# shellgate/base/config.py
# Application Configuration Management
# ============================================================================
#
# PURPOSE:
# One place for every tunable of the gateway: which commands are allowed,
# how long a command may run, how much output we keep, how much history we
# remember, where logs go and where the HTTP transport listens.
#
# KEY CONCEPTS:
# 1. Frozen dataclasses: settings are immutable once the process has started
# 2. Environment variables: SHELLGATE_* values override the defaults
# 3. CLI flags: applied on top of the environment by shellgate.cli
# 4. Singleton: get_config() hands every caller the same instance
#
# The allowed-commands value is the only required setting. It is
# kept as the raw string here; AllowlistPolicy.parse() turns it into a
# policy and raises a configuration error when it is missing.
#
# ============================================================================

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from shellgate.errors import ErrorCode, GatewayError

logger = logging.getLogger(__name__)


# ============================================================================
# Command Execution Configuration
# ============================================================================

@dataclass(frozen=True)
class ExecutionConfig:
    # Shell used when the caller does not name one
    default_shell: str = "bash"

    # Shells a caller may request. Anything else is refused without spawning.
    supported_shells: tuple = ("bash", "zsh")

    # Wall-clock deadline for one command (seconds). 124 is reported on expiry.
    command_timeout: float = 30.0

    # Captured output beyond this many bytes is dropped (1 MiB)
    max_output_bytes: int = 1024 * 1024


# ============================================================================
# History Configuration
# ============================================================================

@dataclass(frozen=True)
class HistoryConfig:
    # How many executions the in-memory history ring remembers
    max_entries: int = 100

    # How many entries list_recent_commands returns when no limit is given
    default_list_limit: int = 10


# ============================================================================
# Logging Configuration
# ============================================================================

@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"

    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    # Optional log file. None keeps logging on the console (stderr) only,
    # which matters for the stdio transport where stdout carries responses.
    file_path: Optional[Path] = None

    # Rotation limits for the log file
    max_file_size_mb: int = 10
    backup_count: int = 5


# ============================================================================
# Master Configuration Container
# ============================================================================

@dataclass(frozen=True)
class GatewayConfig:
    # Raw allowed-commands value: "ls,cat,echo" or "*"
    allowed_commands: Optional[str] = None

    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    log: LogConfig = field(default_factory=LogConfig)

    debug: bool = False

    # HTTP transport bind address. 127.0.0.1 keeps it local to this machine.
    api_host: str = "127.0.0.1"
    api_port: int = 8765

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        """Build a config from SHELLGATE_* environment variables."""
        execution = ExecutionConfig(
            default_shell=os.getenv("SHELLGATE_DEFAULT_SHELL", "bash"),
            command_timeout=_env_float("SHELLGATE_COMMAND_TIMEOUT", 30.0),
            max_output_bytes=_env_int("SHELLGATE_MAX_OUTPUT_BYTES", 1024 * 1024),
        )

        history = HistoryConfig(
            max_entries=_env_int("SHELLGATE_HISTORY_SIZE", 100),
            default_list_limit=_env_int("SHELLGATE_DEFAULT_LIST_LIMIT", 10),
        )

        log_file = os.getenv("SHELLGATE_LOG_FILE")
        log = LogConfig(
            level=os.getenv("SHELLGATE_LOG_LEVEL", "INFO"),
            file_path=Path(log_file).expanduser() if log_file else None,
        )

        return cls(
            allowed_commands=os.getenv("SHELLGATE_ALLOWED_COMMANDS") or None,
            execution=execution,
            history=history,
            log=log,
            debug=os.getenv("SHELLGATE_DEBUG", "false").lower() == "true",
            api_host=os.getenv("SHELLGATE_API_HOST", "127.0.0.1"),
            api_port=_env_int("SHELLGATE_API_PORT", 8765),
        )

    def validate(self) -> None:
        """Reject values that would make the engine or history misbehave."""
        if self.execution.command_timeout <= 0:
            raise GatewayError(
                ErrorCode.CONFIG_INVALID,
                "Command timeout must be positive",
                details={"command_timeout": self.execution.command_timeout},
            )
        if self.execution.max_output_bytes <= 0:
            raise GatewayError(
                ErrorCode.CONFIG_INVALID,
                "Maximum output size must be positive",
                details={"max_output_bytes": self.execution.max_output_bytes},
            )
        if self.history.max_entries <= 0:
            raise GatewayError(
                ErrorCode.CONFIG_INVALID,
                "History size must be positive",
                details={"max_entries": self.history.max_entries},
            )
        if self.execution.default_shell not in self.execution.supported_shells:
            raise GatewayError(
                ErrorCode.CONFIG_INVALID,
                f"Default shell '{self.execution.default_shell}' is not supported",
                details={"supported_shells": list(self.execution.supported_shells)},
            )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise GatewayError(
            ErrorCode.CONFIG_INVALID,
            f"{name} must be an integer",
            details={"value": raw},
        )


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise GatewayError(
            ErrorCode.CONFIG_INVALID,
            f"{name} must be a number",
            details={"value": raw},
        )


# ============================================================================
# Global Configuration Singleton
# ============================================================================

_config: Optional[GatewayConfig] = None


def get_config() -> GatewayConfig:
    """
    Get the global configuration instance.

    Created from the environment on first use and reused afterwards.
    """
    global _config
    if _config is None:
        _config = GatewayConfig.from_env()
    return _config


def set_config(config: Optional[GatewayConfig]) -> None:
    """Replace the global configuration (CLI overrides, tests). None resets it."""
    global _config
    _config = config


def setup_logging(config: Optional[GatewayConfig] = None) -> None:
    """
    Configure Python's logging system based on our settings.

    Console output always goes to stderr. A rotating file handler is added
    when a log file is configured. Call this once at application startup.
    """
    cfg = config or get_config()

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if cfg.log.file_path is not None:
        from logging.handlers import RotatingFileHandler
        cfg.log.file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            cfg.log.file_path,
            maxBytes=cfg.log.max_file_size_mb * 1024 * 1024,
            backupCount=cfg.log.backup_count,
        )
        handlers.append(file_handler)

    level = "DEBUG" if cfg.debug else cfg.log.level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )
