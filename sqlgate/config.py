"""
Environment-derived configuration.

load_config() reads a .env file (python-dotenv) and then the process
environment. All problems are collected and reported together in one
ConfigValidationError.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigValidationError
from .sql.policy import SecurityPolicy

LOG_LEVELS = ("debug", "info", "warning", "error")
_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def _default_db_path() -> Path:
    # project_root/data/sqlgate.sqlite
    return Path(__file__).resolve().parents[1] / "data" / "sqlgate.sqlite"


@dataclass(frozen=True)
class DatabaseConfig:
    path: Path = field(default_factory=_default_db_path)
    pool_size: int = 5
    acquire_timeout: float = 10.0


@dataclass(frozen=True)
class LoggingConfig:
    enabled: bool = True
    level: str = "info"


@dataclass(frozen=True)
class ServerConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    security: SecurityPolicy = field(default_factory=SecurityPolicy)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class _Reader:
    """Pulls typed values out of an env mapping, recording problems instead of raising."""

    def __init__(self, env: Mapping[str, str]):
        self.env = env
        self.problems: Dict[str, str] = {}

    def raw(self, name: str) -> Optional[str]:
        value = self.env.get(name)
        if value is None or not value.strip():
            return None
        return value.strip()

    def string(self, name: str, default: str) -> str:
        return self.raw(name) or default

    def integer(self, name: str, key: str, default: int) -> int:
        value = self.raw(name)
        if value is None:
            return default
        try:
            number = int(value)
        except ValueError:
            self.problems[key] = f"expected an integer, got '{value}'"
            return default
        if number <= 0:
            self.problems[key] = f"must be a positive integer, got {number}"
        return number

    def number(self, name: str, key: str, default: float) -> float:
        value = self.raw(name)
        if value is None:
            return default
        try:
            number = float(value)
        except ValueError:
            self.problems[key] = f"expected a number, got '{value}'"
            return default
        if number <= 0:
            self.problems[key] = f"must be positive, got {number}"
        return number

    def boolean(self, name: str, key: str, default: bool) -> bool:
        value = self.raw(name)
        if value is None:
            return default
        low = value.lower()
        if low in _TRUE:
            return True
        if low in _FALSE:
            return False
        self.problems[key] = f"expected true/false, got '{value}'"
        return default


def validate_config(env: Mapping[str, str]) -> ServerConfig:
    r = _Reader(env)

    db_path = r.raw("SQLGATE_DB_PATH")
    database = DatabaseConfig(
        path=Path(db_path).expanduser() if db_path else _default_db_path(),
        pool_size=r.integer("SQLGATE_POOL_SIZE", "database.pool_size", 5),
        acquire_timeout=r.number("SQLGATE_POOL_TIMEOUT", "database.acquire_timeout", 10.0),
    )
    security = SecurityPolicy(
        max_select_rows=r.integer("SQLGATE_MAX_SELECT_ROWS", "security.max_select_rows", 1000),
        allow_ddl=r.boolean("SQLGATE_ALLOW_DDL", "security.allow_ddl", False),
        allow_multiple_statements=r.boolean(
            "SQLGATE_ALLOW_MULTIPLE_STATEMENTS", "security.allow_multiple_statements", False
        ),
        require_where_clause=r.boolean(
            "SQLGATE_REQUIRE_WHERE_CLAUSE", "security.require_where_clause", True
        ),
    )
    level = r.string("SQLGATE_LOG_LEVEL", "info").lower()
    if level == "warn":
        level = "warning"
    if level not in LOG_LEVELS:
        r.problems["logging.level"] = f"must be one of {', '.join(LOG_LEVELS)}, got '{level}'"
    logging_config = LoggingConfig(
        enabled=r.boolean("SQLGATE_LOG_ENABLED", "logging.enabled", True),
        level=level,
    )

    if r.problems:
        lines = "\n".join(f"  - {key}: {problem}" for key, problem in r.problems.items())
        raise ConfigValidationError(f"Configuration validation failed:\n{lines}", dict(r.problems))

    return ServerConfig(database=database, security=security, logging=logging_config)


def load_config(env_file: Optional[Path] = None) -> ServerConfig:
    """Load .env (without overriding real environment variables), then validate."""
    load_dotenv(env_file)
    return validate_config(os.environ)
