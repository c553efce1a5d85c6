"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      : committed static defaults
  2. ``config/local.toml``        : optional local overrides (gitignored)
  3. ``.env``                     : local secrets and env overrides (gitignored)
  4. Environment variables        : ``ASSESSMENT_ENGINE_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

The auto-action feature flag lives in ``EngineConfig.enable_auto_actions``.
It is resolved here, once, and injected into the engines. The scoring and
signal code never reads environment variables itself.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite database connection settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/assessment_engine.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/assessment_engine.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class EngineConfig(BaseModel):
    """Signal engine and action generation parameters.

    Attributes:
        enable_auto_actions:      Feature flag. ``False`` turns action
                                  generation into an explicit no-op.
        weak_score_threshold:     Answers at or below this score are weak.
        critical_score_threshold: Answers at or below this score are critical.
        max_actions:              Global cap on actions per generation run.
        escalation_trigger_count: Triggering questions needed to bump a
                                  signal's severity by one level.
    """

    model_config = ConfigDict(frozen=True)

    enable_auto_actions: bool = True
    weak_score_threshold: int = 3
    critical_score_threshold: int = 2
    max_actions: int = 10
    escalation_trigger_count: int = 3

    @model_validator(mode="after")
    def validate_thresholds(self) -> "EngineConfig":
        if not 1 <= self.critical_score_threshold <= self.weak_score_threshold <= 5:
            raise ValueError(
                "Thresholds must satisfy 1 <= critical_score_threshold <= "
                f"weak_score_threshold <= 5, got critical={self.critical_score_threshold}, "
                f"weak={self.weak_score_threshold}."
            )
        if self.max_actions < 1:
            raise ValueError(f"max_actions must be >= 1, got {self.max_actions}.")
        if self.escalation_trigger_count < 2:
            raise ValueError(
                f"escalation_trigger_count must be >= 2, got {self.escalation_trigger_count}."
            )
        return self


class CatalogConfig(BaseModel):
    """Location of the questionnaire / mapping / template catalog."""

    model_config = ConfigDict(frozen=True)

    data_dir: Optional[str] = None   # None → bundled catalog


class AppConfig(BaseModel):
    """Complete application configuration; the single source of truth.

    It is constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    logging: LoggingConfig = LoggingConfig()
    engine: EngineConfig = EngineConfig()
    catalog: CatalogConfig = CatalogConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent

_TRUTHY = ("1", "true", "yes")


def _find_project_root() -> Path:
    """Walk up from this file to find the project root (contains pyproject.toml)."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If the specified ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config explicitly."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply ASSESSMENT_ENGINE_* environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply ASSESSMENT_ENGINE_* env vars to the raw config dict.

    Supported overrides:
      ASSESSMENT_ENGINE_DB_PATH              → raw["database"]["db_path"]
      ASSESSMENT_ENGINE_LOG_LEVEL            → raw["logging"]["level"]
      ASSESSMENT_ENGINE_ENABLE_AUTO_ACTIONS  → raw["engine"]["enable_auto_actions"]
      ASSESSMENT_ENGINE_DEBUG                → raw["debug"]
    """
    if db_path := os.environ.get("ASSESSMENT_ENGINE_DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := os.environ.get("ASSESSMENT_ENGINE_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    # Only an explicit "false" disables generation; anything else keeps it on.
    if flag := os.environ.get("ASSESSMENT_ENGINE_ENABLE_AUTO_ACTIONS"):
        raw.setdefault("engine", {})["enable_auto_actions"] = flag.strip().lower() != "false"

    if debug := os.environ.get("ASSESSMENT_ENGINE_DEBUG"):
        raw["debug"] = debug.lower() in _TRUTHY

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        engine=EngineConfig(**raw.get("engine", {})),
        catalog=CatalogConfig(**raw.get("catalog", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
