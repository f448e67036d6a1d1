"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``UPR_HEALTH_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

All pipeline stages and CLI commands receive an ``AppConfig`` instance —
never raw dicts or individual env var lookups scattered through the codebase.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from upr_health.taxonomy.categories import ReviewMechanism
from upr_health.taxonomy.health_keywords import RULESETS

# ── Sub-config models ─────────────────────────────────────────────────────────


class DataConfig(BaseModel):
    """Filesystem paths for the input dataset and report outputs."""

    model_config = ConfigDict(frozen=True)

    records_path: str = "data/raw/upr_recommendations.parquet"
    output_dir: str = "data/outputs"
    run_log_file: str = ""  # empty → run records are only logged


class LoaderConfig(BaseModel):
    """Record loader settings: mechanism filter and category mapping."""

    model_config = ConfigDict(frozen=True)

    mechanism: str = ReviewMechanism.UPR.value
    no_sdg_link_sentinel: str = "No SDG link identified"
    strict_categories: bool = True
    null_response_values: list[str] = ["Not applicable", "N/A"]


class ClassifierConfig(BaseModel):
    """Which keyword rule set the classifier applies."""

    model_config = ConfigDict(frozen=True)

    ruleset_version: str = "v1"

    @field_validator("ruleset_version")
    @classmethod
    def validate_ruleset_version(cls, v: str) -> str:
        if v not in RULESETS:
            raise ValueError(
                f"Unknown ruleset_version '{v}'. Must be one of {sorted(RULESETS)}."
            )
        return v


class ReportConfig(BaseModel):
    """Aggregation report settings."""

    model_config = ConfigDict(frozen=True)

    excluded_responses: list[str] = ["Supported/Noted"]


class IndicatorConfig(BaseModel):
    """WHO Global Health Observatory fetch settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str = "https://ghoapi.azureedge.net/api"
    indicator_codes: list[str] = [
        "WHOSIS_000001", "UHC_INDEX_REPORTED", "MDG_0000000007", "NCDMORT3070",
    ]
    maternal_mortality_code: str = "MDG_0000000026"
    timeout_s: float = 60.0
    concurrent: bool = False
    max_concurrency: int = 4
    global_region_label: str = "Global"

    @field_validator("indicator_codes")
    @classmethod
    def validate_codes(cls, v: list[str]) -> list[str]:
        if not v:
            raise ValueError("indicator_codes must list at least one GHO code.")
        return v

    @field_validator("timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout_s must be positive, got {v}.")
        return v

    @field_validator("max_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = "data/logs/upr_health.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration — the single source of truth.

    All pipeline stages and CLI commands receive an ``AppConfig`` instance.
    It is constructed by ``load_config()`` which merges TOML + .env.
    """

    model_config = ConfigDict(frozen=True)

    data: DataConfig = DataConfig()
    loader: LoaderConfig = LoaderConfig()
    classifier: ClassifierConfig = ClassifierConfig()
    report: ReportConfig = ReportConfig()
    indicators: IndicatorConfig = IndicatorConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


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
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    # 3. Apply UPR_HEALTH_* environment variable overrides
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
    """Apply UPR_HEALTH_* env vars to the raw config dict.

    Supported overrides:
      UPR_HEALTH_RECORDS_PATH   → raw["data"]["records_path"]
      UPR_HEALTH_OUTPUT_DIR     → raw["data"]["output_dir"]
      UPR_HEALTH_LOG_LEVEL      → raw["logging"]["level"]
      UPR_HEALTH_GHO_BASE_URL   → raw["indicators"]["base_url"]
      UPR_HEALTH_DEBUG          → raw["debug"]
    """
    if records_path := os.environ.get("UPR_HEALTH_RECORDS_PATH"):
        raw.setdefault("data", {})["records_path"] = records_path

    if output_dir := os.environ.get("UPR_HEALTH_OUTPUT_DIR"):
        raw.setdefault("data", {})["output_dir"] = output_dir

    if log_level := os.environ.get("UPR_HEALTH_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if base_url := os.environ.get("UPR_HEALTH_GHO_BASE_URL"):
        raw.setdefault("indicators", {})["base_url"] = base_url

    if debug := os.environ.get("UPR_HEALTH_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    project = raw.pop("project", {})

    return AppConfig(
        data=DataConfig(**raw.get("data", {})),
        loader=LoaderConfig(**raw.get("loader", {})),
        classifier=ClassifierConfig(**raw.get("classifier", {})),
        report=ReportConfig(**raw.get("report", {})),
        indicators=IndicatorConfig(**raw.get("indicators", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
