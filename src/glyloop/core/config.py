"""Settings for the glyloop core.

Values come from a TOML file and ``GLYLOOP_*`` environment variables
(nested keys use ``__``, e.g. ``GLYLOOP_OUTCOME__TOLERANCE_MINUTES``),
validated by pydantic-settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomli
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from .errors import ConfigError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class OutcomeConfig(BaseModel):
    offset_minutes: int = 120  # Post-meal reading target
    tolerance_minutes: int = 15  # Search window either side of the target


class ChartConfig(BaseModel):
    # Canonical allow-list of duration selectors (hours)
    allowed_ranges_hours: list[int] = Field(
        default_factory=lambda: [1, 3, 5, 8, 12, 24]
    )
    tooltip_note_limit: int = 30

    @field_validator("allowed_ranges_hours")
    @classmethod
    def _positive_ranges(cls, v: list[int]) -> list[int]:
        if not v or any(h <= 0 for h in v):
            raise ValueError("allowed_ranges_hours must be non-empty and positive")
        return sorted(set(v))


class HistoryConfig(BaseModel):
    default_window_days: int = 30
    max_page_size: int = 100
    summary_note_limit: int = 50


class TirConfig(BaseModel):
    default_lower: int = 70  # mg/dL
    default_upper: int = 180


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level core settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    outcome: OutcomeConfig = Field(default_factory=OutcomeConfig)
    chart: ChartConfig = Field(default_factory=ChartConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    tir: TirConfig = Field(default_factory=TirConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)

    # Append-only audit log location (JSONL); empty keeps audit in memory
    audit_log_path: str = ""

    model_config = {"env_prefix": "GLYLOOP_", "env_nested_delimiter": "__"}


def _merge(base: dict[str, Any], extra: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_toml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    try:
        with path.open("rb") as f:
            return tomli.load(f)
    except tomli.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Build ``Settings`` from an optional TOML file.

    Precedence, lowest first: field defaults, ``GLYLOOP_*`` environment
    variables, the TOML file, then *overrides*.  Tables in *overrides*
    are merged into the file's tables key by key, so
    ``{"outcome": {"tolerance_minutes": 10}}`` keeps the file's offset.
    """
    data = _read_toml(Path(config_path)) if config_path else {}
    return Settings(**_merge(data, overrides or {}))
