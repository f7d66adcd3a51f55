"""Configuration loading and validation."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from tea_records.filters.window import WeekStart, WindowFilter, parse_window


class OwnerConfig(BaseModel):
    """Owning identity used to scope store queries."""

    id: str | None = None
    id_env: str = "TEA_RECORDS_OWNER"


class StoreConfig(BaseModel):
    """Record store configuration."""

    backend: str = Field(default="jsonl", pattern=r"^(jsonl|rest)$")
    path: Path = Field(default=Path("./data/records.jsonl"))
    url: str | None = None
    table: str = Field(default="tea_records", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")
    api_key_env: str = "TEA_RECORDS_API_KEY"
    timeout_seconds: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=0, le=10)

    @model_validator(mode="after")
    def validate_backend(self) -> "StoreConfig":
        """Require a URL for the REST backend."""
        if self.backend == "rest" and not self.url:
            msg = "store.url is required when store.backend is 'rest'"
            raise ValueError(msg)
        return self


class ReportingConfig(BaseModel):
    """Report window configuration."""

    week_start: str = "monday"
    default_window: str = "all"

    @field_validator("week_start")
    @classmethod
    def validate_week_start(cls, v: str) -> str:
        """Validate the weekday name."""
        WeekStart.from_name(v)
        return v.strip().lower()

    @field_validator("default_window")
    @classmethod
    def validate_default_window(cls, v: str) -> str:
        """Validate the window name."""
        parse_window(v)
        return v.strip().lower()

    @property
    def week_start_day(self) -> WeekStart:
        """Configured week start as an enum."""
        return WeekStart.from_name(self.week_start)

    @property
    def window(self) -> WindowFilter:
        """Configured default window as an enum."""
        return parse_window(self.default_window)


class Config(BaseModel):
    """Root configuration model."""

    owner: OwnerConfig = Field(default_factory=OwnerConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    reporting: ReportingConfig = Field(default_factory=ReportingConfig)


def load_config(path: Path) -> Config:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated Config object.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValidationError: If the config is invalid.
    """
    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open() as f:
        raw_config: dict[str, Any] | None = yaml.safe_load(f)

    return Config.model_validate(raw_config or {})
