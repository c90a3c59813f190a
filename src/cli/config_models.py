"""Pydantic configuration models for the brain CLI."""

import os
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def expand_env(value: str) -> str:
    """Replace ${VAR} patterns with environment values (empty when unset)."""
    return _ENV_PATTERN.sub(lambda m: os.getenv(m.group(1), ""), value)


class PathsConfig(BaseModel):
    """File paths configuration."""

    brain_path: Path = Path("~/.brain/brain.jsonl")
    audit_path: Path = Path("~/.brain/logs/bootstrap-events.jsonl")

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ${VAR} and ~ in all paths."""
        self.brain_path = Path(expand_env(str(self.brain_path))).expanduser()
        self.audit_path = Path(expand_env(str(self.audit_path))).expanduser()
        return self


class BootstrapConfig(BaseModel):
    """Profile bootstrap defaults."""

    profile_id: str = "personal-assistant"
    default_version: Optional[str] = None  # None = latest registered version

    @field_validator("default_version")
    @classmethod
    def validate_version(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not re.fullmatch(r"pa-v\d+", v):
            raise ValueError(f"Invalid default_version: {v}. Expected pa-vN")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class BrainConfig(BaseModel):
    """Main configuration model."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    bootstrap: BootstrapConfig = Field(default_factory=BootstrapConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "BrainConfig":
        """Create config from dict, applying BRAIN_* environment overrides."""
        data = dict(data)
        paths = dict(data.get("paths") or {})
        if os.getenv("BRAIN_PATH"):
            paths["brain_path"] = os.environ["BRAIN_PATH"]
        if os.getenv("BRAIN_BOOTSTRAP_AUDIT_PATH"):
            paths["audit_path"] = os.environ["BRAIN_BOOTSTRAP_AUDIT_PATH"]
        data["paths"] = paths
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
