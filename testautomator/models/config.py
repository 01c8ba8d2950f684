"""Configuration model for the locator suggestion tool."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from testautomator.validation import is_absolute_url

DEFAULT_CONFIG_PATH = "testautomator.json"
DEFAULT_URL = "https://dev-dash.janitri.in/"


class AdvisorConfig(BaseModel):
    # Form defaults
    default_url: str = DEFAULT_URL

    # AI settings
    ai_model: str = "claude-sonnet-4-20250514"
    ai_max_tokens: int = Field(default=4096, gt=0)
    ai_timeout_seconds: float = Field(default=120.0, gt=0)
    ai_temperature: float = Field(default=0.2, ge=0.0, le=1.0)

    # Debugging: write each AI exchange here when set
    debug_dir: Optional[str] = None

    @field_validator("default_url")
    @classmethod
    def check_default_url(cls, v: str) -> str:
        if not is_absolute_url(v):
            raise ValueError(f"default_url must be an absolute URL, got {v!r}")
        return v

    @classmethod
    def load(cls, path: str | Path) -> "AdvisorConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def load_or_default(cls, path: str | Path = DEFAULT_CONFIG_PATH) -> "AdvisorConfig":
        try:
            return cls.load(path)
        except FileNotFoundError:
            return cls()

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
