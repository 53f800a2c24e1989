"""Configuration models for the TeamCity reporter."""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScreenshotPolicy(str, Enum):
    """Which visual-check images get copied and announced."""

    NEVER = "never"
    ONLY_FAILURES = "onlyFailures"
    ALWAYS = "always"


class ReporterConfig(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    enabled: bool = True
    images_dir: str = Field(default="hermione-images", alias="imagesDir")
    report_screenshots: ScreenshotPolicy = Field(
        default=ScreenshotPolicy.ONLY_FAILURES, alias="reportScreenshots"
    )

    @field_validator("report_screenshots", mode="before")
    @classmethod
    def coerce_policy(cls, v: Any) -> Any:
        # Plugin configs use booleans: false = never, true = always
        if v is True:
            return ScreenshotPolicy.ALWAYS
        if v is False:
            return ScreenshotPolicy.NEVER
        return v

    @property
    def images_root(self) -> Path:
        return Path(self.images_dir)

    @classmethod
    def load(cls, path: str | Path) -> "ReporterConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(mode="json", by_alias=True), f, indent=2)
