"""Configuration models for visual regression checks."""

from __future__ import annotations

import json
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from visual_qa.models.regions import IgnoreRegion, default_dynamic_regions

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class VisualConfig(BaseModel):
    # Artifact directories
    baseline_dir: str = "visual/baseline"
    actual_dir: str = "visual/actual"
    diff_dir: str = "visual/diff"

    # Threshold policy
    mismatch_threshold_percent: float = Field(default=0.0, ge=0.0, le=100.0)
    pixel_tolerance: int = Field(default=0, ge=0, le=255)  # 0 = exact RGB equality
    fail_on_size_mismatch: bool = False

    # Overwrite baselines with the fresh capture instead of comparing
    update_baseline: bool = False

    # Capture
    full_page: bool = True

    # Regions
    ignore_regions: list[IgnoreRegion] = Field(default_factory=list)
    use_default_regions: bool = False

    @field_validator("update_baseline", mode="before")
    @classmethod
    def resolve_env_flag(cls, v):
        if isinstance(v, str) and v.startswith("env:"):
            raw = os.environ.get(v[4:], "").strip().lower()
            if raw in _TRUE_VALUES:
                return True
            if raw in _FALSE_VALUES:
                return False
            raise ValueError(f"Environment variable '{v[4:]}' is not a boolean: {raw!r}")
        return v

    def effective_regions(self) -> list[IgnoreRegion]:
        regions = list(self.ignore_regions)
        if self.use_default_regions:
            regions.extend(default_dynamic_regions())
        return regions

    @classmethod
    def load(cls, path: str | Path) -> "VisualConfig":
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
            json.dump(self.model_dump(), f, indent=2)
