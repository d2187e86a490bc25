"""Visual baseline registry data structures."""

from __future__ import annotations

from pydantic import BaseModel, Field


class BaselineEntry(BaseModel):
    name: str
    image_path: str  # relative path from baselines_dir to the PNG
    width: int
    height: int
    captured_at: str  # ISO timestamp
    image_hash: str  # SHA-256 hex digest


class VisualBaselineRegistry(BaseModel):
    last_updated: str = ""
    baselines: dict[str, BaselineEntry] = Field(default_factory=dict)
    # keyed by screenshot name
