"""Comparison result data structures produced by the visual comparator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from PIL import Image
from pydantic import BaseModel


@dataclass
class ComparisonResult:
    """Outcome of one pixel comparison. Not persisted beyond the diff file."""

    diff_image: Image.Image
    mismatch_percent: float  # 0.0 to 100.0
    mismatched_pixels: int
    ignored_pixels: int
    total_pixels: int


class VisualCheckResult(BaseModel):
    name: str
    status: str  # baseline_created, baseline_updated, passed
    threshold_percent: float
    mismatch_percent: Optional[float] = None
    actual_path: str
    baseline_path: str
    diff_path: Optional[str] = None
