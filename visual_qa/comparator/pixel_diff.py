"""Pixel-by-pixel image comparison with ignore regions."""

from __future__ import annotations

import logging

from PIL import Image

from visual_qa.models.comparison import ComparisonResult
from visual_qa.models.regions import IgnoreRegion, is_ignored

logger = logging.getLogger(__name__)

HIGHLIGHT_RED = (255, 0, 0)


def _pixels_differ(a: tuple, b: tuple, tolerance: int) -> bool:
    if tolerance == 0:
        return a != b
    return any(abs(ca - cb) > tolerance for ca, cb in zip(a, b))


def compare_images(
    baseline: Image.Image,
    actual: Image.Image,
    ignore_regions: list[IgnoreRegion] | None = None,
    pixel_tolerance: int = 0,
    highlight_color: tuple[int, int, int] = HIGHLIGHT_RED,
) -> ComparisonResult:
    """Compare the overlapping area of two images and render a diff.

    Only the top-left ``min(width) x min(height)`` box of each image is read.
    Pixels inside an ignore region keep the baseline color in the diff and are
    never counted as mismatches, but they still count towards the total, so
    the mismatch percentage is taken over the whole overlapping box.
    """
    regions = ignore_regions or []
    width = min(baseline.width, actual.width)
    height = min(baseline.height, actual.height)
    total = width * height

    if baseline.size != actual.size:
        logger.warning(
            "Image size mismatch: baseline=%s, actual=%s; comparing %dx%d overlap",
            baseline.size, actual.size, width, height,
        )

    diff = Image.new("RGB", (width, height))
    if total == 0:
        return ComparisonResult(diff, 0.0, 0, 0, 0)

    box = (0, 0, width, height)
    expected_rgb_img = baseline.crop(box).convert("RGB")
    actual_rgb_img = actual.crop(box).convert("RGB")
    expected_px = expected_rgb_img.load()
    actual_px = actual_rgb_img.load()
    diff_px = diff.load()

    mismatched = 0
    ignored = 0
    for y in range(height):
        for x in range(width):
            expected_rgb = expected_px[x, y]
            if regions and is_ignored(x, y, regions):
                diff_px[x, y] = expected_rgb
                ignored += 1
                continue

            if _pixels_differ(expected_rgb, actual_px[x, y], pixel_tolerance):
                diff_px[x, y] = highlight_color
                mismatched += 1
            else:
                diff_px[x, y] = expected_rgb

    mismatch_percent = (mismatched * 100.0) / total
    logger.debug(
        "Compared %dx%d: %d mismatched, %d ignored (%.4f%%)",
        width, height, mismatched, ignored, mismatch_percent,
    )
    return ComparisonResult(
        diff_image=diff,
        mismatch_percent=mismatch_percent,
        mismatched_pixels=mismatched,
        ignored_pixels=ignored,
        total_pixels=total,
    )
