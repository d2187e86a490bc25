"""Visual comparator — checks named screenshots against stored baselines.

Each call captures the render target into ``{actual_dir}/{name}.png``. The
first call for a name copies that capture into ``{baseline_dir}/{name}.png``
and passes. Later calls compare the capture with the baseline, write
``{diff_dir}/{name}-diff.png`` and fail when the mismatch percentage is
strictly greater than the configured threshold.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path

from PIL import Image
from playwright.async_api import Page

from visual_qa.baselines.registry import VisualBaselineRegistryManager
from visual_qa.baselines.store import BaselineStore, validate_name
from visual_qa.comparator.pixel_diff import compare_images
from visual_qa.executor.render_target import RenderTarget, capture_async_page
from visual_qa.models.comparison import ComparisonResult, VisualCheckResult
from visual_qa.models.config import VisualConfig
from visual_qa.models.regions import IgnoreRegion

logger = logging.getLogger(__name__)


class VisualMismatchError(AssertionError):
    """The capture differs from its baseline by more than the threshold."""

    def __init__(
        self,
        message: str,
        screenshot_name: str,
        mismatch_percent: float,
        threshold_percent: float,
        diff_path: Path,
    ):
        super().__init__(message)
        self.screenshot_name = screenshot_name
        self.mismatch_percent = mismatch_percent
        self.threshold_percent = threshold_percent
        self.diff_path = diff_path


class VisualEnvironmentError(OSError):
    """Capture, file system or image codec failure; the comparison could not run."""


class VisualComparator:
    """Compares screenshots against baselines with ignore regions and a mismatch threshold."""

    def __init__(
        self,
        baseline_dir: str | Path,
        actual_dir: str | Path,
        diff_dir: str | Path,
        mismatch_threshold_percent: float,
        pixel_tolerance: int = 0,
        fail_on_size_mismatch: bool = False,
        update_baseline: bool = False,
        full_page: bool = True,
    ):
        if not 0.0 <= mismatch_threshold_percent <= 100.0:
            raise ValueError(
                f"mismatch_threshold_percent must be within 0-100, got {mismatch_threshold_percent}"
            )
        if not 0 <= pixel_tolerance <= 255:
            raise ValueError(f"pixel_tolerance must be within 0-255, got {pixel_tolerance}")
        self.store = BaselineStore(Path(baseline_dir), Path(actual_dir), Path(diff_dir))
        self.registry = VisualBaselineRegistryManager(
            registry_path=self.store.baseline_dir / "registry.json",
            baselines_dir=self.store.baseline_dir,
        )
        self.mismatch_threshold_percent = mismatch_threshold_percent
        self.pixel_tolerance = pixel_tolerance
        self.fail_on_size_mismatch = fail_on_size_mismatch
        self.update_baseline = update_baseline
        self.full_page = full_page

    @classmethod
    def from_config(cls, config: VisualConfig) -> "VisualComparator":
        return cls(
            baseline_dir=config.baseline_dir,
            actual_dir=config.actual_dir,
            diff_dir=config.diff_dir,
            mismatch_threshold_percent=config.mismatch_threshold_percent,
            pixel_tolerance=config.pixel_tolerance,
            fail_on_size_mismatch=config.fail_on_size_mismatch,
            update_baseline=config.update_baseline,
            full_page=config.full_page,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def assert_screenshot_matches(
        self,
        render_target: RenderTarget,
        screenshot_name: str,
        ignore_regions: list[IgnoreRegion] | None = None,
    ) -> VisualCheckResult:
        """Capture ``render_target`` and check it against the baseline for ``screenshot_name``."""
        validate_name(screenshot_name)
        self._ensure_dirs()

        with self.store.lock(screenshot_name):
            actual_path = self.store.actual_path(screenshot_name)
            logger.info("Capturing screenshot: %s", screenshot_name)
            try:
                render_target.capture(actual_path)
            except Exception as e:
                raise VisualEnvironmentError(
                    f"Screenshot capture failed for '{screenshot_name}': {e}"
                ) from e
            return self._evaluate(screenshot_name, ignore_regions or [])

    async def assert_page_matches(
        self,
        page: Page,
        screenshot_name: str,
        ignore_regions: list[IgnoreRegion] | None = None,
    ) -> VisualCheckResult:
        """Async Playwright variant of :meth:`assert_screenshot_matches`."""
        validate_name(screenshot_name)
        self._ensure_dirs()

        # Capture outside the name lock so the event loop is never blocked on it.
        fd, tmp = tempfile.mkstemp(
            dir=self.store.actual_dir, prefix=f".{screenshot_name}-", suffix=".png"
        )
        os.close(fd)
        tmp_path = Path(tmp)
        logger.info("Capturing screenshot: %s", screenshot_name)
        try:
            await capture_async_page(page, tmp_path, full_page=self.full_page)
        except Exception as e:
            with contextlib.suppress(FileNotFoundError):
                tmp_path.unlink()
            raise VisualEnvironmentError(
                f"Screenshot capture failed for '{screenshot_name}': {e}"
            ) from e

        with self.store.lock(screenshot_name):
            os.replace(tmp_path, self.store.actual_path(screenshot_name))
            return self._evaluate(screenshot_name, ignore_regions or [])

    def compare_files(
        self,
        baseline_path: str | Path,
        actual_path: str | Path,
        ignore_regions: list[IgnoreRegion] | None = None,
        diff_path: str | Path | None = None,
    ) -> ComparisonResult:
        """Compare two images on disk, optionally writing the diff PNG."""
        try:
            with Image.open(baseline_path) as baseline, Image.open(actual_path) as actual:
                result = compare_images(
                    baseline, actual, ignore_regions, pixel_tolerance=self.pixel_tolerance
                )
            if diff_path is not None:
                diff_path = Path(diff_path)
                diff_path.parent.mkdir(parents=True, exist_ok=True)
                result.diff_image.save(diff_path, format="PNG")
        except OSError as e:
            raise VisualEnvironmentError(f"Visual comparison failed: {e}") from e
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_dirs(self) -> None:
        try:
            self.store.ensure_dirs()
        except OSError as e:
            raise VisualEnvironmentError(f"Cannot create visual artifact directories: {e}") from e

    def _verify_capture(self, name: str, path: Path) -> None:
        """An unreadable capture must fail before it can become a baseline."""
        try:
            with Image.open(path) as captured:
                captured.verify()
        except Exception as e:
            raise VisualEnvironmentError(f"Capture for '{name}' is not a readable image: {e}") from e

    def _evaluate(self, name: str, regions: list[IgnoreRegion]) -> VisualCheckResult:
        actual_path = self.store.actual_path(name)
        baseline_path = self.store.baseline_path(name)
        diff_path = self.store.diff_path(name)
        threshold = self.mismatch_threshold_percent

        self._verify_capture(name, actual_path)
        try:
            if not self.store.has_baseline(name):
                logger.warning("Baseline missing for '%s'. Creating new baseline.", name)
                self.store.seed_baseline(name)
                self.registry.record(name, baseline_path)
                return VisualCheckResult(
                    name=name,
                    status="baseline_created",
                    threshold_percent=threshold,
                    actual_path=str(actual_path),
                    baseline_path=str(baseline_path),
                )

            if self.update_baseline:
                logger.warning("Refreshing baseline for '%s' from the current capture.", name)
                self.store.seed_baseline(name)
                self.registry.record(name, baseline_path)
                return VisualCheckResult(
                    name=name,
                    status="baseline_updated",
                    threshold_percent=threshold,
                    actual_path=str(actual_path),
                    baseline_path=str(baseline_path),
                )

            with Image.open(baseline_path) as baseline, Image.open(actual_path) as actual:
                size_differs = baseline.size != actual.size
                sizes = (baseline.size, actual.size)
                result = compare_images(
                    baseline, actual, regions, pixel_tolerance=self.pixel_tolerance
                )
            self.store.write_diff(name, result.diff_image)
        except OSError as e:
            raise VisualEnvironmentError(f"Visual comparison failed for '{name}': {e}") from e

        if self.fail_on_size_mismatch and size_differs:
            logger.error("Visual size mismatch for '%s': baseline=%s, actual=%s", name, *sizes)
            raise VisualMismatchError(
                f"Visual size mismatch: baseline {sizes[0][0]}x{sizes[0][1]}, "
                f"actual {sizes[1][0]}x{sizes[1][1]}. Diff: {diff_path}",
                screenshot_name=name,
                mismatch_percent=result.mismatch_percent,
                threshold_percent=threshold,
                diff_path=diff_path,
            )

        if result.mismatch_percent > threshold:
            message = (
                f"Visual mismatch {result.mismatch_percent:.2f}% exceeds threshold "
                f"{threshold:.2f}%. Diff: {diff_path}"
            )
            logger.error("%s: %s", name, message)
            raise VisualMismatchError(
                message,
                screenshot_name=name,
                mismatch_percent=result.mismatch_percent,
                threshold_percent=threshold,
                diff_path=diff_path,
            )

        logger.info("Visual match OK for '%s' (mismatch=%.2f%%)", name, result.mismatch_percent)
        return VisualCheckResult(
            name=name,
            status="passed",
            threshold_percent=threshold,
            mismatch_percent=result.mismatch_percent,
            actual_path=str(actual_path),
            baseline_path=str(baseline_path),
            diff_path=str(diff_path),
        )

