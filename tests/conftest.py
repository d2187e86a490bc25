"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from visual_qa.comparator.visual_comparator import VisualComparator
from visual_qa.models.config import VisualConfig

pytest_plugins = ["pytester"]

BLUE = (0, 0, 255)
RED = (255, 0, 0)
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


class StaticImageTarget:
    """Render target that 'renders' a fixed in-memory image."""

    def __init__(self, image: Image.Image):
        self.image = image
        self.captures: list[Path] = []

    def capture(self, path: Path) -> None:
        self.image.save(path, format="PNG")
        self.captures.append(path)


class BrokenTarget:
    def capture(self, path: Path) -> None:
        raise RuntimeError("Target page has been closed")


# ============================================================================
# Image Fixtures
# ============================================================================


@pytest.fixture
def solid_image() -> Callable[..., Image.Image]:
    """Factory for single-color RGB images."""

    def _make(width: int = 10, height: int = 10, color=BLUE) -> Image.Image:
        return Image.new("RGB", (width, height), color)

    return _make


@pytest.fixture
def blue_with_red_pixels(solid_image) -> Image.Image:
    """10x10 blue image with five red pixels along the top row."""
    img = solid_image(10, 10, BLUE)
    for x in range(5):
        img.putpixel((x, 0), RED)
    return img


@pytest.fixture
def image_target() -> Callable[[Image.Image], StaticImageTarget]:
    return StaticImageTarget


@pytest.fixture
def broken_target() -> BrokenTarget:
    return BrokenTarget()


# ============================================================================
# Comparator Fixtures
# ============================================================================


@pytest.fixture
def visual_dirs(tmp_path: Path) -> dict[str, Path]:
    return {
        "baseline": tmp_path / "visual" / "baseline",
        "actual": tmp_path / "visual" / "actual",
        "diff": tmp_path / "visual" / "diff",
    }


@pytest.fixture
def make_comparator(visual_dirs) -> Callable[..., VisualComparator]:
    """Factory for comparators writing under tmp_path."""

    def _make(threshold: float = 0.0, **kwargs) -> VisualComparator:
        return VisualComparator(
            visual_dirs["baseline"],
            visual_dirs["actual"],
            visual_dirs["diff"],
            threshold,
            **kwargs,
        )

    return _make


@pytest.fixture
def tmp_visual_config(visual_dirs) -> VisualConfig:
    return VisualConfig(
        baseline_dir=str(visual_dirs["baseline"]),
        actual_dir=str(visual_dirs["actual"]),
        diff_dir=str(visual_dirs["diff"]),
        mismatch_threshold_percent=1.5,
    )


@pytest.fixture
def seed_baseline(visual_dirs) -> Callable[[str, Image.Image], Path]:
    """Write an image straight into the baseline directory."""

    def _seed(name: str, image: Image.Image) -> Path:
        visual_dirs["baseline"].mkdir(parents=True, exist_ok=True)
        path = visual_dirs["baseline"] / f"{name}.png"
        image.save(path, format="PNG")
        return path

    return _seed
