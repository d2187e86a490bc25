"""Render targets — anything that can write a full-page PNG capture to a path."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Protocol

from playwright.async_api import Page as AsyncPage
from playwright.sync_api import Page

logger = logging.getLogger(__name__)


class RenderTarget(Protocol):
    def capture(self, path: Path) -> None:
        """Write a PNG capture of the current rendering to ``path``."""
        ...


class PlaywrightPageTarget:
    """Captures a sync Playwright page."""

    def __init__(self, page: Page, full_page: bool = True):
        self.page = page
        self.full_page = full_page

    def capture(self, path: Path) -> None:
        self.page.screenshot(path=str(path), full_page=self.full_page)


class ImageFileTarget:
    """Replays an existing PNG as the capture, for offline comparisons."""

    def __init__(self, source: str | Path):
        self.source = Path(source)

    def capture(self, path: Path) -> None:
        if not self.source.exists():
            raise FileNotFoundError(f"Image not found: {self.source}")
        shutil.copyfile(self.source, path)


async def capture_async_page(
    page: AsyncPage,
    path: Path,
    full_page: bool = True,
    wait_for_idle: bool = True,
) -> None:
    """Capture an async Playwright page once it has settled."""
    if wait_for_idle:
        try:
            await page.wait_for_load_state("networkidle", timeout=3000)
        except Exception:
            # If network doesn't idle within 3s, continue anyway
            logger.debug("Network did not go idle before capture of %s", path.name)
    await page.screenshot(path=str(path), full_page=full_page)
