"""Visual baseline registry — JSON sidecar describing the stored baseline images."""

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from pathlib import Path

from PIL import Image

from visual_qa.baselines.store import atomic_write
from visual_qa.models.visual_baseline import BaselineEntry, VisualBaselineRegistry

logger = logging.getLogger(__name__)

# Load-modify-save cycles from concurrent comparisons must not interleave.
_registry_lock = threading.RLock()


def _utc_timestamp() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


class VisualBaselineRegistryManager:
    """Manages the JSON registry that sits next to the baseline images."""

    def __init__(self, registry_path: Path, baselines_dir: Path):
        self.registry_path = registry_path
        self.baselines_dir = baselines_dir

    def load(self) -> VisualBaselineRegistry:
        """Load registry from disk, or create a new one."""
        if self.registry_path.exists():
            try:
                with open(self.registry_path) as f:
                    data = json.load(f)
                return VisualBaselineRegistry(**data)
            except Exception as e:
                logger.warning("Failed to load visual baseline registry: %s. Creating new.", e)
        return VisualBaselineRegistry()

    def save(self, registry: VisualBaselineRegistry) -> None:
        """Persist registry to disk."""
        self.registry_path.parent.mkdir(parents=True, exist_ok=True)
        registry.last_updated = _utc_timestamp()
        payload = json.dumps(registry.model_dump(), indent=2).encode()
        atomic_write(self.registry_path, lambda f: f.write(payload))
        logger.debug("Saved visual baseline registry to %s", self.registry_path)

    def get_baseline(self, registry: VisualBaselineRegistry, name: str) -> BaselineEntry | None:
        """Look up an existing baseline by screenshot name."""
        entry = registry.baselines.get(name)
        if entry is None:
            return None
        # Verify the image file still exists
        abs_path = self.baselines_dir / entry.image_path
        if not abs_path.exists():
            logger.warning("Baseline image missing for %s: %s", name, abs_path)
            return None
        return entry

    def record(self, name: str, image_path: Path) -> BaselineEntry:
        """Register a baseline image that is already in place and persist the registry."""
        with Image.open(image_path) as img:
            width, height = img.size
        entry = BaselineEntry(
            name=name,
            image_path=str(image_path.relative_to(self.baselines_dir)),
            width=width,
            height=height,
            captured_at=_utc_timestamp(),
            image_hash=hashlib.sha256(image_path.read_bytes()).hexdigest(),
        )
        with _registry_lock:
            registry = self.load()
            registry.baselines[name] = entry
            self.save(registry)
        logger.info("Recorded baseline for %s (%dx%d)", name, width, height)
        return entry

    def remove(self, name: str) -> bool:
        with _registry_lock:
            registry = self.load()
            if registry.baselines.pop(name, None) is None:
                return False
            self.save(registry)
        return True
