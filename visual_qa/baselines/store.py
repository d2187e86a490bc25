"""Baseline store — file layout and atomic writes for baseline, actual and diff images."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import threading
import weakref
from pathlib import Path
from typing import Iterator

from PIL import Image

logger = logging.getLogger(__name__)

# Entries vanish once no thread holds or waits on the lock.
_name_locks: weakref.WeakValueDictionary[tuple[str, str], threading.Lock] = (
    weakref.WeakValueDictionary()
)
_name_locks_guard = threading.Lock()


def validate_name(name: str) -> None:
    """Reject screenshot names that are empty or would escape the artifact directories."""
    if not name or not name.strip():
        raise ValueError("screenshot name must be non-empty")
    if "/" in name or "\\" in name or name in (".", ".."):
        raise ValueError(f"screenshot name must not contain path separators: {name!r}")


def atomic_write(dest: Path, write) -> None:
    """Write through a temp file in ``dest``'s directory, then rename into place."""
    fd, tmp = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.stem}-", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            write(f)
        os.replace(tmp, dest)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp)
        raise


class BaselineStore:
    """Owns the three artifact directories for named screenshots."""

    def __init__(self, baseline_dir: Path, actual_dir: Path, diff_dir: Path):
        self.baseline_dir = Path(baseline_dir)
        self.actual_dir = Path(actual_dir)
        self.diff_dir = Path(diff_dir)

    def ensure_dirs(self) -> None:
        for d in (self.baseline_dir, self.actual_dir, self.diff_dir):
            d.mkdir(parents=True, exist_ok=True)

    def baseline_path(self, name: str) -> Path:
        validate_name(name)
        return self.baseline_dir / f"{name}.png"

    def actual_path(self, name: str) -> Path:
        validate_name(name)
        return self.actual_dir / f"{name}.png"

    def diff_path(self, name: str) -> Path:
        validate_name(name)
        return self.diff_dir / f"{name}-diff.png"

    def has_baseline(self, name: str) -> bool:
        return self.baseline_path(name).exists()

    @contextlib.contextmanager
    def lock(self, name: str) -> Iterator[None]:
        """Serialize work on one screenshot name across threads in this process."""
        validate_name(name)
        key = (str(self.baseline_dir.resolve()), name)
        with _name_locks_guard:
            name_lock = _name_locks.setdefault(key, threading.Lock())
        with name_lock:
            yield

    def seed_baseline(self, name: str) -> Path:
        """Copy the actual image's bytes to the baseline path verbatim."""
        data = self.actual_path(name).read_bytes()
        dest = self.baseline_path(name)
        atomic_write(dest, lambda f: f.write(data))
        logger.debug("Copied %s -> %s", self.actual_path(name), dest)
        return dest

    def write_diff(self, name: str, image: Image.Image) -> Path:
        dest = self.diff_path(name)
        atomic_write(dest, lambda f: image.save(f, format="PNG"))
        return dest

    def list_names(self) -> list[str]:
        if not self.baseline_dir.exists():
            return []
        return sorted(p.stem for p in self.baseline_dir.glob("*.png"))

    def remove_baseline(self, name: str) -> bool:
        path = self.baseline_path(name)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Removed baseline %s", path)
        return True
