"""Ignore regions — rectangles excluded from pixel comparison."""

from __future__ import annotations

from pydantic import BaseModel, Field


class IgnoreRegion(BaseModel):
    x: int = 0
    y: int = 0
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)

    def contains(self, x: int, y: int) -> bool:
        """Half-open containment: [x, x + width) by [y, y + height)."""
        return (
            self.x <= x < self.x + self.width
            and self.y <= y < self.y + self.height
        )

    @classmethod
    def of(cls, x: int, y: int, width: int, height: int) -> "IgnoreRegion":
        return cls(x=x, y=y, width=width, height=height)


def is_ignored(x: int, y: int, regions: list[IgnoreRegion]) -> bool:
    for region in regions:
        if region.contains(x, y):
            return True
    return False


def default_dynamic_regions() -> list[IgnoreRegion]:
    """Regions masking the volatile chrome of the main web app layout.

    These coordinates match one specific page layout at 1200px width; they
    are an example policy rather than a general default.
    """
    return [
        # Top banner ads
        IgnoreRegion.of(0, 0, 1200, 200),
        # Footer timestamps
        IgnoreRegion.of(0, 1800, 1200, 200),
        # Right-side live widgets
        IgnoreRegion.of(900, 200, 300, 1400),
    ]
