"""Rigid block segments and the bounding info shared by a whole blob."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from pygame import Color
from pygame.math import Vector2

from .attachment import Direction

__all__ = ["SegmentAnchors", "SegmentSpec", "BlobInfo", "DEFAULT_SEGMENT_COLOR"]

DEFAULT_SEGMENT_COLOR = "azure"


@dataclass(frozen=True)
class SegmentAnchors:
    """Local anchor points at the middle of each edge of a block."""

    top: Vector2
    bottom: Vector2
    left: Vector2
    right: Vector2

    @classmethod
    def for_half_extent(cls, half_width: float, half_height: float) -> "SegmentAnchors":
        return cls(
            top=Vector2(0.0, half_height),
            bottom=Vector2(0.0, -half_height),
            left=Vector2(-half_width, 0.0),
            right=Vector2(half_width, 0.0),
        )

    def facing(self, direction: Direction) -> Vector2:
        return Vector2(getattr(self, direction.value))


@dataclass
class SegmentSpec:
    """Everything the engine needs to spawn one rectangular segment."""

    center: Vector2
    half_extent: Vector2
    color: Color = field(default_factory=lambda: Color(DEFAULT_SEGMENT_COLOR))
    density: float = 1.0

    def __post_init__(self) -> None:
        self.center = Vector2(self.center)
        self.half_extent = Vector2(self.half_extent)
        if not all(math.isfinite(value) for value in (*self.center, *self.half_extent)):
            raise ValueError(f"Segment geometry must be finite, got {self.center} / {self.half_extent}")
        if self.half_extent.x < 0.0 or self.half_extent.y < 0.0:
            raise ValueError(f"Segment half extent must be non-negative, got {self.half_extent}")

    @classmethod
    def from_xy_dx_dy(cls, x: float, y: float, dx: float, dy: float) -> "SegmentSpec":
        """Block centred at ``(x, y)`` with half extents ``(dx, dy)``."""

        return cls(center=Vector2(x, y), half_extent=Vector2(dx, dy))

    def with_color(self, color: Color | str) -> "SegmentSpec":
        self.color = Color(color)
        return self

    def with_density(self, density: float) -> "SegmentSpec":
        self.density = float(density)
        return self

    @property
    def anchors(self) -> SegmentAnchors:
        return SegmentAnchors.for_half_extent(self.half_extent.x, self.half_extent.y)

    @property
    def size(self) -> Vector2:
        """Full width and height of the block."""

        return self.half_extent * 2

    def box(self) -> Tuple[float, float, float, float]:
        return (
            self.center.x - self.half_extent.x,
            self.center.x + self.half_extent.x,
            self.center.y - self.half_extent.y,
            self.center.y + self.half_extent.y,
        )


@dataclass
class BlobInfo:
    """Running bounds of every segment grouped under one blob."""

    center: Vector2 = field(default_factory=lambda: Vector2(math.nan, math.nan))
    xbound: List[float] = field(default_factory=lambda: [math.nan, math.nan])
    ybound: List[float] = field(default_factory=lambda: [math.nan, math.nan])
    color: Color = field(default_factory=lambda: Color("aliceblue"))

    def init(self, center: Sequence[float], size: Sequence[float]) -> None:
        self.center = Vector2(center)
        half = Vector2(size)
        self.xbound = [self.center.x - half.x, self.center.x + half.x]
        self.ybound = [self.center.y - half.y, self.center.y + half.y]

    def add(self, translation: Sequence[float], size: Sequence[float]) -> None:
        """Grow the bounds to cover a new block at ``translation``."""

        large = Vector2(translation) + Vector2(size)
        small = Vector2(translation) - Vector2(size)
        self.xbound[0] = min(self.xbound[0], small.x)
        self.xbound[1] = max(self.xbound[1], large.x)
        self.ybound[0] = min(self.ybound[0], small.y)
        self.ybound[1] = max(self.ybound[1], large.y)

    @property
    def width(self) -> float:
        return self.xbound[1] - self.xbound[0]

    @property
    def height(self) -> float:
        return self.ybound[1] - self.ybound[0]
