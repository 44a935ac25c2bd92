"""Cursor driven builder that spawns a blob segment by segment."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from pygame import Color
from pygame.math import Vector2

from ..config import settings
from .attachment import Direction, HingeJoint
from .segment import DEFAULT_SEGMENT_COLOR, BlobInfo, SegmentAnchors, SegmentSpec

if TYPE_CHECKING:
    from ..physics.engine import BodyEngine

__all__ = ["BuiltSegment", "BodyAssembler"]

logger = logging.getLogger("evoblob.body")


@dataclass
class BuiltSegment:
    """Bookkeeping for one spawned segment and its neighbours."""

    physical_id: int
    index: int
    size: Vector2
    translation: Vector2
    anchors: SegmentAnchors
    top: Optional[int] = None
    bottom: Optional[int] = None
    left: Optional[int] = None
    right: Optional[int] = None

    def neighbor(self, direction: Direction) -> Optional[int]:
        return getattr(self, direction.value)

    def link(self, direction: Direction, index: int) -> None:
        setattr(self, direction.value, index)


class BodyAssembler:
    """Build a connected blob in an engine through a movable cursor.

    ``create_first`` places the root segment. ``attach_in_direction`` grows a
    new segment off the cursor and moves the cursor onto it; the navigation
    helpers walk back along existing links. Misuse is logged and ignored.
    """

    def __init__(self, engine: "BodyEngine", color: Color | str = DEFAULT_SEGMENT_COLOR) -> None:
        self.engine = engine
        self.color = Color(color)
        self.info = BlobInfo()
        self.group: int = engine.spawn_group(self.info)
        self._segments: List[BuiltSegment] = []
        self.cursor: Optional[int] = None

    # ------------------------------------------------------------------
    # Inspection

    @property
    def segments(self) -> List[BuiltSegment]:
        return list(self._segments)

    @property
    def current(self) -> Optional[BuiltSegment]:
        if self.cursor is None:
            return None
        return self._segments[self.cursor]

    def __len__(self) -> int:
        return len(self._segments)

    def set_color(self, color: Color | str) -> "BodyAssembler":
        self.color = Color(color)
        return self

    # ------------------------------------------------------------------
    # Growth

    def create_first(self, spec: SegmentSpec, extras: Optional[Mapping[str, Any]] = None) -> int:
        """Spawn the root segment and point the cursor at it."""

        if self._segments:
            logger.warning("create_first called on a non-empty blob; clearing %d segments", len(self._segments))
            self.clear()

        spec = SegmentSpec(spec.center, spec.half_extent, Color(self.color), spec.density)
        physical_id = self.engine.spawn_segment(spec, self.group, dict(extras or {}))
        self.info.init(spec.center, spec.half_extent)
        self._segments.append(
            BuiltSegment(
                physical_id=physical_id,
                index=0,
                size=Vector2(spec.half_extent),
                translation=Vector2(spec.center),
                anchors=spec.anchors,
            )
        )
        self.cursor = 0
        return physical_id

    def attach_in_direction(
        self,
        direction: Direction,
        dx: float,
        dy: float,
        motor_target: Optional[float] = None,
        motor_limits: Optional[Sequence[float]] = None,
        extras: Optional[Mapping[str, Any]] = None,
    ) -> Optional[int]:
        """Grow a ``(dx, dy)`` half-extent segment off the cursor.

        Returns the new segment's id, the existing neighbour's id when that
        side is already taken, or ``None`` when there is no cursor.
        """

        direction = Direction(direction)
        current = self.current
        if current is None:
            logger.warning("Cannot attach %s: blob has no segments yet", direction.value)
            return None

        existing = current.neighbor(direction)
        if existing is not None:
            logger.warning(
                "Segment %d already has a %s neighbour (segment %d)",
                current.index,
                direction.value,
                existing,
            )
            return self._segments[existing].physical_id

        half_extent = Vector2(dx, dy)
        step = Vector2(direction.unit)
        offset = Vector2(
            step.x * (current.size.x + half_extent.x),
            step.y * (current.size.y + half_extent.y),
        )
        translation = current.translation + offset

        spec = SegmentSpec(
            center=translation,
            half_extent=half_extent,
            color=Color(self.color),
            density=float(settings.DEFAULT_DENSITY),
        )
        physical_id = self.engine.spawn_segment(spec, self.group, dict(extras or {}))

        joint = HingeJoint.between(
            current.anchors.facing(direction),
            spec.anchors.facing(direction.opposite),
            motor_target=motor_target,
            motor_limits=motor_limits,
        )
        self.engine.spawn_hinge(current.physical_id, physical_id, joint)

        index = len(self._segments)
        segment = BuiltSegment(
            physical_id=physical_id,
            index=index,
            size=half_extent,
            translation=Vector2(translation),
            anchors=spec.anchors,
        )
        current.link(direction, index)
        segment.link(direction.opposite, current.index)
        self._segments.append(segment)
        self.info.add(translation, half_extent)
        self.cursor = index
        return physical_id

    def add_to_top(
        self,
        dx: float,
        dy: float,
        motor_target: Optional[float] = None,
        motor_limits: Optional[Sequence[float]] = None,
        extras: Optional[Mapping[str, Any]] = None,
    ) -> Optional[int]:
        return self.attach_in_direction(Direction.TOP, dx, dy, motor_target, motor_limits, extras)

    def add_to_bottom(
        self,
        dx: float,
        dy: float,
        motor_target: Optional[float] = None,
        motor_limits: Optional[Sequence[float]] = None,
        extras: Optional[Mapping[str, Any]] = None,
    ) -> Optional[int]:
        return self.attach_in_direction(Direction.BOTTOM, dx, dy, motor_target, motor_limits, extras)

    def add_to_left(
        self,
        dx: float,
        dy: float,
        motor_target: Optional[float] = None,
        motor_limits: Optional[Sequence[float]] = None,
        extras: Optional[Mapping[str, Any]] = None,
    ) -> Optional[int]:
        return self.attach_in_direction(Direction.LEFT, dx, dy, motor_target, motor_limits, extras)

    def add_to_right(
        self,
        dx: float,
        dy: float,
        motor_target: Optional[float] = None,
        motor_limits: Optional[Sequence[float]] = None,
        extras: Optional[Mapping[str, Any]] = None,
    ) -> Optional[int]:
        return self.attach_in_direction(Direction.RIGHT, dx, dy, motor_target, motor_limits, extras)

    # ------------------------------------------------------------------
    # Navigation

    def move(self, direction: Direction) -> "BodyAssembler":
        direction = Direction(direction)
        current = self.current
        if current is None:
            logger.warning("Cannot move %s: blob has no segments yet", direction.value)
            return self
        target = current.neighbor(direction)
        if target is None:
            logger.warning("Segment %d has no %s neighbour", current.index, direction.value)
            return self
        self.cursor = target
        return self

    def top(self) -> "BodyAssembler":
        return self.move(Direction.TOP)

    def bottom(self) -> "BodyAssembler":
        return self.move(Direction.BOTTOM)

    def left(self) -> "BodyAssembler":
        return self.move(Direction.LEFT)

    def right(self) -> "BodyAssembler":
        return self.move(Direction.RIGHT)

    def reset_cursor(self) -> "BodyAssembler":
        if not self._segments:
            logger.warning("Cannot reset cursor: blob has no segments yet")
            return self
        self.cursor = 0
        return self

    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Forget every segment and start a fresh group.

        A blob with no segments keeps its current, still empty group.
        """

        if not self._segments:
            self.cursor = None
            return
        self.info = BlobInfo()
        self.group = self.engine.spawn_group(self.info)
        self._segments = []
        self.cursor = None

    def attach_group_data(self, **data: Any) -> None:
        self.engine.attach_group_data(self.group, data)

    def physical_ids(self) -> Dict[int, int]:
        return {segment.index: segment.physical_id for segment in self._segments}

    def __repr__(self) -> str:
        bounds = "empty" if math.isnan(self.info.width) else f"{self.info.width:.1f}x{self.info.height:.1f}"
        return f"BodyAssembler(group={self.group}, segments={len(self)}, cursor={self.cursor}, bounds={bounds})"
