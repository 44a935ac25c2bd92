"""Attachment primitives describing how blob segments connect to each other."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from pygame.math import Vector2

from ..config import settings

__all__ = ["Direction", "HingeJoint", "DIRECTIONS"]


class Direction(str, Enum):
    """Side of a segment a neighbour can attach to.

    Definition order is the fixed traversal order used everywhere: it matches
    the child slot order of the genotype tree.
    """

    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @property
    def unit(self) -> Tuple[int, int]:
        """Unit step along the growth axis."""

        return _UNITS[self]

    @property
    def is_vertical(self) -> bool:
        return self in (Direction.TOP, Direction.BOTTOM)

    @property
    def slot(self) -> int:
        """Offset of this direction among a node's four children."""

        return DIRECTIONS.index(self)


_OPPOSITES: Dict[Direction, Direction] = {
    Direction.TOP: Direction.BOTTOM,
    Direction.BOTTOM: Direction.TOP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

_UNITS: Dict[Direction, Tuple[int, int]] = {
    Direction.TOP: (0, 1),
    Direction.BOTTOM: (0, -1),
    Direction.LEFT: (-1, 0),
    Direction.RIGHT: (1, 0),
}

DIRECTIONS: Tuple[Direction, ...] = tuple(Direction)


@dataclass(frozen=True)
class HingeJoint:
    """Revolute joint data between a parent segment and its child."""

    parent_anchor: Vector2
    child_anchor: Vector2
    limits: Tuple[float, float] = (-math.pi, math.pi)
    motor_target: float = 0.0
    stiffness: float = 0.0
    damping: float = 0.0
    contacts_enabled: bool = False

    @classmethod
    def between(
        cls,
        parent_anchor: Vector2,
        child_anchor: Vector2,
        motor_target: Optional[float] = None,
        motor_limits: Optional[Sequence[float]] = None,
    ) -> "HingeJoint":
        """Build a hinge using the configured motor constants.

        The motor only gets stiffness when a target angle is requested; without
        one it stays inert at angle 0.
        """

        stiffness = 0.0
        target = 0.0
        if motor_target is not None:
            stiffness = float(settings.MOTOR_STIFFNESS)
            target = float(motor_target)

        limits = (-math.pi, math.pi)
        if motor_limits is not None:
            lower, upper = motor_limits
            limits = (float(lower), float(upper))

        return cls(
            parent_anchor=Vector2(parent_anchor),
            child_anchor=Vector2(child_anchor),
            limits=limits,
            motor_target=target,
            stiffness=stiffness,
            damping=float(settings.MOTOR_DAMPING),
            contacts_enabled=bool(settings.ENABLE_CONTACTS),
        )

    @property
    def is_driven(self) -> bool:
        return self.stiffness > 0.0

    def describe_limits(self) -> str:
        """Return a human readable description of the joint limits."""

        parts: list[str] = ["hinge"]
        parts.append(f"limits={self.limits[0]:.2f}/{self.limits[1]:.2f}")
        if self.is_driven:
            parts.append(f"target={self.motor_target:.2f}")
            parts.append(f"stiffness={self.stiffness:.1f}")
        return ", ".join(parts)
