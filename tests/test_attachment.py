from __future__ import annotations

import math

from pygame.math import Vector2

from evoblob.body.attachment import DIRECTIONS, Direction, HingeJoint
from evoblob.body.segment import SegmentAnchors


def test_directions_follow_child_slot_order() -> None:
    assert DIRECTIONS == (Direction.TOP, Direction.BOTTOM, Direction.LEFT, Direction.RIGHT)
    assert [direction.slot for direction in DIRECTIONS] == [0, 1, 2, 3]


def test_opposites_pair_up() -> None:
    for direction in DIRECTIONS:
        assert direction.opposite.opposite is direction
    assert Direction.TOP.opposite is Direction.BOTTOM
    assert Direction.LEFT.opposite is Direction.RIGHT
    assert Direction("right") is Direction.RIGHT


def test_anchors_sit_on_edge_midpoints() -> None:
    anchors = SegmentAnchors.for_half_extent(30.0, 10.0)

    assert anchors.facing(Direction.TOP) == Vector2(0.0, 10.0)
    assert anchors.facing(Direction.BOTTOM) == Vector2(0.0, -10.0)
    assert anchors.facing(Direction.LEFT) == Vector2(-30.0, 0.0)
    assert anchors.facing(Direction.RIGHT) == Vector2(30.0, 0.0)


def test_inert_hinge_description() -> None:
    joint = HingeJoint.between((0, 1), (0, -1))

    assert not joint.is_driven
    assert joint.limits == (-math.pi, math.pi)
    assert joint.describe_limits() == "hinge, limits=-3.14/3.14"
