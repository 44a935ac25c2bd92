"""Body primitives and the cursor based assembler."""

from .assembler import BodyAssembler, BuiltSegment
from .attachment import DIRECTIONS, Direction, HingeJoint
from .segment import BlobInfo, SegmentAnchors, SegmentSpec

__all__ = [
    "BodyAssembler",
    "BuiltSegment",
    "DIRECTIONS",
    "Direction",
    "HingeJoint",
    "BlobInfo",
    "SegmentAnchors",
    "SegmentSpec",
]
